"""CLI entrypoint for htmlrules."""

import dataclasses
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .errors import DocumentError, RulesetError


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_ruleset(ctx: click.Context):
    """Resolve, load and apply command-line overrides to the active ruleset."""
    from .rules.load import find_ruleset, load_ruleset

    obj = ctx.obj
    if obj.get("ruleset") is not None:
        return obj["ruleset"]

    path = obj.get("rules_path")
    if path is None:
        path = find_ruleset(Path.cwd())
        if path is None:
            raise click.ClickException(
                "Ruleset not found. Pass --rules /path/to/rules.toml or add htmlrules.toml to the project."
            )

    try:
        ruleset = load_ruleset(path)
    except RulesetError as e:
        raise click.ClickException(str(e)) from e

    overrides = {}
    if obj.get("max_line_length") is not None:
        overrides["max_line_length"] = obj["max_line_length"]
    if obj.get("allow_inline_styles"):
        overrides["allow_inline_styles"] = True
    if obj.get("ignore"):
        overrides["ignore_rules"] = ruleset.options.ignore_rules + tuple(obj["ignore"])
    if overrides:
        ruleset = dataclasses.replace(ruleset, options=dataclasses.replace(ruleset.options, **overrides))

    obj["ruleset"] = ruleset
    return ruleset


def _build_linter(ctx: click.Context):
    from .rules.engine import HtmlLinter

    return HtmlLinter.from_ruleset(_load_ruleset(ctx))


@click.group()
@click.version_option(__version__, prog_name="htmlrules")
@click.option(
    "--rules",
    "-r",
    "rules_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="Ruleset file (TOML, JSON or YAML; defaults to auto-detected htmlrules.toml)",
)
@click.option("--max-line-length", type=int, default=None, help="Override options.max_line_length")
@click.option("--allow-inline-styles", is_flag=True, help="Exempt style attributes from style-forbidden rules")
@click.option(
    "--ignore",
    multiple=True,
    metavar="RULE",
    help="Skip rules whose name matches this pattern. Repeatable.",
)
@click.option("--verbose", is_flag=True, help="Log rule evaluation details to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    rules_path: Path | None,
    max_line_length: int | None,
    allow_inline_styles: bool,
    ignore: tuple[str, ...],
    verbose: bool,
) -> None:
    """htmlrules - Declarative rule-driven HTML linter.

    Lint HTML documents against a ruleset of selectors, conditions and patterns.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)
    ctx.obj.update(
        rules_path=rules_path,
        max_line_length=max_line_length,
        allow_inline_styles=allow_inline_styles,
        ignore=ignore,
    )


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default="error",
    help="Exit with error if this level or higher found",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON",
)
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=1, show_default=True, help="Files linted in parallel")
@click.pass_context
def lint(ctx: click.Context, paths: tuple[Path, ...], fail_on: str, output_json: bool, jobs: int) -> None:
    """Lint HTML files and directories.

    Directories are searched recursively for *.html and *.htm files.

    Examples:

        htmlrules lint index.html

        htmlrules --rules a11y.toml lint site/ --fail-on warning --jobs 4
    """
    from .commands.lint import run_lint

    linter = _build_linter(ctx)
    try:
        exit_code = run_lint(linter, list(paths), fail_on=fail_on, output_json=output_json, jobs=jobs)
    except DocumentError as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


@cli.command()
@click.option(
    "--explain",
    "explain_rule",
    type=str,
    default=None,
    metavar="RULE",
    help="Show every field of one rule and exit",
)
@click.pass_context
def rules(ctx: click.Context, explain_rule: str | None) -> None:
    """List the rules in the active ruleset."""
    from .commands.lint import run_rules

    sys.exit(run_rules(_load_ruleset(ctx), explain=explain_rule))


@cli.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=".",
)
@click.pass_context
def watch(ctx: click.Context, directory: Path) -> None:
    """Re-lint HTML files under DIRECTORY whenever they change.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    run_watch(directory, _build_linter(ctx))


@cli.command("lsp")
@click.option(
    "--transport",
    type=click.Choice(["stdio", "tcp"]),
    default="stdio",
    show_default=True,
    help="Transport method (stdio for editors, tcp for debugging)",
)
@click.pass_context
def lsp(ctx: click.Context, transport: str) -> None:
    """Start the LSP server for editor diagnostics.

    The ruleset comes from --rules, or is discovered from the workspace root
    (or the opened file's directory) on first use.

    For VSCode, configure the extension to use:

        htmlrules lsp --transport stdio
    """
    from .lsp import start_server

    start_server(ruleset_path=ctx.obj.get("rules_path"), transport=transport)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()

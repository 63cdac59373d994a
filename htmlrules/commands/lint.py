"""Lint command implementation."""

import json
from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..rules.engine import HtmlLinter
from ..rules.findings import SEVERITY_RANK, LintResult, at_or_above
from ..rules.schema import RuleSet, rule_type_name

HTML_SUFFIXES = (".html", ".htm")


def collect_html_files(paths: list[Path]) -> list[Path]:
    """Expand directories to the HTML files under them, keeping argument order."""
    files: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        if path.is_dir():
            candidates = sorted(p for p in path.rglob("*") if p.is_file() and p.suffix.lower() in HTML_SUFFIXES)
        else:
            candidates = [path]
        for p in candidates:
            if p not in seen:
                seen.add(p)
                files.append(p)
    return files


def run_lint(
    linter: HtmlLinter,
    paths: list[Path],
    fail_on: str = "error",
    output_json: bool = False,
    jobs: int = 1,
) -> int:
    """Lint HTML files and print the findings.

    Args:
        linter: Linter built from the active ruleset
        paths: Files or directories to lint
        fail_on: Exit with error if this level or higher found ("error" or "warning")
        output_json: Output results as JSON instead of human-readable
        jobs: Number of files linted concurrently

    Returns:
        Exit code (0 = success, 1 = failures found)

    Raises:
        DocumentError: a file cannot be read or parsed.
    """
    console = Console(stderr=True)

    files = collect_html_files(paths)
    if not files:
        console.print("No HTML files to lint.", style="yellow")
        return 0

    console.print(f"Linting {len(files)} file(s) with {len(linter.rules)} rule(s)...", style="dim")
    by_file = linter.lint_many(files, jobs=jobs)

    counts = {"error": 0, "warning": 0, "info": 0}
    for results in by_file.values():
        for r in results:
            counts[r.severity] += 1

    if output_json:
        _output_json(by_file, counts)
    else:
        _print_human_output(console, by_file, counts)

    failing = sum(len(at_or_above(results, fail_on)) for results in by_file.values())
    return 1 if failing else 0


def _output_json(by_file: dict[Path, list[LintResult]], counts: dict[str, int]) -> None:
    output = {
        "files": {str(path): [r.to_dict() for r in results] for path, results in by_file.items()},
        "summary": {
            "files": len(by_file),
            "errors": counts["error"],
            "warnings": counts["warning"],
            "info": counts["info"],
        },
    }
    print(json.dumps(output, indent=2))


_PREFIX = {
    "error": ("ERROR", "bold red"),
    "warning": ("WARN", "yellow"),
    "info": ("INFO", "dim"),
}


def _print_human_output(console: Console, by_file: dict[Path, list[LintResult]], counts: dict[str, int]) -> None:
    for path, results in by_file.items():
        if not results:
            continue

        worst = max(SEVERITY_RANK[r.severity] for r in results)
        if worst == SEVERITY_RANK["error"]:
            status, status_style = "✗", "bold red"
        elif worst == SEVERITY_RANK["warning"]:
            status, status_style = "⚠", "yellow"
        else:
            status, status_style = "•", "dim"

        console.print()
        console.print(f"{status} {path}", style=status_style)

        by_rule: dict[str, list[LintResult]] = defaultdict(list)
        for r in results:
            by_rule[r.rule].append(r)

        for rule_name, rule_results in by_rule.items():
            console.print(f"\n  Rule: {rule_name}", style="bold")
            for r in rule_results:
                prefix, prefix_style = _PREFIX[r.severity]
                loc = f"{r.location.line}:{r.location.column}"
                console.print(f"    {prefix}: {loc} - {r.message}", style=prefix_style, markup=False)

    console.print()
    summary = f"{counts['error']} error(s), {counts['warning']} warning(s), {counts['info']} info(s)"
    if counts["error"]:
        console.print(f"✗ {summary}", style="bold red")
    elif counts["warning"]:
        console.print(f"⚠ {summary}", style="yellow")
    else:
        console.print(f"✓ {summary}", style="bold green")


def run_rules(ruleset: RuleSet, explain: str | None = None) -> int:
    """List the loaded rules, or explain one of them.

    Returns:
        Exit code (0 = success, 1 = rule not found)
    """
    console = Console()

    if explain is not None:
        matches = [r for r in ruleset.rules if r.name == explain.strip()]
        if not matches:
            console.print(f"Unknown rule: {explain}", style="bold red")
            console.print()
            console.print("Known rules:", style="bold")
            for r in ruleset.rules:
                console.print(f"  - {r.name}", markup=False)
            return 1

        for rule in matches:
            table = Table(title=rule.name, show_header=False)
            table.add_column("Field", style="bold")
            table.add_column("Value")
            table.add_row("type", rule_type_name(rule.rule_type))
            table.add_row("severity", rule.severity)
            table.add_row("selector", rule.selector or "*")
            table.add_row("condition", rule.condition or "-")
            table.add_row("message", rule.message or "-")
            for key, value in rule.options.items():
                table.add_row(f"options.{key}", json.dumps(value) if not isinstance(value, str) else value)
            console.print(table)
        return 0

    table = Table(title=f"Rules ({ruleset.path})" if ruleset.path else "Rules")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Severity")
    table.add_column("Selector")
    table.add_column("Condition")
    for rule in ruleset.rules:
        table.add_row(rule.name, rule_type_name(rule.rule_type), rule.severity, rule.selector or "*", rule.condition or "-")
    console.print(table)
    return 0

"""Watch command - re-lint HTML files as they change."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..errors import DocumentError
from ..rules.engine import HtmlLinter
from ..rules.findings import LintResult
from ..watcher import run_watch_loop


def format_results(path: Path, results: list[LintResult]) -> list[str]:
    """Rich markup lines for one re-linted file."""
    if not results:
        return [f"[green]✓[/green] {escape(str(path))}"]
    errors = sum(1 for r in results if r.severity == "error")
    mark = "[red]✗[/red]" if errors else "[yellow]⚠[/yellow]"
    lines = [f"{mark} {escape(str(path))} ({len(results)} finding(s))"]
    for r in results:
        lines.append(f"    [dim]{r.location.line}:{r.location.column}[/dim] {escape(f'[{r.rule}]')} {escape(r.message)}")
    return lines


def run_watch(root: Path, linter: HtmlLinter) -> None:
    """
    Watch `root` and print findings for each changed HTML file.

    This is a blocking command that runs until interrupted (Ctrl+C).
    """
    console = Console(stderr=True)

    console.print(f"[bold]Watching[/bold] {escape(str(root))}")
    console.print(f"  Rules: {len(linter.rules)}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    lint_count = 0

    def on_results(path: Path, results: list[LintResult]) -> None:
        nonlocal lint_count
        lint_count += 1
        timestamp = datetime.now().strftime("%H:%M:%S")
        for line in format_results(path, results):
            console.print(f"[dim]{timestamp}[/dim] {line}", highlight=False)

    def on_error(path: Path, error: DocumentError) -> None:
        console.print(f"[red]Cannot lint {escape(str(path))}:[/red] {escape(str(error))}", highlight=False)

    try:
        run_watch_loop(root, linter, on_results, on_error)
    except KeyboardInterrupt:
        pass
    console.print()
    console.print(f"[bold]Stopped.[/bold] Linted {lint_count} change(s).")

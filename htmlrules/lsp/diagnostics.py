"""
Convert htmlrules lint results to LSP diagnostics.

Lint results use 1-based lines and columns; LSP positions are 0-based.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import DocumentError
from ..rules.engine import HtmlLinter
from ..rules.findings import LintResult


@dataclass
class LintDiagnostic:
    """A single lint diagnostic for LSP."""

    line: int
    column: int
    length: int
    message: str
    severity: str  # "error", "warning", "info"
    rule_id: str


def _span(result: LintResult) -> int:
    """Highlight the start tag (or the rest of the line for line-based rules)."""
    if not result.source:
        return 0
    first_line = result.source.split("\n", 1)[0]
    if result.location.element:
        return len(first_line)
    return max(len(first_line) - (result.location.column - 1), 0)


def to_diagnostic(result: LintResult) -> LintDiagnostic:
    return LintDiagnostic(
        line=max(result.location.line - 1, 0),
        column=max(result.location.column - 1, 0),
        length=_span(result),
        message=result.message,
        severity=result.severity,
        rule_id=result.rule,
    )


def lint_text(linter: HtmlLinter, content: str) -> list[LintDiagnostic]:
    """
    Lint editor buffer text.

    A document that cannot be parsed yields a single error diagnostic at the
    top of the file instead of raising.
    """
    try:
        results = linter.lint(content)
    except DocumentError as e:
        return [
            LintDiagnostic(line=0, column=0, length=0, message=str(e), severity="error", rule_id="document-error")
        ]
    return [to_diagnostic(r) for r in results]

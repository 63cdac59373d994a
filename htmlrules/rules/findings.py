"""Lint findings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..document.model import Element
from .schema import Rule, Severity


@dataclass(frozen=True)
class Location:
    line: int
    column: int
    element: str  # tag name, empty for document-level findings


@dataclass(frozen=True)
class LintResult:
    """A single lint finding."""

    rule: str
    severity: Severity
    message: str
    location: Location
    source: str = ""  # raw start tag, or the raw line for line-based rules

    def __str__(self) -> str:
        loc = f"{self.location.line}:{self.location.column}"
        if self.location.element:
            loc += f" <{self.location.element}>"
        return f"{self.severity.upper()}: [{self.rule}] {loc} - {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule": self.rule,
            "severity": self.severity,
            "message": self.message,
            "line": self.location.line,
            "column": self.location.column,
            "element": self.location.element,
            "source": self.source,
        }


def element_finding(rule: Rule, element: Element, message: str) -> LintResult:
    return LintResult(
        rule=rule.name,
        severity=rule.severity,
        message=message,
        location=Location(line=element.line, column=element.column, element=element.tag),
        source=element.source,
    )


def document_finding(rule: Rule, message: str, *, line: int = 1, column: int = 1, source: str = "") -> LintResult:
    return LintResult(
        rule=rule.name,
        severity=rule.severity,
        message=message,
        location=Location(line=line, column=column, element=""),
        source=source,
    )


def detailed(rule: Rule, detail: str) -> str:
    """Rule message followed by a finding-specific detail."""
    return f"{rule.message} - {detail}" if rule.message else detail


def annotated(rule: Rule, note: str) -> str:
    """Rule message with a parenthesized note."""
    return f"{rule.message} ({note})" if rule.message else note


SEVERITY_RANK: dict[str, int] = {"info": 0, "warning": 1, "error": 2}


def at_or_above(results: list[LintResult], severity: str) -> list[LintResult]:
    """Findings whose severity is at least `severity`."""
    floor = SEVERITY_RANK[severity]
    return [r for r in results if SEVERITY_RANK[r.severity] >= floor]

"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from htmlrules.rules.engine import HtmlLinter
from htmlrules.rules.findings import LintResult
from htmlrules.rules.schema import LinterOptions, Rule


@pytest.fixture
def make_rule():
    """Build a Rule with test defaults."""

    def _make(rule_type, name: str = "test-rule", **kwargs) -> Rule:
        kwargs.setdefault("message", "Rule violated")
        return Rule(name=name, rule_type=rule_type, **kwargs)

    return _make


@pytest.fixture
def lint():
    """Lint an HTML string with the given rules."""

    def _lint(html: str, *rules: Rule, options: LinterOptions | None = None) -> list[LintResult]:
        return HtmlLinter(list(rules), options).lint(html)

    return _lint


@pytest.fixture
def write_file(tmp_path: Path):
    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write

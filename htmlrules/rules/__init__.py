"""Declarative rule engine (rules as data, evaluators as code)."""

from .engine import HtmlLinter
from .findings import LintResult, Location
from .load import load_ruleset
from .schema import Custom, LinterOptions, Rule, RuleSet, RuleType

__all__ = [
    "Custom",
    "HtmlLinter",
    "LinterOptions",
    "LintResult",
    "Location",
    "Rule",
    "RuleSet",
    "RuleType",
    "load_ruleset",
]

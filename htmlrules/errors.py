"""Exception types shared across the linter."""


class HtmlRulesError(Exception):
    """Base class for htmlrules errors."""


class DocumentError(HtmlRulesError):
    """The input cannot be turned into a document tree."""


class RuleConfigError(HtmlRulesError):
    """A single rule cannot be evaluated as configured.

    Scoped to the offending rule: the engine reports it as a finding and
    keeps evaluating the remaining rules.
    """


class SelectorError(RuleConfigError):
    """Selector text does not fit the supported grammar."""


class PatternError(RuleConfigError):
    """Pattern definition is malformed or its regular expression is invalid."""


class RulesetError(HtmlRulesError, ValueError):
    """A ruleset file cannot be loaded."""

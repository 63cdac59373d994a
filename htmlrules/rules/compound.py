"""Compound rules: several boolean conditions combined by a check mode.

Every condition is evaluated against one matched element, giving an ordered
vector of booleans. The check mode decides whether that vector is a
violation. Mode options are validated once per rule, before any element is
evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ..document.model import Document, Element
from ..errors import RuleConfigError
from .findings import LintResult, detailed, element_finding
from .options import opt_bool, opt_float, opt_int, opt_str, opt_structured, pattern_option
from .patterns import Pattern, pattern_matches
from .schema import Rule
from .selector import SelectorMatcher, compile_selector


# --- Conditions -------------------------------------------------------------


@dataclass(frozen=True)
class TextContentCondition:
    pattern: Pattern

    def evaluate(self, element: Element, document: Document) -> bool:
        text = element.text.strip()
        return bool(text) and pattern_matches(self.pattern, text)

    def describe(self, matched: bool) -> str:
        return f"{_mark(matched)} Text content pattern '{_show(self.pattern)}' match"


@dataclass(frozen=True)
class AttributeValueCondition:
    attribute: str
    pattern: Pattern

    def evaluate(self, element: Element, document: Document) -> bool:
        value = element.attrs.get(self.attribute, "").strip()
        return bool(value) and pattern_matches(self.pattern, value)

    def describe(self, matched: bool) -> str:
        return f"{_mark(matched)} Attribute '{self.attribute}' matching pattern '{_show(self.pattern)}'"


@dataclass(frozen=True)
class AttributeReferenceCondition:
    """True when the id named by the attribute exists (or must not and does not)."""

    attribute: str
    reference_must_exist: bool = True

    def evaluate(self, element: Element, document: Document) -> bool:
        value = element.attrs.get(self.attribute, "").strip()
        if not value:
            return False
        return (value in document.ids) == self.reference_must_exist

    def describe(self, matched: bool) -> str:
        wanted = "exists" if self.reference_must_exist else "does not exist"
        return f"{_mark(matched)} Attribute '{self.attribute}' reference {wanted}"


@dataclass(frozen=True)
class ElementPresenceCondition:
    """True when some descendant matches the selector."""

    selector: str
    matcher: SelectorMatcher = field(compare=False, repr=False)

    def evaluate(self, element: Element, document: Document) -> bool:
        return any(self.matcher.matches(el) for el in element.iter_descendants())

    def describe(self, matched: bool) -> str:
        state = "exists" if matched else "does not exist"
        return f"{_mark(matched)} Element '{self.selector}' {state}"


CompoundCondition = (
    TextContentCondition | AttributeValueCondition | AttributeReferenceCondition | ElementPresenceCondition
)


def _mark(matched: bool) -> str:
    return "✓" if matched else "✗"


def _show(pattern: Pattern) -> str:
    return pattern.value if pattern.type == "Regex" else pattern.describe()


def parse_condition(raw: Any) -> CompoundCondition:
    if not isinstance(raw, dict):
        raise RuleConfigError(f"Compound condition must be a mapping, got {raw!r}")
    kind = str(raw.get("type", "")).strip()

    if kind == "TextContent":
        return TextContentCondition(pattern=pattern_option(raw))
    if kind == "AttributeValue":
        return AttributeValueCondition(attribute=opt_str(raw, "attribute").lower(), pattern=pattern_option(raw))
    if kind == "AttributeReference":
        return AttributeReferenceCondition(
            attribute=opt_str(raw, "attribute").lower(),
            reference_must_exist=opt_bool(raw, "reference_must_exist", True),
        )
    if kind == "ElementPresence":
        selector = opt_str(raw, "selector")
        return ElementPresenceCondition(selector=selector, matcher=compile_selector(selector))
    raise RuleConfigError(f"Unknown compound condition type {kind!r}")


def parse_conditions(options: dict[str, Any]) -> list[CompoundCondition]:
    raw = opt_structured(options, "conditions")
    if not isinstance(raw, list):
        raise RuleConfigError("Option 'conditions' must be a list")
    return [parse_condition(item) for item in raw]


# --- Check modes ------------------------------------------------------------


@dataclass(frozen=True)
class CompoundCheck:
    """A check mode with its validated options."""

    mode: str
    size: int
    ratio: float = 0.0
    minimum: int = 0
    maximum: int = 0
    count: int = 0
    groups: dict[str, tuple[int, ...]] = field(default_factory=dict)
    weights: tuple[float, ...] = ()
    threshold: float = 1.0
    valid_sets: tuple[frozenset[int], ...] = ()


def _indices(value: Any, size: int, what: str) -> tuple[int, ...]:
    if not isinstance(value, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in value):
        raise RuleConfigError(f"{what} must be a list of condition indices")
    for i in value:
        if not 0 <= i < size:
            raise RuleConfigError(f"{what} refers to condition {i}, but there are {size} conditions")
    return tuple(value)


def compile_check(options: dict[str, Any], size: int) -> CompoundCheck:
    """Validate `check_mode` and the options it needs.

    Raises:
        RuleConfigError: unknown mode, or a required option is missing or malformed.
    """
    mode = opt_str(options, "check_mode", "all")
    if mode not in CHECK_MODES:
        raise RuleConfigError(f"Unknown compound check_mode {mode!r}")

    if mode == "ratio":
        ratio = opt_float(options, "ratio")
        if not 0.0 <= ratio <= 1.0:
            raise RuleConfigError(f"Option 'ratio' must be between 0 and 1, got {ratio}")
        return CompoundCheck(mode=mode, size=size, ratio=ratio)

    if mode == "range":
        if "min" not in options and "max" not in options:
            raise RuleConfigError("Compound range mode needs 'min' and/or 'max'")
        lo = opt_int(options, "min", 0)
        hi = opt_int(options, "max", size)
        if lo > hi:
            raise RuleConfigError(f"Option 'min' ({lo}) is greater than 'max' ({hi})")
        return CompoundCheck(mode=mode, size=size, minimum=lo, maximum=hi)

    if mode == "consecutive":
        count = opt_int(options, "count")
        if count < 1:
            raise RuleConfigError("Option 'count' must be at least 1")
        return CompoundCheck(mode=mode, size=size, count=count)

    if mode == "exclusive_groups":
        raw = opt_structured(options, "groups")
        if not isinstance(raw, dict) or not raw:
            raise RuleConfigError("Option 'groups' must be a non-empty mapping of name to indices")
        groups: dict[str, tuple[int, ...]] = {}
        for name, members in raw.items():
            indices = _indices(members, size, f"Group {name!r}")
            if not indices:
                raise RuleConfigError(f"Group {name!r} is empty")
            groups[str(name)] = indices
        return CompoundCheck(mode=mode, size=size, groups=groups)

    if mode == "weighted":
        raw = opt_structured(options, "weights", None)
        if raw is None:
            weights = tuple(1.0 for _ in range(size))
        else:
            if not isinstance(raw, list) or not all(
                isinstance(w, (int, float)) and not isinstance(w, bool) for w in raw
            ):
                raise RuleConfigError("Option 'weights' must be a list of numbers")
            weights = tuple(float(w) for w in raw)
            if len(weights) != size:
                raise RuleConfigError(f"Option 'weights' has {len(weights)} entries for {size} conditions")
        return CompoundCheck(mode=mode, size=size, weights=weights, threshold=opt_float(options, "threshold", 1.0))

    if mode == "subset_match":
        raw = opt_structured(options, "valid_sets")
        if not isinstance(raw, list):
            raise RuleConfigError("Option 'valid_sets' must be a list of index lists")
        valid_sets = tuple(frozenset(_indices(s, size, "A valid set")) for s in raw)
        return CompoundCheck(mode=mode, size=size, valid_sets=valid_sets)

    return CompoundCheck(mode=mode, size=size)


def _runs(v: list[bool]) -> list[int]:
    """Lengths of maximal runs of true entries."""
    runs: list[int] = []
    current = 0
    for x in v:
        if x:
            current += 1
        elif current:
            runs.append(current)
            current = 0
    if current:
        runs.append(current)
    return runs


def _exclusive_violation(check: CompoundCheck, v: list[bool]) -> bool:
    full = [name for name, idx in check.groups.items() if all(v[i] for i in idx)]
    if len(full) != 1:
        return True
    return any(v[i] for name, idx in check.groups.items() if name != full[0] for i in idx)


def _weight(check: CompoundCheck, v: list[bool]) -> float:
    return sum(w for w, x in zip(check.weights, v) if x)


def _true_set(v: list[bool]) -> frozenset[int]:
    return frozenset(i for i, x in enumerate(v) if x)


ModeFn = Callable[[CompoundCheck, list[bool]], bool]

# Each function returns True when `v` is a violation.
CHECK_MODES: dict[str, ModeFn] = {
    "all": lambda c, v: not all(v),
    "any": lambda c, v: not any(v),
    "at_least_one": lambda c, v: not any(v),
    "none": lambda c, v: any(v),
    "exactly_one": lambda c, v: sum(v) != 1,
    "majority": lambda c, v: sum(v) <= len(v) / 2,
    "ratio": lambda c, v: (sum(v) / len(v) if v else 1.0) < c.ratio,
    "range": lambda c, v: not c.minimum <= sum(v) <= c.maximum,
    "consecutive": lambda c, v: c.count not in _runs(v),
    "exclusive_groups": _exclusive_violation,
    "weighted": lambda c, v: _weight(c, v) < c.threshold,
    "dependency_chain": lambda c, v: any(v[i] and not v[i - 1] for i in range(1, len(v))),
    "alternating": lambda c, v: any(v[i] == v[i + 1] for i in range(len(v) - 1)),
    "subset_match": lambda c, v: _true_set(v) not in c.valid_sets,
}


def violates(check: CompoundCheck, v: list[bool]) -> bool:
    return CHECK_MODES[check.mode](check, v)


def explain(check: CompoundCheck, v: list[bool]) -> str:
    n = len(v)
    count = sum(v)
    mode = check.mode
    if mode == "all":
        return f"Only {count}/{n} conditions were satisfied. All conditions must be met"
    if mode == "any":
        return f"None of the {n} conditions were met. At least one condition must be satisfied"
    if mode == "at_least_one":
        return f"Found no matching conditions. At least 1 of {n} conditions must match"
    if mode == "none":
        return f"Found {count} matching conditions where none should match. All conditions must fail"
    if mode == "exactly_one":
        return f"Found {count} matching conditions where exactly 1 was expected"
    if mode == "majority":
        return f"Only {count}/{n} conditions matched. More than half ({n // 2 + 1}) must match"
    if mode == "ratio":
        return f"Only {count}/{n} conditions matched. At least {check.ratio:.0%} must match"
    if mode == "range":
        return f"Found {count} matching conditions, expected between {check.minimum} and {check.maximum}"
    if mode == "consecutive":
        return f"No run of exactly {check.count} consecutive matching conditions"
    if mode == "exclusive_groups":
        full = [name for name, idx in check.groups.items() if all(v[i] for i in idx)]
        return f"Exactly one condition group must match exclusively (fully matched: {', '.join(full) or 'none'})"
    if mode == "weighted":
        return (
            f"Total weight of matching conditions ({_weight(check, v):.2f}) "
            f"is below required threshold ({check.threshold:.2f})"
        )
    if mode == "dependency_chain":
        chain = next((i for i, x in enumerate(v) if not x), n)
        return f"Chain broken after {chain} conditions. Matching conditions must form an unbroken prefix"
    if mode == "alternating":
        pos = next(i for i in range(n - 1) if v[i] == v[i + 1]) + 1
        kind = "matching" if v[pos] else "non-matching"
        return f"Found consecutive {kind} conditions at position {pos + 1}. Pattern must alternate between match/no-match"
    if mode == "subset_match":
        valid = [sorted(s) for s in check.valid_sets]
        return f"Current matching set {sorted(_true_set(v))} doesn't match any valid combination. Valid sets: {valid}"
    return "Compound condition check failed"


def check_compound(rule: Rule, elements: list[Element], document: Document) -> list[LintResult]:
    conditions = parse_conditions(rule.options)
    check = compile_check(rule.options, len(conditions))

    results: list[LintResult] = []
    for element in elements:
        v = [cond.evaluate(element, document) for cond in conditions]
        if not violates(check, v):
            continue
        details = "\n".join(cond.describe(matched) for cond, matched in zip(conditions, v))
        message = f"{detailed(rule, explain(check, v))}\nCondition details:\n{details}"
        results.append(element_finding(rule, element, message))
    return results

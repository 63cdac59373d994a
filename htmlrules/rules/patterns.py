"""Value patterns and check modes.

A pattern is a pure test of a string. Regular expressions use `re.search`
and are compiled once per expression through an LRU memo. Python's `re`
backtracks, so a pathological expression can run for a long time; callers
that need bounded linting time have to enforce it around the lint call.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from ..errors import PatternError

PATTERN_TYPES = (
    "Regex",
    "MinLength",
    "MaxLength",
    "LengthRange",
    "NonEmpty",
    "Exact",
    "OneOf",
    "Contains",
    "StartsWith",
    "EndsWith",
)

CHECK_MODES = ("normal", "ensure_existence", "ensure_nonexistence")


@dataclass(frozen=True)
class Pattern:
    type: str
    value: Any = None
    minimum: int | None = None  # LengthRange only
    maximum: int | None = None  # LengthRange only

    @classmethod
    def from_option(cls, raw: Any) -> Pattern:
        """Build a pattern from a rule option.

        Accepts a mapping such as `{"type": "MinLength", "value": 50}`, the same
        mapping as a JSON string, or a bare string taken as a regular expression.
        """
        if isinstance(raw, Pattern):
            return raw
        if isinstance(raw, str):
            if raw.lstrip().startswith("{"):
                try:
                    raw = json.loads(raw)
                except json.JSONDecodeError:
                    return cls.regex(raw)
            else:
                return cls.regex(raw)
        if not isinstance(raw, dict):
            raise PatternError(f"Pattern must be a string or a mapping, got {type(raw).__name__}")

        kind = str(raw.get("type", "")).strip()
        if kind not in PATTERN_TYPES:
            raise PatternError(f"Unknown pattern type {kind!r}")

        value = raw.get("value")
        if kind == "NonEmpty":
            return cls(type=kind)
        if kind == "Regex":
            if not isinstance(value, str):
                raise PatternError("Regex pattern needs a string value")
            return cls.regex(value)
        if kind in ("MinLength", "MaxLength"):
            return cls(type=kind, value=_as_count(value, kind))
        if kind == "LengthRange":
            lo = raw.get("min")
            hi = raw.get("max")
            if lo is None and hi is None:
                raise PatternError("LengthRange pattern needs min and/or max")
            return cls(
                type=kind,
                minimum=_as_count(lo, "LengthRange min") if lo is not None else None,
                maximum=_as_count(hi, "LengthRange max") if hi is not None else None,
            )
        if kind == "OneOf":
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise PatternError("OneOf pattern needs a list of strings")
            return cls(type=kind, value=tuple(value))
        if not isinstance(value, str):
            raise PatternError(f"{kind} pattern needs a string value")
        return cls(type=kind, value=value)

    @classmethod
    def regex(cls, expr: str) -> Pattern:
        compile_regex(expr)
        return cls(type="Regex", value=expr)

    def describe(self) -> str:
        if self.type == "NonEmpty":
            return "NonEmpty"
        if self.type == "LengthRange":
            return f"LengthRange({self.minimum}, {self.maximum})"
        if self.type == "OneOf":
            return f"OneOf({', '.join(self.value)})"
        return f"{self.type}({self.value})"


def _as_count(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise PatternError(f"{what} needs an integer, got {value!r}")
    try:
        n = int(value)
    except (TypeError, ValueError) as e:
        raise PatternError(f"{what} needs an integer, got {value!r}") from e
    if n < 0:
        raise PatternError(f"{what} must not be negative")
    return n


@lru_cache(maxsize=512)
def _compiled(expr: str) -> re.Pattern[str]:
    return re.compile(expr)


def compile_regex(expr: str) -> re.Pattern[str]:
    """Compile `expr` through the shared memo.

    Raises:
        PatternError: the expression does not compile.
    """
    try:
        return _compiled(expr)
    except re.error as e:
        raise PatternError(f"Invalid regular expression {expr!r}: {e}") from e


def pattern_matches(pattern: Pattern, text: str) -> bool:
    kind = pattern.type
    if kind == "Regex":
        return compile_regex(pattern.value).search(text) is not None
    if kind == "MinLength":
        return len(text) >= pattern.value
    if kind == "MaxLength":
        return len(text) <= pattern.value
    if kind == "LengthRange":
        n = len(text)
        if pattern.minimum is not None and n < pattern.minimum:
            return False
        return pattern.maximum is None or n <= pattern.maximum
    if kind == "NonEmpty":
        return bool(text.strip())
    if kind == "Exact":
        return text == pattern.value
    if kind == "OneOf":
        return text in pattern.value
    if kind == "Contains":
        return pattern.value in text
    if kind == "StartsWith":
        return text.startswith(pattern.value)
    if kind == "EndsWith":
        return text.endswith(pattern.value)
    raise PatternError(f"Unknown pattern type {kind!r}")


def check_mode_option(raw: Any) -> str:
    """Validate a pattern check mode (default `normal`)."""
    mode = "normal" if raw is None else str(raw).strip()
    if mode not in CHECK_MODES:
        raise PatternError(f"Unknown check_mode {mode!r}; expected one of {', '.join(CHECK_MODES)}")
    return mode


def should_report(check_mode: str, matched: bool) -> bool:
    """Whether a pattern outcome is a violation under `check_mode`.

    `normal` and `ensure_nonexistence` report a match; `ensure_existence`
    reports the absence of one.
    """
    if check_mode in ("normal", "ensure_nonexistence"):
        return matched
    if check_mode == "ensure_existence":
        return not matched
    raise PatternError(f"Unknown check_mode {check_mode!r}")

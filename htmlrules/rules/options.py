"""Lazy coercion of free-form rule options.

Each evaluator reads only the keys it needs, when the rule is evaluated.
A missing or malformed value raises `RuleConfigError`, which the engine
turns into a finding for that rule alone. Structured values may be given
natively (TOML/YAML tables and arrays) or as JSON strings.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..errors import RuleConfigError
from .patterns import Pattern

_MISSING = object()


def _get(options: Mapping[str, Any], key: str, default: Any) -> Any:
    if key in options and options[key] is not None:
        return options[key]
    if default is _MISSING:
        raise RuleConfigError(f"Missing required option {key!r}")
    return default


def opt_str(options: Mapping[str, Any], key: str, default: Any = _MISSING) -> str:
    value = _get(options, key, default)
    if value is None:
        return value
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise RuleConfigError(f"Option {key!r} must be a string, got {value!r}")
    return str(value).strip()


def opt_int(options: Mapping[str, Any], key: str, default: Any = _MISSING) -> int | None:
    value = _get(options, key, default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise RuleConfigError(f"Option {key!r} must be an integer, got {value!r}")
    try:
        return int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise RuleConfigError(f"Option {key!r} must be an integer, got {value!r}") from e


def opt_float(options: Mapping[str, Any], key: str, default: Any = _MISSING) -> float | None:
    value = _get(options, key, default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise RuleConfigError(f"Option {key!r} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise RuleConfigError(f"Option {key!r} must be a number, got {value!r}") from e


def opt_bool(options: Mapping[str, Any], key: str, default: Any = _MISSING) -> bool:
    value = _get(options, key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise RuleConfigError(f"Option {key!r} must be a boolean, got {value!r}")


def opt_structured(options: Mapping[str, Any], key: str, default: Any = _MISSING) -> Any:
    """A list or mapping option, decoding JSON strings."""
    value = _get(options, key, default)
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise RuleConfigError(f"Option {key!r} is not valid JSON: {e}") from e
    return value


def pattern_option(options: Mapping[str, Any], key: str = "pattern") -> Pattern:
    """A `Pattern` from a mapping, a JSON string or a bare regular expression."""
    return Pattern.from_option(_get(options, key, _MISSING))


def opt_str_list(options: Mapping[str, Any], key: str, default: Any = _MISSING) -> list[str]:
    """A list of strings; a plain string is split on commas."""
    value = _get(options, key, default)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            value = opt_structured(options, key)
        else:
            return [part.strip() for part in text.split(",") if part.strip()]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise RuleConfigError(f"Option {key!r} must be a list of strings, got {value!r}")
    return [v.strip() for v in value if v.strip()]

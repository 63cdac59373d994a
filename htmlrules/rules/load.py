from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..errors import RulesetError
from .schema import SEVERITIES, Custom, LinterOptions, Rule, RuleSet, RuleType

RULESET_FILENAMES = ("htmlrules.toml", ".htmlrules.toml")

_RULE_TYPES = {t.value.lower(): t for t in RuleType}


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_rule_type(raw: Any) -> RuleType | Custom:
    """Accept `"AttributePresence"`, `{"Custom": "no-empty-links"}` or `"Custom:no-empty-links"`."""
    if isinstance(raw, dict) and len(raw) == 1:
        (key, value), = raw.items()
        if str(key).strip().lower() == "custom" and isinstance(value, str) and value.strip():
            return Custom(value.strip())
    if isinstance(raw, str):
        text = raw.strip()
        head, sep, tail = text.partition(":")
        if sep and head.strip().lower() == "custom" and tail.strip():
            return Custom(tail.strip())
        rule_type = _RULE_TYPES.get(text.lower())
        if rule_type is not None:
            return rule_type
    raise RulesetError(f"Unknown rule_type {raw!r}")


def parse_rule(raw: Any, index: int = 0) -> Rule:
    if not isinstance(raw, dict):
        raise RulesetError(f"Rule #{index} is not a mapping")

    name = str(raw.get("name", "")).strip()
    if not name:
        raise RulesetError(f"Rule #{index} has no name")
    if "rule_type" not in raw:
        raise RulesetError(f"Rule {name!r} has no rule_type")

    severity = str(raw.get("severity", "error")).strip().lower() or "error"
    if severity not in SEVERITIES:
        raise RulesetError(f"Rule {name!r} has unknown severity {raw.get('severity')!r}")

    message = raw.get("message")
    return Rule(
        name=name,
        rule_type=parse_rule_type(raw["rule_type"]),
        severity=severity,  # type: ignore[arg-type]
        selector=str(raw.get("selector", "") or ""),
        condition=str(raw.get("condition", "") or "").strip(),
        message=str(message) if isinstance(message, str) else "",
        options=_coerce_dict(raw.get("options")),
    )


def parse_options(raw: Any) -> LinterOptions:
    data = _coerce_dict(raw)

    max_line_length = data.get("max_line_length")
    if max_line_length is not None:
        try:
            max_line_length = int(max_line_length)
        except (TypeError, ValueError) as e:
            raise RulesetError(f"options.max_line_length must be an integer, got {max_line_length!r}") from e

    ignore = data.get("ignore_rules", [])
    if isinstance(ignore, str):
        ignore = [ignore]
    if not isinstance(ignore, list):
        raise RulesetError("options.ignore_rules must be a list of patterns")

    selectors = _coerce_dict(data.get("custom_selectors"))
    return LinterOptions(
        max_line_length=max_line_length,
        allow_inline_styles=bool(data.get("allow_inline_styles", False)),
        ignore_rules=tuple(str(p) for p in ignore),
        custom_selectors={str(k): str(v) for k, v in selectors.items()},
    )


def _read(path: Path) -> Any:
    import tomllib

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesetError(f"Cannot read ruleset {path}: {e}") from e

    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(text)
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return tomllib.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise RulesetError(f"Cannot parse ruleset {path}: {e}") from e


def load_ruleset(path: Path) -> RuleSet:
    """
    Load a ruleset from TOML, JSON or YAML (chosen by file suffix).

    The top level holds a `rules` list and an optional `options` table. A JSON
    file may also be a bare list of rules. Rule options are kept as written;
    each rule type validates its own options when it runs.
    """
    data = _read(path)
    if isinstance(data, list):
        data = {"rules": data}
    if not isinstance(data, dict):
        raise RulesetError(f"Ruleset {path} must be a table with a 'rules' list")

    raw_rules = data.get("rules", [])
    if not isinstance(raw_rules, list):
        raise RulesetError(f"'rules' in {path} must be a list")

    rules = [parse_rule(raw, i) for i, raw in enumerate(raw_rules)]
    return RuleSet(rules=rules, options=parse_options(data.get("options")), path=path)


def find_ruleset(start: Path) -> Path | None:
    """Walk up from `start` looking for a ruleset file."""
    current = start.resolve()
    while True:
        for name in RULESET_FILENAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        if current.parent == current:
            return None
        current = current.parent

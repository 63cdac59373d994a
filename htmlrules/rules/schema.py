from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Literal


Severity = Literal["error", "warning", "info"]

SEVERITIES: tuple[str, ...] = ("error", "warning", "info")


class RuleType(str, Enum):
    ELEMENT_PRESENCE = "ElementPresence"
    ATTRIBUTE_PRESENCE = "AttributePresence"
    ATTRIBUTE_VALUE = "AttributeValue"
    ELEMENT_ORDER = "ElementOrder"
    ELEMENT_CONTENT = "ElementContent"
    WHITE_SPACE = "WhiteSpace"
    NESTING = "Nesting"
    SEMANTICS = "Semantics"
    COMPOUND = "Compound"
    TEXT_CONTENT = "TextContent"
    DOCUMENT_STRUCTURE = "DocumentStructure"
    ELEMENT_COUNT = "ElementCount"
    ELEMENT_CASE = "ElementCase"
    ATTRIBUTE_QUOTES = "AttributeQuotes"


@dataclass(frozen=True)
class Custom:
    """Rule type naming a built-in predicate from the custom registry."""

    name: str

    def __str__(self) -> str:
        return f"Custom({self.name})"


@dataclass(frozen=True)
class Rule:
    name: str
    rule_type: RuleType | Custom
    severity: Severity = "error"
    selector: str = ""  # blank matches every element
    condition: str = ""
    message: str = ""
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LinterOptions:
    max_line_length: int | None = None
    allow_inline_styles: bool = False
    ignore_rules: tuple[str, ...] = ()  # regexes matched against rule names
    custom_selectors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleSet:
    rules: list[Rule] = field(default_factory=list)
    options: LinterOptions = field(default_factory=LinterOptions)
    path: Path | None = None


def rule_type_name(rule_type: RuleType | Custom) -> str:
    return rule_type.value if isinstance(rule_type, RuleType) else str(rule_type)

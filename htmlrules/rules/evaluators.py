"""Condition evaluators, one per rule type.

Rules are data, evaluation is code: `EVALUATORS` maps each `RuleType` to a
function taking the rule, the elements its selector matched (document
order) and the evaluation context. Options are read lazily; a missing or
malformed option raises `RuleConfigError` before any finding is produced.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable

from ..document.model import Document, Element
from ..errors import RuleConfigError
from .compound import check_compound
from .custom import CUSTOM_PREDICATES
from .findings import LintResult, annotated, detailed, document_finding, element_finding
from .options import opt_bool, opt_int, opt_str, opt_str_list, opt_structured, pattern_option
from .patterns import Pattern, check_mode_option, pattern_matches, should_report
from .schema import Custom, LinterOptions, Rule, RuleType, rule_type_name
from .selector import HEADING_TAGS, SelectorMatcher, compile_selector, select, select_within


@dataclass(frozen=True)
class EvaluationContext:
    document: Document
    options: LinterOptions
    matcher: SelectorMatcher


EvaluatorFn = Callable[[Rule, list[Element], EvaluationContext], list[LintResult]]


def _unknown_condition(rule: Rule) -> RuleConfigError:
    return RuleConfigError(f"Unknown condition {rule.condition!r} for {rule_type_name(rule.rule_type)} rule")


def evaluate_element_presence(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    if rule.condition == "required":
        return [] if elements else [document_finding(rule, rule.message)]
    if rule.condition == "forbidden":
        return [element_finding(rule, el, rule.message) for el in elements]
    if rule.condition == "semantic-alternative-available":
        results = []
        for el in elements:
            hint = _semantic_hint(el)
            if hint is not None:
                results.append(element_finding(rule, el, annotated(rule, hint)))
        return results
    raise _unknown_condition(rule)


# Class keywords that mark a generic container as standing in for a semantic element.
ALTERNATIVE_KEYWORDS = ("button", "navigation", "content", "header")


def _semantic_hint(element: Element) -> str | None:
    if element.tag not in ("div", "span"):
        return None
    role = element.attrs.get("role", "").strip()
    if role:
        return f"<{element.tag}> with role '{role}'"
    classes = element.attrs.get("class", "").lower()
    for keyword in ALTERNATIVE_KEYWORDS:
        if keyword in classes:
            return f"<{element.tag}> with class '{keyword}'"
    return None


PRESENCE_ALIASES = {
    "style-attribute": "style-forbidden",
    "alt-attribute": "alt-missing",
    "lang-attribute": "lang-missing",
}


def _duplicate_attributes(element: Element) -> list[str]:
    counts = Counter(attr.key for attr in element.raw_attributes)
    return [f"{name} ({count}×)" for name, count in counts.items() if count > 1]


def evaluate_attribute_presence(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    condition = rule.condition.strip()

    if condition == "duplicate-attributes":
        results = []
        for el in elements:
            dupes = _duplicate_attributes(el)
            if dupes:
                results.append(element_finding(rule, el, annotated(rule, f"duplicates: {', '.join(dupes)}")))
        return results

    condition = PRESENCE_ALIASES.get(condition, condition)

    attr, _, polarity = condition.rpartition("-")
    attr = attr.lower()
    if not attr or polarity not in ("missing", "forbidden"):
        raise _unknown_condition(rule)

    if polarity == "missing":
        return [element_finding(rule, el, rule.message) for el in elements if attr not in el.attrs]

    if attr == "style" and ctx.options.allow_inline_styles:
        return []
    return [element_finding(rule, el, rule.message) for el in elements if attr in el.attrs]


def _value_attributes(rule: Rule, ctx: EvaluationContext) -> list[str]:
    if rule.options.get("attribute") is not None:
        return [opt_str(rule.options, "attribute").lower()]
    if rule.options.get("attributes") is not None:
        names = [n.lower() for n in opt_str_list(rule.options, "attributes")]
        if not names:
            raise RuleConfigError("Option 'attributes' is empty")
        return names
    from_selector = ctx.matcher.attributes
    if len(from_selector) == 1:
        return list(from_selector)
    raise RuleConfigError(
        "AttributeValue rule needs an 'attribute' option"
        + (" (selector names several attributes)" if from_selector else "")
    )


def _unique_ids(rule: Rule, elements: list[Element]) -> list[LintResult]:
    attr = opt_str(rule.options, "attribute", "id").lower()
    seen: set[str] = set()
    results = []
    for el in elements:
        value = el.attrs.get(attr, "").strip()
        if not value:
            continue
        if value in seen:
            results.append(element_finding(rule, el, annotated(rule, f"duplicate {attr} '{value}'")))
        seen.add(value)
    return results


def _positive_numbers(rule: Rule, elements: list[Element]) -> list[LintResult]:
    attr = opt_str(rule.options, "attribute", "tabindex").lower()
    results = []
    for el in elements:
        try:
            n = int(el.attrs.get(attr, "").strip())
        except ValueError:
            continue
        if n > 0:
            results.append(element_finding(rule, el, annotated(rule, f"{attr}={n}")))
    return results


def evaluate_attribute_value(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    if rule.condition == "unique-id":
        return _unique_ids(rule, elements)
    if rule.condition == "positive-number":
        return _positive_numbers(rule, elements)

    names = _value_attributes(rule, ctx)
    pattern = pattern_option(rule.options)
    mode = check_mode_option(rule.options.get("check_mode"))

    results = []
    for el in elements:
        checked = list(el.attrs) if names == ["*"] else names
        # An element passes when any of its checked attributes matches.
        hits = [name for name in checked if name in el.attrs and pattern_matches(pattern, el.attrs[name])]
        if not should_report(mode, bool(hits)):
            continue
        if hits:
            note = f'{hits[0]}="{el.attrs[hits[0]]}"'
        elif not checked:
            note = "no attributes"
        elif len(checked) == 1:
            name = checked[0]
            note = f'{name}="{el.attrs[name]}"' if name in el.attrs else f"{name} is missing"
        else:
            note = f"no match in {', '.join(checked)}"
        results.append(element_finding(rule, el, annotated(rule, note)))
    return results


def _rank(element: Element, ctx: EvaluationContext) -> int | None:
    if ctx.matcher.only_headings:
        return HEADING_TAGS.index(element.tag) + 1 if element.tag in HEADING_TAGS else None
    idx = ctx.matcher.index_of(element)
    return None if idx is None else idx + 1


def evaluate_element_order(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    if rule.condition != "sequential-order":
        raise _unknown_condition(rule)

    results = []
    prev: tuple[Element, int] | None = None
    for el in elements:
        rank = _rank(el, ctx)
        if rank is None:
            continue
        if prev is not None and rank > prev[1] + 1:
            results.append(element_finding(rule, el, annotated(rule, f"{prev[0].tag} -> {el.tag}")))
        prev = (el, rank)
    return results


@dataclass(frozen=True)
class MetaTagRequirement:
    key: str  # "name" or "property"
    value: str
    pattern: Pattern
    required: bool = True

    @classmethod
    def from_option(cls, raw: object) -> MetaTagRequirement:
        if not isinstance(raw, dict):
            raise RuleConfigError(f"Meta tag requirement must be a mapping, got {raw!r}")
        if raw.get("name"):
            key, value = "name", str(raw["name"])
        elif raw.get("property"):
            key, value = "property", str(raw["property"])
        else:
            raise RuleConfigError("Meta tag requirement needs 'name' or 'property'")
        return cls(key=key, value=value, pattern=pattern_option(raw), required=opt_bool(raw, "required", True))

    def label(self) -> str:
        return f"{self.key}='{self.value}'"


def _check_meta_tags(
    rule: Rule, scope: Element | None, metas: list[Element], requirements: list[MetaTagRequirement]
) -> list[LintResult]:
    results = []
    for req in requirements:
        found = [m for m in metas if m.attrs.get(req.key) == req.value]
        if not found:
            if req.required:
                note = f"missing meta tag {req.label()}"
                if scope is None:
                    results.append(document_finding(rule, detailed(rule, note)))
                else:
                    results.append(element_finding(rule, scope, detailed(rule, note)))
            continue
        if not any(pattern_matches(req.pattern, m.attrs.get("content", "")) for m in found):
            note = f"meta tag {req.label()} content does not satisfy {req.pattern.describe()}"
            results.append(element_finding(rule, found[0], detailed(rule, note)))
    return results


def evaluate_element_content(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    if rule.condition == "meta-tags":
        raw = opt_structured(rule.options, "required_meta_tags")
        if not isinstance(raw, list):
            raise RuleConfigError("Option 'required_meta_tags' must be a list")
        requirements = [MetaTagRequirement.from_option(item) for item in raw]

        meta = compile_selector("meta")
        scopes = elements if rule.selector.strip() else select(ctx.document, compile_selector("head"))
        if not scopes:
            return _check_meta_tags(rule, None, select(ctx.document, meta), requirements)
        results = []
        for scope in scopes:
            metas = select_within(scope, meta)
            results.extend(_check_meta_tags(rule, scope, metas, requirements))
        return results

    if rule.condition == "empty-or-default":
        return [
            element_finding(rule, el, rule.message)
            for el in elements
            if el.text.strip() in ("", "Untitled", "Default")
        ]

    raise _unknown_condition(rule)


def evaluate_whitespace(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    lines = ctx.document.lines

    if rule.condition == "line-length":
        limit = opt_int(rule.options, "max_line_length", ctx.options.max_line_length)
        if limit is None:
            raise RuleConfigError("Missing required option 'max_line_length'")
        return [
            document_finding(
                rule, annotated(rule, f"{len(line)} > {limit} characters"), line=i, column=len(line) + 1, source=line
            )
            for i, line in enumerate(lines, start=1)
            if len(line) > limit
        ]

    if rule.condition == "trailing-whitespace":
        results = []
        for i, line in enumerate(lines, start=1):
            stripped = line.rstrip()
            if stripped != line:
                results.append(document_finding(rule, rule.message, line=i, column=len(stripped) + 1, source=line))
        return results

    raise _unknown_condition(rule)


def evaluate_nesting(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    if rule.condition != "parent-label-or-for":
        raise _unknown_condition(rule)
    parent = opt_str(rule.options, "parent", "label").lower()

    labelled = [(el, el.attrs["for"].strip()) for el in ctx.document.elements if "for" in el.attrs]

    def associated(el: Element) -> bool:
        if any(a.tag == parent for a in el.ancestors()):
            return True
        own_id = el.attrs.get("id", "").strip()
        return bool(own_id) and any(other is not el and ref == own_id for other, ref in labelled)

    return [element_finding(rule, el, rule.message) for el in elements if not associated(el)]


# Class keywords and the semantic element they suggest; first hit wins.
SEMANTIC_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("header", "header"),
    ("footer", "footer"),
    ("navigation", "nav"),
    ("nav", "nav"),
    ("main", "main"),
    ("sidebar", "aside"),
    ("aside", "aside"),
    ("article", "article"),
    ("section", "section"),
)

# Landmark tag names looked for in any attribute value of a div or span.
LANDMARK_KEYWORDS = ("header", "footer", "nav", "main", "aside", "article")

# Presentational or role-emulating markup and the element to use instead.
SEMANTIC_REPLACEMENTS: tuple[tuple[SelectorMatcher, str], ...] = tuple(
    (compile_selector(selector), replacement)
    for selector, replacement in (
        ("b", "strong"),
        ("i", "em"),
        ("div[role=button]", "button"),
        ("div[role=navigation]", "nav"),
        ("div[role=main]", "main"),
    )
)


def evaluate_semantics(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    generic = [el for el in elements if el.tag in ("div", "span")]

    if rule.condition == "semantic-structure":
        results = []
        for el in generic:
            classes = el.attrs.get("class", "").lower()
            for keyword, tag in SEMANTIC_KEYWORDS:
                if keyword in classes:
                    results.append(element_finding(rule, el, annotated(rule, f"use <{tag}> instead of <{el.tag}>")))
                    break
        return results

    if rule.condition == "semantic-landmarks":
        results = []
        for el in generic:
            values = [v.lower() for v in el.attrs.values()]
            keyword = next((k for k in LANDMARK_KEYWORDS if any(k in v for v in values)), None)
            if keyword is not None:
                results.append(element_finding(rule, el, annotated(rule, f"use <{keyword}> instead of <{el.tag}>")))
        return results

    if rule.condition == "semantic-elements":
        results = []
        for el in elements:
            for matcher, replacement in SEMANTIC_REPLACEMENTS:
                if matcher.matches(el):
                    shown = matcher.text if "[" in matcher.text else f"<{matcher.text}>"
                    note = f"use <{replacement}> instead of {shown}"
                    results.append(element_finding(rule, el, annotated(rule, note)))
                    break
        return results

    if rule.condition == "semantic-buttons":
        return [
            element_finding(rule, el, annotated(rule, f"use <button> instead of <{el.tag}>"))
            for el in generic
            if "onclick" in el.attrs or el.attrs.get("role", "").strip().lower() == "button"
        ]

    if rule.condition == "semantic-tables":
        results = []
        for el in elements:
            if el.tag != "table":
                continue
            tags = {d.tag for d in el.iter_descendants()}
            missing = [label for tag, label in (("th", "headers (th)"), ("caption", "caption")) if tag not in tags]
            if missing:
                note = f"missing {' and '.join(missing)}"
                results.append(element_finding(rule, el, annotated(rule, note)))
        return results

    raise _unknown_condition(rule)


def evaluate_text_content(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    pattern = pattern_option(rule.options)
    mode = check_mode_option(rule.options.get("check_mode"))
    return [
        element_finding(rule, el, rule.message)
        for el in elements
        if should_report(mode, pattern_matches(pattern, el.text.strip()))
    ]


def evaluate_document_structure(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    if rule.condition != "doctype-present":
        raise _unknown_condition(rule)
    return [] if ctx.document.has_doctype else [document_finding(rule, rule.message)]


def evaluate_element_count(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    maximum = opt_int(rule.options, "max", None)
    minimum = opt_int(rule.options, "min", None)
    if maximum is None and minimum is None:
        raise RuleConfigError("ElementCount rule needs 'max' and/or 'min'")
    for key, bound in (("max", maximum), ("min", minimum)):
        if bound is not None and bound < 0:
            raise RuleConfigError(f"Option '{key}' must not be negative, got {bound}")

    found = len(elements)
    results = []
    if maximum is not None and found > maximum:
        results.append(element_finding(rule, elements[maximum], annotated(rule, f"found {found}, maximum {maximum}")))
    if minimum is not None and found < minimum:
        results.append(document_finding(rule, annotated(rule, f"found {found}, minimum {minimum}")))
    return results


def evaluate_element_case(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    style = opt_str(rule.options, "style", "lowercase").lower()
    if style not in ("lowercase", "uppercase"):
        raise RuleConfigError(f"Option 'style' must be 'lowercase' or 'uppercase', got {style!r}")
    convert = str.lower if style == "lowercase" else str.upper

    results = []
    for el in elements:
        notes = []
        if el.raw_tag != convert(el.raw_tag):
            notes.append(f" (element: {el.raw_tag})")
        attrs = list(dict.fromkeys(a.name for a in el.raw_attributes if a.name != convert(a.name)))
        if attrs:
            notes.append(f" (attributes: {', '.join(attrs)})")
        if notes:
            results.append(element_finding(rule, el, (rule.message + "".join(notes)).strip()))
    return results


def evaluate_attribute_quotes(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    style = opt_str(rule.options, "style", "double").lower()
    if style not in ("double", "single"):
        raise RuleConfigError(f"Option 'style' must be 'double' or 'single', got {style!r}")
    expected = '"' if style == "double" else "'"

    return [
        element_finding(rule, el, annotated(rule, f"attribute '{attr.name}', expected {style} quotes"))
        for el in elements
        for attr in el.raw_attributes
        if attr.value is not None and attr.quote != expected
    ]


def evaluate_compound(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    return check_compound(rule, elements, ctx.document)


def evaluate_custom(rule: Rule, elements: list[Element], ctx: EvaluationContext) -> list[LintResult]:
    name = rule_type_name(rule.rule_type)
    fn = CUSTOM_PREDICATES.get(rule.rule_type.name) if isinstance(rule.rule_type, Custom) else None
    if fn is None:
        raise RuleConfigError(f"Unknown custom rule {name!r}")

    results = []
    for el in elements:
        detail = fn(el)
        if detail is not None:
            results.append(element_finding(rule, el, detailed(rule, detail)))
    return results


EVALUATORS: dict[RuleType, EvaluatorFn] = {
    RuleType.ELEMENT_PRESENCE: evaluate_element_presence,
    RuleType.ATTRIBUTE_PRESENCE: evaluate_attribute_presence,
    RuleType.ATTRIBUTE_VALUE: evaluate_attribute_value,
    RuleType.ELEMENT_ORDER: evaluate_element_order,
    RuleType.ELEMENT_CONTENT: evaluate_element_content,
    RuleType.WHITE_SPACE: evaluate_whitespace,
    RuleType.NESTING: evaluate_nesting,
    RuleType.SEMANTICS: evaluate_semantics,
    RuleType.COMPOUND: evaluate_compound,
    RuleType.TEXT_CONTENT: evaluate_text_content,
    RuleType.DOCUMENT_STRUCTURE: evaluate_document_structure,
    RuleType.ELEMENT_COUNT: evaluate_element_count,
    RuleType.ELEMENT_CASE: evaluate_element_case,
    RuleType.ATTRIBUTE_QUOTES: evaluate_attribute_quotes,
}


def evaluator_for(rule: Rule) -> EvaluatorFn:
    if isinstance(rule.rule_type, Custom):
        return evaluate_custom
    return EVALUATORS[rule.rule_type]

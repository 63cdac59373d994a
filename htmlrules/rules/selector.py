"""Restricted selector grammar.

A selector is a comma-separated list of alternatives. Each alternative is a
tag name or `*` (an omitted tag means `*`), optionally followed by a single
bracketed predicate: `[attr]` or `[attr=value]`, the value optionally quoted.
There are no combinators or pseudo-classes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..document.model import Document, Element
from ..errors import SelectorError

_TAG_RE = re.compile(r"[A-Za-z][A-Za-z0-9-]*\Z")
_ALTERNATIVE_RE = re.compile(
    r"""
    (?P<tag>[^\s\[\]]*)
    \s*
    (?:
        \[\s*
        (?P<attr>[^\s=\[\]"']+)
        \s*
        (?:=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s\[\]"']+)))?
        \s*\]
    )?
    """,
    re.VERBOSE,
)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


@dataclass(frozen=True)
class Alternative:
    tag: str  # lowercase, "*" for any tag
    attribute: str | None = None
    value: str | None = None  # None means presence only

    def matches(self, element: Element) -> bool:
        if self.tag != "*" and element.tag != self.tag:
            return False
        if self.attribute is None:
            return True
        if self.attribute not in element.attrs:
            return False
        return self.value is None or element.attrs[self.attribute] == self.value


@dataclass(frozen=True)
class SelectorMatcher:
    text: str
    alternatives: tuple[Alternative, ...]

    def matches(self, element: Element) -> bool:
        return any(alt.matches(element) for alt in self.alternatives)

    def index_of(self, element: Element) -> int | None:
        """Position of the first alternative matching `element`."""
        for i, alt in enumerate(self.alternatives):
            if alt.matches(element):
                return i
        return None

    @property
    def attributes(self) -> tuple[str, ...]:
        """Distinct predicate attribute names, in selector order."""
        seen: list[str] = []
        for alt in self.alternatives:
            if alt.attribute is not None and alt.attribute not in seen:
                seen.append(alt.attribute)
        return tuple(seen)

    @property
    def only_headings(self) -> bool:
        return all(alt.tag in HEADING_TAGS for alt in self.alternatives)


def _compile_alternative(part: str, selector: str) -> Alternative:
    text = part.strip()
    if not text:
        raise SelectorError(f"Invalid selector {selector!r}: empty alternative")
    if text.count("[") != text.count("]"):
        raise SelectorError(f"Invalid selector {selector!r}: unbalanced brackets in {text!r}")

    m = _ALTERNATIVE_RE.match(text)
    if m is None or m.end() != len(text):
        raise SelectorError(f"Invalid selector {selector!r}: unsupported syntax in {text!r}")

    tag = m.group("tag") or "*"
    if tag != "*" and not _TAG_RE.match(tag):
        raise SelectorError(f"Invalid selector {selector!r}: bad tag name {tag!r}")

    value = m.group("dq")
    if value is None:
        value = m.group("sq")
    if value is None:
        value = m.group("bare")

    attr = m.group("attr")
    return Alternative(tag=tag.lower(), attribute=attr.lower() if attr else None, value=value)


def _split_alternatives(selector: str) -> list[str]:
    """Split on commas outside brackets and quotes."""
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    depth = 0
    for ch in selector:
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'" and depth:
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "," and depth <= 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def compile_selector(selector: str) -> SelectorMatcher:
    """Compile `selector` into a reusable matcher.

    A blank selector matches every element.

    Raises:
        SelectorError: the selector is outside the supported grammar.
    """
    if not selector.strip():
        return SelectorMatcher(text=selector, alternatives=(Alternative(tag="*"),))
    alternatives = tuple(_compile_alternative(part, selector) for part in _split_alternatives(selector))
    return SelectorMatcher(text=selector, alternatives=alternatives)


def select(document: Document, matcher: SelectorMatcher) -> list[Element]:
    """Elements matching `matcher`, in document order."""
    return [el for el in document.elements if matcher.matches(el)]


def select_within(root: Element, matcher: SelectorMatcher) -> list[Element]:
    """Descendants of `root` matching `matcher`, in document order."""
    return [el for el in root.iter_descendants() if matcher.matches(el)]

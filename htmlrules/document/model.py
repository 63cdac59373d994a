"""Document tree consumed by the rule engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterator


@dataclass(frozen=True)
class RawAttribute:
    """An attribute exactly as written in the start tag."""

    name: str  # original casing
    value: str | None  # None for bare attributes such as `disabled`
    quote: str | None  # '"', "'" or None when unquoted

    @property
    def key(self) -> str:
        return self.name.lower()


@dataclass(eq=False)
class Element:
    """An element node.

    `tag` and the keys of `attrs` are lowercase. The raw view (`raw_tag`,
    `raw_attributes`, `source`) keeps the start tag as it appears in the
    document, including duplicate attributes.
    """

    tag: str
    attrs: dict[str, str]
    line: int
    column: int
    raw_tag: str = ""
    raw_attributes: list[RawAttribute] = field(default_factory=list)
    source: str = ""  # raw start tag text
    parent: Element | None = field(default=None, repr=False)
    children: list[Element | str] = field(default_factory=list, repr=False)

    @property
    def child_elements(self) -> list[Element]:
        return [c for c in self.children if isinstance(c, Element)]

    @property
    def text(self) -> str:
        """Concatenated text of all descendant text nodes."""
        parts: list[str] = []
        stack: list[Element | str] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, str):
                parts.append(node)
            else:
                stack.extend(reversed(node.children))
        return "".join(parts)

    def iter_descendants(self) -> Iterator[Element]:
        """Yield descendant elements in document order."""
        stack = list(reversed(self.child_elements))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.child_elements))

    def ancestors(self) -> Iterator[Element]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent


@dataclass(eq=False)
class Document:
    """A parsed HTML document plus the raw-source facts rules need."""

    source: str
    roots: list[Element] = field(default_factory=list)
    has_doctype: bool = False

    @cached_property
    def elements(self) -> list[Element]:
        """Every element in document order."""
        ordered: list[Element] = []
        for root in self.roots:
            ordered.append(root)
            ordered.extend(root.iter_descendants())
        return ordered

    @cached_property
    def lines(self) -> list[str]:
        """Raw lines as the parser numbers them: split on `\\n`, trailing `\\r` removed."""
        return [line.removesuffix("\r") for line in self.source.split("\n")]

    @cached_property
    def ids(self) -> set[str]:
        return {el.attrs["id"].strip() for el in self.elements if el.attrs.get("id", "").strip()}

    def attribute_values(self, name: str) -> list[str]:
        """Values of `name` across the document, in document order."""
        key = name.lower()
        return [el.attrs[key] for el in self.elements if key in el.attrs]

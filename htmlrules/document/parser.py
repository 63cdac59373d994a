"""Build a Document from HTML source.

The builder is a thin `HTMLParser` subclass: it records each element's
position and raw start tag, nests elements by their end tags and keeps text
nodes. It does not reproduce the full HTML5 tree construction algorithm; no
`html`, `head` or `body` elements are synthesized.
"""

from __future__ import annotations

import re
from html.parser import HTMLParser

from ..errors import DocumentError
from .model import Document, Element, RawAttribute

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# A start tag closes an open element of one of these tags first.
_IMPLIED_END: dict[str, frozenset[str]] = {
    "li": frozenset({"li"}),
    "p": frozenset({"p"}),
    "option": frozenset({"option"}),
    "tr": frozenset({"tr", "td", "th"}),
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
}

_RAW_TAG_RE = re.compile(r"<\s*([^\s/>]+)")
_RAW_ATTR_RE = re.compile(r"""([^\s"'>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+)))?""")


def scan_start_tag(raw: str) -> tuple[str, list[RawAttribute]]:
    """Split raw start tag text into its tag name and attributes as written."""
    match = _RAW_TAG_RE.match(raw)
    if not match:
        return "", []

    attributes: list[RawAttribute] = []
    for m in _RAW_ATTR_RE.finditer(raw, match.end()):
        name, double, single, bare = m.groups()
        if double is not None:
            attributes.append(RawAttribute(name=name, value=double, quote='"'))
        elif single is not None:
            attributes.append(RawAttribute(name=name, value=single, quote="'"))
        elif bare is not None:
            attributes.append(RawAttribute(name=name, value=bare, quote=None))
        else:
            attributes.append(RawAttribute(name=name, value=None, quote=None))
    return match.group(1), attributes


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.roots: list[Element] = []
        self.stack: list[Element] = []
        self.has_doctype = False

    def handle_decl(self, decl: str) -> None:
        if decl.strip().lower().startswith("doctype"):
            self.has_doctype = True

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._open(tag, attrs, void=tag in VOID_ELEMENTS)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._open(tag, attrs, void=True)

    def handle_endtag(self, tag: str) -> None:
        for i in range(len(self.stack) - 1, -1, -1):
            if self.stack[i].tag == tag:
                del self.stack[i:]
                return
        # Stray end tags do not affect the tree.

    def handle_data(self, data: str) -> None:
        if self.stack:
            self.stack[-1].children.append(data)

    def _open(self, tag: str, attrs: list[tuple[str, str | None]], *, void: bool) -> None:
        implied = _IMPLIED_END.get(tag)
        if implied and self.stack and self.stack[-1].tag in implied:
            self.stack.pop()

        line, offset = self.getpos()
        raw = self.get_starttag_text() or ""
        raw_tag, raw_attributes = scan_start_tag(raw)

        attributes: dict[str, str] = {}
        for name, value in attrs:
            # The first occurrence of a duplicated attribute wins.
            attributes.setdefault(name, value or "")

        parent = self.stack[-1] if self.stack else None
        element = Element(
            tag=tag,
            attrs=attributes,
            line=line,
            column=offset + 1,
            raw_tag=raw_tag or tag,
            raw_attributes=raw_attributes,
            source=raw,
            parent=parent,
        )
        if parent is None:
            self.roots.append(element)
        else:
            parent.children.append(element)

        if not void:
            self.stack.append(element)


def parse_html(source: str | bytes) -> Document:
    """Parse HTML text (or UTF-8 bytes) into a Document.

    Raises:
        DocumentError: the input is not text or cannot be tokenized.
    """
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentError(f"Document is not valid UTF-8: {e}") from e
    if not isinstance(source, str):
        raise DocumentError(f"Cannot lint an object of type {type(source).__name__}")

    builder = _TreeBuilder()
    try:
        builder.feed(source)
        builder.close()
    except AssertionError as e:
        # _markupbase reports malformed declarations this way
        raise DocumentError(f"HTML parse error: {e}") from e

    return Document(source=source, roots=builder.roots, has_doctype=builder.has_doctype)

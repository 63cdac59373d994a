"""Built-in predicates for `Custom(name)` rules.

Each predicate inspects one matched element and returns a detail message
when the element violates it, or None.
"""

from __future__ import annotations

from typing import Callable

from ..document.model import Element

CustomFn = Callable[[Element], "str | None"]


def _has_accessible_name(element: Element) -> bool:
    if element.text.strip():
        return True
    if element.attrs.get("aria-label", "").strip() or element.attrs.get("aria-labelledby", "").strip():
        return True
    # An image with alt text names its container.
    return any(el.tag == "img" and el.attrs.get("alt", "").strip() for el in element.iter_descendants())


def no_empty_links(element: Element) -> str | None:
    if _has_accessible_name(element):
        return None
    return "Link element has no content. Links should contain text or other content to describe their purpose"


def no_empty_headings(element: Element) -> str | None:
    if _has_accessible_name(element):
        return None
    return f"Heading element <{element.tag}> has no content. Headings should contain text to maintain document structure"


def no_empty_buttons(element: Element) -> str | None:
    if _has_accessible_name(element):
        return None
    return "Button element has no content. Buttons should have text or an aria-label describing their action"


CUSTOM_PREDICATES: dict[str, CustomFn] = {
    "no-empty-links": no_empty_links,
    "no-empty-headings": no_empty_headings,
    "no-empty-buttons": no_empty_buttons,
}

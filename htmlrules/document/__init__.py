"""Document model and the HTML tree builder."""

from .model import Document, Element, RawAttribute
from .parser import parse_html

__all__ = ["Document", "Element", "RawAttribute", "parse_html"]

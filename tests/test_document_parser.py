"""Tests for the HTML document builder."""

import pytest

from htmlrules.document import parse_html
from htmlrules.errors import DocumentError


def test_positions_are_one_based_at_the_start_tag():
    doc = parse_html('<html>\n  <body>\n    <img src="a.png" ALT=\'x\'>\n  </body>\n</html>\n')

    img = next(el for el in doc.elements if el.tag == "img")
    assert (img.line, img.column) == (3, 5)
    assert img.source == "<img src=\"a.png\" ALT='x'>"


def test_raw_view_keeps_casing_and_quotes():
    doc = parse_html("<IMG src=\"a.png\" ALT='x' hidden data-n=3>")

    img = doc.elements[0]
    assert img.tag == "img"
    assert img.raw_tag == "IMG"
    assert img.attrs == {"src": "a.png", "alt": "x", "hidden": "", "data-n": "3"}
    assert [(a.name, a.value, a.quote) for a in img.raw_attributes] == [
        ("src", "a.png", '"'),
        ("ALT", "x", "'"),
        ("hidden", None, None),
        ("data-n", "3", None),
    ]


def test_first_duplicate_attribute_wins():
    doc = parse_html('<a href="first" href="second">x</a>')

    link = doc.elements[0]
    assert link.attrs["href"] == "first"
    assert [a.key for a in link.raw_attributes] == ["href", "href"]


def test_void_elements_do_not_take_children():
    doc = parse_html("<p>one<br>two<img src='x.png'>three</p>")

    p = doc.elements[0]
    assert [el.tag for el in p.child_elements] == ["br", "img"]
    assert p.text == "onetwothree"
    assert all(not el.children for el in p.child_elements)


def test_implied_end_tags_close_siblings():
    doc = parse_html("<ul><li>a<li>b<li>c</ul>")

    ul = doc.elements[0]
    assert [el.tag for el in ul.child_elements] == ["li", "li", "li"]
    assert [el.text for el in ul.child_elements] == ["a", "b", "c"]


def test_stray_end_tags_are_ignored():
    doc = parse_html("<div></span><p>x</p></div><footer></footer>")

    div = doc.elements[0]
    assert [el.tag for el in div.child_elements] == ["p"]
    assert [el.tag for el in doc.roots] == ["div", "footer"]


def test_text_joins_descendants_and_decodes_entities():
    doc = parse_html("<p>Fish &amp; <b>chips</b></p>")

    assert doc.elements[0].text == "Fish & chips"


def test_doctype_is_recorded():
    assert parse_html("<!DOCTYPE html>\n<html></html>").has_doctype is True
    assert parse_html("<html></html>").has_doctype is False


def test_document_indexes():
    doc = parse_html('<div id="a"><span id=" b "></span><p id=""></p></div>\n<i title="t"></i>')

    assert [el.tag for el in doc.elements] == ["div", "span", "p", "i"]
    assert doc.ids == {"a", "b"}
    assert doc.attribute_values("ID") == ["a", " b ", ""]
    assert doc.lines == ['<div id="a"><span id=" b "></span><p id=""></p></div>', '<i title="t"></i>']


def test_ancestors_walk_to_the_root():
    doc = parse_html("<form><label><input></label></form>")

    field = next(el for el in doc.elements if el.tag == "input")
    assert [el.tag for el in field.ancestors()] == ["label", "form"]


def test_bytes_are_decoded_as_utf8():
    doc = parse_html("<p>café</p>".encode("utf-8"))

    assert doc.elements[0].text == "café"


def test_invalid_utf8_is_a_document_error():
    with pytest.raises(DocumentError):
        parse_html(b"<p>\xff\xfe</p>")


def test_non_text_input_is_a_document_error():
    with pytest.raises(DocumentError):
        parse_html(42)


def test_deeply_nested_document_is_walked_without_recursion():
    depth = 1200
    doc = parse_html("<div>" * depth + "<span>x</span>" + "</div>" * depth)

    assert len(doc.elements) == depth + 1
    assert doc.elements[-1].tag == "span"
    assert [el.tag for el in doc.roots[0].iter_descendants()][-1] == "span"


def test_lines_split_only_on_newlines():
    doc = parse_html("<p>a\x0cb</p>\r\n<b>bold</b> tail")

    assert doc.lines == ["<p>a\x0cb</p>", "<b>bold</b> tail"]
    assert doc.elements[1].line == 2

"""Tests for the linter engine."""

import pytest

from htmlrules.document import parse_html
from htmlrules.errors import DocumentError
from htmlrules.rules import HtmlLinter, LinterOptions, Rule, RuleType
from htmlrules.rules.schema import Custom

META_DESCRIPTION = '[{"name": "description", "pattern": {"type": "MinLength", "value": 50}}]'


def _meta_rule(make_rule):
    return make_rule(
        RuleType.ELEMENT_CONTENT,
        name="meta-description",
        selector="head",
        condition="meta-tags",
        message="Meta description is required",
        options={"required_meta_tags": META_DESCRIPTION},
    )


def test_image_without_alt(make_rule, lint):
    rule = make_rule(
        RuleType.ATTRIBUTE_PRESENCE,
        name="img-alt",
        selector="img",
        condition="alt-missing",
        message="Images must have alt attributes",
    )

    results = lint('<html><body><img src="test.jpg"></body></html>', rule)

    assert len(results) == 1
    result = results[0]
    assert result.rule == "img-alt"
    assert result.severity == "error"
    assert result.message == "Images must have alt attributes"
    assert result.location.element == "img"
    assert result.source == '<img src="test.jpg">'
    assert str(result) == "ERROR: [img-alt] 1:13 <img> - Images must have alt attributes"


def test_skipped_heading_level(make_rule, lint):
    rule = make_rule(
        RuleType.ELEMENT_ORDER,
        name="heading-order",
        selector="h1, h2, h3, h4, h5, h6",
        condition="sequential-order",
        severity="warning",
        message="Heading levels should not be skipped",
    )

    results = lint("<h1>Title</h1>\n<h3>Sub</h3>", rule)

    assert len(results) == 1
    assert results[0].location.element == "h3"
    assert results[0].location.line == 2
    assert results[0].severity == "warning"


def test_short_meta_description(make_rule, lint):
    rule = _meta_rule(make_rule)
    html = '<html><head><meta name="description" content="{}"></head><body></body></html>'

    results = lint(html.format("short"), rule)

    assert len(results) == 1
    assert results[0].location.element == "meta"
    assert "content does not satisfy MinLength(50)" in results[0].message
    assert lint(html.format("x" * 60), rule) == []


def test_results_follow_rule_order_and_are_deterministic(make_rule):
    rules = [
        make_rule(RuleType.DOCUMENT_STRUCTURE, name="doctype", condition="doctype-present"),
        make_rule(RuleType.ATTRIBUTE_PRESENCE, name="img-alt", selector="img", condition="alt-missing"),
        make_rule(RuleType.ELEMENT_PRESENCE, name="no-marquee", selector="marquee", condition="forbidden"),
    ]
    linter = HtmlLinter(rules)
    html = "<marquee>x</marquee><img src=a.png><img src=b.png>"

    first = linter.lint(html)

    assert [r.rule for r in first] == ["doctype", "img-alt", "img-alt", "no-marquee"]
    assert linter.lint(html) == first


def test_misconfigured_rules_do_not_affect_others(make_rule, lint):
    rules = [
        make_rule(RuleType.ELEMENT_PRESENCE, name="bad-selector", selector="div > p", condition="forbidden"),
        make_rule(RuleType.TEXT_CONTENT, name="bad-regex", selector="p", severity="info", options={"pattern": "("}),
        make_rule(Custom("does-not-exist"), name="bad-custom", selector="a"),
        make_rule(RuleType.ATTRIBUTE_PRESENCE, name="img-alt", selector="img", condition="alt-missing"),
    ]

    results = lint("<p>x</p><a>y</a><img>", *rules)

    assert [r.rule for r in results] == ["bad-selector", "bad-regex", "bad-custom", "img-alt"]
    for r in results[:3]:
        assert r.severity == "error"
        assert r.message.startswith("Invalid rule configuration:")
        assert (r.location.line, r.location.column, r.location.element) == (1, 1, "")
    assert results[3].message == "Rule violated"


def test_invalid_document_raises(make_rule):
    linter = HtmlLinter([make_rule(RuleType.DOCUMENT_STRUCTURE, condition="doctype-present")])

    with pytest.raises(DocumentError):
        linter.lint(b"\xff\xfe")


def test_lint_accepts_parsed_document(make_rule):
    linter = HtmlLinter([make_rule(RuleType.DOCUMENT_STRUCTURE, condition="doctype-present")])

    assert len(linter.lint(parse_html("<p></p>"))) == 1


def test_ignore_rules(make_rule, lint):
    rules = [
        make_rule(RuleType.ATTRIBUTE_PRESENCE, name="style-inline", condition="style-forbidden"),
        make_rule(RuleType.ATTRIBUTE_PRESENCE, name="img[alt", selector="img", condition="alt-missing"),
        make_rule(RuleType.DOCUMENT_STRUCTURE, name="doctype", condition="doctype-present"),
    ]
    options = LinterOptions(ignore_rules=("^style-", "img[alt"))

    results = lint('<p style="x"><img></p>', *rules, options=options)

    assert [r.rule for r in results] == ["doctype"]


def test_custom_selectors_are_expanded(make_rule, lint):
    rule = make_rule(RuleType.ATTRIBUTE_PRESENCE, selector="media", condition="alt-missing")
    options = LinterOptions(custom_selectors={"media": "img, area"})

    results = lint('<img src="a.png"><area href="/"><p></p>', rule, options=options)

    assert [r.location.element for r in results] == ["img", "area"]


def test_lint_many_keeps_input_order(make_rule, write_file):
    linter = HtmlLinter([make_rule(RuleType.ATTRIBUTE_PRESENCE, selector="img", condition="alt-missing")])
    paths = [
        write_file("c.html", "<img>"),
        write_file("a.html", "<img alt='a'>"),
        write_file("b.html", "<img><img>"),
    ]

    by_file = linter.lint_many(paths, jobs=3)

    assert list(by_file) == paths
    assert [len(results) for results in by_file.values()] == [1, 0, 2]
    assert by_file == linter.lint_many(paths, jobs=1)


def test_lint_file_missing_is_a_document_error(tmp_path):
    linter = HtmlLinter([Rule(name="doctype", rule_type=RuleType.DOCUMENT_STRUCTURE, condition="doctype-present")])

    with pytest.raises(DocumentError):
        linter.lint_file(tmp_path / "missing.html")


def test_deeply_nested_document_lints(make_rule, lint):
    rule = make_rule(RuleType.ELEMENT_PRESENCE, selector="span", condition="forbidden")
    depth = 1200

    results = lint("<div>" * depth + "<span>x</span>" + "</div>" * depth, rule)

    assert [r.location.element for r in results] == ["span"]


def test_negative_count_bound_does_not_stop_later_rules(make_rule, lint):
    rules = [
        make_rule(RuleType.ELEMENT_COUNT, name="bad-count", selector="h1", options={"max": -1}),
        make_rule(RuleType.DOCUMENT_STRUCTURE, name="doctype", condition="doctype-present"),
    ]

    results = lint("<p>no headings</p>", *rules)

    assert [r.rule for r in results] == ["bad-count", "doctype"]
    assert results[0].message.startswith("Invalid rule configuration:")

"""Tests for ruleset loading and discovery."""

from pathlib import Path

import pytest

from htmlrules.errors import RulesetError
from htmlrules.rules import Custom, HtmlLinter, RuleType, load_ruleset
from htmlrules.rules.load import find_ruleset, parse_rule_type


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_load_toml_ruleset(tmp_path: Path):
    path = tmp_path / "htmlrules.toml"
    _write(
        path,
        """
[options]
max_line_length = 100
allow_inline_styles = true
ignore_rules = ["^experimental-"]

[options.custom_selectors]
media = "img, video"

[[rules]]
name = "img-alt"
rule_type = "AttributePresence"
severity = "Warning"
selector = "img"
condition = "alt-missing"
message = "Images must have alt attributes"

[[rules]]
name = "empty-links"
rule_type = { Custom = "no-empty-links" }
selector = "a"

[[rules]]
name = "meta"
rule_type = "ElementContent"
condition = "meta-tags"

[[rules.options.required_meta_tags]]
name = "description"
pattern = { type = "MinLength", value = 50 }
""",
    )

    ruleset = load_ruleset(path)

    assert ruleset.path == path
    assert [r.name for r in ruleset.rules] == ["img-alt", "empty-links", "meta"]
    assert ruleset.rules[0].rule_type is RuleType.ATTRIBUTE_PRESENCE
    assert ruleset.rules[0].severity == "warning"
    assert ruleset.rules[1].rule_type == Custom("no-empty-links")
    assert ruleset.rules[1].severity == "error"
    assert ruleset.rules[2].options["required_meta_tags"][0]["name"] == "description"
    assert ruleset.options.max_line_length == 100
    assert ruleset.options.allow_inline_styles is True
    assert ruleset.options.ignore_rules == ("^experimental-",)
    assert ruleset.options.custom_selectors == {"media": "img, video"}


def test_load_json_rule_list(tmp_path: Path):
    path = tmp_path / "rules.json"
    _write(
        path,
        """[
  {
    "name": "meta-description",
    "rule_type": "ElementContent",
    "severity": "error",
    "selector": "head",
    "condition": "meta-tags",
    "message": "Meta description is required",
    "options": {
      "required_meta_tags": "[{\\"name\\": \\"description\\", \\"pattern\\": {\\"type\\": \\"MinLength\\", \\"value\\": 50}}]"
    }
  }
]""",
    )

    linter = HtmlLinter.from_file(path)
    results = linter.lint('<html><head><meta name="description" content="short"></head></html>')

    assert len(results) == 1
    assert results[0].rule == "meta-description"


def test_load_yaml_ruleset(tmp_path: Path):
    path = tmp_path / "rules.yaml"
    _write(
        path,
        """
options:
  max_line_length: 80
rules:
  - name: heading-order
    rule_type: ElementOrder
    severity: warning
    selector: "h1, h2, h3"
    condition: sequential-order
  - name: headings
    rule_type: "Custom:no-empty-headings"
    selector: "h1, h2"
""",
    )

    ruleset = load_ruleset(path)

    assert [r.rule_type for r in ruleset.rules] == [RuleType.ELEMENT_ORDER, Custom("no-empty-headings")]
    assert ruleset.options.max_line_length == 80


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("AttributeValue", RuleType.ATTRIBUTE_VALUE),
        ("whitespace", RuleType.WHITE_SPACE),
        ({"Custom": "no-empty-buttons"}, Custom("no-empty-buttons")),
        ("Custom:no-empty-links", Custom("no-empty-links")),
    ],
)
def test_parse_rule_type(raw, expected):
    assert parse_rule_type(raw) == expected


@pytest.mark.parametrize(
    "body",
    [
        '[[rules]]\nname = "x"\nrule_type = "Sparkle"\n',
        '[[rules]]\nrule_type = "Nesting"\n',
        '[[rules]]\nname = "x"\n',
        '[[rules]]\nname = "x"\nrule_type = "Nesting"\nseverity = "fatal"\n',
        "rules = [\n",
        'rules = "img-alt"\n',
        '[options]\nmax_line_length = "wide"\n',
    ],
)
def test_invalid_rulesets_raise(tmp_path: Path, body: str):
    path = tmp_path / "htmlrules.toml"
    _write(path, body)

    with pytest.raises(RulesetError):
        load_ruleset(path)


def test_missing_ruleset_file_raises(tmp_path: Path):
    with pytest.raises(RulesetError):
        load_ruleset(tmp_path / "nope.toml")


def test_find_ruleset_walks_up(tmp_path: Path):
    nested = tmp_path / "site" / "pages"
    nested.mkdir(parents=True)
    _write(tmp_path / ".htmlrules.toml", "rules = []\n")

    assert find_ruleset(nested) == (tmp_path / ".htmlrules.toml").resolve()

    _write(tmp_path / "site" / "htmlrules.toml", "rules = []\n")
    assert find_ruleset(nested) == (tmp_path / "site" / "htmlrules.toml").resolve()

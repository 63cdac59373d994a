"""Tests for the lint and rules commands."""

import json
from pathlib import Path

from click.testing import CliRunner

from htmlrules.cli import cli
from htmlrules.commands.lint import collect_html_files, run_lint, run_rules
from htmlrules.rules import HtmlLinter, Rule, RuleSet, RuleType

RULES = [
    Rule(
        name="img-alt",
        rule_type=RuleType.ATTRIBUTE_PRESENCE,
        selector="img",
        condition="alt-missing",
        message="Images must have alt attributes",
    ),
    Rule(
        name="no-inline-style",
        rule_type=RuleType.ATTRIBUTE_PRESENCE,
        severity="warning",
        condition="style-forbidden",
        message="Avoid inline styles",
    ),
]

RULES_TOML = """
[[rules]]
name = "img-alt"
rule_type = "AttributePresence"
selector = "img"
condition = "alt-missing"
message = "Images must have alt attributes"
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_collect_html_files_expands_directories(tmp_path: Path):
    _write(tmp_path / "site" / "b.html", "")
    _write(tmp_path / "site" / "a.htm", "")
    _write(tmp_path / "site" / "style.css", "")
    single = _write(tmp_path / "index.html", "")

    files = collect_html_files([single, tmp_path / "site", single])

    assert files == [single, tmp_path / "site" / "a.htm", tmp_path / "site" / "b.html"]


def test_run_lint_json_output(tmp_path: Path, capsys):
    bad = _write(tmp_path / "bad.html", '<img src="a.png">\n<p style="x">hi</p>\n')
    good = _write(tmp_path / "good.html", '<img src="a.png" alt="A">\n')

    result = run_lint(HtmlLinter(RULES), [bad, good], output_json=True)

    assert result == 1
    captured = capsys.readouterr()
    output = json.loads(captured.out)
    assert output["summary"] == {"files": 2, "errors": 1, "warnings": 1, "info": 0}
    findings = output["files"][str(bad)]
    assert [f["rule"] for f in findings] == ["img-alt", "no-inline-style"]
    assert findings[0]["line"] == 1
    assert findings[1]["line"] == 2
    assert output["files"][str(good)] == []


def test_run_lint_fail_on_threshold(tmp_path: Path, capsys):
    page = _write(tmp_path / "page.html", '<p style="x">hi</p>\n')
    linter = HtmlLinter(RULES)

    assert run_lint(linter, [page]) == 0
    assert run_lint(linter, [page], fail_on="warning") == 1

    captured = capsys.readouterr()
    assert "no-inline-style" in captured.err
    assert "0 error(s), 1 warning(s)" in captured.err


def test_run_lint_without_files(tmp_path: Path, capsys):
    result = run_lint(HtmlLinter(RULES), [tmp_path])

    assert result == 0
    captured = capsys.readouterr()
    assert "No HTML files to lint." in captured.err


def test_run_rules_lists_rules(capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    result = run_rules(RuleSet(rules=RULES))

    assert result == 0
    captured = capsys.readouterr()
    assert "img-alt" in captured.out
    assert "AttributePresence" in captured.out


def test_run_rules_explain(capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    assert run_rules(RuleSet(rules=RULES), explain="no-inline-style") == 0
    captured = capsys.readouterr()
    assert "style-forbidden" in captured.out

    assert run_rules(RuleSet(rules=RULES), explain="nope") == 1
    captured = capsys.readouterr()
    assert "Unknown rule: nope" in captured.out


def test_cli_lint_exit_code(tmp_path: Path):
    rules = _write(tmp_path / "rules.toml", RULES_TOML)
    page = _write(tmp_path / "page.html", '<img src="a.png">')

    runner = CliRunner()
    result = runner.invoke(cli, ["--rules", str(rules), "lint", str(page)])

    assert result.exit_code == 1
    assert "img-alt" in result.output


def test_cli_ignore_option(tmp_path: Path):
    rules = _write(tmp_path / "rules.toml", RULES_TOML)
    page = _write(tmp_path / "page.html", '<img src="a.png">')

    runner = CliRunner()
    result = runner.invoke(cli, ["--rules", str(rules), "--ignore", "img-alt", "lint", str(page)])

    assert result.exit_code == 0


def test_cli_reports_missing_ruleset(tmp_path: Path):
    runner = CliRunner()
    with runner.isolated_filesystem(temp_dir=tmp_path):
        Path("page.html").write_text("<p></p>", encoding="utf-8")
        result = runner.invoke(cli, ["lint", "page.html"])

    assert result.exit_code == 1
    assert "Ruleset not found" in result.output

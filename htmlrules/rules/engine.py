from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from ..document.model import Document
from ..document.parser import parse_html
from ..errors import DocumentError, RuleConfigError
from .evaluators import EvaluationContext, evaluator_for
from .findings import LintResult, Location
from .schema import LinterOptions, Rule, RuleSet
from .selector import SelectorMatcher, compile_selector, select

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """A rule with its selector compiled once, at linter construction."""

    rule: Rule
    matcher: SelectorMatcher | None = None
    error: RuleConfigError | None = None


def config_error_result(rule: Rule, error: Exception) -> LintResult:
    return LintResult(
        rule=rule.name,
        severity="error",
        message=f"Invalid rule configuration: {error}",
        location=Location(line=1, column=1, element=""),
    )


def _ignore_matcher(patterns: Iterable[str]):
    compiled: list[re.Pattern[str]] = []
    literal: set[str] = set()
    for p in patterns:
        try:
            compiled.append(re.compile(p))
        except re.error:
            literal.add(p)

    def ignored(name: str) -> bool:
        return name in literal or any(r.search(name) for r in compiled)

    return ignored


class HtmlLinter:
    """Evaluate a fixed rule set against HTML documents.

    The linter is immutable after construction and may lint many documents,
    including from several threads at once.
    """

    def __init__(self, rules: Sequence[Rule], options: LinterOptions | None = None):
        self.options = options or LinterOptions()
        self.rules: tuple[Rule, ...] = tuple(rules)
        ignored = _ignore_matcher(self.options.ignore_rules)

        compiled: list[CompiledRule] = []
        for rule in self.rules:
            if ignored(rule.name):
                logger.debug("Ignoring rule %s", rule.name)
                continue
            selector = self.options.custom_selectors.get(rule.selector, rule.selector)
            try:
                compiled.append(CompiledRule(rule=rule, matcher=compile_selector(selector)))
            except RuleConfigError as e:
                logger.warning("Rule %s has an invalid selector: %s", rule.name, e)
                compiled.append(CompiledRule(rule=rule, error=e))
        self._compiled: tuple[CompiledRule, ...] = tuple(compiled)

    @classmethod
    def from_ruleset(cls, ruleset: RuleSet) -> HtmlLinter:
        return cls(ruleset.rules, ruleset.options)

    @classmethod
    def from_file(cls, path: Path) -> HtmlLinter:
        from .load import load_ruleset

        return cls.from_ruleset(load_ruleset(path))

    def lint(self, source: str | bytes | Document) -> list[LintResult]:
        """Lint one document and return findings in rule order.

        Raises:
            DocumentError: the document cannot be parsed.
        """
        document = source if isinstance(source, Document) else parse_html(source)

        results: list[LintResult] = []
        for compiled in self._compiled:
            rule = compiled.rule
            if compiled.error is not None:
                results.append(config_error_result(rule, compiled.error))
                continue

            ctx = EvaluationContext(document=document, options=self.options, matcher=compiled.matcher)
            elements = select(document, compiled.matcher)
            try:
                rule_results = evaluator_for(rule)(rule, elements, ctx)
            except RuleConfigError as e:
                logger.warning("Rule %s is misconfigured: %s", rule.name, e)
                results.append(config_error_result(rule, e))
                continue

            logger.debug("Rule %s: %d finding(s)", rule.name, len(rule_results))
            results.extend(rule_results)

        return results

    def lint_file(self, path: Path) -> list[LintResult]:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DocumentError(f"Cannot read {path}: {e}") from e
        return self.lint(data)

    def lint_many(self, paths: Sequence[Path], jobs: int = 1) -> dict[Path, list[LintResult]]:
        """Lint independent files, returning results keyed by path in input order."""
        if jobs <= 1 or len(paths) <= 1:
            return {p: self.lint_file(p) for p in paths}
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = [pool.submit(self.lint_file, p) for p in paths]
            return {p: f.result() for p, f in zip(paths, futures)}

"""
LSP server implementation for htmlrules.

Provides:
- Diagnostics from the active ruleset when an HTML file is opened or saved
- Ruleset discovery from the workspace root
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..errors import RulesetError
from ..rules.engine import HtmlLinter
from ..rules.load import find_ruleset
from .diagnostics import LintDiagnostic, lint_text

logger = logging.getLogger(__name__)

HTML_SUFFIXES = (".html", ".htm")

_SEVERITY = {
    "error": lsp.DiagnosticSeverity.Error,
    "warning": lsp.DiagnosticSeverity.Warning,
    "info": lsp.DiagnosticSeverity.Information,
}


class HtmlRulesLanguageServer(LanguageServer):
    """Language server for HTML files checked by htmlrules."""

    def __init__(self, ruleset_path: Path | None = None):
        super().__init__(name="htmlrules-lsp", version=__version__)
        self.ruleset_path: Path | None = None
        self.linter: HtmlLinter | None = None
        if ruleset_path:
            self.load_rules(ruleset_path)

    def load_rules(self, path: Path) -> None:
        """Build the linter from a ruleset file, keeping the old one on failure."""
        try:
            self.linter = HtmlLinter.from_file(path)
        except RulesetError as e:
            logger.warning("Failed to load ruleset %s: %s", path, e)
            return
        self.ruleset_path = path
        logger.info("Loaded %d rule(s) from %s", len(self.linter.rules), path)


def uri_to_path(uri: str) -> Path:
    """Convert a file URI to a Path."""
    parsed = urlparse(uri)
    # Handle Windows paths
    path = unquote(parsed.path)
    if path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]  # Remove leading slash for Windows paths
    return Path(path)


def to_lsp_diagnostic(diag: LintDiagnostic) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=diag.line, character=diag.column),
            end=lsp.Position(line=diag.line, character=diag.column + diag.length),
        ),
        message=diag.message,
        severity=_SEVERITY.get(diag.severity, lsp.DiagnosticSeverity.Warning),
        source="htmlrules",
        code=diag.rule_id,
        data={"rule_id": diag.rule_id},
    )


def create_server(ruleset_path: Path | None = None) -> HtmlRulesLanguageServer:
    """Create and configure the LSP server."""
    server = HtmlRulesLanguageServer(ruleset_path)

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        """Handle document open - run initial lint."""
        _validate_document(server, params.text_document.uri, params.text_document.text)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
        """Handle document save - re-run lint."""
        if params.text is not None:
            _validate_document(server, params.text_document.uri, params.text)
            return
        path = uri_to_path(params.text_document.uri)
        if path.exists():
            content = path.read_text(encoding="utf-8", errors="replace")
            _validate_document(server, params.text_document.uri, content)

    @server.feature(lsp.INITIALIZE)
    def initialize(params: lsp.InitializeParams) -> None:
        """Handle initialize - look for a ruleset in the workspace."""
        if server.linter is None and params.root_uri:
            found = find_ruleset(uri_to_path(params.root_uri))
            if found is not None:
                server.load_rules(found)

    return server


def _validate_document(server: HtmlRulesLanguageServer, uri: str, content: str) -> None:
    """Run lint on document and publish diagnostics."""
    path = uri_to_path(uri)

    # Only lint HTML files
    if path.suffix.lower() not in HTML_SUFFIXES:
        return

    if server.linter is None:
        found = find_ruleset(path.parent)
        if found is not None:
            server.load_rules(found)
    if server.linter is None:
        return

    diagnostics = [to_lsp_diagnostic(d) for d in lint_text(server.linter, content)]
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))


def start_server(ruleset_path: Path | None = None, transport: str = "stdio") -> None:
    """Start the LSP server.

    Args:
        ruleset_path: Ruleset file (discovered from the workspace when omitted)
        transport: Transport method ("stdio" or "tcp")
    """
    server = create_server(ruleset_path)

    if transport == "stdio":
        server.start_io()
    else:
        # TCP transport for debugging
        server.start_tcp("localhost", 2087)

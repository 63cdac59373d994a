"""
LSP server publishing htmlrules findings as editor diagnostics.

This module provides:
- LSP server for editor integration
- Diagnostics on open and save
"""

from .server import create_server, start_server

__all__ = ["create_server", "start_server"]

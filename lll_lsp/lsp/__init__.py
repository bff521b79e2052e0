"""
LSP server for the lll line-length linter.

This module provides:
- LSP server for VSCode and other editors
- Diagnostics for lines longer than the configured maximum
- Per-resource or global settings, depending on the client
"""

from .server import ServerConfig, create_server, start_server

__all__ = ["ServerConfig", "create_server", "start_server"]

"""
LSP server implementation for lll line-length linting.

Provides:
- Diagnostics for over-long lines on open and save
- Per-resource settings through workspace/configuration, or one global
  settings section for clients without that capability
- Re-validation of every open document when settings change
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from .checker import DEFAULT_EXECUTABLE, DEFAULT_TIMEOUT, CheckerInvoker
from .coordinator import DEFAULT_MAX_WORKERS, DocumentCoordinator
from .settings import SECTION, SettingsCache

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 2087


@dataclass(frozen=True)
class ServerConfig:
    """Server-side options, fixed for the lifetime of the process."""

    executable: str = DEFAULT_EXECUTABLE
    timeout: float | None = DEFAULT_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    clear_on_close: bool = True


class LllLanguageServer(LanguageServer):
    """Language server that reports lll findings as diagnostics."""

    def __init__(self, server_config: ServerConfig | None = None):
        super().__init__(name="lll-lsp", version=__version__)
        self.server_config = server_config or ServerConfig()
        self.dynamic_configuration = False

        # Per-resource mode is switched on during initialize if the client
        # can answer workspace/configuration.
        self.settings_cache = SettingsCache(self.fetch_configuration, per_resource=False)
        self.coordinator = DocumentCoordinator(
            self.settings_cache,
            CheckerInvoker(
                executable=self.server_config.executable,
                timeout=self.server_config.timeout,
            ),
            self.send_diagnostics,
            max_workers=self.server_config.max_workers,
            on_command=self.log_to_client,
            clear_on_close=self.server_config.clear_on_close,
        )

    async def fetch_configuration(self, uri: str) -> Any:
        """Ask the client for the ``lll`` section scoped to `uri`."""
        result = await self.workspace_configuration_async(
            lsp.ConfigurationParams(
                items=[lsp.ConfigurationItem(scope_uri=uri, section=SECTION)]
            )
        )
        return result[0] if result else None

    def send_diagnostics(self, uri: str, diagnostics: list[lsp.Diagnostic]) -> None:
        logger.debug(f"Publishing {len(diagnostics)} diagnostics for {uri}")
        self.text_document_publish_diagnostics(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def log_to_client(self, message: str) -> None:
        self.window_log_message(
            lsp.LogMessageParams(type=lsp.MessageType.Log, message=message)
        )

    def negotiate(self, capabilities: lsp.ClientCapabilities) -> None:
        """Pick the settings mode from the client's capabilities."""
        workspace = capabilities.workspace
        self.settings_cache.per_resource = bool(workspace and workspace.configuration)
        self.dynamic_configuration = bool(
            workspace
            and workspace.did_change_configuration
            and workspace.did_change_configuration.dynamic_registration
        )
        mode = "per-resource" if self.settings_cache.per_resource else "global"
        logger.info(f"Client settings mode: {mode}")


def create_server(server_config: ServerConfig | None = None) -> LllLanguageServer:
    """Create and configure the LSP server."""
    server = LllLanguageServer(server_config)

    @server.feature(lsp.INITIALIZE)
    def initialize(params: lsp.InitializeParams) -> None:
        """Handle initialize - detect how settings can be obtained."""
        server.negotiate(params.capabilities)

    @server.feature(lsp.INITIALIZED)
    async def initialized(params: lsp.InitializedParams) -> None:
        """Ask to be told about configuration changes."""
        if not server.dynamic_configuration:
            return
        try:
            await server.client_register_capability_async(
                lsp.RegistrationParams(
                    registrations=[
                        lsp.Registration(
                            id=str(uuid.uuid4()),
                            method=lsp.WORKSPACE_DID_CHANGE_CONFIGURATION,
                        )
                    ]
                )
            )
        except Exception as e:
            logger.warning(f"Failed to register for configuration changes: {e}")

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        """Handle document open - run initial lint."""
        server.coordinator.open(params.text_document.uri)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
        """Handle document save - re-run lint."""
        server.coordinator.save(params.text_document.uri)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
        """Handle document close - forget settings and pending results."""
        server.coordinator.close(params.text_document.uri)

    @server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
    def did_change_configuration(params: lsp.DidChangeConfigurationParams) -> None:
        """Handle settings change - re-lint everything that is open."""
        if not server.settings_cache.per_resource:
            settings = params.settings if isinstance(params.settings, dict) else {}
            server.settings_cache.update_global(settings.get(SECTION))
        server.coordinator.configuration_changed()

    @server.feature(lsp.SHUTDOWN)
    def shutdown(params: None) -> None:
        server.coordinator.shutdown()

    return server


def start_server(
    server_config: ServerConfig | None = None,
    transport: str = "stdio",
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Start the LSP server.

    Args:
        server_config: Checker executable, timeout and worker options
        transport: Transport method ("stdio" or "tcp")
        host: Interface to bind for the TCP transport
        port: Port to bind for the TCP transport
    """
    server = create_server(server_config)

    if transport == "stdio":
        server.start_io()
    else:
        # TCP transport for debugging
        server.start_tcp(host, port)

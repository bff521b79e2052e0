"""Tests for the pygls server wiring."""

from __future__ import annotations

import asyncio

import pytest
from lsprotocol import types as lsp

from lll_lsp.lsp.server import LllLanguageServer, ServerConfig, create_server
from lll_lsp.lsp.settings import DEFAULT_SETTINGS

URI = "file:///proj/a.go"


class CoordinatorStub:
    def __init__(self) -> None:
        self.events: list[tuple[str, ...]] = []

    def open(self, uri: str) -> None:
        self.events.append(("open", uri))

    def save(self, uri: str) -> None:
        self.events.append(("save", uri))

    def close(self, uri: str) -> None:
        self.events.append(("close", uri))

    def configuration_changed(self) -> None:
        self.events.append(("configuration_changed",))

    def shutdown(self) -> None:
        self.events.append(("shutdown",))


def _capabilities(configuration: bool, dynamic: bool = False) -> lsp.ClientCapabilities:
    return lsp.ClientCapabilities(
        workspace=lsp.WorkspaceClientCapabilities(
            configuration=configuration,
            did_change_configuration=lsp.DidChangeConfigurationClientCapabilities(
                dynamic_registration=dynamic
            ),
        )
    )


def _handler(server: LllLanguageServer, method: str):
    return server.protocol.fm.features[method]


@pytest.fixture
def server() -> LllLanguageServer:
    server = create_server(ServerConfig(executable="/opt/bin/lll", timeout=5.0))
    server.coordinator = CoordinatorStub()
    return server


def test_server_config_reaches_checker():
    server = create_server(ServerConfig(executable="/opt/bin/lll", timeout=5.0))
    assert server.coordinator.checker.executable == "/opt/bin/lll"
    assert server.coordinator.checker.timeout == 5.0
    assert server.coordinator.clear_on_close is True


def test_negotiate_per_resource_mode(server: LllLanguageServer):
    server.negotiate(_capabilities(configuration=True, dynamic=True))
    assert server.settings_cache.per_resource
    assert server.dynamic_configuration


def test_negotiate_global_mode(server: LllLanguageServer):
    server.negotiate(lsp.ClientCapabilities())
    assert not server.settings_cache.per_resource
    assert not server.dynamic_configuration

    server.negotiate(_capabilities(configuration=False))
    assert not server.settings_cache.per_resource


def test_lifecycle_notifications_reach_coordinator(server: LllLanguageServer):
    document = lsp.TextDocumentItem(uri=URI, language_id="go", version=1, text="package a\n")
    identifier = lsp.TextDocumentIdentifier(uri=URI)

    _handler(server, lsp.TEXT_DOCUMENT_DID_OPEN)(lsp.DidOpenTextDocumentParams(text_document=document))
    _handler(server, lsp.TEXT_DOCUMENT_DID_SAVE)(lsp.DidSaveTextDocumentParams(text_document=identifier))
    _handler(server, lsp.TEXT_DOCUMENT_DID_CLOSE)(lsp.DidCloseTextDocumentParams(text_document=identifier))

    assert server.coordinator.events == [("open", URI), ("save", URI), ("close", URI)]


def test_configuration_change_in_global_mode_updates_settings(server: LllLanguageServer):
    server.negotiate(lsp.ClientCapabilities())
    handler = _handler(server, lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)

    handler(lsp.DidChangeConfigurationParams(settings={"lll": {"maxLength": 100}}))
    assert server.settings_cache.global_settings.max_length == 100

    handler(lsp.DidChangeConfigurationParams(settings={"other": {}}))
    assert server.settings_cache.global_settings == DEFAULT_SETTINGS

    assert server.coordinator.events == [("configuration_changed",)] * 2


def test_configuration_change_in_per_resource_mode_ignores_payload(server: LllLanguageServer):
    server.negotiate(_capabilities(configuration=True))

    _handler(server, lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)(
        lsp.DidChangeConfigurationParams(settings={"lll": {"maxLength": 100}})
    )

    assert server.settings_cache.global_settings == DEFAULT_SETTINGS
    assert server.coordinator.events == [("configuration_changed",)]


def test_fetch_configuration_scopes_query(server: LllLanguageServer, monkeypatch):
    seen = []

    async def fake_configuration(params: lsp.ConfigurationParams):
        seen.append(params)
        return [{"maxLength": 120}]

    monkeypatch.setattr(server, "workspace_configuration_async", fake_configuration)

    assert asyncio.run(server.fetch_configuration(URI)) == {"maxLength": 120}
    (item,) = seen[0].items
    assert item.scope_uri == URI
    assert item.section == "lll"


def test_fetch_configuration_empty_answer(server: LllLanguageServer, monkeypatch):
    async def fake_configuration(params):
        return []

    monkeypatch.setattr(server, "workspace_configuration_async", fake_configuration)

    assert asyncio.run(server.fetch_configuration(URI)) is None


def test_send_diagnostics(server: LllLanguageServer, monkeypatch):
    sent = []
    monkeypatch.setattr(server, "text_document_publish_diagnostics", sent.append)

    server.send_diagnostics(URI, [])

    assert sent == [lsp.PublishDiagnosticsParams(uri=URI, diagnostics=[])]


def test_log_to_client(server: LllLanguageServer, monkeypatch):
    sent = []
    monkeypatch.setattr(server, "window_log_message", sent.append)

    server.log_to_client("lll -l 80 /proj/a.go")

    assert sent[0].type == lsp.MessageType.Log
    assert sent[0].message == "lll -l 80 /proj/a.go"

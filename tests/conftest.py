"""Pytest configuration and fixtures."""

from __future__ import annotations

import stat
import sys
import threading
from pathlib import Path
from typing import Any, Callable

import pytest
from lsprotocol import types as lsp

from lll_lsp.lsp.checker import CheckerInvoker


class FakeChecker:
    """Stands in for CheckerInvoker; records calls and can block or fail."""

    def __init__(
        self,
        outputs: list[str] | None = None,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ):
        self.outputs = outputs or [""]
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, int]] = []
        self.started = threading.Event()
        self._lock = threading.Lock()

    def command(self, file_path: str | Path, max_length: int) -> list[str]:
        return CheckerInvoker().command(file_path, max_length)

    def run(self, file_path: str | Path, max_length: int) -> str:
        with self._lock:
            index = len(self.calls)
            self.calls.append((str(file_path), max_length))
        self.started.set()
        # Only the first run blocks, so later runs can overtake it
        if index == 0 and self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        return self.outputs[min(index, len(self.outputs) - 1)]


class PublishRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, list[lsp.Diagnostic]]] = []

    def __call__(self, uri: str, diagnostics: list[lsp.Diagnostic]) -> None:
        self.calls.append((uri, list(diagnostics)))

    def for_uri(self, uri: str) -> list[list[lsp.Diagnostic]]:
        return [d for u, d in self.calls if u == uri]


class ConfigurationStub:
    """Async configuration source that counts queries per URI."""

    def __init__(self, sections: dict[str, Any] | None = None, default: Any = None):
        self.sections = sections or {}
        self.default = default
        self.queries: list[str] = []
        self.fail_next = 0

    async def __call__(self, uri: str) -> Any:
        self.queries.append(uri)
        if self.fail_next:
            self.fail_next -= 1
            raise RuntimeError("client did not answer")
        return self.sections.get(uri, self.default)

    def count(self, uri: str) -> int:
        return self.queries.count(uri)


@pytest.fixture
def publish() -> PublishRecorder:
    return PublishRecorder()


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write an executable Python script standing in for lll."""

    def _make(body: str, name: str = "fake-lll") -> Path:
        script = tmp_path / name
        script.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make

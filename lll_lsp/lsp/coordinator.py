"""
Document lifecycle coordination.

Tracks open documents and turns lifecycle and configuration events into
validation runs. Each run fetches settings, runs lll on a worker thread,
parses the output and publishes the result as a full replacement of the
document's diagnostics.

Runs for the same document may overlap. Every scheduled run takes a fresh
token, and only a run holding the document's current token may publish;
anything else was superseded (or the document closed) while it ran.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable
from urllib.parse import urlparse

from lsprotocol import types as lsp
from pygls import uris

from ..errors import LllError, ResourceUnresolvable
from .checker import CheckerInvoker
from .diagnostics import parse_output, to_lsp_diagnostics
from .settings import SettingsCache

logger = logging.getLogger(__name__)

Publisher = Callable[[str, list[lsp.Diagnostic]], None]

DEFAULT_MAX_WORKERS = 4


def uri_to_path(uri: str) -> str | None:
    """Convert a file URI to a local path; None for any other scheme."""
    if urlparse(uri).scheme != "file":
        return None
    return uris.to_fs_path(uri) or None


class ResourceState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    VALIDATING = "validating"
    IDLE = "idle"


@dataclass(frozen=True)
class DocumentHandle:
    """An open document and the local path lll is run on."""

    uri: str
    file_path: str | None

    @classmethod
    def from_uri(cls, uri: str) -> DocumentHandle:
        return cls(uri=uri, file_path=uri_to_path(uri))

    @property
    def lintable(self) -> bool:
        return self.file_path is not None


class DocumentCoordinator:
    """Owns open-document state and drives validation runs."""

    def __init__(
        self,
        settings: SettingsCache,
        checker: CheckerInvoker,
        publish: Publisher,
        *,
        executor: Executor | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        on_command: Callable[[str], None] | None = None,
        clear_on_close: bool = True,
    ):
        self.settings = settings
        self.checker = checker
        self._publish = publish
        self._on_command = on_command
        self.clear_on_close = clear_on_close

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="lll-check"
        )

        self._documents: dict[str, DocumentHandle] = {}
        self._states: dict[str, ResourceState] = {}
        self._tokens: dict[str, int] = {}
        self._counter = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    def state(self, uri: str) -> ResourceState:
        return self._states.get(uri, ResourceState.CLOSED)

    def open_uris(self) -> list[str]:
        return list(self._documents)

    def document(self, uri: str) -> DocumentHandle | None:
        return self._documents.get(uri)

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    def open(self, uri: str) -> asyncio.Task | None:
        """Start tracking a document and validate it."""
        handle = DocumentHandle.from_uri(uri)
        self._documents[uri] = handle
        self._states[uri] = ResourceState.OPEN
        return self._schedule(handle)

    def save(self, uri: str) -> asyncio.Task | None:
        """Re-validate an open document with its cached settings."""
        handle = self._documents.get(uri)
        if handle is None:
            logger.debug(f"Ignoring save of unopened document {uri}")
            return None
        return self._schedule(handle)

    def close(self, uri: str) -> None:
        """Stop tracking a document; in-flight runs for it never publish."""
        self.settings.invalidate(uri)
        self._tokens.pop(uri, None)
        self._states.pop(uri, None)
        handle = self._documents.pop(uri, None)
        if handle is not None and handle.lintable and self.clear_on_close:
            self._publish(uri, [])

    def configuration_changed(self) -> list[asyncio.Task]:
        """Drop cached settings and re-validate every open document."""
        self.settings.invalidate_all()
        tasks = []
        for handle in list(self._documents.values()):
            task = self._schedule(handle)
            if task is not None:
                tasks.append(task)
        return tasks

    # ------------------------------------------------------------------
    # Validation runs
    # ------------------------------------------------------------------

    def _schedule(self, handle: DocumentHandle) -> asyncio.Task | None:
        if not handle.lintable:
            logger.debug(f"{ResourceUnresolvable(handle.uri)}; not validating")
            return None

        token = next(self._counter)
        self._tokens[handle.uri] = token
        self._states[handle.uri] = ResourceState.VALIDATING

        task = asyncio.ensure_future(self._validate(handle, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, uri: str, token: int) -> bool:
        return self._tokens.get(uri) == token

    def _settle(self, uri: str, token: int) -> None:
        if self._is_current(uri, token):
            self._states[uri] = ResourceState.IDLE

    async def _validate(self, handle: DocumentHandle, token: int) -> None:
        uri = handle.uri
        try:
            settings = await self.settings.get(uri)
            if not self._is_current(uri, token):
                logger.debug(f"Run {token} for {uri} superseded before checking")
                return

            command = " ".join(self.checker.command(handle.file_path, settings.max_length))
            logger.info(command)
            if self._on_command is not None:
                self._on_command(command)

            loop = asyncio.get_running_loop()
            output = await loop.run_in_executor(
                self._executor, self.checker.run, handle.file_path, settings.max_length
            )
            diagnostics = to_lsp_diagnostics(
                parse_output(output, settings.max_length, settings.max_number_of_problems)
            )
        except LllError as e:
            logger.warning(f"Validation of {uri} failed: {e}")
            self._settle(uri, token)
            return
        except Exception:
            logger.exception(f"Unexpected error while validating {uri}")
            self._settle(uri, token)
            return

        if not self._is_current(uri, token):
            logger.debug(f"Discarding superseded result of run {token} for {uri}")
            return

        self._states[uri] = ResourceState.IDLE
        self._publish(uri, diagnostics)

    async def drain(self) -> None:
        """Wait until no validation run is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

"""
Per-resource settings for the lll checker.

Settings live in the client's ``lll`` configuration section. Clients that
support ``workspace/configuration`` are queried lazily per document URI and
the answer is cached until a configuration change or the document closes.
Other clients only push one global section with didChangeConfiguration.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ..errors import ConfigurationFetchError

logger = logging.getLogger(__name__)

SECTION = "lll"

DEFAULT_MAX_LENGTH = 80
DEFAULT_MAX_NUMBER_OF_PROBLEMS = 1000

# Largest LSP uinteger; positions past it cannot be sent to the client
MAX_POSITION = 2**31 - 1


def _positive_int(value: Any, default: int) -> int:
    # bool is an int subclass; `true` is not a line length
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if value < 1 or value > MAX_POSITION:
        return default
    return value


@dataclass(frozen=True)
class LllSettings:
    """Settings that drive one validation run."""

    max_length: int = DEFAULT_MAX_LENGTH
    max_number_of_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS

    @classmethod
    def from_dict(cls, data: Any) -> LllSettings:
        """Build settings from a client ``lll`` section.

        Missing or invalid keys fall back to their defaults.
        """
        if not isinstance(data, dict):
            return cls()
        return cls(
            max_length=_positive_int(data.get("maxLength"), DEFAULT_MAX_LENGTH),
            max_number_of_problems=_positive_int(
                data.get("maxNumberOfProblems"), DEFAULT_MAX_NUMBER_OF_PROBLEMS
            ),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "maxLength": self.max_length,
            "maxNumberOfProblems": self.max_number_of_problems,
        }


DEFAULT_SETTINGS = LllSettings()

ConfigurationFetcher = Callable[[str], Awaitable[Any]]


class SettingsCache:
    """
    Settings store keyed by document URI.

    ``fetch`` is called with a URI and must return the client's ``lll``
    section for it. Only one query per URI is ever in flight: concurrent
    ``get`` calls await the same task. Failed queries fall back to the
    defaults and are not cached.

    All methods must be called from the event loop thread.
    """

    def __init__(self, fetch: ConfigurationFetcher, per_resource: bool = True):
        self._fetch = fetch
        self.per_resource = per_resource
        self.global_settings = DEFAULT_SETTINGS
        self._entries: dict[str, asyncio.Future[LllSettings]] = {}

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, uri: str) -> LllSettings:
        """Return settings for `uri`, querying the client if not cached."""
        if not self.per_resource:
            return self.global_settings

        entry = self._entries.get(uri)
        if entry is None:
            entry = asyncio.ensure_future(self._query(uri))
            self._entries[uri] = entry

        try:
            # shield: a superseded waiter must not cancel the shared query
            return await asyncio.shield(entry)
        except ConfigurationFetchError as e:
            if self._entries.get(uri) is entry:
                del self._entries[uri]
                logger.warning(f"{e}; using default settings")
            return DEFAULT_SETTINGS

    async def _query(self, uri: str) -> LllSettings:
        try:
            section = await self._fetch(uri)
        except Exception as e:
            raise ConfigurationFetchError(uri, e) from e
        return LllSettings.from_dict(section)

    def invalidate(self, uri: str) -> None:
        """Forget the settings of one resource."""
        self._entries.pop(uri, None)

    def invalidate_all(self) -> None:
        """Forget all cached settings."""
        self._entries.clear()

    def update_global(self, section: Any) -> LllSettings:
        """Replace the global settings from a didChangeConfiguration payload."""
        self.global_settings = LllSettings.from_dict(section)
        return self.global_settings

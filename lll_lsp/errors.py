"""
Error types for lll-lsp.

Every failure below is contained within a single validation run: the
coordinator logs it and moves on, nothing is shown to the user as a
diagnostic.
"""

from __future__ import annotations


class LllError(Exception):
    """Base class for lll-lsp errors."""


class ResourceUnresolvable(LllError):
    """A document URI does not map to a local file path."""

    def __init__(self, uri: str):
        super().__init__(f"Cannot resolve {uri} to a local path")
        self.uri = uri


class ConfigurationFetchError(LllError):
    """The client failed to answer a workspace/configuration request."""

    def __init__(self, uri: str, cause: BaseException | None = None):
        message = f"Configuration query failed for {uri}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.uri = uri
        self.cause = cause


class CheckerExecutionError(LllError):
    """The checker could not be started, timed out, or exited abnormally."""

    def __init__(
        self,
        command: list[str],
        returncode: int | None = None,
        stderr: str = "",
        cause: BaseException | None = None,
    ):
        if cause is not None:
            reason = f"{type(cause).__name__}: {cause}"
        else:
            reason = f"exit status {returncode}"
        message = f"{' '.join(command)} failed ({reason})"
        if stderr.strip():
            message += f": {stderr.strip()[:500]}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        self.cause = cause

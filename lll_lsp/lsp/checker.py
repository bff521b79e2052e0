"""Run the lll executable and capture its output."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..errors import CheckerExecutionError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "lll"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class CheckerInvoker:
    """
    Blocking wrapper around ``lll -l <max_length> <file>``.

    Arguments are passed as a vector, never through a shell, so file names
    with spaces or shell metacharacters reach lll untouched.
    """

    executable: str = DEFAULT_EXECUTABLE
    timeout: float | None = DEFAULT_TIMEOUT

    def command(self, file_path: str | Path, max_length: int) -> list[str]:
        return [self.executable, "-l", str(max_length), str(file_path)]

    def run(self, file_path: str | Path, max_length: int) -> str:
        """Run the checker on one file and return its standard output.

        Raises:
            CheckerExecutionError: lll could not be started, timed out, or
                exited with a non-zero status.
        """
        cmd = self.command(file_path, max_length)
        logger.debug(f"Running {cmd}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CheckerExecutionError(cmd, cause=e) from e

        if result.returncode != 0:
            raise CheckerExecutionError(
                cmd, returncode=result.returncode, stderr=result.stderr or ""
            )
        return result.stdout or ""

"""
Convert lll output to LSP diagnostics.

lll prints one problem per line::

    /proj/a.go:12: line is 95 characters

Parsing is a pure function of the text so it can be tested without a
server or a subprocess.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from lsprotocol import types as lsp

from .settings import DEFAULT_MAX_NUMBER_OF_PROBLEMS, MAX_POSITION

SOURCE = "lll"

# Hard ceiling on output lines looked at per run, matched or not
MAX_LINES_PROCESSED = 100

# LSP positions are uintegers; this marks "up to the end of the line"
END_OF_LINE = MAX_POSITION

OUTPUT_PATTERN = re.compile(r"^([^\s]+):(\d+): (.*)$")


@dataclass
class LintDiagnostic:
    """A single over-length line reported by lll."""

    line: int  # zero-based
    column: int  # first excess column, i.e. the configured max length
    message: str
    severity: str = "warning"
    source: str = SOURCE


def parse_output(
    output: str,
    max_length: int,
    max_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS,
) -> list[LintDiagnostic]:
    """
    Parse raw lll output into diagnostics.

    Args:
        output: Standard output of one lll run
        max_length: Configured line length, used as the start column
        max_problems: Upper bound on returned diagnostics

    Returns:
        Diagnostics in output order. At most MAX_LINES_PROCESSED lines are
        examined and at most `max_problems` diagnostics are returned.
    """
    diagnostics: list[LintDiagnostic] = []
    if max_problems < 1:
        return diagnostics

    processed = 0

    for raw_line in output.split("\n"):
        processed += 1
        if processed > MAX_LINES_PROCESSED:
            break

        match = OUTPUT_PATTERN.match(raw_line.rstrip("\r"))
        if not match:
            continue

        line = int(match.group(2)) - 1
        if line < 0 or line > MAX_POSITION:
            continue

        diagnostics.append(
            LintDiagnostic(
                line=line,
                column=min(max_length, END_OF_LINE),
                message=match.group(3),
            )
        )
        if len(diagnostics) >= max_problems:
            break

    return diagnostics


def to_lsp_diagnostic(diag: LintDiagnostic) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=diag.line, character=diag.column),
            end=lsp.Position(line=diag.line, character=END_OF_LINE),
        ),
        message=diag.message,
        severity=lsp.DiagnosticSeverity.Warning,
        source=diag.source,
    )


def to_lsp_diagnostics(diagnostics: list[LintDiagnostic]) -> list[lsp.Diagnostic]:
    return [to_lsp_diagnostic(d) for d in diagnostics]

"""Check command - one validation run outside the editor."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import CheckerExecutionError
from ..lsp.checker import CheckerInvoker
from ..lsp.diagnostics import parse_output
from ..lsp.settings import LllSettings


def run_check(
    file_path: Path,
    *,
    settings: LllSettings | None = None,
    invoker: CheckerInvoker | None = None,
    output_json: bool = False,
) -> int:
    """
    Run lll on one file and print the diagnostics the server would publish.

    Returns:
        Exit code (0 = clean, 1 = over-long lines found, 2 = lll failed)
    """
    settings = settings or LllSettings()
    invoker = invoker or CheckerInvoker()
    console = Console()
    err_console = Console(stderr=True)

    try:
        output = invoker.run(file_path, settings.max_length)
    except CheckerExecutionError as e:
        err_console.print(f"[bold red]Checker failed:[/bold red] {e}", highlight=False)
        return 2

    diagnostics = parse_output(output, settings.max_length, settings.max_number_of_problems)

    if output_json:
        payload = {
            "file": str(file_path),
            "settings": settings.to_dict(),
            "diagnostics": [
                {
                    "line": d.line,
                    "column": d.column,
                    "message": d.message,
                    "severity": d.severity,
                    "source": d.source,
                }
                for d in diagnostics
            ],
        }
        print(json.dumps(payload, indent=2))
        return 1 if diagnostics else 0

    if not diagnostics:
        console.print(
            f"[green]✓[/green] {file_path}: no lines over {settings.max_length} characters",
            soft_wrap=True,
        )
        return 0

    table = Table(title=f"{file_path} (max {settings.max_length})")
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Column", justify="right", style="dim")
    table.add_column("Message")
    for d in diagnostics:
        # Displayed one-based, as editors do
        table.add_row(str(d.line + 1), str(d.column + 1), d.message)
    console.print(table)
    console.print(f"[yellow]{len(diagnostics)} warning(s)[/yellow]")
    return 1

"""Tasks command - list and run per-folder lll tasks."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..tasks import WorkspaceFolder, discover_tasks, run_task


def run_tasks_list(folders: list[WorkspaceFolder], *, output_json: bool = False) -> int:
    """
    Print the tasks discovered for the given folders.

    Returns the number of tasks.
    """
    tasks = discover_tasks(folders)

    if output_json:
        print(json.dumps([t.to_dict() for t in tasks], indent=2))
        return len(tasks)

    console = Console()
    if not tasks:
        console.print("[dim]No workspace folders, no tasks.[/dim]")
        return 0

    table = Table(title="lll tasks")
    table.add_column("Name", style="bold")
    table.add_column("Command")
    table.add_column("Folder", style="dim")
    table.add_column("Matcher", style="dim")
    for t in tasks:
        table.add_row(
            t.name,
            " ".join(t.execution.argv()) if t.execution else "",
            str(t.scope.path),
            ", ".join(t.problem_matchers),
        )
    console.print(table)
    return len(tasks)


def run_folder_task(folder: Path) -> int:
    """Run the lint task of one folder and return its exit code."""
    console = Console(stderr=True)
    (task,) = discover_tasks([WorkspaceFolder.from_path(folder)])
    console.print(f"[bold]{task.name}[/bold]", highlight=False)
    try:
        return run_task(task)
    except OSError as e:
        console.print(f"[bold red]Could not run {task.execution.command}:[/bold red] {e}", highlight=False)
        return 127

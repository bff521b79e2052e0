"""
Task discovery for lll.

Produces one lint task per workspace folder, equivalent to running
``lll . --skiplist node_modules`` inside the folder. Output is matched by the
editor with the ``$lll`` problem matcher. This module shares no state with
the language server.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .lsp.coordinator import uri_to_path

logger = logging.getLogger(__name__)

TASK_TYPE = "lll"
TASK_SOURCE = "lll"
PROBLEM_MATCHER = "$lll"

COMMAND = "lll"
ARGS = (".", "--skiplist", "node_modules")


@dataclass(frozen=True)
class LllTaskDefinition:
    """Definition as written in a tasks file (``{"type": "lll"}``)."""

    type: str = TASK_TYPE
    src: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.src is not None:
            result["src"] = self.src
        return result


@dataclass(frozen=True)
class WorkspaceFolder:
    name: str
    path: Path

    @classmethod
    def from_path(cls, path: Path, name: str | None = None) -> WorkspaceFolder:
        path = path.resolve()
        return cls(name=name or path.name, path=path)

    @classmethod
    def from_uri(cls, uri: str, name: str | None = None) -> WorkspaceFolder:
        local = uri_to_path(uri)
        if local is None:
            raise ValueError(f"Workspace folder {uri} is not a local folder")
        return cls.from_path(Path(local), name)


def parse_folder(spec: str) -> WorkspaceFolder:
    """Read a workspace folder given as a path or a ``file://`` URI."""
    if "://" in spec:
        folder = WorkspaceFolder.from_uri(spec)
    else:
        folder = WorkspaceFolder.from_path(Path(spec))
    if not folder.path.is_dir():
        raise ValueError(f"Directory '{folder.path}' does not exist.")
    return folder


@dataclass(frozen=True)
class ShellExecution:
    command: str
    args: tuple[str, ...]
    cwd: Path

    def argv(self) -> list[str]:
        return [self.command, *self.args]

    def to_dict(self) -> dict[str, Any]:
        return {"command": self.command, "args": list(self.args), "cwd": str(self.cwd)}


@dataclass
class LllTask:
    """A runnable lint task scoped to one workspace folder."""

    definition: LllTaskDefinition
    scope: WorkspaceFolder
    name: str
    source: str | None = None
    execution: ShellExecution | None = None
    problem_matchers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "definition": self.definition.to_dict(),
            "scope": {"name": self.scope.name, "path": str(self.scope.path)},
            "execution": self.execution.to_dict() if self.execution else None,
            "problemMatchers": list(self.problem_matchers),
        }


def task_name(folder: WorkspaceFolder) -> str:
    return f"lint {folder.name}"


def create_execution(definition: LllTaskDefinition, folder: WorkspaceFolder) -> ShellExecution:
    """Build the lll invocation for a folder."""
    return ShellExecution(command=COMMAND, args=ARGS, cwd=folder.path)


def discover_tasks(folders: Iterable[WorkspaceFolder] | None) -> list[LllTask]:
    """Create one lint task per workspace folder."""
    tasks: list[LllTask] = []
    if not folders:
        return tasks

    for folder in folders:
        definition = LllTaskDefinition()
        tasks.append(
            LllTask(
                definition=definition,
                scope=folder,
                name=task_name(folder),
                source=TASK_SOURCE,
                execution=create_execution(definition, folder),
                problem_matchers=[PROBLEM_MATCHER],
            )
        )
    return tasks


def resolve_task(task: LllTask) -> LllTask:
    """Complete a task that came from a tasks file with its execution."""
    task.execution = create_execution(task.definition, task.scope)
    task.source = TASK_SOURCE
    task.problem_matchers = [PROBLEM_MATCHER]
    return task


def run_task(task: LllTask) -> int:
    """Run a task in its folder and return lll's exit status.

    Output goes straight to this process's stdout/stderr.
    """
    if task.execution is None:
        resolve_task(task)
    execution = task.execution
    logger.info(f"Running {task.name}: {' '.join(execution.argv())} in {execution.cwd}")
    result = subprocess.run(execution.argv(), cwd=execution.cwd, check=False)
    return result.returncode

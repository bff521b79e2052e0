"""CLI entrypoint for lll-lsp."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .lsp.checker import DEFAULT_EXECUTABLE, DEFAULT_TIMEOUT

LOG_LEVELS = ["debug", "info", "warning", "error"]


def _configure_logging(level: str, log_file: Path | None = None) -> None:
    """Send logs to stderr (stdout carries the LSP stream) or to a file."""
    if log_file is not None:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)


@click.group()
@click.version_option(__version__, prog_name="lll-lsp")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default="warning",
    show_default=True,
    help="Logging verbosity",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file instead of stderr",
)
def cli(log_level: str, log_file: Path | None) -> None:
    """lll-lsp - Line length linting for editors.

    Runs the lll checker behind a language server, on single files, or as
    per-folder tasks.
    """
    _configure_logging(log_level, log_file)


executable_option = click.option(
    "--executable",
    default=DEFAULT_EXECUTABLE,
    show_default=True,
    help="lll executable to run",
)


# -----------------------------------------------------------------------------
# LSP server command
# -----------------------------------------------------------------------------


@cli.command("lsp")
@click.option(
    "--transport",
    type=click.Choice(["stdio", "tcp"]),
    default="stdio",
    show_default=True,
    help="Transport method (stdio for editors, tcp for debugging)",
)
@click.option("--host", default="localhost", show_default=True, help="TCP host")
@click.option("--port", type=int, default=2087, show_default=True, help="TCP port")
@executable_option
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds before a single lll run is abandoned",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=4,
    show_default=True,
    help="Concurrent lll runs",
)
@click.option(
    "--keep-on-close",
    is_flag=True,
    help="Leave diagnostics of closed documents visible",
)
def lsp(
    transport: str,
    host: str,
    port: int,
    executable: str,
    timeout: float,
    workers: int,
    keep_on_close: bool,
) -> None:
    """Start the LSP server.

    The server lints documents on open and save and re-lints every open
    document when the ``lll`` settings change.

    For VSCode, configure the extension to use:

        lll-lsp lsp --transport stdio

    For debugging with a TCP connection:

        lll-lsp --log-level debug lsp --transport tcp
    """
    from .lsp import ServerConfig, start_server

    config = ServerConfig(
        executable=executable,
        timeout=timeout,
        max_workers=workers,
        clear_on_close=not keep_on_close,
    )
    start_server(config, transport=transport, host=host, port=port)


# -----------------------------------------------------------------------------
# Check command
# -----------------------------------------------------------------------------


@cli.command()
@click.argument(
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--max-length",
    "-l",
    type=click.IntRange(min=1),
    default=80,
    show_default=True,
    help="Maximum line length",
)
@click.option(
    "--max-problems",
    type=click.IntRange(min=1),
    default=1000,
    show_default=True,
    help="Maximum number of reported problems",
)
@executable_option
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def check(
    file_path: Path,
    max_length: int,
    max_problems: int,
    executable: str,
    output_json: bool,
) -> None:
    """Lint one file and print its diagnostics.

    Exits 1 when over-long lines are found and 2 when lll fails.

    Examples:

        lll-lsp check main.go

        lll-lsp check -l 120 --json main.go
    """
    from .commands.check_cmd import run_check
    from .lsp.checker import CheckerInvoker
    from .lsp.settings import LllSettings

    exit_code = run_check(
        file_path,
        settings=LllSettings(max_length=max_length, max_number_of_problems=max_problems),
        invoker=CheckerInvoker(executable=executable),
        output_json=output_json,
    )
    sys.exit(exit_code)


# -----------------------------------------------------------------------------
# Task commands
# -----------------------------------------------------------------------------


@cli.group()
def tasks() -> None:
    """Per-folder lll tasks (``lll . --skiplist node_modules``)."""
    pass


@tasks.command("list")
@click.argument("folders", nargs=-1)
@click.option("--json", "output_json", is_flag=True, help="Output tasks as JSON")
def tasks_list(folders: tuple[str, ...], output_json: bool) -> None:
    """Show the task of each workspace folder (defaults to the current directory).

    FOLDERS are directory paths or file:// URIs, as editors report them.

    Examples:

        lll-lsp tasks list

        lll-lsp tasks list ./api ./web --json

        lll-lsp tasks list file:///home/me/project
    """
    from .commands.tasks_cmd import run_tasks_list
    from .tasks import parse_folder

    try:
        workspace = [parse_folder(f) for f in folders] or [parse_folder(str(Path.cwd()))]
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="FOLDERS")

    run_tasks_list(workspace, output_json=output_json)


@tasks.command("run")
@click.argument(
    "folder",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
def tasks_run(folder: Path) -> None:
    """Run the lint task of FOLDER and exit with lll's status."""
    from .commands.tasks_cmd import run_folder_task

    sys.exit(run_folder_task(folder))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()

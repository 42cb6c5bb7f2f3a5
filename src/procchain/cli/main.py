"""``procchain`` command: run a shell-style pipeline without a shell.

Example::

    procchain run "printf 'a b c'" "tr ' ' '\\n'" "wc -l"
"""

from __future__ import annotations

import logging
import shlex
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from procchain import __version__
from procchain.capture import run_pipeline_capture_err
from procchain.config import configure, load_settings
from procchain.core.command import Command
from procchain.exceptions import ConfigurationError, ProcchainError
from procchain.executor import run_pipeline

DEFAULT_CONFIG_FILE = Path(".procchain.yaml")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="procchain",
    help="Run external programs chained like a shell pipeline, without a shell",
    add_completion=False,
    no_args_is_help=True,
)


def parse_stage(text: str) -> Command:
    """Split one stage string into a Command using POSIX shell quoting rules."""
    try:
        words = shlex.split(text)
    except ValueError as exc:
        raise ConfigurationError(f"Cannot parse stage {text!r}: {exc}") from exc
    if not words:
        raise ConfigurationError("Empty stage in pipeline")
    return Command(words[0], *words[1:])


def _configure_logging(level: str) -> None:
    package_logger = logging.getLogger("procchain")
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=err_console, show_path=False))
    package_logger.setLevel(level)


def _open_input(stack: ExitStack, source: str | None) -> BinaryIO | None:
    if source is None:
        return None
    if source == "-":
        return typer.get_binary_stream("stdin")
    path = Path(source)
    if not path.is_file():
        raise ConfigurationError(f"Input file not found: {path}")
    return stack.enter_context(path.open("rb"))


@app.command()
def run(
    stages: List[str] = typer.Argument(..., help="Stages to chain, one quoted command per stage"),
    input_source: Optional[str] = typer.Option(
        None,
        "--input",
        "-i",
        help="File fed to the first stage ('-' forwards this process's stdin)",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Write the last stage's output to this file instead of stdout",
    ),
    capture_stderr: bool = typer.Option(
        False,
        "--capture-stderr",
        help="Collect the stages' stderr and show it only if the pipeline fails",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        dir_okay=False,
        help=f"Settings file (default: {DEFAULT_CONFIG_FILE} when present)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log stage lifecycle events"),
) -> None:
    """Run STAGES as a pipeline, connecting each stage's stdout to the next stage's stdin."""
    try:
        if config_file is not None and not config_file.is_file():
            raise ConfigurationError(f"Config file not found: {config_file}")
        settings = load_settings(config_file or DEFAULT_CONFIG_FILE)
        configure(settings)
        _configure_logging("DEBUG" if verbose else settings.log_level)

        commands = [parse_stage(stage) for stage in stages]
        with ExitStack() as stack:
            stdin = _open_input(stack, input_source)
            if output_file is not None:
                stdout = stack.enter_context(output_file.open("wb"))
            else:
                stdout = typer.get_binary_stream("stdout")

            if capture_stderr:
                run_pipeline_capture_err(commands, stdin, stdout)
            else:
                run_pipeline(commands, stdin, stdout, typer.get_binary_stream("stderr"))
    except ProcchainError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show the procchain version."""
    console.print(f"procchain {__version__}", highlight=False)


def main() -> None:
    app()

"""Capturing wrappers around the single-process and pipeline executors.

Each wrapper collects the error stream into a private buffer and, on
failure, attaches the captured text to the raised ``CommandError`` so its
message reads ``"<path> <reason> - <stderr text>"``. Output-capturing
wrappers return stdout as bytes; on failure the bytes collected so far are
available as ``error.output``.
"""

from __future__ import annotations

import io
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from procchain.config import get_settings
from procchain.core.process import Process
from procchain.exceptions import CommandError
from procchain.executor import run_command, run_pipeline

__all__ = [
    "run_command_capture_err",
    "run_command_capture_out",
    "run_command_from_input",
    "run_command_to_output",
    "run_pipeline_capture_err",
    "run_pipeline_capture_out",
]


@contextmanager
def _stderr_captured() -> Iterator[io.BytesIO]:
    buffer = io.BytesIO()
    try:
        yield buffer
    except CommandError as exc:
        exc.attach_stderr(get_settings().decode_stderr(buffer.getvalue()))
        raise


@contextmanager
def _stdout_captured() -> Iterator[io.BytesIO]:
    buffer = io.BytesIO()
    try:
        yield buffer
    except CommandError as exc:
        exc.output = buffer.getvalue()
        raise


def run_command_capture_err(cmd: Process, stdin: Any = None, stdout: Any = None) -> None:
    """Run a single command, appending its stderr text to any raised error."""
    with _stderr_captured() as stderr:
        run_command(cmd, stdin, stdout, stderr)


def run_command_capture_out(cmd: Process, stdin: Any = None) -> bytes:
    """Run a single command and return everything it wrote to stdout."""
    with _stdout_captured() as stdout:
        run_command_capture_err(cmd, stdin, stdout)
    return stdout.getvalue()


def run_command_from_input(cmd: Process, stdin: Any) -> None:
    """Run a single command reading *stdin*; its output is discarded."""
    run_command_capture_err(cmd, stdin, None)


def run_command_to_output(cmd: Process, stdout: Any) -> None:
    """Run a single command without input, writing its output to *stdout*."""
    run_command_capture_err(cmd, None, stdout)


def run_pipeline_capture_err(cmds: Sequence[Process], stdin: Any = None, stdout: Any = None) -> None:
    """Run a pipeline, appending the stages' combined stderr text to any raised error."""
    with _stderr_captured() as stderr:
        run_pipeline(cmds, stdin, stdout, stderr)


def run_pipeline_capture_out(cmds: Sequence[Process], stdin: Any = None) -> bytes:
    """Run a pipeline and return everything the last stage wrote to stdout."""
    with _stdout_captured() as stdout:
        run_pipeline_capture_err(cmds, stdin, stdout)
    return stdout.getvalue()

"""Run one process, or a chain of processes connected stdout-to-stdin.

Both executors run on the caller's thread: they start processes, then block
in ``wait()`` for each one in order. Failures are raised as
``CommandError`` subclasses tagged with the path of the first stage that
failed.

``run_pipeline`` guarantees that no started process outlives the call: on
any failure every started stage is sent SIGKILL and reaped, including stages
that already exited cleanly.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Sequence

from procchain.core.process import ExitStatusError, Process
from procchain.core.streams import DISCARD
from procchain.exceptions import (
    ConfigurationError,
    ExitFailure,
    PipeSetupFailure,
    StartFailure,
)

logger = logging.getLogger(__name__)

__all__ = ["run_command", "run_pipeline"]


def _exit_failure(stage: Process, exc: Exception) -> ExitFailure:
    return ExitFailure(stage.path, str(exc), returncode=getattr(exc, "returncode", None))


def run_command(
    cmd: Process,
    stdin: Any = None,
    stdout: Any = None,
    stderr: Any = None,
) -> None:
    """Run a single command to completion.

    Args:
        cmd: Process descriptor to run
        stdin: Optional input source (None means no input)
        stdout: Optional output destination (None discards)
        stderr: Optional error destination (None discards)

    Raises:
        StartFailure: If the process could not be created.
        ExitFailure: If it exited non-zero or was killed by a signal.
    """
    if stdin is not None:
        cmd.stdin = stdin
    cmd.stdout = DISCARD if stdout is None else stdout
    cmd.stderr = DISCARD if stderr is None else stderr

    try:
        cmd.start()
    except OSError as exc:
        raise StartFailure(cmd.path, str(exc)) from exc

    try:
        cmd.wait()
    except (ExitStatusError, OSError) as exc:
        raise _exit_failure(cmd, exc) from exc


class _RunState:
    """Failure flag shared by cleanup callbacks; read when they run, not when registered."""

    def __init__(self) -> None:
        self.failed = False


def _cleanup_stage(stage: Process, state: _RunState) -> None:
    if state.failed:
        logger.warning("Killing %s after pipeline failure", stage.path)
        stage.kill()
    stage.reap()


def run_pipeline(
    cmds: Sequence[Process],
    stdin: Any = None,
    stdout: Any = None,
    stderr: Any = None,
) -> None:
    """Pipe several commands together like ``a | b | c``.

    Args:
        cmds: Ordered stages; at least one is required
        stdin: Optional input source for the first stage
        stdout: Optional destination for the last stage's output (None discards)
        stderr: Optional destination shared by every stage's error stream (None discards)

    Raises:
        ConfigurationError: If no commands were given.
        PipeSetupFailure: If an inter-stage pipe could not be created.
        StartFailure: If a stage could not be created.
        ExitFailure: If a stage exited non-zero or was killed by a signal.
    """
    if len(cmds) < 1:
        raise ConfigurationError("no commands provided")

    stages = list(cmds)
    last = len(stages) - 1
    if stdout is None:
        stdout = DISCARD
    if stderr is None:
        stderr = DISCARD

    if stdin is not None:
        stages[0].stdin = stdin

    for index, stage in enumerate(stages[:last]):
        try:
            stages[index + 1].stdin = stage.stdout_pipe()
        except OSError as exc:
            for wired in stages[: index + 1]:
                wired.release()
            raise PipeSetupFailure(stage.path, str(exc)) from exc
    logger.debug("Wired %d stage(s): %s", len(stages), " | ".join(stage.path for stage in stages))

    for stage in stages:
        stage.stderr = stderr
    stages[last].stdout = stdout

    state = _RunState()
    failure: Exception | None = None
    with ExitStack() as cleanup:
        try:
            for index, stage in enumerate(stages):
                try:
                    stage.start()
                except BaseException as exc:
                    for pending in stages[index:]:
                        pending.release()
                    if isinstance(exc, OSError):
                        raise StartFailure(stage.path, str(exc)) from exc
                    raise
                cleanup.callback(_cleanup_stage, stage, state)

            for stage in stages:
                try:
                    stage.wait()
                except (ExitStatusError, OSError) as exc:
                    if failure is None:
                        failure = _exit_failure(stage, exc)
                        failure.__cause__ = exc
            if failure is not None:
                raise failure
        except BaseException:
            state.failed = True
            raise

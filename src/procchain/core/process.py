"""Protocol for process descriptors consumed by the executors.

The executors never touch ``subprocess`` directly: they drive anything that
implements this protocol. ``procchain.core.command.Command`` runs real OS
processes; ``procchain.testing.fakes.FakeProcess`` records calls for tests.
"""

from __future__ import annotations

import signal
from typing import Any, Protocol, runtime_checkable


def describe_returncode(returncode: int) -> str:
    """Describe a non-zero exit the way a shell user would read it."""
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = f"signal {-returncode}"
        return f"signal: {name}"
    return f"exit status {returncode}"


class ExitStatusError(Exception):
    """A waited-on process exited non-zero or was terminated by a signal."""

    def __init__(self, returncode: int):
        self.returncode = returncode
        super().__init__(describe_returncode(returncode))


@runtime_checkable
class Process(Protocol):
    """A program to run, with attachable streams and a start/wait/kill lifecycle.

    ``stdin`` of None means no input. ``stdout``/``stderr`` of None mean
    the stream is discarded.
    """

    path: str
    stdin: Any
    stdout: Any
    stderr: Any

    @property
    def started(self) -> bool:
        """True once ``start()`` succeeded."""
        ...

    def stdout_pipe(self) -> Any:
        """Attach a new OS pipe as stdout and return its read end.

        Raises:
            OSError: If the pipe cannot be created.
        """
        ...

    def start(self) -> None:
        """Spawn the process.

        Raises:
            OSError: If the OS refuses to create the process.
        """
        ...

    def wait(self) -> None:
        """Block until the process exits and its streams are drained.

        Raises:
            ExitStatusError: On a non-zero exit or signal termination.
            OSError: If copying one of its streams failed.
        """
        ...

    def kill(self) -> None:
        """Send SIGKILL if the process is still running."""
        ...

    def reap(self) -> None:
        """Wait for the process to exit, ignoring its status."""
        ...

    def release(self) -> None:
        """Close parent-side stream ends of a process that will never start."""
        ...

"""Process descriptor backed by ``subprocess.Popen``.

A ``Command`` is a program path plus arguments, environment and working
directory, with three attachable streams. Streams backed by a real file
descriptor are handed straight to the child; in-memory readers and writers
(``io.BytesIO``, custom objects) are bridged by copier threads that belong
to the command and are joined by ``wait()``.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import signal
import subprocess
import threading
from pathlib import Path
from typing import Any, Mapping

from procchain.config import get_settings
from procchain.core.process import ExitStatusError
from procchain.core.streams import DISCARD, PipeReader, PipeWriter, file_descriptor

logger = logging.getLogger(__name__)

__all__ = ["Command"]


class Command:
    """A single external program invocation.

    Args:
        program: Program name or path; bare names are resolved through PATH
        *args: Arguments passed after the program name
        env: Full environment for the child (None inherits the parent's)
        cwd: Working directory for the child
    """

    def __init__(
        self,
        program: str | os.PathLike[str],
        *args: str | os.PathLike[str],
        env: Mapping[str, str] | None = None,
        cwd: str | os.PathLike[str] | None = None,
    ) -> None:
        name = os.fspath(program)
        self.path: str = shutil.which(name) or name
        self.args: list[str] = [name, *(os.fspath(arg) for arg in args)]
        self.env: dict[str, str] | None = dict(env) if env is not None else None
        self.cwd: Path | None = Path(cwd) if cwd is not None else None

        self.stdin: Any = None
        self.stdout: Any = None
        self.stderr: Any = None

        self._popen: subprocess.Popen[bytes] | None = None
        self._threads: list[threading.Thread] = []
        self._copy_errors: list[BaseException] = []
        self._close_after_start: list[PipeReader | PipeWriter] = []
        self._close_after_wait: list[PipeReader | PipeWriter] = []

    def __repr__(self) -> str:
        return f"Command({' '.join(self.args)!r})"

    @property
    def started(self) -> bool:
        return self._popen is not None

    @property
    def pid(self) -> int | None:
        return self._popen.pid if self._popen is not None else None

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode if self._popen is not None else None

    def stdout_pipe(self) -> PipeReader:
        """Attach a new OS pipe as stdout and return its read end."""
        if self._popen is not None:
            raise RuntimeError(f"{self.path}: stdout_pipe after process started")
        read_fd, write_fd = os.pipe()
        reader, writer = PipeReader(read_fd), PipeWriter(write_fd)
        self.stdout = writer
        self._close_after_start.append(writer)
        self._close_after_wait.append(reader)
        return reader

    def start(self) -> None:
        """Spawn the process with its streams attached."""
        if self._popen is not None:
            raise RuntimeError(f"{self.path}: already started")

        stdin_target, feed_source = self._input_target(self.stdin)
        stdout_target, stdout_sink = self._output_target(self.stdout)
        stderr_target, stderr_sink = self._output_target(self.stderr)

        try:
            self._popen = subprocess.Popen(
                self.args,
                executable=self.path,
                stdin=stdin_target,
                stdout=stdout_target,
                stderr=stderr_target,
                env=self.env,
                cwd=self.cwd,
            )
        except BaseException:
            self.release()
            raise
        logger.debug("Started %s (pid %s)", self.path, self._popen.pid)

        # The child holds its own copies now.
        _close_all(self._close_after_start)

        if feed_source is not None:
            self._spawn_copier("stdin", _feed_input, feed_source, self._popen.stdin)
        if stdout_sink is not None:
            self._spawn_copier("stdout", _drain_output, self._popen.stdout, stdout_sink)
        if stderr_sink is not None:
            self._spawn_copier("stderr", _drain_output, self._popen.stderr, stderr_sink)

    def wait(self) -> None:
        """Wait for exit, then for every copier thread to finish."""
        if self._popen is None:
            raise RuntimeError(f"{self.path}: not started")
        returncode = self._popen.wait()
        self._finish()
        logger.debug("%s exited with %s", self.path, returncode)
        # A failed copier closes its pipe end, so the child often dies of SIGPIPE
        if self._copy_errors and returncode in (0, -signal.SIGPIPE):
            error = self._copy_errors[0]
            if isinstance(error, OSError):
                raise error
            raise OSError(f"stream copy failed: {error}") from error
        if returncode != 0:
            raise ExitStatusError(returncode)

    def kill(self) -> None:
        if self._popen is None:
            return
        # Popen.kill is a no-op once the exit status has been collected
        self._popen.kill()

    def reap(self) -> None:
        if self._popen is None:
            return
        self._popen.wait()
        self._finish()

    def release(self) -> None:
        _close_all(self._close_after_start)
        _close_all(self._close_after_wait)
        if isinstance(self.stdin, PipeReader):
            self.stdin.close()

    def _input_target(self, stream: Any) -> tuple[Any, Any]:
        if stream is None:
            return subprocess.DEVNULL, None
        if isinstance(stream, (bytes, bytearray, memoryview)):
            return subprocess.PIPE, io.BytesIO(bytes(stream))
        if isinstance(stream, PipeReader):
            self._close_after_start.append(stream)
            return stream.fileno(), None
        fd = file_descriptor(stream)
        if fd is not None:
            return fd, None
        return subprocess.PIPE, stream

    def _output_target(self, stream: Any) -> tuple[Any, Any]:
        if stream is None or stream is DISCARD:
            return subprocess.DEVNULL, None
        if isinstance(stream, PipeWriter):
            return stream.fileno(), None
        fd = file_descriptor(stream)
        if fd is not None:
            flush = getattr(stream, "flush", None)
            if flush is not None:
                flush()
            return fd, None
        return subprocess.PIPE, stream

    def _spawn_copier(self, label: str, target: Any, source: Any, destination: Any) -> None:
        thread = threading.Thread(
            target=self._run_copier,
            args=(target, source, destination),
            name=f"procchain-{os.path.basename(self.path)}-{label}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def _run_copier(self, target: Any, source: Any, destination: Any) -> None:
        try:
            target(source, destination, get_settings().copy_buffer_size)
        except Exception as exc:  # re-raised from wait()
            self._copy_errors.append(exc)

    def _finish(self) -> None:
        for thread in self._threads:
            thread.join()
        self._threads.clear()
        _close_all(self._close_after_wait)


def _close_all(ends: list[PipeReader | PipeWriter]) -> None:
    while ends:
        ends.pop().close()


def _feed_input(source: Any, pipe: Any, chunk_size: int) -> None:
    """Copy a reader into the child's stdin; a child that stops reading is not an error."""
    try:
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            pipe.write(chunk)
    except BrokenPipeError:
        pass
    finally:
        try:
            pipe.close()
        except BrokenPipeError:
            pass


def _drain_output(pipe: Any, sink: Any, chunk_size: int) -> None:
    try:
        while True:
            chunk = pipe.read1(chunk_size)
            if not chunk:
                break
            sink.write(chunk)
    finally:
        pipe.close()

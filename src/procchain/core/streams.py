"""Stream helpers shared by process descriptors.

Provides:
- DISCARD: a sink that accepts and drops every byte written to it
- PipeReader: parent-side read end of an inter-stage pipe
- file_descriptor(): the OS descriptor behind a stream, if any
"""

from __future__ import annotations

import io
import os
from typing import BinaryIO, Protocol, Union


class Reader(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class Writer(Protocol):
    def write(self, data: bytes) -> int | None: ...


InputStream = Union[Reader, BinaryIO]
OutputStream = Union[Writer, BinaryIO]


class _Discard:
    """Write-only sink that drops everything."""

    def write(self, data: bytes) -> int:
        return len(data)

    def flush(self) -> None:
        pass

    def __repr__(self) -> str:
        return "DISCARD"


DISCARD = _Discard()


class PipeReader:
    """Read end of an OS pipe, owned by the parent until the reader starts.

    ``close()`` is idempotent: the producing and the consuming stage may
    both try to release it.
    """

    def __init__(self, fd: int):
        self._fd: int | None = fd

    def fileno(self) -> int:
        if self._fd is None:
            raise ValueError("I/O operation on closed pipe")
        return self._fd

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            chunks = []
            while chunk := os.read(self.fileno(), io.DEFAULT_BUFFER_SIZE):
                chunks.append(chunk)
            return b"".join(chunks)
        return os.read(self.fileno(), size)

    @property
    def closed(self) -> bool:
        return self._fd is None

    def close(self) -> None:
        if self._fd is not None:
            fd, self._fd = self._fd, None
            os.close(fd)


class PipeWriter:
    """Write end of an OS pipe, closed by the parent once the writer starts."""

    def __init__(self, fd: int):
        self._fd: int | None = fd

    def fileno(self) -> int:
        if self._fd is None:
            raise ValueError("I/O operation on closed pipe")
        return self._fd

    def write(self, data: bytes) -> int:
        return os.write(self.fileno(), data)

    @property
    def closed(self) -> bool:
        return self._fd is None

    def close(self) -> None:
        if self._fd is not None:
            fd, self._fd = self._fd, None
            os.close(fd)


def file_descriptor(stream: object) -> int | None:
    """Return the OS file descriptor behind *stream*, or None for in-memory streams."""
    fileno = getattr(stream, "fileno", None)
    if fileno is None:
        return None
    try:
        return fileno()
    except (OSError, ValueError):
        # io.BytesIO and friends raise io.UnsupportedOperation
        return None

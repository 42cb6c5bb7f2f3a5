"""Process descriptors and the streams attached to them."""

from .command import Command
from .process import ExitStatusError, Process, describe_returncode
from .streams import DISCARD, PipeReader, PipeWriter, file_descriptor

__all__ = [
    "Command",
    "DISCARD",
    "ExitStatusError",
    "PipeReader",
    "PipeWriter",
    "Process",
    "describe_returncode",
    "file_descriptor",
]

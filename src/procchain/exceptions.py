"""Exception hierarchy for process and pipeline execution."""

from __future__ import annotations


class ProcchainError(Exception):
    """Base exception for procchain errors."""
    pass


class ConfigurationError(ProcchainError):
    """Invalid call shape or settings, detected before any process is touched."""
    pass


class CommandError(ProcchainError):
    """A stage of a run failed.

    Carries the identity of the failing stage (its program path) and the
    OS-level reason. Capturing wrappers fill in ``stderr`` (text the run
    wrote to its error stream) and ``output`` (stdout captured so far).

    The message has the form ``"<path> <reason>"``, followed by
    ``" - <stderr>"`` once non-empty error-stream text is attached.
    """

    def __init__(self, path: str, reason: str):
        """Initialize CommandError.

        Args:
            path: Program path of the failing stage
            reason: OS error text or exit status description
        """
        self.path = path
        self.reason = reason
        self.stderr: str | None = None
        self.output: bytes | None = None
        super().__init__(path, reason)

    def __str__(self) -> str:
        message = f"{self.path} {self.reason}"
        if self.stderr:
            return f"{message} - {self.stderr}"
        return message

    def attach_stderr(self, text: str) -> None:
        """Annotate the error with captured error-stream text."""
        self.stderr = text.rstrip()


class StartFailure(CommandError):
    """The OS refused to create the process (missing binary, permissions)."""


class PipeSetupFailure(CommandError):
    """The OS failed to create the pipe connecting a stage to the next one."""


class ExitFailure(CommandError):
    """A started process exited non-zero, was signalled, or lost its streams."""

    def __init__(self, path: str, reason: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(path, reason)

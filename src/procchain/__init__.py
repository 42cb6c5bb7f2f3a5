"""Run external programs and shell-style pipelines without a shell."""

from procchain.capture import (
    run_command_capture_err,
    run_command_capture_out,
    run_command_from_input,
    run_command_to_output,
    run_pipeline_capture_err,
    run_pipeline_capture_out,
)
from procchain.config import RunnerSettings, configure, get_settings, load_settings
from procchain.core import DISCARD, Command, ExitStatusError, Process
from procchain.exceptions import (
    CommandError,
    ConfigurationError,
    ExitFailure,
    PipeSetupFailure,
    ProcchainError,
    StartFailure,
)
from procchain.executor import run_command, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "Command",
    "CommandError",
    "ConfigurationError",
    "DISCARD",
    "ExitFailure",
    "ExitStatusError",
    "PipeSetupFailure",
    "ProcchainError",
    "Process",
    "RunnerSettings",
    "StartFailure",
    "configure",
    "get_settings",
    "load_settings",
    "run_command",
    "run_command_capture_err",
    "run_command_capture_out",
    "run_command_from_input",
    "run_command_to_output",
    "run_pipeline",
    "run_pipeline_capture_err",
    "run_pipeline_capture_out",
]

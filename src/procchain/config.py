"""Runtime settings for procchain, optionally loaded from a YAML file.

Settings live under a ``procchain:`` section::

    procchain:
      stderr_encoding: utf-8
      stderr_errors: replace
      copy_buffer_size: 65536
      log_level: INFO

``PROCCHAIN_*`` environment variables override file values.
"""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from ruamel.yaml import YAML

from procchain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROCCHAIN_"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_DECODE_ERROR_MODES = ("strict", "replace", "ignore", "backslashreplace", "surrogateescape")


@dataclass(slots=True)
class RunnerSettings:
    """Process-wide knobs for executors and capturing wrappers."""

    stderr_encoding: str = "utf-8"
    stderr_errors: str = "replace"
    copy_buffer_size: int = 65536
    log_level: str = "WARNING"

    def validate(self) -> "RunnerSettings":
        try:
            codecs.lookup(self.stderr_encoding)
        except LookupError as exc:
            raise ConfigurationError(f"Unknown stderr_encoding: {self.stderr_encoding}") from exc
        if self.stderr_errors not in _DECODE_ERROR_MODES:
            raise ConfigurationError(
                f"Invalid stderr_errors {self.stderr_errors!r}; expected one of {', '.join(_DECODE_ERROR_MODES)}"
            )
        if self.copy_buffer_size <= 0:
            raise ConfigurationError("copy_buffer_size must be a positive integer")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log_level {self.log_level!r}; expected one of {', '.join(_LOG_LEVELS)}"
            )
        self.log_level = self.log_level.upper()
        return self

    def decode_stderr(self, data: bytes) -> str:
        return data.decode(self.stderr_encoding, errors=self.stderr_errors)

    def to_dict(self) -> dict[str, object]:
        return {
            "stderr_encoding": self.stderr_encoding,
            "stderr_errors": self.stderr_errors,
            "copy_buffer_size": self.copy_buffer_size,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object] | None) -> "RunnerSettings":
        if not isinstance(data, Mapping):
            return cls()

        settings = cls()
        for key in ("stderr_encoding", "stderr_errors", "log_level"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                setattr(settings, key, value.strip())

        buffer_size = data.get("copy_buffer_size")
        if buffer_size is not None:
            settings.copy_buffer_size = _coerce_int("copy_buffer_size", buffer_size)
        return settings.validate()


def _coerce_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def apply_env_overrides(settings: RunnerSettings, environ: Mapping[str, str] | None = None) -> RunnerSettings:
    """Return a copy of *settings* with ``PROCCHAIN_*`` variables applied."""
    env = os.environ if environ is None else environ
    overrides: dict[str, object] = {}
    for key in ("stderr_encoding", "stderr_errors", "log_level"):
        value = env.get(ENV_PREFIX + key.upper())
        if value:
            overrides[key] = value.strip()
    buffer_size = env.get(ENV_PREFIX + "COPY_BUFFER_SIZE")
    if buffer_size:
        overrides["copy_buffer_size"] = _coerce_int("copy_buffer_size", buffer_size)
    if not overrides:
        return settings
    return replace(settings, **overrides).validate()


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> RunnerSettings:
    """Load settings from *path* (if it exists) and the environment."""
    settings = RunnerSettings()
    if path is not None and path.exists():
        yaml = YAML(typ="safe")
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = yaml.load(handle) or {}
        except Exception as exc:
            raise ConfigurationError(f"Failed to parse {path}: {exc}") from exc

        section = payload.get("procchain") if isinstance(payload, dict) else None
        settings = RunnerSettings.from_dict(section if isinstance(section, dict) else None)
        logger.debug("Loaded settings from %s: %s", path, settings.to_dict())
    return apply_env_overrides(settings, environ)


_active = RunnerSettings()


def get_settings() -> RunnerSettings:
    """Return the active process-wide settings."""
    return _active


def configure(settings: RunnerSettings) -> RunnerSettings:
    """Replace the active settings and return the previous ones."""
    global _active
    previous = _active
    _active = settings.validate()
    return previous

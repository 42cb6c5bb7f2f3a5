"""Tests for RunnerSettings loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from procchain.config import (
    RunnerSettings,
    apply_env_overrides,
    configure,
    get_settings,
    load_settings,
)
from procchain.exceptions import ConfigurationError


class TestRunnerSettings:
    def test_defaults(self) -> None:
        settings = RunnerSettings()

        assert settings.to_dict() == {
            "stderr_encoding": "utf-8",
            "stderr_errors": "replace",
            "copy_buffer_size": 65536,
            "log_level": "WARNING",
        }

    def test_from_dict_ignores_non_mappings(self) -> None:
        assert RunnerSettings.from_dict(None) == RunnerSettings()

    def test_from_dict_reads_known_keys(self) -> None:
        settings = RunnerSettings.from_dict(
            {"stderr_encoding": "latin-1", "copy_buffer_size": "4096", "log_level": "debug", "extra": 1}
        )

        assert settings.stderr_encoding == "latin-1"
        assert settings.copy_buffer_size == 4096
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "payload",
        [
            {"stderr_encoding": "no-such-codec"},
            {"stderr_errors": "explode"},
            {"copy_buffer_size": 0},
            {"copy_buffer_size": "lots"},
            {"copy_buffer_size": True},
            {"log_level": "CHATTY"},
        ],
    )
    def test_invalid_values_are_rejected(self, payload: dict[str, object]) -> None:
        with pytest.raises(ConfigurationError):
            RunnerSettings.from_dict(payload)

    def test_decode_stderr(self) -> None:
        settings = RunnerSettings(stderr_errors="ignore")

        assert settings.decode_stderr(b"ok\xff") == "ok"


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_settings(tmp_path / "absent.yaml", environ={}) == RunnerSettings()

    def test_reads_procchain_section(self, tmp_path: Path) -> None:
        config_path = tmp_path / "settings.yaml"
        config_path.write_text(
            "other:\n  key: value\nprocchain:\n  stderr_errors: backslashreplace\n  copy_buffer_size: 1024\n",
            encoding="utf-8",
        )

        settings = load_settings(config_path, environ={})

        assert settings.stderr_errors == "backslashreplace"
        assert settings.copy_buffer_size == 1024

    def test_file_without_section_gives_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("- just\n- a list\n", encoding="utf-8")

        assert load_settings(config_path, environ={}) == RunnerSettings()

    def test_malformed_yaml_is_a_configuration_error(self, tmp_path: Path) -> None:
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("procchain: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Failed to parse"):
            load_settings(config_path, environ={})

    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("procchain:\n  log_level: INFO\n", encoding="utf-8")

        settings = load_settings(
            config_path,
            environ={"PROCCHAIN_LOG_LEVEL": "error", "PROCCHAIN_COPY_BUFFER_SIZE": "512"},
        )

        assert settings.log_level == "ERROR"
        assert settings.copy_buffer_size == 512

    def test_process_environment_is_used_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROCCHAIN_STDERR_ENCODING", "ascii")

        assert apply_env_overrides(RunnerSettings()).stderr_encoding == "ascii"


class TestActiveSettings:
    def test_configure_returns_previous(self) -> None:
        custom = RunnerSettings(copy_buffer_size=128)

        previous = configure(custom)

        assert previous == RunnerSettings()
        assert get_settings() is custom

    def test_configure_validates(self) -> None:
        with pytest.raises(ConfigurationError):
            configure(RunnerSettings(copy_buffer_size=-1))

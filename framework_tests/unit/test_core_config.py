"""Tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from mutineer.core.config import (
    ConfigManager,
    _convert_env_value,
    _merge_sections,
    get_config,
    load_config,
    load_env_overrides,
    reset_config,
)
from mutineer.core.errors import ConfigurationError
from mutineer.core.types import MutineerConfig


class TestEnvironmentLoading:
    """Test environment variable loading functions."""

    @patch.dict(
        os.environ,
        {
            "MUTINEER_LOG_LEVEL": "DEBUG",
            "MUTINEER_TIMEOUTS__HANDSHAKE_TIMEOUT": "2.5",
            "MUTINEER_INFRASTRUCTURE__MAX_THREADS": "4",
            "UNRELATED": "ignored",
        },
        clear=True,
    )
    def test_load_env_overrides(self) -> None:
        overrides = load_env_overrides()

        assert overrides == {
            "log_level": "DEBUG",
            "timeouts": {"handshake_timeout": 2.5},
            "infrastructure": {"max_threads": 4},
        }

    @patch.dict(os.environ, {"MUTINEER_A__B__C": "1"}, clear=True)
    def test_deeply_nested_keys_are_ignored(self) -> None:
        assert load_env_overrides() == {}

    def test_convert_env_value(self) -> None:
        assert _convert_env_value("42") == 42
        assert _convert_env_value("3.5") == 3.5
        assert _convert_env_value("true") is True
        assert _convert_env_value("off") is False
        assert _convert_env_value("a, b,c") == ["a", "b", "c"]
        assert _convert_env_value("plain") == "plain"
        assert _convert_env_value("") is None

    def test_merge_sections_is_one_level_deep(self) -> None:
        merged = _merge_sections(
            {"timeouts": {"handshake_timeout": 1, "process_kill": 2}, "log_level": "INFO"},
            {"timeouts": {"handshake_timeout": 5}, "log_level": "DEBUG"},
        )
        assert merged == {
            "timeouts": {"handshake_timeout": 5, "process_kill": 2},
            "log_level": "DEBUG",
        }


class TestConfigManager:
    """Test ConfigManager loading and precedence."""

    def setup_method(self) -> None:
        self.manager = ConfigManager()

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self) -> None:
        config = self.manager.load_config()

        assert isinstance(config, MutineerConfig)
        assert config.timeouts.handshake_timeout == 10.0
        assert config.timeouts.worker_budget is None
        assert config.infrastructure.max_threads == 1
        assert config.worker.entry_point == "mutineer.worker"

    @patch.dict(os.environ, {"MUTINEER_TIMEOUTS__HANDSHAKE_TIMEOUT": "3"}, clear=True)
    def test_precedence_file_env_overrides(self, temp_dir) -> None:
        config_file = temp_dir / "mutineer.yaml"
        config_file.write_text(
            "log_level: WARNING\n"
            "timeouts:\n"
            "  handshake_timeout: 7\n"
            "  process_kill: 9\n"
            "infrastructure:\n"
            "  max_threads: 2\n",
            encoding="utf-8",
        )

        config = self.manager.load_config(config_file, infrastructure={"max_threads": 6})

        assert config.log_level == "WARNING"
        assert config.timeouts.handshake_timeout == 3.0
        assert config.timeouts.process_kill == 9.0
        assert config.infrastructure.max_threads == 6

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_file_uses_defaults(self, temp_dir) -> None:
        config = self.manager.load_config(temp_dir / "absent.yaml")
        assert config.log_level == "INFO"

    @patch.dict(os.environ, {}, clear=True)
    def test_unsupported_file_format(self, temp_dir) -> None:
        config_file = temp_dir / "mutineer.toml"
        config_file.write_text("log_level = 'INFO'\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Unsupported config file format"):
            self.manager.load_config(config_file)

    @patch.dict(os.environ, {}, clear=True)
    def test_non_mapping_file(self, temp_dir) -> None:
        config_file = temp_dir / "mutineer.yml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            self.manager.load_config(config_file)

    @patch.dict(os.environ, {}, clear=True)
    def test_invalid_values_raise_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            self.manager.load_config(infrastructure={"max_threads": 0})
        with pytest.raises(ConfigurationError):
            self.manager.load_config(timeouts={"worker_budget": -1})
        with pytest.raises(ConfigurationError):
            self.manager.load_config(infrastructure={"max_threads": "many"})

    @patch.dict(os.environ, {}, clear=True)
    def test_get_config_caches_until_reset(self) -> None:
        first = self.manager.get_config()
        assert self.manager.get_config() is first
        self.manager.reset()
        assert self.manager.get_config() is not first


class TestGlobalConfig:
    """Test module-level configuration helpers."""

    @patch.dict(os.environ, {}, clear=True)
    def test_load_then_get(self) -> None:
        loaded = load_config(log_level="DEBUG")
        assert get_config() is loaded
        reset_config()
        assert get_config().log_level == "INFO"

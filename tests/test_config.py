"""
Tests for the configuration module.

This test module validates:
- Configuration loading from YAML files
- Environment variable overrides
- CLI argument overrides
- Configuration precedence (defaults < YAML < env vars < CLI args)
- Pydantic model validation with invalid inputs
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest import mock

import pytest
import yaml
from pydantic import ValidationError

from app_updater.config import (
    AppConfig,
    LoggingConfig,
    UpdatesConfig,
    _deep_merge,
    _load_env_config,
    _load_yaml_config,
    _parse_cli_args,
    _parse_env_value,
    load_config,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sample_yaml_config() -> dict[str, Any]:
    """Sample YAML configuration for testing."""
    return {
        "logging": {"level": "warning", "json_format": False},
        "updates": {
            "current_version": "0.6.3.0",
            "binary_dir": "/opt/tablet/bin",
            "app_data_dir": "/home/user/.config/tablet",
            "feed_url": "https://example.com/latest.json",
        },
    }


@pytest.fixture
def config_file(tmp_path: Path, sample_yaml_config: dict[str, Any]) -> Path:
    """Write the sample configuration to a YAML file."""
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump(sample_yaml_config))
    return path


# =============================================================================
# Model Tests
# =============================================================================


class TestModels:
    """Tests for configuration models."""

    def test_defaults(self) -> None:
        """Test default configuration values."""
        config = AppConfig()

        assert config.logging.level == "info"
        assert config.logging.json_format is True
        assert config.updates.current_version == "0.0.0.0"
        assert config.updates.rollback_dir is None
        assert config.updates.feed_timeout_seconds == 10.0

    def test_log_level_normalized(self) -> None:
        """Test that 'warn' is normalized to 'warning'."""
        assert LoggingConfig(level="WARN").level == "warning"

    def test_invalid_log_level(self) -> None:
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")

    def test_invalid_current_version(self) -> None:
        """Test that malformed versions are rejected."""
        with pytest.raises(ValidationError):
            UpdatesConfig(current_version="one.two")

    def test_float_current_version_rejected(self) -> None:
        """Test that a float version is rejected instead of reformatted."""
        with pytest.raises(ValidationError) as exc_info:
            UpdatesConfig(current_version=1.10)

        assert "quote the version" in str(exc_info.value)

    def test_integer_current_version_accepted(self) -> None:
        """Test that a single-component version such as 2 is accepted."""
        assert UpdatesConfig(current_version=2).current_version == "2"

    def test_invalid_timeout(self) -> None:
        """Test that a non-positive feed timeout is rejected."""
        with pytest.raises(ValidationError):
            UpdatesConfig(feed_timeout_seconds=0)


# =============================================================================
# Helper Function Tests
# =============================================================================


class TestHelpers:
    """Tests for configuration loading helpers."""

    def test_deep_merge(self) -> None:
        """Test nested dictionaries are merged, not replaced."""
        base = {"updates": {"binary_dir": "/a", "app_data_dir": "/b"}}
        override = {"updates": {"binary_dir": "/c"}}

        assert _deep_merge(base, override) == {
            "updates": {"binary_dir": "/c", "app_data_dir": "/b"}
        }

    def test_load_yaml_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing YAML file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            _load_yaml_config(tmp_path / "missing.yml")

    def test_load_yaml_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty YAML file yields an empty dict."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert _load_yaml_config(path) == {}

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("off", False),
            ("42", 42),
            ("1.0", "1.0"),
            ("/opt/app/bin", "/opt/app/bin"),
        ],
    )
    def test_parse_env_value(self, raw: str, expected: Any) -> None:
        """Test environment value parsing keeps dotted versions as text."""
        assert _parse_env_value(raw) == expected

    def test_load_env_config_nested(self) -> None:
        """Test double underscore nesting."""
        env = {
            "APP_UPDATER_UPDATES__BINARY_DIR": "/srv/bin",
            "APP_UPDATER_LOGGING__LEVEL": "debug",
            "UNRELATED": "x",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            result = _load_env_config()

        assert result == {
            "updates": {"binary_dir": "/srv/bin"},
            "logging": {"level": "debug"},
        }

    def test_parse_cli_args(self) -> None:
        """Test CLI flags map to configuration keys."""
        result = _parse_cli_args(["--config", "/tmp/c.yml", "--log-level", "error"])

        assert result == {"_config_path": "/tmp/c.yml", "logging": {"level": "error"}}

    def test_parse_cli_debug(self) -> None:
        """Test --debug enables debug mode and level."""
        result = _parse_cli_args(["--debug"])

        assert result["logging"] == {"debug_mode": True, "level": "debug"}


# =============================================================================
# load_config Tests
# =============================================================================


class TestLoadConfig:
    """Tests for layered configuration loading."""

    def test_load_from_yaml(self, config_file: Path) -> None:
        """Test values from the YAML file are applied."""
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config(config_path=config_file, cli_args=[])

        assert config.updates.current_version == "0.6.3.0"
        assert config.updates.binary_dir == "/opt/tablet/bin"
        assert config.logging.json_format is False

    def test_env_overrides_yaml(self, config_file: Path) -> None:
        """Test environment variables override YAML values."""
        env = {"APP_UPDATER_UPDATES__CURRENT_VERSION": "0.6.4.0"}
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_config(config_path=config_file, cli_args=[])

        assert config.updates.current_version == "0.6.4.0"

    def test_cli_overrides_env(self, config_file: Path) -> None:
        """Test CLI arguments override environment variables."""
        env = {"APP_UPDATER_LOGGING__LEVEL": "debug"}
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_config(config_path=config_file, cli_args=["--log-level", "error"])

        assert config.logging.level == "error"

    def test_config_path_from_cli(self, config_file: Path) -> None:
        """Test the --config flag selects the YAML file."""
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config(cli_args=["--config", str(config_file)])

        assert config.updates.feed_url == "https://example.com/latest.json"

    def test_missing_config_file(self, tmp_path: Path) -> None:
        """Test an explicit missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yml", cli_args=[])

    def test_unquoted_yaml_version_rejected(self, tmp_path: Path) -> None:
        """Test an unquoted YAML version that loads as a float is rejected."""
        path = tmp_path / "config.yml"
        path.write_text("updates:\n  current_version: 1.10\n")

        with mock.patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValidationError):
                load_config(config_path=path, cli_args=[])

    def test_quoted_yaml_version_kept(self, tmp_path: Path) -> None:
        """Test a quoted YAML version keeps every component."""
        path = tmp_path / "config.yml"
        path.write_text('updates:\n  current_version: "1.10"\n')

        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config(config_path=path, cli_args=[])

        assert config.updates.current_version == "1.10"

"""Tests for configuration settings."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from ops_copilot.config import (
    AppConfig,
    Environment,
    get_environment,
    get_settings,
    load_env_files,
    reset_settings,
)
from ops_copilot.config.bootstrap import get_bootstrap_log_format, get_bootstrap_log_level


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove COPILOT_ variables that would leak into AppConfig."""
    for name in (
        "APP_ENV",
        "COPILOT_REASONING_API_KEY",
        "COPILOT_REASONING_BASE_URL",
        "COPILOT_LOG_LEVEL",
        "COPILOT_LOG_FORMAT",
        "COPILOT_SEED_DATA_PATH",
        "COPILOT_CHAT_HISTORY_TURNS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestEnvironmentDetection:
    """Test environment detection."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("", Environment.DEVELOPMENT),
            ("production", Environment.PRODUCTION),
            ("prod", Environment.PRODUCTION),
            ("STAGE", Environment.STAGING),
            ("test", Environment.TEST),
            ("qa", Environment.DEVELOPMENT),
        ],
    )
    def test_get_environment(
        self, clean_env: pytest.MonkeyPatch, value: str, expected: Environment
    ) -> None:
        """Test APP_ENV values and aliases."""
        clean_env.setenv("APP_ENV", value)
        assert get_environment() == expected


class TestAppConfig:
    """Test AppConfig class."""

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test code defaults with a clean environment."""
        config = AppConfig()

        assert config.reasoning_api_key is None
        assert config.reasoning_enabled is False
        assert config.reasoning_base_url == "https://api.openai.com/v1"
        assert config.chat_history_turns == 10
        assert config.seed_data_path is None
        assert config.log_level == "INFO"

    def test_environment_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test COPILOT_ variables override defaults."""
        clean_env.setenv("COPILOT_REASONING_API_KEY", "sk-test")
        clean_env.setenv("COPILOT_REASONING_BASE_URL", "http://localhost:8000/v1/")
        clean_env.setenv("COPILOT_CHAT_HISTORY_TURNS", "4")

        config = AppConfig()

        assert config.reasoning_enabled is True
        assert config.reasoning_api_key is not None
        assert config.reasoning_api_key.get_secret_value() == "sk-test"
        assert config.reasoning_base_url == "http://localhost:8000/v1"
        assert config.chat_history_turns == 4

    def test_empty_api_key_disables_reasoning(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test a blank key does not enable the reasoning service."""
        assert AppConfig(reasoning_api_key="").reasoning_enabled is False

    def test_log_level_normalized(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test log level is uppercased."""
        assert AppConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("log_level", "LOUD"),
            ("log_format", "xml"),
            ("reasoning_base_url", "ftp://example.com"),
            ("reasoning_temperature", 3.0),
            ("chat_history_turns", -1),
        ],
    )
    def test_invalid_values(self, clean_env: pytest.MonkeyPatch, field: str, value: object) -> None:
        """Test invalid values are rejected."""
        with pytest.raises(ValidationError):
            AppConfig(**{field: value})

    def test_relative_seed_path_resolved(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test relative seed paths become absolute."""
        config = AppConfig(seed_data_path="config/seed.yaml")

        assert config.seed_data_path is not None
        assert config.seed_data_path.is_absolute()
        assert config.seed_data_path.name == "seed.yaml"

    def test_blank_seed_path_is_none(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test an empty seed path disables seeding."""
        assert AppConfig(seed_data_path="").seed_data_path is None


class TestSettingsSingleton:
    """Test get_settings caching."""

    def test_cached_until_reset(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test the same instance is returned until reset_settings()."""
        reset_settings()
        try:
            first = get_settings()
            assert get_settings() is first
            reset_settings()
            assert get_settings() is not first
        finally:
            reset_settings()


class TestEnvFiles:
    """Test .env file layering."""

    def test_priority_order(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test environment-specific local files win over the base file."""
        clean_env.setenv("APP_ENV", "test")
        clean_env.delenv("COPILOT_TEST_LAYER", raising=False)
        (tmp_path / ".env").write_text("COPILOT_TEST_LAYER=base\n")
        (tmp_path / ".env.test.local").write_text("COPILOT_TEST_LAYER=test-local\n")

        loaded = load_env_files(tmp_path)

        assert loaded == [".env.test.local", ".env"]
        assert os.environ["COPILOT_TEST_LAYER"] == "test-local"

    def test_explicit_variables_win(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test variables already set are not overridden by files."""
        clean_env.setenv("COPILOT_TEST_LAYER", "explicit")
        (tmp_path / ".env").write_text("COPILOT_TEST_LAYER=file\n")

        load_env_files(tmp_path)

        assert os.environ["COPILOT_TEST_LAYER"] == "explicit"

    def test_no_files(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test an empty directory loads nothing."""
        assert load_env_files(tmp_path) == []


class TestBootstrap:
    """Test pre-settings logging configuration."""

    def test_bootstrap_values(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test valid environment values are used."""
        clean_env.setenv("COPILOT_LOG_LEVEL", "warning")
        clean_env.setenv("COPILOT_LOG_FORMAT", "JSON")

        assert get_bootstrap_log_level() == "WARNING"
        assert get_bootstrap_log_format() == "json"

    def test_bootstrap_invalid_falls_back(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test invalid environment values fall back to defaults."""
        clean_env.setenv("COPILOT_LOG_LEVEL", "chatty")

        assert get_bootstrap_log_level() == "INFO"

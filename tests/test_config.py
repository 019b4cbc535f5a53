"""
Tests for config.py - environment and .env settings.
"""

import os

import pytest
from pathlib import Path

from crudsql.config import DEFAULT_DATABASE_URL, Settings, load_env, logging_options
from crudsql.placeholder import Placeholder


class TestSettings:
    """Test Settings.from_env."""

    def test_defaults(self):
        """No variables set gives the defaults."""
        settings = Settings.from_env()

        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.placeholder is Placeholder.QUESTION
        assert settings.log_level == "WARNING"
        assert settings.log_dir is None
        assert settings.log_console is False
        assert settings.echo_sql is False

    def test_values_from_environment(self, monkeypatch, tmp_path):
        """CRUDSQL_* variables override the defaults."""
        monkeypatch.setenv("CRUDSQL_DATABASE_URL", "sqlite:///:memory:")
        monkeypatch.setenv("CRUDSQL_PLACEHOLDER", "dollar")
        monkeypatch.setenv("CRUDSQL_LOG_LEVEL", "info")
        monkeypatch.setenv("CRUDSQL_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("CRUDSQL_ECHO_SQL", "true")

        settings = Settings.from_env()

        assert settings.database_url == "sqlite:///:memory:"
        assert settings.placeholder is Placeholder.DOLLAR
        assert settings.log_level == "INFO"
        assert settings.log_dir == tmp_path
        assert settings.echo_sql is True

    def test_invalid_placeholder(self, monkeypatch):
        """Unknown dialect names fail at load time."""
        monkeypatch.setenv("CRUDSQL_PLACEHOLDER", "percent")

        with pytest.raises(ValueError, match="placeholder"):
            Settings.from_env()

    def test_invalid_log_level(self, monkeypatch):
        """Unknown log levels fail at load time."""
        monkeypatch.setenv("CRUDSQL_LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError, match="CRUDSQL_LOG_LEVEL"):
            Settings.from_env()

    def test_settings_are_frozen(self):
        """Settings can't be mutated after loading."""
        settings = Settings.from_env()

        with pytest.raises(AttributeError):
            settings.log_level = "DEBUG"


class TestLoadEnv:
    """Test .env loading."""

    def test_missing_file(self, tmp_path, monkeypatch):
        """No .env file is a no-op."""
        monkeypatch.chdir(tmp_path)

        assert load_env() is False

    def test_loads_dotenv(self, tmp_path, monkeypatch):
        """Variables in .env become visible to Settings."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CRUDSQL_PLACEHOLDER=at_p\n", encoding="utf-8")

        assert load_env() is True
        try:
            assert Settings.from_env().placeholder is Placeholder.AT_P
        finally:
            os.environ.pop("CRUDSQL_PLACEHOLDER", None)

    def test_environment_wins(self, tmp_path, monkeypatch):
        """Existing variables are not overridden by .env."""
        env_file = tmp_path / "custom.env"
        env_file.write_text("CRUDSQL_LOG_LEVEL=DEBUG\n", encoding="utf-8")
        monkeypatch.setenv("CRUDSQL_LOG_LEVEL", "ERROR")

        load_env(env_file)

        assert Settings.from_env().log_level == "ERROR"


class TestLoggingOptions:
    """Test the logging-only view of the environment."""

    def test_defaults(self):
        """No variables means WARNING, no file, no console."""
        assert logging_options() == {"level": "WARNING", "log_dir": None, "enable_console": False}

    def test_unknown_level_falls_back(self, monkeypatch):
        """Bad levels don't raise here."""
        monkeypatch.setenv("CRUDSQL_LOG_LEVEL", "LOUD")

        assert logging_options()["level"] == "WARNING"

    def test_other_variables_ignored(self, monkeypatch, tmp_path):
        """A bad placeholder only matters to Settings.from_env."""
        monkeypatch.setenv("CRUDSQL_PLACEHOLDER", "pyformat")
        monkeypatch.setenv("CRUDSQL_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("CRUDSQL_LOG_CONSOLE", "yes")

        options = logging_options()

        assert options["log_dir"] == tmp_path
        assert options["enable_console"] is True

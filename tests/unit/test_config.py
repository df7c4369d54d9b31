"""Unit tests for ctrlboard configuration management.

Tests AppConfig loading from environment variables and defaults.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ctrlboard.config import AppConfig, get_config, reset_config


class TestAppConfig:
    """Test AppConfig creation from the environment."""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set."""
        monkeypatch.delenv("CLASSIFICATION_MAPPING_PATH", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = AppConfig.from_env()

        assert config.log_level == "INFO"
        assert config.default_unit == "ALL"
        assert config.classification_mapping_path == Path("config/internal_mapping.yaml")
        assert config.watchdog.threshold == 0.2
        assert config.watchdog.weeks_back == 1
        assert config.watchdog.use_internal_share is True
        assert config.watchdog.use_zero_last_week is True
        assert config.watchdog.use_min_total is False
        assert config.watchdog.combine == "or"
        assert config.timesheets.hours_per_day == 8.0
        assert config.timesheets.mode == "weekly"

    def test_watchdog_overrides(self, monkeypatch):
        """Test WATCHDOG_* variables."""
        monkeypatch.setenv("WATCHDOG_THRESHOLD", "0.5")
        monkeypatch.setenv("WATCHDOG_WEEKS_BACK", "4")
        monkeypatch.setenv("WATCHDOG_USE_ZERO_LAST_WEEK", "False")
        monkeypatch.setenv("WATCHDOG_COMBINE", "AND")

        config = AppConfig.from_env()

        assert config.watchdog.threshold == 0.5
        assert config.watchdog.weeks_back == 4
        assert config.watchdog.use_zero_last_week is False
        assert config.watchdog.combine == "and"

    def test_timesheet_overrides(self, monkeypatch):
        """Test TIMESHEET_* variables."""
        monkeypatch.setenv("TIMESHEET_HOURS_PER_DAY", "7.5")
        monkeypatch.setenv("TIMESHEET_MODE", "Monthly")

        config = AppConfig.from_env()

        assert config.timesheets.hours_per_day == 7.5
        assert config.timesheets.mode == "monthly"

    def test_settings_paths(self, monkeypatch, tmp_path):
        """Test settings file locations come from the environment."""
        monkeypatch.setenv("CLASSIFICATION_MAPPING_PATH", str(tmp_path / "m.json"))

        config = AppConfig.from_env()

        assert config.classification_mapping_path == tmp_path / "m.json"

    def test_invalid_number_raises(self, monkeypatch):
        """Test unparseable numeric values fail loudly."""
        monkeypatch.setenv("WATCHDOG_THRESHOLD", "high")

        with pytest.raises(ValueError):
            AppConfig.from_env()


class TestSingleton:
    """Test the cached config accessor."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reset_config_reloads(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("DEFAULT_UNIT", "Engineering")
        reset_config()

        second = get_config()

        assert second is not first
        assert second.default_unit == "Engineering"

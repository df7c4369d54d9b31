"""Unit tests for structured logging configuration."""

from __future__ import annotations

import logging

import pytest
import structlog

from ctrlboard.config import AppConfig, reset_config
from ctrlboard.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    configure_logging(AppConfig())
    root.setLevel(level)


def _renderer():
    return structlog.get_config()["processors"][-1]


class TestConfigureLogging:
    def test_text_format_uses_console_renderer(self):
        configure_logging(AppConfig(log_format="text"))

        assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)

    def test_log_format_json_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        reset_config()

        configure_logging()

        assert isinstance(_renderer(), structlog.processors.JSONRenderer)

    def test_json_logs_shorthand(self, monkeypatch):
        monkeypatch.setenv("JSON_LOGS", "true")

        assert AppConfig.from_env().log_format == "json"

    def test_explicit_log_format_wins_over_shorthand(self, monkeypatch):
        monkeypatch.setenv("JSON_LOGS", "true")
        monkeypatch.setenv("LOG_FORMAT", "text")

        assert AppConfig.from_env().log_format == "text"

    def test_level_comes_from_config(self):
        configure_logging(AppConfig(log_level="warning"))

        assert logging.getLogger().level == logging.WARNING

    def test_repeated_calls_do_not_stack_handlers(self):
        configure_logging(AppConfig())
        count = len(logging.getLogger().handlers)

        configure_logging(AppConfig())

        assert len(logging.getLogger().handlers) == count

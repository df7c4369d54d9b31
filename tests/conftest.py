"""Pytest configuration and fixtures for ctrlboard tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from datetime import date

import pytest

from ctrlboard.classification.mapping import ClassificationMapping
from ctrlboard.config import reset_config
from ctrlboard.models import TimeRecord


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point settings files at an empty directory and reload config per test."""
    monkeypatch.setenv("CLASSIFICATION_MAPPING_PATH", str(tmp_path / "internal_mapping.yaml"))
    monkeypatch.setenv("TIMESHEET_EXCEPTIONS_PATH", str(tmp_path / "timesheet_exceptions.yaml"))
    for name in (
        "LOG_FORMAT",
        "JSON_LOGS",
        "DEFAULT_UNIT",
        "WATCHDOG_THRESHOLD",
        "WATCHDOG_WEEKS_BACK",
        "WATCHDOG_USE_INTERNAL_SHARE",
        "WATCHDOG_USE_ZERO_LAST_WEEK",
        "WATCHDOG_USE_MIN_TOTAL",
        "WATCHDOG_MIN_TOTAL_HOURS",
        "WATCHDOG_COMBINE",
        "TIMESHEET_HOURS_PER_DAY",
        "TIMESHEET_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_record():
    """Factory for TimeRecords with sensible defaults."""

    def _make(**overrides) -> TimeRecord:
        values = {
            "employee": "A",
            "customer": "X",
            "project_code": "P1",
            "date": date(2025, 1, 6),
        }
        values.update(overrides)
        return TimeRecord(**values)

    return _make


@pytest.fixture
def int_mapping() -> ClassificationMapping:
    """Mapping with INT as the only explicit internal project."""
    return ClassificationMapping.build(projects=["INT"], tokens=[])


@pytest.fixture
def scenario_rows() -> list[dict]:
    """Raw upstream rows: 10h internal + 5h billable for employee A in ISO week 2025-W02."""
    return [
        {"MITARBEITER": "A", "KUNDE": "X", "PROJEKT": "INT", "STD_GELEISTET": 10, "datum": "2025-01-06"},
        {
            "MITARBEITER": "A",
            "KUNDE": "X",
            "PROJEKT": "P1",
            "STD_FAKTURIERT": 5,
            "STD_GELEISTET": 5,
            "datum": "2025-01-10",
        },
    ]

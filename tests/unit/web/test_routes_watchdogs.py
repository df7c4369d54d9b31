"""Tests for ctrlboard.web.routes.watchdogs - Watchdog routes."""

import json
from datetime import date, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ctrlboard.config import reset_config
from ctrlboard.web.routes import watchdogs


@pytest.fixture
def app():
    """Create test FastAPI app with watchdogs router."""
    test_app = FastAPI()
    test_app.include_router(watchdogs.router)
    return test_app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def last_monday():
    today = date.today()
    return today - timedelta(days=today.weekday(), weeks=1)


@pytest.fixture
def last_week_rows(last_monday):
    """10h internal + 5h billable for employee A in the last complete ISO week."""
    return [
        {"MITARBEITER": "A", "KUNDE": "X", "PROJEKT": "INT", "STD_GELEISTET": 10, "datum": last_monday.isoformat()},
        {
            "MITARBEITER": "A",
            "KUNDE": "X",
            "PROJEKT": "P1",
            "STD_FAKTURIERT": 5,
            "STD_GELEISTET": 5,
            "datum": (last_monday + timedelta(days=4)).isoformat(),
        },
    ]


INT_MAPPING = {"projects": ["INT"], "tokens": []}


class TestInternalWatchdog:
    """Tests for POST /api/watchdogs/internal."""

    def test_internal_share_offender(self, client, last_week_rows, last_monday):
        response = client.post(
            "/api/watchdogs/internal",
            json={"items": last_week_rows, "mapping": INT_MAPPING},
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["offenders"]) == 1
        row = data["offenders"][0]
        assert row["employee"] == "A"
        assert row["internal_hours"] == 10.0
        assert row["total_hours"] == 15.0
        assert row["reasons"][0]["kind"] == "internal_share"
        assert data["range"]["datum_von"] == last_monday.isoformat()

    def test_query_overrides(self, client, last_week_rows):
        response = client.post(
            "/api/watchdogs/internal?threshold=0.9&useZeroLastWeek=false",
            json={"items": last_week_rows, "mapping": INT_MAPPING},
        )

        assert response.json()["offenders"] == []

    def test_and_combination_with_min_total(self, client, last_week_rows):
        response = client.post(
            "/api/watchdogs/internal?useMinTotal=true&minTotalHours=40&useZeroLastWeek=false&combine=and",
            json={"items": last_week_rows, "mapping": INT_MAPPING},
        )

        reasons = response.json()["offenders"][0]["reasons"]
        assert sorted(r["kind"] for r in reasons) == ["internal_share", "min_total"]

    def test_weeks_back_widens_window(self, client, last_week_rows):
        response = client.post(
            "/api/watchdogs/internal?weeksBack=3",
            json={"items": last_week_rows, "mapping": INT_MAPPING},
        )

        assert len(response.json()["rows"]) == 3

    def test_configured_mapping_fallback(self, client, last_week_rows, tmp_path, monkeypatch):
        path = tmp_path / "mapping.json"
        path.write_text(json.dumps({"projects": ["P1"]}))
        monkeypatch.setenv("CLASSIFICATION_MAPPING_PATH", str(path))
        reset_config()

        response = client.post("/api/watchdogs/internal", json={"items": last_week_rows})

        # INT is still caught by the legacy prefix rule, P1 by the mapping
        row = response.json()["rows"][0]
        assert row["internal_hours"] == 15.0

    def test_invalid_combine(self, client):
        response = client.post("/api/watchdogs/internal?combine=xor", json={"items": []})

        assert response.status_code == 422


class TestTimesheetWatchdog:
    """Tests for POST /api/watchdogs/timesheets."""

    @pytest.fixture
    def week_rows(self):
        return [
            {"mitarbeiter": "Anna", "std_geleistet": 40, "datum": "2025-01-07"},
            {"mitarbeiter": "Ben", "std_geleistet": 20, "datum": "2025-01-08"},
            {"mitarbeiter": "Carl", "std_geleistet": 0, "datum": "2025-01-08"},
        ]

    def test_statuses_for_range(self, client, week_rows):
        response = client.post(
            "/api/watchdogs/timesheets?datum_von=2025-01-06&datum_bis=2025-01-12",
            json={"items": week_rows},
        )

        assert response.status_code == 200
        data = response.json()
        assert [(r["employee"], r["status"]) for r in data["rows"]] == [
            ("Anna", "good"),
            ("Ben", "warn"),
            ("Carl", "bad"),
        ]
        assert [r["employee"] for r in data["offenders"]] == ["Ben", "Carl"]
        assert data["range"] == {"datum_von": "2025-01-06", "datum_bis": "2025-01-12"}

    def test_iso_week_and_body_exceptions(self, client, week_rows):
        response = client.post(
            "/api/watchdogs/timesheets?isoWeek=2&isoYear=2025",
            json={
                "items": week_rows,
                "exceptions": [{"name": "ben", "partTimeHours": 4}, {"name": "Carl", "exclude": True}],
            },
        )

        data = response.json()
        assert [(r["employee"], r["status"], r["part_time"]) for r in data["rows"]] == [
            ("Anna", "good", False),
            ("Ben", "good", True),
        ]

    def test_configured_exceptions_fallback(self, client, week_rows, tmp_path, monkeypatch):
        path = tmp_path / "exceptions.yaml"
        path.write_text("exceptions:\n  - name: Carl\n    exclude: true\n")
        monkeypatch.setenv("TIMESHEET_EXCEPTIONS_PATH", str(path))
        reset_config()

        response = client.post("/api/watchdogs/timesheets?isoWeek=2&isoYear=2025", json={"items": week_rows})

        assert [r["employee"] for r in response.json()["rows"]] == ["Anna", "Ben"]

    def test_holidays_and_hours_per_day(self, client, week_rows):
        response = client.post(
            "/api/watchdogs/timesheets?isoWeek=2&isoYear=2025&hoursPerDay=5",
            json={"items": week_rows, "holidays": ["2025-01-06"]},
        )

        rows = {r["employee"]: r for r in response.json()["rows"]}
        assert rows["Ben"]["expected"] == 20.0
        assert rows["Ben"]["status"] == "good"

    def test_month_mode(self, client):
        response = client.post(
            "/api/watchdogs/timesheets?month=2&monthYear=2025",
            json={"items": []},
        )

        assert response.json()["range"] == {"datum_von": "2025-02-01", "datum_bis": "2025-02-28"}

    @pytest.mark.parametrize(
        "query",
        ["isoWeek=54&isoYear=2025", "month=13", "datum_von=2025-02-09&datum_bis=2025-02-03"],
    )
    def test_invalid_period_is_422(self, client, query):
        response = client.post(f"/api/watchdogs/timesheets?{query}", json={"items": []})

        assert response.status_code == 422

"""Tests for ctrlboard.web.routes.reports - Report routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ctrlboard.web.routes import reports


@pytest.fixture
def app():
    """Create test FastAPI app with reports router."""
    test_app = FastAPI()
    test_app.include_router(reports.router)
    return test_app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def rows():
    """Raw export rows across two customers, two months and two units."""
    return [
        {"Mitarbeiter": "A", "Kunde": "X", "Projekt": "P1", "stunden_fakt": "4,5", "stunden_gel": 5, "datum": "2025-01-10", "unit": "North"},
        {"Mitarbeiter": "B", "Kunde": "Y", "Projekt": "P2", "stunden_fakt": 8, "stunden_gel": 8, "datum": "03.02.2025", "unit": "South"},
        {"Mitarbeiter": "A", "Kunde": "Y", "Projekt": "P2", "stunden_fakt": 2, "stunden_gel": 2, "datum": "2025-02-14"},
        {"Mitarbeiter": "C", "Kunde": "Z", "Projekt": "P3"},
    ]


class TestHoursReport:
    """Tests for POST /api/reports/hours."""

    def test_customer_tree(self, client, rows):
        response = client.post("/api/reports/hours", json={"items": rows})

        assert response.status_code == 200
        data = response.json()
        assert [c["name"] for c in data["customers"]] == ["Y", "X"]
        assert data["customers"][0]["total_billed"] == 10.0
        assert data["totals"] == {"total_billed": 14.5, "total_worked": 15.0}
        assert data["record_count"] == 3
        assert data["dropped"] == 1

    def test_unit_filter_keeps_unscoped_records(self, client, rows):
        response = client.post("/api/reports/hours", json={"items": rows, "unit": "South"})

        data = response.json()
        assert data["record_count"] == 2
        assert data["totals"]["total_billed"] == 10.0

    @pytest.mark.parametrize("items", [None, "garbage", {"items": 5}, []])
    def test_malformed_items_are_empty(self, client, items):
        response = client.post("/api/reports/hours", json={"items": items})

        assert response.status_code == 200
        assert response.json()["customers"] == []
        assert response.json()["record_count"] == 0


class TestMonthlyReport:
    """Tests for POST /api/reports/monthly."""

    def test_dense_series_and_top(self, client, rows):
        response = client.post(
            "/api/reports/monthly",
            json={"items": rows, "dimension": "customer", "metric": "hours_billed", "top": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["months"] == ["2025-01", "2025-02"]
        assert data["series"] == {"X": [4.5, 0.0], "Y": [0.0, 10.0]}
        assert data["top"] == ["Y"]

    def test_requested_range(self, client, rows):
        response = client.post(
            "/api/reports/monthly",
            json={"items": rows, "dimension": "employee", "datum_von": "2024-12-01", "datum_bis": "2025-01-31"},
        )

        data = response.json()
        assert data["months"] == ["2024-12", "2025-01"]
        assert data["series"] == {"A": [0.0, 4.5]}

    def test_unknown_dimension_is_rejected(self, client):
        response = client.post("/api/reports/monthly", json={"items": [], "dimension": "unit"})

        assert response.status_code == 422


class TestTrendReport:
    """Tests for POST /api/reports/trend."""

    def test_totals_and_insights(self, client, rows):
        response = client.post("/api/reports/trend", json={"items": rows, "metric": "hours_worked"})

        assert response.status_code == 200
        data = response.json()
        assert data["totals"] == [{"month": "2025-01", "total": 5.0}, {"month": "2025-02", "total": 10.0}]
        assert data["insights"][0]["id"] == "trend-current"
        assert data["insights"][0]["value"] == "100.0%"

    def test_empty(self, client):
        response = client.post("/api/reports/trend", json={"items": []})

        assert response.json()["insights"][0]["id"] == "trend-none"


class TestRevenueReport:
    """Tests for POST /api/reports/revenue."""

    def test_revenue_per_customer(self, client):
        items = [
            {"kunde": "X", "umsatz_tatsaechlich": "1.000,50", "umsatz_kalk": 900},
            {"kunde": "Y", "umsatz_tatsaechlich": 2000},
            {"kunde": "Z"},
        ]

        response = client.post("/api/reports/revenue", json={"items": items})

        assert response.status_code == 200
        data = response.json()
        assert [c["name"] for c in data["customers"]] == ["Y", "X"]
        assert data["total_actual"] == 3000.5
        assert data["total_calculated"] == 900.0

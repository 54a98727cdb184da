"""Integration tests for the health table, dashboard and sync status endpoints."""
from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from zonetracker.database import session_scope
from zonetracker.services.health_aggregator import aggregate
from zonetracker.services.health_repository import HealthRepository
from zonetracker.services.adapters import adapt_whoop_payload


@pytest.fixture()
def cached_weeks(whoop_fixture):
    rows = aggregate(None, adapt_whoop_payload(whoop_fixture), date(2024, 12, 29), date(2025, 1, 11))
    with session_scope() as db:
        repository = HealthRepository(db)
        repository.save_weekly_rows(rows)
        entry = repository.start_sync("whoop", date(2024, 12, 29), date(2025, 1, 11))
        repository.finish_sync(entry, "success", 14)
    return rows


def test_health_check(test_client: TestClient):
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_demo_rows_without_providers(test_client: TestClient):
    response = test_client.get("/api/health", params={"weeks": 4})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["sources"] == {"oura": False, "whoop": False, "cached": False}
    assert "demo" in data["message"]
    assert len(data["data"]) == 4
    assert all(row["row_type"] == "week" for row in data["data"])
    assert data["summary"]["avg_weekly_met_minutes"] is not None


def test_cached_rows_are_served(test_client: TestClient, cached_weeks):
    response = test_client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["sources"]["cached"] is True
    assert [row["week"] for row in data["data"]] == ["Week 2", "Week 53"]
    newest = data["data"][0]
    assert newest["zone"] == "OPTIMAL"
    assert newest["total_met_minutes"] == 1140
    assert newest["start_date"] == "2025-01-05"
    assert newest["trend"] in {"up", "flat", "down"}


def test_cache_can_be_bypassed(test_client: TestClient, cached_weeks):
    response = test_client.get("/api/health", params={"cache": "false", "weeks": 2})

    data = response.json()
    assert data["sources"]["cached"] is False
    assert "demo" in data["message"]


def test_weeks_is_validated(test_client: TestClient):
    assert test_client.get("/api/health", params={"weeks": 0}).status_code == 422
    assert test_client.get("/api/health", params={"weeks": 500}).status_code == 422


def test_sync_status(test_client: TestClient, cached_weeks):
    response = test_client.get("/api/health/sync-status")

    assert response.status_code == 200
    data = response.json()
    assert data["stale"] is False
    assert data["records_synced"] == 14


def test_sync_status_without_history(test_client: TestClient):
    data = test_client.get("/api/health/sync-status").json()

    assert data["last_sync"] is None
    assert data["stale"] is True


def test_dashboard_renders_demo(test_client: TestClient):
    response = test_client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Weekly Load Zones" in response.text
    assert "Showing demo data" in response.text
    assert "Golden Anchor" in response.text


def test_dashboard_shows_auth_error(test_client: TestClient):
    response = test_client.get("/", params={"error": "state_mismatch"})

    assert "Authorization failed: state_mismatch" in response.text


def test_dashboard_renders_cached_rows(test_client: TestClient, cached_weeks):
    response = test_client.get("/")

    assert "Showing demo data" not in response.text
    assert "Week 53" in response.text
    assert "01/05 - 01/11" in response.text

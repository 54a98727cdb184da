"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

_TMP_DIR = Path(tempfile.mkdtemp(prefix="zonetracker-tests-"))

os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["LOG_DIR"] = str(_TMP_DIR / "logs")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["OURA_CLIENT_ID"] = os.environ.get("OURA_CLIENT_ID") or "test-oura-client"
os.environ["OURA_CLIENT_SECRET"] = os.environ.get("OURA_CLIENT_SECRET") or "test-oura-secret"
os.environ["WHOOP_CLIENT_ID"] = os.environ.get("WHOOP_CLIENT_ID") or "test-whoop-client"
os.environ["WHOOP_CLIENT_SECRET"] = os.environ.get("WHOOP_CLIENT_SECRET") or "test-whoop-secret"
for name in (
    "OURA_ACCESS_TOKEN",
    "OURA_REFRESH_TOKEN",
    "WHOOP_ACCESS_TOKEN",
    "WHOOP_REFRESH_TOKEN",
    "ADMIN_TOKEN",
    "CRON_SECRET",
    "ZONE_CONFIG_PATH",
):
    os.environ.pop(name, None)

from zonetracker.logging_config import configure_logging

configure_logging()

from zonetracker.database import Base, SessionLocal, engine
from zonetracker.main import app

Base.metadata.create_all(engine)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _clean_tables() -> Iterator[None]:
    """Every test starts from empty tables."""

    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """Provide a FastAPI test client."""

    return TestClient(app)


@pytest.fixture()
def db_session():
    """Session bound to the test database; committed data is wiped after the test."""

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="session")
def oura_fixture() -> Dict[str, Any]:
    """Return raw Oura payload fixture data (one week, Jan 5-11 2025)."""

    with (FIXTURES_DIR / "oura_payload.json").open("r", encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture(scope="session")
def whoop_fixture() -> Dict[str, Any]:
    """Return raw WHOOP payload fixture data (cycles starting Jan 4-11 2025)."""

    with (FIXTURES_DIR / "whoop_payload.json").open("r", encoding="utf-8") as fh:
        return json.load(fh)

"""Client for the Oura ring API (v2 usercollection)."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

import requests

from zonetracker.config import get_settings
from zonetracker.services.http_client import request_with_retries


logger = logging.getLogger(__name__)

OURA_BASE_URL = "https://api.ouraring.com/v2/usercollection"

# Payload key -> usercollection endpoint
OURA_ENDPOINTS = {
    "readiness": "daily_readiness",
    "sleep": "daily_sleep",
    "activity": "daily_activity",
    "sleep_periods": "sleep",
}


class OuraClient:
    """Fetch daily ring summaries for a date range."""

    def __init__(self, access_token: str, session: requests.Session | None = None) -> None:
        settings = get_settings()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            }
        )
        self._timeout = settings.http_timeout_seconds
        self._max_retries = settings.http_max_retries

    def _collection(self, endpoint: str, start_date: date, end_date: date) -> list[dict[str, Any]]:
        """Return every document of ``endpoint`` in range, following ``next_token``."""

        params: dict[str, str] = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        }
        items: list[dict[str, Any]] = []
        while True:
            response = request_with_retries(
                "GET",
                f"{OURA_BASE_URL}/{endpoint}",
                session=self._session,
                params=params,
                timeout=self._timeout,
                max_retries=self._max_retries,
            )
            body = response.json()
            items.extend(body.get("data") or [])

            next_token = body.get("next_token")
            if not next_token:
                break
            params = {**params, "next_token": next_token}

        logger.debug("Oura %s returned %d document(s)", endpoint, len(items))
        return items

    def get_readiness(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._collection("daily_readiness", start_date, end_date)

    def get_sleep(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._collection("daily_sleep", start_date, end_date)

    def get_activity(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._collection("daily_activity", start_date, end_date)

    def get_sleep_periods(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._collection("sleep", start_date, end_date)

    def get_all_data(self, start_date: date, end_date: date) -> dict[str, list[dict[str, Any]]]:
        """Raw payload for every family, keyed the way the adapters expect."""

        payload = {
            key: self._collection(endpoint, start_date, end_date)
            for key, endpoint in OURA_ENDPOINTS.items()
        }
        logger.info(
            "Fetched Oura data %s..%s (%s)",
            start_date,
            end_date,
            ", ".join(f"{key}={len(items)}" for key, items in payload.items()),
        )
        return payload

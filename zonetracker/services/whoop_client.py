"""Client for the WHOOP developer API (v2)."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any

import requests

from zonetracker.config import get_settings
from zonetracker.services.http_client import request_with_retries


logger = logging.getLogger(__name__)

WHOOP_BASE_URL = "https://api.prod.whoop.com/developer/v2"
PAGE_LIMIT = 25

WHOOP_ENDPOINTS = {
    "recovery": "recovery",
    "cycles": "cycle",
    "sleep": "activity/sleep",
}


def _range_params(start_date: date, end_date: date) -> dict[str, str]:
    # WHOOP filters on timestamps; make the end date inclusive.
    start = datetime.combine(start_date, time.min)
    end = datetime.combine(end_date + timedelta(days=1), time.min)
    return {
        "start": start.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "end": end.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "limit": str(PAGE_LIMIT),
    }


class WhoopClient:
    """Fetch band cycles, recoveries and sleeps for a date range."""

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

    def _records(self, endpoint: str, start_date: date, end_date: date) -> list[dict[str, Any]]:
        """Return every record of ``endpoint`` in range, following ``nextToken``."""

        params = _range_params(start_date, end_date)
        records: list[dict[str, Any]] = []
        while True:
            response = request_with_retries(
                "GET",
                f"{WHOOP_BASE_URL}/{endpoint}",
                session=self._session,
                params=params,
                timeout=self._timeout,
                max_retries=self._max_retries,
            )
            body = response.json()
            records.extend(body.get("records") or [])

            next_token = body.get("next_token") or body.get("nextToken")
            if not next_token:
                break
            params = {**params, "nextToken": next_token}

        logger.debug("WHOOP %s returned %d record(s)", endpoint, len(records))
        return records

    def get_recovery(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._records("recovery", start_date, end_date)

    def get_cycles(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._records("cycle", start_date, end_date)

    def get_sleep(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        return self._records("activity/sleep", start_date, end_date)

    def get_all_data(self, start_date: date, end_date: date) -> dict[str, list[dict[str, Any]]]:
        payload = {
            key: self._records(endpoint, start_date, end_date)
            for key, endpoint in WHOOP_ENDPOINTS.items()
        }
        logger.info(
            "Fetched WHOOP data %s..%s (%s)",
            start_date,
            end_date,
            ", ".join(f"{key}={len(items)}" for key, items in payload.items()),
        )
        return payload

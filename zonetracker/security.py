"""Shared-secret guards for the admin and cron endpoints."""
from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Request

from zonetracker.config import get_settings


logger = logging.getLogger(__name__)


def _bearer(value: str | None) -> str:
    if not value:
        return ""
    return value[len("Bearer "):] if value.startswith("Bearer ") else value


def _matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def require_admin(request: Request) -> None:
    """Accept ``X-Admin-Token`` or a bearer token; open when no admin token is configured."""

    expected = get_settings().admin_token
    if not expected:
        return

    supplied = _bearer(request.headers.get("x-admin-token") or request.headers.get("authorization"))
    if not _matches(supplied, expected):
        logger.warning("Rejected admin request to %s", request.url.path)
        raise HTTPException(status_code=401, detail="Unauthorized")


def require_cron_secret(request: Request) -> None:
    """Bearer ``CRON_SECRET`` check; open when no secret is configured."""

    expected = get_settings().cron_secret
    if not expected:
        return

    header = request.headers.get("authorization") or ""
    if not header.startswith("Bearer ") or not _matches(_bearer(header), expected):
        logger.warning("Rejected cron request to %s", request.url.path)
        raise HTTPException(status_code=401, detail="Unauthorized")

"""Trigger data syncs over HTTP."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from zonetracker.config import get_settings
from zonetracker.database import get_db
from zonetracker.models.schemas import SyncRequest, SyncResponse
from zonetracker.security import require_admin
from zonetracker.services.sync_service import run_sync


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("")
async def get_sync_config() -> dict:
    """Report which providers are configured and the default sync window."""

    settings = get_settings()
    return {
        "sync_days": settings.sync_days,
        "default_weeks": settings.default_weeks,
        "admin_protected": bool(settings.admin_token),
        "providers": {
            "oura": {
                "oauth_configured": bool(settings.oura_client_id and settings.oura_client_secret),
                "env_token": bool(settings.oura_access_token),
            },
            "whoop": {
                "oauth_configured": bool(settings.whoop_client_id and settings.whoop_client_secret),
                "env_token": bool(settings.whoop_access_token),
            },
        },
    }


@router.post("", response_model=SyncResponse, dependencies=[Depends(require_admin)])
async def trigger_sync(
    payload: SyncRequest | None = None,
    db: Session = Depends(get_db),
) -> SyncResponse:
    """Fetch, aggregate and persist the requested window (defaults to SYNC_DAYS)."""

    payload = payload or SyncRequest()
    days = payload.resolve_days(get_settings().sync_days)
    logger.info("Manual sync requested for %d day(s)", days)
    try:
        result = await run_sync(db, days=days)
    except Exception as e:
        logger.exception("Manual sync failed")
        raise HTTPException(status_code=500, detail=f"Sync failed: {str(e)}")

    return SyncResponse(**result.to_dict())

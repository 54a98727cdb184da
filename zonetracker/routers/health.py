"""Router exposing the weekly health table and sync status."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from zonetracker.config import get_settings
from zonetracker.database import get_db
from zonetracker.models.schemas import HealthResponse
from zonetracker.services.demo_data import demo_rows
from zonetracker.services.health_aggregator import summarize
from zonetracker.services.health_repository import HealthRepository
from zonetracker.services.sync_service import build_live_rows


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/health", tags=["health"])


def _payload(rows, sources: dict, message: str | None = None) -> dict:
    return {
        "success": True,
        "data": [row.to_dict() for row in rows],
        "summary": summarize(rows).to_dict(),
        "sources": sources,
        "message": message,
    }


@router.get("", response_model=HealthResponse)
async def get_health_table(
    weeks: int | None = Query(default=None, ge=1, le=104),
    cache: bool = Query(default=True),
    db: Session = Depends(get_db),
):
    """
    Weekly health table with summary statistics.

    Served from the synced database when ``cache`` is true and rollups exist;
    otherwise fetched live from the connected providers. Falls back to demo
    rows when neither provider is connected.
    """
    weeks = weeks or get_settings().default_weeks

    try:
        if cache:
            cached_rows = HealthRepository(db).get_weekly_rows(weeks)
            if cached_rows:
                logger.info("Serving %d cached week(s)", len(cached_rows))
                return _payload(
                    cached_rows,
                    {"oura": True, "whoop": True, "cached": True},
                    "Data from database cache",
                )

        rows, data = await build_live_rows(db, weeks)
        if not rows:
            logger.info("No provider data available; serving demo rows")
            return _payload(
                demo_rows(weeks),
                {"oura": False, "whoop": False, "cached": False},
                "Using demo data. Connect Oura or WHOOP to see real data.",
            )

        return _payload(rows, {**data.sources, "cached": False})

    except Exception as exc:
        logger.exception("Health table request failed")
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


@router.get("/sync-status")
async def get_sync_status(db: Session = Depends(get_db)) -> dict:
    """
    Check the staleness of synced data.

    Returns:
        dict: {
            "last_sync": ISO timestamp or None,
            "stale": bool,
            "records_synced": int,
            ...
        }
    """
    try:
        return HealthRepository(db).sync_status()
    except Exception:
        logger.exception("Sync status check failed")
        raise HTTPException(status_code=500, detail="Failed to check sync status")

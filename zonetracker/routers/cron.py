"""Endpoints meant for an external scheduler (hourly token refresh)."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from zonetracker.database import get_db
from zonetracker.models.schemas import TokenRefreshResponse
from zonetracker.security import require_cron_secret
from zonetracker.services.token_store import TokenStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"], dependencies=[Depends(require_cron_secret)])


@router.api_route("/refresh-tokens", methods=["GET", "POST"], response_model=TokenRefreshResponse)
def refresh_tokens(db: Session = Depends(get_db)) -> TokenRefreshResponse:
    """Refresh every provider token that is close to expiry."""

    results = TokenStore(db).refresh_all()
    logger.info("Token refresh results: %s", results)
    return TokenRefreshResponse(
        refreshed_at=datetime.now(timezone.utc).isoformat(),
        results=results,
    )

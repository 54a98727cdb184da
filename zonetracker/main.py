"""FastAPI application entry point."""
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from zonetracker.config import get_settings
from zonetracker.database import get_db
from zonetracker.logging_config import configure_logging
from zonetracker.routers import auth, cron, health, sync
from zonetracker.services.demo_data import demo_rows
from zonetracker.services.health_aggregator import summarize
from zonetracker.services.health_repository import HealthRepository
from zonetracker.templating import templates


configure_logging()

app = FastAPI(title="Zone Tracker API")


@app.get("/", response_class=HTMLResponse, tags=["dashboard"])
async def dashboard(request: Request, error: str | None = None, db: Session = Depends(get_db)) -> HTMLResponse:
    """Weekly load-zone table with summary cards and legend."""

    weeks = get_settings().default_weeks
    rows = HealthRepository(db).get_weekly_rows(weeks)
    is_demo = not rows
    if is_demo:
        rows = demo_rows(weeks)

    return templates.TemplateResponse(
        "dashboard.html",
        {
            "request": request,
            "rows": rows,
            "summary": summarize(rows),
            "is_demo": is_demo,
            "error": error,
        },
    )


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(sync.router)
app.include_router(cron.router)

"""Standalone scheduler process: daily data sync plus hourly token refresh."""
from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from filelock import FileLock

from zonetracker.config import get_settings
from zonetracker.database import run_migrations, session_scope
from zonetracker.logging_config import configure_logging
from zonetracker.services.sync_service import SyncResult, run_sync
from zonetracker.services.token_store import TokenStore


logger = logging.getLogger("scheduler")


def acquire_lock(lock_path: Path) -> FileLock:
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path))
    lock.acquire(timeout=0)
    return lock


async def perform_sync() -> SyncResult:
    """Run one sync over the configured window inside its own session."""
    with session_scope() as db:
        return await run_sync(db)


def refresh_tokens() -> dict[str, str]:
    with session_scope() as db:
        return TokenStore(db).refresh_all()


async def run_daily_job() -> None:
    start = datetime.now(timezone.utc)
    logger.info("Daily scheduler job started")

    try:
        result = await perform_sync()
    except Exception:
        logger.exception("Daily sync failed")
        return

    elapsed = (datetime.now(timezone.utc) - start).total_seconds()
    logger.info(
        "Daily scheduler job finished in %.2fs | days=%d | weeks=%d | sources=%s",
        elapsed,
        result.days_synced,
        result.weeks_synced,
        result.sources,
    )
    for provider, message in result.errors.items():
        logger.warning("Provider %s failed during sync: %s", provider, message)


async def run_token_refresh_job() -> None:
    try:
        results = await asyncio.to_thread(refresh_tokens)
    except Exception:
        logger.exception("Token refresh job failed")
        return
    logger.info("Token refresh | %s", results)


async def run_once() -> None:
    await run_token_refresh_job()
    await run_daily_job()


async def main(run_now: bool) -> None:
    configure_logging()
    settings = get_settings()
    run_migrations()

    scheduler_log = settings.log_dir / "scheduler.log"
    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(scheduler_log) for h in logger.handlers):
        handler = logging.FileHandler(scheduler_log, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    lock_path = settings.scheduler_lock_file
    lock = acquire_lock(lock_path)
    logger.info("Acquired scheduler lock at %s", lock_path)
    try:
        if run_now:
            await run_once()
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            run_daily_job,
            "cron",
            hour=settings.scheduler_hour,
            minute=settings.scheduler_minute,
        )
        scheduler.add_job(run_token_refresh_job, "cron", minute=30)
        scheduler.start()

        logger.info(
            "Scheduler running (sync %02d:%02d, token refresh hourly at :30). Press Ctrl+C to exit.",
            settings.scheduler_hour,
            settings.scheduler_minute,
        )
        await asyncio.Event().wait()
    finally:
        lock.release()
        logger.info("Released scheduler lock at %s", lock_path)
        if lock_path.exists():
            lock_path.unlink()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run scheduler process")
    parser.add_argument("--run-now", action="store_true", help="Execute jobs immediately and exit")
    args = parser.parse_args()

    try:
        asyncio.run(main(run_now=args.run_now))
    except TimeoutError:
        logger.warning("Scheduler already running; exiting.")

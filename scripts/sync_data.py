"""Sync script - pulls ring and band data, aggregates it and saves it to the database."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from zonetracker.config import get_settings
from zonetracker.database import run_migrations, session_scope
from zonetracker.logging_config import configure_logging
from zonetracker.services.sync_service import SyncResult, run_sync


logger = logging.getLogger("scripts.sync_data")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Oura + WHOOP data sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync the default window (SYNC_DAYS, 90 days unless configured)
  python scripts/sync_data.py

  # Sync the last two weeks
  python scripts/sync_data.py --weeks 2

  # Sync the last 30 days with debug output
  python scripts/sync_data.py --days 30 --verbose
        """
    )
    window = parser.add_mutually_exclusive_group()
    window.add_argument(
        "--days",
        type=int,
        help="Number of days to sync, ending today"
    )
    window.add_argument(
        "--weeks",
        type=int,
        help="Number of weeks to sync, ending today"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show detailed output"
    )
    return parser.parse_args(argv)


def resolve_days(args: argparse.Namespace, default: int) -> int:
    if args.days:
        return args.days
    if args.weeks:
        return args.weeks * 7
    return default


def report(result: SyncResult) -> None:
    logger.info("=" * 60)
    logger.info("📅 Window: %s → %s", result.start_date, result.end_date)
    for provider, connected in result.sources.items():
        if provider in result.errors:
            logger.error("❌ %s: %s", provider, result.errors[provider])
        elif connected:
            logger.info("✅ %s: data received", provider)
        else:
            logger.info("⏭️  %s: not connected", provider)
    logger.info("💾 Saved %d day(s) and %d week(s)", result.days_synced, result.weeks_synced)
    logger.info("=" * 60)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    settings = get_settings()
    days = resolve_days(args, settings.sync_days)

    run_migrations()

    try:
        with session_scope() as db:
            result = asyncio.run(run_sync(db, days=days, settings=settings))
    except Exception:
        logger.exception("Sync failed")
        return 1

    report(result)
    # Partial failures still saved the other provider's data, but cron should notice.
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())

"""Pull provider data, run the aggregation pipeline and persist the result."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from zonetracker.config import Settings, get_settings
from zonetracker.models.records import BandDataset, HealthRow, RingDataset
from zonetracker.services.adapters import adapt_oura_payload, adapt_whoop_payload
from zonetracker.services.daily_aggregator import build_lookups
from zonetracker.services.health_aggregator import aggregate, aggregate_daily, rollup
from zonetracker.services.health_repository import HealthRepository
from zonetracker.services.http_client import ProviderAuthError, ProviderError
from zonetracker.services.oura_client import OuraClient
from zonetracker.services.token_store import TokenStore
from zonetracker.services.weekly_aggregator import first_weekday_for, week_start
from zonetracker.services.whoop_client import WhoopClient
from zonetracker.services.zones import ZoneThresholds, get_thresholds


logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]


@dataclass
class ProviderData:
    """Datasets fetched for one run; a provider that is not connected stays None."""

    ring: RingDataset | None = None
    band: BandDataset | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def sources(self) -> dict[str, bool]:
        return {
            "oura": self.ring is not None and not self.ring.is_empty(),
            "whoop": self.band is not None and not self.band.is_empty(),
        }

    @property
    def has_data(self) -> bool:
        return any(self.sources.values())


@dataclass
class SyncResult:
    start_date: date
    end_date: date
    days_synced: int
    weeks_synced: int
    sources: dict[str, bool]
    errors: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days_synced": self.days_synced,
            "weeks_synced": self.weeks_synced,
            "sources": self.sources,
            "errors": self.errors,
        }


def sync_window(days: int, today: date | None = None) -> tuple[date, date]:
    """Inclusive range covering the last ``days`` days up to today."""
    end = today or date.today()
    return end - timedelta(days=days - 1), end


def _fetch(provider: str, client_factory: ClientFactory, token: str, start_date: date, end_date: date):
    """Blocking fetch of one provider; failures degrade to "no data"."""
    try:
        return client_factory(token).get_all_data(start_date, end_date)
    except ProviderAuthError:
        logger.warning("%s rejected the stored access token; re-authorize to resume syncing", provider)
        raise
    except ProviderError:
        logger.exception("%s fetch failed", provider)
        raise


def _access_tokens(token_store: TokenStore) -> tuple[str | None, str | None]:
    return token_store.get_valid_access_token("oura"), token_store.get_valid_access_token("whoop")


async def fetch_provider_data(
    token_store: TokenStore,
    start_date: date,
    end_date: date,
    oura_factory: ClientFactory = OuraClient,
    whoop_factory: ClientFactory = WhoopClient,
) -> ProviderData:
    """Fetch both providers concurrently for ``start_date``..``end_date``."""

    result = ProviderData()
    # A lookup may refresh the token over HTTP.
    oura_token, whoop_token = await asyncio.to_thread(_access_tokens, token_store)

    jobs: dict[str, Any] = {}
    if oura_token:
        jobs["oura"] = asyncio.to_thread(_fetch, "oura", oura_factory, oura_token, start_date, end_date)
    if whoop_token:
        # Recovery for the first day belongs to the cycle that started the day before.
        jobs["whoop"] = asyncio.to_thread(
            _fetch, "whoop", whoop_factory, whoop_token, start_date - timedelta(days=1), end_date
        )

    if not jobs:
        logger.info("No provider connected; nothing to fetch")
        return result

    outcomes = await asyncio.gather(*jobs.values(), return_exceptions=True)
    for provider, outcome in zip(jobs, outcomes):
        if isinstance(outcome, ProviderError):
            result.errors[provider] = str(outcome)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        if provider == "oura":
            result.ring = adapt_oura_payload(outcome)
        else:
            result.band = adapt_whoop_payload(outcome)

    return result


async def build_live_rows(
    db: Session,
    weeks: int,
    settings: Settings | None = None,
    today: date | None = None,
) -> tuple[list[HealthRow], ProviderData]:
    """Fetch and aggregate the last ``weeks`` weeks without persisting anything."""

    settings = settings or get_settings()
    start_date, end_date = sync_window(weeks * 7, today)
    data = await fetch_provider_data(TokenStore(db, settings), start_date, end_date)
    if not data.has_data:
        return [], data

    rows = aggregate(
        data.ring,
        data.band,
        start_date,
        end_date,
        thresholds=get_thresholds(),
        first_weekday=first_weekday_for(settings.week_start),
    )
    return rows, data


def rebuild_weekly_rollups(
    repository: HealthRepository,
    start_date: date,
    end_date: date,
    thresholds: ZoneThresholds,
    first_weekday: int,
) -> int:
    """
    Recompute every week touched by ``start_date``..``end_date`` from stored days.

    The oldest week is widened back to its first day so days saved by earlier
    syncs stay in its totals, and its trend is taken against the stored week
    before it. Only the days before the earliest stored day are left out, so a
    first sync that starts mid-week still stores that week as cumulative.
    """
    first_day = week_start(start_date, first_weekday)
    earliest = repository.earliest_daily_date()
    rebuild_start = max(first_day, min(earliest, start_date) if earliest else start_date)

    previous = repository.previous_weekly_record(first_day)
    rows = rollup(
        repository.load_days(rebuild_start, end_date),
        thresholds,
        first_weekday,
        previous_recovery=previous.avg_recovery if previous else None,
    )
    return repository.save_weekly_rows(rows, first_weekday)


async def run_sync(
    db: Session,
    days: int | None = None,
    settings: Settings | None = None,
    today: date | None = None,
    oura_factory: ClientFactory = OuraClient,
    whoop_factory: ClientFactory = WhoopClient,
) -> SyncResult:
    """
    Fetch, aggregate and persist ``days`` days of data.

    Every provider gets a sync log entry. A provider whose fetch failed is
    logged with status ``error`` and the other provider's data is still
    saved.
    """
    settings = settings or get_settings()
    start_date, end_date = sync_window(days or settings.sync_days, today)
    repository = HealthRepository(db)
    thresholds = get_thresholds()
    first_weekday = first_weekday_for(settings.week_start)

    logger.info("Syncing %s..%s", start_date, end_date)
    log_entries = {
        provider: repository.start_sync(provider, start_date, end_date)
        for provider in ("oura", "whoop")
    }

    data = await fetch_provider_data(
        TokenStore(db, settings),
        start_date,
        end_date,
        oura_factory=oura_factory,
        whoop_factory=whoop_factory,
    )

    days_list = aggregate_daily(data.ring, data.band, start_date, end_date, thresholds)
    lookups = build_lookups(data.ring, data.band)
    days_synced = repository.save_daily_records(days_list, lookups)

    weeks_synced = 0
    if data.has_data:
        weeks_synced = rebuild_weekly_rollups(repository, start_date, end_date, thresholds, first_weekday)

    for provider, entry in log_entries.items():
        if provider in data.errors:
            repository.finish_sync(entry, "error", 0, data.errors[provider])
        elif data.sources[provider]:
            repository.finish_sync(entry, "success", days_synced)
        else:
            repository.finish_sync(entry, "skipped", 0, "not connected or no data")

    logger.info(
        "Sync complete: %d day(s), %d week(s) saved (oura=%s, whoop=%s)",
        days_synced,
        weeks_synced,
        data.sources["oura"],
        data.sources["whoop"],
    )
    return SyncResult(
        start_date=start_date,
        end_date=end_date,
        days_synced=days_synced,
        weeks_synced=weeks_synced,
        sources=data.sources,
        errors=data.errors,
    )

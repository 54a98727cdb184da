"""Central logging configuration for the zone tracker."""
from __future__ import annotations

import hashlib
from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from zonetracker.config import get_settings

_configured = False

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("urllib3", "apscheduler.executors.default", "httpx")


def _default_config(log_dir: Path, level: str) -> dict:
    log_path = log_dir / "app.log"
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": fmt,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_path),
                "encoding": "utf-8",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
    }


def token_fingerprint(token: str | None) -> str:
    """Short stable digest that identifies a credential in logs without exposing it."""

    if not token:
        return "none"
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:10]


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir = settings.log_dir
        level = settings.log_level
    except ValidationError:
        # A malformed .env should still leave us with usable logs.
        log_dir = Path("logs")
        level = "INFO"
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(_default_config(log_dir, level))
    _configured = True

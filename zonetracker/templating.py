"""Jinja2 environment shared by the dashboard and the OAuth pages."""
from pathlib import Path

from fastapi.templating import Jinja2Templates

from zonetracker.models.records import Zone


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def zone_label(value: str) -> str:
    """``"GOLDEN_ANCHOR"`` -> ``"Golden Anchor"``; unknown values (e.g. ``"-"``) pass through."""
    try:
        return Zone(value).label
    except ValueError:
        return value


templates.env.filters["zone_label"] = zone_label
templates.env.globals["zones"] = list(Zone)

"""Render stored countdowns against an explicit instant."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from . import engine
from .models import CountdownEntity


def format_target_date(target: datetime, include_time: bool) -> str:
    """Medium date style ("Jan 31, 2025"), with " at HH:MM" when the time of day matters."""
    dt = engine.as_utc(target)
    text = f"{dt:%b} {dt.day}, {dt.year}"
    if include_time:
        text += f" at {dt:%H:%M}"
    return text


# PUBLIC_INTERFACE
def build_status(
    entity: CountdownEntity,
    now: datetime,
    units: Optional[Iterable[engine.UnitLike]] = None,
) -> Dict[str, Any]:
    """
    Compute the status document for ``entity`` at ``now``.

    Returns a dict matching schemas.CountdownStatusOut.

    Raises:
        ValueError: if ``units`` names an unknown unit.
    """
    now = engine.as_utc(now)
    target = entity["target_date"]
    b = engine.breakdown(now, target)
    biggest = engine.biggest_unit(b)
    fraction = engine.progress(entity["counting_since"], target, now)

    return {
        **entity,
        "now": now,
        "breakdown": b.as_dict(),
        "time_remaining": engine.format_remaining(now, target, units),
        "short_label": engine.biggest_unit_short_label(b),
        "biggest_unit": (
            None
            if biggest is None
            else {"value": biggest.value, "unit": biggest.unit, "is_past": biggest.is_past}
        ),
        "is_past": engine.as_utc(target) < now,
        "progress": fraction,
        "progress_percent": f"{fraction * 100:.2f}",
        "formatted_date": format_target_date(target, entity["include_time"]),
    }

"""Widget timeline generation."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .engine import as_utc
from .models import CountdownEntity
from .repositories import Repository
from .status import build_status

logger = logging.getLogger(__name__)

EMPTY_CAPTION = "No countdowns to display"


def _select(repo: Repository, at: datetime, pinned_id: Optional[int]) -> Optional[CountdownEntity]:
    if pinned_id is not None:
        pinned = repo.get(pinned_id)
        if pinned is not None:
            return pinned
        logger.warning("Pinned countdown %d not found, falling back to next upcoming", pinned_id)
    return repo.next_upcoming(at)


def caption_for(status: Optional[Dict[str, Any]], show_progress: bool) -> str:
    """Single-line widget caption, e.g. "3 days, 2 hours (40%)"."""
    if status is None:
        return EMPTY_CAPTION
    text = status["time_remaining"]
    if show_progress:
        text += f" ({int(status['progress'] * 100)}%)"
    return text


# PUBLIC_INTERFACE
def build_timeline(
    repo: Repository,
    now: datetime,
    entry_count: int = 5,
    interval_minutes: int = 60,
    pinned_id: Optional[int] = None,
    show_progress: bool = True,
) -> List[Dict[str, Any]]:
    """
    Build ``entry_count`` widget entries spaced ``interval_minutes`` apart starting at ``now``.

    Each entry renders the pinned countdown, or the next upcoming one as of
    that entry's date when nothing is pinned or the pin no longer exists.
    """
    start = as_utc(now)
    entries: List[Dict[str, Any]] = []
    for offset in range(max(entry_count, 1)):
        at = start + timedelta(minutes=offset * interval_minutes)
        entity = _select(repo, at, pinned_id)
        status = build_status(entity, at) if entity is not None else None
        entries.append(
            {
                "date": at,
                "countdown": status,
                "show_progress": show_progress,
                "caption": caption_for(status, show_progress),
            }
        )
    return entries

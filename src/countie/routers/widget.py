from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..repositories import Repository, get_repository
from ..schemas import TimelineOut
from ..settings import get_settings
from ..timeline import build_timeline
from ..utils import resolve_now

router = APIRouter(
    prefix="/api/v1/widget",
    tags=["widget"],
)


# PUBLIC_INTERFACE
@router.get(
    "/timeline",
    response_model=TimelineOut,
    summary="Widget Timeline",
    description=(
        "Entries for a home-screen widget, spaced TIMELINE_INTERVAL_MINUTES apart starting at `now`. "
        "Each entry shows the pinned countdown, or the next upcoming one when none is pinned."
    ),
)
def get_timeline(
    countdown_id: Optional[int] = Query(None, description="Pinned countdown to display"),
    now: Optional[datetime] = Query(None, description="First entry date; defaults to the current time"),
    show_progress: bool = Query(True, description="Append the progress percentage to captions"),
    repo: Repository = Depends(get_repository),
) -> TimelineOut:
    settings = get_settings()
    entries = build_timeline(
        repo,
        resolve_now(now),
        entry_count=settings.timeline_entry_count,
        interval_minutes=settings.timeline_interval_minutes,
        pinned_id=countdown_id,
        show_progress=show_progress,
    )
    return TimelineOut(entries=entries)

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..repositories import ListQuery, Repository, get_repository
from ..schemas import CountdownCreate, CountdownOut, CountdownStatusOut, CountdownUpdate
from ..status import build_status
from ..utils import pagination_envelope, resolve_now

router = APIRouter(
    prefix="/api/v1/countdowns",
    tags=["countdowns"],
)

NOT_FOUND = "Countdown not found"


class PaginationEnvelope(BaseModel):
    """
    Envelope for paginated list responses.
    """
    items: List[CountdownOut] = Field(..., description="List of countdowns")
    total: int = Field(..., description="Total number of items matching the query")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=CountdownOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Countdown",
    description="Create a new countdown and return the created resource.",
    responses={
        201: {"description": "Countdown created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_countdown(payload: CountdownCreate, repo: Repository = Depends(_get_repo)) -> CountdownOut:
    """
    Create a new countdown. counting_since defaults to the creation time.
    """
    created = repo.create(payload)
    return CountdownOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="List Countdowns",
    description=(
        "List countdowns ordered by target date.\n\n"
        "Query parameters:\n"
        "- limit: max number of items to return (0..1000)\n"
        "- offset: number of items to skip (>=0)\n"
        "- upcoming: only countdowns whose target date is at or after `now`\n"
        "- q: search query for the name (substring match)\n"
        "- order: asc (default) or desc by target date\n"
        "- now: reference instant for `upcoming` (defaults to the current time)"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_countdowns(
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    upcoming: bool = Query(False, description="Hide countdowns whose target date has passed"),
    q: Optional[str] = Query(None, description="Search text for the name"),
    order: Optional[str] = Query(None, description="Sort direction by target date: 'asc' or 'desc'"),
    now: Optional[datetime] = Query(None, description="Reference instant; defaults to the current time"),
    repo: Repository = Depends(_get_repo),
) -> PaginationEnvelope:
    """
    List countdowns with pagination and filters.
    """
    ord_norm = (order or "asc").strip().lower()
    if ord_norm not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="order must be 'asc' or 'desc'")

    query = ListQuery(
        limit=limit,
        offset=offset,
        upcoming_only=upcoming,
        now=resolve_now(now),
        search=q.strip() if q else None,
        order=ord_norm,
    )
    items, total = repo.list(query)
    envelope = pagination_envelope(
        items=[CountdownOut(**it) for it in items],
        total=total,
        limit=limit,
        offset=offset,
    )
    return PaginationEnvelope(**envelope)


# PUBLIC_INTERFACE
@router.get(
    "/next",
    response_model=CountdownStatusOut,
    summary="Next Upcoming Countdown",
    description="Status of the countdown with the earliest target date at or after `now`.",
    responses={
        200: {"description": "Next countdown found"},
        404: {"description": "No upcoming countdown"},
    },
)
def next_countdown(
    now: Optional[datetime] = Query(None, description="Reference instant; defaults to the current time"),
    repo: Repository = Depends(_get_repo),
) -> CountdownStatusOut:
    at = resolve_now(now)
    item = repo.next_upcoming(at)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No upcoming countdown")
    return CountdownStatusOut(**build_status(item, at))


# PUBLIC_INTERFACE
@router.get(
    "/{countdown_id}",
    response_model=CountdownOut,
    summary="Get Countdown",
    description="Get a single countdown by ID.",
    responses={
        200: {"description": "Countdown found"},
        404: {"description": "Countdown not found"},
    },
)
def get_countdown(countdown_id: int, repo: Repository = Depends(_get_repo)) -> CountdownOut:
    item = repo.get(countdown_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return CountdownOut(**item)


# PUBLIC_INTERFACE
@router.get(
    "/{countdown_id}/status",
    response_model=CountdownStatusOut,
    summary="Countdown Status",
    description=(
        "Remaining time, biggest-unit label and progress of a countdown at `now`.\n\n"
        "`units` may be repeated to restrict the remaining-time string "
        "(year, month, day, hour, minute); defaults to year, month, day, hour."
    ),
    responses={
        200: {"description": "Status computed"},
        400: {"description": "Unknown unit"},
        404: {"description": "Countdown not found"},
    },
)
def get_countdown_status(
    countdown_id: int,
    now: Optional[datetime] = Query(None, description="Reference instant; defaults to the current time"),
    units: Optional[List[str]] = Query(None, description="Units allowed in the remaining-time string"),
    repo: Repository = Depends(_get_repo),
) -> CountdownStatusOut:
    item = repo.get(countdown_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    try:
        rendered = build_status(item, resolve_now(now), units)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return CountdownStatusOut(**rendered)


# PUBLIC_INTERFACE
@router.put(
    "/{countdown_id}",
    response_model=CountdownOut,
    summary="Replace Countdown",
    description=(
        "Replace an existing countdown. Omitted optional fields are cleared; "
        "counting_since is kept unless provided."
    ),
    responses={
        200: {"description": "Countdown updated"},
        404: {"description": "Countdown not found"},
    },
)
def put_countdown(countdown_id: int, payload: CountdownCreate, repo: Repository = Depends(_get_repo)) -> CountdownOut:
    """
    Full update (replace) semantics implemented via the partial-update capable repository by
    mapping CountdownCreate into CountdownUpdate fields.
    """
    update = CountdownUpdate(
        name=payload.name,
        emoji=payload.emoji,
        target_date=payload.target_date,
        include_time=payload.include_time,
        counting_since=payload.counting_since,
        calendar_event_identifier=payload.calendar_event_identifier,
    )
    updated = repo.update(countdown_id, update)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return CountdownOut(**updated)


# PUBLIC_INTERFACE
@router.patch(
    "/{countdown_id}",
    response_model=CountdownOut,
    summary="Update Countdown",
    description="Partially update fields of a countdown.",
    responses={
        200: {"description": "Countdown updated"},
        404: {"description": "Countdown not found"},
    },
)
def patch_countdown(countdown_id: int, payload: CountdownUpdate, repo: Repository = Depends(_get_repo)) -> CountdownOut:
    updated = repo.update(countdown_id, payload)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return CountdownOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{countdown_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Countdown",
    description="Delete a countdown by ID.",
    responses={
        204: {"description": "Countdown deleted"},
        404: {"description": "Countdown not found"},
    },
)
def delete_countdown(countdown_id: int, repo: Repository = Depends(_get_repo)) -> None:
    """
    Delete a countdown. Returns 204 on success, 404 if not found.
    """
    if not repo.delete(countdown_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return None

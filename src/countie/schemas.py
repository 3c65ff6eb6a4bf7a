from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .engine import TimeUnit, as_utc

# Shared type for incoming instants which can be a date, datetime, or ISO8601 string
InstantInput = Union[date, datetime, str]


def _parse_instant(value: Optional[InstantInput]) -> Optional[datetime]:
    """
    Internal helper to normalize instant input into an aware UTC datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - Naive datetimes are taken to be UTC.
    """
    if value is None:
        return None

    if isinstance(value, (date, datetime)):
        return as_utc(value)

    if isinstance(value, str):
        s = value.strip()
        # Python < 3.11 fromisoformat does not accept a trailing 'Z'
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(s))
        except ValueError:
            try:
                return as_utc(date.fromisoformat(s))
            except ValueError as e:
                raise ValueError(
                    "Invalid date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00Z')."
                ) from e

    raise ValueError("Invalid type for date; expected date, datetime, or ISO8601 string.")


def _clean_name(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("name length must be between 1 and 200 characters")
    return s


MAX_EMOJI_CHARS = 16


def _clean_emoji(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = v.strip()
    if len(s) > MAX_EMOJI_CHARS:
        raise ValueError(f"emoji must be at most {MAX_EMOJI_CHARS} characters")
    return s or None


# PUBLIC_INTERFACE
class CountdownCreate(BaseModel):
    """
    Schema for creating a new countdown.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Summer holiday",
                "emoji": "🏖️",
                "target_date": "2025-07-01",
                "include_time": False,
            }
        }
    )

    name: str = Field(..., description="Display label for the countdown", min_length=1, max_length=200)
    emoji: Optional[str] = Field(default=None, description="Optional decorative emoji")
    target_date: datetime = Field(
        ...,
        description="Instant to count toward. Accepts ISO8601 date or datetime; dates are set to 00:00 UTC",
    )
    include_time: bool = Field(default=False, description="Whether the time of day is meaningful for display")
    counting_since: Optional[datetime] = Field(
        default=None,
        description="Instant progress is measured from. Defaults to the creation time",
    )
    calendar_event_identifier: Optional[str] = Field(
        default=None, description="Identifier of the calendar event this countdown was imported from"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_name(v)

    @field_validator("emoji")
    @classmethod
    def validate_emoji(cls, v: Optional[str]) -> Optional[str]:
        return _clean_emoji(v)

    @field_validator("target_date", "counting_since", mode="before")
    @classmethod
    def parse_dates(cls, v: Optional[InstantInput]) -> Optional[datetime]:
        return _parse_instant(v)


# PUBLIC_INTERFACE
class CountdownUpdate(BaseModel):
    """
    Schema for updating an existing countdown.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Summer holiday in Lisbon",
                "target_date": "2025-07-01T09:30:00Z",
                "include_time": True,
            }
        }
    )

    name: Optional[str] = Field(default=None, description="Display label for the countdown", min_length=1, max_length=200)
    emoji: Optional[str] = Field(default=None, description="Optional decorative emoji")
    target_date: Optional[datetime] = Field(default=None, description="Instant to count toward")
    include_time: Optional[bool] = Field(default=None, description="Whether the time of day is meaningful for display")
    counting_since: Optional[datetime] = Field(default=None, description="Instant progress is measured from")
    calendar_event_identifier: Optional[str] = Field(
        default=None, description="Identifier of the calendar event this countdown was imported from"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        """
        If name is provided, strip whitespace and enforce 1..200 length.
        """
        if v is None:
            return v
        return _clean_name(v)

    @field_validator("emoji")
    @classmethod
    def validate_emoji(cls, v: Optional[str]) -> Optional[str]:
        return _clean_emoji(v)

    @field_validator("target_date", "counting_since", mode="before")
    @classmethod
    def parse_dates(cls, v: Optional[InstantInput]) -> Optional[datetime]:
        return _parse_instant(v)


# PUBLIC_INTERFACE
class CountdownOut(BaseModel):
    """
    Schema returned by the API for a stored countdown.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 7,
                "name": "Summer holiday",
                "emoji": "🏖️",
                "target_date": "2025-07-01T00:00:00Z",
                "include_time": False,
                "counting_since": "2025-01-25T10:15:30Z",
                "calendar_event_identifier": None,
                "created_at": "2025-01-25T10:15:30Z",
                "updated_at": "2025-01-26T09:00:00Z",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the countdown")
    name: str = Field(..., description="Display label")
    emoji: Optional[str] = Field(default=None, description="Optional decorative emoji")
    target_date: datetime = Field(..., description="Instant counted toward")
    include_time: bool = Field(..., description="Whether the time of day is meaningful for display")
    counting_since: datetime = Field(..., description="Instant progress is measured from")
    calendar_event_identifier: Optional[str] = Field(default=None, description="Imported calendar event id")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class BreakdownOut(BaseModel):
    years: int
    months: int
    days: int
    hours: int
    minutes: int


class BiggestUnitOut(BaseModel):
    value: int = Field(..., description="Signed value of the most significant non-zero unit")
    unit: TimeUnit
    is_past: bool


# PUBLIC_INTERFACE
class CountdownStatusOut(CountdownOut):
    """
    A countdown rendered against a given instant.
    """

    now: datetime = Field(..., description="Instant the status was computed for")
    breakdown: BreakdownOut
    time_remaining: str = Field(..., description="Full-word remaining time, e.g. '3 days, 2 hours' or '1 day ago'")
    short_label: str = Field(..., description="Biggest-unit token, e.g. '3d', '2h ago' or '?'")
    biggest_unit: Optional[BiggestUnitOut] = None
    is_past: bool
    progress: float = Field(..., ge=0.0, le=1.0, description="Raw completion fraction")
    progress_percent: str = Field(..., description="Completion percentage with two decimals, e.g. '23.34'")
    formatted_date: str = Field(..., description="Medium-style target date, with time when include_time is set")


class TimelineEntryOut(BaseModel):
    date: datetime
    countdown: Optional[CountdownStatusOut] = None
    show_progress: bool
    caption: str


# PUBLIC_INTERFACE
class TimelineOut(BaseModel):
    """
    Widget timeline: entries spaced at a fixed interval starting from ``now``.
    """

    entries: List[TimelineEntryOut]

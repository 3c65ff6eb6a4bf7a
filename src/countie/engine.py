"""
Countdown temporal model and progress engine.

Pure functions over instants. Nothing here reads the clock: every function
takes the instants it needs, including ``now``, as explicit arguments.
Naive datetimes are interpreted as UTC and all calendar arithmetic runs in UTC.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, Iterable, Optional, Union

from dateutil.relativedelta import relativedelta


# PUBLIC_INTERFACE
class TimeUnit(str, Enum):
    """Calendar units surfaced by the engine, in descending significance."""

    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"


UNIT_ORDER = (TimeUnit.YEAR, TimeUnit.MONTH, TimeUnit.DAY, TimeUnit.HOUR, TimeUnit.MINUTE)
DEFAULT_UNITS = frozenset({TimeUnit.YEAR, TimeUnit.MONTH, TimeUnit.DAY, TimeUnit.HOUR})

_SHORT_LETTERS = {TimeUnit.YEAR: "y", TimeUnit.MONTH: "m", TimeUnit.DAY: "d"}
_FIXED_SECONDS = ((TimeUnit.DAY, 86400), (TimeUnit.HOUR, 3600), (TimeUnit.MINUTE, 60))

UnitLike = Union[TimeUnit, str]


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TemporalBreakdown:
    """
    Calendar-aware signed difference ``to - from`` split into units.

    All non-zero components share one sign: negative when the target lies
    before the reference instant.
    """

    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0

    def value(self, unit: TimeUnit) -> int:
        return getattr(self, unit.value + "s")

    def as_dict(self) -> Dict[str, int]:
        return {
            "years": self.years,
            "months": self.months,
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
        }


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class BiggestUnit:
    """Most significant non-zero component of a breakdown."""

    value: int
    unit: TimeUnit

    @property
    def is_past(self) -> bool:
        return self.value < 0


def as_utc(value: Union[date, datetime]) -> datetime:
    """
    Normalize an instant to an aware UTC datetime.

    - naive datetimes are taken to be UTC
    - aware datetimes are converted to UTC
    - plain dates become midnight UTC
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_units(units: Optional[Iterable[UnitLike]]) -> frozenset:
    """
    Coerce unit names or TimeUnit members into a frozenset of TimeUnit.

    Raises ValueError for unknown names. None or an empty iterable yields
    the default unit set.
    """
    if units is None:
        return DEFAULT_UNITS
    parsed = set()
    for u in units:
        if isinstance(u, TimeUnit):
            parsed.add(u)
            continue
        name = str(u).strip().lower()
        if name.endswith("s"):
            name = name[:-1]
        try:
            parsed.add(TimeUnit(name))
        except ValueError as e:
            raise ValueError(
                f"Unknown time unit {u!r}; expected one of: {', '.join(t.value for t in UNIT_ORDER)}"
            ) from e
    return frozenset(parsed) if parsed else DEFAULT_UNITS


# PUBLIC_INTERFACE
def breakdown(from_: datetime, to: datetime) -> TemporalBreakdown:
    """
    Return the calendar-aware difference from ``from_`` to ``to``.

    Months and years follow the calendar (variable month length, leap years)
    rather than fixed durations. Seconds are dropped.
    """
    delta = relativedelta(as_utc(to), as_utc(from_))
    return TemporalBreakdown(
        years=delta.years,
        months=delta.months,
        days=delta.days,
        hours=delta.hours,
        minutes=delta.minutes,
    )


# PUBLIC_INTERFACE
def progress(counting_since: datetime, target_date: datetime, now: datetime) -> float:
    """
    Fraction of the interval [counting_since, target_date] that has elapsed at ``now``.

    A target at or before the counting start is treated as complete (1.0).
    The result is clamped to [0.0, 1.0].
    """
    since = as_utc(counting_since)
    total = (as_utc(target_date) - since).total_seconds()
    if total <= 0:
        return 1.0
    elapsed = (as_utc(now) - since).total_seconds()
    return min(max(elapsed / total, 0.0), 1.0)


# PUBLIC_INTERFACE
def biggest_unit(b: TemporalBreakdown) -> Optional[BiggestUnit]:
    """Return the first non-zero component from years down to minutes, or None."""
    for unit in UNIT_ORDER:
        v = b.value(unit)
        if v != 0:
            return BiggestUnit(value=v, unit=unit)
    return None


def _with_suffix(text: str, negative: bool) -> str:
    return f"{text} ago" if negative else text


# PUBLIC_INTERFACE
def biggest_unit_short_label(b: TemporalBreakdown) -> str:
    """
    Short token for the biggest unit, e.g. "2y", "3d", "2h ago".

    Differences below a day are expressed in hours, rounding leftover
    minutes up away from zero. Returns "?" when less than a minute remains.
    """
    for unit in (TimeUnit.YEAR, TimeUnit.MONTH, TimeUnit.DAY):
        v = b.value(unit)
        if v != 0:
            return _with_suffix(f"{abs(v)}{_SHORT_LETTERS[unit]}", v < 0)

    hours = b.hours
    minutes = b.minutes
    if hours == 0 and minutes != 0:
        hours = 1 if minutes > 0 else -1
    elif hours != 0 and minutes != 0 and (hours > 0) == (minutes > 0):
        hours += 1 if hours > 0 else -1

    if hours == 0:
        return "?"
    return _with_suffix(f"{abs(hours)}h", hours < 0)


def _restricted(from_: datetime, to: datetime, allowed: frozenset) -> Dict[TimeUnit, int]:
    """
    Split ``to - from_`` over the allowed units only.

    Disallowed calendar units fold into the next smaller allowed unit;
    remainders below the smallest allowed unit are truncated.
    """
    delta = relativedelta(to, from_)
    total_months = delta.years * 12 + delta.months
    values: Dict[TimeUnit, int] = {}

    consumed = 0
    if TimeUnit.YEAR in allowed:
        # int() truncates toward zero so the sign follows total_months
        years = int(total_months / 12)
        values[TimeUnit.YEAR] = years
        consumed += years * 12
    if TimeUnit.MONTH in allowed:
        values[TimeUnit.MONTH] = total_months - consumed
        consumed = total_months

    remainder = to - (from_ + relativedelta(months=consumed))
    seconds = int(remainder.total_seconds())
    sign = -1 if seconds < 0 else 1
    seconds = abs(seconds)
    for unit, length in _FIXED_SECONDS:
        if unit in allowed:
            values[unit] = sign * (seconds // length)
            seconds %= length
    return values


def _plural(value: int, unit: TimeUnit) -> str:
    return f"{value} {unit.value}" if value == 1 else f"{value} {unit.value}s"


# PUBLIC_INTERFACE
def format_remaining(
    from_: datetime,
    to: datetime,
    allowed_units: Optional[Iterable[UnitLike]] = None,
) -> str:
    """
    Full-word rendering of the time between ``from_`` and ``to``.

    Returns "Now" when the breakdown has neither days nor hours. Otherwise
    lists the non-zero allowed units largest first ("2 years, 3 months").
    Past targets are rendered by magnitude with an " ago" suffix.

    Raises:
        ValueError: if ``allowed_units`` names an unknown unit.
    """
    start = as_utc(from_)
    end = as_utc(to)
    allowed = parse_units(allowed_units)

    full = breakdown(start, end)
    if full.days == 0 and full.hours == 0:
        return "Now"

    values = _restricted(start, end, allowed)
    negative = any(v < 0 for v in values.values())
    parts = [_plural(abs(values[u]), u) for u in UNIT_ORDER if values.get(u)]
    if not parts:
        smallest = [u for u in UNIT_ORDER if u in allowed][-1]
        parts = [_plural(0, smallest)]
    return _with_suffix(", ".join(parts), negative)

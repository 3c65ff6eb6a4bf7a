from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import Iterable, List, Optional, Tuple

from .engine import as_utc
from .models import CountdownEntity
from .schemas import CountdownCreate, CountdownUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)

# Fields that may be explicitly cleared with null on update
NULLABLE_FIELDS = ("emoji", "calendar_event_identifier")


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing countdowns.
    """
    limit: int = 50
    offset: int = 0
    upcoming_only: bool = False
    now: Optional[datetime] = None  # reference instant for upcoming_only
    search: Optional[str] = None
    order: str = "asc"  # by target_date: asc or desc


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def apply_update(current: CountdownEntity, data: CountdownUpdate, now: datetime) -> CountdownEntity:
    """
    Return a copy of ``current`` with the fields provided in ``data`` applied.

    Non-nullable fields ignore an explicit null; nullable ones are cleared by it.
    """
    updated = current.copy()
    provided = data.model_fields_set
    for field in ("name", "target_date", "include_time", "counting_since"):
        value = getattr(data, field)
        if field in provided and value is not None:
            updated[field] = value  # type: ignore[literal-required]
    for field in NULLABLE_FIELDS:
        if field in provided:
            updated[field] = getattr(data, field)  # type: ignore[literal-required]
    updated["updated_at"] = now
    return updated


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for countdown storage backends."""

    @abstractmethod
    def create(self, data: CountdownCreate) -> CountdownEntity:
        """Create and return a new CountdownEntity. counting_since defaults to the creation time."""

    @abstractmethod
    def get(self, countdown_id: int) -> Optional[CountdownEntity]:
        """Return a CountdownEntity by id, or None if not found."""

    @abstractmethod
    def update(self, countdown_id: int, data: CountdownUpdate) -> Optional[CountdownEntity]:
        """Update fields of an existing CountdownEntity. Return updated entity or None if not found."""

    @abstractmethod
    def delete(self, countdown_id: int) -> bool:
        """Delete a CountdownEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[CountdownEntity], int]:
        """
        Return a slice of CountdownEntities and total count matching filters.
        - Supports limit/offset
        - upcoming_only keeps records whose target_date >= query.now
        - Substring search on name (case-insensitive)
        - Ordered by target_date (asc/desc), ties broken by id
        """

    def next_upcoming(self, now: datetime) -> Optional[CountdownEntity]:
        """
        Return the record with the earliest target_date at or after ``now``, or None.
        """
        items, _ = self.list(ListQuery(limit=1, upcoming_only=True, now=now, order="asc"))
        return items[0] if items else None


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, CountdownEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return utcnow()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def create(self, data: CountdownCreate) -> CountdownEntity:
        now = self._now()
        entity: CountdownEntity = {
            "id": self._allocate_id(),
            "name": data.name,
            "emoji": data.emoji,
            "target_date": data.target_date,
            "include_time": data.include_time,
            "counting_since": data.counting_since or now,
            "calendar_event_identifier": data.calendar_event_identifier,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        logger.info("Created countdown %d (%s)", entity["id"], entity["name"])
        return entity.copy()

    def get(self, countdown_id: int) -> Optional[CountdownEntity]:
        with self._lock:
            item = self._items.get(countdown_id)
            return None if item is None else item.copy()

    def update(self, countdown_id: int, data: CountdownUpdate) -> Optional[CountdownEntity]:
        with self._lock:
            existing = self._items.get(countdown_id)
            if existing is None:
                return None
            updated = apply_update(existing, data, self._now())
            self._items[countdown_id] = updated
            return updated.copy()

    def delete(self, countdown_id: int) -> bool:
        with self._lock:
            deleted = self._items.pop(countdown_id, None) is not None
        if deleted:
            logger.info("Deleted countdown %d", countdown_id)
        return deleted

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[CountdownEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items: Iterable[CountdownEntity] = list(self._items.values())

            if q.upcoming_only:
                ref = as_utc(q.now) if q.now else self._now()
                items = [c for c in items if c["target_date"] >= ref]

            if q.search:
                s = q.search.lower()
                items = [c for c in items if s in c["name"].lower()]

            items = list(items)
            total = len(items)

            reverse = q.order.strip().lower() == "desc"
            items_sorted = sorted(items, key=lambda c: (c["target_date"], c["id"]), reverse=reverse)

            start = max(q.offset, 0)
            end = start + max(q.limit, 0)
            page = items_sorted[start:end]

            logger.debug("Listed %d of %d countdowns (%s)", len(page), total, q)
            # Return copies to avoid external mutation
            return [c.copy() for c in page], total


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository configured by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using SQLite repository at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory repository")
    return InMemoryRepository()

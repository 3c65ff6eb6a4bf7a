from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional, Tuple

from .engine import as_utc
from .models import CountdownEntity
from .repositories import ListQuery, Repository, apply_update, utcnow
from .schemas import CountdownCreate, CountdownUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "countdowns"
    id: str = "id"
    name: str = "name"
    emoji: str = "emoji"
    target_date: str = "target_date"
    include_time: str = "include_time"
    counting_since: str = "counting_since"
    calendar_event_identifier: str = "calendar_event_identifier"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


def _to_db(dt: datetime) -> str:
    # Fixed-width UTC text so lexical order in SQL matches chronological order
    return as_utc(dt).isoformat(timespec="microseconds")


def _from_db(s: str) -> datetime:
    return as_utc(datetime.fromisoformat(s))


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        # Unicode case folding identical to InMemoryRepository; SQLite lower() is ASCII-only
        conn.create_function("py_lower", 1, str.lower, deterministic=True)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.name} TEXT NOT NULL,
                    {_COLS.emoji} TEXT NULL,
                    {_COLS.target_date} TEXT NOT NULL,
                    {_COLS.include_time} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.counting_since} TEXT NOT NULL,
                    {_COLS.calendar_event_identifier} TEXT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_target_date ON {_COLS.table}({_COLS.target_date})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> CountdownEntity:
        return {
            "id": int(row[_COLS.id]),
            "name": str(row[_COLS.name]),
            "emoji": row[_COLS.emoji],
            "target_date": _from_db(row[_COLS.target_date]),
            "include_time": bool(row[_COLS.include_time]),
            "counting_since": _from_db(row[_COLS.counting_since]),
            "calendar_event_identifier": row[_COLS.calendar_event_identifier],
            "created_at": _from_db(row[_COLS.created_at]),
            "updated_at": _from_db(row[_COLS.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, countdown_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (countdown_id,)).fetchone()

    def create(self, data: CountdownCreate) -> CountdownEntity:
        now = utcnow()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.name}, {_COLS.emoji}, {_COLS.target_date},
                    {_COLS.include_time}, {_COLS.counting_since}, {_COLS.calendar_event_identifier},
                    {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.name,
                    data.emoji,
                    _to_db(data.target_date),
                    1 if data.include_time else 0,
                    _to_db(data.counting_since or now),
                    data.calendar_event_identifier,
                    _to_db(now),
                    _to_db(now),
                ),
            )
            row = self._fetch(conn, cur.lastrowid)
            assert row is not None
            entity = self._row_to_entity(row)
        logger.info("Created countdown %d (%s)", entity["id"], entity["name"])
        return entity

    def get(self, countdown_id: int) -> Optional[CountdownEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, countdown_id)
            return self._row_to_entity(row) if row else None

    def update(self, countdown_id: int, data: CountdownUpdate) -> Optional[CountdownEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, countdown_id)
            if not row:
                return None
            updated = apply_update(self._row_to_entity(row), data, utcnow())
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.name} = ?, {_COLS.emoji} = ?, {_COLS.target_date} = ?,
                    {_COLS.include_time} = ?, {_COLS.counting_since} = ?,
                    {_COLS.calendar_event_identifier} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    updated["name"],
                    updated["emoji"],
                    _to_db(updated["target_date"]),
                    1 if updated["include_time"] else 0,
                    _to_db(updated["counting_since"]),
                    updated["calendar_event_identifier"],
                    _to_db(updated["updated_at"]),
                    countdown_id,
                ),
            )
            row2 = self._fetch(conn, countdown_id)
            assert row2 is not None
            return self._row_to_entity(row2)

    def delete(self, countdown_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (countdown_id,))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted countdown %d", countdown_id)
        return deleted

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[CountdownEntity], int]:
        q = query or ListQuery()
        clauses = []
        params: list = []

        if q.upcoming_only:
            clauses.append(f"{_COLS.target_date} >= ?")
            params.append(_to_db(q.now or utcnow()))

        if q.search:
            # instr() takes the text literally, unlike LIKE wildcards
            clauses.append(f"instr(py_lower({_COLS.name}), ?) > 0")
            params.append(q.search.lower())

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if q.order.strip().lower() == "desc" else "ASC"
        order_sql = f"ORDER BY {_COLS.target_date} {direction}, {_COLS.id} {direction}"

        with self._conn() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) as cnt FROM {_COLS.table} {where_sql}", params
            ).fetchone()
            total = int(count_row["cnt"]) if count_row else 0

            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                {where_sql}
                {order_sql}
                LIMIT ? OFFSET ?
                """,
                [*params, max(q.limit, 0), max(q.offset, 0)],
            ).fetchall()
            logger.debug("Listed %d of %d countdowns (%s)", len(rows), total, q)
            return [self._row_to_entity(r) for r in rows], total

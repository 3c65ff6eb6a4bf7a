from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from .engine import as_utc
from .repositories import utcnow


# PUBLIC_INTERFACE
def pagination_envelope(items: Iterable[Any], total: int, limit: int, offset: int) -> Dict[str, Any]:
    """
    Build a standard pagination envelope for list endpoints.

    Returns:
        Dict with keys: items, total, limit, offset.
    """
    return {
        "items": list(items),
        "total": int(total),
        "limit": int(max(limit, 0)),
        "offset": int(max(offset, 0)),
    }


# PUBLIC_INTERFACE
def resolve_now(now: Optional[datetime]) -> datetime:
    """Return the caller-supplied instant in UTC, or the current time when omitted."""
    return utcnow() if now is None else as_utc(now)

from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class CountdownEntity(TypedDict):
    """
    A lightweight domain model representing a stored countdown record.

    Fields:
    - id: Unique integer identifier
    - name: Display label (1..200 chars, trimmed on input via schemas)
    - emoji: Optional short decorative token
    - target_date: Instant the countdown counts toward (aware UTC)
    - include_time: Whether the time of day of target_date is shown
    - counting_since: Instant progress is measured from (aware UTC)
    - calendar_event_identifier: Optional id of an imported calendar event
    - created_at: Creation timestamp (aware UTC)
    - updated_at: Last update timestamp (aware UTC)
    """

    id: int
    name: str
    emoji: Optional[str]
    target_date: datetime
    include_time: bool
    counting_since: datetime
    calendar_event_identifier: Optional[str]
    created_at: datetime
    updated_at: datetime

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, TypedDict
from uuid import UUID, uuid4


# PUBLIC_INTERFACE
class EventEntity(TypedDict):
    """
    A single calendar event as held by the in-memory cache.

    Fields:
    - id: Unique identifier assigned at creation, never changed afterwards
    - title: Short title (non-empty in practice, but the store tolerates empty)
    - date: Naive local wall-clock datetime of the event
    - notes: Free text, may be empty
    - is_completed: Completion flag
    """

    id: UUID
    title: str
    date: datetime
    notes: str
    is_completed: bool


# PUBLIC_INTERFACE
def new_event(
    title: str,
    date: datetime,
    notes: str = "",
    is_completed: bool = False,
    event_id: Optional[UUID] = None,
) -> EventEntity:
    """Build an event with a freshly assigned identifier."""
    return {
        "id": event_id or uuid4(),
        "title": title,
        "date": date,
        "notes": notes,
        "is_completed": is_completed,
    }


def create_for_today(title: str, notes: str = "", now: Optional[datetime] = None) -> EventEntity:
    return new_event(title, now or datetime.now(), notes)


def create_for_tomorrow(title: str, notes: str = "", now: Optional[datetime] = None) -> EventEntity:
    return new_event(title, (now or datetime.now()) + timedelta(days=1), notes)


def is_today(event: EventEntity, now: Optional[datetime] = None) -> bool:
    return event["date"].date() == (now or datetime.now()).date()


def is_past(event: EventEntity, now: Optional[datetime] = None) -> bool:
    return event["date"] < (now or datetime.now())


def is_future(event: EventEntity, now: Optional[datetime] = None) -> bool:
    return event["date"] > (now or datetime.now())

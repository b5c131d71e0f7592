"""
Plausibility checks for decoded event collections.

A document can decode cleanly and still be garbage (flipped bits in a
timestamp, a runaway title), so decoding alone is not trusted.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from .models import EventEntity

MAX_YEARS_AHEAD = 100
MAX_TITLE_LENGTH = 1000

# Time zero expressed in local wall-clock time, matching how event dates are held.
EPOCH = datetime.fromtimestamp(0)


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 rolls back to Feb 28 in a non-leap target year
        return moment.replace(year=moment.year + years, day=28)


# PUBLIC_INTERFACE
def is_suspicious(events: Sequence[EventEntity], now: Optional[datetime] = None) -> bool:
    """
    Return True if any event looks like corruption rather than user data.

    An event is suspicious when its date is more than 100 years after `now`,
    when it predates the epoch, or when its title exceeds 1000 characters.
    """
    horizon = _add_years(now or datetime.now(), MAX_YEARS_AHEAD)
    return any(
        event["date"] > horizon
        or event["date"] < EPOCH
        or len(event["title"]) > MAX_TITLE_LENGTH
        for event in events
    )


def is_valid_for_save(event: EventEntity) -> bool:
    return bool(event["title"]) and event["date"] != EPOCH


# PUBLIC_INTERFACE
def invalid_for_save(events: Sequence[EventEntity]) -> List[EventEntity]:
    """Return the events with an empty title or an epoch-zero date."""
    return [event for event in events if not is_valid_for_save(event)]

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from .codec import EventCodec
from .errors import EventStoreError
from .models import EventEntity
from .storage import PRIMARY_KEY, KeyValueStore

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class WidgetEventReader:
    """
    Read-only view of the primary slot for widget renderers.

    Runs in the renderer's process on its own schedule. It never writes and
    never consults the backup; anything unreadable renders as no events.
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: Optional[EventCodec] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._codec = codec or EventCodec()
        self._clock = clock

    def events(self) -> List[EventEntity]:
        try:
            data = self._store.get(PRIMARY_KEY)
            if not data:
                return []
            return self._codec.decode(data)
        except EventStoreError as e:
            logger.warning("Widget could not read events: %s", e)
            return []

    def todays_events(self) -> List[EventEntity]:
        today = self._clock().date()
        return sorted(
            (e for e in self.events() if e["date"].date() == today),
            key=lambda e: e["date"],
        )

    def upcoming(self, limit: int = 3, within_days: int = 7) -> List[EventEntity]:
        """Soonest incomplete events in the window, at most `limit` of them."""
        now = self._clock()
        horizon = now + timedelta(days=within_days)
        pending = [e for e in self.events() if not e["is_completed"] and now <= e["date"] <= horizon]
        pending.sort(key=lambda e: e["date"])
        return pending[: max(limit, 0)]

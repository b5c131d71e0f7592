from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from threading import RLock
from typing import Callable, Dict, List, Optional, Union
from uuid import UUID

from .errors import RecordNotFound
from .gateway import LoadReport, PersistenceGateway, SaveReport
from .models import EventEntity
from .refresh import get_refresher
from .settings import Settings
from .storage import get_store

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class EventService:
    """
    The authoritative in-memory collection of events.

    Each mutator updates memory and then saves the whole collection through
    the gateway. Queries return copies so callers cannot mutate the cache.
    Construct one instance per process and pass it to every consumer.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._lock = RLock()
        self._events: List[EventEntity] = []
        self._last_load: Optional[LoadReport] = None
        self._last_save: Optional[SaveReport] = None

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    @property
    def last_load_report(self) -> Optional[LoadReport]:
        return self._last_load

    @property
    def last_save_report(self) -> Optional[SaveReport]:
        return self._last_save

    # Persistence

    def load(self) -> LoadReport:
        """Replace the cache with whatever the gateway can recover from storage."""
        with self._lock:
            report = self._gateway.load()
            self._events = list(report.events)
            self._last_load = report
            return report

    def _save(self) -> SaveReport:
        report = self._gateway.save(self._events)
        # A partial save drops invalid events; the cache follows what was persisted
        self._events = list(report.events)
        self._last_save = report
        return report

    # Mutators

    def add(self, event: EventEntity) -> bool:
        """Append and persist a new event. Returns False (and warns) if its id is already cached."""
        with self._lock:
            if self._index_of(event["id"]) is not None:
                logger.warning("Refusing to add duplicate event id: %s", event["id"])
                return False
            self._events.append(event.copy())
            self._save()
            return True

    def update(self, event: EventEntity) -> bool:
        """Replace the stored event with the same id. Returns False (and warns) if absent."""
        with self._lock:
            index = self._index_of(event["id"])
            if index is None:
                logger.warning("Attempted to update non-existent event: %s", RecordNotFound(event["id"], "update"))
                return False
            self._events[index] = event.copy()
            self._save()
            return True

    def delete(self, event: EventEntity) -> int:
        """Remove every event sharing this id. Returns how many were removed."""
        with self._lock:
            before = len(self._events)
            self._events = [e for e in self._events if e["id"] != event["id"]]
            removed = before - len(self._events)
            self._save()
            return removed

    def toggle_complete(self, event: EventEntity) -> bool:
        """Flip the completion flag. Returns False (and warns) if the id is absent."""
        with self._lock:
            index = self._index_of(event["id"])
            if index is None:
                logger.warning(
                    "Attempted to toggle completion for non-existent event: %s",
                    RecordNotFound(event["id"], "toggle_complete"),
                )
                return False
            toggled = self._events[index].copy()
            toggled["is_completed"] = not toggled["is_completed"]
            self._events[index] = toggled
            self._save()
            return True

    def _index_of(self, event_id: UUID) -> Optional[int]:
        for index, existing in enumerate(self._events):
            if existing["id"] == event_id:
                return index
        return None

    # Queries

    def all(self) -> List[EventEntity]:
        with self._lock:
            return [e.copy() for e in self._events]

    def get(self, event_id: UUID) -> Optional[EventEntity]:
        with self._lock:
            index = self._index_of(event_id)
            return None if index is None else self._events[index].copy()

    def events_on(self, day: Union[date, datetime]) -> List[EventEntity]:
        """Events falling on the same calendar day as `day`, in insertion order."""
        target = day.date() if isinstance(day, datetime) else day
        with self._lock:
            return [e.copy() for e in self._events if e["date"].date() == target]

    def upcoming(self, within_days: int = 7) -> List[EventEntity]:
        """Events from now through now + within_days (inclusive), earliest first."""
        now = self._clock()
        horizon = now + timedelta(days=within_days)
        with self._lock:
            items = [e.copy() for e in self._events if now <= e["date"] <= horizon]
        return sorted(items, key=lambda e: e["date"])

    def events_in_current_month(self) -> List[EventEntity]:
        # Compares month and year components only, not a rolling window
        now = self._clock()
        with self._lock:
            return [
                e.copy()
                for e in self._events
                if e["date"].month == now.month and e["date"].year == now.year
            ]

    def event_days_in_current_month(self) -> Dict[int, bool]:
        return {e["date"].day: True for e in self.events_in_current_month()}


# PUBLIC_INTERFACE
def build_event_service(settings: Settings, load: bool = True) -> EventService:
    """
    Wire storage, refresher, gateway and cache from settings.

    The returned service has already loaded storage unless load=False.
    """
    gateway = PersistenceGateway(get_store(settings), refresher=get_refresher(settings))
    service = EventService(gateway)
    if load:
        service.load()
    return service

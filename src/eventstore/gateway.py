"""
Load/save orchestration for the shared event collection.

The public operations never raise: every failure is resolved through the
fallback ladder below and described in the returned report.

Load:
    primary empty            -> empty collection
    primary unreadable/bad   -> backup (written back to primary) or empty
    primary suspicious       -> backup (written back to primary) if one exists,
                                otherwise the suspicious data as loaded
Save:
    backup <- new collection, primary <- new collection
    on failure: drop invalid records and retry once
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .backup import BackupStore
from .codec import EventCodec
from .errors import DecodingError, EncodingError, EventStoreError, StorageReadFailure, StorageWriteFailure
from .models import EventEntity
from .refresh import NoopTimelineRefresher, TimelineRefresher
from .storage import PRIMARY_KEY, KeyValueStore
from .validity import invalid_for_save, is_suspicious, is_valid_for_save

logger = logging.getLogger(__name__)


class LoadPath(str, Enum):
    EMPTY = "empty"
    PRIMARY = "primary"
    SUSPICIOUS_ACCEPTED = "suspicious_accepted"
    RESTORED_FROM_BACKUP = "restored_from_backup"
    RESET_EMPTY = "reset_empty"


class SavePath(str, Enum):
    SAVED = "saved"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadReport:
    """
    Outcome of a load.

    Fields:
    - path: Which branch of the fallback ladder produced `events`
    - events: The collection the cache should hold
    - errors: Every failure met along the way, in order
    - suspicious: The primary decoded but failed the plausibility checks
    - healed: Recovered data was written back to the primary slot
    """

    path: LoadPath
    events: List[EventEntity] = field(default_factory=list)
    errors: Tuple[EventStoreError, ...] = ()
    suspicious: bool = False
    healed: bool = False


@dataclass(frozen=True)
class SaveReport:
    """
    Outcome of a save.

    Fields:
    - path: SAVED, PARTIAL (invalid records dropped) or FAILED
    - events: The collection now persisted; unchanged input when FAILED
    - errors: Every failure met along the way, including backup failures
    - dropped: Number of records removed by the partial save
    """

    path: SavePath
    events: List[EventEntity] = field(default_factory=list)
    errors: Tuple[EventStoreError, ...] = ()
    dropped: int = 0

    @property
    def ok(self) -> bool:
        return self.path is not SavePath.FAILED


# PUBLIC_INTERFACE
class PersistenceGateway:
    """Facade over codec, validity checks, backup and the widget refresh signal."""

    def __init__(
        self,
        store: KeyValueStore,
        refresher: Optional[TimelineRefresher] = None,
        codec: Optional[EventCodec] = None,
        backup: Optional[BackupStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._codec = codec or EventCodec()
        self._backup = backup or BackupStore(store, self._codec, clock)
        self._refresher = refresher or NoopTimelineRefresher()
        self._clock = clock

    @property
    def backup(self) -> BackupStore:
        return self._backup

    def load(self) -> LoadReport:
        """Read the primary slot, falling back to the backup when it looks corrupted."""
        try:
            data = self._store.get(PRIMARY_KEY)
        except StorageReadFailure as e:
            logger.error("Error loading events: %s", e)
            return self._recover([e])

        if not data:
            logger.info("No saved events found")
            return LoadReport(path=LoadPath.EMPTY)

        try:
            events = self._codec.decode(data)
        except DecodingError as e:
            logger.warning("Decoding error: %s", e)
            return self._recover([e])

        if is_suspicious(events, self._clock()):
            if self._backup.has_backup():
                logger.warning("Stored events look corrupted, attempting to restore from backup")
                return self._recover([], suspicious=True)
            logger.warning("Stored events look corrupted but no backup exists, keeping them as loaded")
            return LoadReport(path=LoadPath.SUSPICIOUS_ACCEPTED, events=events, suspicious=True)

        logger.info("Successfully loaded %d events", len(events))
        return LoadReport(path=LoadPath.PRIMARY, events=events)

    def recover(self) -> LoadReport:
        """Restore from the backup and write it through to the primary slot."""
        return self._recover([])

    def save(self, events: Sequence[EventEntity]) -> SaveReport:
        """Back up and persist the whole collection, then signal widget renderers."""
        events = list(events)
        errors: List[EventStoreError] = []

        invalid = invalid_for_save(events)
        if invalid:
            # Logged only, the save still goes ahead
            logger.warning("Attempting to save %d invalid events", len(invalid))

        backup_error = self._backup.create_backup(events)
        if backup_error is not None:
            errors.append(backup_error)

        try:
            self._write_primary(events)
        except (EncodingError, StorageWriteFailure) as e:
            logger.error("Error saving events: %s", e)
            errors.append(e)
            return self._partial_save(events, errors)

        logger.info("Events saved successfully: %d events", len(events))
        self._notify_widgets()
        return SaveReport(path=SavePath.SAVED, events=events, errors=tuple(errors))

    def _write_primary(self, events: Sequence[EventEntity]) -> None:
        self._store.set(PRIMARY_KEY, self._codec.encode(events))

    def _partial_save(self, events: List[EventEntity], errors: List[EventStoreError]) -> SaveReport:
        valid = [event for event in events if is_valid_for_save(event)]
        dropped = len(events) - len(valid)
        if dropped:
            logger.warning("Attempting to save %d valid events out of %d total", len(valid), len(events))

        try:
            self._write_primary(valid)
        except (EncodingError, StorageWriteFailure) as e:
            logger.error("Partial save also failed: %s", e)
            errors.append(e)
            return SaveReport(path=SavePath.FAILED, events=events, errors=tuple(errors))

        logger.info("Partial save successful")
        self._notify_widgets()
        return SaveReport(path=SavePath.PARTIAL, events=valid, errors=tuple(errors), dropped=dropped)

    def _recover(self, errors: List[EventStoreError], suspicious: bool = False) -> LoadReport:
        if not self._backup.has_backup():
            logger.warning("No backup found, reset to empty events")
            return LoadReport(path=LoadPath.RESET_EMPTY, errors=tuple(errors), suspicious=suspicious)

        try:
            recovered = self._backup.read()
        except EventStoreError as e:
            logger.error("Backup restoration failed: %s", e)
            errors.append(e)
            return LoadReport(path=LoadPath.RESET_EMPTY, errors=tuple(errors), suspicious=suspicious)

        if not recovered:
            logger.warning("Backup was empty, reset to empty events")
            return LoadReport(path=LoadPath.RESET_EMPTY, errors=tuple(errors), suspicious=suspicious)

        logger.info("Recovered %d events from backup", len(recovered))
        report = self.save(recovered)
        errors.extend(report.errors)
        return LoadReport(
            path=LoadPath.RESTORED_FROM_BACKUP,
            events=report.events,
            errors=tuple(errors),
            suspicious=suspicious,
            healed=report.ok,
        )

    def _notify_widgets(self) -> None:
        try:
            self._refresher.reload_all_timelines()
        except Exception as e:
            # The signal is fire-and-forget; its failure must not affect the save
            logger.warning("Widget refresh signal failed: %s", e)

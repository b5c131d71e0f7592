from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .codec import EventCodec
from .errors import (
    EmptyBackupRestoreFailure,
    EncodingError,
    EventStoreError,
    StorageReadFailure,
    StorageWriteFailure,
)
from .models import EventEntity
from .storage import BACKUP_KEY, BACKUP_TIMESTAMP_KEY, KeyValueStore

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class BackupStore:
    """
    Keeps the secondary copy of the last saved event collection.

    The backup is refreshed from the collection being saved, so it always
    mirrors the most recent save and never holds an empty collection.
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

    def create_backup(self, events: Sequence[EventEntity]) -> Optional[EventStoreError]:
        """
        Write events to the backup slot together with a timestamp marker.

        Returns the failure instead of raising so the primary save can go ahead.
        An empty collection leaves the existing backup untouched.
        """
        if not events:
            return None
        try:
            encoded = self._codec.encode(events)
            self._store.set(BACKUP_KEY, encoded)
            self._store.set(BACKUP_TIMESTAMP_KEY, self._clock().isoformat().encode("utf-8"))
        except (EncodingError, StorageWriteFailure) as e:
            logger.error("Error creating events backup: %s", e)
            return e
        logger.debug("Events backup created: %d events", len(events))
        return None

    def has_backup(self) -> bool:
        try:
            return bool(self._store.get(BACKUP_KEY))
        except StorageReadFailure as e:
            logger.warning("Could not check for events backup: %s", e)
            return False

    def read(self) -> List[EventEntity]:
        """
        Decode the backup slot.

        Raises:
            StorageReadFailure: the slot could not be read.
            EmptyBackupRestoreFailure: the slot is empty or does not decode.
        """
        data = self._store.get(BACKUP_KEY)
        if not data:
            raise EmptyBackupRestoreFailure("No events backup is stored")
        try:
            return self._codec.decode(data)
        except EventStoreError as e:
            raise EmptyBackupRestoreFailure(f"Events backup is unreadable: {e}") from e

    def restore(self) -> List[EventEntity]:
        """Return the backed-up events, or an empty list if they cannot be recovered."""
        try:
            events = self.read()
        except EventStoreError as e:
            logger.error("Backup restoration failed: %s", e)
            return []
        logger.info("Recovered %d events from backup", len(events))
        return events

    def backup_timestamp(self) -> Optional[datetime]:
        """When the backup was last written, if known."""
        try:
            raw = self._store.get(BACKUP_TIMESTAMP_KEY)
        except StorageReadFailure as e:
            logger.warning("Could not read backup timestamp: %s", e)
            return None
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.warning("Ignoring malformed backup timestamp %r", raw)
            return None

from __future__ import annotations

from typing import Optional
from uuid import UUID


class EventStoreError(Exception):
    """Base class for every failure raised inside the event store."""


class EncodingError(EventStoreError):
    """A record could not be represented in the wire document."""


class DecodingError(EventStoreError):
    """A stored document is not a valid event collection."""


class StorageReadFailure(EventStoreError):
    """
    Reading a storage slot failed.

    Attributes:
        key: The slot key that could not be read.
    """

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key


class StorageWriteFailure(EventStoreError):
    """
    Writing a storage slot failed.

    Attributes:
        key: The slot key that could not be written.
    """

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key


class RecordNotFound(EventStoreError):
    """An update or toggle targeted an identifier that is not in the cache.

    Only ever logged as a warning; callers never see it raised.
    """

    def __init__(self, event_id: UUID, operation: Optional[str] = None) -> None:
        action = f" during {operation}" if operation else ""
        super().__init__(f"Event {event_id} not found{action}")
        self.event_id = event_id
        self.operation = operation


class EmptyBackupRestoreFailure(EventStoreError):
    """A backup existed but could not be decoded."""

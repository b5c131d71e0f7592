from __future__ import annotations

import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Generator, Optional

from .errors import StorageReadFailure, StorageWriteFailure
from .settings import Settings

logger = logging.getLogger(__name__)

PRIMARY_KEY = "savedEvents"
BACKUP_KEY = "savedEvents_backup"
BACKUP_TIMESTAMP_KEY = "events_backup_timestamp"


# PUBLIC_INTERFACE
class KeyValueStore(ABC):
    """
    Abstract contract for a namespace of named byte-blob slots.

    Every set() replaces the whole value at once; readers never observe a
    partially written value.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under key, or None if the slot is empty."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Replace the value stored under key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Empty the slot. Removing an empty slot is not an error."""


class InMemoryStore(KeyValueStore):
    """
    Thread-safe in-memory namespace suitable for testing and default runtime.

    Instances built over the same `slots` dictionary share values, which is
    how tests stand in for two processes reading one namespace.
    """

    def __init__(self, slots: Optional[Dict[str, bytes]] = None) -> None:
        self._lock = RLock()
        self._slots: Dict[str, bytes] = slots if slots is not None else {}

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._slots.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._slots[key] = bytes(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._slots.pop(key, None)


@dataclass(frozen=True)
class _Cols:
    table: str = "shared_defaults"
    namespace: str = "namespace"
    key: str = "key"
    value: str = "value"
    updated_at: str = "updated_at"


_COLS = _Cols()


class SQLiteStore(KeyValueStore):
    """
    SQLite-backed namespace that the app and widget processes open independently.

    Slots are scoped by the app group identifier so several groups can share
    one database file. WAL mode lets widget readers proceed while the app writes.
    """

    def __init__(self, db_path: str, namespace: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._namespace = namespace
        self._init_db()

    @property
    def namespace(self) -> str:
        return self._namespace

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        try:
            with self._conn() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_COLS.table} (
                        {_COLS.namespace} TEXT NOT NULL,
                        {_COLS.key} TEXT NOT NULL,
                        {_COLS.value} BLOB NOT NULL,
                        {_COLS.updated_at} TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                        PRIMARY KEY ({_COLS.namespace}, {_COLS.key})
                    )
                    """
                )
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"Failed to initialise shared storage at {self._db_path}: {e}", key="") from e

    def get(self, key: str) -> Optional[bytes]:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    f"SELECT {_COLS.value} FROM {_COLS.table} WHERE {_COLS.namespace} = ? AND {_COLS.key} = ?",
                    (self._namespace, key),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageReadFailure(f"Failed to read slot '{key}': {e}", key=key) from e
        if row is None:
            return None
        return bytes(row[_COLS.value])

    def set(self, key: str, value: bytes) -> None:
        try:
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.namespace}, {_COLS.key}, {_COLS.value}, {_COLS.updated_at})
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT({_COLS.namespace}, {_COLS.key}) DO UPDATE SET
                        {_COLS.value} = excluded.{_COLS.value},
                        {_COLS.updated_at} = excluded.{_COLS.updated_at}
                    """,
                    (self._namespace, key, sqlite3.Binary(value)),
                )
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"Failed to write slot '{key}': {e}", key=key) from e

    def remove(self, key: str) -> None:
        try:
            with self._conn() as conn:
                conn.execute(
                    f"DELETE FROM {_COLS.table} WHERE {_COLS.namespace} = ? AND {_COLS.key} = ?",
                    (self._namespace, key),
                )
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"Failed to clear slot '{key}': {e}", key=key) from e


# PUBLIC_INTERFACE
def get_store(settings: Settings) -> KeyValueStore:
    """
    Factory to return the configured storage namespace based on settings.
    - memory: InMemoryStore (not shared across processes)
    - sqlite: SQLiteStore at settings.sqlite_db_path scoped to the app group
    """
    if settings.persistence_backend == "sqlite":
        logger.info(
            "Using sqlite shared storage at %s (group %s)",
            settings.sqlite_db_path,
            settings.app_group_identifier,
        )
        return SQLiteStore(settings.sqlite_db_path, settings.app_group_identifier)
    return InMemoryStore()

from datetime import datetime

import pytest

from eventstore.backup import BackupStore
from eventstore.codec import EventCodec
from eventstore.errors import EmptyBackupRestoreFailure, StorageWriteFailure
from eventstore.models import new_event
from eventstore.storage import BACKUP_KEY, BACKUP_TIMESTAMP_KEY

from conftest import FailingWritesStore, NOW


def events():
    return [
        new_event("Dentist", datetime(2024, 3, 1, 9, 30)),
        new_event("Gym", datetime(2024, 3, 2, 18, 0)),
    ]


def backup_for(store):
    return BackupStore(store, EventCodec(), clock=lambda: NOW)


class TestCreateBackup:
    def test_writes_snapshot_and_timestamp(self, store):
        backup = backup_for(store)
        saved = events()
        assert backup.create_backup(saved) is None
        assert backup.has_backup() is True
        assert backup.restore() == saved
        assert backup.backup_timestamp() == NOW
        assert store.get(BACKUP_TIMESTAMP_KEY) == NOW.isoformat().encode("utf-8")

    def test_empty_collection_never_overwrites_backup(self, store):
        backup = backup_for(store)
        backup.create_backup(events())
        before = store.get(BACKUP_KEY)
        stamp_before = store.get(BACKUP_TIMESTAMP_KEY)

        assert backup.create_backup([]) is None
        assert store.get(BACKUP_KEY) == before
        assert store.get(BACKUP_TIMESTAMP_KEY) == stamp_before

    def test_empty_collection_without_backup_writes_nothing(self, store):
        backup = backup_for(store)
        backup.create_backup([])
        assert backup.has_backup() is False
        assert backup.backup_timestamp() is None

    def test_write_failure_is_returned_not_raised(self):
        store = FailingWritesStore({BACKUP_KEY})
        backup = backup_for(store)
        error = backup.create_backup(events())
        assert isinstance(error, StorageWriteFailure)
        assert backup.has_backup() is False


class TestRestore:
    def test_has_backup_false_when_slot_empty(self, store):
        assert backup_for(store).has_backup() is False

    def test_restore_without_backup_is_empty(self, store):
        assert backup_for(store).restore() == []

    def test_undecodable_backup_restores_empty(self, store):
        store.set(BACKUP_KEY, b"{garbage")
        backup = backup_for(store)
        assert backup.has_backup() is True
        assert backup.restore() == []

    def test_read_raises_for_undecodable_backup(self, store):
        store.set(BACKUP_KEY, b"{garbage")
        with pytest.raises(EmptyBackupRestoreFailure):
            backup_for(store).read()

    def test_malformed_timestamp_is_ignored(self, store):
        store.set(BACKUP_TIMESTAMP_KEY, b"yesterday-ish")
        assert backup_for(store).backup_timestamp() is None

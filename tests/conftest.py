from datetime import datetime

import pytest

from eventstore.errors import StorageWriteFailure
from eventstore.gateway import PersistenceGateway
from eventstore.service import EventService
from eventstore.storage import InMemoryStore

# Fixed "now" shared by every time-dependent test
NOW = datetime(2024, 3, 15, 12, 0, 0)


class RecordingRefresher:
    """Counts widget refresh signals."""

    def __init__(self):
        self.calls = 0

    def reload_all_timelines(self):
        self.calls += 1


class FailingWritesStore(InMemoryStore):
    """In-memory store whose writes to selected keys fail a limited number of times."""

    def __init__(self, fail_keys, failures=1):
        super().__init__()
        self.fail_keys = set(fail_keys)
        self.failures_left = failures

    def set(self, key, value):
        if key in self.fail_keys and self.failures_left > 0:
            self.failures_left -= 1
            raise StorageWriteFailure(f"simulated write failure for {key}", key=key)
        super().set(key, value)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def refresher():
    return RecordingRefresher()


@pytest.fixture
def gateway(store, refresher):
    return PersistenceGateway(store, refresher=refresher, clock=lambda: NOW)


@pytest.fixture
def service(gateway):
    return EventService(gateway, clock=lambda: NOW)

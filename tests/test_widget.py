from datetime import datetime, timedelta

from eventstore import WidgetEventReader
from eventstore.codec import EventCodec
from eventstore.gateway import PersistenceGateway
from eventstore.models import new_event
from eventstore.refresh import MarkerFileTimelineRefresher, NoopTimelineRefresher, TimelineRefresher, get_refresher
from eventstore.settings import Settings
from eventstore.storage import BACKUP_KEY, PRIMARY_KEY, InMemoryStore

from conftest import NOW


def settings_with_marker(marker):
    return Settings(
        persistence_backend="memory",
        sqlite_db_path="./data/events.db",
        app_group_identifier="group.test.shared",
        widget_refresh_marker=marker,
        cors_allow_origins=["*"],
        log_level="WARNING",
    )


class TestWidgetEventReader:
    def test_reads_what_the_app_saved(self, store, gateway):
        saved = [new_event("Dentist", NOW + timedelta(hours=2))]
        gateway.save(saved)
        assert WidgetEventReader(store, clock=lambda: NOW).events() == saved

    def test_todays_events_sorted(self, store, gateway):
        gateway.save(
            [
                new_event("Evening", NOW.replace(hour=19)),
                new_event("Tomorrow", NOW + timedelta(days=1)),
                new_event("Morning", NOW.replace(hour=8)),
            ]
        )
        reader = WidgetEventReader(store, clock=lambda: NOW)
        assert [e["title"] for e in reader.todays_events()] == ["Morning", "Evening"]

    def test_upcoming_skips_completed_and_limits(self, store, gateway):
        gateway.save(
            [
                new_event("Done", NOW + timedelta(hours=1), is_completed=True),
                new_event("Third", NOW + timedelta(days=3)),
                new_event("First", NOW + timedelta(hours=2)),
                new_event("Second", NOW + timedelta(days=1)),
                new_event("Far", NOW + timedelta(days=10)),
            ]
        )
        reader = WidgetEventReader(store, clock=lambda: NOW)
        assert [e["title"] for e in reader.upcoming(limit=2)] == ["First", "Second"]

    def test_corrupt_primary_renders_nothing_and_writes_nothing(self):
        store = InMemoryStore()
        store.set(PRIMARY_KEY, b"\x00garbage")
        store.set(BACKUP_KEY, EventCodec().encode([new_event("Backed up", NOW)]))

        assert WidgetEventReader(store, clock=lambda: NOW).events() == []
        assert store.get(PRIMARY_KEY) == b"\x00garbage"

    def test_empty_namespace_renders_nothing(self):
        assert WidgetEventReader(InMemoryStore()).events() == []

    def test_out_of_range_date_renders_nothing(self):
        store = InMemoryStore()
        store.set(
            PRIMARY_KEY,
            b'[{"id": "6f1c4c51-6f0a-4a57-9d49-1f7f0e7f3d0a", "title": "Edge", '
            b'"date": "9999-12-31T23:00:00-05:00", "notes": "", "isCompleted": false}]',
        )
        assert WidgetEventReader(store, clock=lambda: NOW).events() == []


class TestRefreshers:
    def test_marker_refresher_rewrites_marker_on_save(self, tmp_path):
        marker = tmp_path / "widgets" / "reload.marker"
        refresher = MarkerFileTimelineRefresher(marker)
        gateway = PersistenceGateway(InMemoryStore(), refresher=refresher, clock=lambda: NOW)

        gateway.save([new_event("Dentist", datetime(2024, 3, 20))])

        assert marker.exists()
        datetime.fromisoformat(marker.read_text(encoding="utf-8"))
        assert not marker.with_suffix(".tmp").exists()

    def test_get_refresher_from_settings(self, tmp_path):
        assert isinstance(get_refresher(settings_with_marker(None)), NoopTimelineRefresher)
        marker = str(tmp_path / "reload.marker")
        refresher = get_refresher(settings_with_marker(marker))
        assert isinstance(refresher, MarkerFileTimelineRefresher)
        assert str(refresher.marker_path) == marker

    def test_refreshers_satisfy_protocol(self, tmp_path):
        assert isinstance(NoopTimelineRefresher(), TimelineRefresher)
        assert isinstance(MarkerFileTimelineRefresher(tmp_path / "m"), TimelineRefresher)

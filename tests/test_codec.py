import json
from datetime import datetime, timezone
from uuid import UUID

import pytest

from eventstore.codec import EventCodec
from eventstore.errors import DecodingError, EncodingError
from eventstore.models import new_event

codec = EventCodec()


def sample_events():
    return [
        new_event("Dentist", datetime(2024, 3, 1, 9, 30), notes="Bring card"),
        new_event("Gym", datetime(2024, 3, 2, 18, 0, 0, 123456), is_completed=True),
        new_event("", datetime(2024, 3, 3)),
    ]


def document(**overrides):
    record = {
        "id": "6f1c4c51-6f0a-4a57-9d49-1f7f0e7f3d0a",
        "title": "Dentist",
        "date": "2024-03-01T09:30:00",
        "notes": "",
        "isCompleted": False,
    }
    record.update(overrides)
    return json.dumps([record]).encode("utf-8")


class TestEncode:
    def test_round_trip_preserves_every_field_and_order(self):
        events = sample_events()
        assert codec.decode(codec.encode(events)) == events

    def test_empty_collection_round_trips(self):
        assert codec.decode(codec.encode([])) == []

    def test_document_uses_field_tagged_objects(self):
        event = sample_events()[0]
        payload = json.loads(codec.encode([event]))
        assert isinstance(payload, list)
        assert set(payload[0]) == {"id", "title", "date", "notes", "isCompleted"}
        assert payload[0]["id"] == str(event["id"])
        assert payload[0]["date"] == "2024-03-01T09:30:00"
        assert payload[0]["isCompleted"] is False

    def test_unrepresentable_record_raises_encoding_error(self):
        event = new_event("Broken", datetime(2024, 3, 1))
        event["title"] = None  # type: ignore[typeddict-item]
        with pytest.raises(EncodingError):
            codec.encode([event])


class TestDecode:
    def test_decodes_well_formed_document(self):
        events = codec.decode(document(notes="hello", isCompleted=True))
        assert len(events) == 1
        assert events[0]["id"] == UUID("6f1c4c51-6f0a-4a57-9d49-1f7f0e7f3d0a")
        assert events[0]["date"] == datetime(2024, 3, 1, 9, 30)
        assert events[0]["notes"] == "hello"
        assert events[0]["is_completed"] is True

    def test_rejects_invalid_json(self):
        with pytest.raises(DecodingError):
            codec.decode(b"\x00\xffnot json")

    def test_rejects_non_array_document(self):
        with pytest.raises(DecodingError):
            codec.decode(b'{"events": []}')

    def test_rejects_wrong_field_type(self):
        with pytest.raises(DecodingError):
            codec.decode(document(isCompleted="yes"))
        with pytest.raises(DecodingError):
            codec.decode(document(title=42))

    def test_rejects_missing_field(self):
        raw = json.loads(document())
        del raw[0]["notes"]
        with pytest.raises(DecodingError):
            codec.decode(json.dumps(raw).encode("utf-8"))

    def test_one_bad_record_rejects_whole_document(self):
        good = json.loads(codec.encode(sample_events()))
        good.append({"id": "not-a-uuid", "title": "x", "date": "2024-03-01T00:00:00", "notes": "", "isCompleted": False})
        with pytest.raises(DecodingError):
            codec.decode(json.dumps(good).encode("utf-8"))

    def test_offset_timestamps_become_local_wall_clock(self):
        events = codec.decode(document(date="2024-03-01T10:00:00+00:00"))
        expected = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert events[0]["date"].tzinfo is None
        assert events[0]["date"] == expected

    @pytest.mark.parametrize("stamp", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
    def test_rejects_offset_date_outside_local_range(self, stamp):
        with pytest.raises(DecodingError):
            codec.decode(document(date=stamp))

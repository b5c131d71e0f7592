from __future__ import annotations

from typing import List, Sequence

from pydantic import TypeAdapter, ValidationError

from .errors import DecodingError, EncodingError
from .models import EventEntity
from .schemas import EventRecord

_COLLECTION = TypeAdapter(List[EventRecord])


# PUBLIC_INTERFACE
class EventCodec:
    """
    Converts an event collection to and from its stored JSON document.

    The document is an array of objects with the fields id, title, date,
    notes and isCompleted. Decoding is all-or-nothing.
    """

    def encode(self, events: Sequence[EventEntity]) -> bytes:
        """Serialize events, raising EncodingError if any record is not representable."""
        try:
            records = [
                EventRecord.model_validate(
                    {
                        "id": event["id"],
                        "title": event["title"],
                        "date": event["date"],
                        "notes": event["notes"],
                        "isCompleted": event["is_completed"],
                    }
                )
                for event in events
            ]
            return _COLLECTION.dump_json(records, by_alias=True)
        except (ValidationError, ValueError, KeyError, TypeError) as e:
            raise EncodingError(f"Failed to encode {len(events)} events: {e}") from e

    def decode(self, data: bytes) -> List[EventEntity]:
        """Parse a stored document, raising DecodingError on any malformed content."""
        try:
            records = _COLLECTION.validate_json(data)
        except (ValidationError, ValueError, TypeError, OverflowError) as e:
            raise DecodingError(f"Stored events document is invalid: {e}") from e
        return [_record_to_entity(r) for r in records]


def _record_to_entity(record: EventRecord) -> EventEntity:
    return {
        "id": record.id,
        "title": record.title,
        "date": record.date,
        "notes": record.notes,
        "is_completed": record.is_completed,
    }

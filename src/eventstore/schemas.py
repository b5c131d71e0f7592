from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Shared type for incoming event dates which can be a date, datetime, or ISO8601 string
EventDateInput = Union[date, datetime, str]


def _parse_event_date(value: Optional[EventDateInput]) -> Optional[datetime]:
    """
    Normalize an incoming event date into a naive local datetime.
    - Strings are parsed via datetime.fromisoformat; a bare date becomes 00:00.
    - A date (not datetime) is promoted to 00:00 on that day.
    - Aware datetimes are converted to local wall-clock time and made naive.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e
        return _to_local_naive(parsed)

    raise ValueError("Invalid type for date; expected date, datetime, or ISO8601 string.")


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone().replace(tzinfo=None)
    except OverflowError as e:
        # Offsets can push 0001-01-01 or 9999-12-31 past the representable range
        raise ValueError(f"Date {value.isoformat()} is out of range in local time") from e


# PUBLIC_INTERFACE
class EventRecord(BaseModel):
    """
    Wire form of one event inside a stored document.

    Strict: a field of the wrong JSON type rejects the whole document.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    id: UUID
    title: str
    date: datetime
    notes: str
    is_completed: bool = Field(..., alias="isCompleted")

    @field_validator("date")
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        """Stored documents may carry offsets; the cache works in local wall-clock time."""
        return _to_local_naive(v)


# PUBLIC_INTERFACE
class EventCreate(BaseModel):
    """
    Schema for creating (or fully replacing) an event.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Dentist",
                "date": "2025-02-01T09:30:00",
                "notes": "Bring insurance card",
                "is_completed": False,
            }
        }
    )

    title: str = Field(..., description="Short title for the event", min_length=1, max_length=1000)
    date: datetime = Field(..., description="Event date/time. Accepts ISO8601 date or datetime; dates are set to 00:00")
    notes: str = Field(default="", description="Free-form notes")
    is_completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce a non-empty title.
        """
        s = v.strip()
        if not s:
            raise ValueError("title must not be blank")
        return s

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Optional[EventDateInput]) -> Optional[datetime]:
        """
        Normalize date from str/date/datetime to datetime.
        """
        return _parse_event_date(v)


# PUBLIC_INTERFACE
class EventOut(BaseModel):
    """
    Schema returned by the API for an event.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "6f1c4c51-6f0a-4a57-9d49-1f7f0e7f3d0a",
                "title": "Dentist",
                "date": "2025-02-01T09:30:00",
                "notes": "Bring insurance card",
                "is_completed": False,
            }
        }
    )

    id: UUID = Field(..., description="Unique identifier of the event")
    title: str = Field(..., description="Short title for the event")
    date: datetime = Field(..., description="Event date/time as an ISO8601 datetime")
    notes: str = Field(..., description="Free-form notes")
    is_completed: bool = Field(..., description="Completion status flag")

"""
Durable event store package.

The persistence core (codec, validity checks, backup, gateway and the
in-memory event cache) and the read-only widget reader are importable
without the HTTP layer; the FastAPI app lives in `eventstore.main`.
"""

from .gateway import LoadPath, LoadReport, PersistenceGateway, SavePath, SaveReport
from .models import EventEntity, new_event
from .service import EventService, build_event_service
from .widget import WidgetEventReader

__all__ = [
    "EventEntity",
    "EventService",
    "LoadPath",
    "LoadReport",
    "PersistenceGateway",
    "SavePath",
    "SaveReport",
    "WidgetEventReader",
    "build_event_service",
    "new_event",
]

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from ..models import EventEntity, new_event
from ..schemas import EventCreate, EventOut
from ..service import EventService

router = APIRouter(
    prefix="/api/v1/events",
    tags=["events"],
)

store_router = APIRouter(
    prefix="/api/v1/store",
    tags=["store"],
)


class StoreStatus(BaseModel):
    """
    Diagnostic view of the most recent load and save.
    """
    event_count: int = Field(..., description="Number of events in the cache")
    load_path: Optional[str] = Field(default=None, description="Fallback branch taken by the last load")
    load_errors: List[str] = Field(default_factory=list, description="Failures met by the last load")
    suspicious: bool = Field(default=False, description="Whether the last load found implausible data")
    healed: bool = Field(default=False, description="Whether recovered data was written back to primary")
    save_path: Optional[str] = Field(default=None, description="Outcome of the last save")
    save_errors: List[str] = Field(default_factory=list, description="Failures met by the last save")
    has_backup: bool = Field(..., description="Whether a backup snapshot exists")
    backup_timestamp: Optional[str] = Field(default=None, description="When the backup was last written")


def get_event_service(request: Request) -> EventService:
    """
    Dependency returning the single EventService attached to the app.
    """
    return request.app.state.event_service


def _out(entity: EventEntity) -> EventOut:
    return EventOut(**entity)  # type: ignore[arg-type]


def _require(service: EventService, event_id: UUID) -> EventEntity:
    item = service.get(event_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return item


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[EventOut],
    summary="List Events",
    description="All events in insertion order.",
)
def list_events(service: EventService = Depends(get_event_service)) -> List[EventOut]:
    return [_out(e) for e in service.all()]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=EventOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
    description="Create a new event, persist the collection and return the created resource.",
    responses={
        201: {"description": "Event created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_event(payload: EventCreate, service: EventService = Depends(get_event_service)) -> EventOut:
    """
    Create a new event with a freshly assigned id.
    """
    entity = new_event(payload.title, payload.date, payload.notes, payload.is_completed)
    service.add(entity)
    return _out(entity)


# PUBLIC_INTERFACE
@router.get(
    "/on/{day}",
    response_model=List[EventOut],
    summary="Events On Day",
    description="Events whose date falls on the given calendar day (YYYY-MM-DD).",
)
def events_on_day(day: date, service: EventService = Depends(get_event_service)) -> List[EventOut]:
    return [_out(e) for e in service.events_on(day)]


# PUBLIC_INTERFACE
@router.get(
    "/upcoming",
    response_model=List[EventOut],
    summary="Upcoming Events",
    description="Events from now through the next `within_days` days, earliest first.",
)
def upcoming_events(
    within_days: int = Query(7, ge=0, le=366, description="Size of the window in days"),
    service: EventService = Depends(get_event_service),
) -> List[EventOut]:
    return [_out(e) for e in service.upcoming(within_days)]


# PUBLIC_INTERFACE
@router.get(
    "/month",
    response_model=List[EventOut],
    summary="Events This Month",
    description="Events whose month and year match the current date.",
)
def events_this_month(service: EventService = Depends(get_event_service)) -> List[EventOut]:
    return [_out(e) for e in service.events_in_current_month()]


# PUBLIC_INTERFACE
@router.get(
    "/month/days",
    response_model=Dict[int, bool],
    summary="Event Days This Month",
    description="Days of the current month that have at least one event.",
)
def event_days_this_month(service: EventService = Depends(get_event_service)) -> Dict[int, bool]:
    return service.event_days_in_current_month()


# PUBLIC_INTERFACE
@router.get(
    "/{event_id}",
    response_model=EventOut,
    summary="Get Event",
    responses={
        200: {"description": "Event found"},
        404: {"description": "Event not found"},
    },
)
def get_event(event_id: UUID, service: EventService = Depends(get_event_service)) -> EventOut:
    return _out(_require(service, event_id))


# PUBLIC_INTERFACE
@router.put(
    "/{event_id}",
    response_model=EventOut,
    summary="Replace Event",
    description="Replace every field of an existing event, keeping its id.",
    responses={
        200: {"description": "Event updated"},
        404: {"description": "Event not found"},
    },
)
def put_event(event_id: UUID, payload: EventCreate, service: EventService = Depends(get_event_service)) -> EventOut:
    """
    Full replacement. The service treats an unknown id as a no-op, which is
    reported here as 404.
    """
    replacement = new_event(payload.title, payload.date, payload.notes, payload.is_completed, event_id=event_id)
    if not service.update(replacement):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return _out(replacement)


# PUBLIC_INTERFACE
@router.post(
    "/{event_id}/toggle",
    response_model=EventOut,
    summary="Toggle Completion",
    responses={
        200: {"description": "Completion flag flipped"},
        404: {"description": "Event not found"},
    },
)
def toggle_event(event_id: UUID, service: EventService = Depends(get_event_service)) -> EventOut:
    if not service.toggle_complete(_require(service, event_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return _out(_require(service, event_id))


# PUBLIC_INTERFACE
@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Event",
    responses={
        204: {"description": "Event deleted"},
        404: {"description": "Event not found"},
    },
)
def delete_event(event_id: UUID, service: EventService = Depends(get_event_service)) -> None:
    """
    Delete an event. Returns 204 on success, 404 if not found.
    """
    if not service.delete(_require(service, event_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return None


# PUBLIC_INTERFACE
@store_router.get(
    "/status",
    response_model=StoreStatus,
    summary="Store Status",
    description="Which fallback paths the last load and save took, and the backup state.",
)
def store_status(service: EventService = Depends(get_event_service)) -> StoreStatus:
    load = service.last_load_report
    save = service.last_save_report
    backup = service.gateway.backup
    stamp = backup.backup_timestamp()
    return StoreStatus(
        event_count=len(service.all()),
        load_path=load.path.value if load else None,
        load_errors=[str(e) for e in load.errors] if load else [],
        suspicious=load.suspicious if load else False,
        healed=load.healed if load else False,
        save_path=save.path.value if save else None,
        save_errors=[str(e) for e in save.errors] if save else [],
        has_backup=backup.has_backup(),
        backup_timestamp=stamp.isoformat() if stamp else None,
    )

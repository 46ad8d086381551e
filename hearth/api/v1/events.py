"""Event listing, admin CRUD, and RSVP routes."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hearth.api.v1.auth import get_current_user, require_admin
from hearth.core.database import get_db
from hearth.schemas.auth import CurrentUser, MessageResponse
from hearth.schemas.events import (
    AttendeesResponse,
    EventCreateRequest,
    EventCreatedResponse,
    EventFilter,
    EventListResponse,
    EventOut,
    EventSortField,
    EventUpdateRequest,
    Pagination,
    RsvpStatusResponse,
)
from hearth.services import events as event_service

router = APIRouter()


@router.get("", response_model=EventListResponse)
def list_events(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=event_service.MAX_PAGE_SIZE)] = 10,
    search: str = "",
    status_filter: Annotated[EventFilter, Query(alias="status")] = "all",
    sort_by: EventSortField = "date",
    sort_order: Literal["asc", "desc"] = "desc",
) -> EventListResponse:
    """
    Paginated events with attendee counts.

    status: all | upcoming | past | active | cancelled. Each item reports
    spots_remaining (null when unlimited) and whether the caller has RSVPed.
    """
    events, total = event_service.list_events(
        db,
        current_user.id,
        page=page,
        limit=limit,
        search=search,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return EventListResponse(
        data=events,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=event_service.total_pages(total, limit),
        ),
    )


@router.post("", response_model=EventCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    body: EventCreateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> EventCreatedResponse:
    event = event_service.create_event(db, admin.id, body)
    return EventCreatedResponse(id=event.id)


@router.get("/{event_id}", response_model=EventOut)
def get_event(
    event_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> EventOut:
    return event_service.get_event(db, event_id, current_user.id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: int,
    body: EventUpdateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> EventOut:
    event_service.update_event(db, event_id, body)
    return event_service.get_event(db, event_id, admin.id)


@router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete an event and all of its RSVPs."""
    event_service.delete_event(db, event_id)
    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/rsvp", response_model=RsvpStatusResponse, status_code=status.HTTP_201_CREATED)
def rsvp(
    event_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RsvpStatusResponse:
    """RSVP as attending. 409 if already RSVPed, 400 if full, past or cancelled."""
    record = event_service.rsvp(db, event_id, current_user.id)
    return RsvpStatusResponse(
        event_id=event_id,
        rsvped=True,
        rsvped_at=event_service.as_utc(record.created_at),
    )


@router.get("/{event_id}/rsvp", response_model=RsvpStatusResponse)
def get_rsvp(
    event_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RsvpStatusResponse:
    return event_service.get_rsvp_status(db, event_id, current_user.id)


@router.delete("/{event_id}/rsvp", response_model=MessageResponse)
def cancel_rsvp(
    event_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    event_service.cancel_rsvp(db, event_id, current_user.id)
    return MessageResponse(message="RSVP cancelled")


@router.get("/{event_id}/attendees", response_model=AttendeesResponse)
def list_attendees(
    event_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AttendeesResponse:
    return AttendeesResponse(data=event_service.list_attendees(db, event_id))

"""Events and RSVPs. Capacity 0 means unlimited."""

import logging
import math
from datetime import UTC, datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hearth.core.errors import Conflict, NotFound, ValidationError
from hearth.models.event import EVENT_ACTIVE, EVENT_CANCELLED, Event, EventRsvp
from hearth.models.user import User
from hearth.schemas.events import (
    AttendeeOut,
    EventCreateRequest,
    EventOut,
    EventUpdateRequest,
    RsvpStatusResponse,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

SORT_COLUMNS = {
    "date": Event.event_date,
    "title": Event.title,
    "created_at": Event.created_at,
    "capacity": Event.capacity,
}


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _attendee_counts(db: Session, event_ids: list[int]) -> dict[int, int]:
    if not event_ids:
        return {}
    rows = (
        db.query(EventRsvp.event_id, func.count(EventRsvp.id))
        .filter(EventRsvp.event_id.in_(event_ids))
        .group_by(EventRsvp.event_id)
        .all()
    )
    return {event_id: count for event_id, count in rows}


def _rsvped_event_ids(db: Session, event_ids: list[int], user_id: int) -> set[int]:
    if not event_ids:
        return set()
    rows = (
        db.query(EventRsvp.event_id)
        .filter(EventRsvp.event_id.in_(event_ids), EventRsvp.user_id == user_id)
        .all()
    )
    return {event_id for (event_id,) in rows}


def _to_out(event: Event, attendees: int, rsvped: bool, now: datetime) -> EventOut:
    spots = max(0, event.capacity - attendees) if event.capacity else None
    return EventOut(
        id=event.id,
        title=event.title,
        description=event.description or "",
        event_date=as_utc(event.event_date),
        location=event.location or "",
        capacity=event.capacity or 0,
        status=event.status,
        created_by=event.created_by,
        created_at=as_utc(event.created_at),
        updated_at=as_utc(event.updated_at),
        attendee_count=attendees,
        spots_remaining=spots,
        is_past=as_utc(event.event_date) < now,
        user_rsvped=rsvped,
    )


def _get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def list_events(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 10,
    search: str = "",
    status: str = "all",
    sort_by: str = "date",
    sort_order: str = "desc",
    now: datetime | None = None,
) -> tuple[list[EventOut], int]:
    """Return one page of events and the total number matching the filters."""
    now = now or datetime.now(UTC)
    page = max(1, page)
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    q = db.query(Event)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        q = q.filter(
            or_(
                Event.title.ilike(pattern),
                Event.description.ilike(pattern),
                Event.location.ilike(pattern),
            )
        )
    if status == "upcoming":
        q = q.filter(Event.event_date >= now)
    elif status == "past":
        q = q.filter(Event.event_date < now)
    elif status == "active":
        q = q.filter(Event.status == EVENT_ACTIVE)
    elif status == "cancelled":
        q = q.filter(Event.status == EVENT_CANCELLED)

    total = q.count()
    column = SORT_COLUMNS.get(sort_by, Event.event_date)
    ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
    events = q.order_by(ordering, Event.id.asc()).offset((page - 1) * limit).limit(limit).all()

    ids = [e.id for e in events]
    counts = _attendee_counts(db, ids)
    mine = _rsvped_event_ids(db, ids, user_id)
    return [_to_out(e, counts.get(e.id, 0), e.id in mine, now) for e in events], total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def get_event(db: Session, event_id: int, user_id: int) -> EventOut:
    event = _get_event(db, event_id)
    counts = _attendee_counts(db, [event.id])
    mine = _rsvped_event_ids(db, [event.id], user_id)
    return _to_out(event, counts.get(event.id, 0), event.id in mine, datetime.now(UTC))


def create_event(db: Session, creator_id: int, body: EventCreateRequest) -> Event:
    title = body.title.strip()
    if not title:
        raise ValidationError("Missing required fields: title", errors={"title": "Required"})
    event = Event(
        title=title,
        description=body.description.strip(),
        event_date=as_utc(body.event_date),
        location=body.location.strip(),
        capacity=body.capacity,
        status=body.status,
        created_by=creator_id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Event created", extra={"event_id": event.id, "capacity": event.capacity})
    return event


def update_event(db: Session, event_id: int, body: EventUpdateRequest) -> Event:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    event = _get_event(db, event_id)
    if not changes:
        raise ValidationError("No fields to update")
    if "title" in changes:
        title = changes["title"].strip()
        if not title:
            raise ValidationError("Title cannot be empty", errors={"title": "Required"})
        event.title = title
    if "description" in changes:
        event.description = changes["description"].strip()
    if "event_date" in changes:
        event.event_date = as_utc(changes["event_date"])
    if "location" in changes:
        event.location = changes["location"].strip()
    if "capacity" in changes:
        event.capacity = changes["capacity"]
    if "status" in changes:
        event.status = changes["status"]
    event.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, event_id: int) -> None:
    db.expunge(_get_event(db, event_id))
    db.query(EventRsvp).filter(EventRsvp.event_id == event_id).delete(synchronize_session=False)
    db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
    db.commit()
    logger.info("Event deleted", extra={"event_id": event_id})


def rsvp(db: Session, event_id: int, user_id: int, now: datetime | None = None) -> EventRsvp:
    """
    Register user_id as attending.

    The event row is locked for the capacity check and insert so two concurrent
    RSVPs cannot both take the last spot.
    """
    now = now or datetime.now(UTC)
    event = db.query(Event).filter(Event.id == event_id).with_for_update().first()
    if event is None:
        raise NotFound("Event not found")
    if event.status == EVENT_CANCELLED:
        db.rollback()
        raise ValidationError("Cannot RSVP to a cancelled event")
    if as_utc(event.event_date) < now:
        db.rollback()
        raise ValidationError("Cannot RSVP to past events")

    existing = (
        db.query(EventRsvp.id)
        .filter(EventRsvp.event_id == event_id, EventRsvp.user_id == user_id)
        .first()
    )
    if existing is not None:
        db.rollback()
        raise Conflict("You have already RSVPed to this event.")

    if event.capacity:
        attendees = (
            db.query(func.count(EventRsvp.id)).filter(EventRsvp.event_id == event_id).scalar()
            or 0
        )
        if attendees >= event.capacity:
            db.rollback()
            raise ValidationError("Event is at full capacity")

    record = EventRsvp(event_id=event_id, user_id=user_id, created_at=now)
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("You have already RSVPed to this event.")
    db.refresh(record)
    logger.info("RSVP recorded", extra={"event_id": event_id, "user_id": user_id})
    return record


def cancel_rsvp(db: Session, event_id: int, user_id: int) -> None:
    _get_event(db, event_id)
    deleted = (
        db.query(EventRsvp)
        .filter(EventRsvp.event_id == event_id, EventRsvp.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        db.rollback()
        raise NotFound("You have not RSVPed to this event.")
    db.commit()


def get_rsvp_status(db: Session, event_id: int, user_id: int) -> RsvpStatusResponse:
    _get_event(db, event_id)
    record = (
        db.query(EventRsvp)
        .filter(EventRsvp.event_id == event_id, EventRsvp.user_id == user_id)
        .first()
    )
    return RsvpStatusResponse(
        event_id=event_id,
        rsvped=record is not None,
        rsvped_at=as_utc(record.created_at) if record else None,
    )


def list_attendees(db: Session, event_id: int) -> list[AttendeeOut]:
    _get_event(db, event_id)
    rows = (
        db.query(User.id, User.full_name, User.email, EventRsvp.created_at)
        .join(EventRsvp, EventRsvp.user_id == User.id)
        .filter(EventRsvp.event_id == event_id)
        .order_by(EventRsvp.created_at.desc(), EventRsvp.id.desc())
        .all()
    )
    return [
        AttendeeOut(id=uid, full_name=name, email=email, rsvp_date=as_utc(created))
        for uid, name, email, created in rows
    ]

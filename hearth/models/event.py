"""ORM models for events and RSVPs."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from hearth.models.base import Base

EVENT_ACTIVE = "active"
EVENT_CANCELLED = "cancelled"
EVENT_STATUSES = (EVENT_ACTIVE, EVENT_CANCELLED)


class Event(Base):
    """Scheduled event. capacity == 0 means unlimited attendees."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    location = Column(String(255), nullable=False, default="")
    capacity = Column(Integer, nullable=False, default=0)
    status = Column(String(32), nullable=False, default=EVENT_ACTIVE)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)


class EventRsvp(Base):
    """One attendee per (event, user)."""

    __tablename__ = "event_rsvps"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_rsvps_event_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

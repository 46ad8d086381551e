"""Schemas for events and RSVPs."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

EventStatus = Literal["active", "cancelled"]
EventFilter = Literal["all", "upcoming", "past", "active", "cancelled"]
EventSortField = Literal["date", "title", "created_at", "capacity"]


class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=10_000)
    event_date: datetime
    location: str = Field(default="", max_length=255)
    capacity: int = Field(default=0, ge=0, description="0 means unlimited")
    status: EventStatus = "active"


class EventUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10_000)
    event_date: datetime | None = None
    location: str | None = Field(default=None, max_length=255)
    capacity: int | None = Field(default=None, ge=0)
    status: EventStatus | None = None


class EventOut(BaseModel):
    id: int
    title: str
    description: str
    event_date: datetime
    location: str
    capacity: int
    status: EventStatus
    created_by: int | None
    created_at: datetime | None
    updated_at: datetime | None
    attendee_count: int = Field(..., ge=0)
    spots_remaining: int | None = Field(
        default=None, description="None when capacity is unlimited"
    )
    is_past: bool
    user_rsvped: bool = False


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class EventListResponse(BaseModel):
    data: list[EventOut]
    pagination: Pagination


class EventCreatedResponse(BaseModel):
    message: str = "Event created successfully"
    id: int


class RsvpStatusResponse(BaseModel):
    event_id: int
    rsvped: bool
    rsvped_at: datetime | None = None


class AttendeeOut(BaseModel):
    id: int
    full_name: str
    email: str
    rsvp_date: datetime | None


class AttendeesResponse(BaseModel):
    data: list[AttendeeOut]

"""Schemas for admin dashboard endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from hearth.schemas.events import Pagination
from hearth.schemas.users import ActivityItem, UserOut


class StatsResponse(BaseModel):
    total_members: int = Field(..., ge=0)
    pending_members: int = Field(..., ge=0)
    approved_members: int = Field(..., ge=0)
    rejected_members: int = Field(..., ge=0)
    upcoming_events: int = Field(..., ge=0)
    total_resources: int = Field(..., ge=0)
    total_messages: int = Field(..., ge=0)


class BulkApproveRequest(BaseModel):
    user_ids: list[int] = Field(..., min_length=1, max_length=500)


class BulkApproveResponse(BaseModel):
    approved_ids: list[int]


class StatusCount(BaseModel):
    status: str
    count: int


class EventStats(BaseModel):
    total_events: int
    upcoming_events: int
    past_events: int


class AttendanceStats(BaseModel):
    total_rsvps: int
    unique_attendees: int
    events_with_rsvps: int


class RegistrationTrend(BaseModel):
    month: str = Field(..., description="YYYY-MM (UTC)")
    registrations: int


class AttendanceTrend(BaseModel):
    month: str = Field(..., description="YYYY-MM (UTC) of the event date")
    total_attendance: int
    unique_attendees: int


class ActiveMember(BaseModel):
    id: int
    full_name: str
    email: str
    events_attended: int
    resources_uploaded: int
    messages_sent: int


class AnalyticsResponse(BaseModel):
    member_stats: list[StatusCount]
    event_stats: EventStats
    attendance_stats: AttendanceStats
    registration_trends: list[RegistrationTrend]
    attendance_trends: list[AttendanceTrend]
    active_members: list[ActiveMember]


class RecentActivityResponse(BaseModel):
    recent_activity: list[ActivityItem]


class MemberEngagement(BaseModel):
    """Per-member activity counts and the weighted 0-100 engagement score."""

    id: int
    full_name: str
    email: str
    created_at: datetime | None = None
    last_login: datetime | None = None
    events_attended: int = 0
    recent_events: int = 0
    resources_uploaded: int = 0
    total_downloads: int = 0
    recent_uploads: int = 0
    messages_sent: int = 0
    conversations_participated: int = 0
    recent_messages: int = 0
    profile_score: int = 0
    engagement_score: float = 0.0
    engagement_level: str = "Inactive"


class EngagementStatistics(BaseModel):
    avg_engagement: float | None = None
    max_engagement: float | None = None
    min_engagement: float | None = None
    total_members: int = 0
    highly_engaged: int = 0
    moderately_engaged: int = 0
    lightly_engaged: int = 0
    inactive: int = 0


class EngagementResponse(BaseModel):
    engagement_scores: list[MemberEngagement]
    statistics: EngagementStatistics


class MemberListItem(UserOut):
    events_attended: int = 0
    resources_uploaded: int = 0


class MemberListResponse(BaseModel):
    members: list[MemberListItem]
    pagination: Pagination


class AttendedEvent(BaseModel):
    id: int
    title: str
    event_date: datetime
    location: str
    attended_at: datetime


class UploadedResource(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    title: str
    original_name: str
    size_bytes: int
    download_count: int
    uploaded_at: datetime


class ActivitySummary(BaseModel):
    events_count: int
    resources_count: int
    messages_count: int


class MemberDetailResponse(BaseModel):
    member: UserOut
    events_attended: list[AttendedEvent]
    resources_uploaded: list[UploadedResource]
    messages_sent: int
    activity_summary: ActivitySummary

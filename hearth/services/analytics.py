"""Admin analytics, engagement scoring, member reports and per-user activity feeds.

Each count comes from its own grouped query and is combined in Python; joining
RSVPs, uploads and messages in one statement would multiply the rows.
"""

import math
from collections import defaultdict
from datetime import UTC, datetime, timedelta

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.orm import Session

from hearth.core.errors import NotFound
from hearth.models.conversation import Conversation, Message
from hearth.models.event import Event, EventRsvp
from hearth.models.resource import Resource
from hearth.models.user import ROLE_MEMBER, STATUS_APPROVED, STATUSES, User
from hearth.schemas.admin import (
    ActiveMember,
    ActivitySummary,
    AnalyticsResponse,
    AttendanceStats,
    AttendanceTrend,
    AttendedEvent,
    EngagementResponse,
    EngagementStatistics,
    EventStats,
    MemberDetailResponse,
    MemberEngagement,
    MemberListItem,
    RegistrationTrend,
    StatusCount,
    UploadedResource,
)
from hearth.schemas.users import ActivityItem, UserOut
from hearth.services.events import as_utc

RECENT_WINDOW = timedelta(days=30)
TREND_WINDOW = timedelta(days=365)
ACTIVE_MEMBER_LIMIT = 10
MEMBER_DETAIL_LIMIT = 10
MAX_PAGE_SIZE = 100
MAX_FEED_SIZE = 100

MEMBER_SORT_COLUMNS = {
    "created_at": User.created_at,
    "full_name": User.full_name,
    "email": User.email,
    "last_login": User.last_login,
    "status": User.status,
}

ENGAGEMENT_LEVELS = (
    (80, "Highly Engaged"),
    (60, "Moderately Engaged"),
    (30, "Lightly Engaged"),
)
INACTIVE = "Inactive"


# ---------------------------------------------------------------------------
# Counting helpers
# ---------------------------------------------------------------------------


def _grouped(db: Session, key, value, *criteria) -> dict[int, int]:
    """{key: aggregate} for rows matching criteria; keys that are NULL are dropped."""
    rows = db.query(key, value).filter(key.is_not(None), *criteria).group_by(key).all()
    return {k: int(v or 0) for k, v in rows}


def _month(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m")


def _members_query(db: Session):
    return db.query(User).filter(User.role == ROLE_MEMBER)


def profile_score(user: User) -> int:
    """0-100: half for a bio, half for listed skills."""
    score = 0
    if user.bio and user.bio.strip():
        score += 50
    if user.skills and user.skills.strip():
        score += 50
    return score


def engagement_score(
    *,
    events_attended: int = 0,
    recent_events: int = 0,
    resources_uploaded: int = 0,
    recent_uploads: int = 0,
    total_downloads: int = 0,
    messages_sent: int = 0,
    conversations_participated: int = 0,
    recent_messages: int = 0,
    profile: int = 0,
) -> float:
    """
    Weighted score capped at 100.

    Events weigh 40%, resources 30%, messaging 20% and profile completeness 10%.
    """
    events = (events_attended * 8 + recent_events * 12) * 0.4
    resources = (
        resources_uploaded * 10 + recent_uploads * 15 + min(20, total_downloads / 5)
    ) * 0.3
    messaging = (
        min(20, messages_sent / 5) + min(10, conversations_participated) + recent_messages * 2
    ) * 0.2
    return min(100.0, round(events + resources + messaging + profile * 0.1, 2))


def engagement_level(score: float) -> str:
    for threshold, label in ENGAGEMENT_LEVELS:
        if score >= threshold:
            return label
    return INACTIVE


# ---------------------------------------------------------------------------
# Dashboard analytics
# ---------------------------------------------------------------------------


def analytics(db: Session, now: datetime | None = None) -> AnalyticsResponse:
    now = now or datetime.now(UTC)
    since = now - TREND_WINDOW

    by_status = _grouped_status(db)
    member_stats = [StatusCount(status=s, count=by_status[s]) for s in STATUSES if s in by_status]

    total_events = db.query(func.count(Event.id)).scalar() or 0
    upcoming = db.query(func.count(Event.id)).filter(Event.event_date >= now).scalar() or 0

    total_rsvps, unique_attendees, events_with_rsvps = db.query(
        func.count(EventRsvp.id),
        func.count(distinct(EventRsvp.user_id)),
        func.count(distinct(EventRsvp.event_id)),
    ).one()

    registrations: dict[str, int] = defaultdict(int)
    for (created_at,) in (
        db.query(User.created_at)
        .filter(User.role == ROLE_MEMBER, User.created_at >= since)
        .all()
    ):
        registrations[_month(created_at)] += 1

    attendance: dict[str, int] = {}
    attendees: dict[str, set[int]] = {}
    for event_date, user_id in (
        db.query(Event.event_date, EventRsvp.user_id)
        .outerjoin(EventRsvp, EventRsvp.event_id == Event.id)
        .filter(Event.event_date >= since)
        .all()
    ):
        month = _month(event_date)
        seen = attendees.setdefault(month, set())
        attendance.setdefault(month, 0)
        if user_id is not None:
            attendance[month] += 1
            seen.add(user_id)

    return AnalyticsResponse(
        member_stats=member_stats,
        event_stats=EventStats(
            total_events=total_events,
            upcoming_events=upcoming,
            past_events=total_events - upcoming,
        ),
        attendance_stats=AttendanceStats(
            total_rsvps=total_rsvps or 0,
            unique_attendees=unique_attendees or 0,
            events_with_rsvps=events_with_rsvps or 0,
        ),
        registration_trends=[
            RegistrationTrend(month=m, registrations=registrations[m])
            for m in sorted(registrations)
        ],
        attendance_trends=[
            AttendanceTrend(
                month=m, total_attendance=attendance[m], unique_attendees=len(attendees[m])
            )
            for m in sorted(attendees)
        ],
        active_members=_active_members(db),
    )


def _grouped_status(db: Session) -> dict[str, int]:
    rows = (
        db.query(User.status, func.count(User.id))
        .filter(User.role == ROLE_MEMBER)
        .group_by(User.status)
        .all()
    )
    return {status: count for status, count in rows}


def _active_members(db: Session) -> list[ActiveMember]:
    members = _members_query(db).filter(User.status == STATUS_APPROVED).all()
    if not members:
        return []
    ids = [m.id for m in members]
    events = _grouped(
        db, EventRsvp.user_id, func.count(distinct(EventRsvp.event_id)), EventRsvp.user_id.in_(ids)
    )
    uploads = _grouped(
        db, Resource.uploaded_by, func.count(Resource.id), Resource.uploaded_by.in_(ids)
    )
    messages = _grouped(db, Message.sender_id, func.count(Message.id), Message.sender_id.in_(ids))
    ranked = sorted(
        members,
        key=lambda m: (
            -(events.get(m.id, 0) + uploads.get(m.id, 0) + messages.get(m.id, 0)),
            m.full_name,
            m.id,
        ),
    )
    return [
        ActiveMember(
            id=m.id,
            full_name=m.full_name,
            email=m.email,
            events_attended=events.get(m.id, 0),
            resources_uploaded=uploads.get(m.id, 0),
            messages_sent=messages.get(m.id, 0),
        )
        for m in ranked[:ACTIVE_MEMBER_LIMIT]
    ]


def recent_activity(db: Session, limit: int = 10) -> list[ActivityItem]:
    """Newest member registrations, RSVPs and uploads merged into one feed."""
    limit = max(1, min(limit, MAX_FEED_SIZE))
    items: list[ActivityItem] = []

    for user in (
        _members_query(db).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()
    ):
        items.append(
            ActivityItem(
                type="registration",
                activity_date=as_utc(user.created_at),
                description=f"{user.full_name} registered",
                user_id=user.id,
                full_name=user.full_name,
            )
        )

    for rsvp, full_name, event_id, title in (
        db.query(EventRsvp, User.full_name, Event.id, Event.title)
        .join(User, User.id == EventRsvp.user_id)
        .join(Event, Event.id == EventRsvp.event_id)
        .order_by(EventRsvp.created_at.desc(), EventRsvp.id.desc())
        .limit(limit)
        .all()
    ):
        items.append(
            ActivityItem(
                type="attendance",
                activity_date=as_utc(rsvp.created_at),
                description=f"{full_name} attended {title}",
                user_id=rsvp.user_id,
                full_name=full_name,
                subject_id=event_id,
                subject_title=title,
            )
        )

    for resource, full_name in (
        db.query(Resource, User.full_name)
        .join(User, User.id == Resource.uploaded_by)
        .order_by(Resource.uploaded_at.desc(), Resource.id.desc())
        .limit(limit)
        .all()
    ):
        items.append(
            ActivityItem(
                type="upload",
                activity_date=as_utc(resource.uploaded_at),
                description=f"{full_name} uploaded {resource.title}",
                user_id=resource.uploaded_by,
                full_name=full_name,
                subject_id=resource.id,
                subject_title=resource.title,
            )
        )

    items.sort(key=lambda item: item.activity_date, reverse=True)
    return items[:limit]


# ---------------------------------------------------------------------------
# Engagement
# ---------------------------------------------------------------------------


def engagement_scores(
    db: Session, limit: int = 20, now: datetime | None = None
) -> EngagementResponse:
    """Score every approved member; return the top `limit` plus statistics over all of them."""
    now = now or datetime.now(UTC)
    cutoff = now - RECENT_WINDOW
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    members = _members_query(db).filter(User.status == STATUS_APPROVED).all()
    ids = [m.id for m in members]
    in_events = EventRsvp.user_id.in_(ids)
    in_uploads = Resource.uploaded_by.in_(ids)
    in_messages = Message.sender_id.in_(ids)

    events = _grouped(db, EventRsvp.user_id, func.count(distinct(EventRsvp.event_id)), in_events)
    recent_events = _grouped(
        db,
        EventRsvp.user_id,
        func.count(distinct(EventRsvp.event_id)),
        in_events,
        EventRsvp.event_id.in_(select(Event.id).where(Event.event_date >= cutoff)),
    )
    uploads = _grouped(db, Resource.uploaded_by, func.count(Resource.id), in_uploads)
    downloads = _grouped(db, Resource.uploaded_by, func.sum(Resource.download_count), in_uploads)
    recent_uploads = _grouped(
        db,
        Resource.uploaded_by,
        func.count(Resource.id),
        in_uploads,
        Resource.uploaded_at >= cutoff,
    )
    messages = _grouped(db, Message.sender_id, func.count(Message.id), in_messages)
    conversations = _grouped(
        db, Message.sender_id, func.count(distinct(Message.conversation_id)), in_messages
    )
    recent_messages = _grouped(
        db, Message.sender_id, func.count(Message.id), in_messages, Message.sent_at >= cutoff
    )

    scored: list[MemberEngagement] = []
    for member in members:
        counts = {
            "events_attended": events.get(member.id, 0),
            "recent_events": recent_events.get(member.id, 0),
            "resources_uploaded": uploads.get(member.id, 0),
            "recent_uploads": recent_uploads.get(member.id, 0),
            "total_downloads": downloads.get(member.id, 0),
            "messages_sent": messages.get(member.id, 0),
            "conversations_participated": conversations.get(member.id, 0),
            "recent_messages": recent_messages.get(member.id, 0),
        }
        profile = profile_score(member)
        score = engagement_score(profile=profile, **counts)
        scored.append(
            MemberEngagement(
                id=member.id,
                full_name=member.full_name,
                email=member.email,
                created_at=as_utc(member.created_at),
                last_login=as_utc(member.last_login),
                profile_score=profile,
                engagement_score=score,
                engagement_level=engagement_level(score),
                **counts,
            )
        )
    scored.sort(key=lambda m: (-m.engagement_score, m.full_name, m.id))
    return EngagementResponse(engagement_scores=scored[:limit], statistics=_statistics(scored))


def _statistics(scored: list[MemberEngagement]) -> EngagementStatistics:
    if not scored:
        return EngagementStatistics()
    scores = [m.engagement_score for m in scored]
    levels: dict[str, int] = defaultdict(int)
    for m in scored:
        levels[m.engagement_level] += 1
    return EngagementStatistics(
        avg_engagement=round(sum(scores) / len(scores), 2),
        max_engagement=max(scores),
        min_engagement=min(scores),
        total_members=len(scored),
        highly_engaged=levels["Highly Engaged"],
        moderately_engaged=levels["Moderately Engaged"],
        lightly_engaged=levels["Lightly Engaged"],
        inactive=levels[INACTIVE],
    )


# ---------------------------------------------------------------------------
# Member reports
# ---------------------------------------------------------------------------


def list_members(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: str = "all",
    search: str = "",
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[MemberListItem], int]:
    """One page of members (admins excluded) with attendance and upload counts."""
    page = max(1, page)
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    q = _members_query(db)
    if status != "all":
        q = q.filter(User.status == status)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        q = q.filter(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

    total = q.count()
    column = MEMBER_SORT_COLUMNS.get(sort_by, User.created_at)
    ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
    members = q.order_by(ordering, User.id.asc()).offset((page - 1) * limit).limit(limit).all()

    ids = [m.id for m in members]
    events: dict[int, int] = {}
    uploads: dict[int, int] = {}
    if ids:
        events = _grouped(
            db, EventRsvp.user_id, func.count(EventRsvp.id), EventRsvp.user_id.in_(ids)
        )
        uploads = _grouped(
            db, Resource.uploaded_by, func.count(Resource.id), Resource.uploaded_by.in_(ids)
        )
    items = [
        MemberListItem(
            **UserOut.model_validate(m).model_dump(),
            events_attended=events.get(m.id, 0),
            resources_uploaded=uploads.get(m.id, 0),
        )
        for m in members
    ]
    return items, total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def member_detail(db: Session, member_id: int) -> MemberDetailResponse:
    member = _members_query(db).filter(User.id == member_id).first()
    if member is None:
        raise NotFound("Member not found")

    attended = [
        AttendedEvent(
            id=event.id,
            title=event.title,
            event_date=as_utc(event.event_date),
            location=event.location or "",
            attended_at=as_utc(attended_at),
        )
        for event, attended_at in db.query(Event, EventRsvp.created_at)
        .join(EventRsvp, EventRsvp.event_id == Event.id)
        .filter(EventRsvp.user_id == member_id)
        .order_by(Event.event_date.desc(), Event.id.desc())
        .limit(MEMBER_DETAIL_LIMIT)
        .all()
    ]
    uploaded = [
        UploadedResource.model_validate(r)
        for r in db.query(Resource)
        .filter(Resource.uploaded_by == member_id)
        .order_by(Resource.uploaded_at.desc(), Resource.id.desc())
        .limit(MEMBER_DETAIL_LIMIT)
        .all()
    ]
    message_count = (
        db.query(func.count(Message.id)).filter(Message.sender_id == member_id).scalar() or 0
    )
    return MemberDetailResponse(
        member=UserOut.model_validate(member),
        events_attended=attended,
        resources_uploaded=uploaded,
        messages_sent=message_count,
        activity_summary=ActivitySummary(
            events_count=len(attended),
            resources_count=len(uploaded),
            messages_count=message_count,
        ),
    )


# ---------------------------------------------------------------------------
# Own activity
# ---------------------------------------------------------------------------


def user_activity(db: Session, user_id: int, limit: int = 20) -> list[ActivityItem]:
    """The caller's RSVPs, uploads and sent messages, newest first."""
    limit = max(1, min(limit, MAX_FEED_SIZE))
    items: list[ActivityItem] = []

    for created_at, event_id, title in (
        db.query(EventRsvp.created_at, Event.id, Event.title)
        .join(Event, Event.id == EventRsvp.event_id)
        .filter(EventRsvp.user_id == user_id)
        .order_by(EventRsvp.created_at.desc(), EventRsvp.id.desc())
        .limit(limit)
        .all()
    ):
        items.append(
            ActivityItem(
                type="event_attendance",
                activity_date=as_utc(created_at),
                description=f"Attended event: {title}",
                user_id=user_id,
                subject_id=event_id,
                subject_title=title,
            )
        )

    for resource in (
        db.query(Resource)
        .filter(Resource.uploaded_by == user_id)
        .order_by(Resource.uploaded_at.desc(), Resource.id.desc())
        .limit(limit)
        .all()
    ):
        items.append(
            ActivityItem(
                type="resource_upload",
                activity_date=as_utc(resource.uploaded_at),
                description=f"Uploaded resource: {resource.title}",
                user_id=user_id,
                subject_id=resource.id,
                subject_title=resource.title,
            )
        )

    for message, conversation_name in (
        db.query(Message, Conversation.name)
        .join(Conversation, Conversation.id == Message.conversation_id)
        .filter(Message.sender_id == user_id)
        .order_by(Message.sent_at.desc(), Message.id.desc())
        .limit(limit)
        .all()
    ):
        items.append(
            ActivityItem(
                type="message_sent",
                activity_date=as_utc(message.sent_at),
                description=f"Sent message in: {conversation_name or 'conversation'}",
                user_id=user_id,
                subject_id=message.conversation_id,
                subject_title=conversation_name,
            )
        )

    items.sort(key=lambda item: item.activity_date, reverse=True)
    return items[:limit]

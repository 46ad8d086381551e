"""Admin dashboard: counts, pending queue, bulk approval, analytics and member reports."""

from datetime import UTC, datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from hearth.api.v1.auth import require_admin
from hearth.core.database import get_db
from hearth.models import Event, Message, Resource, User
from hearth.models.user import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from hearth.schemas.admin import (
    AnalyticsResponse,
    BulkApproveRequest,
    BulkApproveResponse,
    EngagementResponse,
    MemberDetailResponse,
    MemberListResponse,
    RecentActivityResponse,
    StatsResponse,
)
from hearth.schemas.auth import CurrentUser, UserStatus
from hearth.schemas.events import Pagination
from hearth.schemas.users import UserOut, UsersListResponse
from hearth.services import analytics as analytics_service
from hearth.services import users as user_service

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> StatsResponse:
    """Headline numbers for the admin dashboard."""
    by_status = dict(
        db.query(User.status, func.count(User.id)).group_by(User.status).all()
    )
    upcoming = (
        db.query(func.count(Event.id)).filter(Event.event_date >= datetime.now(UTC)).scalar() or 0
    )
    return StatsResponse(
        total_members=sum(by_status.values()),
        pending_members=by_status.get(STATUS_PENDING, 0),
        approved_members=by_status.get(STATUS_APPROVED, 0),
        rejected_members=by_status.get(STATUS_REJECTED, 0),
        upcoming_events=upcoming,
        total_resources=db.query(func.count(Resource.id)).scalar() or 0,
        total_messages=db.query(func.count(Message.id)).scalar() or 0,
    )


@router.get("/pending-members", response_model=UsersListResponse)
def pending_members(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    users = user_service.list_users(db, status=STATUS_PENDING)
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])


@router.post("/bulk-approve", response_model=BulkApproveResponse)
def bulk_approve(
    body: BulkApproveRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> BulkApproveResponse:
    """Approve every pending user in the list; ids that are not pending are skipped."""
    return BulkApproveResponse(approved_ids=user_service.bulk_approve(db, body.user_ids))


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AnalyticsResponse:
    """Member, event and attendance counts, twelve-month trends and the most active members."""
    return analytics_service.analytics(db)


@router.get("/recent-activity", response_model=RecentActivityResponse)
def recent_activity(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=analytics_service.MAX_FEED_SIZE)] = 10,
) -> RecentActivityResponse:
    return RecentActivityResponse(
        recent_activity=analytics_service.recent_activity(db, limit=limit)
    )


@router.get("/engagement-scores", response_model=EngagementResponse)
def engagement_scores(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=analytics_service.MAX_PAGE_SIZE)] = 20,
) -> EngagementResponse:
    """Approved members ranked by engagement score (0-100), plus statistics over all of them."""
    return analytics_service.engagement_scores(db, limit=limit)


@router.get("/members", response_model=MemberListResponse)
def list_members(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=analytics_service.MAX_PAGE_SIZE)] = 20,
    status_filter: Annotated[UserStatus | Literal["all"], Query(alias="status")] = "all",
    search: str = "",
    sort_by: Literal["created_at", "full_name", "email", "last_login", "status"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> MemberListResponse:
    members, total = analytics_service.list_members(
        db,
        page=page,
        limit=limit,
        status=status_filter,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return MemberListResponse(
        members=members,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=analytics_service.total_pages(total, limit),
        ),
    )


@router.get("/members/{member_id}", response_model=MemberDetailResponse)
def member_detail(
    member_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MemberDetailResponse:
    """A member's profile with recent RSVPs, uploads and message count."""
    return analytics_service.member_detail(db, member_id)

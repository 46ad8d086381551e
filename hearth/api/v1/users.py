"""User profile, directory, and admin user-management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hearth.api.v1.auth import get_current_user, require_admin
from hearth.core.database import get_db
from hearth.schemas.auth import CurrentUser, MessageResponse, UserStatus
from hearth.schemas.users import (
    AccountDeleteRequest,
    ActivityResponse,
    AdminUserUpdateRequest,
    PasswordChangeRequest,
    Preferences,
    PreferencesResponse,
    ProfileUpdateRequest,
    UserDirectoryResponse,
    UserOut,
    UserResponse,
    UsersListResponse,
    UserSummary,
)
from hearth.services import analytics as analytics_service
from hearth.services import users as user_service

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    status: UserStatus | None = None,
) -> UsersListResponse:
    """List all users, optionally filtered by status (admin only)."""
    users = user_service.list_users(db, status=status)
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])


@router.get("/directory", response_model=UserDirectoryResponse)
def directory(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserDirectoryResponse:
    """Approved members other than the caller (for starting conversations)."""
    users = user_service.list_directory(db, exclude_user_id=current_user.id)
    return UserDirectoryResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get("/search", response_model=UserDirectoryResponse)
def search(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    q: str = "",
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> UserDirectoryResponse:
    users = user_service.search_users(db, q, exclude_user_id=current_user.id, limit=limit)
    return UserDirectoryResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get("/me", response_model=UserOut)
def get_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    return UserOut.model_validate(user_service.get_user(db, current_user.id))


@router.put("/me/profile", response_model=UserResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    user = user_service.update_profile(db, current_user.id, body.full_name, body.bio, body.skills)
    return UserResponse(message="Profile updated successfully", user=UserOut.model_validate(user))


@router.put("/me/password", response_model=MessageResponse)
def change_password(
    body: PasswordChangeRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    user_service.change_password(
        db,
        current_user.id,
        body.current_password,
        body.new_password,
        body.confirm_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.put("/me/preferences", response_model=PreferencesResponse)
def update_preferences(
    body: Preferences,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> PreferencesResponse:
    """Notification switches and privacy level (public, members or private)."""
    user = user_service.update_preferences(
        db,
        current_user.id,
        body.email_notifications,
        body.push_notifications,
        body.privacy_level,
    )
    return PreferencesResponse(
        message="Preferences updated successfully",
        preferences=Preferences.model_validate(user),
    )


@router.get("/me/activity", response_model=ActivityResponse)
def my_activity(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=analytics_service.MAX_FEED_SIZE)] = 20,
) -> ActivityResponse:
    """The caller's RSVPs, uploads and sent messages, newest first."""
    return ActivityResponse(
        activities=analytics_service.user_activity(db, current_user.id, limit=limit)
    )


@router.delete("/me/account", response_model=MessageResponse)
def delete_account(
    body: AccountDeleteRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete the caller's account after re-checking the password."""
    user_service.delete_own_account(db, current_user.id, body.password)
    return MessageResponse(message="Account deleted successfully")


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    return UserOut.model_validate(user_service.get_user(db, user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: AdminUserUpdateRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    user = user_service.admin_update_user(
        db,
        user_id,
        full_name=body.full_name,
        email=body.email,
        role=body.role,
        status=body.status,
    )
    return UserResponse(message="User updated successfully", user=UserOut.model_validate(user))


@router.patch("/{user_id}/approve", response_model=UserResponse)
def approve_user(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    user = user_service.approve_user(db, user_id)
    return UserResponse(message="User approved successfully", user=UserOut.model_validate(user))


@router.patch("/{user_id}/reject", response_model=UserResponse)
def reject_user(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    user = user_service.reject_user(db, user_id)
    return UserResponse(message="User rejected successfully", user=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    user_service.admin_delete_user(db, user_id, acting_admin_id=admin.id)
    return MessageResponse(message="User deleted successfully")

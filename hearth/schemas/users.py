"""Schemas for user profile and administration endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from hearth.schemas.auth import Role, UserStatus

PrivacyLevel = Literal["public", "members", "private"]


class UserOut(BaseModel):
    """User entry (no password hash)."""

    model_config = {"from_attributes": True}

    id: int
    full_name: str
    email: str
    role: Role
    status: UserStatus
    bio: str | None = None
    skills: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None
    email_notifications: bool = True
    push_notifications: bool = True
    privacy_level: PrivacyLevel = "public"


class UserSummary(BaseModel):
    """Compact entry for directory and search results."""

    model_config = {"from_attributes": True}

    id: int
    full_name: str
    email: str
    role: Role


class UsersListResponse(BaseModel):
    users: list[UserOut]


class UserDirectoryResponse(BaseModel):
    users: list[UserSummary]


class ProfileUpdateRequest(BaseModel):
    full_name: str = Field(..., max_length=255)
    bio: str | None = None
    skills: str | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)


class AccountDeleteRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=128)


class AdminUserUpdateRequest(BaseModel):
    """Admin edit; omitted fields are left unchanged."""

    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: Role | None = None
    status: UserStatus | None = None


class UserResponse(BaseModel):
    message: str
    user: UserOut


class Preferences(BaseModel):
    model_config = {"from_attributes": True}

    email_notifications: bool = True
    push_notifications: bool = True
    privacy_level: str = Field(default="public", max_length=16)


class PreferencesResponse(BaseModel):
    message: str
    preferences: Preferences


class ActivityItem(BaseModel):
    """One entry in an activity feed, newest first."""

    type: str
    activity_date: datetime
    description: str
    user_id: int | None = None
    full_name: str | None = None
    subject_id: int | None = None
    subject_title: str | None = None


class ActivityResponse(BaseModel):
    activities: list[ActivityItem]

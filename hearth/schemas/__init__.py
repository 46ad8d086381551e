"""Pydantic request/response schemas."""

from hearth.schemas.auth import CurrentUser, LoginRequest, LoginResponse, RegisterRequest
from hearth.schemas.events import EventCreateRequest, EventOut, EventUpdateRequest
from hearth.schemas.health import HealthResponse
from hearth.schemas.messages import (
    ConversationDetail,
    ConversationSummary,
    ConversationUpdateRequest,
    MessageOut,
)
from hearth.schemas.resources import ResourceOut, ResourceUpdateRequest
from hearth.schemas.users import UserOut, UserSummary

__all__ = [
    "ConversationDetail",
    "ConversationSummary",
    "ConversationUpdateRequest",
    "CurrentUser",
    "EventCreateRequest",
    "EventOut",
    "EventUpdateRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageOut",
    "RegisterRequest",
    "ResourceOut",
    "ResourceUpdateRequest",
    "UserOut",
    "UserSummary",
]

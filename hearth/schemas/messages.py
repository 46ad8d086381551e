"""Schemas for conversations and messages."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ConversationType = Literal["direct", "group"]

MESSAGE_MAX_LENGTH = 5000


class ParticipantOut(BaseModel):
    id: int
    full_name: str


class MessageOut(BaseModel):
    id: int
    conversation_id: int
    sender_id: int | None
    sender_name: str | None
    content: str
    sent_at: datetime
    read_status: bool


class ConversationSummary(BaseModel):
    """List entry: display name resolves to the other member for direct conversations."""

    id: int
    type: ConversationType
    name: str | None
    display_name: str
    participants: list[ParticipantOut]
    last_message: MessageOut | None
    unread_count: int = Field(..., ge=0)
    updated_at: datetime


class ConversationListResponse(BaseModel):
    conversations: list[ConversationSummary]


class ConversationDetail(BaseModel):
    id: int
    type: ConversationType
    name: str | None
    created_by: int | None
    participants: list[ParticipantOut]
    messages: list[MessageOut]
    updated_at: datetime


class DirectConversationRequest(BaseModel):
    user_id: int


class GroupConversationRequest(BaseModel):
    name: str = Field(..., max_length=255)
    participant_ids: list[int] = Field(..., min_length=1, max_length=200)


class ConversationCreatedResponse(BaseModel):
    conversation_id: int
    created: bool


class ConversationUpdateRequest(BaseModel):
    """Group-only update; each part is optional."""

    name: str | None = Field(default=None, max_length=255)
    add_participant_ids: list[int] = Field(default_factory=list, max_length=200)
    remove_participant_ids: list[int] = Field(default_factory=list, max_length=200)


class SendMessageRequest(BaseModel):
    content: str = Field(..., max_length=MESSAGE_MAX_LENGTH)


class LeaveConversationResponse(BaseModel):
    """outcome is 'deleted' when the conversation no longer exists, 'left' otherwise."""

    conversation_id: int
    outcome: Literal["left", "deleted"]


class CountResponse(BaseModel):
    count: int = Field(..., ge=0)


class UnreadCountResponse(BaseModel):
    unread_count: int = Field(..., ge=0)

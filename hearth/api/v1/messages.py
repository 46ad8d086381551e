"""Direct and group messaging routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from hearth.api.v1.auth import get_current_user
from hearth.core.database import get_db
from hearth.schemas.auth import CurrentUser, MessageResponse
from hearth.schemas.messages import (
    ConversationCreatedResponse,
    ConversationDetail,
    ConversationListResponse,
    ConversationUpdateRequest,
    CountResponse,
    DirectConversationRequest,
    GroupConversationRequest,
    LeaveConversationResponse,
    MessageOut,
    SendMessageRequest,
    UnreadCountResponse,
)
from hearth.services import conversations as conversation_service

router = APIRouter()


@router.get("/conversations", response_model=ConversationListResponse)
def list_conversations(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ConversationListResponse:
    """Caller's conversations, most recently active first, with last message and unread count."""
    return ConversationListResponse(
        conversations=conversation_service.list_conversations(db, current_user.id)
    )


@router.post("/conversations/direct", response_model=ConversationCreatedResponse)
def start_direct(
    body: DirectConversationRequest,
    response: Response,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ConversationCreatedResponse:
    """Return the existing direct conversation with user_id (200) or create it (201)."""
    conversation, created = conversation_service.get_or_create_direct(
        db, current_user.id, body.user_id
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return ConversationCreatedResponse(conversation_id=conversation.id, created=created)


@router.post(
    "/conversations/group",
    response_model=ConversationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_group(
    body: GroupConversationRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ConversationCreatedResponse:
    conversation = conversation_service.create_group(
        db, current_user.id, body.name, body.participant_ids
    )
    return ConversationCreatedResponse(conversation_id=conversation.id, created=True)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ConversationDetail:
    return conversation_service.get_conversation_detail(db, conversation_id, current_user.id)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    conversation_id: int,
    body: SendMessageRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageOut:
    return conversation_service.send_message(db, conversation_id, current_user.id, body.content)


@router.put("/conversations/{conversation_id}", response_model=ConversationDetail)
def update_conversation(
    conversation_id: int,
    body: ConversationUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ConversationDetail:
    """Rename a group and/or add and remove members. Direct conversations cannot be edited."""
    return conversation_service.update_group(
        db,
        conversation_id,
        current_user.id,
        name=body.name,
        add_ids=body.add_participant_ids,
        remove_ids=body.remove_participant_ids,
    )


@router.delete("/conversations/{conversation_id}", response_model=LeaveConversationResponse)
def leave_conversation(
    conversation_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> LeaveConversationResponse:
    """Leave a conversation; it is deleted with its messages once too few members remain."""
    outcome = conversation_service.leave_conversation(db, conversation_id, current_user.id)
    return LeaveConversationResponse(conversation_id=conversation_id, outcome=outcome)


@router.patch("/conversations/{conversation_id}/read", response_model=MessageResponse)
def mark_conversation_read(
    conversation_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    conversation_service.mark_conversation_read(db, conversation_id, current_user.id)
    return MessageResponse(message="Messages marked as read.")


@router.patch("/{message_id}/read", response_model=MessageResponse)
def mark_message_read(
    message_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    conversation_service.mark_message_read(db, message_id, current_user.id)
    return MessageResponse(message="Message marked as read.")


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=conversation_service.unread_count(db, current_user.id))


@router.get("/count", response_model=CountResponse)
def get_message_count(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> CountResponse:
    return CountResponse(count=conversation_service.message_count(db, current_user.id))

"""Conversation membership: direct/group creation, posting, group edits, leave/delete.

Invariants:
- a direct conversation starts with exactly two participants and is deleted once
  fewer than two remain;
- a group edit never leaves fewer than two participants;
- every failed edit leaves the conversation untouched (validate first, then mutate);
- a deleted conversation takes its messages and participant rows with it.
"""

import logging
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.orm import Session

from hearth.core.errors import (
    AccessDenied,
    Forbidden,
    InvalidOperation,
    NotFound,
    ValidationError,
)
from hearth.models.conversation import (
    CONVERSATION_DIRECT,
    CONVERSATION_GROUP,
    Conversation,
    ConversationParticipant,
    Message,
)
from hearth.models.user import STATUS_APPROVED, User
from hearth.schemas.messages import (
    ConversationDetail,
    ConversationSummary,
    MessageOut,
    ParticipantOut,
)

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 2

LeaveOutcome = Literal["left", "deleted"]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _get_conversation(db: Session, conversation_id: int) -> Conversation:
    conversation = db.get(Conversation, conversation_id)
    if conversation is None:
        raise NotFound("Conversation not found.")
    return conversation


def participant_ids(db: Session, conversation_id: int) -> set[int]:
    rows = (
        db.query(ConversationParticipant.user_id)
        .filter(ConversationParticipant.conversation_id == conversation_id)
        .all()
    )
    return {user_id for (user_id,) in rows}


def is_participant(db: Session, conversation_id: int, user_id: int) -> bool:
    return (
        db.query(ConversationParticipant.id)
        .filter(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id,
        )
        .first()
        is not None
    )


def require_participant(db: Session, conversation_id: int, user_id: int) -> Conversation:
    """Return the conversation if user_id is a member; NotFound / AccessDenied otherwise."""
    conversation = _get_conversation(db, conversation_id)
    if not is_participant(db, conversation_id, user_id):
        raise AccessDenied("Access denied to this conversation.")
    return conversation


def _ensure_approved(db: Session, user_ids: set[int], field: str) -> None:
    """All-or-nothing check that every id is an existing approved user."""
    if not user_ids:
        return
    found = {
        user_id
        for (user_id,) in db.query(User.id)
        .filter(User.id.in_(user_ids), User.status == STATUS_APPROVED)
        .all()
    }
    invalid = sorted(user_ids - found)
    if invalid:
        raise ValidationError(
            "Some selected users are invalid or not approved.",
            errors={field: invalid},
        )


def _participants_by_conversation(
    db: Session, conversation_ids: list[int]
) -> dict[int, list[ParticipantOut]]:
    out: dict[int, list[ParticipantOut]] = {cid: [] for cid in conversation_ids}
    if not conversation_ids:
        return out
    rows = (
        db.query(ConversationParticipant.conversation_id, User.id, User.full_name)
        .join(User, User.id == ConversationParticipant.user_id)
        .filter(ConversationParticipant.conversation_id.in_(conversation_ids))
        .order_by(User.full_name.asc(), User.id.asc())
        .all()
    )
    for conversation_id, user_id, full_name in rows:
        out[conversation_id].append(ParticipantOut(id=user_id, full_name=full_name))
    return out


def _message_query(db: Session):
    return db.query(Message, User.full_name).outerjoin(User, User.id == Message.sender_id)


def _to_message_out(message: Message, sender_name: str | None) -> MessageOut:
    return MessageOut(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_id=message.sender_id,
        sender_name=sender_name,
        content=message.content,
        sent_at=message.sent_at,
        read_status=bool(message.read_status),
    )


def _unread_filter(user_id: int):
    return (
        Message.read_status.is_(False),
        or_(Message.sender_id.is_(None), Message.sender_id != user_id),
    )


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def find_direct_conversation(db: Session, user_a: int, user_b: int) -> Conversation | None:
    """Direct conversation containing both users; argument order does not matter."""
    return (
        db.query(Conversation)
        .join(
            ConversationParticipant,
            ConversationParticipant.conversation_id == Conversation.id,
        )
        .filter(
            Conversation.type == CONVERSATION_DIRECT,
            ConversationParticipant.user_id.in_([user_a, user_b]),
        )
        .group_by(Conversation.id)
        .having(func.count(distinct(ConversationParticipant.user_id)) == 2)
        .order_by(Conversation.id.asc())
        .first()
    )


def _create(
    db: Session,
    conversation_type: str,
    creator_id: int,
    member_ids: list[int],
    name: str | None = None,
) -> Conversation:
    now = datetime.now(UTC)
    conversation = Conversation(
        type=conversation_type,
        name=name,
        created_by=creator_id,
        created_at=now,
        updated_at=now,
    )
    db.add(conversation)
    db.flush()
    for user_id in member_ids:
        db.add(ConversationParticipant(conversation_id=conversation.id, user_id=user_id))
    db.commit()
    db.refresh(conversation)
    logger.info(
        "Conversation created",
        extra={
            "conversation_id": conversation.id,
            "conversation_type": conversation_type,
            "participant_count": len(member_ids),
        },
    )
    return conversation


def get_or_create_direct(
    db: Session, user_id: int, other_user_id: int
) -> tuple[Conversation, bool]:
    """Reuse the pair's direct conversation or create it. Returns (conversation, created)."""
    if other_user_id == user_id:
        raise ValidationError("Invalid user selected.", errors={"user_id": "Cannot message yourself"})
    _ensure_approved(db, {other_user_id}, field="user_id")
    existing = find_direct_conversation(db, user_id, other_user_id)
    if existing is not None:
        return existing, False
    return _create(db, CONVERSATION_DIRECT, user_id, [user_id, other_user_id]), True


def create_group(
    db: Session, creator_id: int, name: str, participant_ids_: list[int]
) -> Conversation:
    """Create a named group; the creator is always a member."""
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Group name cannot be empty.", errors={"name": "Required"})
    others = set(participant_ids_) - {creator_id}
    _ensure_approved(db, others, field="participant_ids")
    if len(others) + 1 < MIN_PARTICIPANTS:
        raise ValidationError(
            f"A group needs at least {MIN_PARTICIPANTS} participants.",
            errors={"participant_ids": "Add at least one other member"},
        )
    members = [creator_id, *sorted(others)]
    return _create(db, CONVERSATION_GROUP, creator_id, members, name=clean_name)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def list_conversations(db: Session, user_id: int) -> list[ConversationSummary]:
    """Caller's conversations, most recently active first."""
    conversations = (
        db.query(Conversation)
        .join(
            ConversationParticipant,
            ConversationParticipant.conversation_id == Conversation.id,
        )
        .filter(ConversationParticipant.user_id == user_id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .all()
    )
    ids = [c.id for c in conversations]
    members = _participants_by_conversation(db, ids)

    unread: dict[int, int] = {}
    if ids:
        rows = (
            db.query(Message.conversation_id, func.count(Message.id))
            .filter(Message.conversation_id.in_(ids), *_unread_filter(user_id))
            .group_by(Message.conversation_id)
            .all()
        )
        unread = {cid: count for cid, count in rows}

    last_by_conversation: dict[int, tuple[Message, str | None]] = {}
    if ids:
        latest = (
            select(func.max(Message.id))
            .where(Message.conversation_id.in_(ids))
            .group_by(Message.conversation_id)
        )
        for message, sender_name in _message_query(db).filter(Message.id.in_(latest)).all():
            last_by_conversation[message.conversation_id] = (message, sender_name)

    summaries: list[ConversationSummary] = []
    for conversation in conversations:
        last = last_by_conversation.get(conversation.id)
        people = members[conversation.id]
        if conversation.type == CONVERSATION_GROUP:
            display_name = conversation.name or "Group"
        else:
            others = [p.full_name for p in people if p.id != user_id]
            display_name = others[0] if others else "Conversation"
        summaries.append(
            ConversationSummary(
                id=conversation.id,
                type=conversation.type,
                name=conversation.name,
                display_name=display_name,
                participants=people,
                last_message=_to_message_out(*last) if last else None,
                unread_count=unread.get(conversation.id, 0),
                updated_at=conversation.updated_at,
            )
        )
    return summaries


def get_conversation_detail(
    db: Session, conversation_id: int, user_id: int
) -> ConversationDetail:
    conversation = require_participant(db, conversation_id, user_id)
    rows = (
        _message_query(db)
        .filter(Message.conversation_id == conversation_id)
        .order_by(Message.sent_at.asc(), Message.id.asc())
        .all()
    )
    return ConversationDetail(
        id=conversation.id,
        type=conversation.type,
        name=conversation.name,
        created_by=conversation.created_by,
        participants=_participants_by_conversation(db, [conversation.id])[conversation.id],
        messages=[_to_message_out(m, name) for m, name in rows],
        updated_at=conversation.updated_at,
    )


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def send_message(db: Session, conversation_id: int, sender_id: int, content: str) -> MessageOut:
    """Append a message and bump the conversation's updated_at."""
    conversation = require_participant(db, conversation_id, sender_id)
    text = (content or "").strip()
    if not text:
        raise ValidationError("Message cannot be empty.", errors={"content": "Required"})
    now = datetime.now(UTC)
    message = Message(
        conversation_id=conversation.id,
        sender_id=sender_id,
        content=text,
        sent_at=now,
        read_status=False,
    )
    db.add(message)
    conversation.updated_at = now
    db.commit()
    db.refresh(message)
    sender = db.get(User, sender_id)
    return _to_message_out(message, sender.full_name if sender else None)


def mark_conversation_read(db: Session, conversation_id: int, user_id: int) -> int:
    """Mark everyone else's messages read; returns how many changed."""
    require_participant(db, conversation_id, user_id)
    updated = (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id, *_unread_filter(user_id))
        .update({Message.read_status: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def mark_message_read(db: Session, message_id: int, user_id: int) -> None:
    message = db.get(Message, message_id)
    if message is None:
        raise NotFound("Message not found.")
    if not is_participant(db, message.conversation_id, user_id):
        raise AccessDenied("Not authorized.")
    message.read_status = True
    db.commit()


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(func.count(Message.id))
        .join(
            ConversationParticipant,
            ConversationParticipant.conversation_id == Message.conversation_id,
        )
        .filter(ConversationParticipant.user_id == user_id, *_unread_filter(user_id))
        .scalar()
        or 0
    )


def message_count(db: Session, user_id: int) -> int:
    return (
        db.query(func.count(Message.id))
        .join(
            ConversationParticipant,
            ConversationParticipant.conversation_id == Message.conversation_id,
        )
        .filter(ConversationParticipant.user_id == user_id)
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# Group edits
# ---------------------------------------------------------------------------


def update_group(
    db: Session,
    conversation_id: int,
    caller_id: int,
    name: str | None = None,
    add_ids: list[int] | None = None,
    remove_ids: list[int] | None = None,
) -> ConversationDetail:
    """Rename, add and/or remove members of a group. All checks run before any write."""
    conversation = require_participant(db, conversation_id, caller_id)
    if conversation.type != CONVERSATION_GROUP:
        raise InvalidOperation("Only group conversations can be updated.")

    add_ids = list(dict.fromkeys(add_ids or []))
    removal = set(remove_ids or [])
    if name is None and not add_ids and not removal:
        raise ValidationError("No changes requested.")

    new_name: str | None = None
    if name is not None:
        new_name = name.strip()
        if not new_name:
            raise ValidationError("Group name cannot be empty.", errors={"name": "Required"})

    current = participant_ids(db, conversation_id)

    if add_ids:
        _ensure_approved(db, set(add_ids), field="add_participant_ids")
    to_add = [user_id for user_id in add_ids if user_id not in current]

    if removal:
        if caller_id in removal:
            raise ValidationError(
                "Cannot remove self from the conversation. Leave it instead.",
                errors={"remove_participant_ids": [caller_id]},
            )
        if removal & set(add_ids):
            raise ValidationError("The same user cannot be added and removed at once.")
        # Ids that are not members are ignored; adds in the same request do not count.
        removal &= current
        if len(current) - len(removal) < MIN_PARTICIPANTS:
            raise ValidationError(
                f"Would leave conversation with fewer than {MIN_PARTICIPANTS} participants."
            )

    if new_name is not None:
        conversation.name = new_name
    for user_id in to_add:
        db.add(ConversationParticipant(conversation_id=conversation_id, user_id=user_id))
    if removal:
        db.query(ConversationParticipant).filter(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id.in_(removal),
        ).delete(synchronize_session=False)
    db.commit()
    logger.info(
        "Group conversation updated",
        extra={
            "conversation_id": conversation_id,
            "renamed": new_name is not None,
            "added": len(to_add),
            "removed": len(removal),
        },
    )
    return get_conversation_detail(db, conversation_id, caller_id)


# ---------------------------------------------------------------------------
# Leave / delete
# ---------------------------------------------------------------------------


def _delete_conversation(db: Session, conversation_id: int) -> None:
    db.query(Message).filter(Message.conversation_id == conversation_id).delete(
        synchronize_session=False
    )
    db.query(ConversationParticipant).filter(
        ConversationParticipant.conversation_id == conversation_id
    ).delete(synchronize_session=False)
    db.query(Conversation).filter(Conversation.id == conversation_id).delete(
        synchronize_session=False
    )


def leave_conversation_in_session(db: Session, conversation_id: int, user_id: int) -> LeaveOutcome:
    """Remove user_id and delete the conversation if it fell below its minimum. Does not commit."""
    conversation = _get_conversation(db, conversation_id)
    if not is_participant(db, conversation_id, user_id):
        raise Forbidden("You are not a participant of this conversation.")
    conversation_type = conversation.type

    db.query(ConversationParticipant).filter(
        ConversationParticipant.conversation_id == conversation_id,
        ConversationParticipant.user_id == user_id,
    ).delete(synchronize_session=False)
    remaining = len(participant_ids(db, conversation_id))

    if remaining == 0 or (conversation_type == CONVERSATION_DIRECT and remaining == 1):
        db.expunge(conversation)
        _delete_conversation(db, conversation_id)
        logger.info(
            "Conversation deleted",
            extra={"conversation_id": conversation_id, "conversation_type": conversation_type},
        )
        return "deleted"
    return "left"


def leave_conversation(db: Session, conversation_id: int, user_id: int) -> LeaveOutcome:
    """Leave (or, when it empties, delete) a conversation and commit."""
    outcome = leave_conversation_in_session(db, conversation_id, user_id)
    db.commit()
    return outcome

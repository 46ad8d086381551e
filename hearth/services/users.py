"""Account lifecycle: registration, login, approval, profile and deletion."""

import logging
from datetime import UTC, datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hearth.core.errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationError
from hearth.core.security import (
    FULL_NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    is_valid_email,
    normalize_email,
    verify_password,
)
from hearth.models import Event, EventRsvp, Message, Resource
from hearth.models.conversation import Conversation, ConversationParticipant
from hearth.models.user import (
    PRIVACY_LEVELS,
    ROLE_MEMBER,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUSES,
    User,
)
from hearth.services.access_guard import enforce_status_policy
from hearth.services.conversations import leave_conversation_in_session

logger = logging.getLogger(__name__)

BIO_MAX_LEN = 1000
SKILLS_MAX_LEN = 500
SEARCH_MIN_LEN = 2
SEARCH_MAX_LIMIT = 50


def _validate_email(email: str) -> str:
    email = normalize_email(email)
    if not is_valid_email(email):
        raise ValidationError(
            "Please provide a valid email address.",
            errors={"email": "Invalid email format"},
        )
    return email


def _validate_password(password: str, field: str = "password") -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters long.",
            errors={field: "Invalid password length"},
        )


def _validate_full_name(full_name: str) -> str:
    name = (full_name or "").strip()
    if len(name) < FULL_NAME_MIN_LEN:
        raise ValidationError(
            "Invalid input data",
            errors={"full_name": f"Full name must be at least {FULL_NAME_MIN_LEN} characters long"},
        )
    return name


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    q = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def register_user(db: Session, full_name: str, email: str, password: str) -> User:
    """Create a member account in pending status."""
    name = _validate_full_name(full_name)
    email = _validate_email(email)
    _validate_password(password)
    if _email_taken(db, email):
        raise Conflict(
            "A user with this email already exists.",
            errors={"email": "Email already registered"},
        )
    user = User(
        full_name=name,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_MEMBER,
        status=STATUS_PENDING,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(
            "A user with this email already exists.",
            errors={"email": "Email already registered"},
        )
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id, "status": user.status})
    return user


def authenticate_credentials(db: Session, email: str, password: str) -> User:
    """Check email/password, then the status policy. Records last_login on success."""
    email = _validate_email(email)
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthenticated(
            "Invalid credentials.",
            errors={"credentials": "Email or password is incorrect"},
        )
    enforce_status_policy(user)
    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    logger.info("User logged in", extra={"user_id": user.id, "role": user.role})
    return user


def list_users(db: Session, status: str | None = None) -> list[User]:
    q = db.query(User)
    if status is not None:
        if status not in STATUSES:
            raise ValidationError("Invalid status")
        q = q.filter(User.status == status)
    return q.order_by(User.created_at.desc(), User.id.desc()).all()


def list_directory(db: Session, exclude_user_id: int) -> list[User]:
    """Approved users other than the caller, for starting conversations."""
    return (
        db.query(User)
        .filter(User.status == STATUS_APPROVED, User.id != exclude_user_id)
        .order_by(User.full_name.asc(), User.id.asc())
        .all()
    )


def search_users(db: Session, query: str, exclude_user_id: int, limit: int = 10) -> list[User]:
    term = (query or "").strip()
    if len(term) < SEARCH_MIN_LEN:
        return []
    limit = max(1, min(limit, SEARCH_MAX_LIMIT))
    pattern = f"%{term}%"
    return (
        db.query(User)
        .filter(
            or_(User.full_name.ilike(pattern), User.email.ilike(pattern)),
            User.id != exclude_user_id,
            User.status == STATUS_APPROVED,
        )
        .order_by(User.full_name.asc())
        .limit(limit)
        .all()
    )


def update_profile(
    db: Session,
    user_id: int,
    full_name: str,
    bio: str | None,
    skills: str | None,
) -> User:
    name = _validate_full_name(full_name)
    if bio and len(bio) > BIO_MAX_LEN:
        raise ValidationError(
            "Invalid input data",
            errors={"bio": f"Bio must be less than {BIO_MAX_LEN} characters"},
        )
    if skills and len(skills) > SKILLS_MAX_LEN:
        raise ValidationError(
            "Invalid input data",
            errors={"skills": f"Skills must be less than {SKILLS_MAX_LEN} characters"},
        )
    user = get_user(db, user_id)
    user.full_name = name
    user.bio = bio.strip() if bio and bio.strip() else None
    user.skills = skills.strip() if skills and skills.strip() else None
    user.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    return user


def change_password(
    db: Session,
    user_id: int,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    if new_password != confirm_password:
        raise ValidationError(
            "Password confirmation does not match",
            errors={"confirm_password": "Passwords do not match"},
        )
    _validate_password(new_password, field="new_password")
    user = get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError(
            "Current password is incorrect",
            errors={"current_password": "Current password is incorrect"},
        )
    user.password_hash = hash_password(new_password)
    user.updated_at = datetime.now(UTC)
    db.commit()
    logger.info("Password changed", extra={"user_id": user_id})


def update_preferences(
    db: Session,
    user_id: int,
    email_notifications: bool,
    push_notifications: bool,
    privacy_level: str,
) -> User:
    if privacy_level not in PRIVACY_LEVELS:
        raise ValidationError(
            "Invalid privacy level",
            errors={"privacy_level": "Privacy level must be public, members, or private"},
        )
    user = get_user(db, user_id)
    user.email_notifications = email_notifications
    user.push_notifications = push_notifications
    user.privacy_level = privacy_level
    user.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    logger.info(
        "Preferences updated", extra={"user_id": user_id, "privacy_level": privacy_level}
    )
    return user


def _set_pending_decision(db: Session, user_id: int, new_status: str) -> User:
    user = get_user(db, user_id)
    if user.status != STATUS_PENDING:
        raise ValidationError("User is not pending approval")
    user.status = new_status
    user.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    logger.info("User %s", new_status, extra={"user_id": user_id, "status": new_status})
    return user


def approve_user(db: Session, user_id: int) -> User:
    return _set_pending_decision(db, user_id, STATUS_APPROVED)


def reject_user(db: Session, user_id: int) -> User:
    return _set_pending_decision(db, user_id, STATUS_REJECTED)


def bulk_approve(db: Session, user_ids: list[int]) -> list[int]:
    """Approve every pending user among user_ids; others are ignored."""
    ids = sorted(set(user_ids))
    if not ids:
        return []
    users = (
        db.query(User)
        .filter(User.id.in_(ids), User.status == STATUS_PENDING)
        .order_by(User.id)
        .all()
    )
    now = datetime.now(UTC)
    for user in users:
        user.status = STATUS_APPROVED
        user.updated_at = now
    db.commit()
    approved = [u.id for u in users]
    logger.info("Bulk approve", extra={"requested": len(ids), "approved": len(approved)})
    return approved


def admin_update_user(
    db: Session,
    user_id: int,
    full_name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    status: str | None = None,
) -> User:
    if full_name is None and email is None and role is None and status is None:
        raise ValidationError("No fields to update")
    user = get_user(db, user_id)
    if full_name is not None:
        user.full_name = _validate_full_name(full_name)
    if email is not None:
        email = _validate_email(email)
        if _email_taken(db, email, exclude_id=user_id):
            raise Conflict(
                "A user with this email already exists.",
                errors={"email": "Email already registered"},
            )
        user.email = email
    if role is not None:
        user.role = role
    if status is not None:
        user.status = status
    user.updated_at = datetime.now(UTC)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("A user with this email already exists.")
    db.refresh(user)
    return user


def _purge_user(db: Session, user: User) -> None:
    """Remove the user and detach or drop everything that references them. Commits."""
    user_id = user.id
    conversation_ids = [
        cid
        for (cid,) in db.query(ConversationParticipant.conversation_id)
        .filter(ConversationParticipant.user_id == user.id)
        .all()
    ]
    for conversation_id in conversation_ids:
        leave_conversation_in_session(db, conversation_id, user.id)

    db.query(EventRsvp).filter(EventRsvp.user_id == user.id).delete(synchronize_session=False)
    db.query(Message).filter(Message.sender_id == user.id).update(
        {Message.sender_id: None}, synchronize_session=False
    )
    db.query(Resource).filter(Resource.uploaded_by == user.id).update(
        {Resource.uploaded_by: None}, synchronize_session=False
    )
    db.query(Event).filter(Event.created_by == user.id).update(
        {Event.created_by: None}, synchronize_session=False
    )
    db.query(Conversation).filter(Conversation.created_by == user.id).update(
        {Conversation.created_by: None}, synchronize_session=False
    )
    db.delete(user)
    db.commit()
    logger.info(
        "User deleted",
        extra={"user_id": user_id, "conversations_left": len(conversation_ids)},
    )


def delete_own_account(db: Session, user_id: int, password: str) -> None:
    user = get_user(db, user_id)
    if not verify_password(password, user.password_hash):
        raise ValidationError("Incorrect password", errors={"password": "Password is incorrect"})
    _purge_user(db, user)


def admin_delete_user(db: Session, user_id: int, acting_admin_id: int) -> None:
    if user_id == acting_admin_id:
        raise Forbidden("Admins cannot delete their own account from here.")
    _purge_user(db, get_user(db, user_id))

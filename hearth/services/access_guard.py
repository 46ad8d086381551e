"""Access guard: resolve a session token to an authenticated user and apply status/role policy.

Steps, in order (first failure wins):
1. no token                          -> Unauthenticated
2. bad signature / expired / garbage -> InvalidToken
3. subject id has no user row        -> UserNotFound
4. non-admin whose status != approved -> NotApproved (reason: pending | rejected)

The guard only reads; it never touches session or user state.
"""

import logging

import jwt
from sqlalchemy.orm import Session

from hearth.core.errors import Forbidden, InvalidToken, NotApproved, Unauthenticated, UserNotFound
from hearth.core.security import decode_access_token
from hearth.models.user import ROLE_ADMIN, STATUS_APPROVED, STATUS_PENDING, User
from hearth.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

PENDING_MESSAGE = (
    "Your account is pending admin approval. You will be able to log in once approved."
)
REJECTED_MESSAGE = "Your account has been rejected or disabled. Please contact support."


def not_approved_error(status: str) -> NotApproved:
    """Build the NotApproved error for a non-approved status, keeping pending distinct."""
    if status == STATUS_PENDING:
        return NotApproved(reason=STATUS_PENDING, message=PENDING_MESSAGE)
    return NotApproved(reason=status, message=REJECTED_MESSAGE)


def enforce_status_policy(user: User) -> None:
    """Admins always pass; members must be approved."""
    if user.role != ROLE_ADMIN and user.status != STATUS_APPROVED:
        raise not_approved_error(user.status)


def _subject_id(payload: dict) -> int:
    sub = payload.get("sub")
    if not sub:
        raise InvalidToken("Invalid token payload")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise InvalidToken("Invalid token payload")


def authenticate_token(db: Session, token: str | None) -> CurrentUser:
    """Run the full guard and return the request's user context."""
    if not token:
        raise Unauthenticated("Not authorized, no token")
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise InvalidToken("Not authorized, token failed")
    user_id = _subject_id(payload)

    # Always re-read the row: role/status may have changed since the token was minted.
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound("User not found")
    enforce_status_policy(user)
    return CurrentUser.model_validate(user)


def require_admin_role(user: CurrentUser) -> CurrentUser:
    """Role guard; compose after authenticate_token."""
    if user.role != ROLE_ADMIN:
        raise Forbidden("Not authorized as an admin")
    return user

"""Password hashing and JWT creation/verification for session tokens."""

import re
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from hearth.core.config import settings

# Bcrypt cost (rounds).
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
FULL_NAME_MIN_LEN = 2
FULL_NAME_MAX_LEN = 255

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    """Loose shape check: something@something.tld with no whitespace."""
    return bool(EMAIL_PATTERN.match(email or ""))


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def token_lifetime(remember_me: bool) -> timedelta:
    """Token (and cookie) lifetime: long-lived when the user asked to be remembered."""
    minutes = settings.JWT_REMEMBER_ME_MINUTES if remember_me else settings.JWT_EXPIRE_MINUTES
    return timedelta(minutes=minutes)


def create_access_token(
    sub: str | int,
    role: str,
    email: str,
    remember_me: bool = False,
) -> str:
    """Create a JWT access token with sub (user id), role, email, iat and exp."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": role,
        "email": email,
        "iat": now,
        "exp": now + token_lifetime(remember_me),
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, role, email, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )

"""Register/login/logout routes and the auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hearth.core.config import get_settings
from hearth.core.database import get_db
from hearth.core.security import create_access_token, token_lifetime
from hearth.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
)
from hearth.services import users as user_service
from hearth.services.access_guard import authenticate_token, require_admin_role

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _request_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    """Session cookie first, then an Authorization: Bearer header."""
    cookie = request.cookies.get(get_settings().SESSION_COOKIE_NAME)
    if cookie:
        return cookie
    if credentials is not None:
        return credentials.credentials
    return None


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: run the access guard. 401 for missing/invalid token or unknown user, 403 if not approved."""
    return authenticate_token(db, _request_token(request, credentials))


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    return require_admin_role(current_user)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RegisterResponse:
    """Create a member account. It stays pending until an admin approves it."""
    user_service.register_user(db, body.full_name, body.email, body.password)
    return RegisterResponse(
        message=(
            "Registration successful! Your account is pending admin approval. "
            "You will be able to log in once approved."
        )
    )


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password.

    The JWT is set as an httpOnly session cookie and also returned in the body
    for clients that prefer the Authorization: Bearer header.
    """
    settings = get_settings()
    user = user_service.authenticate_credentials(db, body.email, body.password)
    token = create_access_token(
        sub=user.id, role=user.role, email=user.email, remember_me=body.remember_me
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=int(token_lifetime(body.remember_me).total_seconds()),
        httponly=True,
        secure=bool(settings.SESSION_COOKIE_SECURE),
        samesite="lax",
    )
    return LoginResponse(user=CurrentUser.model_validate(user), access_token=token)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the session cookie. Always succeeds."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=bool(settings.SESSION_COOKIE_SECURE),
        samesite="lax",
    )
    return MessageResponse(message="Logged out successfully.")


@router.get("/me", response_model=CurrentUser)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    return current_user

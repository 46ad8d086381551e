"""Request/response schemas for auth endpoints."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

Role = Literal["admin", "member"]
UserStatus = Literal["pending", "approved", "rejected"]


class RegisterRequest(BaseModel):
    """New member registration; accounts start as pending."""

    full_name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: str = Field(..., min_length=3, max_length=255, description="Login email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterResponse(BaseModel):
    message: str
    success: bool = True


class LoginRequest(BaseModel):
    """Credentials for login. rememberMe is accepted for browser clients."""

    email: str = Field(..., min_length=1, max_length=255, description="Login email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    remember_me: bool = Field(
        default=False,
        validation_alias=AliasChoices("remember_me", "rememberMe"),
        description="Issue a long-lived session",
    )


class CurrentUser(BaseModel):
    """Authenticated user attached to the request by the access guard."""

    model_config = {"from_attributes": True}

    id: int
    full_name: str
    email: str
    role: Role
    status: UserStatus

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class LoginResponse(BaseModel):
    """Session token is also set as an httpOnly cookie."""

    message: str = "Logged in successfully"
    success: bool = True
    user: CurrentUser
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
    success: bool = True

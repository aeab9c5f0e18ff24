"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import (
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    PHONE_MAX_LEN,
    PASSWORD_SPECIAL_CHARS,
    normalize_email,
    password_strength_errors,
)

RoleName = Literal["user", "admin", "fleet_manager", "driver"]


def _check_password_strength(value: str) -> str:
    missing = password_strength_errors(value)
    if missing:
        raise ValueError(
            "Password must contain " + ", ".join(missing)
            + f" (special characters: {PASSWORD_SPECIAL_CHARS})"
        )
    return value


def _strip_name(value: str) -> str:
    if not value.strip():
        raise ValueError("name must not be blank")
    return value.strip()


class RegisterRequest(BaseModel):
    """New account. Role is always 'user'; admins change roles afterwards."""

    email: EmailStr = Field(..., description="Email (case-insensitive)")
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN, description="Display name")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    phone: str | None = Field(default=None, max_length=PHONE_MAX_LEN, description="Phone number")

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_password_strength(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshRequest(BaseModel):
    """Refresh token in the body, for clients that cannot use the httpOnly cookie."""

    refresh_token: str | None = Field(default=None, description="JWT refresh token")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_password_strength(v)


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    email: EmailStr | None = Field(default=None)
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    phone: str | None = Field(default=None, max_length=PHONE_MAX_LEN)

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str | None) -> str | None:
        return normalize_email(v) if v is not None else None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip_name(v) if v is not None else None


class ChangeRoleRequest(BaseModel):
    role: RoleName


class AccessTokenPayload(BaseModel):
    """Claims carried by a verified access token."""

    account_id: int
    email: str
    role: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class TokenResponse(BaseModel):
    """JWT access and refresh tokens returned after login or refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token (also set as httpOnly cookie)")
    token_type: str = Field(default="bearer", description="Token type")


class CurrentUser(BaseModel):
    """Authenticated user (id, email, role) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: str


class UserProfile(BaseModel):
    """Account as returned by the API (no password or token hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    phone: str | None = None
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RegisterResponse(TokenResponse):
    user: UserProfile


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserProfile]


class MessageResponse(BaseModel):
    message: str

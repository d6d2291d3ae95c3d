"""Pydantic schemas for registration, login and profile endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

MIN_PASSWORD_LENGTH = 6


def _normalize_name(value: str) -> str:
    name = value.strip()
    if not 1 <= len(name) <= 50:
        raise ValueError("Name must be between 1 and 50 characters")
    return name


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Trim and bound the display name."""
        return _normalize_name(v)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Emails are unique case-insensitively."""
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Enforce the minimum password length."""
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        return v


class LoginRequest(BaseModel):
    """Schema for exchanging credentials for a token."""

    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Match the normalization applied at registration."""
        return v.lower()


class ProfileUpdate(BaseModel):
    """Schema for updating the current user's profile. Omitted fields are unchanged."""

    name: str | None = None
    bio: str | None = None
    avatar: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        """Trim and bound the display name if provided."""
        if v is None:
            return None
        return _normalize_name(v)

    @field_validator("bio")
    @classmethod
    def check_bio(cls, v: str | None) -> str | None:
        """Bio is limited to 500 characters."""
        if v is not None and len(v) > 500:
            raise ValueError("Bio cannot exceed 500 characters")
        return v


class UserResponse(BaseModel):
    """The current user's account, as returned by /auth endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    bio: str
    avatar: str
    created_at: datetime


class AuthResponse(BaseModel):
    """Token issued on login/registration, with the user it identifies."""

    token: str
    user: UserResponse

"""Local authentication schemas.

Pydantic schemas for local registration and login.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from glucodiary.core.security import (
    NAME_MAX_LENGTH,
    validate_name,
    validate_password_format,
)


class RegisterRequest(BaseModel):
    """Request schema for local user registration."""

    name: str = Field(..., description="Login name (2-50 chars)")
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(
        ...,
        max_length=128,
        description="Password (min 6 chars, letters and numbers only, at least one of each)",
    )

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        is_valid, message = validate_name(v)
        if not is_valid:
            raise ValueError(message)
        return v.strip()

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        is_valid, message = validate_password_format(v)
        if not is_valid:
            raise ValueError(message)
        return v


class LoginRequest(BaseModel):
    """Request schema for local login."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public user information."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    email: str
    created_at: datetime

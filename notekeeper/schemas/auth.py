"""
Auth Schemas.

Registration, login and token response payloads.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from notekeeper.core.security import PASSWORD_MAX_BYTES
from notekeeper.models.user import Role


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
        examples=["jdoe"],
    )
    email: EmailStr = Field(..., examples=["jdoe@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    """Schema for exchanging credentials for a token."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class UserInfo(BaseModel):
    """Public view of a user."""

    id: str
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: Role
    enabled: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Token issued on register or login."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserInfo

"""Authentication schemas."""

from datetime import datetime

from pydantic import Field

from app.models.user import UserRole
from app.schemas.common import BaseSchema


class LoginRequest(BaseSchema):
    """Login request schema."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserCreate(BaseSchema):
    """User registration schema."""

    email: str = Field(..., min_length=3, max_length=255)
    full_name: str | None = Field(None, max_length=255)
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole = UserRole.USER


class UserResponse(BaseSchema):
    """User response schema."""

    id: int
    email: str
    full_name: str | None
    role: UserRole
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime

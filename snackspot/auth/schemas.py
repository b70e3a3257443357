"""
SnackSpot Auckland - Authentication Request/Response Schemas

Pydantic models for API request validation and response serialization.
Separates API contracts from database models. Validation here runs before
the auth manager is ever called.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, validator
import re


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def _validate_email(v: str) -> str:
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email format")
    return v.lower()


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    email: str = Field(..., max_length=256, description="User email address")
    password: str = Field(..., min_length=6, max_length=100, description="User password")

    @validator("email")
    def email_format(cls, v):
        """Basic email format validation (allows .local for development)."""
        return _validate_email(v)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: str = Field(..., max_length=256, description="User email address")
    password: str = Field(..., min_length=1, max_length=100, description="User password")

    @validator("email")
    def email_format(cls, v):
        return _validate_email(v)


class RefreshRequest(BaseModel):
    """Optional body for POST /auth/refresh and /auth/logout (cookie otherwise)."""
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")


class UserResponse(BaseModel):
    """Public view of an account."""
    id: UUID
    username: str
    email: str
    level: int
    experience_points: int

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Response body for register, login and refresh."""
    message: str
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Seconds until token expires")
    user: UserResponse


class MessageResponse(BaseModel):
    """Response body for logout."""
    message: str


class LogoutAllResponse(BaseModel):
    """Response body for logout from all devices."""
    message: str = Field(default="Logged out from all devices successfully")
    tokens_revoked: int = Field(default=0)


class SessionInfo(BaseModel):
    """Active refresh token (signed-in device) for user display."""
    id: UUID
    created_at: datetime
    expires_at: datetime
    ip_address: Optional[str]
    user_agent: Optional[str]

    class Config:
        from_attributes = True


class ActiveSessionsResponse(BaseModel):
    """Response body for GET /auth/sessions."""
    sessions: list[SessionInfo]
    total: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str

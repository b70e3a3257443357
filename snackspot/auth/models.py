"""
SnackSpot Auckland - Authentication Database Models

SQLModel-based models for accounts and refresh tokens.
Uses PostgreSQL for production, SQLite for local development.

Security:
- Passwords stored as bcrypt hashes only
- Refresh tokens are never deleted; revocation is a flag plus timestamp
- All timestamps are naive UTC
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Index, text


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(SQLModel, table=True):
    """
    Account used for authentication.

    Attributes:
        id: Unique identifier (UUIDv4)
        username: Display name (unique regardless of case)
        email: Login identifier, stored lower-cased (unique, indexed)
        password_hash: bcrypt hash (never store plaintext)
        level: Gamification level, owned by the leveling subsystem
        experience_points: Gamification XP, owned by the leveling subsystem
        created_at: Account creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """
    __tablename__ = "users"
    __table_args__ = (
        Index("ux_users_username_lower", text("lower(username)"), unique=True),
    )

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique user identifier"
    )
    username: str = Field(
        sa_column=Column(String(50), unique=True, index=True, nullable=False),
        description="Unique username"
    )
    email: str = Field(
        sa_column=Column(String(256), unique=True, index=True, nullable=False),
        description="User email address (login identifier)"
    )
    password_hash: str = Field(
        sa_column=Column(String(256), nullable=False),
        description="bcrypt password hash"
    )
    level: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, default=1),
        description="Current level (>= 1)"
    )
    experience_points: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Accumulated experience points (>= 0)"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
        description="Account creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow),
        description="Last update timestamp"
    )

    # Relationships
    refresh_tokens: list["RefreshToken"] = Relationship(back_populates="user")


class RefreshToken(SQLModel, table=True):
    """
    Store-backed refresh token.

    A token is Active until revoked (rotation, logout, logout-all).
    Expiry is derived from expires_at at validation time, never stored.

    Attributes:
        id: Unique record identifier
        token: Opaque random token value (unique index)
        user_id: Owning account
        expires_at: Expiration timestamp
        created_at: Issuance timestamp
        is_revoked: Whether the token has left the Active state
        revoked_at: When it was revoked
        ip_address: Client IP at issuance (audit only)
        user_agent: Client user-agent at issuance (audit only)
    """
    __tablename__ = "refresh_tokens"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique token record identifier"
    )
    token: str = Field(
        sa_column=Column(String(128), unique=True, index=True, nullable=False),
        description="Opaque refresh token value"
    )
    user_id: UUID = Field(
        foreign_key="users.id",
        nullable=False,
        index=True,
        description="Reference to user"
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Token expiration timestamp"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
        description="Token creation timestamp"
    )
    is_revoked: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether token has been revoked"
    )
    revoked_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Revocation timestamp"
    )
    ip_address: Optional[str] = Field(
        default=None,
        sa_column=Column(String(45), nullable=True),
        description="Client IP address"
    )
    user_agent: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
        description="Client user-agent string"
    )

    # Relationships
    user: Optional[User] = Relationship(back_populates="refresh_tokens")

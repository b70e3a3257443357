"""
SnackSpot Auckland - Account Store

Query helpers over the users table. Callers own the transaction:
nothing here commits.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session as DBSession, select

from snackspot.auth.models import User


def get_by_email(db: DBSession, email: str) -> Optional[User]:
    """Case-insensitive lookup by email."""
    statement = select(User).where(func.lower(User.email) == email.lower())
    return db.exec(statement).first()


def get_by_username(db: DBSession, username: str) -> Optional[User]:
    """Case-insensitive lookup by username."""
    statement = select(User).where(func.lower(User.username) == username.lower())
    return db.exec(statement).first()


def get_by_id(db: DBSession, user_id: UUID) -> Optional[User]:
    return db.get(User, user_id)


def create(db: DBSession, username: str, email: str, password_hash: str) -> User:
    """
    Stage a new account with level 1 and no experience.

    The email is stored lower-cased so the unique index enforces
    case-insensitive uniqueness.
    """
    user = User(
        username=username,
        email=email.lower(),
        password_hash=password_hash,
        level=1,
        experience_points=0,
    )
    db.add(user)
    db.flush()
    return user

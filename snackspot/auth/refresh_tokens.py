"""
SnackSpot Auckland - Refresh Token Store

Persistence for refresh tokens. Records are never deleted; leaving the
Active state is a flag flip plus revocation timestamp.

Security:
- Token values are 512-bit random strings with a unique index
- Revocation is a single conditional UPDATE guarded by is_revoked, so two
  concurrent revocations of one token cannot both succeed
- Callers own the transaction: nothing here commits
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
import secrets

from sqlalchemy import update
from sqlmodel import Session as DBSession, select

from snackspot.auth.models import RefreshToken


# 64 random bytes -> 86 url-safe characters
REFRESH_TOKEN_BYTES = 64


def generate_token_value() -> str:
    """Generate an opaque, url-safe refresh token value."""
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def insert(
    db: DBSession,
    user_id: UUID,
    expires_at: datetime,
    now: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> RefreshToken:
    """
    Stage a new Active refresh token for an account.

    Args:
        db: Database session
        user_id: Owning account
        expires_at: Expiration timestamp
        now: Issuance timestamp
        ip_address: Client IP for audit
        user_agent: Client user-agent for audit

    Returns:
        The staged RefreshToken record
    """
    record = RefreshToken(
        token=generate_token_value(),
        user_id=user_id,
        expires_at=expires_at,
        created_at=now,
        is_revoked=False,
        ip_address=ip_address[:45] if ip_address else None,
        user_agent=user_agent[:500] if user_agent else None,
    )
    db.add(record)
    db.flush()
    return record


def get_by_token(db: DBSession, token: str) -> Optional[RefreshToken]:
    statement = select(RefreshToken).where(RefreshToken.token == token)
    return db.exec(statement).first()


def revoke_if_active(
    db: DBSession,
    token: str,
    now: datetime,
    only_unexpired: bool = False,
) -> bool:
    """
    Revoke a token if it is not already revoked.

    Expressed as one UPDATE ... WHERE is_revoked = false so the store
    decides the winner when two requests race on the same token.

    Args:
        db: Database session
        token: Presented token value
        now: Revocation timestamp (also the expiry cut-off)
        only_unexpired: Also require expires_at > now

    Returns:
        True if this call revoked the token, False otherwise
    """
    conditions = [
        RefreshToken.token == token,
        RefreshToken.is_revoked == False,  # noqa: E712
    ]
    if only_unexpired:
        conditions.append(RefreshToken.expires_at > now)

    statement = (
        update(RefreshToken)
        .where(*conditions)
        .values(is_revoked=True, revoked_at=now)
        .execution_options(synchronize_session=False)
    )
    result = db.exec(statement)
    return (result.rowcount or 0) == 1


def revoke_all_for_user(db: DBSession, user_id: UUID, now: datetime) -> int:
    """
    Revoke every non-revoked token of an account (logout everywhere).

    Returns:
        Number of tokens revoked
    """
    statement = (
        update(RefreshToken)
        .where(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked == False,  # noqa: E712
        )
        .values(is_revoked=True, revoked_at=now)
        .execution_options(synchronize_session=False)
    )
    result = db.exec(statement)
    return result.rowcount or 0


def get_active_for_user(db: DBSession, user_id: UUID, now: datetime) -> list[RefreshToken]:
    """
    Get all Active tokens for an account, newest first.

    Use cases:
        - Show the user their signed-in devices
    """
    statement = (
        select(RefreshToken)
        .where(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked == False,  # noqa: E712
            RefreshToken.expires_at > now,
        )
        .order_by(RefreshToken.created_at.desc())
    )
    return list(db.exec(statement).all())

"""
SnackSpot Auckland - JWT Access Token Management

Creates and validates self-contained JWT access tokens carrying:
- Account ID (sub)
- Email and username
- Level and experience points (for level-gated actions)
- Unique token ID (jti for log correlation)

Security:
- Short-lived tokens (15 minutes default)
- Issuer and audience are always written and always checked
- Expiry is mandatory and validated with zero leeway
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
import secrets

from jose import jwt, JWTError
from pydantic import BaseModel, Field

from snackspot.config import AuthConfig
from snackspot.auth.models import utcnow


class TokenPayload(BaseModel):
    """
    JWT token payload structure.

    Attributes:
        sub: Subject (account ID)
        email: Account email
        username: Account username
        level: Account level at issuance
        experience: Experience points at issuance
        iss: Issuer
        aud: Audience
        jti: Unique token ID
        exp: Expiration timestamp
        iat: Issued-at timestamp
    """
    sub: str = Field(..., description="Account ID")
    email: str = Field(..., description="Account email")
    username: str = Field(..., description="Account username")
    level: int = Field(..., description="Account level")
    experience: int = Field(..., description="Experience points")
    iss: str = Field(..., description="Issuer")
    aud: str = Field(..., description="Audience")
    jti: str = Field(..., description="Token ID")
    exp: datetime = Field(..., description="Expiration time")
    iat: datetime = Field(..., description="Issued at time")


class InvalidTokenError(Exception):
    """Raised when JWT validation fails."""
    pass


def create_access_token(
    user_id: UUID,
    email: str,
    username: str,
    level: int,
    experience: int,
    config: AuthConfig,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    """
    Create a new signed JWT access token.

    Args:
        user_id: Account identifier
        email: Account email
        username: Account username
        level: Account level
        experience: Account experience points
        config: Signing key, issuer, audience and default lifetime
        expires_delta: Optional custom lifetime
        now: Issuance time (naive UTC), defaults to the current time

    Returns:
        Tuple of (encoded JWT string, token ID)
    """
    now = now or utcnow()
    expire = now + (expires_delta if expires_delta is not None else config.access_token_lifetime)

    token_id = secrets.token_hex(16)

    payload = {
        "sub": str(user_id),
        "email": email,
        "username": username,
        "level": level,
        "experience": experience,
        "iss": config.issuer,
        "aud": config.audience,
        "jti": token_id,
        "exp": expire,
        "iat": now,
    }

    encoded_jwt = jwt.encode(payload, config.secret_key, algorithm=config.algorithm)

    return encoded_jwt, token_id


def verify_access_token(token: str, config: AuthConfig) -> TokenPayload:
    """
    Verify and decode a JWT access token.

    Args:
        token: Encoded JWT string
        config: Expected key, algorithm, issuer and audience

    Returns:
        Decoded TokenPayload

    Raises:
        InvalidTokenError: If token is invalid, expired, malformed, or was
            issued for another issuer/audience
    """
    try:
        payload = jwt.decode(
            token,
            config.secret_key,
            algorithms=[config.algorithm],
            audience=config.audience,
            issuer=config.issuer,
            options={
                "require_exp": True,
                "require_iat": True,
                "require_aud": True,
                "require_iss": True,
                "require_sub": True,
                "leeway": 0,
            },
        )
        return TokenPayload(**payload)
    except (JWTError, ValueError) as e:
        raise InvalidTokenError(f"Token validation failed: {str(e)}")


def get_token_expiry_seconds(config: AuthConfig) -> int:
    """Get token expiry time in seconds for response."""
    return int(config.access_token_lifetime.total_seconds())

"""
SnackSpot Auckland - Security Dependencies

FastAPI dependencies for authentication and level-gated authorization.

Usage:
    @router.get("/protected")
    async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
        ...

    @router.post("/snacks", dependencies=[Depends(require_level(2))])
    async def add_snack(...):
        ...

Security:
- Access tokens are verified locally (signature, issuer, audience, expiry);
  no store round trip
- Authorization decisions use only the claims embedded in the token
"""

from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from snackspot.auth.service import AuthManager
from snackspot.auth.tokens import verify_access_token, InvalidTokenError


# HTTP Bearer scheme for JWT extraction
security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """
    Represents a validated, authenticated user.

    Available in route handlers via Depends(get_current_user).
    Built from access token claims, so level and experience reflect
    the moment the token was issued.
    """
    user_id: UUID
    email: str
    username: str
    level: int
    experience: int
    token_id: str  # jti for log correlation


def get_auth_manager(request: Request) -> AuthManager:
    """Get the process-wide auth manager from app state."""
    return request.app.state.auth_manager


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    manager: AuthManager = Depends(get_auth_manager),
) -> AuthenticatedUser:
    """
    Validate the bearer access token and return the current user.

    Raises:
        HTTPException 401: Missing, invalid, expired or foreign token
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = verify_access_token(credentials.credentials, manager.config)
        user_id = UUID(payload.sub)
    except (InvalidTokenError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        user_id=user_id,
        email=payload.email,
        username=payload.username,
        level=payload.level,
        experience=payload.experience,
        token_id=payload.jti,
    )


def require_level(min_level: int):
    """
    Dependency factory rejecting users below a level.

    Usage:
        @router.post("/moderate", dependencies=[Depends(require_level(5))])

    Raises:
        HTTPException 403: If the token's level claim is below min_level
    """
    async def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.level < min_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires level {min_level}",
            )
        return user

    return dependency

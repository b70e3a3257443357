"""
SnackSpot Auckland - Authentication Routes

API endpoints for authentication:
- POST /auth/register    - Create account, issue access + refresh token
- POST /auth/login       - Authenticate, issue access + refresh token
- POST /auth/refresh     - Rotate refresh token, issue new access token
- POST /auth/logout      - Revoke presented refresh token
- POST /auth/logout-all  - Revoke every refresh token of the caller
- GET  /auth/profile     - Current user from access token claims
- GET  /auth/sessions    - List active refresh tokens (signed-in devices)

The refresh token travels in an httpOnly cookie; a JSON body
{"refresh_token": ...} is accepted as well for non-browser clients.
Manager calls block, so each one runs in the threadpool.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends, Request, Response, Cookie
from fastapi.concurrency import run_in_threadpool

from snackspot.auth.errors import AuthError, AuthResult
from snackspot.auth.schemas import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    AuthResponse,
    UserResponse,
    MessageResponse,
    LogoutAllResponse,
    SessionInfo,
    ActiveSessionsResponse,
    ErrorResponse,
)
from snackspot.auth.service import AuthManager
from snackspot.auth.tokens import get_token_expiry_seconds
from snackspot.auth.dependencies import (
    get_auth_manager,
    get_current_user,
    AuthenticatedUser,
)


router = APIRouter(prefix="/auth", tags=["authentication"])

REFRESH_COOKIE_NAME = "refreshToken"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str:
    """Extract user agent from request."""
    return request.headers.get("User-Agent", "unknown")[:500]


def set_refresh_cookie(response: Response, token: str, manager: AuthManager) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=int(manager.config.refresh_token_lifetime.total_seconds()),
        path="/",
        httponly=True,
        secure=manager.config.refresh_cookie_secure,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response, manager: AuthManager) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=manager.config.refresh_cookie_secure,
        samesite="strict",
    )


def _presented_token(body: Optional[RefreshRequest], cookie: Optional[str]) -> Optional[str]:
    if body and body.refresh_token:
        return body.refresh_token
    return cookie


def _auth_response(result: AuthResult, manager: AuthManager) -> AuthResponse:
    return AuthResponse(
        message=result.message,
        access_token=result.access_token,
        token_type="bearer",
        expires_in=get_token_expiry_seconds(manager.config),
        user=UserResponse.model_validate(result.user),
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    summary="Register a new account",
)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    manager: AuthManager = Depends(get_auth_manager),
):
    """
    Register a new account.

    On success the refresh token is set as an httpOnly cookie and the
    access token is returned in the body.

    Raises:
        409: Username or email already taken
    """
    result = await run_in_threadpool(manager.register, body.username, body.email, body.password)

    if not result.success:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)

    refresh_token = await run_in_threadpool(
        manager.issue_refresh_token,
        result.user,
        get_client_ip(request),
        get_user_agent(request),
    )
    set_refresh_cookie(response, refresh_token, manager)

    return _auth_response(result, manager)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Authenticate and issue tokens",
)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    manager: AuthManager = Depends(get_auth_manager),
):
    """
    Authenticate with email and password.

    Raises:
        401: Invalid email or password (same response for both)
    """
    result = await run_in_threadpool(manager.login, credentials.email, credentials.password)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
        )

    refresh_token = await run_in_threadpool(
        manager.issue_refresh_token,
        result.user,
        get_client_ip(request),
        get_user_agent(request),
    )
    set_refresh_cookie(response, refresh_token, manager)

    return _auth_response(result, manager)


@router.post(
    "/refresh",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Rotate refresh token",
)
async def refresh(
    response: Response,
    body: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
    manager: AuthManager = Depends(get_auth_manager),
):
    """
    Exchange the refresh token for a new access token and refresh token.

    The presented refresh token is revoked; presenting it again fails.

    Raises:
        401: Missing, unknown, revoked or expired refresh token
    """
    token = _presented_token(body, refresh_cookie)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token not found",
        )

    result = await run_in_threadpool(manager.rotate_refresh_token, token)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
        )

    set_refresh_cookie(response, result.refresh_token, manager)
    return _auth_response(result, manager)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke the presented refresh token",
)
async def logout(
    response: Response,
    body: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
    manager: AuthManager = Depends(get_auth_manager),
):
    """
    Log out of this device.

    Always succeeds; an unknown or already revoked token is a no-op.
    """
    token = _presented_token(body, refresh_cookie)
    if token:
        await run_in_threadpool(manager.revoke_refresh_token, token)

    clear_refresh_cookie(response, manager)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/logout-all",
    response_model=LogoutAllResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Revoke every refresh token of the current user",
)
async def logout_all(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    manager: AuthManager = Depends(get_auth_manager),
):
    """
    Log out of all devices.

    Access tokens already issued stay valid until they expire.
    """
    count = await run_in_threadpool(manager.revoke_all_tokens, user.user_id)

    clear_refresh_cookie(response, manager)
    return LogoutAllResponse(tokens_revoked=count)


@router.get(
    "/profile",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Get current user information",
)
async def get_profile(user: AuthenticatedUser = Depends(get_current_user)):
    """
    Get the current user's profile from access token claims.
    """
    return UserResponse(
        id=user.user_id,
        username=user.username,
        email=user.email,
        level=user.level,
        experience_points=user.experience,
    )


@router.get(
    "/sessions",
    response_model=ActiveSessionsResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List active sessions",
)
async def list_sessions(
    user: AuthenticatedUser = Depends(get_current_user),
    manager: AuthManager = Depends(get_auth_manager),
):
    """
    List the refresh tokens that can still be used (signed-in devices).
    """
    records = await run_in_threadpool(manager.list_active_tokens, user.user_id)

    session_list = [SessionInfo.model_validate(r) for r in records]
    return ActiveSessionsResponse(sessions=session_list, total=len(session_list))

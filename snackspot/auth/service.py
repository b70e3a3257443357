"""
SnackSpot Auckland - Credential & Session Manager

Verifies credentials and owns the access/refresh token lifecycle:
- register / login return an account plus a fresh access token
- refresh tokens are issued, rotated (single use), revoked, bulk-revoked

The manager is stateless between calls. Every call opens its own database
session from the injected factory, so one instance is shared process-wide.
All methods block (bcrypt and database I/O); async callers must run them in
a worker thread.

Failure model:
- Domain failures come back as AuthResult(success=False, error=...)
- Storage failures are logged, rolled back and raised as StorageFailure
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session as DBSession

from snackspot.config import AuthConfig
from snackspot.auth import accounts, refresh_tokens
from snackspot.auth.errors import (
    AuthError,
    AuthResult,
    StorageFailure,
    DUPLICATE_ACCOUNT_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    INVALID_TOKEN_MESSAGE,
)
from snackspot.auth.models import RefreshToken, User, utcnow
from snackspot.auth.password import hash_password, verify_password
from snackspot.auth.tokens import create_access_token


logger = structlog.get_logger(__name__)


class AuthManager:
    """
    Credential and session issuance component.

    Args:
        config: Immutable signing/lifetime configuration
        session_factory: Callable returning a new database session; sessions
            must not expire attributes on commit (see get_session_factory),
            since returned accounts outlive their session
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        config: AuthConfig,
        session_factory: Callable[[], DBSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self._session_factory = session_factory
        self._clock = clock
        # Verified against when the email is unknown so both login failure
        # paths cost one bcrypt verification.
        self._dummy_hash = hash_password("snackspot-dummy-password", config.bcrypt_work_factor)

    @contextmanager
    def _session(self, operation: str) -> Iterator[DBSession]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("auth.storage_failure", operation=operation, exc_info=e)
            raise StorageFailure(operation) from e
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def register(self, username: str, email: str, password: str) -> AuthResult:
        """
        Create an account (level 1, no experience) and mint an access token.

        Fails with DUPLICATE_ACCOUNT if the username or email (both compared
        case-insensitively) is taken, including when a concurrent registration
        wins the race to the unique index.
        """
        password_hash = hash_password(password, self.config.bcrypt_work_factor)

        with self._session("register") as db:
            if accounts.get_by_email(db, email) or accounts.get_by_username(db, username):
                logger.info("auth.register.duplicate", username=username)
                return AuthResult.failure(AuthError.DUPLICATE_ACCOUNT, DUPLICATE_ACCOUNT_MESSAGE)

            try:
                user = accounts.create(db, username, email, password_hash)
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info("auth.register.duplicate", username=username, race=True)
                return AuthResult.failure(AuthError.DUPLICATE_ACCOUNT, DUPLICATE_ACCOUNT_MESSAGE)

        logger.info("auth.register.success", user_id=str(user.id))
        return AuthResult(
            success=True,
            message="User registered successfully",
            access_token=self.generate_access_token(user),
            user=user,
        )

    def login(self, email: str, password: str) -> AuthResult:
        """
        Verify email and password and mint an access token.

        Unknown email and wrong password produce the same INVALID_CREDENTIALS
        result and message. Does not mutate any state.
        """
        with self._session("login") as db:
            user = accounts.get_by_email(db, email)

        if user is None:
            verify_password(password, self._dummy_hash)
            logger.info("auth.login.failure")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        if not verify_password(password, user.password_hash):
            logger.info("auth.login.failure")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        logger.info("auth.login.success", user_id=str(user.id))
        return AuthResult(
            success=True,
            message="Login successful",
            access_token=self.generate_access_token(user),
            user=user,
        )

    def generate_access_token(self, user: User) -> str:
        """Sign a short-lived access token carrying the account's claims."""
        token, _ = create_access_token(
            user_id=user.id,
            email=user.email,
            username=user.username,
            level=user.level,
            experience=user.experience_points,
            config=self.config,
            now=self._clock(),
        )
        return token

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    def issue_refresh_token(
        self,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        """
        Persist a new Active refresh token for the account.

        Client metadata is stored for audit only and never consulted when
        validating the token.
        """
        with self._session("issue_refresh_token") as db:
            record = self._stage_refresh_token(db, user.id, ip_address, user_agent)
            db.commit()

        logger.info("auth.refresh.issued", user_id=str(user.id), token_id=str(record.id))
        return record.token

    def rotate_refresh_token(self, token: str) -> AuthResult:
        """
        Exchange a refresh token for a new access/refresh pair.

        The presented token is revoked by a conditional update and the
        replacement is inserted in the same transaction: either both happen
        or neither does. A token that is unknown, revoked or expired yields
        INVALID_OR_EXPIRED_TOKEN; of two concurrent rotations of one token,
        exactly one succeeds.
        """
        now = self._clock()

        with self._session("rotate_refresh_token") as db:
            if not refresh_tokens.revoke_if_active(db, token, now, only_unexpired=True):
                db.rollback()
                logger.info("auth.refresh.rejected")
                return AuthResult.failure(AuthError.INVALID_OR_EXPIRED_TOKEN, INVALID_TOKEN_MESSAGE)

            old = refresh_tokens.get_by_token(db, token)
            user = accounts.get_by_id(db, old.user_id)
            new = self._stage_refresh_token(db, user.id, old.ip_address, old.user_agent)
            db.commit()

        logger.info(
            "auth.refresh.rotated",
            user_id=str(user.id),
            old_token_id=str(old.id),
            new_token_id=str(new.id),
        )
        return AuthResult(
            success=True,
            message="Token refreshed successfully",
            access_token=self.generate_access_token(user),
            refresh_token=new.token,
            user=user,
        )

    def revoke_refresh_token(self, token: str) -> bool:
        """
        Revoke one refresh token (logout).

        Returns:
            True if the token was revoked by this call, False if it does not
            exist or was already revoked
        """
        with self._session("revoke_refresh_token") as db:
            revoked = refresh_tokens.revoke_if_active(db, token, self._clock())
            db.commit()

        if revoked:
            logger.info("auth.refresh.revoked")
        return revoked

    def revoke_all_tokens(self, user_id: UUID) -> int:
        """
        Revoke every non-revoked refresh token of an account.

        Returns:
            Number of tokens revoked
        """
        with self._session("revoke_all_tokens") as db:
            count = refresh_tokens.revoke_all_for_user(db, user_id, self._clock())
            db.commit()

        logger.info("auth.logout_all", user_id=str(user_id), tokens_revoked=count)
        return count

    def list_active_tokens(self, user_id: UUID) -> list[RefreshToken]:
        """Active (unrevoked, unexpired) refresh tokens of an account."""
        with self._session("list_active_tokens") as db:
            return refresh_tokens.get_active_for_user(db, user_id, self._clock())

    def _stage_refresh_token(
        self,
        db: DBSession,
        user_id: UUID,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> RefreshToken:
        now = self._clock()
        return refresh_tokens.insert(
            db,
            user_id=user_id,
            expires_at=now + self.config.refresh_token_lifetime,
            now=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )

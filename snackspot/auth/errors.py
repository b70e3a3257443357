"""
SnackSpot Auckland - Authentication Outcomes

Domain failures are returned as tagged AuthResult values.
System failures (storage) are raised as StorageFailure.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from snackspot.auth.models import User


class AuthError(str, Enum):
    """Tagged failure outcomes exposed by the auth manager."""
    DUPLICATE_ACCOUNT = "duplicate_account"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    STORAGE_FAILURE = "storage_failure"


# User-facing messages. Credential failures share one message so callers
# cannot tell an unknown email from a wrong password.
DUPLICATE_ACCOUNT_MESSAGE = "User with this email or username already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_TOKEN_MESSAGE = "Invalid or expired refresh token"
STORAGE_FAILURE_MESSAGE = "The service could not complete the request"


class StorageFailure(Exception):
    """
    Raised when the persistent store cannot complete an operation.

    Fatal to the enclosing request; never retried by the auth manager.
    """
    code = AuthError.STORAGE_FAILURE

    def __init__(self, operation: str):
        super().__init__(f"Storage failure during {operation}")
        self.operation = operation


@dataclass
class AuthResult:
    """
    Outcome of a register, login or rotation call.

    On success, access_token and user are set (refresh_token only for
    rotation). On failure, error and message describe the outcome.
    """
    success: bool
    message: str
    error: Optional[AuthError] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[User] = None

    @classmethod
    def failure(cls, error: AuthError, message: str) -> "AuthResult":
        return cls(success=False, message=message, error=error)

"""
SnackSpot Auckland - Authentication Package

Credential verification and session issuance:
- bcrypt password hashing
- Short-lived JWT access tokens (issuer/audience bound)
- Store-backed, single-use rotating refresh tokens
"""

from snackspot.auth.errors import AuthError, AuthResult, StorageFailure
from snackspot.auth.models import User, RefreshToken
from snackspot.auth.service import AuthManager
from snackspot.auth.tokens import create_access_token, verify_access_token

__all__ = [
    "AuthError",
    "AuthResult",
    "AuthManager",
    "StorageFailure",
    "User",
    "RefreshToken",
    "create_access_token",
    "verify_access_token",
]

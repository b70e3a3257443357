"""
SnackSpot Auckland - Password Hashing Utilities

Password hashing using bcrypt.
Work factor is configurable but defaults to 12 (a verification costs
tens of milliseconds on current hardware).

Security:
- Never log or expose plaintext passwords
- bcrypt includes salt automatically
- Verification is constant-time (bcrypt.checkpw)
"""

import bcrypt


# Work factor for bcrypt (2^12 = 4096 iterations)
# Increase for higher security, decrease for faster tests
BCRYPT_WORK_FACTOR = 12

# bcrypt only consumes the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, work_factor: int = BCRYPT_WORK_FACTOR) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plaintext password
        work_factor: bcrypt cost (log2 rounds)

    Returns:
        bcrypt hash string (includes salt)

    Example:
        >>> hashed = hash_password("secret1")
        >>> hashed.startswith("$2b$")
        True
    """
    salt = bcrypt.gensalt(rounds=work_factor)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Uses constant-time comparison to prevent timing attacks.

    Args:
        plain_password: Plaintext password to verify
        hashed_password: bcrypt hash to check against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        # Invalid hash format
        return False

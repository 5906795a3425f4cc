"""
Password utilities for admin access.
Uses bcrypt for password hashing; the shared admin secret may also be configured in plain text.
"""
import hmac

import bcrypt
from app.config import settings


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def verify_admin_password(password: str) -> bool:
    """
    Verify the shared admin password.

    ADMIN_PASSWORD_HASH takes precedence; ADMIN_PASSWORD is compared in constant time.

    Raises:
        ValueError: If neither ADMIN_PASSWORD_HASH nor ADMIN_PASSWORD is configured
    """
    if settings.ADMIN_PASSWORD_HASH:
        return verify_password(password, settings.ADMIN_PASSWORD_HASH)

    if settings.ADMIN_PASSWORD:
        return hmac.compare_digest(
            password.encode('utf-8'),
            settings.ADMIN_PASSWORD.encode('utf-8')
        )

    raise ValueError("ADMIN_PASSWORD_HASH or ADMIN_PASSWORD must be configured")

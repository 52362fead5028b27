"""
Password utilities for admin console access.
The admin password is stored as a bcrypt hash in ADMIN_PASSWORD_HASH.
"""
import bcrypt
from parish.config import settings


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt (used by scripts/generate_password_hash.py)."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Return True if password matches the bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def verify_admin_password(password: str) -> bool:
    """
    Verify the admin password against the configured hash.

    Raises:
        ValueError: If ADMIN_PASSWORD_HASH is not configured
    """
    if not settings.ADMIN_PASSWORD_HASH:
        raise ValueError("ADMIN_PASSWORD_HASH not configured")

    return verify_password(password, settings.ADMIN_PASSWORD_HASH)

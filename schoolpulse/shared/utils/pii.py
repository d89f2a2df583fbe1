"""Student privacy helpers for logs, events and cache keys.

Student ids and staff emails are logged as salted digests; feedback
text is logged only as an unsalted fingerprint, which also keys the
analysis cache. The salt comes from PII_HASH_SALT at service startup.
"""
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

# Logged in place of a digest when hashing is impossible
UNHASHED_ID = "unhashed"

_salt: Optional[str] = None


def configure_pii_salt(salt: str) -> None:
    """Install the salt used by hash_pii().

    Raises:
        ValueError: If salt is shorter than MIN_SALT_LENGTH
    """
    global _salt
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"salt_length": len(salt or ""), "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")
    _salt = salt


def hash_pii(value: str) -> str:
    """Salted sha256 of a student id or staff email.

    Raises:
        RuntimeError: If configure_pii_salt() was never called
    """
    if _salt is None:
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")
    return hashlib.sha256(f"{_salt}{value}".encode()).hexdigest()


def log_safe_id(value: Optional[str]) -> str:
    """hash_pii() for log fields and event keys; never raises.

    The notification path must keep delivering when the salt is missing,
    so an unconfigured salt yields UNHASHED_ID and a critical log
    instead of an exception. The raw value is never returned.
    """
    if not value:
        return UNHASHED_ID
    try:
        return hash_pii(value)
    except RuntimeError:
        logger.critical(
            "PII_HASH_UNAVAILABLE",
            extra={"reason": "salt_not_configured", "action": "SET_PII_HASH_SALT"}
        )
        return UNHASHED_ID


def fingerprint_text(text: str) -> str:
    """Unsalted sha256 of feedback text for audit logs."""
    return hashlib.sha256(text.encode()).hexdigest()


def content_key(text: str) -> str:
    """Cache key for feedback text: case-insensitive, trimmed.

    Identical feedback typed with different casing or surrounding
    whitespace maps to the same key.
    """
    return fingerprint_text(text.lower().strip())

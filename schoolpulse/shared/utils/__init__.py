"""Shared utilities for the SchoolPulse wellbeing core."""
from .pii import (
    UNHASHED_ID,
    configure_pii_salt,
    content_key,
    fingerprint_text,
    hash_pii,
    log_safe_id,
)

__all__ = [
    "UNHASHED_ID",
    "configure_pii_salt",
    "content_key",
    "fingerprint_text",
    "hash_pii",
    "log_safe_id",
]

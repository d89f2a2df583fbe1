"""Distress Service configuration and risk thresholds.

The lexicon weights and the cutoffs below are heuristics chosen for
this service; they are not clinically validated scores.
"""
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class DistressThresholds:
    """Total-weight cutoffs mapping lexicon hits to a risk level.

    A single emergency phrase carries CRITICAL_MIN on its own, so one
    explicit self-harm statement is always critical.
    """
    MEDIUM_MIN: int = 8         # Roughly two distress terms
    HIGH_MIN: int = 15          # Three distress terms
    CRITICAL_MIN: int = 25      # Emergency phrase weight
    INTENSITY_SCALE: float = 20.0
    CONFIDENCE_FLOOR: float = 20.0
    CONFIDENCE_PER_WORD: float = 2.0


@dataclass(frozen=True)
class DistressConfig:
    """Configuration for analysis, caching and batching behavior."""

    # Texts shorter than this (after strip) are not scanned
    min_text_length: int = 10

    # A language needs at least this many distinct phrase hits to be detected
    min_language_hits: int = 1

    cache_ttl_seconds: float = 300.0
    debounce_seconds: float = 0.5
    batch_chunk_size: int = 5

    # Version tracking for audit trail
    lexicon_version: str = "2026.10.01"

    @classmethod
    def from_env(cls) -> "DistressConfig":
        """Create config from environment variables.

        Environment variables:
            SCHOOLPULSE_MIN_TEXT_LENGTH: Minimum scanned length (default 10)
            SCHOOLPULSE_CACHE_TTL_SECONDS: Cache entry lifetime (default 300)
            SCHOOLPULSE_DEBOUNCE_SECONDS: Debounce window (default 0.5)
            SCHOOLPULSE_BATCH_CHUNK_SIZE: Batch chunk size (default 5)
            SCHOOLPULSE_LEXICON_VERSION: Lexicon version tag
        """
        defaults = cls()
        return cls(
            min_text_length=int(os.getenv("SCHOOLPULSE_MIN_TEXT_LENGTH", str(defaults.min_text_length))),
            cache_ttl_seconds=float(os.getenv("SCHOOLPULSE_CACHE_TTL_SECONDS", str(defaults.cache_ttl_seconds))),
            debounce_seconds=float(os.getenv("SCHOOLPULSE_DEBOUNCE_SECONDS", str(defaults.debounce_seconds))),
            batch_chunk_size=int(os.getenv("SCHOOLPULSE_BATCH_CHUNK_SIZE", str(defaults.batch_chunk_size))),
            lexicon_version=os.getenv("SCHOOLPULSE_LEXICON_VERSION", defaults.lexicon_version),
        )

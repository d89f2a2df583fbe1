"""Content-keyed TTL cache in front of the distress classifier.

Live typing and repeated submissions produce the same text many times;
the cache keeps one analysis per normalized text for the TTL window.
Expired entries are purged lazily on lookup. Concurrent misses on the
same key may compute twice; the last write wins, which is harmless
because analysis is a pure function of text.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from schoolpulse.shared.models import DistressAnalysis
from schoolpulse.shared.utils import content_key
from .classifier import DistressClassifier
from .config import DistressConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """One cached analysis. Owned exclusively by AnalysisCache."""
    key: str
    analysis: DistressAnalysis
    created_at: float


@dataclass(frozen=True)
class CacheStats:
    total: int
    valid: int
    expired: int
    hit_rate: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "total": self.total,
            "valid": self.valid,
            "expired": self.expired,
            "hit_rate": round(self.hit_rate, 3),
        }


class AnalysisCache:
    """Memoizes classifier output per normalized text."""

    def __init__(
        self,
        classifier: Optional[DistressClassifier] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            classifier: Classifier invoked on a miss
            ttl_seconds: Entry lifetime (defaults to DistressConfig)
            clock: Monotonic time source, injectable for tests
        """
        self.classifier = classifier or DistressClassifier()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else DistressConfig().cache_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= self.ttl_seconds

    def get_or_compute(self, text: str) -> DistressAnalysis:
        """Return the cached analysis for text, computing it on a miss.

        Args:
            text: Raw feedback text

        Returns:
            DistressAnalysis for the text
        """
        key = content_key(text)
        now = self._clock()

        entry = self._entries.get(key)
        if entry is not None:
            if not self._is_expired(entry, now):
                self._hits += 1
                return entry.analysis
            del self._entries[key]
            logger.debug("ANALYSIS_CACHE_EXPIRED", extra={"cache_key": key[:16]})

        self._misses += 1
        analysis = self.classifier.analyze(text)
        self._entries[key] = CacheEntry(key=key, analysis=analysis, created_at=now)
        return analysis

    def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, e in list(self._entries.items()) if self._is_expired(e, now)]
        for key in expired:
            self._entries.pop(key, None)
        if expired:
            logger.info("ANALYSIS_CACHE_PURGED", extra={"removed": len(expired)})
        return len(expired)

    def clear(self) -> None:
        """Drop all entries and reset hit counters."""
        removed = len(self._entries)
        self._entries = {}
        self._hits = 0
        self._misses = 0
        logger.info("ANALYSIS_CACHE_CLEARED", extra={"removed": removed})

    def stats(self) -> CacheStats:
        """Snapshot of cache occupancy and hit rate."""
        now = self._clock()
        snapshot = list(self._entries.values())
        valid = sum(1 for entry in snapshot if not self._is_expired(entry, now))
        lookups = self._hits + self._misses
        return CacheStats(
            total=len(snapshot),
            valid=valid,
            expired=len(snapshot) - valid,
            hit_rate=self._hits / lookups if lookups else 0.0,
        )

    def __len__(self) -> int:
        return len(self._entries)

"""Debounced and batched access to cached distress analysis.

- Debouncer: trailing-edge debounce, latest call wins. Callers whose
  call was superseded resolve to None instead of receiving a result.
- OptimizedAnalyzer: cache-backed analysis with a debounced entry
  point for live typing and a chunked batch entry point for bulk jobs.
"""
import asyncio
import logging
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from schoolpulse.shared.models import DistressAnalysis
from .analysis_cache import AnalysisCache
from .config import DistressConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Collapses bursts of calls into a single call with the latest argument.

    State is explicit: the pending argument, the timer handle and the
    waiter of the latest caller. Must be used from a running event loop.
    """

    def __init__(self, func: Callable[[str], Optional[T]], wait_seconds: float):
        self._func = func
        self.wait_seconds = wait_seconds
        self._pending_text: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._waiter: Optional[asyncio.Future] = None

    @property
    def is_pending(self) -> bool:
        return self._timer is not None

    async def __call__(self, text: str) -> Optional[T]:
        loop = asyncio.get_running_loop()
        self._supersede()

        waiter = loop.create_future()
        self._pending_text = text
        self._waiter = waiter
        self._timer = loop.call_later(self.wait_seconds, self._fire)
        return await waiter

    def _supersede(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)
        self._waiter = None

    def _fire(self) -> None:
        text, waiter = self._pending_text, self._waiter
        self._pending_text = None
        self._timer = None
        self._waiter = None
        if waiter is None or waiter.done():
            return

        try:
            waiter.set_result(self._func(text))
        except Exception as e:
            logger.error(
                "DEBOUNCED_CALL_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            waiter.set_result(None)

    def cancel(self) -> None:
        """Drop the pending call; its caller resolves to None."""
        self._supersede()
        self._pending_text = None


class OptimizedAnalyzer:
    """Cache-backed distress analysis for interactive and bulk use."""

    def __init__(
        self,
        cache: Optional[AnalysisCache] = None,
        config: Optional[DistressConfig] = None,
    ):
        self.config = config or DistressConfig()
        self.cache = cache if cache is not None else AnalysisCache(ttl_seconds=self.config.cache_ttl_seconds)
        self._debouncer: Debouncer[DistressAnalysis] = Debouncer(
            self.analyze, self.config.debounce_seconds
        )

    def analyze(self, text: str) -> Optional[DistressAnalysis]:
        """Analyze text through the cache.

        Returns:
            DistressAnalysis, or None for empty or too-short text
        """
        if not text or len(text.strip()) < self.config.min_text_length:
            return None
        try:
            return self.cache.get_or_compute(text)
        except Exception as e:
            logger.error(
                "OPTIMIZED_ANALYSIS_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            return None

    async def debounced_analyze(self, text: str) -> Optional[DistressAnalysis]:
        """Analyze the latest text of a burst; superseded calls get None."""
        return await self._debouncer(text)

    async def batch_analyze(self, texts: Sequence[str]) -> List[DistressAnalysis]:
        """Analyze texts in sequential chunks.

        Items within a chunk run concurrently; a chunk finishes before
        the next starts. Texts that short-circuit to None are dropped.

        Args:
            texts: Texts to analyze

        Returns:
            Analyses for texts that were long enough to scan
        """
        chunk_size = max(1, self.config.batch_chunk_size)
        results: List[DistressAnalysis] = []

        for start in range(0, len(texts), chunk_size):
            chunk = texts[start:start + chunk_size]
            chunk_results = await asyncio.gather(
                *(self._analyze_async(text) for text in chunk)
            )
            results.extend(r for r in chunk_results if r is not None)

        logger.info(
            "BATCH_ANALYSIS_COMPLETED",
            extra={
                "submitted": len(texts),
                "analyzed": len(results),
                "chunk_size": chunk_size,
            }
        )
        return results

    async def _analyze_async(self, text: str) -> Optional[DistressAnalysis]:
        return self.analyze(text)

    def cancel_pending(self) -> None:
        self._debouncer.cancel()

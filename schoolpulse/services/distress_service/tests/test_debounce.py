"""Tests for Debouncer and OptimizedAnalyzer.

Debounce windows are kept short so the suite stays fast.
"""
import asyncio

import pytest
from unittest.mock import MagicMock

from schoolpulse.shared.models import DistressAnalysis, Language, RiskLevel
from schoolpulse.services.distress_service.analysis_cache import AnalysisCache
from schoolpulse.services.distress_service.config import DistressConfig
from schoolpulse.services.distress_service.debounce import Debouncer, OptimizedAnalyzer


def _analysis(level: RiskLevel = RiskLevel.LOW) -> DistressAnalysis:
    return DistressAnalysis(risk_level=level, detected_language=Language.EN, confidence=0.1)


@pytest.fixture
def mock_cache():
    cache = MagicMock(spec=AnalysisCache)
    cache.get_or_compute.side_effect = lambda text: _analysis()
    return cache


@pytest.fixture
def analyzer(mock_cache):
    return OptimizedAnalyzer(
        cache=mock_cache,
        config=DistressConfig(debounce_seconds=0.05, batch_chunk_size=2),
    )


class TestAnalyze:

    def test_short_text_returns_none(self, analyzer, mock_cache):
        assert analyzer.analyze("too short") is None
        assert analyzer.analyze("") is None
        mock_cache.get_or_compute.assert_not_called()

    def test_long_text_goes_through_cache(self, analyzer, mock_cache):
        result = analyzer.analyze("a perfectly ordinary day at school")

        assert result is not None
        mock_cache.get_or_compute.assert_called_once_with("a perfectly ordinary day at school")

    def test_cache_failure_returns_none(self, analyzer, mock_cache):
        mock_cache.get_or_compute.side_effect = RuntimeError("cache down")

        assert analyzer.analyze("a perfectly ordinary day at school") is None

    def test_default_wiring_uses_real_classifier(self):
        result = OptimizedAnalyzer().analyze("I want to kill myself and end everything")

        assert result.risk_level == RiskLevel.CRITICAL


class TestDebouncedAnalyze:

    @pytest.mark.asyncio
    async def test_burst_only_latest_call_resolves(self, analyzer, mock_cache):
        texts = [
            "I feel",
            "I feel hope",
            "I feel hopeless",
            "I feel hopeless and",
            "I feel hopeless and alone",
        ]
        tasks = []
        for text in texts:
            tasks.append(asyncio.create_task(analyzer.debounced_analyze(text)))
            await asyncio.sleep(0.005)

        results = await asyncio.gather(*tasks)

        assert results[:4] == [None, None, None, None]
        assert results[4] is not None
        mock_cache.get_or_compute.assert_called_once_with("I feel hopeless and alone")

    @pytest.mark.asyncio
    async def test_separate_windows_each_deliver(self, analyzer, mock_cache):
        first = await analyzer.debounced_analyze("first complete sentence here")
        second = await analyzer.debounced_analyze("second complete sentence here")

        assert first is not None
        assert second is not None
        assert mock_cache.get_or_compute.call_count == 2

    @pytest.mark.asyncio
    async def test_short_text_resolves_none(self, analyzer, mock_cache):
        assert await analyzer.debounced_analyze("short") is None
        mock_cache.get_or_compute.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_pending_resolves_none(self, analyzer, mock_cache):
        task = asyncio.create_task(analyzer.debounced_analyze("a perfectly ordinary day at school"))
        await asyncio.sleep(0.005)

        analyzer.cancel_pending()

        assert await task is None
        await asyncio.sleep(0.06)
        mock_cache.get_or_compute.assert_not_called()


class TestDebouncer:

    @pytest.mark.asyncio
    async def test_failing_function_resolves_none(self):
        debouncer = Debouncer(MagicMock(side_effect=ValueError("bad")), wait_seconds=0.01)

        assert await debouncer("anything") is None
        assert not debouncer.is_pending

    @pytest.mark.asyncio
    async def test_is_pending_while_waiting(self):
        debouncer = Debouncer(lambda text: text.upper(), wait_seconds=0.02)

        task = asyncio.create_task(debouncer("hello"))
        await asyncio.sleep(0)
        assert debouncer.is_pending

        assert await task == "HELLO"
        assert not debouncer.is_pending


class TestBatchAnalyze:

    @pytest.mark.asyncio
    async def test_all_texts_analyzed_across_chunks(self, analyzer, mock_cache):
        texts = [f"feedback number {i} about the week" for i in range(5)]

        results = await analyzer.batch_analyze(texts)

        assert len(results) == 5
        assert mock_cache.get_or_compute.call_count == 5

    @pytest.mark.asyncio
    async def test_short_texts_dropped(self, analyzer):
        texts = ["feedback about the week", "ok", "", "another longer feedback text"]

        results = await analyzer.batch_analyze(texts)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_chunks_run_in_order(self, analyzer, mock_cache):
        seen = []
        mock_cache.get_or_compute.side_effect = lambda text: seen.append(text) or _analysis()
        texts = [f"feedback number {i} about the week" for i in range(5)]

        await analyzer.batch_analyze(texts)

        assert set(seen[:2]) == set(texts[:2])
        assert set(seen[2:4]) == set(texts[2:4])
        assert seen[4] == texts[4]

    @pytest.mark.asyncio
    async def test_empty_batch(self, analyzer):
        assert await analyzer.batch_analyze([]) == []

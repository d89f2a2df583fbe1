"""Distress Service: multi-language distress classification.

Components:
- lexicon.py: Language-tagged phrases with severity weights
- text_normalizer.py: Normalization shared by lexicon and text
- classifier.py: DistressClassifier (text -> DistressAnalysis)
- analysis_cache.py: Content-keyed TTL cache
- debounce.py: Debounced and chunked batch analysis
- handler.py: Flask HTTP endpoints (/health, /analyze, /analyze/batch)

Usage:
    from schoolpulse.services.distress_service import DistressClassifier
    classifier = DistressClassifier()
    analysis = classifier.analyze("I feel hopeless and alone")
"""

from .classifier import DistressClassifier
from .analysis_cache import AnalysisCache, CacheEntry, CacheStats
from .config import DistressConfig, DistressThresholds
from .debounce import Debouncer, OptimizedAnalyzer
from .lexicon import LEXICON, LexiconEntry

__all__ = [
    "DistressClassifier",
    "AnalysisCache",
    "CacheEntry",
    "CacheStats",
    "DistressConfig",
    "DistressThresholds",
    "Debouncer",
    "OptimizedAnalyzer",
    "LEXICON",
    "LexiconEntry",
]

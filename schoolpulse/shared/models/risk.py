"""Risk level and distress analysis domain models.

This file defines the core enums and value objects produced by the
distress classifier and consumed by the notification engine.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class RiskLevel(Enum):
    """Ordinal risk classification for student free text."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal position, LOW=0 .. CRITICAL=3."""
        return _RISK_ORDER.index(self)

    @property
    def alert_severity(self) -> int:
        """Severity stored on a recorded alert (1-5 scale)."""
        return _ALERT_SEVERITY[self]

    def at_least(self, other: "RiskLevel") -> bool:
        return self.rank >= other.rank


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]

_ALERT_SEVERITY = {
    RiskLevel.CRITICAL: 5,
    RiskLevel.HIGH: 4,
    RiskLevel.MEDIUM: 3,
    RiskLevel.LOW: 1,
}


class Language(Enum):
    """Languages the lexicon covers."""
    EN = "en"           # English
    LT = "lt"           # Lithuanian
    UNKNOWN = "unknown"


class Sentiment(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class EmotionalMarkers:
    """Coarse emotional reading derived from matched lexicon categories."""
    sentiment: Sentiment = Sentiment.NEUTRAL
    emotions: Tuple[str, ...] = ()
    intensity: float = 0.0

    def __post_init__(self):
        if not 0.0 <= self.intensity <= 1.0:
            raise ValueError(f"Intensity must be 0.0-1.0, got {self.intensity}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment.value,
            "emotions": list(self.emotions),
            "intensity": round(self.intensity, 3),
        }


@dataclass(frozen=True)
class DistressAnalysis:
    """Heuristic classification of one text blob.

    Immutable - the same analysis object may be shared by the cache and
    by several pending notifications at once.
    """
    risk_level: RiskLevel
    detected_language: Language
    confidence: float
    indicators: Tuple[str, ...] = ()
    cultural_context: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    emotional_markers: EmotionalMarkers = field(default_factory=EmotionalMarkers)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be 0.0-1.0, got {self.confidence}")

    @classmethod
    def safe_default(cls) -> "DistressAnalysis":
        """Result used for trivial input and for any classification fault."""
        return cls(
            risk_level=RiskLevel.LOW,
            detected_language=Language.UNKNOWN,
            confidence=0.0,
        )

    @property
    def requires_alert(self) -> bool:
        """Whether this analysis is worth a durable alert record."""
        return self.risk_level != RiskLevel.LOW or self.confidence > 0.5

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "risk_level": self.risk_level.value,
            "detected_language": self.detected_language.value,
            "confidence": round(self.confidence, 3),
            "indicators": list(self.indicators),
            "cultural_context": list(self.cultural_context),
            "recommendations": list(self.recommendations),
            "emotional_markers": self.emotional_markers.to_dict(),
        }

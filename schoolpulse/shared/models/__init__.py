"""Shared domain models for the SchoolPulse wellbeing core."""
from .risk import (
    RiskLevel,
    Language,
    Sentiment,
    EmotionalMarkers,
    DistressAnalysis,
)

__all__ = [
    "RiskLevel",
    "Language",
    "Sentiment",
    "EmotionalMarkers",
    "DistressAnalysis",
]

"""Multi-language distress classifier.

Scores free text against the language-tagged lexicon:
- Language detection: whole-word hits only, so "sad" inside "visada"
  does not count. Languages with an emergency hit rank first, then the
  most distinct hits, then the higher total weight; a tie without an
  emergency hit means unknown
- Scoring: every occurrence of every phrase of the detected language
  adds its severity weight (overlapping phrases count independently)
- Risk level: fixed total-weight cutoffs from DistressThresholds

The classifier never raises. Trivial input and internal faults both
yield DistressAnalysis.safe_default().
"""
import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from schoolpulse.shared.models import (
    DistressAnalysis,
    EmotionalMarkers,
    Language,
    RiskLevel,
    Sentiment,
)
from schoolpulse.shared.utils import fingerprint_text
from .config import DistressConfig, DistressThresholds
from .lexicon import (
    CONTEXT_RECOMMENDATIONS,
    CRISIS_RESOURCES,
    CULTURAL_CONTEXTS,
    LEXICON,
    RECOMMENDATIONS,
    SCORED_LANGUAGES,
    UNKNOWN_LANGUAGE_RECOMMENDATION,
    LexiconEntry,
)
from .text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)


# Category -> emotion label, in reporting order
EMOTION_LABELS: Tuple[Tuple[str, str], ...] = (
    ("anxiety", "anxiety"),
    ("depression", "depression"),
    ("distress", "distress"),
    ("isolation", "isolation"),
    ("positive", "positivity"),
)


@dataclass(frozen=True)
class _CompiledEntry:
    entry: LexiconEntry
    pattern: re.Pattern
    word_pattern: re.Pattern


@dataclass(frozen=True)
class _Hit:
    position: int
    entry: LexiconEntry


class DistressClassifier:
    """Heuristic distress classifier for student feedback.

    Stateless after construction: analyze() is a pure function of its
    input, so results can be cached by content.
    """

    def __init__(
        self,
        config: Optional[DistressConfig] = None,
        thresholds: Optional[DistressThresholds] = None,
        lexicon: Tuple[LexiconEntry, ...] = LEXICON,
    ):
        """Initialize classifier and pre-compile the lexicon.

        Args:
            config: Analysis behavior configuration
            thresholds: Risk level cutoffs
            lexicon: Lexicon entries to score against
        """
        self.config = config or DistressConfig()
        self.thresholds = thresholds or DistressThresholds()
        self._normalizer = TextNormalizer()

        self._patterns: Dict[Language, List[_CompiledEntry]] = {
            language: [] for language in SCORED_LANGUAGES
        }
        for entry in lexicon:
            self._patterns.setdefault(entry.language, []).append(
                _CompiledEntry(
                    entry,
                    self._compile(entry.phrase),
                    self._compile(entry.phrase, whole_words=True),
                )
            )

        self._context_patterns: Dict[Language, List[Tuple[str, re.Pattern]]] = {
            language: [
                (context, self._compile(pattern))
                for context, patterns in contexts.items()
                for pattern in patterns
            ]
            for language, contexts in CULTURAL_CONTEXTS.items()
        }

        logger.info(
            "DISTRESS_CLASSIFIER_INITIALIZED",
            extra={
                "lexicon_version": self.config.lexicon_version,
                "lexicon_size": len(lexicon),
                "languages": [language.value for language in self._patterns],
            }
        )

    def _compile(self, phrase: str, whole_words: bool = False) -> re.Pattern:
        # Phrases are normalized exactly like the text they are matched against
        escaped = re.escape(self._normalizer.normalize(phrase))
        return re.compile(rf"\b{escaped}\b" if whole_words else escaped)

    def analyze(self, text: str) -> DistressAnalysis:
        """Classify a text blob.

        Args:
            text: Raw feedback text

        Returns:
            DistressAnalysis; the safe default for trivial input or on
            any internal fault

        Logs:
            - DISTRESS_ANALYSIS_SKIPPED: Text below minimum length
            - DISTRESS_ANALYSIS_CRITICAL: Critical level detected
            - DISTRESS_ANALYSIS_COMPLETED: After scoring
            - DISTRESS_ANALYSIS_FAILED: Internal fault, safe default returned
        """
        if not text or len(text.strip()) < self.config.min_text_length:
            logger.debug(
                "DISTRESS_ANALYSIS_SKIPPED",
                extra={"text_length": len(text or ""), "reason": "below_min_length"}
            )
            return DistressAnalysis.safe_default()

        try:
            return self._analyze(text)
        except Exception as e:
            logger.error(
                "DISTRESS_ANALYSIS_FAILED",
                extra={
                    "text_hash": fingerprint_text(text),
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "SAFE_DEFAULT_RETURNED",
                }
            )
            return DistressAnalysis.safe_default()

    def _analyze(self, text: str) -> DistressAnalysis:
        start_time = time.perf_counter()
        normalized = self._normalizer.normalize(text)

        language = self.detect_language(normalized)
        if language == Language.UNKNOWN:
            return DistressAnalysis(
                risk_level=RiskLevel.LOW,
                detected_language=Language.UNKNOWN,
                confidence=0.0,
                recommendations=(UNKNOWN_LANGUAGE_RECOMMENDATION,),
            )

        hits = self._scan(normalized, language)
        total_weight = sum(hit.entry.severity_weight for hit in hits)
        has_critical_phrase = any(
            hit.entry.severity_weight >= self.thresholds.CRITICAL_MIN for hit in hits
        )

        risk_level = self._determine_risk_level(total_weight, has_critical_phrase)
        confidence = self._calculate_confidence(total_weight, len(normalized.split()))
        indicators = tuple(
            hit.entry.phrase for hit in hits if hit.entry.severity_weight > 0
        )
        cultural_context = self._match_cultural_context(normalized, language)

        analysis = DistressAnalysis(
            risk_level=risk_level,
            detected_language=language,
            confidence=confidence,
            indicators=indicators,
            cultural_context=cultural_context,
            recommendations=self._recommendations(risk_level, language, cultural_context),
            emotional_markers=self._emotional_markers(hits, total_weight),
        )

        latency_ms = (time.perf_counter() - start_time) * 1000
        if risk_level == RiskLevel.CRITICAL:
            logger.critical(
                "DISTRESS_ANALYSIS_CRITICAL",
                extra={
                    "text_hash": fingerprint_text(text),
                    "language": language.value,
                    "indicator_count": len(indicators),
                    "total_weight": total_weight,
                }
            )

        logger.info(
            "DISTRESS_ANALYSIS_COMPLETED",
            extra={
                "text_hash": fingerprint_text(text),
                "language": language.value,
                "risk_level": risk_level.value,
                "total_weight": total_weight,
                "confidence": confidence,
                "latency_ms": latency_ms,
            }
        )

        return analysis

    def detect_language(self, normalized_text: str) -> Language:
        """Pick the language whose lexicon has the most distinct whole-word hits.

        A language with an emergency phrase outranks one without, so an
        emergency phrase is always scored whatever else the text holds.
        Then the hit count decides, then the total weight. A tie on all
        three goes to the first tied language when it has an emergency
        phrase (mixed "I want to die, noriu mirti") and is unknown otherwise.

        Args:
            normalized_text: Output of TextNormalizer.normalize()

        Returns:
            Winning language, or UNKNOWN on an unresolved tie or too few hits
        """
        scores: Dict[Language, Tuple[bool, int, int]] = {}
        for language, compiled in self._patterns.items():
            weights = [
                c.entry.severity_weight for c in compiled
                if c.word_pattern.search(normalized_text)
            ]
            if len(weights) >= self.config.min_language_hits and weights:
                has_emergency = max(weights) >= self.thresholds.CRITICAL_MIN
                scores[language] = (has_emergency, len(weights), sum(weights))

        if not scores:
            return Language.UNKNOWN

        best = max(scores.values())
        leaders = [language for language, score in scores.items() if score == best]
        if len(leaders) == 1 or best[0]:
            return leaders[0]
        return Language.UNKNOWN

    def _scan(self, normalized_text: str, language: Language) -> List[_Hit]:
        """Find every occurrence of every phrase, ordered by position."""
        hits = [
            _Hit(match.start(), compiled.entry)
            for compiled in self._patterns.get(language, [])
            for match in compiled.pattern.finditer(normalized_text)
        ]
        hits.sort(key=lambda hit: hit.position)
        return hits

    def _determine_risk_level(self, total_weight: int, has_critical_phrase: bool) -> RiskLevel:
        """Map total weight to a risk level.

        Critical requires an emergency-weight phrase; a high total made
        up of lesser phrases stays at HIGH.
        """
        if has_critical_phrase:
            return RiskLevel.CRITICAL
        if total_weight >= self.thresholds.HIGH_MIN:
            return RiskLevel.HIGH
        if total_weight >= self.thresholds.MEDIUM_MIN:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def _calculate_confidence(self, total_weight: int, word_count: int) -> float:
        """Hit density: total weight against a length-based normalizer."""
        normalizer = max(
            self.thresholds.CONFIDENCE_FLOOR,
            word_count * self.thresholds.CONFIDENCE_PER_WORD,
        )
        return min(1.0, max(0, total_weight) / normalizer)

    def _match_cultural_context(self, normalized_text: str, language: Language) -> Tuple[str, ...]:
        found: List[str] = []
        for context, pattern in self._context_patterns.get(language, []):
            if context not in found and pattern.search(normalized_text):
                found.append(context)
        return tuple(found)

    def _recommendations(
        self,
        risk_level: RiskLevel,
        language: Language,
        cultural_context: Tuple[str, ...],
    ) -> Tuple[str, ...]:
        lines = list(RECOMMENDATIONS.get(language, {}).get(risk_level, ()))
        for context, line in CONTEXT_RECOMMENDATIONS.get(language, {}).items():
            if context in cultural_context:
                lines.append(line)
        return tuple(lines)

    def _emotional_markers(self, hits: List[_Hit], total_weight: int) -> EmotionalMarkers:
        categories = {hit.entry.category for hit in hits}
        if total_weight > 0:
            sentiment = Sentiment.NEGATIVE
        elif "positive" in categories:
            sentiment = Sentiment.POSITIVE
        else:
            sentiment = Sentiment.NEUTRAL

        return EmotionalMarkers(
            sentiment=sentiment,
            emotions=tuple(label for category, label in EMOTION_LABELS if category in categories),
            intensity=min(1.0, max(0, total_weight) / self.thresholds.INTENSITY_SCALE),
        )

    def crisis_resources(self, language: Language) -> Dict[str, List[Dict[str, str]]]:
        """Hotlines and websites for a language; unknown falls back to English."""
        return CRISIS_RESOURCES.get(language, CRISIS_RESOURCES[Language.EN])

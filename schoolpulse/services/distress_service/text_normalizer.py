"""Text normalization for lexicon matching.

Lexicon phrases and student text pass through the same normalizer so a
phrase matches regardless of casing, punctuation, styled unicode, missing
Lithuanian diacritics or simple leetspeak (K1LL, $uicide).
"""
import logging
import re
import unicodedata
from typing import Dict, FrozenSet

logger = logging.getLogger(__name__)


# Only applied when the character touches a letter, so plain numbers survive
LEETSPEAK_MAP: Dict[str, str] = {
    "0": "o",
    "1": "i",
    "3": "e",
    "4": "a",
    "5": "s",
    "7": "t",
    "@": "a",
    "$": "s",
}

# Characters to strip (zero-width, invisible)
STRIP_CHARS: FrozenSet[str] = frozenset({
    "\u200b",  # Zero-width space
    "\u200c",  # Zero-width non-joiner
    "\u200d",  # Zero-width joiner
    "\ufeff",  # Byte order mark
    "\u00ad",  # Soft hyphen
    "\u2060",  # Word joiner
})

APOSTROPHES: FrozenSet[str] = frozenset({"'", "\u2019", "\u2018", "`"})


class TextNormalizer:
    """Normalizes text for substring matching against the lexicon.

    Handles:
    - Zero-width characters
    - Styled unicode (fullwidth, circled, mathematical letters) via NFKC
    - Diacritics (savižudybė == savizudybe)
    - Leetspeak inside words
    - Punctuation (can't == cant, self-harm == self harm)
    """

    def __init__(self):
        leet_chars = re.escape("".join(LEETSPEAK_MAP))
        self._leet_pattern = re.compile(
            rf"(?<=[a-z])[{leet_chars}]|[{leet_chars}](?=[a-z])"
        )
        self._punctuation_pattern = re.compile(r"[^\w\s]|_")

        logger.debug(
            "TEXT_NORMALIZER_INITIALIZED",
            extra={"leetspeak_mappings": len(LEETSPEAK_MAP)}
        )

    def normalize(self, text: str) -> str:
        """Normalize text for matching.

        Applies normalization in order:
        1. Strip zero-width/invisible characters
        2. NFKC compatibility folding
        3. Lowercase
        4. Drop diacritics
        5. Leetspeak conversion
        6. Remove apostrophes, turn other punctuation into spaces
        7. Collapse whitespace
        """
        if not text:
            return ""

        result = "".join(c for c in text if c not in STRIP_CHARS)
        result = unicodedata.normalize("NFKC", result).lower()
        result = self._strip_diacritics(result)
        result = self._leet_pattern.sub(lambda m: LEETSPEAK_MAP[m.group(0)], result)
        result = "".join(c for c in result if c not in APOSTROPHES)
        result = self._punctuation_pattern.sub(" ", result)
        return " ".join(result.split())

    def _strip_diacritics(self, text: str) -> str:
        decomposed = unicodedata.normalize("NFKD", text)
        return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


# Module-level singleton for performance
_normalizer: TextNormalizer | None = None


def get_normalizer() -> TextNormalizer:
    """Get the singleton TextNormalizer instance."""
    global _normalizer
    if _normalizer is None:
        _normalizer = TextNormalizer()
    return _normalizer


def normalize_text(text: str) -> str:
    """Convenience function to normalize text."""
    return get_normalizer().normalize(text)

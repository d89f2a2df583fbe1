"""Language-tagged distress lexicon and static guidance data.

Phrases are grouped by category; each category carries a severity
weight. Positive phrases carry a negative weight and pull the total
down. The lexicon is immutable and built once at import time.

Updated: 2026-10-01 - added Lithuanian cultural context patterns
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple

from schoolpulse.shared.models import Language, RiskLevel


@dataclass(frozen=True)
class LexiconEntry:
    """A single phrase with its language and severity weight."""
    phrase: str
    language: Language
    severity_weight: int
    category: str


CATEGORY_WEIGHTS: Dict[str, int] = {
    "emergency": 25,
    "distress": 5,
    "depression": 3,
    "anxiety": 3,
    "isolation": 2,
    "academic": 2,
    "positive": -2,
}

# Order matters: indicators and emotions are reported in this order
_PHRASES: Dict[Language, Dict[str, Tuple[str, ...]]] = {
    Language.EN: {
        # ==================================================================
        # EMERGENCY - any hit is critical
        # ==================================================================
        "emergency": (
            "want to die", "kill myself", "end it all", "suicide", "hurt myself",
            "self-harm", "cutting", "no point living", "better off dead",
        ),
        "distress": (
            "hopeless", "helpless", "worthless", "useless", "terrible", "awful",
            "miserable", "depressed", "sad", "upset", "frustrated", "angry",
            "hate myself", "can't do this", "give up", "want to quit",
        ),
        "depression": (
            "empty", "numb", "nothing matters", "pointless", "tired all the time",
            "can't sleep", "no energy", "lost interest", "don't care anymore",
        ),
        "anxiety": (
            "panic", "worried", "scared", "afraid", "nervous", "anxious",
            "can't breathe", "heart racing", "overwhelming", "stressed out",
        ),
        "isolation": (
            "alone", "lonely", "no friends", "nobody cares", "isolated",
            "left out", "don't belong", "no one understands",
        ),
        "academic": (
            "failing", "can't understand", "too hard", "stupid", "behind everyone",
            "not smart enough", "going to fail", "disappointed parents",
        ),
        "positive": (
            "good", "great", "happy", "excited", "love", "enjoy", "fun",
            "better", "improving", "confident", "proud", "successful",
        ),
    },
    Language.LT: {
        "emergency": (
            "noriu mirti", "nusižudyti", "baigti viską", "savižudybė", "susižaloti",
            "save žalojimas", "pjaustymas", "nėra prasmės gyventi", "geriau būčiau miręs",
        ),
        "distress": (
            "beviltiškas", "bejėgis", "bevertas", "nenaudingas", "baisus", "siaubingas",
            "nelaimingas", "prislėgtas", "liūdnas", "supykęs", "pykstu", "nekenčiu savęs",
            "negaliu to padaryti", "pasiduodu", "noriu mesti",
        ),
        "depression": (
            "tuščias", "nejuntu nieko", "nieko nerūpi", "beprasmis", "visada pavargęs",
            "negaliu miegoti", "nėra energijos", "praradau susidomėjimą", "daugiau nerūpi",
        ),
        "anxiety": (
            "panika", "nerimas", "bijau", "baisu", "nervuojuosi", "nervingas",
            "negaliu kvėpuoti", "širdis plaka", "perdaug", "įtemptas",
        ),
        "isolation": (
            "vienas", "vienišas", "nėra draugų", "niekas nesirūpina", "izoliuotas",
            "paliktas nuošalyje", "nepriklausau", "niekas nesupranta",
        ),
        "academic": (
            "nepavyksta", "nesuprantu", "per sunku", "kvailas", "atsilieku nuo visų",
            "nepakankamai protingas", "nepavyks", "nuvyliau tėvus",
        ),
        "positive": (
            "gerai", "puiku", "laimingas", "džiaugiuosi", "mėgstu", "smagu",
            "geriau", "gerėju", "pasitikiu savimi", "didžiuojuosi", "sėkmingas",
        ),
    },
}


def _build_lexicon() -> Tuple[LexiconEntry, ...]:
    entries: List[LexiconEntry] = []
    for language, categories in _PHRASES.items():
        for category, phrases in categories.items():
            weight = CATEGORY_WEIGHTS[category]
            entries.extend(
                LexiconEntry(phrase, language, weight, category) for phrase in phrases
            )
    return tuple(entries)


LEXICON: Tuple[LexiconEntry, ...] = _build_lexicon()

SCORED_LANGUAGES: Tuple[Language, ...] = tuple(_PHRASES)


# Cultural pressure patterns, reported as context rather than scored
CULTURAL_CONTEXTS: Dict[Language, Dict[str, Tuple[str, ...]]] = {
    Language.LT: {
        "family_pressure": ("tėvai nusivylė", "šeimos lūkesčiai", "gėda šeimai"),
        "academic_culture": ("reikia būti geriausiam", "visi geriau moka", "nesėkmė"),
        "social_expectations": ("kas pagalvos", "turėčiau", "privalau"),
    },
    Language.EN: {
        "family_pressure": ("parents disappointed", "family expectations", "shame family"),
        "academic_culture": ("need to be perfect", "everyone else better", "failure"),
        "social_expectations": ("what will people think", "should be", "have to"),
    },
}


RECOMMENDATIONS: Dict[Language, Dict[RiskLevel, Tuple[str, ...]]] = {
    Language.EN: {
        RiskLevel.CRITICAL: (
            "Seek immediate help from a trusted adult or mental health professional",
            "Call crisis helpline: 988 (US) or local emergency services",
            "Contact your nearest mental health crisis center",
        ),
        RiskLevel.HIGH: (
            "Consider speaking with a school counselor or psychologist",
            "Talk to a trusted adult about how you're feeling",
            "Consider discussing with parents or guardians",
        ),
        RiskLevel.MEDIUM: (
            "Try talking to a friend or family member about your difficulties",
            "Seek academic support if struggling with studies",
            "Engage in activities you enjoy to boost mood",
        ),
    },
    Language.LT: {
        RiskLevel.CRITICAL: (
            "Nedelsiant kreipkitės į artimą asmenį arba psichikos sveikatos specialistą",
            "Skambinkite pagalbos telefonu: 8 800 28 888 (nemokamas)",
            "Kreipkitės į artimiausią psichikos sveikatos centrą",
        ),
        RiskLevel.HIGH: (
            "Rekomenduojama pasitarti su mokyklos psichologu",
            "Aptarkite savo jausmus su patikimu suaugusiuoju",
            "Apsvarstykite pokalbį su tėvais ar globėjais",
        ),
        RiskLevel.MEDIUM: (
            "Pabandykite aptarti sunkumus su draugu ar šeimos nariu",
            "Ieškokite pagalbos mokymosi klausimais",
            "Skirkite laiko veiklai, kuri jums patinka",
        ),
    },
}

CONTEXT_RECOMMENDATIONS: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "family_pressure": "Discuss family expectations and your personal capabilities",
        "academic_culture": "Remember that setbacks are part of the learning process",
    },
    Language.LT: {
        "family_pressure": "Aptarkite šeimos lūkesčius ir savo galimybes",
        "academic_culture": "Prisiminkite, kad nesėkmės yra mokymosi proceso dalis",
    },
}

UNKNOWN_LANGUAGE_RECOMMENDATION = (
    "Please provide feedback in English or Lithuanian for better analysis"
)


CRISIS_RESOURCES: Dict[Language, Dict[str, List[Dict[str, str]]]] = {
    Language.EN: {
        "hotlines": [
            {"name": "Crisis Text Line", "number": "741741", "description": "Text HOME to 741741"},
            {"name": "988 Suicide & Crisis Lifeline", "number": "988", "description": "24/7 crisis support"},
        ],
        "websites": [
            {"name": "Crisis Text Line", "url": "https://crisistextline.org"},
            {"name": "National Alliance on Mental Illness", "url": "https://nami.org"},
        ],
    },
    Language.LT: {
        "hotlines": [
            {"name": "Jaunimo linija", "number": "8 800 28 888", "description": "Nemokama pagalba jaunimui"},
            {"name": "Vaikų linija", "number": "116 111", "description": "Pagalba vaikams ir paaugliams"},
        ],
        "websites": [
            {"name": "Jaunimo linija", "url": "https://jaunimolinija.lt"},
            {"name": "Vilniaus psichikos sveikatos centras", "url": "https://vpsc.lt"},
        ],
    },
}

"""Constants shared across the wordsync package.

Tunable weights and thresholds live in ``wordsync.config``; this module only
holds fixed vocabulary and environment names.
"""

from typing import Final

ENV_PREFIX: Final[str] = "WORDSYNC_"
ENV_LOG_LEVEL: Final[str] = "WORDSYNC_LOG_LEVEL"
ENV_DEFAULT_STRATEGY: Final[str] = "WORDSYNC_DEFAULT_STRATEGY"
ENV_SKIP_PENALTY: Final[str] = "WORDSYNC_SKIP_PENALTY"
ENV_MAX_SKIP_DISTANCE: Final[str] = "WORDSYNC_MAX_SKIP_DISTANCE"
ENV_CONTEXT_WINDOW: Final[str] = "WORDSYNC_CONTEXT_WINDOW"

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_LANGUAGE: Final[str] = "english"
DEFAULT_BOOK_VERSION: Final[str] = "1.0.0"

CONTRACTIONS: Final[dict[str, str]] = {
    "can't": "cannot",
    "won't": "will not",
    "n't": " not",
    "'ll": " will",
    "'re": " are",
    "'ve": " have",
    "'d": " would",
    "'m": " am",
    "'s": " is",  # also possessive
}

SPEECH_VARIATIONS: Final[dict[str, str]] = {
    "gonna": "going to",
    "wanna": "want to",
    "gotta": "got to",
    "kinda": "kind of",
    "sorta": "sort of",
}

NUMBER_WORDS: Final[dict[str, str]] = {
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
    "ten": "10",
}

# Straight and typographic quotes, dashes, brackets.
MATCHING_PUNCTUATION: Final[str] = ".,!?;:\"“”'‘’()—–-[]{}"
TYPOGRAPHIC_APOSTROPHES: Final[str] = "‘’ʼ"

# Ordered phonetic substitution rules, applied top to bottom.
PHONETIC_RULES: Final[list[tuple[str, str]]] = [
    (r"ph", "f"),
    (r"gh", "f"),
    (r"ck", "k"),
    (r"c([eiy])", r"s\1"),
    (r"c", "k"),
    (r"q", "k"),
    (r"x", "ks"),
    (r"z", "s"),
    (r"[aeiou]+", "a"),
]

QUALITY_LABELS: Final[list[tuple[float, str]]] = [
    (90, "Excellent"),
    (80, "Good"),
    (70, "Acceptable"),
    (60, "Fair"),
]
POOR_QUALITY_LABEL: Final[str] = "Poor"

GRADE_BOUNDARIES: Final[list[tuple[float, str]]] = [
    (0.9, "A"),
    (0.8, "B"),
    (0.7, "C"),
    (0.6, "D"),
]
FAILING_GRADE: Final[str] = "F"

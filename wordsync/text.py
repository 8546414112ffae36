"""Text normalization for matching written content against transcribed speech.

Two canonical forms are produced for every token: an aggressive matching form
(lowercase, contractions and speech variants expanded, small numbers as
digits, punctuation stripped) and a light display form that keeps case and
punctuation for presentation.
"""

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Final

from wordsync import constants
from wordsync.config import NormalizationConfig

WHITESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+")
SENTENCE_BOUNDARY_PATTERN: Final[re.Pattern[str]] = re.compile(r"[.!?]+\s+")
_APOSTROPHE_TRANSLATION: Final[dict[int, str]] = str.maketrans(
    {ch: "'" for ch in constants.TYPOGRAPHIC_APOSTROPHES}
)


@dataclass(frozen=True)
class ExtractedWord:
    """A token with both of its canonical forms.

    Attributes:
        normalized: Matching form of the token.
        display: Display form of the token.
        position: Zero-based index of the token within its source text.
    """

    normalized: str
    display: str
    position: int


@dataclass(frozen=True)
class ExtractedSentence:
    """A sentence span with its word breakdown."""

    text: str
    start_position: int
    end_position: int
    words: list[ExtractedWord] = field(default_factory=list)


class TextNormalizer:
    """Canonicalizes text for matching and for display.

    Args:
        config: Lookup tables for contractions, speech variants, number words
            and the punctuation set stripped for matching.
    """

    def __init__(self, config: NormalizationConfig | None = None) -> None:
        self.config = config or NormalizationConfig()

    @cached_property
    def _word_patterns(self) -> list[tuple[re.Pattern[str], str]]:
        substitutions = {**self.config.speech_variations, **self.config.number_words}
        return [
            (re.compile(rf"\b{re.escape(word)}\b"), replacement)
            for word, replacement in substitutions.items()
        ]

    @cached_property
    def _punctuation_translation(self) -> dict[int, None]:
        return str.maketrans("", "", self.config.punctuation)

    def _substitute_words(self, text: str) -> str:
        for pattern, replacement in self._word_patterns:
            text = pattern.sub(replacement, text)
        return text

    def normalize_for_matching(self, text: str | None) -> str:
        """Normalize text for matching purposes.

        Contractions and other multi-word expansions run before punctuation is
        stripped because they key on apostrophes. Word substitutions run once
        more after stripping so tokens joined by punctuation ("t-e-n") end up
        in the same canonical form, which keeps the function idempotent.

        Args:
            text: Raw token or phrase.

        Returns:
            Lowercase, punctuation-free text with single spaces.
        """
        if not text:
            return ""

        normalized = text.lower().translate(_APOSTROPHE_TRANSLATION)

        for contraction, expansion in self.config.contractions.items():
            normalized = normalized.replace(contraction, expansion)

        normalized = self._substitute_words(normalized)
        normalized = normalized.translate(self._punctuation_translation)
        normalized = WHITESPACE_PATTERN.sub(" ", normalized).strip()
        normalized = self._substitute_words(normalized)

        return WHITESPACE_PATTERN.sub(" ", normalized).strip()

    def normalize_for_display(self, text: str | None) -> str:
        """Collapse whitespace only, preserving case and punctuation."""
        if not text:
            return ""
        return WHITESPACE_PATTERN.sub(" ", text).strip()

    def extract_words(self, text: str | None) -> list[ExtractedWord]:
        """Split text on whitespace into matching/display pairs.

        Display tokens are paired with the whitespace-separated matching tokens
        by index; a matching token with no display counterpart (an expansion
        such as "don't" -> "do not") displays as itself. Display tokens past the
        last matching token are dropped.
        """
        if not text:
            return []

        normalized_words = self.normalize_for_matching(text).split()
        display_words = self.normalize_for_display(text).split()

        return [
            ExtractedWord(
                normalized=normalized_word,
                display=display_words[position] if position < len(display_words) else normalized_word,
                position=position,
            )
            for position, normalized_word in enumerate(normalized_words)
        ]

    def extract_sentences(self, text: str | None) -> list[ExtractedSentence]:
        """Split text on terminal punctuation followed by whitespace.

        A trailing fragment without terminal punctuation is kept as the final
        sentence.
        """
        if not text:
            return []

        sentences: list[ExtractedSentence] = []
        last_index = 0
        for match in SENTENCE_BOUNDARY_PATTERN.finditer(text):
            sentence_text = text[last_index : match.end()].strip()
            if sentence_text:
                sentences.append(
                    ExtractedSentence(
                        text=sentence_text,
                        start_position=last_index,
                        end_position=match.end(),
                        words=self.extract_words(sentence_text),
                    )
                )
            last_index = match.end()

        if last_index < len(text):
            sentence_text = text[last_index:].strip()
            if sentence_text:
                sentences.append(
                    ExtractedSentence(
                        text=sentence_text,
                        start_position=last_index,
                        end_position=len(text),
                        words=self.extract_words(sentence_text),
                    )
                )

        return sentences

    def calculate_similarity(self, text1: str | None, text2: str | None) -> float:
        """Jaccard similarity of the normalized word sets of two texts.

        Returns:
            1.0 on identical normalized text, 0.0 when either side is empty.
        """
        norm1 = self.normalize_for_matching(text1)
        norm2 = self.normalize_for_matching(text2)

        if norm1 == norm2:
            return 1.0
        if not norm1 or not norm2:
            return 0.0

        words1 = set(norm1.split())
        words2 = set(norm2.split())
        return len(words1 & words2) / len(words1 | words2)


_default_normalizer = TextNormalizer()


def normalize_for_matching(text: str | None) -> str:
    return _default_normalizer.normalize_for_matching(text)


def normalize_for_display(text: str | None) -> str:
    return _default_normalizer.normalize_for_display(text)


def extract_words(text: str | None) -> list[ExtractedWord]:
    return _default_normalizer.extract_words(text)


def extract_sentences(text: str | None) -> list[ExtractedSentence]:
    return _default_normalizer.extract_sentences(text)


def calculate_similarity(text1: str | None, text2: str | None) -> float:
    return _default_normalizer.calculate_similarity(text1, text2)

"""Pytest configuration and fixtures for the wordsync tests."""

from collections.abc import Callable

import pytest

from wordsync.alignment.sequence_aligner import SequenceAligner
from wordsync.alignment.types import ContentToken, TranscriptionToken
from wordsync.config import WordSyncConfig
from wordsync.text import normalize_for_matching
from wordsync.validation.validator import AlignmentValidator

TimedWord = tuple[str, float, float]


@pytest.fixture
def config() -> WordSyncConfig:
    """Default configuration, independent of the environment."""
    return WordSyncConfig()


@pytest.fixture
def aligner(config: WordSyncConfig) -> SequenceAligner:
    return SequenceAligner(config.aligner)


@pytest.fixture
def validator(config: WordSyncConfig) -> AlignmentValidator:
    return AlignmentValidator(config.validation)


@pytest.fixture
def make_content() -> Callable[[list[str]], list[ContentToken]]:
    """Build content tokens from display words."""

    def _make(words: list[str]) -> list[ContentToken]:
        return [ContentToken.from_text(word, position=i) for i, word in enumerate(words)]

    return _make


@pytest.fixture
def make_transcription() -> Callable[[list[TimedWord]], list[TranscriptionToken]]:
    """Build transcription tokens from (word, start, end) triples."""

    def _make(words: list[TimedWord]) -> list[TranscriptionToken]:
        return [
            TranscriptionToken(
                text=text, normalized=normalize_for_matching(text), start=start, end=end, index=i
            )
            for i, (text, start, end) in enumerate(words)
        ]

    return _make


@pytest.fixture
def evenly_timed() -> Callable[[list[str]], list[TimedWord]]:
    """Time words back to back at 0.4s each (150 words per minute)."""

    def _make(words: list[str]) -> list[TimedWord]:
        return [(word, round(i * 0.4, 3), round(i * 0.4 + 0.4, 3)) for i, word in enumerate(words)]

    return _make

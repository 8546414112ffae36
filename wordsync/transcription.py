"""Helpers turning content and transcriptions into aligner inputs.

Also groups transcription words into time segments and finds pauses that
likely mark sentence boundaries.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Final

from wordsync.alignment.types import ContentToken, TranscriptionToken
from wordsync.errors import InputValidationError
from wordsync.models import Transcription, Word
from wordsync.text import extract_words

DEFAULT_SEGMENT_DURATION: Final[float] = 10.0
DEFAULT_PAUSE_THRESHOLD: Final[float] = 0.5


@dataclass(frozen=True)
class TranscriptSegment:
    """Consecutive transcription words spanning at most one segment duration."""

    words: list[TranscriptionToken] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)


@dataclass(frozen=True)
class SentenceBoundary:
    """A pause between two transcription words.

    Attributes:
        position: Index of the word following the pause.
        pause_duration: Silence in seconds.
        before_word: Last word before the pause.
        after_word: First word after the pause.
    """

    position: int
    pause_duration: float
    before_word: TranscriptionToken
    after_word: TranscriptionToken


def content_tokens(content: str | Sequence[Word | ContentToken | dict[str, Any] | str]) -> list[ContentToken]:
    """Build content tokens from raw text, Words, token records or strings.

    Raw text is tokenized with the normalizer; positions are sequence indices
    unless a record carries its own.
    """
    if isinstance(content, str):
        return [
            ContentToken(text=w.display, normalized=w.normalized, position=w.position)
            for w in extract_words(content)
        ]

    tokens: list[ContentToken] = []
    for position, item in enumerate(content):
        match item:
            case ContentToken():
                tokens.append(item)
            case Word():
                tokens.append(ContentToken.from_word(item, position=position))
            case dict():
                tokens.append(ContentToken.from_dict(item, position=position))
            case str():
                tokens.append(ContentToken.from_text(item, position=position))
            case _:
                raise InputValidationError(
                    field_name=f"content[{position}]",
                    field_value=type(item).__name__,
                    constraint="unsupported content word type",
                )
    return tokens


def transcription_tokens(
    transcription: Transcription | Sequence[Word | TranscriptionToken | dict[str, Any]],
) -> list[TranscriptionToken]:
    """Build timed transcription tokens.

    Raises:
        InputValidationError: If a word has no timing.
    """
    words = transcription.words if isinstance(transcription, Transcription) else transcription

    tokens: list[TranscriptionToken] = []
    for index, item in enumerate(words):
        match item:
            case TranscriptionToken():
                tokens.append(item)
            case Word():
                tokens.append(TranscriptionToken.from_word(item, index=index))
            case dict():
                tokens.append(TranscriptionToken.from_dict(item, index=index))
            case _:
                raise InputValidationError(
                    field_name=f"transcription[{index}]",
                    field_value=type(item).__name__,
                    constraint="unsupported transcription word type",
                )
    return tokens


def segment_transcription(
    transcription: Transcription | Sequence[TranscriptionToken],
    *,
    segment_duration: float = DEFAULT_SEGMENT_DURATION,
) -> list[TranscriptSegment]:
    """Group words into segments; a word starting more than ``segment_duration``
    after the current segment's start opens a new segment.
    """
    tokens = transcription_tokens(transcription)
    segments: list[TranscriptSegment] = []
    current: list[TranscriptionToken] = []
    segment_start = tokens[0].start if tokens else 0.0

    for token in tokens:
        if current and token.start - segment_start > segment_duration:
            segments.append(
                TranscriptSegment(words=current, start_time=segment_start, end_time=current[-1].end)
            )
            current = []
            segment_start = token.start
        current.append(token)

    if current:
        segments.append(
            TranscriptSegment(words=current, start_time=segment_start, end_time=current[-1].end)
        )

    return segments


def detect_sentence_boundaries(
    transcription: Transcription | Sequence[TranscriptionToken],
    *,
    pause_threshold: float = DEFAULT_PAUSE_THRESHOLD,
) -> list[SentenceBoundary]:
    tokens = transcription_tokens(transcription)
    boundaries: list[SentenceBoundary] = []
    for position in range(1, len(tokens)):
        before, after = tokens[position - 1], tokens[position]
        pause = after.start - before.end
        if pause > pause_threshold:
            boundaries.append(
                SentenceBoundary(
                    position=position, pause_duration=pause, before_word=before, after_word=after
                )
            )
    return boundaries

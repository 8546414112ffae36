"""Typed alignment inputs and outputs.

One explicit token type per side replaces loosely typed word records: a
ContentToken never carries timing, a TranscriptionToken always does.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from wordsync.config import AlignmentStrategy
from wordsync.errors import InputValidationError
from wordsync.models import Word
from wordsync.text import normalize_for_matching

if TYPE_CHECKING:
    from wordsync.validation.report import ValidationReport


def _coerce_float(value: Any, *, field_name: str) -> float:
    if value is None or isinstance(value, bool):
        raise InputValidationError(
            field_name=field_name, field_value=value, constraint="required numeric timing"
        )
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InputValidationError(
            field_name=field_name, field_value=value, constraint="required numeric timing"
        ) from e


def _coerce_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InputValidationError(field_name=field_name, field_value=value, constraint="must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InputValidationError(
            field_name=field_name, field_value=value, constraint="must be an integer"
        ) from e


def _coerce_confidence(value: Any, *, field_name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float) or not 0.0 <= value <= 1.0:
        raise InputValidationError(
            field_name=field_name, field_value=value, constraint="must be a number within [0, 1]"
        )
    return float(value)


@dataclass(frozen=True)
class ContentToken:
    """A word of written content as seen by the aligner.

    Attributes:
        text: Display form of the word.
        normalized: Matching form of the word.
        position: Index of the word within its content sequence.
    """

    text: str
    normalized: str
    position: int

    @classmethod
    def from_text(cls, text: str, *, position: int) -> "ContentToken":
        return cls(text=text, normalized=normalize_for_matching(text), position=position)

    @classmethod
    def from_word(cls, word: Word, *, position: int) -> "ContentToken":
        return cls(text=word.text, normalized=word.normalized, position=position)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, position: int) -> "ContentToken":
        """Coerce a ``{text, normalized?, position?}`` record."""
        text = data.get("text")
        if not isinstance(text, str):
            raise InputValidationError(
                field_name=f"content[{position}].text", field_value=text, constraint="must be a string"
            )
        normalized = data.get("normalized")
        return cls(
            text=text,
            normalized=normalized if isinstance(normalized, str) else normalize_for_matching(text),
            position=_coerce_int(data.get("position", position), field_name=f"content[{position}].position"),
        )


@dataclass(frozen=True)
class TranscriptionToken:
    """A timed word of speech-to-text output as seen by the aligner.

    Attributes:
        text: Word as transcribed.
        normalized: Matching form of the word.
        start: Start time in seconds.
        end: End time in seconds.
        index: Index of the word within the transcription.
        confidence: Optional recognizer confidence.
    """

    text: str
    normalized: str
    start: float
    end: float
    index: int
    confidence: float | None = None

    @property
    def duration(self) -> float:
        return self.end - self.start

    @classmethod
    def from_word(cls, word: Word, *, index: int) -> "TranscriptionToken":
        if word.timing is None:
            raise InputValidationError(
                field_name=f"transcription[{index}].timing",
                field_value=None,
                constraint="transcription words must carry timing",
            )
        return cls(
            text=word.text,
            normalized=word.normalized,
            start=word.timing.start,
            end=word.timing.end,
            index=word.transcription_index if word.transcription_index is not None else index,
            confidence=word.confidence,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, index: int) -> "TranscriptionToken":
        """Coerce a ``{text|word, normalized?, start, end, index?, confidence?}`` record.

        Timing may also be nested as ``timing: {start, end}``.
        """
        path = f"transcription[{index}]"
        text = data.get("text", data.get("word"))
        if not isinstance(text, str):
            raise InputValidationError(
                field_name=f"{path}.text", field_value=text, constraint="must be a string"
            )
        timing = data.get("timing") or {}
        if not isinstance(timing, dict):
            raise InputValidationError(
                field_name=f"{path}.timing", field_value=timing, constraint="must be a {start, end} mapping"
            )
        normalized = data.get("normalized")
        return cls(
            text=text,
            normalized=normalized if isinstance(normalized, str) else normalize_for_matching(text),
            start=_coerce_float(data.get("start", timing.get("start")), field_name=f"{path}.start"),
            end=_coerce_float(data.get("end", timing.get("end")), field_name=f"{path}.end"),
            index=_coerce_int(data.get("index", index), field_name=f"{path}.index"),
            confidence=_coerce_confidence(data.get("confidence"), field_name=f"{path}.confidence"),
        )


class EdgeType(StrEnum):
    """Kinds of alignment edge."""

    MATCH = "match"
    SKIP_CONTENT = "skip_content"
    SKIP_TRANSCRIPTION = "skip_transcription"


@dataclass(frozen=True)
class AlignmentEdge:
    """One unit of correspondence between the two sequences.

    Match edges carry both indices and a confidence; skip edges carry only
    the index of the side they skip.
    """

    type: EdgeType
    content_index: int | None = None
    transcription_index: int | None = None
    confidence: float | None = None

    @classmethod
    def match(cls, *, content_index: int, transcription_index: int, confidence: float) -> "AlignmentEdge":
        return cls(
            type=EdgeType.MATCH,
            content_index=content_index,
            transcription_index=transcription_index,
            confidence=confidence,
        )

    @classmethod
    def skip_content(cls, *, content_index: int) -> "AlignmentEdge":
        return cls(type=EdgeType.SKIP_CONTENT, content_index=content_index)

    @classmethod
    def skip_transcription(cls, *, transcription_index: int) -> "AlignmentEdge":
        return cls(type=EdgeType.SKIP_TRANSCRIPTION, transcription_index=transcription_index)

    @property
    def is_match(self) -> bool:
        return self.type == EdgeType.MATCH

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": str(self.type)}
        if self.content_index is not None:
            data["contentIndex"] = self.content_index
        if self.transcription_index is not None:
            data["transcriptionIndex"] = self.transcription_index
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data


@dataclass(frozen=True)
class AlignmentStatistics:
    """Counts and ratios summarizing one alignment."""

    total_content_words: int = 0
    total_transcription_words: int = 0
    matches: int = 0
    skipped_content: int = 0
    skipped_transcription: int = 0
    content_coverage: float = 0.0
    transcription_coverage: float = 0.0
    average_confidence: float = 0.0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "totalContentWords": self.total_content_words,
            "totalTranscriptionWords": self.total_transcription_words,
            "matches": self.matches,
            "skippedContent": self.skipped_content,
            "skippedTranscription": self.skipped_transcription,
            "contentCoverage": self.content_coverage,
            "transcriptionCoverage": self.transcription_coverage,
            "averageConfidence": self.average_confidence,
            "confidenceDistribution": {
                "high": self.high_confidence,
                "medium": self.medium_confidence,
                "low": self.low_confidence,
            },
        }


@dataclass
class AlignmentResult:
    """Output of one aligner call.

    Attributes:
        alignment: Ordered alignment edges.
        confidence: Overall confidence in [0, 1].
        statistics: Counts and coverage of the alignment.
        strategy: Strategy the alignment was produced with.
        validation: Optional validator report attached by the matcher.
    """

    alignment: list[AlignmentEdge] = field(default_factory=list)
    confidence: float = 0.0
    statistics: AlignmentStatistics = field(default_factory=AlignmentStatistics)
    strategy: AlignmentStrategy = AlignmentStrategy.BALANCED
    validation: "ValidationReport | None" = None

    @property
    def matches(self) -> list[AlignmentEdge]:
        return [edge for edge in self.alignment if edge.is_match]

    def edges_of(self, edge_type: EdgeType) -> list[AlignmentEdge]:
        return [edge for edge in self.alignment if edge.type == edge_type]

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "alignment": [edge.to_json() for edge in self.alignment],
            "confidence": self.confidence,
            "statistics": self.statistics.to_json(),
            "strategy": str(self.strategy),
        }
        if self.validation is not None:
            data["validation"] = self.validation.to_json()
        return data

"""Content and transcription models for word alignment.

This module contains the entities that carry alignment inputs and outputs
across every stage: the content hierarchy (Book > Chapter > Section >
Sentence > Word), transcriptions with word-level audio timing, and the JSON
serialization contract used by the surrounding tooling to persist them.
"""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Final

import orjson

from wordsync import constants
from wordsync.errors import InputValidationError, InvalidTimingError, SerializationError
from wordsync.text import normalize_for_matching

TIMING_FORMAT_PRECISION: Final[int] = 3


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def _percentage(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def _require(data: dict[str, Any], key: str, *, data_type: str) -> Any:
    if key not in data or data[key] is None:
        raise InputValidationError(
            field_name=f"{data_type}.{key}", field_value=None, constraint="required field is missing"
        )
    return data[key]


def _require_number(value: Any, *, field_name: str) -> float:
    if isinstance(value, bool):
        raise InputValidationError(field_name=field_name, field_value=value, constraint="must be numeric")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InputValidationError(
            field_name=field_name, field_value=value, constraint="must be numeric"
        ) from e


class SectionType(StrEnum):
    """Known kinds of content section. Other strings are accepted as-is."""

    PARAGRAPH = "paragraph"
    QUOTE = "quote"
    HEADING = "heading"
    LIST = "list"
    CAPTION = "caption"


@dataclass
class AudioTiming:
    """Interval of audio in seconds.

    Attributes:
        start: Start time in seconds, never negative.
        end: End time in seconds, never before start.
    """

    start: float
    end: float

    def __post_init__(self) -> None:
        self.start = _require_number(self.start, field_name="timing.start")
        self.end = _require_number(self.end, field_name="timing.end")
        finite = math.isfinite(self.start) and math.isfinite(self.end)
        if not finite or self.start < 0 or self.end < self.start:
            raise InvalidTimingError(start=self.start, end=self.end)

    @property
    def duration(self) -> float:
        return self.end - self.start

    def contains(self, timestamp: float) -> bool:
        """Whether timestamp falls in the half-open interval [start, end)."""
        return self.start <= timestamp < self.end

    def overlaps(self, other: "AudioTiming") -> bool:
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start:.{TIMING_FORMAT_PRECISION}f}s-{self.end:.{TIMING_FORMAT_PRECISION}f}s"

    def to_json(self) -> dict[str, float]:
        return {"start": self.start, "end": self.end}

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "AudioTiming":
        return AudioTiming(
            start=_require(json_data, "start", data_type="timing"),
            end=_require(json_data, "end", data_type="timing"),
        )


@dataclass
class Word:
    """A single word with optional audio mapping.

    ``transcription_index``, ``timing`` and ``confidence`` stay unset until an
    alignment result is applied to the word.

    Attributes:
        text: Display form of the word, stripped of surrounding whitespace.
        transcription_index: Index of the matched transcription word.
        timing: Audio interval of the matched transcription word.
        confidence: Alignment confidence in [0, 1].
        metadata: Open metadata map.
        original_text: The text as supplied, including spacing.
    """

    text: str
    transcription_index: int | None = None
    timing: AudioTiming | None = None
    confidence: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    original_text: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise InputValidationError(
                field_name="word.text", field_value=self.text, constraint="must be non-empty"
            )
        if not self.original_text:
            self.original_text = self.text
        self.text = self.text.strip()
        if self.confidence is not None:
            self.confidence = _require_number(self.confidence, field_name="word.confidence")
            if not 0.0 <= self.confidence <= 1.0:
                raise InputValidationError(
                    field_name="word.confidence",
                    field_value=self.confidence,
                    constraint="must be within [0, 1]",
                )

    @property
    def normalized(self) -> str:
        return normalize_for_matching(self.text)

    @property
    def is_mapped(self) -> bool:
        return self.transcription_index is not None

    def __str__(self) -> str:
        if self.timing is None:
            return self.text
        return f"{self.text}: {self.timing} ({self.confidence})"

    def to_json(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "originalText": self.original_text,
            "transcriptionIndex": self.transcription_index,
            "timing": self.timing.to_json() if self.timing else None,
            "confidence": self.confidence,
            "metadata": self.metadata,
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "Word":
        """Create Word from JSON data.

        Args:
            json_data: Dictionary in the persisted word shape.

        Returns:
            Word instance.
        """
        timing_data = json_data.get("timing")
        return Word(
            text=json_data.get("originalText") or _require(json_data, "text", data_type="word"),
            transcription_index=json_data.get("transcriptionIndex"),
            timing=AudioTiming.from_json(timing_data) if timing_data else None,
            confidence=json_data.get("confidence"),
            metadata=dict(json_data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class MappingStats:
    """Roll-up of how much of a content subtree is mapped to audio."""

    total_words: int = 0
    mapped_words: int = 0
    total_sentences: int = 0
    mapped_sentences: int = 0
    total_sections: int = 0
    mapped_sections: int = 0
    total_chapters: int = 0
    mapped_chapters: int = 0
    children: tuple["MappingStats", ...] = ()

    @property
    def word_mapping_percentage(self) -> float:
        return _percentage(self.mapped_words, self.total_words)

    @property
    def sentence_mapping_percentage(self) -> float:
        return _percentage(self.mapped_sentences, self.total_sentences)

    @property
    def section_mapping_percentage(self) -> float:
        return _percentage(self.mapped_sections, self.total_sections)

    @property
    def chapter_mapping_percentage(self) -> float:
        return _percentage(self.mapped_chapters, self.total_chapters)

    @classmethod
    def combine(cls, children: list["MappingStats"], **counts: int) -> "MappingStats":
        """Sum word and sentence (and section) counts of child stats.

        Args:
            children: Stats of the direct children.
            **counts: Counts owned by the parent level itself, e.g. total_chapters.
        """
        return cls(
            total_words=sum(c.total_words for c in children),
            mapped_words=sum(c.mapped_words for c in children),
            total_sentences=sum(c.total_sentences for c in children),
            mapped_sentences=sum(c.mapped_sentences for c in children),
            total_sections=counts.pop("total_sections", sum(c.total_sections for c in children)),
            mapped_sections=counts.pop("mapped_sections", sum(c.mapped_sections for c in children)),
            children=tuple(children),
            **counts,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "totalWords": self.total_words,
            "mappedWords": self.mapped_words,
            "wordMappingPercentage": self.word_mapping_percentage,
            "totalSentences": self.total_sentences,
            "mappedSentences": self.mapped_sentences,
            "sentenceMappingPercentage": self.sentence_mapping_percentage,
            "totalSections": self.total_sections,
            "mappedSections": self.mapped_sections,
            "sectionMappingPercentage": self.section_mapping_percentage,
            "totalChapters": self.total_chapters,
            "mappedChapters": self.mapped_chapters,
            "chapterMappingPercentage": self.chapter_mapping_percentage,
        }


def _span(timings: list[AudioTiming | None]) -> AudioTiming | None:
    present = [t for t in timings if t is not None]
    if not present:
        return None
    return AudioTiming(start=min(t.start for t in present), end=max(t.end for t in present))


@dataclass
class Sentence:
    """A sentence of content words.

    Attributes:
        id: Identifier unique within its section.
        text: Source text of the sentence.
        words: Ordered content words.
        transcription_start: Sentence start as placed in the transcription, if known.
        transcription_end: Sentence end as placed in the transcription, if known.
        confidence: Optional sentence-level confidence.
        metadata: Open metadata map.
    """

    id: str
    text: str
    words: list[Word] = field(default_factory=list)
    transcription_start: float | None = None
    transcription_end: float | None = None
    confidence: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_word(self, word: Word) -> "Sentence":
        if not isinstance(word, Word):
            raise TypeError("Must add Word instance")
        self.words.append(word)
        return self

    @property
    def plain_text(self) -> str:
        return " ".join(w.text for w in self.words)

    @property
    def timing(self) -> AudioTiming | None:
        """Span from the earliest start to the latest end of the timed words."""
        return _span([w.timing for w in self.words])

    @property
    def declared_timing(self) -> AudioTiming | None:
        """Timing placed on the sentence itself, independent of its words."""
        if self.transcription_start is None or self.transcription_end is None:
            return None
        return AudioTiming(start=self.transcription_start, end=self.transcription_end)

    @property
    def average_confidence(self) -> float | None:
        confidences = [w.confidence for w in self.words if w.confidence is not None]
        if not confidences:
            return None
        return sum(confidences) / len(confidences)

    @property
    def is_fully_mapped(self) -> bool:
        return len(self.words) > 0 and all(w.is_mapped for w in self.words)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "words": [w.to_json() for w in self.words],
            "transcriptionStart": self.transcription_start,
            "transcriptionEnd": self.transcription_end,
            "confidence": self.confidence,
            "metadata": self.metadata,
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "Sentence":
        return Sentence(
            id=_require(json_data, "id", data_type="sentence"),
            text=json_data.get("text", ""),
            words=[Word.from_json(w) for w in json_data.get("words") or []],
            transcription_start=json_data.get("transcriptionStart"),
            transcription_end=json_data.get("transcriptionEnd"),
            confidence=json_data.get("confidence"),
            metadata=dict(json_data.get("metadata") or {}),
        )


@dataclass
class Section:
    """A run of sentences of one kind (paragraph, quote, heading, ...).

    Attributes:
        id: Identifier unique within its chapter.
        type: Section kind, usually a SectionType value.
        sentences: Ordered sentences.
        audio_file: Optional reference to a section-level audio file.
        transcription_file: Optional reference to a section-level transcription.
        metadata: Open metadata map.
    """

    id: str
    type: str = SectionType.PARAGRAPH
    sentences: list[Sentence] = field(default_factory=list)
    audio_file: str | None = None
    transcription_file: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_sentence(self, sentence: Sentence) -> "Section":
        if not isinstance(sentence, Sentence):
            raise TypeError("Must add Sentence instance")
        self.sentences.append(sentence)
        return self

    @property
    def all_words(self) -> list[Word]:
        return [w for s in self.sentences for w in s.words]

    @property
    def plain_text(self) -> str:
        return " ".join(s.text for s in self.sentences)

    @property
    def timing(self) -> AudioTiming | None:
        return _span([s.timing for s in self.sentences])

    @property
    def is_fully_mapped(self) -> bool:
        return len(self.sentences) > 0 and all(s.is_fully_mapped for s in self.sentences)

    @property
    def mapping_stats(self) -> MappingStats:
        words = self.all_words
        return MappingStats(
            total_words=len(words),
            mapped_words=sum(1 for w in words if w.is_mapped),
            total_sentences=len(self.sentences),
            mapped_sentences=sum(1 for s in self.sentences if s.is_fully_mapped),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": str(self.type),
            "sentences": [s.to_json() for s in self.sentences],
            "audioFile": self.audio_file,
            "transcriptionFile": self.transcription_file,
            "metadata": self.metadata,
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "Section":
        return Section(
            id=_require(json_data, "id", data_type="section"),
            type=json_data.get("type") or "",
            sentences=[Sentence.from_json(s) for s in json_data.get("sentences") or []],
            audio_file=json_data.get("audioFile"),
            transcription_file=json_data.get("transcriptionFile"),
            metadata=dict(json_data.get("metadata") or {}),
        )


@dataclass
class Chapter:
    """A chapter of sections, optionally backed by its own audio recording.

    Attributes:
        id: Identifier unique within the book.
        title: Chapter title.
        type: Chapter kind (preface, chapter, appendix, ...).
        sections: Ordered sections.
        audio_file: Optional reference to the chapter audio.
        transcription_file: Optional reference to the chapter transcription.
        illustration_file: Optional reference to a chapter illustration.
        metadata: Open metadata map.
    """

    id: str
    title: str
    type: str = "chapter"
    sections: list[Section] = field(default_factory=list)
    audio_file: str | None = None
    transcription_file: str | None = None
    illustration_file: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_section(self, section: Section) -> "Chapter":
        if not isinstance(section, Section):
            raise TypeError("Must add Section instance")
        self.sections.append(section)
        return self

    @property
    def all_words(self) -> list[Word]:
        return [w for s in self.sections for w in s.all_words]

    @property
    def all_sentences(self) -> list[Sentence]:
        return [sentence for s in self.sections for sentence in s.sentences]

    @property
    def plain_text(self) -> str:
        return "\n\n".join(s.plain_text for s in self.sections)

    @property
    def timing(self) -> AudioTiming | None:
        return _span([s.timing for s in self.sections])

    @property
    def is_fully_mapped(self) -> bool:
        return len(self.sections) > 0 and all(s.is_fully_mapped for s in self.sections)

    @property
    def mapping_stats(self) -> MappingStats:
        return MappingStats.combine(
            [s.mapping_stats for s in self.sections],
            total_sections=len(self.sections),
            mapped_sections=sum(1 for s in self.sections if s.is_fully_mapped),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "sections": [s.to_json() for s in self.sections],
            "audioFile": self.audio_file,
            "transcriptionFile": self.transcription_file,
            "illustrationFile": self.illustration_file,
            "metadata": self.metadata,
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "Chapter":
        return Chapter(
            id=_require(json_data, "id", data_type="chapter"),
            title=json_data.get("title") or "",
            type=json_data.get("type") or "chapter",
            sections=[Section.from_json(s) for s in json_data.get("sections") or []],
            audio_file=json_data.get("audioFile"),
            transcription_file=json_data.get("transcriptionFile"),
            illustration_file=json_data.get("illustrationFile"),
            metadata=dict(json_data.get("metadata") or {}),
        )


@dataclass
class CoverElement:
    """Title, subtitle or author line shown on the cover, with its words."""

    id: str
    type: str
    text: str
    words: list[Word] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "text": self.text,
            "words": [w.to_json() for w in self.words],
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "CoverElement":
        return CoverElement(
            id=_require(json_data, "id", data_type="coverElement"),
            type=json_data.get("type") or "",
            text=json_data.get("text") or "",
            words=[Word.from_json(w) for w in json_data.get("words") or []],
        )


@dataclass
class Book:
    """The complete book with cover elements and chapters.

    Attributes:
        title: Book title.
        subtitle: Book subtitle.
        author: Book author.
        chapters: Ordered chapters.
        cover_elements: Cover lines, each with its own words.
        metadata: Open metadata map.
        version: Content version string.
        created: ISO timestamp of creation.
        modified: ISO timestamp of the last structural change.
    """

    title: str
    subtitle: str = ""
    author: str = ""
    chapters: list[Chapter] = field(default_factory=list)
    cover_elements: list[CoverElement] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    version: str = constants.DEFAULT_BOOK_VERSION
    created: str = field(default_factory=_now_iso)
    modified: str = field(default_factory=_now_iso)

    def add_chapter(self, chapter: Chapter) -> "Book":
        if not isinstance(chapter, Chapter):
            raise TypeError("Must add Chapter instance")
        self.chapters.append(chapter)
        self.modified = _now_iso()
        return self

    def add_cover_element(self, element: CoverElement) -> "Book":
        self.cover_elements.append(element)
        self.modified = _now_iso()
        return self

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        return next((c for c in self.chapters if c.id == chapter_id), None)

    @property
    def all_words(self) -> list[Word]:
        cover_words = [w for e in self.cover_elements for w in e.words]
        return cover_words + [w for c in self.chapters for w in c.all_words]

    @property
    def mapping_stats(self) -> MappingStats:
        return MappingStats.combine(
            [c.mapping_stats for c in self.chapters],
            total_chapters=len(self.chapters),
            mapped_chapters=sum(1 for c in self.chapters if c.is_fully_mapped),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "author": self.author,
            "chapters": [c.to_json() for c in self.chapters],
            "coverElements": [e.to_json() for e in self.cover_elements],
            "metadata": self.metadata,
            "version": self.version,
            "created": self.created,
            "modified": self.modified,
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "Book":
        return Book(
            title=json_data.get("title") or "",
            subtitle=json_data.get("subtitle") or "",
            author=json_data.get("author") or "",
            chapters=[Chapter.from_json(c) for c in json_data.get("chapters") or []],
            cover_elements=[CoverElement.from_json(e) for e in json_data.get("coverElements") or []],
            metadata=dict(json_data.get("metadata") or {}),
            version=json_data.get("version") or constants.DEFAULT_BOOK_VERSION,
            created=json_data.get("created") or _now_iso(),
            modified=json_data.get("modified") or _now_iso(),
        )


@dataclass
class Transcription:
    """Speech-to-text output with word-level timing; the ground truth for audio timing.

    Attributes:
        text: Full transcript text.
        duration: Audio duration in seconds.
        language: Transcript language.
        words: Ordered words, each with timing and its own transcription index.
        confidence: Optional transcript-level confidence.
        model: Optional name of the speech-to-text model.
        created: ISO timestamp of creation.
    """

    text: str
    duration: float
    language: str = constants.DEFAULT_LANGUAGE
    words: list[Word] = field(default_factory=list)
    confidence: float | None = None
    model: str | None = None
    created: str = field(default_factory=_now_iso)

    def add_word(
        self, word: str, start: float, end: float, confidence: float | None = None
    ) -> "Transcription":
        """Append a timed word; its transcription index is its position."""
        self.words.append(
            Word(
                text=word,
                transcription_index=len(self.words),
                timing=AudioTiming(start=start, end=end),
                confidence=confidence,
            )
        )
        return self

    def get_word_at_time(self, timestamp: float) -> Word | None:
        return next((w for w in self.words if w.timing and w.timing.contains(timestamp)), None)

    def get_words_in_range(self, start_time: float, end_time: float) -> list[Word]:
        """Words whose whole interval lies inside [start_time, end_time]."""
        return [
            w
            for w in self.words
            if w.timing and w.timing.start >= start_time and w.timing.end <= end_time
        ]

    def to_json(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "duration": self.duration,
            "language": self.language,
            "words": [w.to_json() for w in self.words],
            "confidence": self.confidence,
            "model": self.model,
            "created": self.created,
        }

    @staticmethod
    def from_json(json_data: dict[str, Any]) -> "Transcription":
        transcription = Transcription(
            text=json_data.get("text") or "",
            duration=float(json_data.get("duration") or 0.0),
            language=json_data.get("language") or constants.DEFAULT_LANGUAGE,
            confidence=json_data.get("confidence"),
            model=json_data.get("model"),
            created=json_data.get("created") or _now_iso(),
        )
        for idx, word_data in enumerate(json_data.get("words") or []):
            timing = _require(word_data, "timing", data_type=f"words[{idx}]")
            transcription.add_word(
                word_data.get("originalText") or _require(word_data, "text", data_type=f"words[{idx}]"),
                _require(timing, "start", data_type=f"words[{idx}].timing"),
                _require(timing, "end", data_type=f"words[{idx}].timing"),
                word_data.get("confidence"),
            )
        return transcription

    @staticmethod
    def from_record(record: dict[str, Any]) -> "Transcription":
        """Ingest a raw speech-to-text record.

        Args:
            record: ``{text, duration, language?, words: [{word, start, end, confidence?}]}``

        Returns:
            Transcription with one timed word per record word.

        Raises:
            InputValidationError: If words are missing or a word lacks text or timing.
        """
        if not isinstance(record, dict) or not isinstance(record.get("words"), list):
            raise InputValidationError(
                field_name="transcription.words",
                field_value=None,
                constraint="Invalid transcription data",
                expected_format="a list of {word, start, end}",
            )

        transcription = Transcription(
            text=record.get("text") or "",
            duration=float(record.get("duration") or 0.0),
            language=record.get("language") or constants.DEFAULT_LANGUAGE,
            model=record.get("model"),
        )
        for idx, word_data in enumerate(record["words"]):
            path = f"words[{idx}]"
            if not isinstance(word_data, dict):
                raise InputValidationError(
                    field_name=f"transcription.{path}", field_value=word_data, constraint="must be a mapping"
                )
            transcription.add_word(
                _require(word_data, "word", data_type=path),
                _require_number(_require(word_data, "start", data_type=path), field_name=f"{path}.start"),
                _require_number(_require(word_data, "end", data_type=path), field_name=f"{path}.end"),
                word_data.get("confidence"),
            )
        return transcription


def dumps_book(book: Book) -> bytes:
    return orjson.dumps(book.to_json())


def loads_book(data: bytes | str) -> Book:
    """Deserialize a book record.

    Raises:
        SerializationError: If the payload is not valid JSON or not a book record.
    """
    try:
        return Book.from_json(orjson.loads(data))
    except (orjson.JSONDecodeError, AttributeError, TypeError) as e:
        raise SerializationError(data_type="book", operation="deserialize", error_details=str(e)) from e


def dumps_transcription(transcription: Transcription) -> bytes:
    return orjson.dumps(transcription.to_json())


def loads_transcription(data: bytes | str) -> Transcription:
    """Deserialize a transcription in its persisted shape.

    Raises:
        SerializationError: If the payload is not valid JSON or not a transcription.
    """
    try:
        return Transcription.from_json(orjson.loads(data))
    except (orjson.JSONDecodeError, AttributeError, TypeError) as e:
        raise SerializationError(
            data_type="transcription", operation="deserialize", error_details=str(e)
        ) from e

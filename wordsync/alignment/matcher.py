"""
Entry points for aligning content with a transcription.

Functions here accept tokens, Words or plain records, coerce them into typed
tokens, run the sequence aligner and optionally attach a validation report.
Input errors raise InputValidationError; poor alignments are returned as data.
"""

import functools
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from wordsync.alignment.sequence_aligner import SequenceAligner
from wordsync.alignment.similarity import SimilarityScorer
from wordsync.alignment.types import AlignmentResult, ContentToken, TranscriptionToken
from wordsync.config import AlignmentStrategy, WordSyncConfig, get_config
from wordsync.errors import InputValidationError
from wordsync.logging import get_logger
from wordsync.models import AudioTiming, Transcription, Word
from wordsync.transcription import content_tokens, transcription_tokens
from wordsync.validation.validator import AlignmentValidator

logger = get_logger(__name__)

ContentInput = str | Sequence[Word | ContentToken | dict[str, Any] | str]
TranscriptionInput = Transcription | Sequence[Word | TranscriptionToken | dict[str, Any]]


@dataclass(frozen=True)
class Candidate:
    """A transcription word proposed for an unmatched content word."""

    index: int
    word: TranscriptionToken
    similarity: float
    distance: int


@dataclass(frozen=True)
class Suggestion:
    content_index: int
    content_word: ContentToken
    candidates: list[Candidate] = field(default_factory=list)


@dataclass(frozen=True)
class ChapterJob:
    """One chapter's worth of alignment input."""

    chapter_id: str
    content: ContentInput
    transcription: TranscriptionInput


@dataclass(frozen=True)
class ChapterAlignment:
    """Outcome of one batch job: a result, or the input error that stopped it."""

    chapter_id: str
    result: AlignmentResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def _aligner_for(config: WordSyncConfig) -> SequenceAligner:
    return SequenceAligner(config.aligner, scorer=SimilarityScorer(config.similarity))


def match_words(
    content: ContentInput,
    transcription: TranscriptionInput,
    *,
    strategy: str | AlignmentStrategy | None = None,
    validate: bool = True,
    config: WordSyncConfig | None = None,
) -> AlignmentResult:
    """Align content words to transcription words.

    Args:
        content: Raw text, Words, ContentTokens or ``{text, normalized?, position?}`` records
        transcription: Transcription, Words, TranscriptionTokens or timed records
        strategy: strict, balanced or permissive; the configured default when omitted
        validate: Whether to attach the validator's alignment report
        config: Configuration; the cached environment configuration when omitted

    Returns:
        Alignment result, with ``validation`` populated when requested

    Raises:
        InputValidationError: If a word is empty, untimed, badly timed or out of order.
    """
    config = config or get_config()
    content_seq = content_tokens(content)
    transcription_seq = transcription_tokens(transcription)
    requested = strategy if strategy is not None else config.default_strategy

    logger.info(
        f"Matching {len(content_seq)} content words to {len(transcription_seq)} "
        f"transcription words using '{requested}' strategy"
    )
    result = _aligner_for(config).align(content_seq, transcription_seq, strategy=requested)

    if validate:
        validator = AlignmentValidator(config.validation, scorer=SimilarityScorer(config.similarity))
        result.validation = validator.validate_alignment(content_seq, transcription_seq, result)

    stats = result.statistics
    logger.info(
        f"Matching complete: {stats.matches} matches, confidence {result.confidence:.3f}, "
        f"coverage {stats.content_coverage:.1%} content / {stats.transcription_coverage:.1%} transcription"
    )
    return result


def _candidate_order(a: Candidate, b: Candidate, *, tie_margin: float) -> int:
    difference = b.similarity - a.similarity
    if abs(difference) < tie_margin:
        return a.distance - b.distance
    return -1 if difference < 0 else 1


def get_suggestions(
    content: ContentInput,
    transcription: TranscriptionInput,
    *,
    strategy: str | AlignmentStrategy | None = None,
    window_size: int | None = None,
    config: WordSyncConfig | None = None,
) -> list[Suggestion]:
    """Propose transcription candidates for content words left unmatched.

    Candidates lie within ``window_size`` positions on either side of the
    content word (both ends inclusive, so up to ``2 * window_size + 1`` words), score
    above the configured minimum similarity, and are ordered by similarity with
    near ties broken by positional distance.
    """
    config = config or get_config()
    aligner_config = config.aligner
    window = window_size if window_size is not None else aligner_config.suggestion_window

    content_seq = content_tokens(content)
    transcription_seq = transcription_tokens(transcription)
    result = match_words(content_seq, transcription_seq, strategy=strategy, validate=False, config=config)
    matched = {edge.content_index for edge in result.matches}

    scorer = SimilarityScorer(config.similarity)
    order = functools.cmp_to_key(
        functools.partial(_candidate_order, tie_margin=aligner_config.suggestion_tie_margin)
    )

    suggestions: list[Suggestion] = []
    for content_index, token in enumerate(content_seq):
        if content_index in matched:
            continue

        candidates: list[Candidate] = []
        for index in range(max(0, content_index - window), min(len(transcription_seq), content_index + window + 1)):
            similarity = scorer.similarity(token.normalized, transcription_seq[index].normalized)
            if similarity > aligner_config.suggestion_min_similarity:
                candidates.append(
                    Candidate(
                        index=index,
                        word=transcription_seq[index],
                        similarity=similarity,
                        distance=abs(index - content_index),
                    )
                )

        if candidates:
            candidates.sort(key=order)
            suggestions.append(
                Suggestion(
                    content_index=content_index,
                    content_word=token,
                    candidates=candidates[: aligner_config.suggestion_limit],
                )
            )

    logger.debug(f"Generated {len(suggestions)} suggestions for {len(content_seq) - len(matched)} unmatched words")
    return suggestions


def apply_alignment(
    words: Sequence[Word], transcription: TranscriptionInput, result: AlignmentResult
) -> int:
    """Write transcription index, timing and confidence onto matched content words.

    Args:
        words: Content words in the order they were aligned
        transcription: Transcription the alignment indexes into
        result: Alignment result

    Returns:
        Number of words written

    Raises:
        InputValidationError: If a match edge points outside either sequence.
    """
    tokens = transcription_tokens(transcription)
    written = 0
    for edge in result.matches:
        assert edge.content_index is not None and edge.transcription_index is not None
        if not 0 <= edge.content_index < len(words):
            raise InputValidationError(
                field_name="alignment.contentIndex",
                field_value=edge.content_index,
                constraint=f"must index one of {len(words)} content words",
            )
        if not 0 <= edge.transcription_index < len(tokens):
            raise InputValidationError(
                field_name="alignment.transcriptionIndex",
                field_value=edge.transcription_index,
                constraint=f"must index one of {len(tokens)} transcription words",
            )

        word = words[edge.content_index]
        token = tokens[edge.transcription_index]
        word.transcription_index = token.index
        word.timing = AudioTiming(start=token.start, end=token.end)
        word.confidence = edge.confidence
        written += 1

    return written


def align_chapters(
    jobs: Iterable[ChapterJob | tuple[str, ContentInput, TranscriptionInput]],
    *,
    strategy: str | AlignmentStrategy | None = None,
    validate: bool = True,
    config: WordSyncConfig | None = None,
) -> list[ChapterAlignment]:
    """Align many chapters, continuing past chapters with invalid input.

    Each job runs inside a logging correlation context tagged with its chapter id.
    """
    config = config or get_config()
    outcomes: list[ChapterAlignment] = []

    for job in jobs:
        if not isinstance(job, ChapterJob):
            job = ChapterJob(*job)

        with logger.correlation_context(description="align chapter", chapter_id=job.chapter_id):
            try:
                result = match_words(
                    job.content, job.transcription, strategy=strategy, validate=validate, config=config
                )
            except InputValidationError as e:
                logger.warning(f"Skipping chapter {job.chapter_id}: {e}")
                outcomes.append(ChapterAlignment(chapter_id=job.chapter_id, error=str(e)))
                continue

            outcomes.append(ChapterAlignment(chapter_id=job.chapter_id, result=result))

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    logger.info(f"Aligned {len(outcomes) - failed}/{len(outcomes)} chapters")
    return outcomes

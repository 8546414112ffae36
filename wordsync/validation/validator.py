"""
Quality validation for content structures and alignments.

This module contains the checks that turn a book hierarchy or an alignment
into a scored ValidationReport. Each check is a public method appending
findings to a report, so checks can be exercised one at a time. Findings are
data: nothing here raises on poor quality.
"""

from collections import Counter
from collections.abc import Sequence

from wordsync.alignment.similarity import SimilarityScorer
from wordsync.alignment.types import AlignmentEdge, AlignmentResult, ContentToken, EdgeType, TranscriptionToken
from wordsync.config import ValidationConfig
from wordsync.logging import get_logger
from wordsync.models import AudioTiming, Book, Chapter, Section, Sentence, Word
from wordsync.text import TextNormalizer
from wordsync.validation.report import Severity, ValidationReport

logger = get_logger(__name__)


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def _edges(alignment: AlignmentResult | Sequence[AlignmentEdge]) -> list[AlignmentEdge]:
    if isinstance(alignment, AlignmentResult):
        return list(alignment.alignment)
    return list(alignment)


class AlignmentValidator:
    """Validates content hierarchies and alignment results.

    Args:
        config: Threshold tiers, timing, content, mapping and scoring parameters.
        normalizer: Normalizer used for content comparisons.
        scorer: Scorer providing Jaro-Winkler similarity.
    """

    def __init__(
        self,
        config: ValidationConfig | None = None,
        *,
        normalizer: TextNormalizer | None = None,
        scorer: SimilarityScorer | None = None,
    ) -> None:
        self.config = config or ValidationConfig()
        self.normalizer = normalizer or TextNormalizer()
        self.scorer = scorer or SimilarityScorer()

    def _new_report(self, target: str, target_type: str) -> ValidationReport:
        return ValidationReport(target=target, target_type=target_type, scoring=self.config.scoring)

    # Hierarchy

    def validate_book(self, book: Book) -> ValidationReport:
        report = self._new_report(book.title, "book")
        self.check_book_structure(book, report=report)

        for chapter in book.chapters:
            chapter_report = self.validate_chapter(chapter)
            for error in chapter_report.errors:
                report.add(
                    Severity.ERROR,
                    "chapter",
                    f'Chapter "{chapter.title}": {error.message}',
                    chapter_id=chapter.id,
                )
            warning_count = len(chapter_report.warnings)
            if warning_count > self.config.mapping.max_child_warnings:
                report.add(
                    Severity.WARNING,
                    "chapter",
                    f'Chapter "{chapter.title}" has {warning_count} warnings',
                    chapter_id=chapter.id,
                    warning_count=warning_count,
                )

        self.check_book_mapping(book, report=report)
        logger.debug(f"Validated book '{book.title}': score {report.score}")
        return report

    def validate_chapter(self, chapter: Chapter) -> ValidationReport:
        report = self._new_report(chapter.title, "chapter")
        self.check_chapter_structure(chapter, report=report)

        for section in chapter.sections:
            for error in self.validate_section(section).errors:
                report.add(
                    Severity.ERROR, "section", f'Section "{section.id}": {error.message}', section_id=section.id
                )

        self.check_chapter_mapping(chapter, report=report)
        return report

    def validate_section(self, section: Section) -> ValidationReport:
        report = self._new_report(section.id, "section")
        self.check_section_structure(section, report=report)

        for sentence in section.sentences:
            for error in self.validate_sentence(sentence).errors:
                report.add(
                    Severity.ERROR,
                    "sentence",
                    f'Sentence "{sentence.id}": {error.message}',
                    sentence_id=sentence.id,
                )

        self.check_section_mapping(section, report=report)
        return report

    def validate_sentence(self, sentence: Sentence) -> ValidationReport:
        report = self._new_report(sentence.id, "sentence")
        self.check_sentence_structure(sentence, report=report)
        self.check_words(sentence.words, report=report)
        if sentence.timing is not None or sentence.declared_timing is not None:
            self.check_sentence_timing(sentence, report=report)
        self.check_content_consistency(sentence, report=report)
        return report

    def check_book_structure(self, book: Book, *, report: ValidationReport) -> None:
        if _blank(book.title):
            report.add(Severity.ERROR, "structure", "Book title is missing or empty")
        if _blank(book.author):
            report.add(Severity.ERROR, "structure", "Book author is missing or empty")
        if not book.chapters:
            report.add(Severity.ERROR, "structure", "Book has no chapters")

        duplicates = [cid for cid, count in Counter(c.id for c in book.chapters).items() if count > 1]
        if duplicates:
            report.add(
                Severity.ERROR,
                "structure",
                f"Duplicate chapter IDs found: {', '.join(duplicates)}",
                duplicates=duplicates,
            )

    def check_chapter_structure(self, chapter: Chapter, *, report: ValidationReport) -> None:
        if _blank(chapter.id):
            report.add(Severity.ERROR, "structure", "Chapter ID is missing or empty")
        if _blank(chapter.title):
            report.add(Severity.ERROR, "structure", "Chapter title is missing or empty")
        if not chapter.sections:
            report.add(Severity.WARNING, "structure", "Chapter has no sections")

    def check_section_structure(self, section: Section, *, report: ValidationReport) -> None:
        if _blank(section.id):
            report.add(Severity.ERROR, "structure", "Section ID is missing or empty")
        if _blank(section.type):
            report.add(Severity.WARNING, "structure", "Section type is missing or empty")
        if not section.sentences:
            report.add(Severity.WARNING, "structure", "Section has no sentences")

    def check_sentence_structure(self, sentence: Sentence, *, report: ValidationReport) -> None:
        if _blank(sentence.id):
            report.add(Severity.ERROR, "structure", "Sentence ID is missing or empty")
        if _blank(sentence.text):
            report.add(Severity.ERROR, "structure", "Sentence text is missing or empty")
        if not sentence.words:
            report.add(Severity.WARNING, "structure", "Sentence has no words")

    def check_words(self, words: Sequence[Word], *, report: ValidationReport) -> None:
        """Per-word text, index and timing validity plus duration plausibility."""
        timing_config = self.config.timing
        for position, word in enumerate(words):
            if _blank(word.text):
                report.add(Severity.ERROR, "content", f"Word at position {position} has no text")

            if word.transcription_index is not None and word.transcription_index < 0:
                report.add(
                    Severity.ERROR,
                    "mapping",
                    f"Word at position {position} has invalid transcription index: {word.transcription_index}",
                )

            timing = word.timing
            if timing is None:
                continue
            if timing.start < 0 or timing.end < timing.start:
                report.add(
                    Severity.ERROR,
                    "timing",
                    f"Word at position {position} has invalid timing: {timing.start}-{timing.end}",
                )
            if timing.duration > timing_config.max_word_duration:
                report.add(
                    Severity.WARNING,
                    "timing",
                    f"Word at position {position} has unusually long duration: {timing.duration:.2f}s",
                )
            if timing.duration < timing_config.min_word_duration:
                report.add(
                    Severity.WARNING,
                    "timing",
                    f"Word at position {position} has unusually short duration: {timing.duration:.2f}s",
                )

    def check_sentence_timing(self, sentence: Sentence, *, report: ValidationReport) -> None:
        """Compare the sentence span with its words and look for pauses and overlaps."""
        timing_config = self.config.timing
        timed_words = [w for w in sentence.words if w.timing is not None]
        if not timed_words:
            report.add(Severity.WARNING, "timing", "Sentence has timing but no words have timing")
            return

        word_span = sentence.timing
        sentence_span: AudioTiming | None = sentence.declared_timing or word_span
        assert word_span is not None and sentence_span is not None

        if abs(sentence_span.start - word_span.start) > timing_config.max_sentence_boundary_drift:
            report.add(Severity.WARNING, "timing", "Sentence start time doesn't match first word timing")
        if abs(sentence_span.end - word_span.end) > timing_config.max_sentence_boundary_drift:
            report.add(Severity.WARNING, "timing", "Sentence end time doesn't match last word timing")

        for previous, current in zip(timed_words, timed_words[1:]):
            assert previous.timing is not None and current.timing is not None
            gap = current.timing.start - previous.timing.end
            if gap > timing_config.max_gap_between_words:
                report.add(Severity.WARNING, "timing", f"Large gap between words: {gap:.2f}s", gap=gap)
            if gap < -timing_config.max_overlap_between_words:
                report.add(Severity.WARNING, "timing", f"Word timing overlap: {gap:.2f}s", gap=gap)

    def check_content_consistency(self, sentence: Sentence, *, report: ValidationReport) -> None:
        content_config = self.config.content
        sentence_word_count = len(sentence.text.split())
        mapped_word_count = len(sentence.words)

        if abs(sentence_word_count - mapped_word_count) > content_config.max_word_count_difference:
            report.add(
                Severity.WARNING,
                "content",
                f"Word count mismatch: sentence has {sentence_word_count} words, "
                f"mapping has {mapped_word_count} words",
            )

        sentence_text = self.normalizer.normalize_for_matching(sentence.text)
        mapped_text = self.normalizer.normalize_for_matching(sentence.plain_text)
        similarity = self.scorer.jaro_winkler(sentence_text, mapped_text)
        if similarity < content_config.min_content_similarity:
            report.add(
                Severity.WARNING,
                "content",
                f"Low content similarity between sentence text and mapped words: {_pct(similarity)}",
                similarity=similarity,
            )

    def check_section_mapping(self, section: Section, *, report: ValidationReport) -> None:
        stats = section.mapping_stats
        if stats.total_words and stats.word_mapping_percentage < self.config.mapping.section_min_percentage:
            report.add(
                Severity.WARNING,
                "mapping",
                f"Low word mapping in section: {stats.word_mapping_percentage:.1f}%",
            )

    def check_chapter_mapping(self, chapter: Chapter, *, report: ValidationReport) -> None:
        stats = chapter.mapping_stats
        if stats.total_words and stats.word_mapping_percentage < self.config.mapping.chapter_min_percentage:
            report.add(
                Severity.WARNING,
                "mapping",
                f"Low word mapping in chapter: {stats.word_mapping_percentage:.1f}%",
            )

    def check_book_mapping(self, book: Book, *, report: ValidationReport) -> None:
        stats = book.mapping_stats
        report.add(
            Severity.INFO,
            "statistics",
            f"Book mapping: {stats.word_mapping_percentage:.1f}% words, "
            f"{stats.chapter_mapping_percentage:.1f}% chapters",
        )
        if stats.word_mapping_percentage < self.config.mapping.book_min_percentage:
            report.add(Severity.WARNING, "statistics", "Low overall word mapping percentage")

    # Alignment

    def validate_alignment(
        self,
        content: Sequence[ContentToken],
        transcription: Sequence[TranscriptionToken],
        alignment: AlignmentResult | Sequence[AlignmentEdge],
    ) -> ValidationReport:
        """Score one alignment of ``content`` against ``transcription``.

        Args:
            content: Content tokens the alignment indexes into
            transcription: Transcription tokens the alignment indexes into
            alignment: Aligner result or its edges

        Returns:
            Report with coverage, sequence, confidence and speaking-rate findings
        """
        edges = _edges(alignment)
        report = self._new_report("alignment", "alignment")

        self.check_coverage(content, transcription, edges, report=report)
        self.check_sequence_consistency(edges, report=report)
        self.check_confidence_distribution(edges, report=report)
        self.check_speaking_rate(transcription, edges, report=report)
        self.recommend(edges, report=report)

        logger.debug(
            f"Alignment validation: score {report.score}, "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )
        return report

    def check_coverage(
        self,
        content: Sequence[ContentToken],
        transcription: Sequence[TranscriptionToken],
        edges: Sequence[AlignmentEdge],
        *,
        report: ValidationReport,
    ) -> None:
        """Per-side coverage against the minimum, acceptable and excellent tiers.

        A side with no words has coverage 0.
        """
        matches = [e for e in edges if e.is_match]
        content_coverage = len({e.content_index for e in matches}) / len(content) if content else 0.0
        transcription_coverage = (
            len({e.transcription_index for e in matches}) / len(transcription) if transcription else 0.0
        )

        for side, coverage in (("Content", content_coverage), ("Transcription", transcription_coverage)):
            if coverage < self.config.minimum.word_coverage:
                report.add(Severity.ERROR, "coverage", f"{side} coverage too low: {_pct(coverage)}")
            elif coverage < self.config.acceptable.word_coverage:
                report.add(Severity.WARNING, "coverage", f"{side} coverage below acceptable: {_pct(coverage)}")

        excellent = self.config.excellent.word_coverage
        if content_coverage >= excellent and transcription_coverage >= excellent:
            report.add(Severity.SUCCESS, "coverage", "Excellent coverage on both sides")

        report.add(
            Severity.INFO,
            "coverage",
            f"Coverage: {_pct(content_coverage)} content, {_pct(transcription_coverage)} transcription",
            content_coverage=content_coverage,
            transcription_coverage=transcription_coverage,
        )

    def check_sequence_consistency(self, edges: Sequence[AlignmentEdge], *, report: ValidationReport) -> None:
        matches = [e for e in edges if e.is_match]
        breaks = 0
        for previous, current in zip(matches, matches[1:]):
            assert previous.content_index is not None and current.content_index is not None
            assert previous.transcription_index is not None and current.transcription_index is not None
            content_gap = current.content_index - previous.content_index
            transcription_gap = current.transcription_index - previous.transcription_index

            if content_gap <= 0 or transcription_gap <= 0:
                breaks += 1
                report.add(Severity.WARNING, "sequence", f"Sequence break at content index {current.content_index}")

            if abs(content_gap - transcription_gap) > self.config.content.max_sequence_gap:
                report.add(
                    Severity.WARNING,
                    "sequence",
                    f"Large sequence gap: content={content_gap}, transcription={transcription_gap}",
                )

        consistency = (len(matches) - breaks) / len(matches) if len(matches) > 1 else 1.0
        if consistency < self.config.minimum.sequence_consistency:
            report.add(Severity.ERROR, "sequence", f"Sequence consistency too low: {_pct(consistency)}")

    def check_confidence_distribution(self, edges: Sequence[AlignmentEdge], *, report: ValidationReport) -> None:
        confidences = [e.confidence or 0.0 for e in edges if e.is_match]
        if not confidences:
            report.add(Severity.ERROR, "confidence", "No matches found")
            return

        average = sum(confidences) / len(confidences)
        if average < self.config.minimum.average_confidence:
            report.add(Severity.ERROR, "confidence", f"Average confidence too low: {_pct(average)}")
        elif average < self.config.acceptable.average_confidence:
            report.add(Severity.WARNING, "confidence", f"Average confidence below acceptable: {_pct(average)}")
        elif average >= self.config.excellent.average_confidence:
            report.add(Severity.SUCCESS, "confidence", f"Excellent average confidence: {_pct(average)}")

        low = sum(1 for c in confidences if c < self.config.content.low_confidence_cutoff)
        if low / len(confidences) > self.config.content.max_low_confidence_ratio:
            report.add(
                Severity.WARNING,
                "confidence",
                f"High proportion of low-confidence matches: {low}/{len(confidences)}",
            )

    def check_speaking_rate(
        self,
        transcription: Sequence[TranscriptionToken],
        edges: Sequence[AlignmentEdge],
        *,
        report: ValidationReport,
    ) -> None:
        """Matched words per minute over the span of their transcription timings."""
        matched = [
            transcription[e.transcription_index]
            for e in edges
            if e.is_match and e.transcription_index is not None and 0 <= e.transcription_index < len(transcription)
        ]
        if len(matched) < 2:
            return

        span = max(t.end for t in matched) - min(t.start for t in matched)
        if span <= 0:
            return

        words_per_minute = len(matched) / span * 60
        timing_config = self.config.timing
        if not timing_config.min_words_per_minute <= words_per_minute <= timing_config.max_words_per_minute:
            report.add(
                Severity.WARNING,
                "timing",
                f"Unusual speaking rate: {words_per_minute:.1f} words per minute",
                words_per_minute=words_per_minute,
            )

    def recommend(self, edges: Sequence[AlignmentEdge], *, report: ValidationReport) -> None:
        confidences = [e.confidence or 0.0 for e in edges if e.is_match]
        low = sum(1 for c in confidences if c < self.config.content.low_confidence_cutoff)
        if low:
            report.add_recommendation(f"Review {low} low-confidence matches manually")

        skipped_content = sum(1 for e in edges if e.type == EdgeType.SKIP_CONTENT)
        if skipped_content > self.config.mapping.max_skipped_content:
            report.add_recommendation("Consider using more permissive matching strategy due to high skip count")

        if confidences:
            average = sum(confidences) / len(confidences)
            if average > 0.9:
                report.add_recommendation("High quality alignment - suitable for automated processing")
            elif average > 0.8:
                report.add_recommendation("Good quality alignment - minimal manual review needed")
            else:
                report.add_recommendation("Moderate quality alignment - manual review recommended")

    # Inputs

    def validate_inputs(
        self, content: Sequence[ContentToken], transcription: Sequence[TranscriptionToken]
    ) -> ValidationReport:
        """Pre-alignment sanity checks on word counts, shared vocabulary and speaking rate."""
        report = self._new_report("inputs", "inputs")
        content_config = self.config.content
        timing_config = self.config.timing

        if not content:
            report.add(Severity.WARNING, "content", "Content has no words")
        else:
            ratio = len(transcription) / len(content)
            if not content_config.min_word_count_ratio <= ratio <= content_config.max_word_count_ratio:
                report.add(
                    Severity.WARNING,
                    "content",
                    f"Word count mismatch: Content has {len(content)} words, "
                    f"transcription has {len(transcription)} words (ratio: {ratio:.2f})",
                    word_count_ratio=ratio,
                )

        content_vocabulary = {t.normalized for t in content}
        transcription_vocabulary = {t.normalized for t in transcription}
        largest = max(len(content_vocabulary), len(transcription_vocabulary))
        if largest:
            overlap = len(content_vocabulary & transcription_vocabulary) / largest
            if overlap < content_config.min_vocabulary_overlap:
                report.add(
                    Severity.WARNING,
                    "content",
                    f"Low word overlap: {_pct(overlap)} common words",
                    word_overlap_ratio=overlap,
                )

        if transcription:
            duration = max(t.end for t in transcription)
            if duration > 0:
                words_per_minute = len(transcription) / duration * 60
                if not (
                    timing_config.min_transcript_words_per_minute
                    <= words_per_minute
                    <= timing_config.max_transcript_words_per_minute
                ):
                    report.add(
                        Severity.WARNING,
                        "timing",
                        f"Unusual speaking rate: {words_per_minute:.1f} words per minute",
                        words_per_minute=words_per_minute,
                    )

        return report

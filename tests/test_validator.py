"""
Test suite for alignment and content validation.

Validation never raises on poor quality; every test here inspects the
findings and score of the returned report.
"""

from collections.abc import Callable

import pytest

from wordsync.alignment.types import AlignmentEdge, ContentToken, TranscriptionToken
from wordsync.config import MappingConfig, ValidationConfig
from wordsync.models import AudioTiming, Book, Chapter, Section, Sentence, Word
from wordsync.validation import AlignmentValidator, QualityMetrics, Severity, ValidationReport
from wordsync.validation.report import quality_label


def _timed(text: str, start: float, end: float, index: int = 0) -> Word:
    return Word(text, transcription_index=index, timing=AudioTiming(start=start, end=end), confidence=0.9)


def _messages(findings: list) -> list[str]:
    return [f.message for f in findings]


@pytest.mark.unit
class TestValidateAlignment:
    """Test cases for alignment validation."""

    def test_no_matches_is_poor(
        self: "TestValidateAlignment",
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
    ) -> None:
        """Test two coverage errors, no matches and one info line."""
        content = make_content(["hello"])
        transcription = make_transcription([("goodbye", 0.0, 0.4)])
        alignment = [AlignmentEdge.skip_content(content_index=0), AlignmentEdge.skip_transcription(transcription_index=0)]

        report = validator.validate_alignment(content, transcription, alignment)

        assert not report.is_valid
        assert len(report.errors) == 3
        assert "No matches found" in _messages(report.errors)
        assert report.score == pytest.approx(54.0)
        assert report.quality == "Poor"

    def test_empty_transcription(
        self: "TestValidateAlignment",
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
    ) -> None:
        """Test that an empty side counts as zero coverage."""
        report = validator.validate_alignment(make_content(["hello", "world"]), [], [])

        coverage_errors = [f for f in report.errors if f.category == "coverage"]
        assert len(coverage_errors) == 2, "Both sides should report coverage below minimum"
        assert report.score == pytest.approx(54.0)

    def test_sequence_break(self: "TestValidateAlignment", validator: AlignmentValidator) -> None:
        """Test that crossing matches are flagged and drag consistency down."""
        report = ValidationReport(target="alignment")
        edges = [
            AlignmentEdge.match(content_index=0, transcription_index=1, confidence=0.9),
            AlignmentEdge.match(content_index=1, transcription_index=0, confidence=0.9),
        ]

        validator.check_sequence_consistency(edges, report=report)

        assert "Sequence break at content index 1" in _messages(report.warnings)
        assert any("Sequence consistency too low" in m for m in _messages(report.errors))

    def test_low_confidence_share(self: "TestValidateAlignment", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="alignment")
        edges = [
            AlignmentEdge.match(content_index=i, transcription_index=i, confidence=c)
            for i, c in enumerate([0.5, 0.55, 0.95])
        ]

        validator.check_confidence_distribution(edges, report=report)

        assert any(m.startswith("Average confidence below acceptable") for m in _messages(report.warnings))
        assert any(m.startswith("High proportion of low-confidence") for m in _messages(report.warnings))

    def test_recommendations(self: "TestValidateAlignment", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="alignment")
        edges = [
            AlignmentEdge.match(content_index=0, transcription_index=0, confidence=0.5),
            AlignmentEdge.match(content_index=1, transcription_index=1, confidence=0.95),
            *[AlignmentEdge.skip_content(content_index=i) for i in range(2, 8)],
        ]

        validator.recommend(edges, report=report)

        assert report.recommendations == [
            "Review 1 low-confidence matches manually",
            "Consider using more permissive matching strategy due to high skip count",
            "Moderate quality alignment - manual review recommended",
        ]


@pytest.mark.unit
class TestThresholdTiers:
    """Test cases for values on and just past each coverage and speaking-rate boundary."""

    @staticmethod
    def _coverage_report(
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
        matched: int,
    ) -> ValidationReport:
        words = [f"w{i}" for i in range(20)]
        content = make_content(words)
        transcription = make_transcription([(w, i * 0.4, i * 0.4 + 0.4) for i, w in enumerate(words)])
        edges = [AlignmentEdge.match(content_index=i, transcription_index=i, confidence=1.0) for i in range(matched)]
        report = ValidationReport(target="alignment")
        validator.check_coverage(content, transcription, edges, report=report)
        return report

    @pytest.mark.parametrize(
        ("matched", "errors", "warnings"),
        [(11, 2, 0), (12, 0, 2), (14, 0, 2), (15, 0, 0)],
    )
    def test_coverage_tiers(
        self: "TestThresholdTiers",
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
        matched: int,
        errors: int,
        warnings: int,
    ) -> None:
        """Test that 0.6 is the lowest warning value and 0.75 the lowest clean value."""
        report = self._coverage_report(validator, make_content, make_transcription, matched)

        assert len(report.errors) == errors
        assert len(report.warnings) == warnings
        assert all("below acceptable" in m for m in _messages(report.warnings))

    @pytest.mark.parametrize(("matched", "excellent"), [(18, False), (19, True), (20, True)])
    def test_excellent_coverage_success(
        self: "TestThresholdTiers",
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
        matched: int,
        excellent: bool,
    ) -> None:
        report = self._coverage_report(validator, make_content, make_transcription, matched)

        successes = _messages(report.by_severity(Severity.SUCCESS))
        assert ("Excellent coverage on both sides" in successes) is excellent
        assert len(report.by_severity(Severity.INFO)) == 1

    def test_excellent_needs_both_sides(
        self: "TestThresholdTiers",
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
    ) -> None:
        content = make_content([f"w{i}" for i in range(10)])
        transcription = make_transcription([(f"w{i}", i * 0.4, i * 0.4 + 0.4) for i in range(20)])
        edges = [AlignmentEdge.match(content_index=i, transcription_index=i, confidence=1.0) for i in range(10)]
        report = ValidationReport(target="alignment")

        validator.check_coverage(content, transcription, edges, report=report)

        assert report.by_severity(Severity.SUCCESS) == [], "Transcription coverage is only 0.5"
        assert _messages(report.errors) == ["Transcription coverage too low: 50.0%"]

    @pytest.mark.parametrize(
        ("count", "span", "unusual"),
        [(2, 1.0, False), (2, 1.01, True), (8, 3.2, False), (10, 3.0, False), (10, 2.98, True)],
    )
    def test_speaking_rate_bounds(
        self: "TestThresholdTiers",
        validator: AlignmentValidator,
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
        count: int,
        span: float,
        unusual: bool,
    ) -> None:
        """Test 120 and 200 words per minute as inclusive bounds over the matched span."""
        step = span / count
        timed = [(f"w{i}", i * step, (i + 1) * step) for i in range(count - 1)]
        timed.append((f"w{count - 1}", (count - 1) * step, span))
        transcription = make_transcription(timed)
        edges = [AlignmentEdge.match(content_index=i, transcription_index=i, confidence=1.0) for i in range(count)]
        report = ValidationReport(target="alignment")

        validator.check_speaking_rate(transcription, edges, report=report)

        rate_warnings = [m for m in _messages(report.warnings) if m.startswith("Unusual speaking rate")]
        assert bool(rate_warnings) is unusual, f"{count} words over {span}s"

    def test_speaking_rate_ignores_unmatched_words(
        self: "TestThresholdTiers",
        validator: AlignmentValidator,
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
    ) -> None:
        """Test that a long unmatched tail does not dilute the rate."""
        transcription = make_transcription([("a", 0.0, 0.25), ("b", 0.25, 0.5), ("c", 0.5, 30.0)])
        edges = [
            AlignmentEdge.match(content_index=0, transcription_index=0, confidence=1.0),
            AlignmentEdge.match(content_index=1, transcription_index=1, confidence=1.0),
            AlignmentEdge.skip_transcription(transcription_index=2),
        ]
        report = ValidationReport(target="alignment")

        validator.check_speaking_rate(transcription, edges, report=report)

        assert _messages(report.warnings) == ["Unusual speaking rate: 240.0 words per minute"]


@pytest.mark.unit
class TestValidateInputs:
    """Test cases for pre-alignment checks."""

    def test_word_count_ratio(
        self: "TestValidateInputs",
        validator: AlignmentValidator,
        make_content: Callable[[list[str]], list[ContentToken]],
        make_transcription: Callable[[list[tuple[str, float, float]]], list[TranscriptionToken]],
        evenly_timed: Callable[[list[str]], list[tuple[str, float, float]]],
    ) -> None:
        report = validator.validate_inputs(
            make_content(["a", "b"]), make_transcription(evenly_timed(["a", "b", "c", "d"]))
        )

        mismatch = [f for f in report.warnings if f.message.startswith("Word count mismatch")]
        assert mismatch, "A 2.0 word count ratio should be flagged"
        assert mismatch[0].details["word_count_ratio"] == pytest.approx(2.0)
        assert report.is_valid, "Input checks only warn"


@pytest.mark.unit
class TestContentChecks:
    """Test cases for word, sentence and hierarchy checks."""

    def test_word_checks(self: "TestContentChecks", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="words")
        words = [
            _timed("long", 0.0, 3.5),
            _timed("short", 3.5, 3.51),
            Word("lost", transcription_index=-1),
        ]

        validator.check_words(words, report=report)

        assert [f.message for f in report.warnings] == [
            "Word at position 0 has unusually long duration: 3.50s",
            "Word at position 1 has unusually short duration: 0.01s",
        ]
        assert _messages(report.errors) == ["Word at position 2 has invalid transcription index: -1"]

    def test_sentence_gap_and_overlap(self: "TestContentChecks", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="s1")
        sentence = Sentence(
            id="s1",
            text="one two three",
            words=[_timed("one", 0.0, 0.5), _timed("two", 3.0, 3.5, 1), _timed("three", 3.3, 3.8, 2)],
        )

        validator.check_sentence_timing(sentence, report=report)

        messages = _messages(report.warnings)
        assert any(m.startswith("Large gap between words") for m in messages)
        assert any(m.startswith("Word timing overlap") for m in messages)

    def test_sentence_boundary_drift(self: "TestContentChecks", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="s1")
        sentence = Sentence(
            id="s1",
            text="one two",
            words=[_timed("one", 0.0, 0.4), _timed("two", 0.4, 0.8, 1)],
            transcription_start=1.0,
            transcription_end=1.2,
        )

        validator.check_sentence_timing(sentence, report=report)

        assert _messages(report.warnings) == ["Sentence start time doesn't match first word timing"]

    def test_word_count_mismatch(self: "TestContentChecks", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="s1")
        sentence = Sentence(id="s1", text="one two three four five", words=[Word("one"), Word("two")])

        validator.check_content_consistency(sentence, report=report)

        assert (
            "Word count mismatch: sentence has 5 words, mapping has 2 words" in _messages(report.warnings)
        )

    def test_book_structure(self: "TestContentChecks", validator: AlignmentValidator) -> None:
        report = ValidationReport(target="book")
        validator.check_book_structure(Book(title="", author=" "), report=report)
        assert len(report.errors) == 3

        report = ValidationReport(target="book")
        duplicated = Book(title="T", author="A", chapters=[Chapter(id="c1", title="One"), Chapter(id="c1", title="Two")])
        validator.check_book_structure(duplicated, report=report)
        assert _messages(report.errors) == ["Duplicate chapter IDs found: c1"]

    def test_errors_roll_up_to_book(self: "TestContentChecks", validator: AlignmentValidator) -> None:
        """Test that a sentence error surfaces with its full path in the book report."""
        sentence = Sentence(id="s1", text="", words=[_timed("hello", 0.0, 0.4)])
        book = Book(
            title="T",
            author="A",
            chapters=[Chapter(id="c1", title="One", sections=[Section(id="p1", sentences=[sentence])])],
        )

        report = validator.validate_book(book)

        assert not report.is_valid
        assert any(
            'Chapter "One": Section "p1": Sentence "s1"' in m for m in _messages(report.errors)
        ), "Errors keep the chapter, section and sentence prefixes"
        assert report.by_category("statistics"), "Book mapping statistics are always reported"

    def test_chapter_warnings_roll_up(self: "TestContentChecks") -> None:
        validator = AlignmentValidator(ValidationConfig(mapping=MappingConfig(max_child_warnings=0)))
        book = Book(title="T", author="A", chapters=[Chapter(id="c1", title="Empty")])

        report = validator.validate_book(book)

        assert 'Chapter "Empty" has 1 warnings' in _messages(report.warnings)


@pytest.mark.unit
class TestReportScoring:
    """Test cases for report scoring and labels."""

    def test_score_clamped(self: "TestReportScoring") -> None:
        failing = ValidationReport(target="x")
        for i in range(8):
            failing.add(Severity.ERROR, "test", f"error {i}")
        passing = ValidationReport(target="x")
        for i in range(3):
            passing.add(Severity.SUCCESS, "test", f"success {i}")

        assert failing.score == 0.0
        assert failing.quality == "Poor"
        assert passing.score == 100.0

    @pytest.mark.parametrize(
        ("score", "label"),
        [(100, "Excellent"), (90, "Excellent"), (89.9, "Good"), (70, "Acceptable"), (60, "Fair"), (59, "Poor")],
    )
    def test_quality_label(self: "TestReportScoring", score: float, label: str) -> None:
        assert quality_label(score) == label

    def test_summary_and_json(self: "TestReportScoring") -> None:
        report = ValidationReport(target="x").add(Severity.WARNING, "timing", "slow")

        summary = report.summary()
        data = report.to_json()

        assert (summary.score, summary.warning_count, summary.is_valid) == (95.0, 1, True)
        assert data["results"][0] == {"level": "warning", "category": "timing", "message": "slow", "details": {}}
        assert str(report.findings[0]) == "[WARNING] timing: slow"


@pytest.mark.unit
class TestQualityMetrics:
    """Test cases for the letter-grade summary."""

    def test_perfect_alignment(self: "TestQualityMetrics") -> None:
        edges = [AlignmentEdge.match(content_index=i, transcription_index=i, confidence=1.0) for i in range(2)]
        quality = QualityMetrics.calculate_alignment_quality(edges)
        assert quality.overall_score == pytest.approx(1.0)
        assert quality.grade == "A"

    def test_no_matches(self: "TestQualityMetrics") -> None:
        quality = QualityMetrics.calculate_alignment_quality([AlignmentEdge.skip_content(content_index=0)])
        assert quality.grade == "F"
        assert quality.overall_score == 0.0

    def test_weighted_score(self: "TestQualityMetrics") -> None:
        """Test 0.4 confidence + 0.3 match share + 0.3 consistency."""
        edges = [
            AlignmentEdge.match(content_index=0, transcription_index=0, confidence=0.9),
            AlignmentEdge.skip_content(content_index=1),
            AlignmentEdge.match(content_index=2, transcription_index=1, confidence=0.9),
        ]

        quality = QualityMetrics.calculate_alignment_quality(edges)

        assert quality.coverage == pytest.approx(2 / 3)
        assert quality.overall_score == pytest.approx(0.86)
        assert quality.grade == "B"

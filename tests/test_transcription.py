"""
Test suite for transcription helpers.
"""

import pytest

from wordsync.alignment.types import ContentToken
from wordsync.errors import InputValidationError
from wordsync.models import Transcription, Word
from wordsync.transcription import (
    content_tokens,
    detect_sentence_boundaries,
    segment_transcription,
    transcription_tokens,
)


def _transcription(timed: list[tuple[str, float, float]]) -> Transcription:
    transcription = Transcription(text=" ".join(w for w, _, _ in timed), duration=timed[-1][2] if timed else 0.0)
    for word, start, end in timed:
        transcription.add_word(word, start, end)
    return transcription


@pytest.mark.unit
class TestTokenBuilders:
    """Test cases for building aligner tokens from mixed inputs."""

    def test_content_from_raw_text(self: "TestTokenBuilders") -> None:
        tokens = content_tokens("Don't panic!")

        assert [t.normalized for t in tokens] == ["do", "not", "panic"]
        assert [t.position for t in tokens] == [0, 1, 2]

    def test_content_from_mixed_items(self: "TestTokenBuilders") -> None:
        tokens = content_tokens(
            [Word("Hello,"), {"text": "big", "position": 7}, "World", ContentToken.from_text("again", position=9)]
        )

        assert [t.normalized for t in tokens] == ["hello", "big", "world", "again"]
        assert [t.position for t in tokens] == [0, 7, 2, 9], "Records may carry their own position"

    def test_content_rejects_unsupported_items(self: "TestTokenBuilders") -> None:
        with pytest.raises(InputValidationError, match="content\\[1\\]"):
            content_tokens(["fine", 3])  # type: ignore[list-item]

    def test_transcription_from_model(self: "TestTokenBuilders") -> None:
        tokens = transcription_tokens(_transcription([("Mere", 0.0, 0.5), ("metaphor", 0.5, 1.2)]))

        assert [(t.text, t.start, t.end, t.index) for t in tokens] == [
            ("Mere", 0.0, 0.5, 0),
            ("metaphor", 0.5, 1.2, 1),
        ]

    def test_transcription_nested_timing(self: "TestTokenBuilders") -> None:
        tokens = transcription_tokens([{"word": "hi", "timing": {"start": 1, "end": 1.5}}])
        assert (tokens[0].text, tokens[0].start, tokens[0].end) == ("hi", 1.0, 1.5)

    def test_transcription_requires_timing(self: "TestTokenBuilders") -> None:
        with pytest.raises(InputValidationError):
            transcription_tokens([Word("untimed")])

    @pytest.mark.parametrize(
        ("record", "field"),
        [
            ({"word": "mere", "start": 0, "end": 0.4, "index": "first"}, "index"),
            ({"word": "mere", "start": 0, "end": 0.4, "index": 1.5}, "index"),
            ({"word": "mere", "timing": [0, 0.4]}, "timing"),
            ({"word": "mere", "start": 0, "end": 0.4, "confidence": "high"}, "confidence"),
            ({"word": "mere", "start": 0, "end": 0.4, "confidence": 1.5}, "confidence"),
        ],
    )
    def test_malformed_transcription_record(self: "TestTokenBuilders", record: dict, field: str) -> None:
        """Test that malformed fields raise the input error naming the field."""
        with pytest.raises(InputValidationError, match=f"transcription\\[0\\]\\.{field}"):
            transcription_tokens([record])

    def test_malformed_content_position(self: "TestTokenBuilders") -> None:
        with pytest.raises(InputValidationError, match="position"):
            content_tokens([{"text": "a", "position": "x"}])

    def test_record_confidence_kept(self: "TestTokenBuilders") -> None:
        tokens = transcription_tokens([{"word": "mere", "start": 0, "end": 0.4, "index": 3, "confidence": 1}])
        assert (tokens[0].index, tokens[0].confidence) == (3, 1.0)


@pytest.mark.unit
class TestSegmentation:
    """Test cases for segments and pause boundaries."""

    def test_segments_open_after_duration(self: "TestSegmentation") -> None:
        """Test that a word more than the segment duration after the segment start opens a new one."""
        transcription = _transcription(
            [("a", 0.0, 0.5), ("b", 5.0, 5.5), ("c", 11.0, 11.5), ("d", 12.0, 12.5), ("e", 25.0, 25.5)]
        )

        segments = segment_transcription(transcription, segment_duration=10.0)

        assert [s.text for s in segments] == ["a b", "c d", "e"]
        assert [(s.start_time, s.end_time) for s in segments] == [(0.0, 5.5), (11.0, 12.5), (25.0, 25.5)]

    def test_no_words_no_segments(self: "TestSegmentation") -> None:
        assert segment_transcription([]) == []

    def test_sentence_boundaries(self: "TestSegmentation") -> None:
        transcription = _transcription([("one", 0.0, 0.4), ("two", 0.4, 0.8), ("three", 1.6, 2.0)])

        boundaries = detect_sentence_boundaries(transcription, pause_threshold=0.5)

        assert len(boundaries) == 1
        assert boundaries[0].position == 2
        assert boundaries[0].pause_duration == pytest.approx(0.8)
        assert (boundaries[0].before_word.text, boundaries[0].after_word.text) == ("two", "three")

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

from wordsync import constants
from wordsync.alignment.types import AlignmentEdge, AlignmentResult

CONFIDENCE_WEIGHT: Final[float] = 0.4
COVERAGE_WEIGHT: Final[float] = 0.3
CONSISTENCY_WEIGHT: Final[float] = 0.3


@dataclass(frozen=True)
class AlignmentQuality:
    """Weighted quality score of an alignment and its letter grade."""

    overall_score: float
    confidence: float
    coverage: float
    consistency: float
    grade: str
    total_matches: int = 0
    sequence_breaks: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "confidence": self.confidence,
            "coverage": self.coverage,
            "consistency": self.consistency,
            "grade": self.grade,
            "totalMatches": self.total_matches,
            "sequenceBreaks": self.sequence_breaks,
        }


def grade_for(score: float) -> str:
    for minimum, grade in constants.GRADE_BOUNDARIES:
        if score >= minimum:
            return grade
    return constants.FAILING_GRADE


class QualityMetrics:
    """Letter-grade summary of an alignment, independent of the validator report."""

    @staticmethod
    def calculate_alignment_quality(
        alignment: AlignmentResult | Sequence[AlignmentEdge],
    ) -> AlignmentQuality:
        """Combine mean confidence, match share and ordering consistency.

        Args:
            alignment: Aligner result or its edges.

        Returns:
            ``0.4*confidence + 0.3*coverage + 0.3*consistency`` graded A to F;
            coverage here is the share of match edges among match and skip edges.
        """
        edges = alignment.alignment if isinstance(alignment, AlignmentResult) else list(alignment)
        matches = [e for e in edges if e.is_match]
        if not matches:
            return AlignmentQuality(
                overall_score=0.0,
                confidence=0.0,
                coverage=0.0,
                consistency=0.0,
                grade=constants.FAILING_GRADE,
            )

        confidence = sum(e.confidence or 0.0 for e in matches) / len(matches)
        coverage = len(matches) / len(edges)

        breaks = 0
        for previous, current in zip(matches, matches[1:]):
            assert previous.content_index is not None and current.content_index is not None
            assert previous.transcription_index is not None and current.transcription_index is not None
            if (
                current.content_index <= previous.content_index
                or current.transcription_index <= previous.transcription_index
            ):
                breaks += 1
        consistency = (len(matches) - breaks) / len(matches) if len(matches) > 1 else 1.0

        overall = confidence * CONFIDENCE_WEIGHT + coverage * COVERAGE_WEIGHT + consistency * CONSISTENCY_WEIGHT
        return AlignmentQuality(
            overall_score=overall,
            confidence=confidence,
            coverage=coverage,
            consistency=consistency,
            grade=grade_for(overall),
            total_matches=len(matches),
            sequence_breaks=breaks,
        )

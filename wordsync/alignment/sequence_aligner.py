"""Global dynamic-programming alignment of content words to transcription words.

The aligner is a pure function of its explicit inputs: token sequences, a
strategy name and an AlignerConfig. The DP grid and the backtrace table are
local to one call.
"""

import math
from collections.abc import Sequence
from typing import Final

import numpy as np

from wordsync.alignment.similarity import SimilarityScorer
from wordsync.alignment.types import (
    AlignmentEdge,
    AlignmentResult,
    AlignmentStatistics,
    ContentToken,
    EdgeType,
    TranscriptionToken,
)
from wordsync.config import AlignerConfig, AlignmentStrategy, StrategyConfig
from wordsync.errors import InputValidationError, InvalidTimingError
from wordsync.logging import get_logger

logger = get_logger(__name__)

OP_ALIGN: Final[int] = 0
OP_DELETE: Final[int] = 1
OP_INSERT: Final[int] = 2


def _validate_content(content: Sequence[ContentToken]) -> None:
    previous: int | None = None
    for idx, token in enumerate(content):
        if not isinstance(token.text, str) or not token.text.strip():
            raise InputValidationError(
                field_name=f"content[{idx}].text", field_value=token.text, constraint="must be non-empty"
            )
        if previous is not None and token.position <= previous:
            raise InputValidationError(
                field_name=f"content[{idx}].position",
                field_value=token.position,
                constraint=f"positions must be strictly increasing (previous {previous})",
            )
        previous = token.position


def _validate_transcription(transcription: Sequence[TranscriptionToken]) -> None:
    previous: int | None = None
    for idx, token in enumerate(transcription):
        if not isinstance(token.text, str) or not token.text.strip():
            raise InputValidationError(
                field_name=f"transcription[{idx}].text",
                field_value=token.text,
                constraint="must be non-empty",
            )
        finite = math.isfinite(token.start) and math.isfinite(token.end)
        if not finite or token.start < 0 or token.end < token.start:
            raise InvalidTimingError(start=token.start, end=token.end)
        if previous is not None and token.index <= previous:
            raise InputValidationError(
                field_name=f"transcription[{idx}].index",
                field_value=token.index,
                constraint=f"indices must be strictly increasing (previous {previous})",
            )
        previous = token.index


class SequenceAligner:
    """Strategy-parameterized global aligner.

    Args:
        config: Skip penalty, post-processing and strategy parameters.
        scorer: Token-pair similarity scorer feeding the DP grid.
    """

    def __init__(
        self, config: AlignerConfig | None = None, *, scorer: SimilarityScorer | None = None
    ) -> None:
        self.config = config or AlignerConfig()
        self.scorer = scorer or SimilarityScorer()

    def resolve_strategy(
        self, strategy: str | AlignmentStrategy | None
    ) -> tuple[AlignmentStrategy, StrategyConfig]:
        """Look up a strategy by name, falling back to balanced for unknown names."""
        if strategy is None:
            name = AlignmentStrategy.BALANCED
        else:
            try:
                name = AlignmentStrategy(str(strategy).strip().lower())
            except ValueError:
                name = None

        if name is None or name not in self.config.strategies:
            logger.warning(f"Unknown alignment strategy '{strategy}', falling back to balanced")
            name = AlignmentStrategy.BALANCED

        return name, self.config.strategies[name]

    def align(
        self,
        content: Sequence[ContentToken],
        transcription: Sequence[TranscriptionToken],
        *,
        strategy: str | AlignmentStrategy | None = AlignmentStrategy.BALANCED,
    ) -> AlignmentResult:
        """Align content tokens to transcription tokens.

        Args:
            content: Ordered content tokens (N)
            transcription: Ordered, timed transcription tokens (M)
            strategy: Strategy name fixing the match threshold and skip policy

        Returns:
            Alignment edges in sequence order with confidence and statistics

        Raises:
            InputValidationError: If a token is empty, out of order, or badly timed.
        """
        _validate_content(content)
        _validate_transcription(transcription)
        strategy_name, strategy_config = self.resolve_strategy(strategy)

        if not content or not transcription:
            logger.debug(
                f"Nothing to align ({len(content)} content, {len(transcription)} transcription words)"
            )
            return AlignmentResult(
                alignment=[],
                confidence=0.0,
                statistics=self.calculate_statistics(
                    [], content_count=len(content), transcription_count=len(transcription)
                ),
                strategy=strategy_name,
            )

        similarity = self.scorer.similarity_matrix(
            [t.normalized for t in content], [t.normalized for t in transcription]
        )
        operations = self._fill_grid(similarity)
        edges = self._trace_back(operations, similarity, strategy_config)
        edges = self.post_process(edges, allow_skips=strategy_config.allow_skips)

        result = AlignmentResult(
            alignment=edges,
            confidence=self.calculate_confidence(edges),
            statistics=self.calculate_statistics(
                edges, content_count=len(content), transcription_count=len(transcription)
            ),
            strategy=strategy_name,
        )
        logger.debug(
            f"Aligned {len(content)}x{len(transcription)} words with {strategy_name}: "
            f"{result.statistics.matches} matches, confidence {result.confidence:.3f}"
        )
        return result

    def _fill_grid(self, similarity: np.ndarray) -> np.ndarray:
        """Run the DP recurrence and return the table of chosen operations.

        Borders charge one skip penalty per leading word, so the backtrace
        always reaches (0, 0) through explicit skips.
        """
        rows, cols = similarity.shape[0] + 1, similarity.shape[1] + 1
        penalty = self.config.skip_penalty

        dp = np.zeros((rows, cols), dtype=np.float64)
        operations = np.full((rows, cols), OP_ALIGN, dtype=np.int8)
        dp[:, 0] = -penalty * np.arange(rows)
        dp[0, :] = -penalty * np.arange(cols)
        operations[1:, 0] = OP_DELETE
        operations[0, 1:] = OP_INSERT

        for i in range(1, rows):
            for j in range(1, cols):
                diag = dp[i - 1, j - 1] + similarity[i - 1, j - 1]
                up = dp[i - 1, j] - penalty
                left = dp[i, j - 1] - penalty

                # Ties favor diag, then up, to stay synchronized.
                if diag >= up and diag >= left:
                    dp[i, j] = diag
                    operations[i, j] = OP_ALIGN
                elif up >= left:
                    dp[i, j] = up
                    operations[i, j] = OP_DELETE
                else:
                    dp[i, j] = left
                    operations[i, j] = OP_INSERT

        return operations

    def _trace_back(
        self, operations: np.ndarray, similarity: np.ndarray, strategy: StrategyConfig
    ) -> list[AlignmentEdge]:
        """Walk from (N, M) to (0, 0) and emit edges in original order.

        An align step below the strategy threshold becomes a content skip and
        a transcription skip when skips are allowed, and emits nothing otherwise.
        """
        reversed_edges: list[AlignmentEdge] = []
        i, j = operations.shape[0] - 1, operations.shape[1] - 1

        while i > 0 or j > 0:
            operation = operations[i, j]
            if operation == OP_ALIGN:
                confidence = float(similarity[i - 1, j - 1])
                if confidence >= strategy.min_confidence:
                    reversed_edges.append(
                        AlignmentEdge.match(
                            content_index=i - 1, transcription_index=j - 1, confidence=confidence
                        )
                    )
                elif strategy.allow_skips:
                    reversed_edges.append(AlignmentEdge.skip_transcription(transcription_index=j - 1))
                    reversed_edges.append(AlignmentEdge.skip_content(content_index=i - 1))
                i -= 1
                j -= 1
            elif operation == OP_DELETE:
                if strategy.allow_skips:
                    reversed_edges.append(AlignmentEdge.skip_content(content_index=i - 1))
                i -= 1
            else:
                if strategy.allow_skips:
                    reversed_edges.append(AlignmentEdge.skip_transcription(transcription_index=j - 1))
                j -= 1

        reversed_edges.reverse()
        return reversed_edges

    def post_process(self, edges: list[AlignmentEdge], *, allow_skips: bool) -> list[AlignmentEdge]:
        """Drop matches that jump too far from the previous kept match.

        A match whose content or transcription gap exceeds ``max_skip_distance``
        survives only if its confidence exceeds ``rescue_confidence``. Dropped
        matches become a pair of skips when the strategy allows skips.
        """
        processed: list[AlignmentEdge] = []
        last_content = -1
        last_transcription = -1
        has_previous = False

        for edge in edges:
            if not edge.is_match:
                processed.append(edge)
                continue

            assert edge.content_index is not None and edge.transcription_index is not None
            content_gap = edge.content_index - last_content - 1
            transcription_gap = edge.transcription_index - last_transcription - 1
            within_reach = (
                content_gap <= self.config.max_skip_distance
                and transcription_gap <= self.config.max_skip_distance
            )

            if not has_previous or within_reach or (edge.confidence or 0.0) > self.config.rescue_confidence:
                processed.append(edge)
                last_content = edge.content_index
                last_transcription = edge.transcription_index
                has_previous = True
            else:
                logger.debug(
                    f"Dropping match {edge.content_index}->{edge.transcription_index} "
                    f"(gaps {content_gap}/{transcription_gap}, confidence {edge.confidence:.3f})"
                )
                if allow_skips:
                    processed.append(AlignmentEdge.skip_content(content_index=edge.content_index))
                    processed.append(
                        AlignmentEdge.skip_transcription(transcription_index=edge.transcription_index)
                    )

        return processed

    def calculate_confidence(self, edges: Sequence[AlignmentEdge]) -> float:
        """Mean match confidence plus a bounded bonus for the number of matches."""
        confidences = [edge.confidence or 0.0 for edge in edges if edge.is_match]
        if not confidences:
            return 0.0
        bonus = min(len(confidences) / self.config.coverage_bonus_divisor, self.config.coverage_bonus_cap)
        return min(float(np.mean(confidences)) + bonus, 1.0)

    def calculate_statistics(
        self, edges: Sequence[AlignmentEdge], *, content_count: int, transcription_count: int
    ) -> AlignmentStatistics:
        matches = [edge for edge in edges if edge.is_match]
        confidences = [edge.confidence or 0.0 for edge in matches]
        matched_content = {edge.content_index for edge in matches}
        matched_transcription = {edge.transcription_index for edge in matches}

        return AlignmentStatistics(
            total_content_words=content_count,
            total_transcription_words=transcription_count,
            matches=len(matches),
            skipped_content=sum(1 for edge in edges if edge.type == EdgeType.SKIP_CONTENT),
            skipped_transcription=sum(1 for edge in edges if edge.type == EdgeType.SKIP_TRANSCRIPTION),
            content_coverage=len(matched_content) / content_count if content_count else 0.0,
            transcription_coverage=(
                len(matched_transcription) / transcription_count if transcription_count else 0.0
            ),
            average_confidence=float(np.mean(confidences)) if confidences else 0.0,
            high_confidence=sum(1 for c in confidences if c > self.config.high_confidence_tier),
            medium_confidence=sum(
                1
                for c in confidences
                if self.config.medium_confidence_tier < c <= self.config.high_confidence_tier
            ),
            low_confidence=sum(1 for c in confidences if c <= self.config.medium_confidence_tier),
        )

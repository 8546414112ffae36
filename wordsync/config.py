"""Configuration for word alignment.

Provides typed configuration models with environment-backed defaults and
an accessor that caches the loaded configuration for reuse. Every weight and
threshold used by the scorer, aligner and validator is a named field here so
that the empirically chosen values can be tuned without touching code.
"""

from __future__ import annotations

import os
from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Final

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from wordsync import constants
from wordsync.errors import ConfigurationError

_ENV_FILE: Final[Path] = Path.cwd() / ".env"

Probability = Annotated[float, Field(ge=0.0, le=1.0)]
NonNegative = Annotated[float, Field(ge=0.0)]


class AlignmentStrategy(StrEnum):
    """Named threshold bundles trading precision for recall."""

    STRICT = "strict"
    BALANCED = "balanced"
    PERMISSIVE = "permissive"


class StrategyConfig(BaseModel):
    """Thresholds fixed by one alignment strategy."""

    min_confidence: Probability
    allow_skips: bool


class NormalizationConfig(BaseModel):
    """Lookup tables used to canonicalize tokens for matching."""

    contractions: dict[str, str] = Field(default_factory=lambda: dict(constants.CONTRACTIONS))
    speech_variations: dict[str, str] = Field(
        default_factory=lambda: dict(constants.SPEECH_VARIATIONS)
    )
    number_words: dict[str, str] = Field(default_factory=lambda: dict(constants.NUMBER_WORDS))
    punctuation: str = constants.MATCHING_PUNCTUATION


class SimilarityWeights(BaseModel):
    """Weights of the four similarity signals in the combined score."""

    levenshtein: NonNegative = 0.3
    jaro_winkler: NonNegative = 0.4
    phonetic: NonNegative = 0.1
    contextual: NonNegative = 0.2


class SimilarityConfig(BaseModel):
    """Knobs for token-pair similarity scoring."""

    weights: SimilarityWeights = Field(default_factory=SimilarityWeights)
    context_window: Annotated[int, Field(ge=0, le=50)] = 3
    near_match_threshold: Probability = 0.8
    near_match_credit: Probability = 0.7
    leading_context_weight: Probability = 0.4
    trailing_context_weight: Probability = 0.6
    prefix_scale: Annotated[float, Field(ge=0.0, le=0.25)] = 0.1
    max_prefix_length: Annotated[int, Field(ge=0, le=4)] = 4


def _default_strategies() -> dict[AlignmentStrategy, StrategyConfig]:
    return {
        AlignmentStrategy.STRICT: StrategyConfig(min_confidence=0.9, allow_skips=False),
        AlignmentStrategy.BALANCED: StrategyConfig(min_confidence=0.7, allow_skips=True),
        AlignmentStrategy.PERMISSIVE: StrategyConfig(min_confidence=0.5, allow_skips=True),
    }


class AlignerConfig(BaseModel):
    """Dynamic-programming and post-processing parameters."""

    skip_penalty: NonNegative = 0.05
    max_skip_distance: Annotated[int, Field(ge=0)] = 5
    rescue_confidence: Probability = 0.9
    coverage_bonus_divisor: Annotated[float, Field(gt=0.0)] = 50.0
    coverage_bonus_cap: Probability = 0.2
    high_confidence_tier: Probability = 0.9
    medium_confidence_tier: Probability = 0.7
    strategies: dict[AlignmentStrategy, StrategyConfig] = Field(
        default_factory=_default_strategies
    )
    suggestion_window: Annotated[int, Field(ge=1)] = 5
    suggestion_min_similarity: Probability = 0.5
    suggestion_limit: Annotated[int, Field(ge=1)] = 3
    suggestion_tie_margin: Probability = 0.1

    @model_validator(mode="after")
    def _check_tiers(self) -> AlignerConfig:
        if self.medium_confidence_tier > self.high_confidence_tier:
            raise ValueError("medium_confidence_tier must not exceed high_confidence_tier")
        if AlignmentStrategy.BALANCED not in self.strategies:
            raise ValueError("strategies must define the balanced fallback")
        return self


class QualityThresholds(BaseModel):
    """One tier of alignment quality thresholds."""

    word_coverage: Probability
    average_confidence: Probability
    sequence_consistency: Probability
    timing_consistency: Probability


class TimingConfig(BaseModel):
    """Expected audio timing characteristics of narrated speech."""

    max_word_duration: NonNegative = 3.0
    min_word_duration: NonNegative = 0.05
    max_gap_between_words: NonNegative = 2.0
    max_overlap_between_words: NonNegative = 0.1
    max_sentence_boundary_drift: NonNegative = 0.5
    min_words_per_minute: NonNegative = 120.0
    max_words_per_minute: NonNegative = 200.0
    min_transcript_words_per_minute: NonNegative = 100.0
    max_transcript_words_per_minute: NonNegative = 250.0


class ContentConfig(BaseModel):
    """Content-consistency checks on sentences and raw inputs."""

    max_word_count_difference: Annotated[int, Field(ge=0)] = 2
    min_content_similarity: Probability = 0.8
    max_sequence_gap: Annotated[int, Field(ge=0)] = 5
    low_confidence_cutoff: Probability = 0.7
    max_low_confidence_ratio: Probability = 0.3
    min_word_count_ratio: NonNegative = 0.8
    max_word_count_ratio: NonNegative = 1.2
    min_vocabulary_overlap: Probability = 0.7


class MappingConfig(BaseModel):
    """Minimum word-mapping percentages per level of the content hierarchy."""

    section_min_percentage: Annotated[float, Field(ge=0.0, le=100.0)] = 70.0
    chapter_min_percentage: Annotated[float, Field(ge=0.0, le=100.0)] = 75.0
    book_min_percentage: Annotated[float, Field(ge=0.0, le=100.0)] = 80.0
    max_child_warnings: Annotated[int, Field(ge=0)] = 3
    max_skipped_content: Annotated[int, Field(ge=0)] = 5


class ScoringConfig(BaseModel):
    """Penalties and bonuses used to turn findings into a 0-100 score."""

    error_penalty: NonNegative = 15.0
    warning_penalty: NonNegative = 5.0
    info_penalty: NonNegative = 1.0
    success_bonus: NonNegative = 2.0


def _default_tiers() -> dict[str, QualityThresholds]:
    return {
        "excellent": QualityThresholds(
            word_coverage=0.95,
            average_confidence=0.9,
            sequence_consistency=0.9,
            timing_consistency=0.95,
        ),
        "good": QualityThresholds(
            word_coverage=0.85,
            average_confidence=0.8,
            sequence_consistency=0.8,
            timing_consistency=0.85,
        ),
        "acceptable": QualityThresholds(
            word_coverage=0.75,
            average_confidence=0.7,
            sequence_consistency=0.7,
            timing_consistency=0.75,
        ),
        "minimum": QualityThresholds(
            word_coverage=0.6,
            average_confidence=0.6,
            sequence_consistency=0.6,
            timing_consistency=0.6,
        ),
    }


class ValidationConfig(BaseModel):
    """Thresholds for the post-hoc quality validator."""

    thresholds: dict[str, QualityThresholds] = Field(default_factory=_default_tiers)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    mapping: MappingConfig = Field(default_factory=MappingConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @model_validator(mode="after")
    def _check_tiers(self) -> ValidationConfig:
        missing = {"excellent", "acceptable", "minimum"} - set(self.thresholds)
        if missing:
            raise ValueError(f"thresholds missing tiers: {', '.join(sorted(missing))}")
        return self

    @property
    def excellent(self) -> QualityThresholds:
        return self.thresholds["excellent"]

    @property
    def acceptable(self) -> QualityThresholds:
        return self.thresholds["acceptable"]

    @property
    def minimum(self) -> QualityThresholds:
        return self.thresholds["minimum"]


class WordSyncConfig(BaseModel):
    """Pydantic configuration model for the alignment core."""

    log_level: str = constants.DEFAULT_LOG_LEVEL
    default_strategy: AlignmentStrategy = AlignmentStrategy.BALANCED
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    similarity: SimilarityConfig = Field(default_factory=SimilarityConfig)
    aligner: AlignerConfig = Field(default_factory=AlignerConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    @classmethod
    def from_env(cls) -> WordSyncConfig:
        load_dotenv(_ENV_FILE)

        def _int(name: str, default: int) -> int:
            try:
                return int(os.getenv(name, str(default)))
            except (ValueError, TypeError):
                return default

        def _float(name: str, default: float) -> float:
            try:
                return float(os.getenv(name, str(default)))
            except (ValueError, TypeError):
                return default

        def _strategy(name: str, default: AlignmentStrategy) -> AlignmentStrategy:
            v = os.getenv(name)
            if v is None:
                return default
            try:
                return AlignmentStrategy(v.strip().lower())
            except ValueError:
                return default

        aligner_defaults = AlignerConfig()
        similarity_defaults = SimilarityConfig()
        try:
            return cls(
                log_level=os.getenv(constants.ENV_LOG_LEVEL, constants.DEFAULT_LOG_LEVEL),
                default_strategy=_strategy(
                    constants.ENV_DEFAULT_STRATEGY, AlignmentStrategy.BALANCED
                ),
                similarity=SimilarityConfig(
                    context_window=_int(
                        constants.ENV_CONTEXT_WINDOW, similarity_defaults.context_window
                    ),
                ),
                aligner=AlignerConfig(
                    skip_penalty=_float(constants.ENV_SKIP_PENALTY, aligner_defaults.skip_penalty),
                    max_skip_distance=_int(
                        constants.ENV_MAX_SKIP_DISTANCE, aligner_defaults.max_skip_distance
                    ),
                ),
            )
        except ValidationError as e:
            raise ConfigurationError(key="environment", reason=str(e)) from e


@lru_cache(maxsize=1)
def get_config() -> WordSyncConfig:
    """Load and cache the alignment configuration from environment."""
    return WordSyncConfig.from_env()

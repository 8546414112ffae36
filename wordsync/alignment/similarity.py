"""Token-pair similarity scoring.

Four signals are combined into one score in [0, 1]: normalized Levenshtein
similarity, Jaro-Winkler similarity, similarity of crude phonetic codes, and a
positional-context signal comparing the words around each token in its own
sequence. Edit-distance primitives come from jellyfish.
"""

import re
from collections.abc import Sequence
from functools import lru_cache
from typing import Final

import numpy as np
from jellyfish import jaro_similarity, levenshtein_distance

from wordsync import constants
from wordsync.config import SimilarityConfig
from wordsync.logging import get_logger

logger = get_logger(__name__)

BASE_SCORE_CACHE_SIZE: Final[int] = 65536

_PHONETIC_RULES: Final[list[tuple[re.Pattern[str], str]]] = [
    (re.compile(pattern), replacement) for pattern, replacement in constants.PHONETIC_RULES
]


def levenshtein_similarity(s1: str, s2: str) -> float:
    """Calculate ``(maxLen - editDistance) / maxLen``.

    Args:
        s1: First string
        s2: Second string

    Returns:
        1.0 for identical strings (including two empty ones), 0.0 when exactly one is empty
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    max_len = max(len(s1), len(s2))
    return (max_len - levenshtein_distance(s1, s2)) / max_len


def jaro_winkler_similarity(
    s1: str, s2: str, *, prefix_scale: float = 0.1, max_prefix_length: int = 4
) -> float:
    """Calculate Jaro similarity boosted by the length of the common prefix.

    The prefix bonus ``prefix * prefix_scale * (1 - jaro)`` is applied for any
    non-zero Jaro score.

    Args:
        s1: First string
        s2: Second string
        prefix_scale: Weight of each shared leading character
        max_prefix_length: Maximum number of leading characters considered

    Returns:
        Similarity in [0, 1]
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    jaro = jaro_similarity(s1, s2)
    if jaro == 0.0:
        return 0.0

    prefix = 0
    for c1, c2 in zip(s1[:max_prefix_length], s2[:max_prefix_length]):
        if c1 != c2:
            break
        prefix += 1

    return jaro + prefix * prefix_scale * (1.0 - jaro)


def to_phonetic(word: str) -> str:
    """Apply the ordered letter-substitution rules to a lowercased word."""
    phonetic = word.lower()
    for pattern, replacement in _PHONETIC_RULES:
        phonetic = pattern.sub(replacement, phonetic)
    return phonetic


def phonetic_similarity(
    s1: str, s2: str, *, prefix_scale: float = 0.1, max_prefix_length: int = 4
) -> float:
    code1 = to_phonetic(s1)
    code2 = to_phonetic(s2)
    if code1 == code2:
        return 1.0
    return jaro_winkler_similarity(
        code1, code2, prefix_scale=prefix_scale, max_prefix_length=max_prefix_length
    )


@lru_cache(maxsize=BASE_SCORE_CACHE_SIZE)
def _base_signals(
    s1: str, s2: str, prefix_scale: float, max_prefix_length: int
) -> tuple[float, float, float]:
    return (
        levenshtein_similarity(s1, s2),
        jaro_winkler_similarity(s1, s2, prefix_scale=prefix_scale, max_prefix_length=max_prefix_length),
        phonetic_similarity(s1, s2, prefix_scale=prefix_scale, max_prefix_length=max_prefix_length),
    )


def context_windows(
    words: Sequence[str], position: int, window_size: int
) -> tuple[Sequence[str], Sequence[str]]:
    """Return the up-to-``window_size`` words before and after ``position``."""
    before = words[max(0, position - window_size) : position]
    after = words[position + 1 : position + 1 + window_size]
    return before, after


class SimilarityScorer:
    """Weighted combination of the four similarity signals.

    Args:
        config: Weights, context window and Jaro-Winkler parameters.
    """

    def __init__(self, config: SimilarityConfig | None = None) -> None:
        self.config = config or SimilarityConfig()

    def base_signals(self, s1: str, s2: str) -> tuple[float, float, float]:
        """Levenshtein, Jaro-Winkler and phonetic similarity of two normalized tokens."""
        return _base_signals(s1, s2, self.config.prefix_scale, self.config.max_prefix_length)

    def jaro_winkler(self, s1: str, s2: str) -> float:
        return jaro_winkler_similarity(
            s1,
            s2,
            prefix_scale=self.config.prefix_scale,
            max_prefix_length=self.config.max_prefix_length,
        )

    def compare_sequences(self, seq1: Sequence[str], seq2: Sequence[str]) -> float:
        """Position-by-position credit averaged over the longer sequence.

        Returns:
            1.0 when both are empty, 0.0 when exactly one is empty
        """
        if not seq1 and not seq2:
            return 1.0
        if not seq1 or not seq2:
            return 0.0

        credit = 0.0
        for word1, word2 in zip(seq1, seq2):
            if word1 == word2:
                credit += 1.0
            elif self.jaro_winkler(word1, word2) > self.config.near_match_threshold:
                credit += self.config.near_match_credit

        return credit / max(len(seq1), len(seq2))

    def contextual_similarity(
        self, words1: Sequence[str], pos1: int, words2: Sequence[str], pos2: int
    ) -> float:
        """Compare the windows around ``words1[pos1]`` and ``words2[pos2]``.

        Not symmetric in general: each side's window is cut from its own sequence.
        """
        window = self.config.context_window
        before1, after1 = context_windows(words1, pos1, window)
        before2, after2 = context_windows(words2, pos2, window)
        return (
            self.compare_sequences(before1, before2) * self.config.leading_context_weight
            + self.compare_sequences(after1, after2) * self.config.trailing_context_weight
        )

    def combine(
        self, *, levenshtein: float, jaro_winkler: float, phonetic: float, contextual: float
    ) -> float:
        weights = self.config.weights
        combined = (
            levenshtein * weights.levenshtein
            + jaro_winkler * weights.jaro_winkler
            + phonetic * weights.phonetic
            + contextual * weights.contextual
        )
        return min(max(combined, 0.0), 1.0)

    def score(self, words1: Sequence[str], pos1: int, words2: Sequence[str], pos2: int) -> float:
        """Similarity of two normalized tokens in the context of their own sequences.

        Args:
            words1: Normalized words of the first sequence
            pos1: Position of the token in the first sequence
            words2: Normalized words of the second sequence
            pos2: Position of the token in the second sequence

        Returns:
            1.0 on exact normalized equality, 0.0 when either token is empty,
            otherwise the clipped weighted sum of the four signals
        """
        s1 = words1[pos1]
        s2 = words2[pos2]
        if not s1 or not s2:
            return 0.0
        if s1 == s2:
            return 1.0

        levenshtein, jaro_winkler, phonetic = self.base_signals(s1, s2)
        return self.combine(
            levenshtein=levenshtein,
            jaro_winkler=jaro_winkler,
            phonetic=phonetic,
            contextual=self.contextual_similarity(words1, pos1, words2, pos2),
        )

    def similarity(self, s1: str, s2: str) -> float:
        """Context-free similarity of two normalized tokens.

        Both context windows are empty, so the contextual signal is 1.0.
        """
        return self.score([s1], 0, [s2], 0)

    def similarity_matrix(self, words1: Sequence[str], words2: Sequence[str]) -> np.ndarray:
        """Build the ``len(words1) x len(words2)`` matrix of contextual scores."""
        matrix = np.zeros((len(words1), len(words2)), dtype=np.float64)
        for i in range(len(words1)):
            for j in range(len(words2)):
                matrix[i, j] = self.score(words1, i, words2, j)
        logger.debug(f"Built {matrix.shape[0]}x{matrix.shape[1]} similarity matrix")
        return matrix

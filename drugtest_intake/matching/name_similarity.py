"""
Weighted name similarity for donor-to-client matching.

Uses Levenshtein distance per name component, weighting last names above
first names because they discriminate better between clients.
"""

import math
from typing import Optional
import Levenshtein

from drugtest_intake.normalization.text_normalizer import TextNormalizer
from drugtest_intake.utils.config_manager import ConfigManager


class NameSimilarity:
    """
    Name similarity scorer.

    Compares (first, last, optional middle) triples and returns a
    weighted score in [0.0, 1.0]. Symmetric, case-insensitive, and
    never raises: empty components contribute nothing.
    """

    def __init__(self, normalizer: Optional[TextNormalizer] = None,
                 config: Optional[ConfigManager] = None):
        """
        Initialize the scorer.

        Args:
            normalizer: TextNormalizer instance (creates new if None)
            config: ConfigManager supplying name_weights (defaults if None)
        """
        self.normalizer = normalizer or TextNormalizer()
        config = config or ConfigManager()
        self.last_weight = config.get_name_weight('last')
        self.first_weight = config.get_name_weight('first')
        self.middle_weight = config.get_name_weight('middle')

    def similarity(self, a_first: str, a_last: str, b_first: str, b_last: str,
                   a_middle: Optional[str] = None,
                   b_middle: Optional[str] = None) -> float:
        """
        Calculate weighted similarity between two names.

        The middle component is scored only when both sides supply one.
        When either side omits it, the middle weight counts as agreement,
        so a missing middle name never lowers the score.

        Args:
            a_first: First name of the first person
            a_last: Last name of the first person
            b_first: First name of the second person
            b_last: Last name of the second person
            a_middle: Optional middle name/initial of the first person
            b_middle: Optional middle name/initial of the second person

        Returns:
            Weighted similarity [0.0, 1.0]

        Examples:
            >>> scorer = NameSimilarity()
            >>> scorer.similarity("John", "Smith", "john", "SMITH")
            1.0
        """
        last_score = self.token_similarity(a_last, b_last)
        first_score = self.token_similarity(a_first, b_first)

        middle_a = self.normalizer.normalize(a_middle) if a_middle else ''
        middle_b = self.normalizer.normalize(b_middle) if b_middle else ''
        if middle_a and middle_b:
            middle_score = self.token_similarity(middle_a, middle_b)
        else:
            middle_score = 1.0

        weighted = math.fsum((
            last_score * self.last_weight,
            first_score * self.first_weight,
            middle_score * self.middle_weight,
        ))

        return min(max(weighted, 0.0), 1.0)

    def token_similarity(self, text1: Optional[str], text2: Optional[str]) -> float:
        """
        Calculate normalized edit similarity between two name tokens.

        1 - distance / max(len), computed on normalized text.

        Args:
            text1: First string
            text2: Second string

        Returns:
            Similarity [0.0, 1.0]; 0.0 when either side is empty
        """
        s1 = self.normalizer.normalize(text1) if text1 else ''
        s2 = self.normalizer.normalize(text2) if text2 else ''

        if not s1 or not s2:
            return 0.0

        if s1 == s2:
            return 1.0

        distance = Levenshtein.distance(s1, s2)
        max_len = max(len(s1), len(s2))
        return (max_len - distance) / max_len


# Module-level default scorer for convenience function
_default_scorer = None


def _get_scorer() -> NameSimilarity:
    global _default_scorer
    if _default_scorer is None:
        _default_scorer = NameSimilarity()
    return _default_scorer


def name_similarity(a_first: str, a_last: str, b_first: str, b_last: str,
                    a_middle: Optional[str] = None,
                    b_middle: Optional[str] = None) -> float:
    """Weighted name similarity using the default configuration."""
    return _get_scorer().similarity(a_first, a_last, b_first, b_last, a_middle, b_middle)

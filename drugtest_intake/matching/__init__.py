"""
Donor-to-candidate matching package.

Ranks pending tests / clients against the donor name and collection date
extracted from an uploaded report:
- Name similarity (weighted Levenshtein over first / middle / last)
- Calendar-day date proximity tiers
- Workflow status and panel type filters
"""

import logging
from pathlib import Path
from typing import Optional

from drugtest_intake.matching.types import CandidateRecord, MatchResult, ScreeningStatus, parse_screening_status
from drugtest_intake.matching.name_similarity import NameSimilarity, name_similarity
from drugtest_intake.matching.match_ranker import MatchRanker, parse_calendar_date
from drugtest_intake.utils.config_manager import load_engine_config

_logger = logging.getLogger(__name__)


def build_ranker(config_path: Optional[Path] = None) -> MatchRanker:
    """
    Build a MatchRanker from the YAML engine config.

    Falls back to built-in defaults when the config file is missing
    or invalid.

    Args:
        config_path: Path to YAML config (default: config/engine_config.yaml)

    Returns:
        Fully-wired MatchRanker instance.
    """
    config = load_engine_config(config_path)
    ranker = MatchRanker(config=config)
    _logger.info(
        "MatchRanker ready: name_points=%d, date_tiers=%s",
        ranker.name_points,
        ranker.date_tiers,
    )
    return ranker


__all__ = [
    "CandidateRecord",
    "MatchResult",
    "ScreeningStatus",
    "parse_screening_status",
    "NameSimilarity",
    "name_similarity",
    "MatchRanker",
    "parse_calendar_date",
    "build_ranker",
]

"""
Ranking engine for matching an uploaded report to pending tests.

Filters candidate records by workflow status and panel type, then scores
each against the donor name and collection date extracted from the PDF.

Scoring:
  Name:  similarity * name_points (60), only when a name was extracted
  Date:  tiered by calendar-day difference, only when a date was extracted
         same day 40, <=1 day 30, <=3 days 20, <=7 days 10, else 0
  Total: rounded once, half-up, then clamped to [0, 100]
"""

import logging
import math
from datetime import date, datetime
from typing import Iterable, List, Optional

from drugtest_intake.matching.name_similarity import NameSimilarity
from drugtest_intake.matching.types import CandidateRecord, MatchResult, ScreeningStatus, parse_screening_status
from drugtest_intake.normalization.name_parser import Name, parse_name
from drugtest_intake.utils.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def parse_calendar_date(value) -> Optional[date]:
    """
    Parse an ISO 8601 date or timestamp to its calendar day.

    Time of day and UTC offset are ignored: '2025-01-15T23:30:00-05:00'
    is 2025-01-15.

    Args:
        value: ISO string, date, or datetime

    Returns:
        The calendar date, or None when missing or malformed
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        logger.debug(f"Ignoring malformed date '{value}'")
        return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return int(math.floor(value + 0.5))


class MatchRanker:
    """
    Scores and ranks candidate records against extracted report data.

    Pure: candidate lists are read, never modified, and every call
    returns new result objects. A high-confidence threshold is exposed
    for callers (best_match) but never applied inside rank().
    """

    def __init__(self,
                 name_similarity: Optional[NameSimilarity] = None,
                 config: Optional[ConfigManager] = None):
        """
        Initialize the ranker.

        Args:
            name_similarity: NameSimilarity instance (creates new if None)
            config: ConfigManager (defaults if None)
        """
        config = config or ConfigManager()
        self.name_similarity = name_similarity or NameSimilarity(config=config)

        scoring = config.get_section('scoring')
        self.name_points = int(scoring['name_points'])
        self.date_tiers = sorted((int(days), int(points)) for days, points in scoring['date_tiers'])
        self.high_confidence_match = int(scoring['high_confidence_match'])

        screening = config.get_section('screening')
        try:
            self.excluded_statuses = frozenset(
                ScreeningStatus(status) for status in screening['excluded_statuses']
            )
        except ValueError as e:
            raise ValueError(f"Unknown screening status in excluded_statuses: {e}") from e

    def filter_by_status(self, candidates: Iterable[CandidateRecord],
                         is_screen_workflow: bool) -> List[CandidateRecord]:
        """
        Drop already-resulted tests from screen workflows.

        Args:
            candidates: Candidate records
            is_screen_workflow: True when uploading an initial screen

        Returns:
            New list; unchanged order, unfiltered outside screen workflows
        """
        if not is_screen_workflow:
            return list(candidates)
        return [
            c for c in candidates
            if parse_screening_status(c.screening_status) not in self.excluded_statuses
        ]

    def filter_by_test_type(self, candidates: Iterable[CandidateRecord],
                            uploaded_test_type: Optional[str] = None) -> List[CandidateRecord]:
        """
        Keep candidates whose panel code equals the uploaded report's.

        Args:
            candidates: Candidate records
            uploaded_test_type: Panel code of the report, or None

        Returns:
            New list; unfiltered when no test type was supplied
        """
        if not uploaded_test_type:
            return list(candidates)
        # TestType or its code string
        test_type = getattr(uploaded_test_type, 'value', uploaded_test_type)
        return [c for c in candidates if c.test_type == test_type]

    def name_component(self, extracted_name: Optional[str], candidate: CandidateRecord) -> float:
        """
        Unrounded name points for one candidate.

        A name that normalizes to nothing on either side is absent and
        scores 0.
        """
        extracted = parse_name(extracted_name)
        client = parse_name(candidate.display_name)
        if self._is_blank(extracted) or self._is_blank(client):
            return 0.0

        similarity = self.name_similarity.similarity(
            extracted.first,
            extracted.last,
            client.first,
            client.last,
            extracted.middle,
            client.middle,
        )
        return similarity * self.name_points

    def _is_blank(self, name: Name) -> bool:
        normalize = self.name_similarity.normalizer.normalize
        return not normalize(name.first) and not normalize(name.last)

    def date_component(self, extracted_date_iso, candidate: CandidateRecord) -> int:
        """
        Date points for one candidate.

        A malformed date on either side contributes nothing.
        """
        extracted_day = parse_calendar_date(extracted_date_iso)
        if extracted_day is None:
            return 0

        candidate_day = parse_calendar_date(candidate.collection_date_iso)
        if candidate_day is None:
            logger.debug(
                f"Candidate {candidate.id} has unusable collection date "
                f"'{candidate.collection_date_iso}'"
            )
            return 0

        days_diff = abs((extracted_day - candidate_day).days)
        for max_days, points in self.date_tiers:
            if days_diff <= max_days:
                return points
        return 0

    def score(self, extracted_name: Optional[str], extracted_date_iso,
              candidate: CandidateRecord) -> int:
        """
        Calculate the 0-100 match score for a single candidate.

        Args:
            extracted_name: Donor name from the report, or None
            extracted_date_iso: Collection date from the report, or None
            candidate: Candidate record to score

        Returns:
            Integer score; the sum is rounded once, never per component
        """
        total = self.name_component(extracted_name, candidate)
        total += self.date_component(extracted_date_iso, candidate)
        return min(max(round_half_up(total), 0), 100)

    def rank(self, candidates: Iterable[CandidateRecord],
             extracted_name: Optional[str] = None,
             extracted_date_iso=None,
             uploaded_test_type: Optional[str] = None,
             is_screen_workflow: bool = False) -> List[MatchResult]:
        """
        Get ranked candidate matches with filtering and scoring.

        Order: status filter, test-type filter, score, sort by score
        descending. Equal scores keep their input order.

        Args:
            candidates: All available pending tests / clients
            extracted_name: Donor name extracted from the PDF
            extracted_date_iso: Collection date extracted from the PDF
            uploaded_test_type: Panel code of the uploaded report
            is_screen_workflow: Exclude already screened/complete tests

        Returns:
            List of MatchResult sorted by score (highest first)
        """
        if candidates is None:
            return []

        filtered = self.filter_by_status(candidates, is_screen_workflow)
        filtered = self.filter_by_test_type(filtered, uploaded_test_type)

        results = [
            MatchResult(candidate=c, score=self.score(extracted_name, extracted_date_iso, c))
            for c in filtered
        ]

        # list.sort is stable
        results.sort(key=lambda r: r.score, reverse=True)

        logger.debug(
            f"Ranked {len(results)} candidates "
            f"(top score {results[0].score if results else 'n/a'})"
        )
        return results

    def best_match(self, results: List[MatchResult],
                   threshold: Optional[int] = None) -> Optional[MatchResult]:
        """
        Top result if it clears the high-confidence threshold.

        Args:
            results: Output of rank()
            threshold: Override for the configured high_confidence_match

        Returns:
            The first result, or None when empty or below threshold
        """
        cutoff = self.high_confidence_match if threshold is None else threshold
        if results and results[0].score >= cutoff:
            return results[0]
        return None

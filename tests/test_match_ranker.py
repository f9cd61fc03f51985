"""
Test suite for donor-to-candidate ranking.

Tests name and date scoring, rounding, status and panel filters,
ordering and the high-confidence helper.
"""

import pytest

from drugtest_intake.matching import build_ranker
from drugtest_intake.matching.match_ranker import MatchRanker, parse_calendar_date, round_half_up
from drugtest_intake.matching.name_similarity import NameSimilarity
from drugtest_intake.matching.types import CandidateRecord, MatchResult, ScreeningStatus
from drugtest_intake.normalization.substances import TestType
from tests.fixtures.factories import make_candidate
from tests.fixtures.test_data import DATE_TIER_TEST_CASES, MALFORMED_DATES


class FixedSimilarity(NameSimilarity):
    """Name scorer returning a constant similarity."""

    def __init__(self, value):
        super().__init__()
        self.value = value

    def similarity(self, *args, **kwargs):
        return self.value


# ============================================================================
# DATE PARSING AND ROUNDING
# ============================================================================

class TestParseCalendarDate:

    def test_utc_timestamp(self):
        assert str(parse_calendar_date("2025-01-15T10:00:00Z")) == "2025-01-15"

    def test_offset_keeps_written_calendar_day(self):
        assert str(parse_calendar_date("2025-01-15T23:30:00-05:00")) == "2025-01-15"

    def test_date_only(self):
        assert str(parse_calendar_date("2025-01-15")) == "2025-01-15"

    @pytest.mark.parametrize("value", MALFORMED_DATES + [None, 20250115])
    def test_malformed_is_none(self, value):
        assert parse_calendar_date(value) is None


class TestRoundHalfUp:

    def test_halves_round_up(self):
        assert round_half_up(42.5) == 43
        assert round_half_up(0.5) == 1

    def test_ordinary_values(self):
        assert round_half_up(42.49) == 42
        assert round_half_up(99.51) == 100
        assert round_half_up(0.0) == 0


# ============================================================================
# SCORING
# ============================================================================

class TestScore:
    """Test the 0-100 score for a single candidate."""

    def test_perfect_match(self, ranker):
        candidate = make_candidate(display_name="John Smith")
        assert ranker.score("John Smith", "2025-01-15T00:00:00Z", candidate) == 100

    def test_exact_name_only(self, ranker):
        candidate = make_candidate(display_name="John Smith")
        assert ranker.score("John Smith", None, candidate) == 60

    def test_case_insensitive_name(self, ranker):
        candidate = make_candidate(display_name="John Smith")
        assert ranker.score("JOHN SMITH", None, candidate) == 60

    def test_middle_initial_on_one_side(self, ranker):
        candidate = make_candidate(display_name="John Michael Smith")
        assert ranker.score("John Smith", None, candidate) == 60

    def test_fuzzy_first_name(self, ranker):
        candidate = make_candidate(display_name="John Smith")
        score = ranker.score("Jon Smith", None, candidate)
        assert 50 < score < 60

    def test_different_first_name(self, ranker):
        candidate = make_candidate(display_name="John Smith")
        score = ranker.score("Jane Smith", None, candidate)
        assert 40 < score < 60

    def test_completely_different_name(self, ranker):
        candidate = make_candidate(display_name="Maria Garcia")
        assert ranker.score("John Smith", None, candidate) == 6

    def test_no_name_no_date(self, ranker):
        assert ranker.score(None, None, make_candidate()) == 0
        assert ranker.score("", "", make_candidate()) == 0

    @pytest.mark.parametrize("blank", ["   ", "\t\n", " , . "])
    def test_blank_extracted_name_is_absent(self, ranker, blank):
        candidate = make_candidate(display_name="Maria Garcia")
        assert ranker.score(blank, None, candidate) == ranker.score(None, None, candidate) == 0

    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_candidate_name_scores_no_name_points(self, ranker, blank):
        candidate = make_candidate(display_name=blank)
        assert ranker.score("John Smith", None, candidate) == 0
        assert ranker.score("John Smith", "2025-01-15", candidate) == 40

    @pytest.mark.parametrize("extracted_date,points", DATE_TIER_TEST_CASES)
    def test_date_tiers(self, ranker, extracted_date, points):
        assert ranker.score(None, extracted_date, make_candidate()) == points

    @pytest.mark.parametrize("value", MALFORMED_DATES)
    def test_malformed_extracted_date_scores_no_date_points(self, ranker, value):
        candidate = make_candidate(display_name="John Smith")
        assert ranker.score("John Smith", value, candidate) == 60

    def test_malformed_candidate_date(self, ranker):
        candidate = make_candidate(collection_date_iso="sometime last week")
        assert ranker.score(None, "2025-01-15", candidate) == 0

    def test_name_and_near_date(self, ranker):
        candidate = make_candidate(display_name="John Smith")
        score = ranker.score("Jane Smith", "2025-01-16", candidate)
        assert 70 < score < 90

    def test_sum_rounded_once_half_up(self, default_config):
        ranker = MatchRanker(name_similarity=FixedSimilarity(0.375), config=default_config)
        # 0.375 * 60 = 22.5, plus 20 date points
        assert ranker.score("Any Name", "2025-01-17", make_candidate()) == 43

    def test_score_clamped(self, default_config):
        default_config.update_value('scoring', 'name_points', 90)
        ranker = MatchRanker(config=default_config)
        candidate = make_candidate(display_name="John Smith")
        assert ranker.score("John Smith", "2025-01-15", candidate) == 100


# ============================================================================
# FILTERS
# ============================================================================

class TestFilters:

    def test_screen_workflow_excludes_resulted(self, ranker):
        candidates = [
            make_candidate(id='1', screening_status='collected'),
            make_candidate(id='2', screening_status='screened'),
            make_candidate(id='3', screening_status='complete'),
            make_candidate(id='4', screening_status='confirmation-pending'),
        ]
        kept = ranker.filter_by_status(candidates, is_screen_workflow=True)
        assert [c.id for c in kept] == ['1', '4']

    def test_excluded_statuses_are_screening_statuses(self, ranker):
        assert ranker.excluded_statuses == frozenset({ScreeningStatus.SCREENED, ScreeningStatus.COMPLETE})

    def test_status_matching_ignores_case_and_accepts_members(self, ranker):
        candidates = [
            make_candidate(id='1', screening_status=' Screened '),
            make_candidate(id='2', screening_status=ScreeningStatus.COMPLETE),
            make_candidate(id='3', screening_status='on-hold'),
        ]
        kept = ranker.filter_by_status(candidates, is_screen_workflow=True)
        assert [c.id for c in kept] == ['3']

    def test_unknown_configured_status_rejected(self, default_config):
        default_config.update_value('screening', 'excluded_statuses', ['screened', 'archived'])
        with pytest.raises(ValueError):
            MatchRanker(config=default_config)

    def test_non_screen_workflow_keeps_all(self, ranker):
        candidates = [make_candidate(id='1', screening_status='complete')]
        assert ranker.filter_by_status(candidates, is_screen_workflow=False) == candidates

    def test_test_type_filter(self, ranker):
        candidates = [
            make_candidate(id='1', test_type='11-panel-lab'),
            make_candidate(id='2', test_type='etg-lab'),
        ]
        assert [c.id for c in ranker.filter_by_test_type(candidates, 'etg-lab')] == ['2']
        assert [c.id for c in ranker.filter_by_test_type(candidates, TestType.PANEL_11_LAB)] == ['1']
        assert len(ranker.filter_by_test_type(candidates, None)) == 2

    def test_filters_do_not_mutate_input(self, ranker):
        candidates = [make_candidate(id='1', screening_status='screened')]
        ranker.filter_by_status(candidates, is_screen_workflow=True)
        assert len(candidates) == 1


# ============================================================================
# RANKING
# ============================================================================

class TestRank:

    def test_sorted_descending(self, ranker):
        candidates = [
            make_candidate(id='far', display_name="Maria Garcia"),
            make_candidate(id='exact', display_name="John Smith"),
            make_candidate(id='close', display_name="Jon Smith"),
        ]
        results = ranker.rank(candidates, extracted_name="John Smith", extracted_date_iso="2025-01-15")
        assert [r.candidate_id for r in results] == ['exact', 'close', 'far']
        assert results[0].score == 100

    def test_ties_keep_input_order(self, ranker):
        candidates = [make_candidate(id=str(i), display_name="John Smith") for i in range(5)]
        results = ranker.rank(candidates, extracted_name="John Smith")
        assert [r.candidate_id for r in results] == ['0', '1', '2', '3', '4']

    def test_empty_and_none(self, ranker):
        assert ranker.rank([]) == []
        assert ranker.rank(None) == []

    def test_all_filtered_out(self, ranker):
        candidates = [make_candidate(screening_status='complete')]
        assert ranker.rank(candidates, extracted_name="John Doe", is_screen_workflow=True) == []

    def test_no_extracted_data_returns_zero_scores(self, ranker):
        candidates = [make_candidate(id='a'), make_candidate(id='b')]
        results = ranker.rank(candidates)
        assert [(r.candidate_id, r.score) for r in results] == [('a', 0), ('b', 0)]

    def test_low_scores_are_returned(self, ranker):
        results = ranker.rank([make_candidate(display_name="Maria Garcia")], extracted_name="John Smith")
        assert len(results) == 1

    def test_filters_then_scores(self, ranker):
        candidates = [
            make_candidate(id='1', display_name="John Smith", test_type='etg-lab'),
            make_candidate(id='2', display_name="John Smith", screening_status='screened'),
            make_candidate(id='3', display_name="Jon Smith"),
        ]
        results = ranker.rank(
            candidates,
            extracted_name="John Smith",
            uploaded_test_type='11-panel-lab',
            is_screen_workflow=True,
        )
        assert [r.candidate_id for r in results] == ['3']

    def test_repeated_calls_identical(self, ranker):
        candidates = [make_candidate(id='1'), make_candidate(id='2', display_name="Jane Roe")]
        first = ranker.rank(candidates, extracted_name="John Doe", extracted_date_iso="2025-01-16")
        second = ranker.rank(candidates, extracted_name="John Doe", extracted_date_iso="2025-01-16")
        assert first == second


class TestBestMatch:

    def test_above_threshold(self, ranker):
        results = ranker.rank([make_candidate()], extracted_name="John Doe")
        assert ranker.best_match(results).candidate_id == '123'

    def test_below_threshold(self, ranker):
        results = ranker.rank([make_candidate()], extracted_name="Jane Doe")
        assert ranker.best_match(results) is None

    def test_threshold_override(self, ranker):
        results = ranker.rank([make_candidate()], extracted_name="Jane Doe")
        assert ranker.best_match(results, threshold=10) is not None

    def test_empty(self, ranker):
        assert ranker.best_match([]) is None


# ============================================================================
# TYPES
# ============================================================================

class TestMatchTypes:

    def test_match_result_score_range(self):
        with pytest.raises(ValueError):
            MatchResult(candidate=make_candidate(), score=101)
        with pytest.raises(ValueError):
            MatchResult(candidate=make_candidate(), score=-1)

    def test_match_result_to_dict(self):
        assert MatchResult(candidate=make_candidate(), score=75).to_dict() == {
            "candidate_id": "123",
            "score": 75,
        }

    def test_candidate_from_camel_case(self):
        record = CandidateRecord.from_dict({
            'id': 7,
            'clientName': 'John Doe',
            'testType': 'etg-lab',
            'collectionDate': '2025-01-15',
            'screeningStatus': 'collected',
            'clientHeadshot': 'photos/7.jpg',
        })
        assert record.id == '7'
        assert record.display_name == 'John Doe'
        assert record.test_type == 'etg-lab'
        assert record.headshot_ref == 'photos/7.jpg'


def test_build_ranker_missing_config_uses_defaults(temp_dir):
    ranker = build_ranker(temp_dir / "missing.yaml")
    assert ranker.name_points == 60
    assert ranker.date_tiers == [(0, 40), (1, 30), (3, 20), (7, 10)]

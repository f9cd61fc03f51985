"""
Factories for engine value objects used across test suites.
"""

from drugtest_intake.classification.types import Medication
from drugtest_intake.matching.types import CandidateRecord


def make_candidate(**overrides) -> CandidateRecord:
    """Candidate record with sensible defaults, fields overridable."""
    data = {
        'id': '123',
        'display_name': 'John Doe',
        'test_type': '11-panel-lab',
        'collection_date_iso': '2025-01-15T10:00:00Z',
        'screening_status': 'collected',
        'headshot_ref': None,
    }
    data.update(overrides)
    return CandidateRecord(**data)


def make_medication(name: str, codes, critical: bool = False, status: str = 'active') -> Medication:
    """Medication with the given detected-as codes."""
    return Medication(
        name=name,
        detected_as_codes=frozenset(codes),
        required_for_confirmation=critical,
        status=status,
    )

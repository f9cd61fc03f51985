"""
Type definitions for donor-to-candidate matching.

Defines the candidate snapshot supplied by the data layer and the
scored result returned by the ranker.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, Mapping


class ScreeningStatus(Enum):
    """Screening workflow states seen on pending test records."""
    COLLECTED = "collected"
    SCREENED = "screened"
    CONFIRMATION_PENDING = "confirmation-pending"
    COMPLETE = "complete"


def parse_screening_status(value) -> Optional[ScreeningStatus]:
    """Resolve a status string or member; None for unrecognized statuses."""
    if isinstance(value, ScreeningStatus):
        return value
    try:
        return ScreeningStatus(str(value).strip().lower())
    except ValueError:
        return None


def _first_present(data: Mapping[str, Any], *keys: str, default=None):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class CandidateRecord:
    """
    A pending test or client entry that an uploaded report may belong to.

    Read-only snapshot; the engine never writes back to it.

    Attributes:
        id: Record identifier in the persistence layer
        display_name: Client full name as displayed ("John M Doe")
        test_type: Panel code ('11-panel-lab', ...), not the display label
        collection_date_iso: Collection timestamp, ISO 8601
        screening_status: Workflow status ('collected', 'screened', ...)
        headshot_ref: Optional reference to the client's photo
    """
    id: str
    display_name: str
    test_type: str
    collection_date_iso: str
    screening_status: str
    headshot_ref: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CandidateRecord':
        """
        Build a record from a plain mapping.

        Accepts snake_case keys and the camelCase keys used by the web
        layer (clientName, testType, collectionDate, screeningStatus,
        clientHeadshot).
        """
        return cls(
            id=str(_first_present(data, 'id', default='')),
            display_name=_first_present(data, 'display_name', 'displayName', 'clientName', default=''),
            test_type=_first_present(data, 'test_type', 'testType', default=''),
            collection_date_iso=_first_present(
                data, 'collection_date_iso', 'collectionDate', 'collection_date', default=''
            ),
            screening_status=_first_present(data, 'screening_status', 'screeningStatus', default=''),
            headshot_ref=_first_present(data, 'headshot_ref', 'headshotRef', 'clientHeadshot'),
        )


@dataclass(frozen=True)
class MatchResult:
    """
    A candidate paired with its 0-100 match score.

    Created fresh by each ranking call.
    """
    candidate: CandidateRecord
    score: int

    def __post_init__(self):
        """Validate score is in valid range."""
        if not 0 <= self.score <= 100:
            raise ValueError(f"Score must be between 0 and 100, got {self.score}")

    @property
    def candidate_id(self) -> str:
        return self.candidate.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "candidate_id": self.candidate.id,
            "score": self.score,
        }

"""
Type definitions for drug test result classification.

Defines the medication snapshot, breathalyzer reading, outcome enum and
the immutable verdict produced by the classifier.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from drugtest_intake.normalization.substances import normalize_substance_set


class OutcomeKind(Enum):
    """Initial screen outcome categories."""
    NEGATIVE = "negative"
    EXPECTED_POSITIVE = "expected-positive"
    UNEXPECTED_POSITIVE = "unexpected-positive"
    UNEXPECTED_NEGATIVE_CRITICAL = "unexpected-negative-critical"
    UNEXPECTED_NEGATIVE_WARNING = "unexpected-negative-warning"
    MIXED_UNEXPECTED = "mixed-unexpected"


# Outcomes that may be finalized without human review
AUTO_ACCEPT_OUTCOMES = frozenset({
    OutcomeKind.NEGATIVE,
    OutcomeKind.EXPECTED_POSITIVE,
    OutcomeKind.UNEXPECTED_NEGATIVE_WARNING,
})


class ClassificationInputError(ValueError):
    """Raised when classification input is structurally unusable."""


@dataclass(frozen=True)
class Medication:
    """
    A client's prescribed medication at test time.

    Attributes:
        name: Medication name
        detected_as_codes: Substance codes the medication shows as
        required_for_confirmation: Absence from results is critical
        status: 'active' or 'discontinued'
    """
    name: str
    detected_as_codes: FrozenSet[str] = frozenset()
    required_for_confirmation: bool = False
    status: str = "active"

    def __post_init__(self):
        object.__setattr__(self, 'detected_as_codes', normalize_substance_set(self.detected_as_codes))

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Medication':
        """
        Build a medication from a plain mapping.

        Accepts snake_case keys or the web layer's camelCase keys
        (medicationName, detectedAs, requireConfirmation). A missing
        or null confirmation flag means non-critical.
        """
        name = data.get('name') or data.get('medicationName') or ''
        codes = data.get('detected_as_codes')
        if codes is None:
            codes = data.get('detectedAs') or data.get('detectedAsCodes') or ()
        required = data.get('required_for_confirmation')
        if required is None:
            required = data.get('requireConfirmation', data.get('required'))
        return cls(
            name=name,
            detected_as_codes=codes,
            required_for_confirmation=required is True,
            status=data.get('status') or "active",
        )


@dataclass(frozen=True)
class BreathalyzerReading:
    """Breathalyzer data recorded at collection."""
    taken: bool = False
    result_bac: Optional[float] = None

    def is_positive(self, epsilon: float) -> bool:
        """Any detectable alcohol above the configured BAC precision is positive."""
        return bool(self.taken and self.result_bac is not None and self.result_bac > epsilon)


@dataclass(frozen=True)
class ClassificationVerdict:
    """
    Result of classifying one set of detected substances.

    Never mutated: any change to detected substances or medications
    requires a fresh classify() call.

    Attributes:
        outcome: Outcome category
        expected_positives: Detected and explained by a medication
        unexpected_positives: Detected but not explained
        unexpected_negatives: Expected but not detected (critical included)
        critical_negatives: Subset of unexpected_negatives that a
            required-for-confirmation medication expects
        auto_accept: May be finalized without review
        breathalyzer_positive: Breathalyzer detected alcohol
    """
    outcome: OutcomeKind
    expected_positives: FrozenSet[str] = frozenset()
    unexpected_positives: FrozenSet[str] = frozenset()
    unexpected_negatives: FrozenSet[str] = frozenset()
    critical_negatives: FrozenSet[str] = frozenset()
    auto_accept: bool = False
    breathalyzer_positive: bool = False

    @property
    def detected(self) -> FrozenSet[str]:
        return self.expected_positives | self.unexpected_positives

    @property
    def warning_negatives(self) -> FrozenSet[str]:
        return self.unexpected_negatives - self.critical_negatives

    @property
    def requires_decision(self) -> bool:
        return not self.auto_accept

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "outcome": self.outcome.value,
            "expected_positives": sorted(self.expected_positives),
            "unexpected_positives": sorted(self.unexpected_positives),
            "unexpected_negatives": sorted(self.unexpected_negatives),
            "critical_negatives": sorted(self.critical_negatives),
            "auto_accept": self.auto_accept,
            "breathalyzer_positive": self.breathalyzer_positive,
        }


@dataclass(frozen=True)
class CannotEvaluate:
    """Returned instead of a verdict when input cannot be classified."""
    reason: str
    details: Dict[str, Any] = field(default_factory=dict)

    auto_accept = False

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": None, "reason": self.reason, "auto_accept": False, **self.details}

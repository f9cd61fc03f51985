"""
Confirmation-decision gate and final status computation.

A verdict that is not auto-accepted needs a decision before the record
can be finalized: accept the result as-is, request confirmation testing
(LC-MS/MS) for specific unexpected positives, or leave it pending. Once
confirmation results arrive, compute_final_status() folds them into the
record's final status.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from drugtest_intake.classification.types import (
    BreathalyzerReading,
    ClassificationVerdict,
    OutcomeKind,
)
from drugtest_intake.normalization.substances import (
    normalize_substance_code,
    normalize_substance_set,
)
from drugtest_intake.utils.config_manager import ConfigManager

logger = logging.getLogger(__name__)


class DecisionKind(Enum):
    ACCEPT = "accept"
    REQUEST_CONFIRMATION = "request-confirmation"
    PENDING_DECISION = "pending-decision"


class ConfirmationOutcome(Enum):
    CONFIRMED_POSITIVE = "confirmed-positive"
    CONFIRMED_NEGATIVE = "confirmed-negative"
    INCONCLUSIVE = "inconclusive"


class FinalStatus(Enum):
    """Record status after confirmation testing (or acceptance)."""
    NEGATIVE = "negative"
    CONFIRMED_NEGATIVE = "confirmed-negative"
    EXPECTED_POSITIVE = "expected-positive"
    UNEXPECTED_POSITIVE = "unexpected-positive"
    UNEXPECTED_NEGATIVE_CRITICAL = "unexpected-negative-critical"
    UNEXPECTED_NEGATIVE_WARNING = "unexpected-negative-warning"
    MIXED_UNEXPECTED = "mixed-unexpected"
    INCONCLUSIVE = "inconclusive"


PASSING_FINAL_STATUSES = frozenset({
    FinalStatus.NEGATIVE,
    FinalStatus.CONFIRMED_NEGATIVE,
    FinalStatus.EXPECTED_POSITIVE,
})

# Screen outcomes that carried unexpected negatives
_NEGATIVE_SCREEN_OUTCOMES = frozenset({
    OutcomeKind.MIXED_UNEXPECTED,
    OutcomeKind.UNEXPECTED_NEGATIVE_CRITICAL,
    OutcomeKind.UNEXPECTED_NEGATIVE_WARNING,
})


class DecisionError(ValueError):
    """Raised when a confirmation decision is inconsistent with its verdict."""


@dataclass(frozen=True)
class ConfirmationDecision:
    """
    A reviewer's decision on a verdict that was not auto-accepted.

    Attributes:
        kind: Accept, request confirmation, or pending
        substances: Substances sent for confirmation (REQUEST_CONFIRMATION only)
    """
    kind: DecisionKind
    substances: FrozenSet[str] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, 'substances', normalize_substance_set(self.substances))

    @classmethod
    def accept(cls) -> 'ConfirmationDecision':
        return cls(DecisionKind.ACCEPT)

    @classmethod
    def pending(cls) -> 'ConfirmationDecision':
        return cls(DecisionKind.PENDING_DECISION)

    @classmethod
    def request_confirmation(cls, substances: Iterable[str]) -> 'ConfirmationDecision':
        return cls(DecisionKind.REQUEST_CONFIRMATION, frozenset(substances))


@dataclass(frozen=True)
class ConfirmationResult:
    """Lab confirmation result for one substance."""
    substance: str
    result: ConfirmationOutcome
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'substance', normalize_substance_code(self.substance))
        if not isinstance(self.result, ConfirmationOutcome):
            object.__setattr__(self, 'result', ConfirmationOutcome(self.result))


def requires_decision(verdict: ClassificationVerdict) -> bool:
    """True when the verdict cannot be finalized without a decision."""
    return not verdict.auto_accept


def validate_decision(verdict: ClassificationVerdict, decision: ConfirmationDecision) -> None:
    """
    Check a decision against the verdict it answers.

    Args:
        verdict: The screen verdict
        decision: The reviewer's decision

    Raises:
        DecisionError: If confirmation is requested for no substances, or
            for a substance that was not an unexpected positive, or if
            substances are attached to a non-confirmation decision
    """
    if decision.kind is DecisionKind.REQUEST_CONFIRMATION:
        if not decision.substances:
            raise DecisionError("Confirmation request must name at least one substance")
        outside = decision.substances - verdict.unexpected_positives
        if outside:
            raise DecisionError(
                f"Confirmation requested for {sorted(outside)}, which are not "
                f"unexpected positives {sorted(verdict.unexpected_positives)}"
            )
    elif decision.substances:
        raise DecisionError(f"Decision '{decision.kind.value}' cannot carry substances")


def can_finalize(verdict: ClassificationVerdict,
                 decision: Optional[ConfirmationDecision] = None) -> bool:
    """
    Whether the record may be finalized.

    Auto-accepted verdicts finalize without a decision. Others need a
    valid ACCEPT or REQUEST_CONFIRMATION decision; PENDING_DECISION
    never finalizes.
    """
    if verdict.auto_accept:
        return True
    if decision is None or decision.kind is DecisionKind.PENDING_DECISION:
        return False
    try:
        validate_decision(verdict, decision)
    except DecisionError as e:
        logger.info(f"Decision rejected: {e}")
        return False
    return True


def is_confirmation_complete(decision: Optional[ConfirmationDecision],
                             results: Iterable[ConfirmationResult]) -> bool:
    """
    Whether every substance sent for confirmation has a lab result.

    Only REQUEST_CONFIRMATION decisions with at least one substance can
    be complete.
    """
    if decision is None or decision.kind is not DecisionKind.REQUEST_CONFIRMATION:
        return False
    if not decision.substances:
        return False
    resulted = {r.substance for r in results or ()}
    return decision.substances <= resulted


def compute_final_status(verdict: ClassificationVerdict,
                         confirmation_results: Iterable[ConfirmationResult],
                         breathalyzer: Optional[BreathalyzerReading] = None,
                         bac_epsilon: Optional[float] = None) -> FinalStatus:
    """
    Compute final status after confirmation testing is complete.

    Precedence:
    - Any inconclusive confirmation -> INCONCLUSIVE
    - Any confirmed positive, or unexpected positives never sent for
      confirmation (the client accepted the fail) -> MIXED_UNEXPECTED if
      the screen also had unexpected negatives, else UNEXPECTED_POSITIVE
    - Otherwise the screen's negatives decide: critical or mixed ->
      UNEXPECTED_NEGATIVE_CRITICAL, warning -> UNEXPECTED_NEGATIVE_WARNING,
      expected positives -> EXPECTED_POSITIVE, else CONFIRMED_NEGATIVE
    - A positive breathalyzer turns a passing status into UNEXPECTED_POSITIVE

    Args:
        verdict: The initial screen verdict
        confirmation_results: Lab results for the confirmed substances
        breathalyzer: Reading to apply; defaults to the verdict's own flag
        bac_epsilon: BAC precision; defaults to the built-in
            classification.bac_epsilon (use ResultClassifier.final_status
            to apply a loaded config)

    Returns:
        FinalStatus
    """
    results = list(confirmation_results or ())

    confirmed_positive = [r for r in results if r.result is ConfirmationOutcome.CONFIRMED_POSITIVE]
    inconclusive = [r for r in results if r.result is ConfirmationOutcome.INCONCLUSIVE]

    confirmed_substances = {r.substance for r in results}
    unconfirmed_positives = verdict.unexpected_positives - confirmed_substances

    screen_had_negatives = verdict.outcome in _NEGATIVE_SCREEN_OUTCOMES

    if inconclusive:
        status = FinalStatus.INCONCLUSIVE
    elif confirmed_positive or unconfirmed_positives:
        status = FinalStatus.MIXED_UNEXPECTED if screen_had_negatives else FinalStatus.UNEXPECTED_POSITIVE
    elif verdict.outcome in (OutcomeKind.UNEXPECTED_NEGATIVE_CRITICAL, OutcomeKind.MIXED_UNEXPECTED):
        status = FinalStatus.UNEXPECTED_NEGATIVE_CRITICAL
    elif verdict.outcome is OutcomeKind.UNEXPECTED_NEGATIVE_WARNING:
        status = FinalStatus.UNEXPECTED_NEGATIVE_WARNING
    elif verdict.expected_positives:
        status = FinalStatus.EXPECTED_POSITIVE
    else:
        status = FinalStatus.CONFIRMED_NEGATIVE

    if bac_epsilon is None:
        bac_epsilon = ConfigManager.DEFAULT_CONFIG['classification']['bac_epsilon']

    if breathalyzer is not None:
        breathalyzer_positive = breathalyzer.is_positive(bac_epsilon)
    else:
        breathalyzer_positive = verdict.breathalyzer_positive

    if breathalyzer_positive and status in PASSING_FINAL_STATUSES:
        status = FinalStatus.UNEXPECTED_POSITIVE

    return status

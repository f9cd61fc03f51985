"""
Drug test result classification package.

Provides:
- ResultClassifier: detected substances vs. active medications verdicts
- Confirmation gate: reviewer decisions on non-auto-accepted verdicts
- Final status computation once confirmation results are in
"""

from drugtest_intake.classification.types import (
    AUTO_ACCEPT_OUTCOMES,
    BreathalyzerReading,
    CannotEvaluate,
    ClassificationInputError,
    ClassificationVerdict,
    Medication,
    OutcomeKind,
)
from drugtest_intake.classification.result_classifier import (
    ResultClassifier,
    active_medications,
    classify,
)
from drugtest_intake.classification.confirmation import (
    ConfirmationDecision,
    ConfirmationOutcome,
    ConfirmationResult,
    DecisionError,
    DecisionKind,
    FinalStatus,
    can_finalize,
    compute_final_status,
    is_confirmation_complete,
    requires_decision,
    validate_decision,
)

__all__ = [
    "AUTO_ACCEPT_OUTCOMES",
    "BreathalyzerReading",
    "CannotEvaluate",
    "ClassificationInputError",
    "ClassificationVerdict",
    "Medication",
    "OutcomeKind",
    "ResultClassifier",
    "active_medications",
    "classify",
    "ConfirmationDecision",
    "ConfirmationOutcome",
    "ConfirmationResult",
    "DecisionError",
    "DecisionKind",
    "FinalStatus",
    "can_finalize",
    "compute_final_status",
    "is_confirmation_complete",
    "requires_decision",
    "validate_decision",
]

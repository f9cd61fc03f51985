"""
Result classifier for drug test screens.

Compares detected substances with the substances a client's active
medications are expected to show as, and decides whether the result
can be auto-accepted or needs a human decision.

Decision table (first match wins):
  1. Nothing detected, nothing expected, breathalyzer clear -> NEGATIVE        (auto)
  2. No unexpected positives, no unexpected negatives        -> EXPECTED_POSITIVE (auto)
  3. Unexpected positives and unexpected negatives           -> MIXED_UNEXPECTED
  4. Unexpected positives only                               -> UNEXPECTED_POSITIVE
  5. Unexpected negatives, at least one critical             -> UNEXPECTED_NEGATIVE_CRITICAL
  6. Unexpected negatives, none critical                     -> UNEXPECTED_NEGATIVE_WARNING (auto)

A positive breathalyzer counts as an unexpected positive in the table.
After the table, a critical negative always forces auto_accept off.
"""

import logging
from typing import FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from drugtest_intake.classification.confirmation import (
    ConfirmationResult,
    FinalStatus,
    compute_final_status,
)
from drugtest_intake.classification.types import (
    AUTO_ACCEPT_OUTCOMES,
    BreathalyzerReading,
    CannotEvaluate,
    ClassificationInputError,
    ClassificationVerdict,
    Medication,
    OutcomeKind,
)
from drugtest_intake.normalization.substances import (
    get_panel_substances,
    normalize_substance_set,
    parse_test_type,
)
from drugtest_intake.utils.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def active_medications(medications: Iterable[Union[Medication, Mapping]]) -> List[Medication]:
    """
    Snapshot of the medications active at test time.

    Args:
        medications: Medication objects or plain mappings

    Returns:
        Active Medication objects, input order preserved
    """
    result = []
    for med in medications or ():
        if isinstance(med, Mapping):
            med = Medication.from_dict(med)
        if med.is_active:
            result.append(med)
    return result


class ResultClassifier:
    """
    Classifies detected substances against active medications.

    Stateless after construction; safe to share between threads.
    """

    def __init__(self, config: Optional[ConfigManager] = None):
        """
        Initialize the classifier.

        Args:
            config: ConfigManager supplying the classification section
        """
        config = config or ConfigManager()
        section = config.get_section('classification')
        self.bac_epsilon = float(section['bac_epsilon'])
        self.none_code = str(section['none_code'])

    def classify(self, detected_substances: Iterable[str],
                 active_medications: Iterable[Union[Medication, Mapping]],
                 breathalyzer: Optional[BreathalyzerReading] = None,
                 test_type=None) -> ClassificationVerdict:
        """
        Classify a screen result.

        Args:
            detected_substances: Substance codes flagged on the report
            active_medications: Client medications (inactive ones are skipped)
            breathalyzer: Optional breathalyzer reading
            test_type: Optional panel code; limits expected substances to
                what that panel screens for

        Returns:
            A new ClassificationVerdict

        Raises:
            ClassificationInputError: If a required collection is missing
                or not a collection of codes / medications
        """
        detected = self._coerce_detected(detected_substances)
        medications = self._coerce_medications(active_medications)
        breathalyzer = self._coerce_breathalyzer(breathalyzer)

        expected, critical = self._expected_substances(medications, test_type)

        expected_positives = detected & expected
        unexpected_positives = detected - expected
        unexpected_negatives = expected - detected
        critical_negatives = unexpected_negatives & critical

        breathalyzer_positive = breathalyzer.is_positive(self.bac_epsilon)

        outcome = self._decide(
            detected=detected,
            expected=expected,
            has_unexpected_positive=bool(unexpected_positives) or breathalyzer_positive,
            has_unexpected_negative=bool(unexpected_negatives),
            has_critical_negative=bool(critical_negatives),
        )

        auto_accept = outcome in AUTO_ACCEPT_OUTCOMES
        if critical_negatives and auto_accept:
            logger.warning(
                f"Critical negatives {sorted(critical_negatives)} with outcome "
                f"'{outcome.value}'; auto-accept disabled"
            )
            auto_accept = False

        verdict = ClassificationVerdict(
            outcome=outcome,
            expected_positives=expected_positives,
            unexpected_positives=unexpected_positives,
            unexpected_negatives=unexpected_negatives,
            critical_negatives=critical_negatives,
            auto_accept=auto_accept,
            breathalyzer_positive=breathalyzer_positive,
        )

        logger.debug(
            f"Classified detected={sorted(detected)} against {len(medications)} "
            f"medications -> {outcome.value} (auto_accept={auto_accept})"
        )
        return verdict

    def evaluate(self, detected_substances, active_medications,
                 breathalyzer: Optional[BreathalyzerReading] = None,
                 test_type=None) -> Union[ClassificationVerdict, CannotEvaluate]:
        """
        Classify, returning CannotEvaluate instead of raising.

        For callers that render a message rather than handle exceptions.
        """
        try:
            return self.classify(detected_substances, active_medications, breathalyzer, test_type)
        except ClassificationInputError as e:
            logger.info(f"Cannot evaluate result: {e}")
            return CannotEvaluate(reason=str(e))

    def final_status(self, verdict: ClassificationVerdict,
                     confirmation_results: Iterable[ConfirmationResult],
                     breathalyzer: Optional[BreathalyzerReading] = None) -> FinalStatus:
        """compute_final_status() with this classifier's configured BAC precision."""
        return compute_final_status(
            verdict, confirmation_results, breathalyzer=breathalyzer, bac_epsilon=self.bac_epsilon
        )

    def _expected_substances(self, medications: List[Medication],
                             test_type) -> Tuple[FrozenSet[str], FrozenSet[str]]:
        """
        Union of expected codes, and the subset a critical medication expects.

        A code expected by several medications is critical if any one of
        them is required for confirmation.
        """
        # Unknown or missing panel: no scoping
        panel = get_panel_substances(test_type) if parse_test_type(test_type) is not None else None

        expected = set()
        critical = set()
        for med in medications:
            if not med.is_active:
                continue
            for code in med.detected_as_codes:
                if code == self.none_code:
                    continue
                # Panel does not screen for it: cannot be missing
                if panel is not None and code not in panel:
                    continue
                expected.add(code)
                if med.required_for_confirmation:
                    critical.add(code)

        return frozenset(expected), frozenset(critical)

    def _decide(self, detected: FrozenSet[str], expected: FrozenSet[str],
                has_unexpected_positive: bool, has_unexpected_negative: bool,
                has_critical_negative: bool) -> OutcomeKind:
        if not detected and not expected and not has_unexpected_positive:
            return OutcomeKind.NEGATIVE
        if not has_unexpected_positive and not has_unexpected_negative:
            return OutcomeKind.EXPECTED_POSITIVE
        if has_unexpected_positive and has_unexpected_negative:
            return OutcomeKind.MIXED_UNEXPECTED
        if has_unexpected_positive:
            return OutcomeKind.UNEXPECTED_POSITIVE
        if has_critical_negative:
            return OutcomeKind.UNEXPECTED_NEGATIVE_CRITICAL
        return OutcomeKind.UNEXPECTED_NEGATIVE_WARNING

    def _coerce_detected(self, detected_substances) -> FrozenSet[str]:
        if detected_substances is None:
            raise ClassificationInputError("detected_substances is required (use an empty list for none)")
        if isinstance(detected_substances, (str, bytes, Mapping)):
            raise ClassificationInputError(
                f"detected_substances must be a collection of codes, got {type(detected_substances).__name__}"
            )
        try:
            return normalize_substance_set(detected_substances, none_code=self.none_code)
        except TypeError as e:
            raise ClassificationInputError(f"detected_substances is not iterable: {e}") from e

    def _coerce_medications(self, medications) -> List[Medication]:
        if medications is None:
            raise ClassificationInputError("active_medications is required (use an empty list for none)")
        if isinstance(medications, (str, bytes, Mapping)):
            raise ClassificationInputError(
                f"active_medications must be a list, got {type(medications).__name__}"
            )

        result = []
        try:
            items = list(medications)
        except TypeError as e:
            raise ClassificationInputError(f"active_medications is not iterable: {e}") from e

        for item in items:
            if isinstance(item, Medication):
                result.append(item)
            elif isinstance(item, Mapping):
                result.append(Medication.from_dict(item))
            else:
                raise ClassificationInputError(
                    f"Unsupported medication entry of type {type(item).__name__}"
                )
        return result

    def _coerce_breathalyzer(self, breathalyzer) -> BreathalyzerReading:
        if breathalyzer is None:
            return BreathalyzerReading()
        if isinstance(breathalyzer, BreathalyzerReading):
            return breathalyzer
        if isinstance(breathalyzer, Mapping):
            bac = breathalyzer.get('result_bac', breathalyzer.get('resultBac'))
            try:
                bac = float(bac) if bac is not None else None
            except (TypeError, ValueError):
                logger.debug(f"Ignoring malformed breathalyzer result {bac!r}")
                bac = None
            return BreathalyzerReading(taken=bool(breathalyzer.get('taken')), result_bac=bac)
        raise ClassificationInputError(
            f"Unsupported breathalyzer value of type {type(breathalyzer).__name__}"
        )


# Module-level default classifier for convenience function
_default_classifier = None


def _get_classifier() -> ResultClassifier:
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = ResultClassifier()
    return _default_classifier


def classify(detected_substances: Iterable[str],
             active_medications: Iterable[Union[Medication, Mapping]],
             breathalyzer: Optional[BreathalyzerReading] = None,
             test_type=None) -> ClassificationVerdict:
    """Classify a screen result using the default configuration."""
    return _get_classifier().classify(detected_substances, active_medications, breathalyzer, test_type)

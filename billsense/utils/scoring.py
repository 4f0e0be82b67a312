"""
Selection and calibration functions for extraction results.

Selection picks one candidate from many; calibration folds the presence of
amount, date and company into the classifier's confidence.
"""

from typing import List, Optional

from .candidates import AmountCandidate, DateCandidate

__all__ = [
    'select_best_amount', 'select_due_date', 'calibrate_confidence',
    'CONFIDENCE_FLOOR', 'CONFIDENCE_CEILING',
]

CONFIDENCE_FLOOR = 0.1
CONFIDENCE_CEILING = 0.98

# Multipliers applied when a signal is missing
MISSING_AMOUNT_FACTOR = 0.8
MISSING_DATE_FACTOR = 0.9
MISSING_COMPANY_FACTOR = 0.85


def select_best_amount(candidates: List[AmountCandidate]) -> Optional[AmountCandidate]:
    """
    Select the largest valid amount.

    Bills list subtotals, taxes and fees before the total, and the total is
    the largest of them. On equal values the earliest match wins.

    Args:
        candidates: AmountCandidate objects for a single currency

    Returns:
        Largest candidate with a positive value, or None
    """
    best = None
    for candidate in candidates:
        if not candidate.is_valid:
            continue
        if best is None or candidate.numeric_value > best.numeric_value:
            best = candidate
    return best


def select_due_date(candidates: List[DateCandidate]) -> Optional[DateCandidate]:
    """
    Select the due date among date candidates (in match order).

    - First valid candidate near a due keyword wins
    - Otherwise a single valid candidate is unambiguous and wins
    - Otherwise nothing: several unanchored dates are not guessed between

    Args:
        candidates: DateCandidate objects in pattern/match order

    Returns:
        Selected candidate or None
    """
    valid = [candidate for candidate in candidates if candidate.is_valid]

    for candidate in valid:
        if candidate.near_keyword:
            return candidate

    if len(valid) == 1:
        return valid[0]

    return None


def calibrate_confidence(
    confidence: float,
    has_amount: bool,
    has_date: bool,
    has_company: bool
) -> float:
    """
    Discount classifier confidence for missing fields.

    Result is clamped to [0.1, 0.98]: never absolute certainty, never zero.

    Examples:
        >>> calibrate_confidence(1.0, True, True, True)
        0.98
        >>> round(calibrate_confidence(0.9, False, True, True), 2)
        0.72
    """
    calibrated = confidence

    if not has_amount:
        calibrated *= MISSING_AMOUNT_FACTOR
    if not has_date:
        calibrated *= MISSING_DATE_FACTOR
    if not has_company:
        calibrated *= MISSING_COMPANY_FACTOR

    return max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, calibrated))

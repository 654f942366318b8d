"""
Confidence scoring for payable/bank matches.

The matcher only asks a scorer for a number per strategy; swapping the
scorer changes the weights without touching the matching control flow.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..config import get_settings
from ..models import ConfidenceLevel


def clamp_confidence(value: float) -> int:
    """Round and clamp a confidence to an integer in [0, 100]."""
    return max(0, min(100, int(round(value))))


class ConfidenceScorer(ABC):
    """Interface for match confidence strategies."""

    @abstractmethod
    def identifier_score(self) -> int:
        ...

    @abstractmethod
    def value_date_score(self, date_diff_days: int) -> int:
        ...

    @abstractmethod
    def name_score(self, date_diff_days: int) -> int:
        ...


class LinearConfidenceScorer(ConfidenceScorer):
    """
    Linear penalties per day of distance.

    identifier:   95
    value + date: 90 same day, else 85 - 5 per day past the first (floored)
    name:         70 - 2 * min(days, cap)

    A debit posted one day after the due date still scores 85.
    """

    IDENTIFIER = 95
    VALUE_DATE_SAME_DAY = 90
    VALUE_DATE_BASE = 85
    VALUE_DATE_DAY_PENALTY = 5
    VALUE_DATE_GRACE_DAYS = 1
    NAME_BASE = 70
    NAME_DAY_PENALTY = 2

    def __init__(
        self,
        value_date_floor: Optional[int] = None,
        name_penalty_cap_days: Optional[int] = None,
    ):
        settings = get_settings()
        self.value_date_floor = (
            value_date_floor if value_date_floor is not None
            else settings.value_date_min_confidence
        )
        self.name_penalty_cap = (
            name_penalty_cap_days if name_penalty_cap_days is not None
            else settings.name_date_penalty_cap_days
        )

    def identifier_score(self) -> int:
        return clamp_confidence(self.IDENTIFIER)

    def value_date_score(self, date_diff_days: int) -> int:
        if date_diff_days == 0:
            return clamp_confidence(self.VALUE_DATE_SAME_DAY)
        late_days = max(0, date_diff_days - self.VALUE_DATE_GRACE_DAYS)
        score = self.VALUE_DATE_BASE - self.VALUE_DATE_DAY_PENALTY * late_days
        return clamp_confidence(max(self.value_date_floor, score))

    def name_score(self, date_diff_days: int) -> int:
        days = min(date_diff_days, self.name_penalty_cap)
        return clamp_confidence(self.NAME_BASE - self.NAME_DAY_PENALTY * days)


def confidence_level(confidence: int) -> Optional[ConfidenceLevel]:
    """UI band of a confidence; None below the low band (not surfaced)."""
    settings = get_settings()
    if confidence >= settings.confidence_high:
        return ConfidenceLevel.HIGH
    if confidence >= settings.confidence_medium:
        return ConfidenceLevel.MEDIUM
    if confidence >= settings.confidence_low:
        return ConfidenceLevel.LOW
    return None

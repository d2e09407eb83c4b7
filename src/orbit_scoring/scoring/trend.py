"""
Trend Comparator

Classifies each surgeon's composite against the previous period.
"""

from typing import Dict, Optional, Tuple

from orbit_scoring.models import Trend


def classify_trend(current: int, previous: Optional[int]) -> Trend:
    if previous is None or current == previous:
        return Trend.STABLE
    return Trend.UP if current > previous else Trend.DOWN


class TrendComparator:
    """
    Compares current composites with those of an independently scored
    previous period.

    Args:
        previous_composites: surgeon_id -> composite for the previous period
    """

    def __init__(self, previous_composites: Optional[Dict[str, int]] = None):
        self._previous = dict(previous_composites or {})

    @property
    def has_previous_period(self) -> bool:
        return bool(self._previous)

    def previous_composite(self, surgeon_id: str) -> Optional[int]:
        return self._previous.get(surgeon_id)

    def compare(self, surgeon_id: str, current: int) -> Tuple[Trend, Optional[int]]:
        """
        Returns:
            Tuple of (trend, previous composite or None)
        """
        previous = self.previous_composite(surgeon_id)
        return classify_trend(current, previous), previous

"""
Consistency Scorer

Pillar 2 (25%): coefficient of variation of case duration within each
procedure type. Lower variation is better.
"""

from typing import List

from orbit_scoring.models import CaseRecord
from orbit_scoring.scoring.cohort import CohortProvider, case_duration
from orbit_scoring.scoring.procedure_cohort import ProcedureCohortScorer
from orbit_scoring.scoring.statistics import coefficient_of_variation


class ConsistencyScorer(ProcedureCohortScorer):
    """Scores case-duration predictability (patient-in to patient-out CV)."""

    pillar_name = "consistency"
    lower_is_better = True
    value_precision = 3

    def case_values(self, cases: List[CaseRecord], cohort: CohortProvider) -> List[float]:
        durations = []
        for case in cases:
            duration = case_duration(case)
            if duration is not None and duration > 0:
                durations.append(duration)
        return durations

    def summarize(self, values: List[float]) -> float:
        return coefficient_of_variation(values)

    def skip_reason(self, cases: List[CaseRecord], values: List[float], min_cases: int) -> str:
        return f"Only {len(values)} valid durations (need {min_cases})"

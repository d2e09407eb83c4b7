"""
Profitability Scorer

Pillar 1 (30%): median margin per OR minute within each procedure type,
ranked against peers who perform the same procedure (higher is better)
and volume-weighted across the surgeon's case mix.
"""

from typing import List, Optional

from orbit_scoring.models import CaseRecord
from orbit_scoring.scoring.cohort import CohortProvider, case_duration
from orbit_scoring.scoring.procedure_cohort import ProcedureCohortScorer
from orbit_scoring.scoring.statistics import median


class ProfitabilityScorer(ProcedureCohortScorer):
    """
    Scores margin per OR minute (MPM).

    A case contributes only when it has a financial record with a profit
    (0 counts as break-even) and a positive patient-in to patient-out
    duration. The financial record's total_duration_minutes is ignored.
    """

    pillar_name = "profitability"
    lower_is_better = False
    value_precision = 2

    def margin_per_minute(self, case: CaseRecord, cohort: CohortProvider) -> Optional[float]:
        financial = cohort.financial_for(case.id)
        if financial is None or financial.profit is None:
            return None

        duration = case_duration(case)
        if duration is None or duration <= 0:
            return None

        return financial.profit / duration

    def case_values(self, cases: List[CaseRecord], cohort: CohortProvider) -> List[float]:
        values = []
        for case in cases:
            mpm = self.margin_per_minute(case, cohort)
            if mpm is not None:
                values.append(mpm)
        return values

    def summarize(self, values: List[float]) -> float:
        return median(values)

    def skip_reason(self, cases: List[CaseRecord], values: List[float], min_cases: int) -> str:
        return (
            f"Only {len(values)} cases with financials and duration "
            f"(need {min_cases}), {len(cases)} total"
        )

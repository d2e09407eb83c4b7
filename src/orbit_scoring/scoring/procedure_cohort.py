"""
Procedure Cohort Scoring

Shared machinery for the pillars that compare surgeons within a procedure
type (Profitability and Consistency): per-procedure metric, peer cohort
built from the same procedure, clamped percentile score, and a
volume-weighted blend across the surgeon's case mix.
"""

import logging
from typing import List, Optional, Tuple

from orbit_scoring.models import (
    CaseRecord,
    CohortPillarDiagnostics,
    ProcedureCohortDiagnostic,
)
from orbit_scoring.scoring.cohort import CohortProvider
from orbit_scoring.scoring.grouping import group_by_procedure
from orbit_scoring.scoring.statistics import (
    NEUTRAL_SCORE,
    cohort_percentile,
    cohort_score,
    median,
    round_half_up,
)

logger = logging.getLogger(__name__)


def volume_weighted_score(scores: List[Tuple[int, int]]) -> Optional[int]:
    """
    Blend (score, volume) pairs into one rounded score.

    Returns:
        Weighted score, or None if there is no volume
    """
    total_volume = sum(volume for _, volume in scores)
    if total_volume <= 0:
        return None
    return round_half_up(sum(score * volume for score, volume in scores) / total_volume)


class ProcedureCohortScorer:
    """
    Base class for procedure-cohort pillars.

    Subclasses define how a procedure's cases turn into metric values and
    how those values summarize into the single number that is ranked.
    """

    pillar_name = "procedure cohort"
    lower_is_better = False
    value_precision = 2

    def case_values(self, cases: List[CaseRecord], cohort: CohortProvider) -> List[float]:
        raise NotImplementedError

    def summarize(self, values: List[float]) -> float:
        raise NotImplementedError

    def skip_reason(self, cases: List[CaseRecord], values: List[float], min_cases: int) -> str:
        return f"Only {len(values)} valid cases (need {min_cases}), {len(cases)} total"

    def peer_values(
        self,
        surgeon_id: str,
        procedure_type_id: str,
        cohort: CohortProvider,
    ) -> List[float]:
        """Summarized metric of every peer meeting the procedure minimum."""
        min_cases = cohort.settings.min_procedure_cases
        values = []
        for peer_cases in cohort.peer_procedure_cases(surgeon_id, procedure_type_id):
            peer_metric = self.case_values(peer_cases, cohort)
            if len(peer_metric) >= min_cases:
                values.append(self.summarize(peer_metric))
        return values

    def score(
        self,
        surgeon_id: str,
        surgeon_cases: List[CaseRecord],
        cohort: CohortProvider,
    ) -> Tuple[int, CohortPillarDiagnostics]:
        """
        Score a surgeon on this pillar.

        Args:
            surgeon_id: Surgeon being scored
            surgeon_cases: That surgeon's cases in the period
            cohort: Peer population for the period

        Returns:
            Tuple of (pillar score 0-100, diagnostics)
        """
        min_cases = cohort.settings.min_procedure_cases
        diag = CohortPillarDiagnostics()
        weighted: List[Tuple[int, int]] = []

        for procedure_id, cases in group_by_procedure(surgeon_cases).items():
            procedure_name = cases[0].display_procedure
            values = self.case_values(cases, cohort)

            if len(values) < min_cases:
                diag.procedure_cohorts.append(ProcedureCohortDiagnostic(
                    procedure_id=procedure_id,
                    procedure_name=procedure_name,
                    valid_cases=len(values),
                    total_cases=len(cases),
                    skipped_reason=self.skip_reason(cases, values, min_cases),
                ))
                continue

            surgeon_value = self.summarize(values)
            peers = self.peer_values(surgeon_id, procedure_id, cohort)
            procedure_score = cohort_score(surgeon_value, peers, self.lower_is_better)
            weighted.append((procedure_score, len(values)))

            diag.procedure_cohorts.append(ProcedureCohortDiagnostic(
                procedure_id=procedure_id,
                procedure_name=procedure_name,
                surgeon_value=round(surgeon_value, self.value_precision),
                cohort_median=round(median(peers), self.value_precision),
                cohort_size=len(peers),
                percentile=round(cohort_percentile(surgeon_value, peers, self.lower_is_better), 1),
                valid_cases=len(values),
                total_cases=len(cases),
                score=procedure_score,
            ))

        final = volume_weighted_score(weighted)
        if final is None:
            diag.final_score = NEUTRAL_SCORE
            diag.method = "default (no valid procedure cohorts)"
            return NEUTRAL_SCORE, diag

        diag.final_score = final
        diag.method = (
            "single cohort" if len(weighted) == 1
            else f"volume-weighted across {len(weighted)} cohorts"
        )
        logger.debug(f"{self.pillar_name} for {surgeon_id}: {final} ({diag.method})")
        return final, diag

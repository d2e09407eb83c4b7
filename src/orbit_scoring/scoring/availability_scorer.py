"""
Availability Scorer

Pillar 4 (20%), two sub-metrics blended 50/50:
A. Prep-to-incision gap: graduated decay past the expected gap, ranked
   against peers (higher raw score is better)
B. Delay rate: share of cases carrying a delay flag, ranked against peers
   with enough volume (lower is better)
"""

import logging
from typing import List, Optional, Tuple

from orbit_scoring.models import AvailabilityDiagnostics, CaseRecord
from orbit_scoring.scoring.cohort import CohortProvider, prep_to_incision_gap
from orbit_scoring.scoring.statistics import (
    NEUTRAL_SCORE,
    cohort_score,
    graduated_case_score,
    mean,
    round_half_up,
)

logger = logging.getLogger(__name__)


class AvailabilityScorer:
    """Scores surgeon readiness once the patient is prepped."""

    # Minimum scorable gap cases for the surgeon and for each peer
    MIN_GAP_CASES = 3
    # Minimum total cases for a peer to join the delay-rate cohort
    MIN_DELAY_PEER_CASES = 5

    GAP_WEIGHT = 0.5
    DELAY_WEIGHT = 0.5

    def gap_case_scores(self, cases: List[CaseRecord], cohort: CohortProvider) -> List[float]:
        settings = cohort.settings
        scores = []
        for case in cases:
            gap = prep_to_incision_gap(case)
            if gap is None:
                continue
            minutes_over = max(0, gap - settings.waiting_on_surgeon_minutes)
            scores.append(graduated_case_score(minutes_over, settings.waiting_on_surgeon_floor_minutes))
        return scores

    def gap_raw_score(self, cases: List[CaseRecord], cohort: CohortProvider) -> Optional[float]:
        scores = self.gap_case_scores(cases, cohort)
        if len(scores) < self.MIN_GAP_CASES:
            return None
        return mean(scores) * 100

    def delayed_case_count(self, cases: List[CaseRecord], cohort: CohortProvider) -> int:
        return sum(1 for case in cases if cohort.is_delayed(case.id))

    def delay_rate(self, cases: List[CaseRecord], cohort: CohortProvider) -> float:
        if not cases:
            return 0.0
        return self.delayed_case_count(cases, cohort) / len(cases) * 100

    def peer_gap_scores(self, surgeon_id: str, cohort: CohortProvider) -> List[float]:
        raws = []
        for _, peer_cases in cohort.peers(surgeon_id):
            raw = self.gap_raw_score(peer_cases, cohort)
            if raw is not None:
                raws.append(raw)
        return raws

    def peer_delay_rates(self, surgeon_id: str, cohort: CohortProvider) -> List[float]:
        return [
            self.delay_rate(peer_cases, cohort)
            for _, peer_cases in cohort.peers(surgeon_id)
            if len(peer_cases) >= self.MIN_DELAY_PEER_CASES
        ]

    def score(
        self,
        surgeon_id: str,
        surgeon_cases: List[CaseRecord],
        cohort: CohortProvider,
    ) -> Tuple[int, AvailabilityDiagnostics]:
        """
        Score availability.

        Returns:
            Tuple of (pillar score 0-100, diagnostics)
        """
        diag = AvailabilityDiagnostics()

        # A. Prep-to-incision gap
        gap_scores = self.gap_case_scores(surgeon_cases, cohort)
        gap_pillar_score = NEUTRAL_SCORE
        if len(gap_scores) >= self.MIN_GAP_CASES:
            gap_raw = mean(gap_scores) * 100
            gap_pillar_score = cohort_score(gap_raw, self.peer_gap_scores(surgeon_id, cohort))

        # B. Delay rate
        delay_rate = self.delay_rate(surgeon_cases, cohort)
        delay_pillar_score = cohort_score(
            delay_rate,
            self.peer_delay_rates(surgeon_id, cohort),
            lower_is_better=True,
        )

        final = round_half_up(
            gap_pillar_score * self.GAP_WEIGHT + delay_pillar_score * self.DELAY_WEIGHT
        )

        diag.gap_cases_scored = len(gap_scores)
        diag.avg_gap_score = round(mean(gap_scores), 3)
        diag.delay_rate = round(delay_rate, 1)
        diag.delayed_cases = self.delayed_case_count(surgeon_cases, cohort)
        diag.gap_pillar_score = gap_pillar_score
        diag.delay_pillar_score = delay_pillar_score
        diag.final_score = final

        logger.debug(
            f"availability for {surgeon_id}: {final} "
            f"(gap {gap_pillar_score}, delay {delay_pillar_score})"
        )
        return final, diag

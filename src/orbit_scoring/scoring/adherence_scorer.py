"""
Schedule Adherence Scorer

Pillar 3 (25%): every case with a scheduled start and a recorded actual
start is scored 0.0-1.0 by graduated linear decay past the grace period.
First-case-on-time is just the first case of the day here, not a separate
metric. The surgeon's mean case score (x100) is ranked against peers.
"""

import logging
from typing import List, Optional, Tuple

from orbit_scoring.models import AdherenceDiagnostics, CaseRecord, StartMilestone
from orbit_scoring.scoring.cohort import CohortProvider
from orbit_scoring.scoring.statistics import (
    NEUTRAL_SCORE,
    cohort_score,
    graduated_case_score,
    local_minutes,
    mean,
    time_to_minutes,
)

logger = logging.getLogger(__name__)


class ScheduleAdherenceScorer:
    """Scores on-time starts against the facility grace and floor settings."""

    def case_scores(self, cases: List[CaseRecord], cohort: CohortProvider) -> List[float]:
        """Per-case graduated scores for every scorable case."""
        settings = cohort.settings
        scores = []

        for case in cases:
            if settings.start_time_milestone == StartMilestone.INCISION:
                actual_start = case.incision_at
            else:
                actual_start = case.patient_in_at

            if actual_start is None or case.start_time is None:
                continue

            delta = local_minutes(actual_start, cohort.tz) - time_to_minutes(case.start_time)
            minutes_over = max(0, delta - settings.start_time_grace_minutes)
            scores.append(graduated_case_score(minutes_over, settings.start_time_floor_minutes))

        return scores

    def raw_score(self, cases: List[CaseRecord], cohort: CohortProvider) -> Optional[float]:
        scores = self.case_scores(cases, cohort)
        if not scores:
            return None
        return mean(scores) * 100

    def peer_raw_scores(self, surgeon_id: str, cohort: CohortProvider) -> List[float]:
        raws = []
        for _, peer_cases in cohort.peers(surgeon_id):
            raw = self.raw_score(peer_cases, cohort)
            if raw is not None:
                raws.append(raw)
        return raws

    def score(
        self,
        surgeon_id: str,
        surgeon_cases: List[CaseRecord],
        cohort: CohortProvider,
    ) -> Tuple[int, AdherenceDiagnostics]:
        """
        Score schedule adherence.

        Returns:
            Tuple of (pillar score 0-100, diagnostics)
        """
        diag = AdherenceDiagnostics()
        case_scores = self.case_scores(surgeon_cases, cohort)

        if not case_scores:
            diag.final_score = NEUTRAL_SCORE
            return NEUTRAL_SCORE, diag

        raw = mean(case_scores) * 100
        peers = self.peer_raw_scores(surgeon_id, cohort)
        final = cohort_score(raw, peers)

        diag.total_cases_scored = len(case_scores)
        diag.avg_case_score = round(mean(case_scores), 3)
        diag.raw_score = round(raw, 1)
        diag.cases_within_grace = sum(1 for s in case_scores if s == 1.0)
        diag.cases_at_zero = sum(1 for s in case_scores if s == 0.0)
        diag.cohort_size = len(peers)
        diag.final_score = final

        logger.debug(f"schedule adherence for {surgeon_id}: {final} (raw {raw:.1f}, {len(peers)} peers)")
        return final, diag

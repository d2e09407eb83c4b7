"""
Cohort Provider

Holds one period's read-only case population and answers the questions
every pillar asks about it: which peers exist, which of their cases belong
to a procedure, which financial record and delay flags attach to a case.

A provider is built once per scoring pass and passed explicitly into each
pillar scorer; nothing about the population lives at module level.
"""

from datetime import tzinfo
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from orbit_scoring.models import (
    CaseRecord,
    FinancialRecord,
    FlagRecord,
    ScorecardSettings,
)
from orbit_scoring.scoring.grouping import group_by_surgeon
from orbit_scoring.scoring.statistics import minutes_between


def case_duration(case: CaseRecord) -> Optional[float]:
    """Patient-in to patient-out minutes, None if missing or out of order."""
    return minutes_between(case.patient_in_at, case.patient_out_at)


def prep_to_incision_gap(case: CaseRecord) -> Optional[float]:
    return minutes_between(case.prep_drape_complete_at, case.incision_at)


class CohortProvider:
    """
    Peer population for a single scoring period.

    Args:
        cases: Every case in the period (eligible or not)
        financials: Financial records joined on case_id
        flags: Flag records joined on case_id
        settings: Facility analytics settings
        tz: Facility timezone for local-day conversions
        min_case_threshold: Eligibility threshold, used for peer gating
    """

    def __init__(
        self,
        cases: Iterable[CaseRecord],
        financials: Iterable[FinancialRecord],
        flags: Iterable[FlagRecord],
        settings: ScorecardSettings,
        tz: tzinfo,
        min_case_threshold: int,
    ):
        self._by_surgeon = group_by_surgeon(cases)
        self._financials: Dict[str, FinancialRecord] = {f.case_id: f for f in financials}
        self._delayed_case_ids: Set[str] = {f.case_id for f in flags if f.is_delay}
        self.settings = settings
        self.tz = tz
        self.min_case_threshold = min_case_threshold

    @property
    def surgeon_ids(self) -> List[str]:
        return list(self._by_surgeon)

    @property
    def case_count(self) -> int:
        return sum(len(cases) for cases in self._by_surgeon.values())

    def cases_for(self, surgeon_id: str) -> List[CaseRecord]:
        return self._by_surgeon.get(surgeon_id, [])

    def is_eligible(self, surgeon_id: str) -> bool:
        return len(self.cases_for(surgeon_id)) >= self.min_case_threshold

    def peers(self, surgeon_id: str) -> Iterator[Tuple[str, List[CaseRecord]]]:
        """
        Yield (peer_id, cases) for every other surgeon in the population.

        With gate_peer_cohorts set, peers below the eligibility threshold
        are left out.
        """
        gated = self.settings.gate_peer_cohorts
        for peer_id, cases in self._by_surgeon.items():
            if peer_id == surgeon_id:
                continue
            if gated and len(cases) < self.min_case_threshold:
                continue
            yield peer_id, cases

    def peer_procedure_cases(
        self,
        surgeon_id: str,
        procedure_type_id: str,
    ) -> Iterator[List[CaseRecord]]:
        """Yield each peer's cases of one procedure type (peers without any are skipped)."""
        for _, cases in self.peers(surgeon_id):
            matching = [c for c in cases if c.procedure_type_id == procedure_type_id]
            if matching:
                yield matching

    def financial_for(self, case_id: str) -> Optional[FinancialRecord]:
        return self._financials.get(case_id)

    def is_delayed(self, case_id: str) -> bool:
        return case_id in self._delayed_case_ids

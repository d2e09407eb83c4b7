"""
Scoring Engine

Main orchestrator for ORbit scores: applies the eligibility gate, runs the
four pillar scorers for each eligible surgeon against the whole period
population, derives composite, grade and trend, and returns scorecards
sorted by composite.
"""

import logging
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional, Tuple

from orbit_scoring.models import (
    CaseRecord,
    FinancialRecord,
    FlagRecord,
    PillarDiagnostics,
    PillarScores,
    Scorecard,
    ScorecardInput,
    ScorecardSettings,
)
from orbit_scoring.scoring.adherence_scorer import ScheduleAdherenceScorer
from orbit_scoring.scoring.availability_scorer import AvailabilityScorer
from orbit_scoring.scoring.cohort import CohortProvider
from orbit_scoring.scoring.composite import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    compute_composite,
    get_grade,
)
from orbit_scoring.scoring.consistency_scorer import ConsistencyScorer
from orbit_scoring.scoring.grouping import detect_flip_room, procedure_breakdown
from orbit_scoring.scoring.improvement_plan import (
    ImprovementConfig,
    ImprovementPlan,
    ImprovementPlanGenerator,
)
from orbit_scoring.scoring.profitability_scorer import ProfitabilityScorer
from orbit_scoring.scoring.trend import TrendComparator
from orbit_scoring.utils.config import ConfigurationError, get_settings, resolve_timezone

logger = logging.getLogger(__name__)


class ScoringEngine:
    """
    Main scoring engine that combines all pillar scorers.

    Orchestrates:
    - ProfitabilityScorer: Margin per OR minute within procedure cohorts
    - ConsistencyScorer: Case duration CV within procedure cohorts
    - ScheduleAdherenceScorer: Graduated on-time starts
    - AvailabilityScorer: Prep-to-incision gap and delay rate

    The engine keeps no state between calls; every call is a pure function
    of its input.
    """

    def __init__(
        self,
        profitability_scorer: Optional[ProfitabilityScorer] = None,
        consistency_scorer: Optional[ConsistencyScorer] = None,
        adherence_scorer: Optional[ScheduleAdherenceScorer] = None,
        availability_scorer: Optional[AvailabilityScorer] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        min_case_threshold: Optional[int] = None,
    ):
        """
        Initialize the scoring engine.

        Args:
            profitability_scorer: Pillar 1 scorer (created if not provided)
            consistency_scorer: Pillar 2 scorer (created if not provided)
            adherence_scorer: Pillar 3 scorer (created if not provided)
            availability_scorer: Pillar 4 scorer (created if not provided)
            weights: Pillar weights for the composite
            min_case_threshold: Minimum period cases for a surgeon to be listed
                (defaults to the configured min_case_threshold)
        """
        self._profitability_scorer = profitability_scorer or ProfitabilityScorer()
        self._consistency_scorer = consistency_scorer or ConsistencyScorer()
        self._adherence_scorer = adherence_scorer or ScheduleAdherenceScorer()
        self._availability_scorer = availability_scorer or AvailabilityScorer()
        self.weights = weights
        if min_case_threshold is None:
            min_case_threshold = get_settings().min_case_threshold
        self.min_case_threshold = min_case_threshold

    @property
    def weights(self) -> ScoringWeights:
        """Get current pillar weights."""
        return self._weights

    @weights.setter
    def weights(self, value: ScoringWeights) -> None:
        """Set pillar weights."""
        if not value.validate():
            raise ConfigurationError("Pillar weights must sum to 1.0")
        self._weights = value

    def resolve_settings(self, settings: Optional[ScorecardSettings] = None) -> ScorecardSettings:
        """Caller-supplied facility settings, else the configured ORBIT_* defaults."""
        if settings is not None:
            return settings
        return get_settings().scorecard_settings()

    def build_cohort(
        self,
        cases: Iterable[CaseRecord],
        financials: Iterable[FinancialRecord],
        flags: Iterable[FlagRecord],
        settings: ScorecardSettings,
        tz: tzinfo,
    ) -> CohortProvider:
        return CohortProvider(
            cases=cases,
            financials=financials,
            flags=flags,
            settings=settings,
            tz=tz,
            min_case_threshold=self.min_case_threshold,
        )

    def score_pillars(
        self,
        surgeon_id: str,
        cohort: CohortProvider,
    ) -> Tuple[PillarScores, PillarDiagnostics]:
        """
        Run all four pillars for one surgeon.

        Args:
            surgeon_id: Surgeon to score
            cohort: Period population, used as the peer base

        Returns:
            Tuple of (pillar scores, diagnostics)
        """
        surgeon_cases = cohort.cases_for(surgeon_id)

        profitability, profitability_diag = self._profitability_scorer.score(surgeon_id, surgeon_cases, cohort)
        consistency, consistency_diag = self._consistency_scorer.score(surgeon_id, surgeon_cases, cohort)
        adherence, adherence_diag = self._adherence_scorer.score(surgeon_id, surgeon_cases, cohort)
        availability, availability_diag = self._availability_scorer.score(surgeon_id, surgeon_cases, cohort)

        pillars = PillarScores(
            profitability=profitability,
            consistency=consistency,
            sched_adherence=adherence,
            availability=availability,
        )
        diagnostics = PillarDiagnostics(
            profitability=profitability_diag,
            consistency=consistency_diag,
            sched_adherence=adherence_diag,
            availability=availability_diag,
        )
        return pillars, diagnostics

    def period_composites(self, cohort: CohortProvider) -> Dict[str, int]:
        """Composite per eligible surgeon for one period."""
        composites = {}
        for surgeon_id in cohort.surgeon_ids:
            if not cohort.is_eligible(surgeon_id):
                continue
            pillars, _ = self.score_pillars(surgeon_id, cohort)
            composites[surgeon_id] = compute_composite(pillars, self._weights)
        return composites

    def build_scorecard(
        self,
        surgeon_id: str,
        cohort: CohortProvider,
        trends: TrendComparator,
        include_diagnostics: bool = False,
    ) -> Scorecard:
        surgeon_cases = cohort.cases_for(surgeon_id)
        first = surgeon_cases[0]

        pillars, diagnostics = self.score_pillars(surgeon_id, cohort)
        composite = compute_composite(pillars, self._weights)
        trend, previous = trends.compare(surgeon_id, composite)
        breakdown = procedure_breakdown(surgeon_cases)

        return Scorecard(
            surgeon_id=surgeon_id,
            surgeon_name=f"Dr. {first.surgeon_last_name}".strip(),
            first_name=first.surgeon_first_name,
            last_name=first.surgeon_last_name,
            case_count=len(surgeon_cases),
            procedures=[p.name for p in breakdown],
            procedure_breakdown=breakdown,
            flip_room=detect_flip_room(surgeon_cases),
            pillars=pillars,
            composite=composite,
            grade=get_grade(composite),
            trend=trend,
            previous_composite=previous,
            diagnostics=diagnostics if include_diagnostics else None,
        )

    def calculate_scores(self, scorecard_input: ScorecardInput) -> List[Scorecard]:
        """
        Score every eligible surgeon in the period.

        Args:
            scorecard_input: Cases, financials, flags, settings and optional
                previous-period data

        Returns:
            Scorecards sorted by composite, highest first

        Raises:
            ConfigurationError: If the facility timezone is unknown
        """
        app_settings = get_settings()
        tz = resolve_timezone(scorecard_input.timezone or app_settings.default_timezone)
        settings = self.resolve_settings(scorecard_input.settings)
        include_diagnostics = scorecard_input.enable_diagnostics or app_settings.enable_diagnostics

        # Previous period is scored against its own population only
        previous_composites: Dict[str, int] = {}
        if scorecard_input.has_previous_period:
            previous_cohort = self.build_cohort(
                scorecard_input.previous_period_cases or [],
                scorecard_input.previous_period_financials or [],
                scorecard_input.previous_period_flags or [],
                settings,
                tz,
            )
            previous_composites = self.period_composites(previous_cohort)
            logger.debug(f"Previous period: {len(previous_composites)} surgeons scored")

        trends = TrendComparator(previous_composites)
        cohort = self.build_cohort(
            scorecard_input.cases,
            scorecard_input.financials,
            scorecard_input.flags,
            settings,
            tz,
        )

        scorecards = []
        omitted = 0
        for surgeon_id in cohort.surgeon_ids:
            if not cohort.is_eligible(surgeon_id):
                omitted += 1
                continue
            scorecards.append(self.build_scorecard(surgeon_id, cohort, trends, include_diagnostics))

        scorecards.sort(key=lambda s: s.composite, reverse=True)

        logger.info(
            f"Scored {len(scorecards)} surgeons from {cohort.case_count} cases "
            f"({omitted} below {self.min_case_threshold}-case threshold)"
        )
        return scorecards

    def improvement_plan(
        self,
        scorecard: Scorecard,
        settings: Optional[ScorecardSettings] = None,
        config: Optional[ImprovementConfig] = None,
    ) -> ImprovementPlan:
        """
        Build an improvement plan for a scorecard produced by this engine.

        Impacts and the projected composite use this engine's weights.
        """
        generator = ImprovementPlanGenerator(
            self.resolve_settings(settings),
            config=config,
            weights=self._weights,
        )
        return generator.generate(scorecard)


def calculate_orbit_scores(
    scorecard_input: ScorecardInput,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> List[Scorecard]:
    """Score a period with a default-wired engine."""
    return ScoringEngine(weights=weights).calculate_scores(scorecard_input)

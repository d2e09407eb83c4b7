"""
Tests for the improvement plan generator.

Scorecards come from the real engine so diagnostics match what a caller
would pass in.
"""

import pytest

from orbit_scoring import (
    ScorecardInput,
    ScorecardSettings,
    ScoringEngine,
    ScoringWeights,
    calculate_orbit_scores,
    generate_improvement_plan,
)
from orbit_scoring.scoring.improvement_plan import ImprovementConfig, ImprovementPlanGenerator
from conftest import FACILITY_TZ_NAME, make_cases, make_delay_flags


def score(cases, **kwargs):
    scorecards = calculate_orbit_scores(ScorecardInput(
        cases=cases,
        timezone=FACILITY_TZ_NAME,
        enable_diagnostics=True,
        **kwargs,
    ))
    return {c.surgeon_id: c for c in scorecards}


@pytest.fixture
def late_starter():
    """Baker starts 13 minutes late against an on-time peer (composite 70)."""
    cards = score(make_cases("adams", 15) + make_cases("baker", 15, start_delay=13))
    return cards["baker"]


class TestImprovementPlan:
    def test_weak_pillars_get_recommendations(self, late_starter):
        plan = generate_improvement_plan(late_starter, ScorecardSettings())

        assert [r.pillar for r in plan.recommendations] == ["sched_adherence", "profitability"]
        assert [r.priority for r in plan.recommendations] == [1, 2]

    def test_targets_and_impact(self, late_starter):
        plan = generate_improvement_plan(late_starter, ScorecardSettings())
        adherence, profitability = plan.recommendations

        assert (adherence.current_score, adherence.target_score, adherence.composite_impact) == (40, 65, 6)
        assert (profitability.current_score, profitability.target_score, profitability.composite_impact) == (50, 65, 5)

    def test_adherence_finding_uses_diagnostics(self, late_starter):
        adherence = generate_improvement_plan(late_starter, ScorecardSettings()).recommendations[0]

        assert adherence.headline == "Starting ~10 min late on average (0 cases severely late)"
        # (10 - 7) min per case over 15 cases x 4 periods
        assert adherence.projected_minutes_saved == 180
        assert adherence.projected_annual_hours == 3.0
        assert adherence.projected_annual_dollars == 10800

    def test_profitability_without_financials_falls_back(self, late_starter):
        profitability = generate_improvement_plan(late_starter, ScorecardSettings()).recommendations[1]

        assert profitability.headline.startswith("Profitability at 50")
        assert profitability.projected_minutes_saved == 120

    def test_strengths(self, late_starter):
        plan = generate_improvement_plan(late_starter, ScorecardSettings())

        assert [s.pillar_label for s in plan.strengths] == ["Consistency", "Availability"]
        assert plan.strengths[0].message == "Top-tier consistency, a model for peers"

    def test_projection(self, late_starter):
        plan = generate_improvement_plan(late_starter, ScorecardSettings())

        assert plan.current_composite == 70
        assert plan.current_grade.letter == "C"
        assert plan.projected_composite == 81
        assert plan.projected_grade.letter == "B"
        assert plan.total_projected_hours == 5.0
        assert plan.total_projected_dollars == 18000

    def test_without_diagnostics(self, late_starter):
        bare = late_starter.model_copy(update={"diagnostics": None})
        plan = generate_improvement_plan(bare, ScorecardSettings())

        assert all("below the facility target" in r.headline for r in plan.recommendations)
        assert [r.composite_impact for r in plan.recommendations] == [6, 5]

    def test_availability_finding(self):
        cases = make_cases("adams", 15) + make_cases("baker", 15, prep_gap=8)
        flags = make_delay_flags(cases[15:18])
        baker = score(cases, flags=flags)["baker"]

        assert baker.pillars.availability == 40
        plan = generate_improvement_plan(baker, ScorecardSettings())
        availability = next(r for r in plan.recommendations if r.pillar == "availability")
        assert availability.headline == "OR team waiting ~5 min per case for surgeon"

    def test_strong_surgeon_has_no_recommendations(self):
        adams = score(make_cases("adams", 15) + make_cases("baker", 15, start_delay=13))["adams"]
        plan = generate_improvement_plan(adams, ScorecardSettings(), ImprovementConfig(improvement_threshold=50))

        assert plan.recommendations == []
        assert plan.projected_composite == adams.composite


class TestCustomWeights:
    """Plans use the weights the scorecard composite was computed with."""

    WEIGHTS = ScoringWeights(profitability=0.10, consistency=0.20, sched_adherence=0.50, availability=0.20)

    @pytest.fixture
    def engine(self):
        return ScoringEngine(weights=self.WEIGHTS)

    @pytest.fixture
    def weighted_late_starter(self, engine):
        cases = make_cases("adams", 15) + make_cases("baker", 15, start_delay=13)
        scorecards = engine.calculate_scores(ScorecardInput(
            cases=cases,
            timezone=FACILITY_TZ_NAME,
            enable_diagnostics=True,
        ))
        return next(c for c in scorecards if c.surgeon_id == "baker")

    def test_engine_plan_matches_engine_composite(self, engine, weighted_late_starter):
        assert weighted_late_starter.composite == 65

        plan = engine.improvement_plan(weighted_late_starter)

        assert plan.current_composite == 65
        assert [(r.pillar, r.composite_impact) for r in plan.recommendations] == [
            ("sched_adherence", 13),
            ("profitability", 2),
        ]
        assert plan.projected_composite == 79
        assert plan.projected_grade.letter == "C"

    def test_generator_accepts_weights(self, weighted_late_starter):
        plan = generate_improvement_plan(weighted_late_starter, ScorecardSettings(), weights=self.WEIGHTS)
        assert plan.projected_composite == 79

    def test_default_weights_differ(self, weighted_late_starter):
        plan = generate_improvement_plan(weighted_late_starter, ScorecardSettings())
        assert plan.projected_composite == 81


class TestImprovementConfig:
    def test_target_for(self):
        generator = ImprovementPlanGenerator(ScorecardSettings())
        assert generator.target_for(60) == 75
        assert generator.target_for(55) == 75
        assert generator.target_for(54) == 65

    def test_cost_per_minute(self, late_starter):
        config = ImprovementConfig(or_cost_per_minute=30)
        adherence = generate_improvement_plan(late_starter, ScorecardSettings(), config).recommendations[0]
        assert adherence.projected_annual_dollars == 5400

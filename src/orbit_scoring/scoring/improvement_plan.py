"""
Improvement Plan Generator

Turns a scorecard into an actionable plan: for each pillar below the
improvement threshold, a data-driven insight, concrete actions, and a
projected annual time and dollar impact. Pillars that are already strong
are listed as strengths.

Plans are richest when the scorecard carries diagnostics; without them
each weak pillar gets a generic recommendation.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field

from orbit_scoring.models import (
    GradeInfo,
    PillarScores,
    ProcedureCohortDiagnostic,
    Scorecard,
    ScorecardSettings,
)
from orbit_scoring.scoring.composite import (
    DEFAULT_WEIGHTS,
    PILLARS,
    PillarDefinition,
    ScoringWeights,
    compute_composite,
    get_grade,
)
from orbit_scoring.scoring.statistics import round_half_up

logger = logging.getLogger(__name__)

# Assumed OR minutes per case when translating per-minute figures
TYPICAL_CASE_MINUTES = 90


@dataclass
class ImprovementConfig:
    or_cost_per_minute: float = 60.0
    annual_case_multiplier: int = 4      # scoring periods per year (4 = quarterly)
    improvement_threshold: int = 65      # pillars below this get recommendations
    strength_threshold: int = 75
    top_tier_threshold: int = 85


class ImprovementRecommendation(BaseModel):
    pillar: str
    pillar_label: str
    pillar_color: str
    priority: int = Field(0, description="1 = largest composite impact")
    current_score: int
    target_score: int
    composite_impact: int

    headline: str
    insight: str
    actions: List[str] = Field(default_factory=list)

    projected_minutes_saved: int = 0
    projected_annual_hours: float = 0.0
    projected_annual_dollars: int = 0


class PillarStrength(BaseModel):
    pillar_label: str
    score: int
    message: str


class ImprovementPlan(BaseModel):
    surgeon_name: str
    current_composite: int
    current_grade: GradeInfo
    projected_composite: int
    projected_grade: GradeInfo
    total_projected_hours: float = 0.0
    total_projected_dollars: int = 0
    recommendations: List[ImprovementRecommendation] = Field(default_factory=list)
    strengths: List[PillarStrength] = Field(default_factory=list)


@dataclass
class _Finding:
    headline: str
    insight: str
    actions: List[str]
    projected_minutes_saved: int


def _scored_cohorts(rows: List[ProcedureCohortDiagnostic]) -> List[ProcedureCohortDiagnostic]:
    return [r for r in rows if r.skipped_reason is None and r.cohort_size > 0]


class ImprovementPlanGenerator:
    """
    Builds improvement plans from scorecards.

    Args:
        settings: Facility settings the scorecard was computed with
        config: Thresholds and cost assumptions
        weights: Pillar weights the scorecard composite was computed with
    """

    def __init__(
        self,
        settings: ScorecardSettings,
        config: Optional[ImprovementConfig] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ):
        self.settings = settings
        self.config = config or ImprovementConfig()
        self.weights = weights

    def target_for(self, score: int) -> int:
        """Aim for the strength threshold when close, else the improvement threshold."""
        if score >= 55:
            return self.config.strength_threshold
        return self.config.improvement_threshold

    def _profitability(self, scorecard: Scorecard) -> Optional[_Finding]:
        diag = scorecard.diagnostics
        cohorts = _scored_cohorts(diag.profitability.procedure_cohorts) if diag else []
        if not cohorts:
            return None

        worst = min(cohorts, key=lambda c: c.score)
        mpm_gap = worst.cohort_median - worst.surgeon_value

        if mpm_gap > 0:
            headline = f"${mpm_gap:.0f}/min below peers on {worst.procedure_name}"
        else:
            headline = "Close to peer median, small optimizations add up"

        if worst.surgeon_value > 0:
            detail = (
                "This suggests longer OR times are diluting per-minute revenue."
                if mpm_gap > 5
                else "The gap is modest, so focus on consistency to maximize scheduling."
            )
            insight = (
                f"Your {worst.procedure_name} cases generate ${worst.surgeon_value:.2f}/min "
                f"vs the peer median of ${worst.cohort_median:.2f}/min. {detail}"
            )
        else:
            insight = (
                f"Your {worst.procedure_name} cases are operating at a loss "
                f"(${worst.surgeon_value:.2f}/min). Reducing OR time is the most direct path to profitability."
            )

        actions = [
            "Review case setup and equipment positioning protocols to reduce non-cutting time",
            "Identify the 10% longest cases and look for common patterns (equipment, team, time of day)",
            "Work with the OR coordinator to ensure preferred instrument trays are pre-staged",
        ]
        if mpm_gap > 10:
            actions.append(
                "Consider a focused OR time reduction initiative targeting 10-15 fewer minutes per case"
            )

        cohort_cases = worst.valid_cases * self.config.annual_case_multiplier
        minutes = round((mpm_gap * 0.5 if mpm_gap > 0 else 2) * cohort_cases)
        return _Finding(headline, insight, actions, minutes)

    def _consistency(self, scorecard: Scorecard) -> Optional[_Finding]:
        diag = scorecard.diagnostics
        cohorts = _scored_cohorts(diag.consistency.procedure_cohorts) if diag else []
        if not cohorts:
            return None

        worst = max(cohorts, key=lambda c: c.surgeon_value)
        variability = round(worst.surgeon_value * TYPICAL_CASE_MINUTES)
        peer_variability = round(worst.cohort_median * TYPICAL_CASE_MINUTES)

        headline = (
            f"±{variability} min variability on {worst.procedure_name} "
            f"(peers: ±{peer_variability} min)"
        )
        insight = (
            f"Your {worst.procedure_name} CV is {worst.surgeon_value * 100:.1f}% vs the peer median of "
            f"{worst.cohort_median * 100:.1f}%. Case durations vary by roughly ±{variability} minutes "
            f"around your average, making it harder for schedulers to plan accurately."
        )
        actions = [
            "Request consistent OR team assignments, since familiar teams reduce variability",
            "Standardize your pre-incision checklist to eliminate variable setup time",
            "Track cases that run 20%+ over your average and identify the root cause",
            "Give the scheduler an expected duration per case rather than relying on defaults",
        ]

        cohort_cases = worst.valid_cases * self.config.annual_case_multiplier
        excess = max(0, variability - peer_variability)
        return _Finding(headline, insight, actions, round(excess * 0.5 * cohort_cases))

    def _sched_adherence(self, scorecard: Scorecard, target: int) -> Optional[_Finding]:
        diag = scorecard.diagnostics
        if diag is None or diag.sched_adherence.total_cases_scored == 0:
            return None

        adherence = diag.sched_adherence
        floor = self.settings.start_time_floor_minutes
        grace = self.settings.start_time_grace_minutes
        annual_cases = scorecard.case_count * self.config.annual_case_multiplier

        # A case score of x means (1 - x) * floor minutes past grace
        avg_minutes_late = round((1 - adherence.avg_case_score) * floor)
        target_minutes_late = round((1 - target / 100) * floor)
        zero_share = round(adherence.cases_at_zero / adherence.total_cases_scored * 100)

        headline = (
            f"Starting ~{avg_minutes_late} min late on average "
            f"({adherence.cases_at_zero} cases severely late)"
        )
        insight = (
            f"Your average on-time score is {round(adherence.avg_case_score * 100)}% across "
            f"{adherence.total_cases_scored} cases. {adherence.cases_at_zero} cases scored zero "
            f"({zero_share}%), meaning they started {floor:g}+ minutes past grace. Late starts "
            f"cascade through the schedule, pushing every subsequent case later."
        )
        actions = [
            f"Arrive to pre-op {grace + 5:g} minutes before scheduled start to finish assessments within the grace window",
            (
                f"Investigate the {adherence.cases_at_zero} severely late cases for clustering by day, room, or case position"
                if adherence.cases_at_zero > 3
                else "Maintain awareness of the scheduled start time for each case position"
            ),
            "Coordinate with the OR front desk to receive 15-minute pre-start alerts",
            "For first cases of the day, verify that pre-op assessment is complete before scheduled OR time",
        ]

        saved_per_case = max(0, avg_minutes_late - target_minutes_late)
        return _Finding(headline, insight, actions, saved_per_case * annual_cases)

    def _availability(self, scorecard: Scorecard, target: int) -> Optional[_Finding]:
        diag = scorecard.diagnostics
        if diag is None:
            return None

        availability = diag.availability
        floor = self.settings.waiting_on_surgeon_floor_minutes
        expected_gap = self.settings.waiting_on_surgeon_minutes
        annual_cases = scorecard.case_count * self.config.annual_case_multiplier

        avg_excess_gap = 0
        if availability.gap_cases_scored > 0:
            avg_excess_gap = round((1 - availability.avg_gap_score) * floor)

        if avg_excess_gap > 0:
            headline = f"OR team waiting ~{avg_excess_gap} min per case for surgeon"
            insight = (
                f"Your average prep-to-incision gap score is {round(availability.avg_gap_score * 100)}% "
                f"across {availability.gap_cases_scored} cases. The team completes patient prep and "
                f"waits approximately {avg_excess_gap} minutes for you beyond the expected "
                f"{expected_gap:g}-minute window, which is idle OR time with full staff standing by."
            )
        elif availability.delay_rate > 0:
            headline = f"{availability.delay_rate:.0f}% of cases have delay flags"
            insight = (
                f"Your delay rate of {availability.delay_rate:.1f}% indicates delays are "
                f"impacting the schedule."
            )
        else:
            return None

        actions = [
            "Scrub in during patient prep and be present in the OR before draping is complete",
            f"Target being gowned and gloved within {expected_gap:g} minutes of prep completion",
            "Use the callback system to time your arrival precisely with prep completion",
            "For flip-room setups, transition to the next room immediately after closing",
        ]

        target_excess_gap = round((1 - target / 100) * floor)
        saved_per_case = max(0, avg_excess_gap - target_excess_gap)
        return _Finding(headline, insight, actions, saved_per_case * annual_cases)

    def _fallback(self, pillar: PillarDefinition, score: int, annual_cases: int) -> _Finding:
        threshold = self.config.improvement_threshold
        return _Finding(
            headline=f"{pillar.label} at {score}, below the facility target of {threshold}",
            insight=(
                "This pillar is scoring below the facility target. Review the detailed "
                "diagnostics for specific areas to address."
            ),
            actions=[
                "Review pillar diagnostics with your OR director",
                "Identify the 2-3 cases that scored lowest",
            ],
            # 2 min/case
            projected_minutes_saved=round(annual_cases * 2),
        )

    def _finding_for(self, pillar: PillarDefinition, scorecard: Scorecard, target: int) -> Optional[_Finding]:
        if pillar.key == "profitability":
            return self._profitability(scorecard)
        if pillar.key == "consistency":
            return self._consistency(scorecard)
        if pillar.key == "sched_adherence":
            return self._sched_adherence(scorecard, target)
        if pillar.key == "availability":
            return self._availability(scorecard, target)
        return None

    def generate(self, scorecard: Scorecard) -> ImprovementPlan:
        """
        Generate an improvement plan for one scorecard.

        Args:
            scorecard: Scorecard to analyze (diagnostics recommended)

        Returns:
            ImprovementPlan with prioritized recommendations and strengths
        """
        config = self.config
        annual_cases = scorecard.case_count * config.annual_case_multiplier
        scores = scorecard.pillars.as_dict()
        weights = self.weights.as_dict()
        recommendations: List[ImprovementRecommendation] = []
        strengths: List[PillarStrength] = []

        if scorecard.diagnostics is None:
            logger.debug(f"No diagnostics for {scorecard.surgeon_id}, using generic recommendations")

        for pillar in PILLARS:
            score = scores[pillar.key]

            if score >= config.improvement_threshold:
                if score >= config.strength_threshold:
                    label = pillar.label.lower()
                    message = (
                        f"Top-tier {label}, a model for peers"
                        if score >= config.top_tier_threshold
                        else f"Strong {label}, above facility average"
                    )
                    strengths.append(PillarStrength(pillar_label=pillar.label, score=score, message=message))
                continue

            target = self.target_for(score)
            finding = self._finding_for(pillar, scorecard, target)
            if finding is None:
                finding = self._fallback(pillar, score, annual_cases)

            recommendations.append(ImprovementRecommendation(
                pillar=pillar.key,
                pillar_label=pillar.label,
                pillar_color=pillar.color,
                current_score=score,
                target_score=target,
                composite_impact=round_half_up((target - score) * weights[pillar.key]),
                headline=finding.headline,
                insight=finding.insight,
                actions=finding.actions,
                projected_minutes_saved=finding.projected_minutes_saved,
                projected_annual_hours=round(finding.projected_minutes_saved / 60, 1),
                projected_annual_dollars=round(finding.projected_minutes_saved * config.or_cost_per_minute),
            ))

        # Largest composite impact first
        recommendations.sort(key=lambda r: r.composite_impact, reverse=True)
        for i, rec in enumerate(recommendations, 1):
            rec.priority = i

        projected_scores = dict(scores)
        for rec in recommendations:
            projected_scores[rec.pillar] = rec.target_score
        projected_composite = compute_composite(PillarScores(**projected_scores), self.weights)

        return ImprovementPlan(
            surgeon_name=scorecard.surgeon_name,
            current_composite=scorecard.composite,
            current_grade=scorecard.grade,
            projected_composite=projected_composite,
            projected_grade=get_grade(projected_composite),
            total_projected_hours=round(sum(r.projected_annual_hours for r in recommendations), 1),
            total_projected_dollars=sum(r.projected_annual_dollars for r in recommendations),
            recommendations=recommendations,
            strengths=strengths,
        )


def generate_improvement_plan(
    scorecard: Scorecard,
    settings: ScorecardSettings,
    config: Optional[ImprovementConfig] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ImprovementPlan:
    """Convenience wrapper around ImprovementPlanGenerator.generate()."""
    return ImprovementPlanGenerator(settings, config, weights).generate(scorecard)

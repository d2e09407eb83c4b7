"""
ORbit Scoring Engine

Peer-relative surgeon scoring across four weighted pillars:
- Profitability (margin per OR minute, procedure cohorts)
- Consistency (case duration CV, procedure cohorts)
- Schedule Adherence (graduated on-time starts)
- Availability (prep-to-incision gap and delay rate)
Plus composite/grade derivation, trend comparison and improvement plans.
"""

from orbit_scoring.scoring.scoring_engine import ScoringEngine, calculate_orbit_scores
from orbit_scoring.scoring.composite import (
    DEFAULT_WEIGHTS,
    PILLARS,
    PillarDefinition,
    ScoringWeights,
    compute_composite,
    get_grade,
)
from orbit_scoring.scoring.cohort import CohortProvider
from orbit_scoring.scoring.profitability_scorer import ProfitabilityScorer
from orbit_scoring.scoring.consistency_scorer import ConsistencyScorer
from orbit_scoring.scoring.adherence_scorer import ScheduleAdherenceScorer
from orbit_scoring.scoring.availability_scorer import AvailabilityScorer
from orbit_scoring.scoring.trend import TrendComparator, classify_trend
from orbit_scoring.scoring.improvement_plan import (
    ImprovementConfig,
    ImprovementPlan,
    ImprovementPlanGenerator,
    ImprovementRecommendation,
    generate_improvement_plan,
)
from orbit_scoring.utils.config import MIN_CASE_THRESHOLD

__all__ = [
    "MIN_CASE_THRESHOLD",
    "ScoringEngine",
    "calculate_orbit_scores",
    # Composite
    "DEFAULT_WEIGHTS",
    "PILLARS",
    "PillarDefinition",
    "ScoringWeights",
    "compute_composite",
    "get_grade",
    # Pillars
    "CohortProvider",
    "ProfitabilityScorer",
    "ConsistencyScorer",
    "ScheduleAdherenceScorer",
    "AvailabilityScorer",
    # Trend
    "TrendComparator",
    "classify_trend",
    # Improvement plans
    "ImprovementConfig",
    "ImprovementPlan",
    "ImprovementPlanGenerator",
    "ImprovementRecommendation",
    "generate_improvement_plan",
]

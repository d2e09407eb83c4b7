"""
ORbit Score

Converts surgical-case records into a 0-100 composite quality score per
surgeon, decomposed into four weighted pillars.

Components:
- models: Input records, settings and scorecard schemas
- scoring: Statistical primitives, pillar scorers, orchestrator
- utils: Configuration and logging setup
"""

from orbit_scoring.models import (
    CaseRecord,
    FinancialRecord,
    FlagRecord,
    ScorecardSettings,
    ScorecardInput,
    Scorecard,
    PillarScores,
    GradeInfo,
    Trend,
    StartMilestone,
)
from orbit_scoring.scoring import (
    MIN_CASE_THRESHOLD,
    ScoringEngine,
    ScoringWeights,
    calculate_orbit_scores,
    generate_improvement_plan,
)
from orbit_scoring.utils.config import ConfigurationError
from orbit_scoring.utils.logging import setup_logging

__version__ = "2.2.0"

__all__ = [
    "CaseRecord",
    "FinancialRecord",
    "FlagRecord",
    "ScorecardSettings",
    "ScorecardInput",
    "Scorecard",
    "PillarScores",
    "GradeInfo",
    "Trend",
    "StartMilestone",
    "MIN_CASE_THRESHOLD",
    "ScoringEngine",
    "ScoringWeights",
    "calculate_orbit_scores",
    "generate_improvement_plan",
    "ConfigurationError",
    "setup_logging",
]

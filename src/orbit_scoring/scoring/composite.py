"""
Composite & Grade

Weighted sum of the four pillar scores and its letter grade.
"""

from dataclasses import dataclass
from typing import Dict, List

from orbit_scoring.models import GradeInfo, PillarScores
from orbit_scoring.scoring.statistics import round_half_up


@dataclass
class ScoringWeights:
    """
    Weights for the four pillars.

    Default weights:
    - Profitability: 30%
    - Consistency: 25%
    - Schedule Adherence: 25%
    - Availability: 20%
    """
    profitability: float = 0.30
    consistency: float = 0.25
    sched_adherence: float = 0.25
    availability: float = 0.20

    def validate(self) -> bool:
        """Validate that weights sum to 1.0."""
        total = self.profitability + self.consistency + self.sched_adherence + self.availability
        return abs(total - 1.0) < 0.001

    def as_dict(self) -> Dict[str, float]:
        return {
            "profitability": self.profitability,
            "consistency": self.consistency,
            "sched_adherence": self.sched_adherence,
            "availability": self.availability,
        }


# Default weights instance
DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class PillarDefinition:
    """Display metadata for one pillar; weight is the default weight."""
    key: str
    label: str
    weight: float
    color: str
    description: str


PILLARS: List[PillarDefinition] = [
    PillarDefinition("profitability", "Profitability", DEFAULT_WEIGHTS.profitability, "#2563EB", "Margin per OR minute"),
    PillarDefinition("consistency", "Consistency", DEFAULT_WEIGHTS.consistency, "#059669", "Case duration predictability"),
    PillarDefinition("sched_adherence", "Schedule Adherence", DEFAULT_WEIGHTS.sched_adherence, "#DB2777", "Cases starting on time"),
    PillarDefinition("availability", "Availability", DEFAULT_WEIGHTS.availability, "#7C3AED", "Surgeon readiness"),
]


# Grade thresholds, highest first
GRADES = [
    (90, GradeInfo(letter="A", label="Elite", text="#059669", bg="#ECFDF5")),
    (80, GradeInfo(letter="B", label="Strong", text="#2563EB", bg="#EFF6FF")),
    (70, GradeInfo(letter="C", label="Developing", text="#D97706", bg="#FFFBEB")),
]
FALLBACK_GRADE = GradeInfo(letter="D", label="Needs Improvement", text="#DC2626", bg="#FEF2F2")


def compute_composite(pillars: PillarScores, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Rounded weighted sum of the pillar scores."""
    scores = pillars.as_dict()
    return round_half_up(
        sum(scores[key] * weight for key, weight in weights.as_dict().items())
    )


def get_grade(score: float) -> GradeInfo:
    for threshold, grade in GRADES:
        if score >= threshold:
            return grade.model_copy()
    return FALLBACK_GRADE.model_copy()

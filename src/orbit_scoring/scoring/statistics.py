"""
Statistical Primitives

Pure helpers shared by every pillar calculator:
- Descriptive statistics (mean, sample stddev, CV, median)
- Inclusive percentile rank and the clamped percentile-to-score mapping
- Graduated linear-decay scoring for per-case timeliness
- Milestone time arithmetic that never yields negative durations
"""

import math
import statistics
from datetime import datetime, time, tzinfo
from typing import Optional, Sequence

# Neutral score for "not enough evidence"
NEUTRAL_SCORE = 50

# Percentile band mapped onto 0-100 by clamp_score
PERCENTILE_FLOOR = 20.0
PERCENTILE_CEILING = 95.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 rounding up."""
    # A weighted sum of 71.5 can arrive as 71.4999999999
    return int(math.floor(round(value, 9) + 0.5))


def mean(values: Sequence[float]) -> float:
    return statistics.mean(values) if values else 0.0


def stddev(values: Sequence[float]) -> float:
    """Sample standard deviation (n-1 denominator), 0 below two values."""
    return statistics.stdev(values) if len(values) > 1 else 0.0


def coefficient_of_variation(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    m = statistics.mean(values)
    if m == 0:
        return 0.0
    return statistics.stdev(values) / m


def median(values: Sequence[float]) -> float:
    return statistics.median(values) if values else 0.0


def percentile_rank(
    value: float,
    population: Sequence[float],
    lower_is_better: bool = False,
) -> float:
    """
    Percentage of the population that `value` is at least as good as.

    The population is expected to contain `value` itself, so ties are
    resolved inclusively: a value equal to every other member ranks at the
    100th percentile. Populations of one or fewer are neutral (50).

    Args:
        value: The metric being ranked
        population: All cohort values, including `value`
        lower_is_better: Rank by <= instead of >=

    Returns:
        Percentile from 0-100
    """
    if len(population) <= 1:
        return float(NEUTRAL_SCORE)

    if lower_is_better:
        no_better = sum(1 for p in population if p >= value)
    else:
        no_better = sum(1 for p in population if p <= value)

    return no_better / len(population) * 100


def clamp_score(
    percentile: float,
    floor: float = PERCENTILE_FLOOR,
    ceiling: float = PERCENTILE_CEILING,
) -> int:
    """
    Map a percentile onto a 0-100 score.

    Percentiles at or below `floor` score 0, at or above `ceiling` score
    100, and the band in between is rescaled linearly.
    """
    if percentile <= floor:
        return 0
    if percentile >= ceiling:
        return 100
    return round_half_up((percentile - floor) / (ceiling - floor) * 100)


def graduated_case_score(minutes_over: float, floor_minutes: float) -> float:
    """Linear decay: 1.0 within grace, losing 1/floor per minute over, min 0."""
    if minutes_over <= 0:
        return 1.0
    if minutes_over >= floor_minutes:
        return 0.0
    return 1.0 - (minutes_over / floor_minutes)


def cohort_score(
    value: float,
    peer_values: Sequence[float],
    lower_is_better: bool = False,
) -> int:
    """
    Score a surgeon's metric against peer values.

    The surgeon's own value joins the population before ranking. With no
    qualifying peers there is nothing to compare against and the neutral
    score is returned unclamped.
    """
    if not peer_values:
        return NEUTRAL_SCORE
    population = [value, *peer_values]
    return clamp_score(percentile_rank(value, population, lower_is_better))


def cohort_percentile(
    value: float,
    peer_values: Sequence[float],
    lower_is_better: bool = False,
) -> float:
    if not peer_values:
        return float(NEUTRAL_SCORE)
    return percentile_rank(value, [value, *peer_values], lower_is_better)


# =============================================================================
# Milestone time arithmetic
# =============================================================================

def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """
    Elapsed minutes from `start` to `end`.

    Returns None when either timestamp is missing or when they are out of
    clinical order.
    """
    if start is None or end is None:
        return None
    minutes = (end - start).total_seconds() / 60
    if minutes < 0:
        return None
    return minutes


def time_to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def local_minutes(moment: datetime, tz: tzinfo) -> int:
    """Minutes since local midnight of `moment` in the facility timezone."""
    local = moment.astimezone(tz)
    return local.hour * 60 + local.minute

"""
Tests for the statistical primitives behind every pillar.

Tests:
- mean / stddev / coefficient_of_variation / median
- percentile_rank inclusive tie-break and monotonicity
- clamp_score band mapping
- graduated_case_score linear decay
- cohort_score neutral handling
- milestone time arithmetic
"""

import math
from datetime import datetime, time, timezone

import pytest

from orbit_scoring.scoring.statistics import (
    NEUTRAL_SCORE,
    clamp_score,
    coefficient_of_variation,
    cohort_score,
    graduated_case_score,
    local_minutes,
    mean,
    median,
    minutes_between,
    percentile_rank,
    round_half_up,
    stddev,
    time_to_minutes,
)
from conftest import FACILITY_TZ


class TestDescriptiveStatistics:
    """Tests for mean, stddev, CV and median."""

    def test_mean(self):
        assert mean([1, 2, 3, 4]) == 2.5
        assert mean([]) == 0

    def test_sample_stddev(self):
        """Uses the n-1 denominator."""
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        assert stddev(values) == pytest.approx(math.sqrt(32 / 7))

    def test_stddev_below_two_values(self):
        assert stddev([]) == 0
        assert stddev([42]) == 0

    def test_coefficient_of_variation(self):
        assert coefficient_of_variation([10, 20]) == pytest.approx(math.sqrt(50) / 15)

    def test_cv_degenerate_inputs(self):
        assert coefficient_of_variation([]) == 0
        assert coefficient_of_variation([7]) == 0
        assert coefficient_of_variation([0, 0, 0]) == 0
        assert coefficient_of_variation([-5, 5]) == 0

    def test_median_odd(self):
        assert median([3, 1, 2]) == 2

    def test_median_even(self):
        assert median([4, 1, 3, 2]) == 2.5

    def test_median_empty(self):
        assert median([]) == 0

    def test_median_does_not_mutate(self):
        values = [3, 1, 2]
        median(values)
        assert values == [3, 1, 2]


class TestPercentileRank:
    """Tests for inclusive percentile rank."""

    def test_tiny_population_is_neutral(self):
        assert percentile_rank(10, []) == 50
        assert percentile_rank(10, [10]) == 50

    def test_inclusive_tie_is_100th_percentile(self):
        assert percentile_rank(5, [5, 5]) == 100
        assert percentile_rank(5, [5, 5, 5, 5], lower_is_better=True) == 100

    def test_higher_is_better(self):
        assert percentile_rank(1, [1, 2, 3, 4]) == 25
        assert percentile_rank(4, [1, 2, 3, 4]) == 100

    def test_lower_is_better(self):
        assert percentile_rank(1, [1, 2, 3, 4], lower_is_better=True) == 100
        assert percentile_rank(4, [1, 2, 3, 4], lower_is_better=True) == 25

    @pytest.mark.parametrize("lower_is_better", [False, True])
    def test_monotonic_in_value(self, lower_is_better):
        population = [3.0, 7.5, 1.0, 9.0, 4.4, 7.5]
        ranks = [
            percentile_rank(v, population, lower_is_better)
            for v in [x / 2 for x in range(0, 22)]
        ]
        if lower_is_better:
            ranks = list(reversed(ranks))
        assert ranks == sorted(ranks)


class TestClampScore:
    """Tests for the percentile-to-score mapping."""

    def test_floor_and_below_score_zero(self):
        assert clamp_score(20) == 0
        assert clamp_score(0) == 0

    def test_ceiling_and_above_score_100(self):
        assert clamp_score(95) == 100
        assert clamp_score(100) == 100

    def test_linear_rescale(self):
        assert clamp_score(57.5) == 50
        assert clamp_score(50) == 40

    def test_custom_band(self):
        assert clamp_score(50, floor=0, ceiling=100) == 50

    def test_monotonic_and_bounded(self):
        scores = [clamp_score(p / 4) for p in range(0, 401)]
        assert scores == sorted(scores)
        assert all(0 <= s <= 100 for s in scores)


class TestGraduatedCaseScore:
    """Tests for linear-decay per-case scoring."""

    def test_within_grace(self):
        assert graduated_case_score(0, 20) == 1.0
        assert graduated_case_score(-4, 20) == 1.0

    def test_at_floor(self):
        assert graduated_case_score(20, 20) == 0.0

    def test_past_floor(self):
        assert graduated_case_score(21, 20) == 0.0
        assert graduated_case_score(500, 20) == 0.0

    def test_linear_between(self):
        assert graduated_case_score(10, 20) == pytest.approx(0.5)
        assert graduated_case_score(5, 20) == pytest.approx(0.75)


class TestCohortScore:
    """Tests for scoring a value against peer values."""

    def test_no_peers_is_neutral(self):
        assert cohort_score(12.0, []) == NEUTRAL_SCORE

    def test_tie_with_single_peer(self):
        assert cohort_score(12.0, [12.0]) == 100

    def test_worse_of_two(self):
        assert cohort_score(1.0, [2.0]) == 40
        assert cohort_score(2.0, [1.0], lower_is_better=True) == 40


class TestTimeArithmetic:
    """Tests for milestone time helpers."""

    def test_minutes_between(self):
        start = datetime(2025, 3, 3, 13, 0, tzinfo=timezone.utc)
        end = datetime(2025, 3, 3, 14, 30, tzinfo=timezone.utc)
        assert minutes_between(start, end) == 90

    def test_out_of_order_is_none(self):
        start = datetime(2025, 3, 3, 14, 0, tzinfo=timezone.utc)
        end = datetime(2025, 3, 3, 13, 0, tzinfo=timezone.utc)
        assert minutes_between(start, end) is None

    def test_missing_is_none(self):
        assert minutes_between(None, datetime(2025, 3, 3, tzinfo=timezone.utc)) is None
        assert minutes_between(datetime(2025, 3, 3, tzinfo=timezone.utc), None) is None

    def test_equal_timestamps_is_zero(self):
        moment = datetime(2025, 3, 3, 13, 0, tzinfo=timezone.utc)
        assert minutes_between(moment, moment) == 0

    def test_time_to_minutes(self):
        assert time_to_minutes(time(7, 30)) == 450

    def test_local_minutes_converts_to_facility_day(self):
        # 13:45 UTC is 07:45 CST
        moment = datetime(2025, 3, 3, 13, 45, tzinfo=timezone.utc)
        assert local_minutes(moment, FACILITY_TZ) == 465


class TestRoundHalfUp:
    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(72.5) == 73

    def test_weighted_sum_noise(self):
        assert round_half_up(50 * 0.3 + 50 * 0.25 + 50 * 0.25 + 50 * 0.2) == 50

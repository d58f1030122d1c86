"""Tests for descriptive statistics."""

import math

import pytest

from dei_core.stats import GroupStats, describe_values, nan_mean, population_std, quantile, simpson_index


class TestDescribeValues:
    """Test box-plot statistics."""

    def test_one_to_five(self):
        stats = describe_values([1, 2, 3, 4, 5])
        assert stats.count == 5
        assert stats.q1 == pytest.approx(2.0)
        assert stats.median == pytest.approx(3.0)
        assert stats.q3 == pytest.approx(4.0)
        assert stats.iqr == pytest.approx(2.0)
        assert stats.std == pytest.approx(math.sqrt(2))
        assert stats.lower_whisker == pytest.approx(1.0)
        assert stats.upper_whisker == pytest.approx(5.0)
        assert stats.outliers == []

    def test_outliers_outside_whiskers(self):
        stats = describe_values([1, 2, 3, 4, 100])
        assert stats.upper_whisker == pytest.approx(4 + 1.5 * 2)
        assert stats.outliers == [100.0]

    def test_linear_interpolation(self):
        stats = describe_values([1, 2, 3, 4])
        assert stats.q1 == pytest.approx(1.75)
        assert stats.median == pytest.approx(2.5)
        assert stats.q3 == pytest.approx(3.25)

    def test_nan_excluded_but_counted(self):
        stats = describe_values([2.0, float("nan"), 4.0], key="g")
        assert stats.key == "g"
        assert stats.count == 3
        assert stats.mean == pytest.approx(3.0)

    def test_empty_group(self):
        stats = describe_values([], key="empty")
        assert stats == GroupStats(key="empty", count=0)
        assert stats.is_empty
        assert stats.iqr is None

    def test_singleton(self):
        stats = describe_values([7])
        assert stats.q1 == stats.median == stats.q3 == 7.0
        assert stats.std == 0.0
        assert stats.outliers == []

    def test_ordering_invariants(self):
        stats = describe_values([5, -3, 8, 0, 2, 2, 9, -7])
        assert stats.std >= 0
        assert stats.q1 <= stats.median <= stats.q3
        assert stats.min <= stats.lower_whisker <= stats.upper_whisker <= stats.max

    def test_to_dict_keys(self):
        out = describe_values([1, 2, 3]).to_dict()
        assert {"key", "count", "mean", "median", "q1", "q3", "std", "lower_whisker", "upper_whisker", "outliers"} <= set(out)


class TestHelpers:
    def test_nan_mean_sentinel(self):
        assert nan_mean([]) is None
        assert nan_mean([float("nan")], empty=0.0) == 0.0
        assert nan_mean(["1", "x", 3]) == pytest.approx(2.0)

    def test_population_std(self):
        assert population_std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_quantile(self):
        assert quantile([3, 1, 2], 0.5) == 2.0
        assert quantile([], 0.5) is None


class TestSimpsonIndex:
    def test_single_category(self):
        assert simpson_index(["a", "a", "a"]) == 0.0

    def test_even_split(self):
        assert simpson_index(["Male"] * 10 + ["Female"] * 10) == pytest.approx(0.5)

    def test_never_reaches_one(self):
        values = [simpson_index([str(i) for i in range(n)]) for n in (2, 10, 100)]
        assert values == sorted(values)
        assert all(v < 1 for v in values)
        assert values[-1] == pytest.approx(0.99)

    def test_empty(self):
        assert simpson_index([]) == 0.0

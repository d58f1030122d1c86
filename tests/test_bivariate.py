"""Tests for correlation, regression and z-score outliers."""

import pytest

from conftest import make_row, make_table
from dei_core.bivariate import (
    RegressionResult,
    field_correlation,
    field_regression,
    linear_regression,
    paired_values,
    pearson_correlation,
    zscore_outliers,
)
from dei_core.data import build_dataset


class TestLinearRegression:
    def test_exact_line(self):
        result = linear_regression([1, 2, 3], [2, 4, 6])
        assert result.slope == pytest.approx(2.0)
        assert result.intercept == pytest.approx(0.0)
        assert result.n == 3
        assert not result.indeterminate
        assert result.predict(10) == pytest.approx(20.0)

    def test_constant_x_is_indeterminate(self):
        result = linear_regression([1, 1, 1], [2, 4, 6])
        assert result.indeterminate
        assert result.slope is None and result.intercept is None
        assert result.predict(1) is None

    def test_empty_is_indeterminate(self):
        assert linear_regression([], []) == RegressionResult(slope=None, intercept=None, n=0)

    def test_nan_pairs_dropped(self):
        result = linear_regression([1, 2, float("nan"), 3], [2, 4, 100, 6])
        assert result.n == 3
        assert result.slope == pytest.approx(2.0)


class TestPearson:
    def test_perfect(self):
        assert pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert pearson_correlation([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)

    def test_symmetric(self):
        x, y = [1, 5, 2, 8, 3], [2, 3, 9, 1, 4]
        assert pearson_correlation(x, y) == pytest.approx(pearson_correlation(y, x))
        assert -1.0 <= pearson_correlation(x, y) <= 1.0

    def test_degenerate_is_zero(self):
        assert pearson_correlation([1, 1, 1], [1, 2, 3]) == 0.0
        assert pearson_correlation([], []) == 0.0
        assert pearson_correlation([4], [2]) == 0.0


class TestPairedValues:
    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            paired_values([1, 2], [1])


class TestZScoreOutliers:
    def test_flags_far_point(self):
        x = [0, 0, 0, 0, 0, 0, 0, 0, 0, 10]
        y = [1] * 10
        assert zscore_outliers(x, y).tolist() == [False] * 9 + [True]

    def test_constant_axes_flag_nothing(self):
        assert not zscore_outliers([1, 1, 1], [2, 2, 2]).any()

    def test_missing_values_not_flagged(self):
        mask = zscore_outliers([0, 0, 0, 0, 0, 0, 0, 0, 0, 10, None], [1] * 11)
        assert mask.tolist()[-1] is False


class TestFieldStatistics:
    def test_over_records(self):
        raw = make_table([make_row(n, d=(n,) * 5, e=(2 * n,) * 5) for n in range(1, 5)])
        records = build_dataset(raw).records
        assert field_correlation(records, "diversity", "equity") == pytest.approx(1.0)
        result = field_regression(records, "diversity", "Equity Score")
        assert result.slope == pytest.approx(2.0)
        assert result.intercept == pytest.approx(0.0)

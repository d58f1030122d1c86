from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from dei_core.dimensions import NumericField

ZSCORE_THRESHOLD = 2.0


@dataclass(frozen=True)
class RegressionResult:
    slope: Optional[float]
    intercept: Optional[float]
    n: int = 0

    @property
    def indeterminate(self) -> bool:
        return self.slope is None or self.intercept is None

    def predict(self, x: float) -> Optional[float]:
        if self.indeterminate:
            return None
        return self.slope * x + self.intercept

    def to_dict(self) -> Dict[str, Any]:
        return {"slope": self.slope, "intercept": self.intercept, "n": self.n, "indeterminate": self.indeterminate}


def paired_values(x: Iterable[Any], y: Iterable[Any]) -> Tuple[np.ndarray, np.ndarray]:
    """Align two numeric sequences and drop every pair with a missing side."""
    xs = pd.to_numeric(pd.Series(list(x), dtype=object), errors="coerce").to_numpy(dtype=float, na_value=np.nan)
    ys = pd.to_numeric(pd.Series(list(y), dtype=object), errors="coerce").to_numpy(dtype=float, na_value=np.nan)
    if xs.size != ys.size:
        raise ValueError(f"x and y differ in length ({xs.size} != {ys.size})")
    keep = np.isfinite(xs) & np.isfinite(ys)
    return xs[keep], ys[keep]


def _sums(xs: np.ndarray, ys: np.ndarray) -> Tuple[int, float, float, float, float, float]:
    return (
        int(xs.size),
        float(xs.sum()),
        float(ys.sum()),
        float((xs * ys).sum()),
        float((xs * xs).sum()),
        float((ys * ys).sum()),
    )


def _is_zero(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-12, abs_tol=0.0)


def pearson_correlation(x: Iterable[Any], y: Iterable[Any]) -> float:
    """Pearson r; 0.0 when either side is constant or there is no data."""
    xs, ys = paired_values(x, y)
    n, sx, sy, sxy, sxx, syy = _sums(xs, ys)
    if n == 0 or _is_zero(n * sxx, sx * sx) or _is_zero(n * syy, sy * sy):
        return 0.0
    denominator = math.sqrt((n * sxx - sx * sx) * (n * syy - sy * sy))
    if denominator == 0 or math.isnan(denominator):
        return 0.0
    r = (n * sxy - sx * sy) / denominator
    return float(min(1.0, max(-1.0, r)))


def linear_regression(x: Iterable[Any], y: Iterable[Any]) -> RegressionResult:
    """Ordinary least squares fit of y on x.

    Returns an indeterminate result (slope and intercept `None`) when x has no
    spread or there are no complete pairs.
    """
    xs, ys = paired_values(x, y)
    n, sx, sy, sxy, sxx, _ = _sums(xs, ys)
    if n == 0 or _is_zero(n * sxx, sx * sx):
        return RegressionResult(slope=None, intercept=None, n=n)
    slope = (n * sxy - sx * sy) / (n * sxx - sx * sx)
    intercept = (sy - slope * sx) / n
    return RegressionResult(slope=float(slope), intercept=float(intercept), n=n)


def zscore_outliers(x: Iterable[Any], y: Iterable[Any], threshold: float = ZSCORE_THRESHOLD) -> np.ndarray:
    """Boolean mask of points whose x or y z-score exceeds `threshold`.

    Uses the sample standard deviation. An axis with fewer than two values or
    no spread flags nothing; missing values are never flagged.
    """
    xs = pd.to_numeric(pd.Series(list(x), dtype=object), errors="coerce").to_numpy(dtype=float, na_value=np.nan)
    ys = pd.to_numeric(pd.Series(list(y), dtype=object), errors="coerce").to_numpy(dtype=float, na_value=np.nan)
    mask = np.zeros(xs.size, dtype=bool)
    for arr in (xs, ys):
        finite = arr[np.isfinite(arr)]
        if finite.size < 2:
            continue
        std = float(finite.std(ddof=1))
        if std == 0 or math.isnan(std):
            continue
        with np.errstate(invalid="ignore"):
            z = np.abs((arr - finite.mean()) / std)
        mask |= np.nan_to_num(z, nan=0.0) > threshold
    return mask


def field_correlation(records: pd.DataFrame, x_field: NumericField | str, y_field: NumericField | str) -> float:
    xf, yf = NumericField.parse(x_field), NumericField.parse(y_field)
    return pearson_correlation(xf.series(records), yf.series(records))


def field_regression(records: pd.DataFrame, x_field: NumericField | str, y_field: NumericField | str) -> RegressionResult:
    xf, yf = NumericField.parse(x_field), NumericField.parse(y_field)
    return linear_regression(xf.series(records), yf.series(records))

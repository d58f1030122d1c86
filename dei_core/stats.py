"""Descriptive statistics for one numeric column of a record group.

Quartiles use linear interpolation between order statistics (R-7, numpy's
default `linear` method). Standard deviation is the population form. Empty
input never raises: each statistic falls back to the caller's `empty` value,
`None` unless stated otherwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

WHISKER_IQR_FACTOR = 1.5


def optional_float(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    out = float(value)
    if math.isinf(out):
        return None
    return out


def optional_int(value: Any) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def finite_values(values: Iterable[Any]) -> np.ndarray:
    arr = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").to_numpy(dtype=float, na_value=np.nan)
    return arr[np.isfinite(arr)]


def nan_mean(values: Iterable[Any], empty: Optional[float] = None) -> Optional[float]:
    arr = finite_values(values)
    if arr.size == 0:
        return empty
    return float(arr.mean())


def population_std(values: Iterable[Any], empty: Optional[float] = None) -> Optional[float]:
    arr = finite_values(values)
    if arr.size == 0:
        return empty
    return float(arr.std(ddof=0))


def quantile(values: Iterable[Any], q: float, empty: Optional[float] = None) -> Optional[float]:
    arr = finite_values(values)
    if arr.size == 0:
        return empty
    return float(np.quantile(np.sort(arr), q, method="linear"))


def simpson_index(categories: Iterable[Any]) -> float:
    """Simpson's diversity index `1 - sum(p_i^2)`; 0.0 for an empty group."""
    series = pd.Series(list(categories), dtype=object)
    if series.empty:
        return 0.0
    proportions = series.value_counts(dropna=False, normalize=True)
    return float(1.0 - (proportions**2).sum())


@dataclass(frozen=True)
class GroupStats:
    key: Any = None
    count: int = 0
    mean: Optional[float] = None
    median: Optional[float] = None
    q1: Optional[float] = None
    q3: Optional[float] = None
    std: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    lower_whisker: Optional[float] = None
    upper_whisker: Optional[float] = None
    outliers: List[float] = field(default_factory=list)

    @property
    def iqr(self) -> Optional[float]:
        if self.q1 is None or self.q3 is None:
            return None
        return self.q3 - self.q1

    @property
    def is_empty(self) -> bool:
        return self.mean is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "q1": self.q1,
            "q3": self.q3,
            "iqr": self.iqr,
            "std": self.std,
            "min": self.min,
            "max": self.max,
            "lower_whisker": self.lower_whisker,
            "upper_whisker": self.upper_whisker,
            "outliers": list(self.outliers),
        }


def describe_values(values: Iterable[Any], key: Any = None, count: Optional[int] = None) -> GroupStats:
    """Summarize `values` for a box plot.

    `count` is the group's member count; it defaults to the number of values
    passed in. Missing values are excluded from every statistic but still
    counted as members.
    """
    raw = list(values)
    members = len(raw) if count is None else int(count)
    arr = np.sort(finite_values(raw))
    if arr.size == 0:
        return GroupStats(key=key, count=members)

    q1, median, q3 = (float(v) for v in np.quantile(arr, [0.25, 0.5, 0.75], method="linear"))
    lo, hi = float(arr[0]), float(arr[-1])
    spread = WHISKER_IQR_FACTOR * (q3 - q1)
    lower = max(lo, q1 - spread)
    upper = min(hi, q3 + spread)
    outliers = [float(v) for v in arr if v < lower or v > upper]

    return GroupStats(
        key=key,
        count=members,
        mean=float(arr.mean()),
        median=median,
        q1=q1,
        q3=q3,
        std=float(arr.std(ddof=0)),
        min=lo,
        max=hi,
        lower_whisker=lower,
        upper_whisker=upper,
        outliers=outliers,
    )

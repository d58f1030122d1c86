from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from dei_core.columns import AGE_BOUNDS, FLAG_COLUMNS, MARGINALIZATION_GROUPS
from dei_core.dimensions import Dimension, UnknownDimensionError

MARGINALIZATION_BOUNDS: Tuple[int, int] = (0, len(MARGINALIZATION_GROUPS))
COMBINATIONS: Tuple[str, ...] = ("multiple", "triple", "lgbtq-minority", "disability-veteran")


@dataclass(frozen=True)
class FilterState:
    """Immutable filter snapshot; containers are stored as tuples and a read-only mapping."""

    age_range: Tuple[int, int] = AGE_BOUNDS
    categories: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    marginalization_range: Tuple[int, int] = MARGINALIZATION_BOUNDS
    active_groups: Tuple[str, ...] = MARGINALIZATION_GROUPS
    active_combinations: Tuple[str, ...] = ()
    min_group_size: Optional[int] = None

    def __post_init__(self) -> None:
        categories = {str(k): tuple(v) for k, v in dict(self.categories).items()}
        object.__setattr__(self, "categories", MappingProxyType(categories))
        object.__setattr__(self, "age_range", tuple(self.age_range))
        object.__setattr__(self, "marginalization_range", tuple(self.marginalization_range))
        object.__setattr__(self, "active_groups", tuple(self.active_groups))
        object.__setattr__(self, "active_combinations", tuple(self.active_combinations))

    def accepted(self, dimension: Dimension | str) -> List[str]:
        return list(self.categories.get(Dimension.parse(dimension).value, ()))

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-shaped copy for payloads."""
        return {
            "age_range": list(self.age_range),
            "categories": {k: list(v) for k, v in self.categories.items()},
            "marginalization_range": list(self.marginalization_range),
            "active_groups": list(self.active_groups),
            "active_combinations": list(self.active_combinations),
            "min_group_size": self.min_group_size,
        }

    def group_size(self, default: int) -> int:
        return self.min_group_size if self.min_group_size is not None else default


def _as_int(value: object, default: int) -> int:
    try:
        return int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _as_range(raw: object, bounds: Tuple[int, int]) -> Tuple[int, int]:
    lo_bound, hi_bound = bounds
    values = list(raw) if isinstance(raw, (list, tuple)) else []
    lo = _as_int(values[0], lo_bound) if len(values) > 0 else lo_bound
    hi = _as_int(values[1], hi_bound) if len(values) > 1 else hi_bound
    lo, hi = min(lo, hi), max(lo, hi)
    return max(lo_bound, lo), min(hi_bound, hi)


def _unique_str(values: Optional[Iterable[object]]) -> List[str]:
    out: List[str] = []
    for v in values or []:
        if v is None:
            continue
        s = str(v)
        if s not in out:
            out.append(s)
    return out


def _match_names(values: Optional[Iterable[object]], allowed: Iterable[str], kind: str) -> List[str]:
    lookup = {a.lower(): a for a in allowed}
    out: List[str] = []
    for v in _unique_str(values):
        name = lookup.get(v.strip().lower())
        if name is None:
            raise UnknownDimensionError(f"Unknown {kind}: {v!r}")
        if name not in out:
            out.append(name)
    return out


def normalize_filters(raw: Optional[dict]) -> FilterState:
    raw = raw or {}

    age_raw = raw.get("age_range")
    if age_raw is None and ("age_min" in raw or "age_max" in raw):
        age_raw = [raw.get("age_min", AGE_BOUNDS[0]), raw.get("age_max", AGE_BOUNDS[1])]
    age_range = _as_range(age_raw, AGE_BOUNDS)

    categories: Dict[str, List[str]] = {}
    for name, values in (raw.get("categories") or {}).items():
        dim = Dimension.parse(name)
        accepted = _unique_str(values)
        if accepted:
            categories[dim.value] = accepted

    marginalization_range = _as_range(raw.get("marginalization_range"), MARGINALIZATION_BOUNDS)

    if raw.get("active_groups") is None:
        active_groups = list(MARGINALIZATION_GROUPS)
    else:
        active_groups = _match_names(raw.get("active_groups"), MARGINALIZATION_GROUPS, "marginalization group")
    active_combinations = _match_names(raw.get("active_combinations"), COMBINATIONS, "combination")

    min_group_size = raw.get("min_group_size")
    if min_group_size is not None:
        min_group_size = max(1, _as_int(min_group_size, 1))

    return FilterState(
        age_range=age_range,
        categories=categories,
        marginalization_range=marginalization_range,
        active_groups=active_groups,
        active_combinations=active_combinations,
        min_group_size=min_group_size,
    )


def group_mask(records: pd.DataFrame, active_groups: Iterable[str]) -> pd.Series:
    """Rows flagged in at least one active group, plus rows with no flags at all."""
    mask = records["marginalization_count"] == 0
    for group in active_groups:
        mask |= records[FLAG_COLUMNS[group]].astype(bool)
    return mask


def combination_mask(records: pd.DataFrame, combinations: Iterable[str]) -> pd.Series:
    layers = records["marginalization_count"]
    mask = pd.Series(False, index=records.index)
    for combo in combinations:
        if combo == "multiple":
            mask |= layers >= 2
        elif combo == "triple":
            mask |= layers >= 3
        elif combo == "lgbtq-minority":
            mask |= records["is_lgbtq"].astype(bool) & records["is_minority"].astype(bool)
        elif combo == "disability-veteran":
            mask |= records["has_disability"].astype(bool) & records["is_veteran"].astype(bool)
    return mask


def filter_mask(records: pd.DataFrame, filters: FilterState) -> pd.Series:
    age_min, age_max = filters.age_range
    mask = records["age"].between(age_min, age_max, inclusive="both").fillna(False).astype(bool)

    for dim_name, accepted in filters.categories.items():
        if accepted:
            column = Dimension.parse(dim_name).column
            mask &= records[column].isin(accepted).fillna(False).astype(bool)

    layer_min, layer_max = filters.marginalization_range
    mask &= records["marginalization_count"].between(layer_min, layer_max, inclusive="both")
    mask &= group_mask(records, filters.active_groups)
    if filters.active_combinations:
        mask &= combination_mask(records, filters.active_combinations)
    return mask


def apply_filters(records: pd.DataFrame, filters: FilterState) -> pd.DataFrame:
    """Return the subset of `records` passing every predicate of `filters`.

    Dimensions without accepted values impose no restriction. The input frame
    is never modified; original row order and index are preserved.
    """
    if records.empty:
        return records.copy()
    return records[filter_mask(records, filters)].copy()

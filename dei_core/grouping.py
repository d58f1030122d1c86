"""Partition a record subset by a categorical key and summarize each group.

Groups come out in order of first appearance unless a `SortOrder` is
requested. Sorting is stable, so ties keep that first-appearance order.
Minimum-size pruning happens here, after grouping, never on the records.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple, Union

import pandas as pd

from dei_core.dimensions import Dimension, NumericField, UnknownDimensionError
from dei_core.stats import GroupStats, describe_values, simpson_index

logger = logging.getLogger(__name__)

GroupKey = Union[Dimension, str, Sequence[Union[Dimension, str]]]


class SortOrder(str, Enum):
    KEY = "key"
    MEAN_DESC = "mean_desc"
    MEAN_ASC = "mean_asc"
    NONE = "none"


def _key_columns(key: GroupKey) -> List[str]:
    if isinstance(key, (Dimension, str)):
        return [Dimension.parse(key).column]
    return [Dimension.parse(k).column for k in key]


def value_column(records: pd.DataFrame, field: NumericField | str) -> str:
    """Column holding `field`: a `NumericField` name, or a derived score column."""
    try:
        return NumericField.parse(field).column
    except UnknownDimensionError:
        if isinstance(field, str) and field in records.columns:
            return field
        raise


def group_keys(records: pd.DataFrame, key: GroupKey) -> pd.Series:
    """One key per record; a tuple when grouping by several dimensions."""
    cols = _key_columns(key)
    if len(cols) == 1:
        return records[cols[0]]
    return pd.Series(list(records[cols].itertuples(index=False, name=None)), index=records.index, dtype=object)


def partition(records: pd.DataFrame, key: GroupKey) -> List[Tuple[Any, pd.DataFrame]]:
    """Split `records` into (key, members) pairs covering every record exactly once."""
    if records.empty:
        return []
    cols = _key_columns(key)
    by = cols[0] if len(cols) == 1 else cols
    return [(k, members) for k, members in records.groupby(by, sort=False, dropna=False)]


def sort_groups(groups: List[GroupStats], order: SortOrder | str = SortOrder.KEY) -> List[GroupStats]:
    order = SortOrder(order)
    if order is SortOrder.KEY:
        return sorted(groups, key=lambda g: str(g.key))
    if order is SortOrder.MEAN_DESC:
        return sorted(groups, key=lambda g: (g.mean is None, -(g.mean or 0.0)))
    if order is SortOrder.MEAN_ASC:
        return sorted(groups, key=lambda g: (g.mean is None, g.mean or 0.0))
    return list(groups)


def aggregate_groups(
    records: pd.DataFrame,
    key: GroupKey,
    field: NumericField | str,
    *,
    min_size: int = 1,
    sort: SortOrder | str = SortOrder.KEY,
) -> List[GroupStats]:
    """Group statistics of `field` for every group with at least `min_size` members."""
    if records.empty:
        return []
    column = value_column(records, field)
    out: List[GroupStats] = []
    dropped = 0
    for k, members in partition(records, key):
        if len(members) < min_size:
            dropped += 1
            continue
        out.append(describe_values(members[column], key=k, count=len(members)))
    if dropped:
        logger.debug("Dropped %d groups below min size %d", dropped, min_size)
    return sort_groups(out, sort)


def category_distribution(records: pd.DataFrame, dimension: Dimension | str) -> List[Dict[str, Any]]:
    """Count and share of each value of `dimension`, in first-appearance order."""
    dim = Dimension.parse(dimension)
    total = len(records)
    if total == 0:
        return []
    counts = records.groupby(dim.column, sort=False, dropna=False).size()
    return [
        {"key": k, "count": int(n), "percentage": float(n) / total * 100.0}
        for k, n in counts.items()
    ]


def diversity_index(records: pd.DataFrame, dimension: Dimension | str) -> float:
    """Simpson's index of `dimension` across `records`."""
    return simpson_index(Dimension.parse(dimension).series(records))


def group_diversity(records: pd.DataFrame, key: GroupKey, dimension: Dimension | str) -> Dict[Any, float]:
    """Simpson's index of `dimension` inside each group of `key`."""
    return {k: diversity_index(members, dimension) for k, members in partition(records, key)}


def matrix_aggregate(
    records: pd.DataFrame,
    row_key: Dimension | str,
    columns: Sequence[str],
    *,
    min_size: int = 1,
) -> List[Dict[str, Any]]:
    """Mean of each of `columns` per group of `row_key`, one cell per pair.

    Used for (division x metric) and (manager x metric) matrices.
    """
    cells: List[Dict[str, Any]] = []
    for k, members in partition(records, row_key):
        if len(members) < min_size:
            continue
        for column in columns:
            stats = describe_values(members[column], key=k, count=len(members))
            cells.append({"row": k, "column": column, "value": stats.mean, "count": stats.count})
    return cells

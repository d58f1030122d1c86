from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from dei_core.charts import chart_frame, to_vega_spec
from dei_core.dimensions import Dimension, NumericField
from dei_core.filters import FilterState
from dei_core.grouping import aggregate_groups
from dei_core.stats import describe_values

DEFAULT_MIN_GROUP_SIZE = 1


def _outlier_rows(groups: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{"key": g["key"], "value": v} for g in groups for v in g["outliers"]]


def compute_boxplot(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    dimension: str = "division",
    field: str = "equity",
    sort: str = "key",
) -> Dict[str, Any]:
    dim = Dimension.parse(dimension)
    value = NumericField.parse(field)
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())

    groups = aggregate_groups(
        filtered,
        dim,
        value,
        min_size=filters.group_size(DEFAULT_MIN_GROUP_SIZE),
        sort=sort,
    )
    overall = describe_values(filtered[value.column] if value.column in filtered.columns else [], key="All")

    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "dimension": dim.value,
        "field": value.value,
        "groups": [g.to_dict() for g in groups],
        "stats": {
            "group_count": len(groups),
            "employee_count": int(len(filtered)),
            "overall": overall.to_dict(),
        },
        "charts": {},
    }
    if not groups:
        return payload

    order = [str(g.key) for g in groups]
    boxes = chart_frame(payload["groups"])
    base = alt.Chart(boxes).encode(x=alt.X("key:N", title=dim.label, sort=order))
    whiskers = base.mark_rule().encode(
        y=alt.Y("lower_whisker:Q", title=value.label),
        y2="upper_whisker:Q",
    )
    box = base.mark_bar(size=28, opacity=0.8).encode(
        y="q1:Q",
        y2="q3:Q",
        tooltip=[
            alt.Tooltip("key:N", title=dim.label),
            alt.Tooltip("count:Q", title="Employees"),
            alt.Tooltip("median:Q", title="Median", format=".2f"),
            alt.Tooltip("q1:Q", title="Q1", format=".2f"),
            alt.Tooltip("q3:Q", title="Q3", format=".2f"),
            alt.Tooltip("mean:Q", title="Mean", format=".2f"),
        ],
    )
    median = base.mark_tick(color="white", size=28).encode(y="median:Q")
    layers = whiskers + box + median

    outliers = _outlier_rows(payload["groups"])
    if outliers:
        dots = alt.Chart(pd.DataFrame(outliers)).mark_point(color="#ff6b6b").encode(
            x=alt.X("key:N", sort=order), y="value:Q"
        )
        layers = layers + dots
    payload["charts"]["boxplot"] = to_vega_spec(layers)
    return payload

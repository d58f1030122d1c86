from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from dei_core.charts import HEATMAP_SCHEMES, chart_frame, to_vega_spec
from dei_core.columns import NO, PILLARS, PLACEHOLDER
from dei_core.dimensions import Dimension, UnknownDimensionError
from dei_core.filters import FilterState
from dei_core.grouping import partition
from dei_core.scores import ScoreVariant, gap_column, score_column
from dei_core.stats import nan_mean

DEFAULT_MIN_GROUP_SIZE = 1
TOP_MANAGERS = 15
CRITICAL_COUNT = 5
MODES = ("demographics", "divisions", "managers")
METRICS = ("positive", "negative", "gap")
DEMOGRAPHIC_GROUPS = ("gender", "ethnicity", "lgbtq", "disability", "veteran", "indigenous", "minority")
NON_MANAGER_VALUES = {PLACEHOLDER, NO, "False", ""}

LEGEND_TITLES = {"negative": "Worse Equity", "positive": "Better Equity", "gap": "Equity Balance"}


def metric_column(pillar: str, metric: str) -> str:
    if metric not in METRICS:
        raise UnknownDimensionError(f"Unknown heatmap metric: {metric!r}")
    if pillar not in PILLARS:
        raise UnknownDimensionError(f"Unknown pillar: {pillar!r}")
    if metric == "gap":
        return gap_column(pillar)
    return score_column(pillar, metric, ScoreVariant.SIGNED_SPLIT)


def _cell(group: str, category: Any, values: pd.Series, count: int) -> Optional[Dict[str, Any]]:
    mean = nan_mean(values)
    if mean is None:
        return None
    return {"group": group, "category": category, "value": mean, "count": count}


def demographic_cells(
    records: pd.DataFrame, column: str, groups: Sequence[str], min_size: int
) -> List[Dict[str, Any]]:
    cells: List[Dict[str, Any]] = []
    for name in groups:
        dim = Dimension.parse(name)
        for category, members in partition(records, dim):
            if len(members) < min_size or category in ("", None):
                continue
            cell = _cell(dim.label, category, members[column], len(members))
            if cell:
                cells.append(cell)
    return cells


def top_managers(records: pd.DataFrame, limit: int = TOP_MANAGERS) -> List[str]:
    managers = records["manager"].dropna().astype(str)
    managers = managers[~managers.isin(NON_MANAGER_VALUES)]
    counts = managers.groupby(managers, sort=False).size()
    # Stable sort keeps first-appearance order among equal team sizes
    return list(counts.sort_values(ascending=False, kind="stable").head(limit).index)


def pillar_cells(
    records: pd.DataFrame, key: Dimension, metric: str, min_size: int, keep: Optional[Sequence[str]] = None
) -> List[Dict[str, Any]]:
    cells: List[Dict[str, Any]] = []
    parts = partition(records, key)
    if keep is not None:
        order = {k: i for i, k in enumerate(keep)}
        parts = sorted((p for p in parts if p[0] in order), key=lambda p: order[p[0]])
    for pillar in PILLARS:
        column = metric_column(pillar, metric)
        for category, members in parts:
            if len(members) < min_size:
                continue
            cell = _cell(pillar.capitalize(), category, members[column], len(members))
            if cell:
                cells.append(cell)
    return cells


def heatmap_stats(cells: List[Dict[str, Any]], metric: str) -> Dict[str, Any]:
    stats: Dict[str, Any] = {"cell_count": len(cells), "worst": None, "best": None, "critical": [], "progress": None}
    if not cells:
        return stats
    values = [c["value"] for c in cells]
    higher_is_worse = metric == "negative"
    stats["worst"] = max(values) if higher_is_worse else min(values)
    stats["best"] = min(values) if higher_is_worse else max(values)
    ranked = sorted(cells, key=lambda c: -c["value"] if higher_is_worse else c["value"])
    stats["critical"] = [dict(c) for c in ranked[:CRITICAL_COUNT]]

    top = max(values)
    if top:
        avg = sum(values) / len(values)
        score = (1 - avg / top) * 100 if higher_is_worse else avg / top * 100
        stats["progress"] = min(100.0, max(0.0, score))
    return stats


def compute_heatmap(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    mode: str = "demographics",
    metric: str = "negative",
    pillar: str = "equity",
    groups: Optional[List[str]] = None,
) -> Dict[str, Any]:
    if mode not in MODES:
        raise UnknownDimensionError(f"Unknown heatmap mode: {mode!r}")
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    min_size = filters.group_size(DEFAULT_MIN_GROUP_SIZE)
    column = metric_column(pillar, metric)
    active = list(DEMOGRAPHIC_GROUPS if groups is None else groups)

    if filtered.empty:
        cells: List[Dict[str, Any]] = []
    elif mode == "demographics":
        cells = demographic_cells(filtered, column, active, min_size)
    elif mode == "divisions":
        cells = pillar_cells(filtered, Dimension.DIVISION, metric, min_size)
    else:
        cells = pillar_cells(filtered, Dimension.MANAGER, metric, min_size, keep=top_managers(filtered))

    values = [c["value"] for c in cells]
    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "mode": mode,
        "metric": metric,
        "pillar": pillar,
        "cells": cells,
        "legend": {
            "title": LEGEND_TITLES[metric],
            "min": min(values) if values else None,
            "max": max(values) if values else None,
        },
        "stats": heatmap_stats(cells, metric),
        "charts": {},
    }
    if not cells:
        return payload

    # Sequential metrics start at zero; the gap scale spans the observed range
    domain = [0, max(values)] if metric != "gap" else [min(values), max(values)]
    heat = (
        alt.Chart(chart_frame(cells))
        .mark_rect(stroke="#fff", strokeWidth=1)
        .encode(
            x=alt.X("category:N", title={"demographics": "Categories", "divisions": "Divisions"}.get(mode, "Managers"), sort=None),
            y=alt.Y("group:N", title="Demographic Groups" if mode == "demographics" else "Pillar", sort=None),
            color=alt.Color(
                "value:Q",
                title=LEGEND_TITLES[metric],
                scale=alt.Scale(scheme=HEATMAP_SCHEMES[metric], domain=domain),
            ),
            tooltip=[
                alt.Tooltip("group:N", title="Group"),
                alt.Tooltip("category:N", title="Category"),
                alt.Tooltip("value:Q", title=metric.capitalize(), format=".3f"),
                alt.Tooltip("count:Q", title="Sample Size"),
            ],
        )
    )
    payload["charts"]["heatmap"] = to_vega_spec(heat)
    return payload

from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from dei_core.charts import SCORE_CATEGORY_COLORS, chart_frame, to_vega_spec
from dei_core.columns import PILLARS
from dei_core.dimensions import Dimension, UnknownDimensionError
from dei_core.filters import FilterState
from dei_core.grouping import SortOrder, aggregate_groups, group_diversity
from dei_core.scores import SCORE_CATEGORIES, combination_layers, net_column, score_category

DEFAULT_MIN_GROUP_SIZE = 5
CRITICAL_THRESHOLD = -0.5
MODES = ("intersectional", "department-performance")
SCORE_TYPES = ("overall",) + PILLARS


def net_score_column(score_type: str) -> str:
    if score_type == "overall":
        return "dei_net"
    if score_type in PILLARS:
        return net_column(score_type)
    raise UnknownDimensionError(f"Unknown score type: {score_type!r}")


def bubble_stats(bubbles: List[Dict[str, Any]]) -> Dict[str, Any]:
    scored = [b for b in bubbles if b["score"] is not None]
    critical = [b for b in scored if b["score"] < CRITICAL_THRESHOLD]
    stats: Dict[str, Any] = {
        "total_groups": len(bubbles),
        "critical_groups": len(critical),
        "best": None,
        "worst": None,
        "progress": (len(bubbles) - len(critical)) / len(bubbles) if bubbles else 0.0,
    }
    if scored:
        # First group wins ties
        stats["best"] = max(scored, key=lambda b: b["score"])["key"]
        stats["worst"] = min(scored, key=lambda b: b["score"])["key"]
    return stats


def compute_bubbles(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    mode: str = "intersectional",
    score_type: str = "overall",
    sort: bool = False,
) -> Dict[str, Any]:
    if mode not in MODES:
        raise UnknownDimensionError(f"Unknown bubble mode: {mode!r}")
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    column = net_score_column(score_type)
    key = Dimension.IDENTITY_COMBINATION if mode == "intersectional" else Dimension.DIVISION

    groups = aggregate_groups(
        filtered,
        key,
        column,
        min_size=filters.group_size(DEFAULT_MIN_GROUP_SIZE),
        sort=SortOrder.MEAN_DESC if sort else SortOrder.NONE,
    )
    diversity = group_diversity(filtered, Dimension.DIVISION, Dimension.GENDER) if mode != "intersectional" else {}

    bubbles: List[Dict[str, Any]] = []
    for g in groups:
        bubble = {
            "key": g.key,
            "count": g.count,
            "score": g.mean,
            "score_category": score_category(g.mean),
            "y": g.mean,
            "size": g.count,
        }
        if mode == "intersectional":
            bubble["marginalization_layers"] = combination_layers(str(g.key))
            bubble["x"] = bubble["marginalization_layers"]
        else:
            bubble["diversity_index"] = diversity.get(g.key, 0.0)
            bubble["x"] = bubble["diversity_index"]
        bubbles.append(bubble)

    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "mode": mode,
        "score_type": score_type,
        "bubbles": bubbles,
        "legend": [{"category": c, "color": SCORE_CATEGORY_COLORS[c]} for c in SCORE_CATEGORIES],
        "stats": bubble_stats(bubbles),
        "charts": {},
    }
    if not bubbles:
        return payload

    x_title = "Marginalization Layers" if mode == "intersectional" else "Gender Diversity Index"
    chart = (
        alt.Chart(chart_frame(bubbles))
        .mark_circle(opacity=0.8, stroke="#fff", strokeWidth=1)
        .encode(
            x=alt.X("x:Q", title=x_title),
            y=alt.Y("y:Q", title="DEI Score"),
            size=alt.Size("size:Q", title="Employees", scale=alt.Scale(range=[16, 900])),
            color=alt.Color(
                "score_category:N",
                title="Score Category",
                scale=alt.Scale(domain=list(SCORE_CATEGORIES), range=list(SCORE_CATEGORY_COLORS.values())),
            ),
            tooltip=[
                alt.Tooltip("key:N", title="Group"),
                alt.Tooltip("count:Q", title="Employees"),
                alt.Tooltip("score:Q", title="Score", format=".3f"),
                alt.Tooltip("score_category:N", title="Category"),
            ],
        )
    )
    rule = alt.Chart(pd.DataFrame({"y": [0]})).mark_rule(color="gray", strokeDash=[5, 5]).encode(y="y:Q")
    payload["charts"]["bubbles"] = to_vega_spec(chart + rule)
    return payload

from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from dei_core.charts import chart_frame, to_vega_spec
from dei_core.columns import reported_column
from dei_core.dimensions import Dimension, UnknownDimensionError
from dei_core.filters import FilterState
from dei_core.grouping import SortOrder, aggregate_groups
from dei_core.scores import ScoreVariant, score_column
from dei_core.stats import GroupStats

DEFAULT_MIN_GROUP_SIZE = 5
SCORE_TYPES = ("diversity", "positive", "negative")
GENDER_GAP_NOTE_THRESHOLD = 0.5
PILLAR = "diversity"


def bar_score_column(score_type: str, records: pd.DataFrame) -> str:
    """Column behind a bar score type.

    `diversity` is the all-values mean of the diversity answers. `positive` and
    `negative` use the reported D_Positive/D_Negative columns when the source
    carries them, and the signed-split scores otherwise.
    """
    if score_type not in SCORE_TYPES:
        raise UnknownDimensionError(f"Unknown score type: {score_type!r}")
    if score_type == "diversity":
        return score_column(PILLAR, "positive", ScoreVariant.ALL_VALUES)
    reported = reported_column(PILLAR, score_type)
    if reported in records.columns and records[reported].notna().any():
        return reported
    return score_column(PILLAR, score_type, ScoreVariant.SIGNED_SPLIT)


def progress(avg: Optional[float], score_type: str) -> Optional[float]:
    if avg is None:
        return None
    if score_type == "negative":
        value = abs(avg) / 2 * 100
    else:
        value = (avg + 2) / 4 * 100
    return min(100.0, max(0.0, value))


def _insights(groups: List[GroupStats], dimension: Dimension) -> Optional[Dict[str, Any]]:
    if not groups:
        return None
    highest, lowest = groups[0], groups[-1]
    means = [g.mean for g in groups if g.mean is not None]
    gap = (highest.mean - lowest.mean) if highest.mean is not None and lowest.mean is not None else None
    out: Dict[str, Any] = {
        "highest": {"key": highest.key, "score": highest.mean, "count": highest.count},
        "lowest": {"key": lowest.key, "score": lowest.mean, "count": lowest.count},
        "gap": gap,
        "average": sum(means) / len(means) if means else None,
        "note": None,
    }
    if dimension is Dimension.GENDER and len(groups) >= 2 and gap is not None:
        if gap > GENDER_GAP_NOTE_THRESHOLD:
            out["note"] = "Significant differences in diversity perception between genders."
        else:
            out["note"] = "Relatively similar diversity perception across genders."
    return out


def compute_bars(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    dimension: str = "gender",
    score_type: str = "diversity",
) -> Dict[str, Any]:
    dim = Dimension.parse(dimension)
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    column = bar_score_column(score_type, records if not records.empty else filtered)

    groups = aggregate_groups(
        filtered,
        dim,
        column,
        min_size=filters.group_size(DEFAULT_MIN_GROUP_SIZE),
        sort=SortOrder.MEAN_DESC,
    )
    means = [g.mean for g in groups if g.mean is not None]
    avg = sum(means) / len(means) if means else None

    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "dimension": dim.value,
        "score_type": score_type,
        "score_column": column,
        "groups": [dict(g.to_dict(), score=g.mean) for g in groups],
        "stats": {
            "group_count": len(groups),
            "employee_count": int(len(filtered)),
            "average": avg,
            "highest": max(means) if means else None,
            "lowest": min(means) if means else None,
            "progress": progress(avg, score_type),
        },
        "insights": _insights(groups, dim),
        "charts": {},
    }
    if not groups:
        return payload

    bars = (
        alt.Chart(chart_frame(payload["groups"], ["key", "score", "count"]))
        .mark_bar()
        .encode(
            x=alt.X("key:N", title=dim.label, sort="-y"),
            y=alt.Y("score:Q", title="Average Score"),
            color=alt.Color("score:Q", scale=alt.Scale(scheme="viridis"), legend=None),
            tooltip=[
                alt.Tooltip("key:N", title=dim.label),
                alt.Tooltip("score:Q", title="Score", format=".2f"),
                alt.Tooltip("count:Q", title="Employees"),
            ],
        )
    )
    payload["charts"]["bars"] = to_vega_spec(bars)
    return payload

from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from dei_core.bivariate import ZSCORE_THRESHOLD, linear_regression, pearson_correlation, zscore_outliers
from dei_core.charts import chart_frame, to_vega_spec
from dei_core.columns import FLAG_COLUMNS
from dei_core.data import records_to_dicts
from dei_core.dimensions import NumericField
from dei_core.filters import FilterState
from dei_core.stats import optional_float

HIGH_MARGINALIZATION = 3

INTERSECTIONAL_COLORS: Dict[str, str] = {
    "None": "#808080",
    "LGBTQ": "#ff6b6b",
    "Minority": "#45b7d1",
    "Disability": "#96ceb4",
    "Indigenous": "#ffeaa7",
    "Veteran": "#dda0dd",
    "LGBTQ+Minority": "#ff4757",
    "Disability+Veteran": "#5f27cd",
    "Multiple": "#2d3436",
}

TRAIT_LABELS: Dict[str, str] = {
    "LGBTQ": "LGBTQ+",
    "Minority": "Ethnic Minority",
    "Disability": "Disability",
    "Indigenous": "Indigenous",
    "Veteran": "Veteran",
}

POINT_COLUMNS = ["id", "name", "division", "nationality", "age", "gender", "pronouns",
                 "marginalization_count", "intersectional_category"]


def display_name(name: Any, record_id: Any) -> str:
    if name:
        return str(name)
    if record_id is None:
        return "Employee"
    return f"Employee {int(record_id)}" if float(record_id).is_integer() else f"Employee {record_id}"


def traits(row: Dict[str, Any]) -> List[str]:
    return [TRAIT_LABELS[group] for group, column in FLAG_COLUMNS.items() if row.get(column)]


def compute_scatter(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    x: str = "diversity",
    y: str = "equity",
    trendline: bool = False,
) -> Dict[str, Any]:
    x_field, y_field = NumericField.parse(x), NumericField.parse(y)
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    total = int(ctx.get("total", len(filtered)))

    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "x": x_field.value,
        "y": y_field.value,
        "points": [],
        "regression": None,
        "correlation": 0.0,
        "legend": [],
        "stats": {
            "total": total,
            "visible": int(len(filtered)),
            "percentage": (len(filtered) / total * 100.0) if total else 0.0,
            "correlation": 0.0,
            "high_marginalization": 0,
            "outliers": [],
        },
        "charts": {},
    }
    if filtered.empty:
        return payload

    xs, ys = x_field.series(filtered), y_field.series(filtered)
    outlier_mask = zscore_outliers(xs, ys, ZSCORE_THRESHOLD)
    rows = records_to_dicts(filtered, POINT_COLUMNS + list(FLAG_COLUMNS.values()))

    points = []
    for row, xv, yv, is_outlier in zip(rows, xs, ys, outlier_mask):
        points.append(
            {
                "id": row["id"],
                "name": display_name(row.get("name"), row.get("id")),
                "x": optional_float(xv),
                "y": optional_float(yv),
                "size": row["marginalization_count"],
                "category": row["intersectional_category"],
                "division": row.get("division"),
                "nationality": row.get("nationality"),
                "age": row.get("age"),
                "pronouns": row.get("pronouns"),
                "traits": traits(row),
                "outlier": bool(is_outlier),
            }
        )
    payload["points"] = points

    correlation = pearson_correlation(xs, ys)
    payload["correlation"] = correlation
    payload["stats"]["correlation"] = correlation
    payload["stats"]["high_marginalization"] = int((filtered["marginalization_count"] >= HIGH_MARGINALIZATION).sum())
    payload["stats"]["outliers"] = [p["id"] for p in points if p["outlier"]]

    categories = list(dict.fromkeys(p["category"] for p in points))
    payload["legend"] = [{"category": c, "color": INTERSECTIONAL_COLORS.get(c, "#808080")} for c in categories]

    frame = chart_frame(points, ["id", "name", "x", "y", "size", "category", "division", "age", "outlier"])
    scatter = (
        alt.Chart(frame)
        .mark_circle(opacity=0.7)
        .encode(
            x=alt.X("x:Q", title=x_field.label, scale=alt.Scale(nice=True, zero=False)),
            y=alt.Y("y:Q", title=y_field.label, scale=alt.Scale(nice=True, zero=False)),
            size=alt.Size("size:Q", title="Marginalization Level", scale=alt.Scale(domain=[0, 5])),
            color=alt.Color(
                "category:N",
                title="Intersectional Category",
                scale=alt.Scale(domain=categories, range=[INTERSECTIONAL_COLORS.get(c, "#808080") for c in categories]),
            ),
            tooltip=[
                alt.Tooltip("name:N", title="Name"),
                alt.Tooltip("division:N", title="Division"),
                alt.Tooltip("age:Q", title="Age"),
                alt.Tooltip("x:Q", title=x_field.label, format=".2f"),
                alt.Tooltip("y:Q", title=y_field.label, format=".2f"),
                alt.Tooltip("size:Q", title="Marginalization Level"),
            ],
        )
    )

    if trendline:
        regression = linear_regression(xs, ys)
        payload["regression"] = regression.to_dict()
        finite_x = [p["x"] for p in points if p["x"] is not None]
        if not regression.indeterminate and finite_x:
            x1, x2 = min(finite_x), max(finite_x)
            line = pd.DataFrame({"x": [x1, x2], "y": [regression.predict(x1), regression.predict(x2)]})
            trend = alt.Chart(line).mark_line(color="#feca57", strokeDash=[5, 5]).encode(x="x:Q", y="y:Q")
            payload["charts"]["scatter"] = to_vega_spec(scatter + trend)
            return payload

    payload["charts"]["scatter"] = to_vega_spec(scatter)
    return payload

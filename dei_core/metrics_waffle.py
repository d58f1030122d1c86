from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from dei_core.charts import chart_frame, color_scale, palette_for, to_vega_spec
from dei_core.data import records_to_dicts
from dei_core.dimensions import Dimension
from dei_core.filters import FilterState
from dei_core.grouping import category_distribution, diversity_index

GRID_SIZE = 100
TOOLTIP_COLUMNS = ["id", "name", "surname", "division", "nationality", "age"]


def compute_waffle(filters: FilterState, ctx: Dict[str, Any], *, dimension: str = "gender") -> Dict[str, Any]:
    dim = Dimension.parse(dimension)
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    total = int(ctx.get("total", len(ctx.get("records", filtered))))

    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "dimension": dim.value,
        "cells": [],
        "legend": [],
        "distribution": [],
        "stats": {
            "total": total,
            "filtered": int(len(filtered)),
            "percentage": (len(filtered) / total * 100.0) if total else 0.0,
            "diversity_index": 0.0,
            "empty_cells": GRID_SIZE * GRID_SIZE,
        },
        "charts": {},
    }
    if filtered.empty:
        return payload

    # One cell per record, row-major; records beyond the grid are not drawn
    visible = filtered.head(GRID_SIZE * GRID_SIZE)
    rows = records_to_dicts(visible, TOOLTIP_COLUMNS + [dim.column])
    cells = []
    for i, row in enumerate(rows):
        cell = {"x": i % GRID_SIZE, "y": i // GRID_SIZE, "value": row.get(dim.column)}
        cell.update({c: row.get(c) for c in TOOLTIP_COLUMNS})
        cells.append(cell)
    payload["cells"] = cells

    distribution = category_distribution(filtered, dim)
    colors = palette_for(dim.value, [d["key"] for d in distribution])
    payload["distribution"] = distribution
    payload["legend"] = [{"value": k, "color": c} for k, c in colors.items()]
    payload["stats"]["diversity_index"] = diversity_index(filtered, dim)
    payload["stats"]["empty_cells"] = GRID_SIZE * GRID_SIZE - len(cells)

    grid = (
        alt.Chart(chart_frame(cells))
        .mark_rect()
        .encode(
            x=alt.X("x:O", axis=None),
            y=alt.Y("y:O", axis=None),
            color=alt.Color("value:N", title=dim.label, scale=color_scale(colors)),
            tooltip=[
                alt.Tooltip("name:N", title="Name"),
                alt.Tooltip("surname:N", title="Surname"),
                alt.Tooltip("division:N", title="Division"),
                alt.Tooltip("nationality:N", title="Nationality"),
                alt.Tooltip("age:Q", title="Age"),
            ],
        )
    )
    payload["charts"]["waffle"] = to_vega_spec(grid)
    return payload

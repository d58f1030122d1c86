"""One entry point for every chart view.

`run_view` validates a request, loads (or reuses) the dataset, applies the
filter state and hands the filtered context to the view's compute function.
Each call works from a single `FilterState` snapshot.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, NamedTuple, Optional, Type, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel

from dei_core.data import Dataset, DatasetLoadError, load_dataset, prepare_context
from dei_core.dimensions import UnknownDimensionError
from dei_core.metrics_bars import compute_bars
from dei_core.metrics_boxplot import compute_boxplot
from dei_core.metrics_bubbles import compute_bubbles
from dei_core.metrics_heatmap import compute_heatmap
from dei_core.metrics_scatter import compute_scatter
from dei_core.metrics_waffle import compute_waffle
from dei_core.schemas import (
    BarOptions,
    BoxPlotOptions,
    BubbleOptions,
    HeatmapOptions,
    ScatterOptions,
    ViewRequestModel,
    WaffleOptions,
)

logger = logging.getLogger(__name__)


class ViewSpec(NamedTuple):
    compute: Callable[..., Dict[str, Any]]
    options: Type[BaseModel]


VIEWS: Dict[str, ViewSpec] = {
    "waffle": ViewSpec(compute_waffle, WaffleOptions),
    "bars": ViewSpec(compute_bars, BarOptions),
    "heatmap": ViewSpec(compute_heatmap, HeatmapOptions),
    "scatter": ViewSpec(compute_scatter, ScatterOptions),
    "bubbles": ViewSpec(compute_bubbles, BubbleOptions),
    "boxplot": ViewSpec(compute_boxplot, BoxPlotOptions),
}


def json_safe(data: Any) -> Any:
    """Recursively replace NaN/inf with None and numpy/pandas scalars with Python ones."""
    if isinstance(data, dict):
        return {k: json_safe(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [json_safe(v) for v in data]
    if isinstance(data, np.ndarray):
        return [json_safe(v) for v in data.tolist()]
    if data is None or data is pd.NA:
        return None
    if isinstance(data, (bool, np.bool_)):
        return bool(data)
    if isinstance(data, (int, np.integer)):
        return int(data)
    if isinstance(data, (float, np.floating)):
        out = float(data)
        return None if math.isnan(out) or math.isinf(out) else out
    return data


def run_view(
    view: str,
    request: Union[ViewRequestModel, Dict[str, Any], None] = None,
    dataset: Optional[Dataset] = None,
    *,
    path: Optional[Union[Path, str]] = None,
) -> Dict[str, Any]:
    name = str(view).strip().lower()
    spec = VIEWS.get(name)
    if spec is None:
        raise UnknownDimensionError(f"Unknown view: {view!r}")

    req = request if isinstance(request, ViewRequestModel) else ViewRequestModel.model_validate(request or {})
    options = spec.options.model_validate(req.options)
    filters = req.filters.to_filters()

    if dataset is None:
        try:
            dataset = load_dataset(path)
        except DatasetLoadError:
            logger.exception("%s: dataset load failed", name)
            raise

    ctx = prepare_context(filters, dataset)
    payload = spec.compute(filters, ctx, **options.model_dump())
    payload["view"] = name
    return json_safe(payload)

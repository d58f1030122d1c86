from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

DEFAULT_PALETTE = ["#ff6b6b", "#4ecdc4", "#45b7d1", "#96ceb4", "#feca57", "#ff9ff3", "#fd79a8"]
EMPTY_CELL_COLOR = "#2a2a2a"

PALETTES: Dict[str, List[str]] = {
    "gender": DEFAULT_PALETTE[:6],
    "age_group": ["#ff6b6b", "#feca57", "#48dbfb", "#0abde3"],
    "ethnicity": DEFAULT_PALETTE,
    "sexual_orientation": DEFAULT_PALETTE[:5],
    "lgbtq": DEFAULT_PALETTE[:3],
    "veteran": DEFAULT_PALETTE[:3],
    "disability": DEFAULT_PALETTE[:3],
    "indigenous": DEFAULT_PALETTE[:3],
}

# Heatmap colour schemes per metric.
HEATMAP_SCHEMES: Dict[str, str] = {"positive": "greens", "negative": "reds", "gap": "redyellowgreen"}

SCORE_CATEGORY_COLORS: Dict[str, str] = {
    "critical": "#d73027",
    "low": "#fc8d59",
    "moderate": "#fee08b",
    "good": "#91cf60",
    "excellent": "#1a9850",
}


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def palette_for(dimension: str, values: Sequence[Any]) -> Dict[str, str]:
    colors = PALETTES.get(dimension, DEFAULT_PALETTE)
    return {str(v): colors[i % len(colors)] for i, v in enumerate(values)}


def color_scale(mapping: Dict[str, str]) -> alt.Scale:
    return alt.Scale(domain=list(mapping), range=list(mapping.values()))


def chart_frame(rows: Iterable[Dict[str, Any]], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """DataFrame of scalar payload fields for Altair; list-valued fields are left out."""
    df = pd.DataFrame(list(rows))
    if df.empty:
        return pd.DataFrame(columns=list(columns or []))
    if columns is not None:
        df = df[[c for c in columns if c in df.columns]]
    scalar = [c for c in df.columns if not df[c].map(lambda v: isinstance(v, (list, tuple, dict))).any()]
    return df[scalar]

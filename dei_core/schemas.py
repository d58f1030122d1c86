from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dei_core.columns import AGE_BOUNDS
from dei_core.dimensions import Dimension, NumericField
from dei_core.filters import MARGINALIZATION_BOUNDS, FilterState, normalize_filters


class FilterStateModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    age_range: Tuple[int, int] = AGE_BOUNDS
    categories: Dict[str, List[str]] = Field(default_factory=dict)
    marginalization_range: Tuple[int, int] = MARGINALIZATION_BOUNDS
    active_groups: Optional[List[str]] = None
    active_combinations: List[str] = Field(default_factory=list)
    min_group_size: Optional[int] = Field(default=None, ge=1)

    @field_validator("categories")
    @classmethod
    def _known_dimensions(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {Dimension.parse(k).value: v for k, v in value.items()}

    def to_filters(self) -> FilterState:
        return normalize_filters(self.model_dump())


def _dimension(value: str) -> str:
    return Dimension.parse(value).value


def _numeric_field(value: str) -> str:
    return NumericField.parse(value).value


class WaffleOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dimension: str = "gender"

    check_dimension = field_validator("dimension")(_dimension)


class BarOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dimension: str = "gender"
    score_type: Literal["diversity", "positive", "negative"] = "diversity"

    check_dimension = field_validator("dimension")(_dimension)


class HeatmapOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["demographics", "divisions", "managers"] = "demographics"
    metric: Literal["positive", "negative", "gap"] = "negative"
    pillar: Literal["diversity", "equity", "inclusion"] = "equity"
    groups: Optional[List[str]] = None

    @field_validator("groups")
    @classmethod
    def _known_groups(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return [Dimension.parse(v).value for v in value]


class ScatterOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    x: str = "diversity"
    y: str = "equity"
    trendline: bool = False

    check_x = field_validator("x")(_numeric_field)
    check_y = field_validator("y")(_numeric_field)


class BubbleOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["intersectional", "department-performance"] = "intersectional"
    score_type: Literal["overall", "diversity", "equity", "inclusion"] = "overall"
    sort: bool = False


class BoxPlotOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dimension: str = "division"
    field: str = "equity"
    sort: Literal["key", "mean_desc", "mean_asc", "none"] = "key"

    check_dimension = field_validator("dimension")(_dimension)
    check_field = field_validator("field")(_numeric_field)


class ViewRequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filters: FilterStateModel = Field(default_factory=FilterStateModel)
    options: Dict[str, Any] = Field(default_factory=dict)


class FilterOptionsResponse(BaseModel):
    values: Dict[str, List[str]]

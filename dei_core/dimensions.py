"""Closed sets of the dimensions and numeric fields a view may ask for.

Every lookup of a record attribute by name goes through `Dimension.parse` or
`NumericField.parse`, so an unknown name fails at the boundary instead of
silently producing empty groups.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict

import pandas as pd


class UnknownDimensionError(ValueError):
    """Raised when a dimension, field or option name is not supported."""


def _name_key(name: object) -> str:
    return re.sub(r"[\s_\-]+", "", str(name or "")).lower()


class Dimension(str, Enum):
    GENDER = "gender"
    AGE_GROUP = "age_group"
    ETHNICITY = "ethnicity"
    SEXUAL_ORIENTATION = "sexual_orientation"
    LGBTQ = "lgbtq"
    VETERAN = "veteran"
    DISABILITY = "disability"
    INDIGENOUS = "indigenous"
    MINORITY = "minority"
    DIVISION = "division"
    NATIONALITY = "nationality"
    MANAGER = "manager"
    INTERSECTIONAL_CATEGORY = "intersectional_category"
    IDENTITY_COMBINATION = "identity_combination"

    @property
    def column(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return DIMENSION_LABELS[self]

    def series(self, records: pd.DataFrame) -> pd.Series:
        return records[self.column]

    @classmethod
    def parse(cls, name: "Dimension | str") -> "Dimension":
        if isinstance(name, Dimension):
            return name
        key = _name_key(name)
        for dim in cls:
            if key in (_name_key(dim.value), _name_key(dim.label)):
                return dim
        if key == "department":
            return cls.DIVISION
        raise UnknownDimensionError(f"Unknown dimension: {name!r}")


DIMENSION_LABELS: Dict[Dimension, str] = {
    Dimension.GENDER: "Gender",
    Dimension.AGE_GROUP: "Age Group",
    Dimension.ETHNICITY: "Ethnicity",
    Dimension.SEXUAL_ORIENTATION: "Sexual Orientation",
    Dimension.LGBTQ: "LGBTQ",
    Dimension.VETERAN: "Veteran",
    Dimension.DISABILITY: "Disability",
    Dimension.INDIGENOUS: "Indigenous",
    Dimension.MINORITY: "Minority",
    Dimension.DIVISION: "Division",
    Dimension.NATIONALITY: "Nationality",
    Dimension.MANAGER: "Manager",
    Dimension.INTERSECTIONAL_CATEGORY: "Intersectional Category",
    Dimension.IDENTITY_COMBINATION: "Identity Combination",
}


class NumericField(str, Enum):
    AGE = "age"
    DIVERSITY = "diversity"
    EQUITY = "equity"
    INCLUSION = "inclusion"
    DIVERSITY_NET = "diversity_net"
    EQUITY_NET = "equity_net"
    INCLUSION_NET = "inclusion_net"
    DEI_COMPOSITE = "dei_composite"
    DEI_NET = "dei_net"
    MARGINALIZATION_COUNT = "marginalization_count"

    @property
    def column(self) -> str:
        return NUMERIC_FIELD_COLUMNS[self]

    @property
    def label(self) -> str:
        return NUMERIC_FIELD_LABELS[self]

    def series(self, records: pd.DataFrame) -> pd.Series:
        return records[self.column]

    @classmethod
    def parse(cls, name: "NumericField | str") -> "NumericField":
        if isinstance(name, NumericField):
            return name
        key = _name_key(name)
        for f in cls:
            if key in (_name_key(f.value), _name_key(f.label)):
                return f
        aliases = {
            "dpositive": cls.DIVERSITY,
            "epositive": cls.EQUITY,
            "ipositive": cls.INCLUSION,
            "marginalization": cls.MARGINALIZATION_COUNT,
        }
        if key in aliases:
            return aliases[key]
        raise UnknownDimensionError(f"Unknown numeric field: {name!r}")


NUMERIC_FIELD_COLUMNS: Dict[NumericField, str] = {
    NumericField.AGE: "age",
    NumericField.DIVERSITY: "diversity_positive_mean",
    NumericField.EQUITY: "equity_positive_mean",
    NumericField.INCLUSION: "inclusion_positive_mean",
    NumericField.DIVERSITY_NET: "diversity_net",
    NumericField.EQUITY_NET: "equity_net",
    NumericField.INCLUSION_NET: "inclusion_net",
    NumericField.DEI_COMPOSITE: "dei_composite_mean",
    NumericField.DEI_NET: "dei_net",
    NumericField.MARGINALIZATION_COUNT: "marginalization_count",
}

NUMERIC_FIELD_LABELS: Dict[NumericField, str] = {
    NumericField.AGE: "Age",
    NumericField.DIVERSITY: "Diversity Score",
    NumericField.EQUITY: "Equity Score",
    NumericField.INCLUSION: "Inclusion Score",
    NumericField.DIVERSITY_NET: "Diversity Net Score",
    NumericField.EQUITY_NET: "Equity Net Score",
    NumericField.INCLUSION_NET: "Inclusion Net Score",
    NumericField.DEI_COMPOSITE: "DEI Composite Score",
    NumericField.DEI_NET: "Overall DEI Score",
    NumericField.MARGINALIZATION_COUNT: "Marginalization Level",
}

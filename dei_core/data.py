from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from dei_core.columns import (
    AGE_GROUPS,
    AGE_THRESHOLDS,
    CATEGORY_COLUMNS,
    FLAG_COLUMNS,
    NO,
    NUMERIC_COLUMNS,
    PLACEHOLDER,
    REPORTED_COLUMNS,
    REQUIRED_SOURCE_COLUMNS,
    SOURCE_COLUMNS,
    TEXT_COLUMNS,
    YES_NO_COLUMNS,
    YES_TOKENS,
)
from dei_core.dimensions import Dimension
from dei_core.filters import FilterState, apply_filters, normalize_filters
from dei_core.scores import DerivationSettings, derive_metrics

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_SOURCE = DATA_DIR / "deidataset.csv"
DEFAULT_SEP = ","

NA_TOKENS = {"nan", "none", "null", "<na>", "na", "n/a", ""}


class DatasetLoadError(RuntimeError):
    """The source table could not be read or parsed."""


@dataclass(frozen=True, eq=False)
class Dataset:
    records: pd.DataFrame
    source: Optional[str] = None
    settings: DerivationSettings = field(default_factory=DerivationSettings)

    @property
    def total(self) -> int:
        return int(len(self.records))

    @property
    def has_reported_scores(self) -> bool:
        cols = [c for c in REPORTED_COLUMNS if c in self.records.columns]
        return bool(cols) and bool(self.records[cols].notna().any().any())


# ---------------- Normalization ----------------
def age_group(age: object) -> str:
    if age is None or pd.isna(age):
        return PLACEHOLDER
    value = float(age)  # type: ignore[arg-type]
    for threshold, label in zip(AGE_THRESHOLDS, AGE_GROUPS):
        if value <= threshold:
            return label
    return AGE_GROUPS[-1]


def parse_flag(value: object) -> bool:
    if value is None or pd.isna(value):
        return False
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    return str(value).strip().lower() in YES_TOKENS


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            df[col] = series.mask(series.str.lower().isin(NA_TOKENS))
    return df


def fill_placeholders(df: pd.DataFrame, cols: Iterable[str], value: str) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].fillna(value)
    return df


def normalize_records(raw: pd.DataFrame) -> pd.DataFrame:
    """Turn raw string-keyed rows into typed employee records.

    Rows are never dropped. Unparseable numbers become NaN, missing categories
    become "Not specified", missing yes/no answers become "No".
    """
    df = raw.copy()
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in REQUIRED_SOURCE_COLUMNS if c not in df.columns]
    if missing:
        logger.warning("Source table is missing columns %s; filling placeholders", missing)
    df = df.rename(columns=SOURCE_COLUMNS)
    df = drop_duplicate_columns(df)

    for col in NUMERIC_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan
    for col in TEXT_COLUMNS + CATEGORY_COLUMNS + YES_NO_COLUMNS:
        if col not in df.columns:
            df[col] = None

    df = numericize(df, NUMERIC_COLUMNS)
    df = coerce_str_safe(df, TEXT_COLUMNS + CATEGORY_COLUMNS + YES_NO_COLUMNS)
    df = fill_placeholders(df, CATEGORY_COLUMNS, PLACEHOLDER)
    df = fill_placeholders(df, YES_NO_COLUMNS, NO)

    df["age_group"] = [age_group(a) for a in df["age"]]
    df[FLAG_COLUMNS["LGBTQ"]] = [parse_flag(v) for v in df["lgbtq"]]
    df[FLAG_COLUMNS["Disability"]] = [parse_flag(v) for v in df["disability"]]
    df[FLAG_COLUMNS["Indigenous"]] = [parse_flag(v) for v in df["indigenous"]]
    df[FLAG_COLUMNS["Veteran"]] = [parse_flag(v) for v in df["veteran"]]
    ethnicity = df["ethnicity"].astype("string").str.casefold()
    df[FLAG_COLUMNS["Minority"]] = (ethnicity != "white").fillna(True).astype(bool)
    df["reports_minority"] = [parse_flag(v) for v in df["minority"]]
    df["is_manager"] = [parse_flag(v) for v in df["manager"]]

    for col in FLAG_COLUMNS.values():
        df[col] = df[col].astype(bool)
    return df.reset_index(drop=True)


def build_dataset(
    raw: pd.DataFrame,
    settings: Optional[DerivationSettings] = None,
    source: Optional[str] = None,
) -> Dataset:
    settings = settings or DerivationSettings()
    records = derive_metrics(normalize_records(raw), settings)
    logger.info("Built dataset with %d records from %s", len(records), source or "memory")
    return Dataset(records=records, source=source, settings=settings)


# ---------------- Loaders ----------------
def load_table(path: Path | str, sep: str = DEFAULT_SEP) -> pd.DataFrame:
    path = Path(path)
    try:
        df = pd.read_csv(path, sep=sep, dtype=str, skipinitialspace=True)
    except (OSError, UnicodeDecodeError, pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise DatasetLoadError(f"Could not read {path}: {exc}") from exc

    columns = {str(c).strip() for c in df.columns}
    if not columns & set(REQUIRED_SOURCE_COLUMNS):
        raise DatasetLoadError(f"{path} has none of the expected columns")
    return df


def file_signature(path: Path) -> Tuple[str, float]:
    try:
        return str(path.resolve()), path.stat().st_mtime
    except OSError as exc:
        raise DatasetLoadError(f"Could not read {path}: {exc}") from exc


@lru_cache(maxsize=4)
def _load_dataset_cached(signature: Tuple[str, float], sep: str, settings: DerivationSettings) -> Dataset:
    path, _ = signature
    return build_dataset(load_table(path, sep=sep), settings=settings, source=path)


def load_dataset(
    path: Optional[Path | str] = None,
    settings: Optional[DerivationSettings] = None,
    sep: str = DEFAULT_SEP,
) -> Dataset:
    path = Path(path) if path is not None else DEFAULT_SOURCE
    return _load_dataset_cached(file_signature(path), sep, settings or DerivationSettings())


# ---------------- Public API ----------------
def filter_options(dataset: Dataset, dimensions: Sequence[Dimension | str]) -> Dict[str, List[str]]:
    """Distinct non-empty values per dimension, in order of first appearance."""
    out: Dict[str, List[str]] = {}
    for name in dimensions:
        dim = Dimension.parse(name)
        values = dim.series(dataset.records).dropna().astype(str)
        out[dim.value] = [v for v in pd.unique(values) if v]
    return out


def prepare_context(filters: dict | FilterState | None, dataset: Dataset) -> Dict[str, Any]:
    filt = filters if isinstance(filters, FilterState) else normalize_filters(filters)
    filtered = apply_filters(dataset.records, filt)
    logger.debug("Filters kept %d of %d records", len(filtered), dataset.total)
    return {
        "filters": filt,
        "records": dataset.records,
        "filtered": filtered,
        "total": dataset.total,
        "has_reported_scores": dataset.has_reported_scores,
        "settings": dataset.settings,
    }


def records_to_dicts(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
    """JSON-ready rows: missing values become None, numpy scalars become Python ones."""
    if columns is not None:
        df = df[list(dict.fromkeys(c for c in columns if c in df.columns))]
    out = df.astype(object)
    return out.where(pd.notnull(out), None).to_dict(orient="records")

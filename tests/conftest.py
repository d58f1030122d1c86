"""Test fixtures for dei_core.

Provides fixtures for:
- Raw source tables built in memory (same headers as the CSV export)
- Normalized datasets built from those tables
- A CSV copy of the table written to a temp directory
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import pytest

from dei_core.data import Dataset, build_dataset

BASE_ROW: Dict[str, str] = {
    "Id": "1",
    "Name": "Ada",
    "Surname": "Lovelace",
    "Division": "Engineering",
    "Manager": "False",
    "Nationality": "British",
    "Gender": "Female",
    "Sexual_Orientation": "Heterosexual",
    "LGBTQ": "No",
    "Indigenous": "No",
    "Ethnicity": "White",
    "Disability": "No",
    "Veteran": "No",
    "Age": "30",
    "Minority": "No",
    "Pronouns": "she/her",
}


def make_row(
    row_id: int,
    *,
    d: Sequence[Optional[float]] = (1, 1, 1, 1, 1),
    e: Sequence[Optional[float]] = (1, 1, 1, 1, 1),
    i: Sequence[Optional[float]] = (1, 1, 1, 1, 1),
    **overrides: Any,
) -> Dict[str, str]:
    """Build one raw row; `None` answers become empty cells."""
    row = dict(BASE_ROW, Id=str(row_id), Name=f"Person{row_id}")
    for prefix, answers in (("D", d), ("E", e), ("I", i)):
        for q, value in enumerate(answers, start=1):
            row[f"Aug_{prefix}_Q{q}"] = "" if value is None else str(value)
    row.update({k: str(v) for k, v in overrides.items()})
    return row


def make_table(rows: List[Dict[str, str]]) -> pd.DataFrame:
    return pd.DataFrame(rows, dtype=object)


@pytest.fixture
def gender_table() -> pd.DataFrame:
    """20 rows: 10 men answering 2 to every diversity question, 10 women answering 3."""
    rows = [make_row(n, d=(2,) * 5, Gender="Male", Division="Sales") for n in range(1, 11)]
    rows += [make_row(n, d=(3,) * 5, Gender="Female", Division="Engineering") for n in range(11, 21)]
    return make_table(rows)


@pytest.fixture
def gender_dataset(gender_table: pd.DataFrame) -> Dataset:
    return build_dataset(gender_table)


@pytest.fixture
def identity_table() -> pd.DataFrame:
    """Rows spread over identity combinations of different sizes.

    - 6 White, no flags (Majority Group)
    - 5 Black (Minority)
    - 5 Asian and LGBTQ (Minority + LGBTQ+)
    - 2 White, disabled veterans (Disability + Veteran)
    """
    rows = [make_row(n, Age=25 + n, e=(2,) * 5) for n in range(1, 7)]
    rows += [
        make_row(n, Ethnicity="Black", Minority="Yes", Age=30 + n, e=(-1,) * 5, Division="Sales")
        for n in range(7, 12)
    ]
    rows += [
        make_row(n, Ethnicity="Asian", Minority="Yes", LGBTQ="Yes", Age=40 + n, d=(-2, -2, 1, 1, 1), Division="Sales")
        for n in range(12, 17)
    ]
    rows += [make_row(n, Disability="Yes", Veteran="Yes", Age=40 + n, Manager="Grace Hopper") for n in range(17, 19)]
    return make_table(rows)


@pytest.fixture
def identity_dataset(identity_table: pd.DataFrame) -> Dataset:
    return build_dataset(identity_table)


@pytest.fixture
def csv_path(tmp_path: Path, gender_table: pd.DataFrame) -> Path:
    path = tmp_path / "deidataset.csv"
    gender_table.to_csv(path, index=False)
    return path

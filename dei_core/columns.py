from __future__ import annotations

from typing import Dict, List, Tuple

PLACEHOLDER = "Not specified"
NO = "No"
YES_TOKENS = {"yes", "true", "y", "1"}

AGE_BOUNDS: Tuple[int, int] = (24, 65)
AGE_GROUPS: Tuple[str, ...] = ("24-31", "31-37", "37-44", "44-65")
AGE_THRESHOLDS: Tuple[int, ...] = (31, 37, 44)

PILLARS: Tuple[str, ...] = ("diversity", "equity", "inclusion")
PILLAR_PREFIX = {"diversity": "D", "equity": "E", "inclusion": "I"}
QUESTIONS_PER_PILLAR = 5
REPORTED_KINDS: Tuple[str, ...] = ("positive", "negative", "neutral", "combined")

SOURCE_COLUMNS: Dict[str, str] = {
    "Id": "id",
    "Name": "name",
    "Surname": "surname",
    "Division": "division",
    "Manager": "manager",
    "Nationality": "nationality",
    "Gender": "gender",
    "Sexual_Orientation": "sexual_orientation",
    "LGBTQ": "lgbtq",
    "Indigenous": "indigenous",
    "Ethnicity": "ethnicity",
    "Disability": "disability",
    "Veteran": "veteran",
    "Age": "age",
    "Minority": "minority",
    "Pronouns": "pronouns",
}


def survey_columns(pillar: str) -> List[str]:
    prefix = PILLAR_PREFIX[pillar].lower()
    return [f"aug_{prefix}_q{i}" for i in range(1, QUESTIONS_PER_PILLAR + 1)]


def reported_column(pillar: str, kind: str) -> str:
    return f"{pillar}_reported_{kind}"


for _pillar, _prefix in PILLAR_PREFIX.items():
    for _i in range(1, QUESTIONS_PER_PILLAR + 1):
        SOURCE_COLUMNS[f"Aug_{_prefix}_Q{_i}"] = f"aug_{_prefix.lower()}_q{_i}"
    for _kind in REPORTED_KINDS:
        SOURCE_COLUMNS[f"{_prefix}_{_kind.capitalize()}"] = reported_column(_pillar, _kind)

REQUIRED_SOURCE_COLUMNS: List[str] = [
    "Id",
    "Name",
    "Surname",
    "Division",
    "Manager",
    "Nationality",
    "Gender",
    "Sexual_Orientation",
    "LGBTQ",
    "Indigenous",
    "Ethnicity",
    "Disability",
    "Veteran",
    "Age",
    "Minority",
    "Pronouns",
]

TEXT_COLUMNS: List[str] = ["name", "surname", "pronouns"]
CATEGORY_COLUMNS: List[str] = [
    "division",
    "manager",
    "nationality",
    "gender",
    "sexual_orientation",
    "ethnicity",
]
YES_NO_COLUMNS: List[str] = ["lgbtq", "indigenous", "disability", "veteran", "minority"]

SURVEY_COLUMNS: List[str] = [c for p in PILLARS for c in survey_columns(p)]
REPORTED_COLUMNS: List[str] = [reported_column(p, k) for p in PILLARS for k in REPORTED_KINDS]
NUMERIC_COLUMNS: List[str] = ["id", "age"] + SURVEY_COLUMNS + REPORTED_COLUMNS

# Flag columns, in the fixed single-flag priority order.
FLAG_COLUMNS: Dict[str, str] = {
    "LGBTQ": "is_lgbtq",
    "Minority": "is_minority",
    "Disability": "has_disability",
    "Indigenous": "is_indigenous",
    "Veteran": "is_veteran",
}
MARGINALIZATION_GROUPS: Tuple[str, ...] = tuple(FLAG_COLUMNS)

"""Per-record composite scores and identity labels.

Two definitions of a pillar's positive/negative score are derived side by side
and callers pick one through `ScoreVariant`:

- `SIGNED_SPLIT`: positive is the mean of the answers above zero, negative the
  magnitude of the mean of the answers below zero.
- `ALL_VALUES`: positive is the mean of every answered question; negative
  comes from the reported `{D,E,I}_Negative` column, or is synthesized
  according to `DerivationSettings.negative_mode` when the source has none.

A pillar with no usable answers scores `EMPTY_SCORE` under both variants.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from dei_core.columns import (
    FLAG_COLUMNS,
    PILLARS,
    QUESTIONS_PER_PILLAR,
    reported_column,
    survey_columns,
)
from dei_core.dimensions import UnknownDimensionError

logger = logging.getLogger(__name__)

EMPTY_SCORE = 0.0

NONE_CATEGORY = "None"
MULTIPLE_CATEGORY = "Multiple"
MAJORITY_GROUP = "Majority Group"
NAMED_PAIRS = (
    (("LGBTQ", "Minority"), "LGBTQ+Minority"),
    (("Disability", "Veteran"), "Disability+Veteran"),
)
# Label order used by identity combinations.
COMBINATION_ORDER = (
    ("Minority", "Minority"),
    ("LGBTQ", "LGBTQ+"),
    ("Disability", "Disability"),
    ("Indigenous", "Indigenous"),
    ("Veteran", "Veteran"),
)
COMBINATION_SEPARATOR = " + "

SCORE_CATEGORIES = ("critical", "low", "moderate", "good", "excellent")
SCORE_CATEGORY_THRESHOLDS = ((-1.0, "critical"), (-0.5, "low"), (0.0, "moderate"), (0.5, "good"))


class ScoreVariant(str, Enum):
    SIGNED_SPLIT = "signed_split"
    ALL_VALUES = "all_values"

    @property
    def suffix(self) -> str:
        return "split" if self is ScoreVariant.SIGNED_SPLIT else "mean"


class NegativeMode(str, Enum):
    ZERO = "zero"
    COMPLEMENT = "complement"
    RANDOM = "random"


@dataclass(frozen=True)
class DerivationSettings:
    negative_mode: NegativeMode = NegativeMode.ZERO
    seed: Optional[int] = None


def score_column(pillar: str, polarity: str, variant: ScoreVariant) -> str:
    return f"{pillar}_{polarity}_{ScoreVariant(variant).suffix}"


def composite_column(variant: ScoreVariant) -> str:
    return f"dei_composite_{ScoreVariant(variant).suffix}"


def gap_column(pillar: str) -> str:
    return f"{pillar}_gap"


def net_column(pillar: str) -> str:
    return f"{pillar}_net"


def signed_split_scores(answers: pd.DataFrame) -> Tuple[pd.Series, pd.Series]:
    positive = answers.where(answers > 0).mean(axis=1, skipna=True)
    negative = answers.where(answers < 0).mean(axis=1, skipna=True).abs()
    return positive.fillna(EMPTY_SCORE), negative.fillna(EMPTY_SCORE)


def all_values_score(answers: pd.DataFrame) -> pd.Series:
    return answers.mean(axis=1, skipna=True).fillna(EMPTY_SCORE)


def synthetic_negative(positive: pd.Series, settings: DerivationSettings) -> pd.Series:
    mode = NegativeMode(settings.negative_mode)
    if mode is NegativeMode.COMPLEMENT:
        return -positive
    if mode is NegativeMode.RANDOM:
        rng = np.random.default_rng(settings.seed)
        return -positive + rng.random(len(positive)) * 0.5
    return pd.Series(EMPTY_SCORE, index=positive.index, dtype=float)


def net_score(positive: pd.Series, negative: pd.Series) -> pd.Series:
    return (positive - negative) / QUESTIONS_PER_PILLAR


def marginalization_count(flags: Sequence[bool]) -> int:
    return sum(1 for f in flags if f)


def intersectional_category(
    lgbtq: bool, minority: bool, disability: bool, indigenous: bool, veteran: bool
) -> str:
    flags = dict(zip(FLAG_COLUMNS, (lgbtq, minority, disability, indigenous, veteran)))
    active = [name for name, on in flags.items() if on]
    if not active:
        return NONE_CATEGORY
    if len(active) == 1:
        return active[0]
    if len(active) == 2:
        for pair, label in NAMED_PAIRS:
            if all(flags[p] for p in pair):
                return label
    return MULTIPLE_CATEGORY


def identity_combination(
    lgbtq: bool, minority: bool, disability: bool, indigenous: bool, veteran: bool
) -> str:
    flags = dict(zip(FLAG_COLUMNS, (lgbtq, minority, disability, indigenous, veteran)))
    labels = [label for name, label in COMBINATION_ORDER if flags[name]]
    return COMBINATION_SEPARATOR.join(labels) if labels else MAJORITY_GROUP


def combination_layers(label: str) -> int:
    if not label or label == MAJORITY_GROUP:
        return 0
    return len(label.split(COMBINATION_SEPARATOR))


def score_category(score: Optional[float]) -> Optional[str]:
    if score is None or (isinstance(score, float) and math.isnan(score)):
        return None
    for threshold, category in SCORE_CATEGORY_THRESHOLDS:
        if score < threshold:
            return category
    return "excellent"


def _flag_frame(records: pd.DataFrame) -> pd.DataFrame:
    return records[list(FLAG_COLUMNS.values())].astype(bool)


def derive_metrics(records: pd.DataFrame, settings: Optional[DerivationSettings] = None) -> pd.DataFrame:
    """Return a copy of `records` with every derived score and identity column.

    Expects normalized records (numeric survey columns, boolean flag columns).
    """
    settings = settings or DerivationSettings()
    derived: Dict[str, pd.Series] = {}
    split_positive: List[pd.Series] = []
    mean_positive: List[pd.Series] = []
    nets: List[pd.Series] = []

    for pillar in PILLARS:
        answers = records[survey_columns(pillar)].astype(float)
        pos_split, neg_split = signed_split_scores(answers)
        pos_mean = all_values_score(answers)

        reported = records.get(reported_column(pillar, "negative"))
        if reported is not None and reported.notna().any():
            neg_mean = reported.astype(float).fillna(synthetic_negative(pos_mean, settings))
        else:
            logger.debug("No reported %s negative scores; using %s mode", pillar, settings.negative_mode)
            neg_mean = synthetic_negative(pos_mean, settings)

        derived[score_column(pillar, "positive", ScoreVariant.SIGNED_SPLIT)] = pos_split
        derived[score_column(pillar, "negative", ScoreVariant.SIGNED_SPLIT)] = neg_split
        derived[score_column(pillar, "positive", ScoreVariant.ALL_VALUES)] = pos_mean
        derived[score_column(pillar, "negative", ScoreVariant.ALL_VALUES)] = neg_mean
        derived[gap_column(pillar)] = pos_split - neg_split
        net = net_score(pos_mean, neg_mean)
        reported_pos = records.get(reported_column(pillar, "positive"))
        if reported is not None and reported_pos is not None:
            # rows lacking either reported value fall back to the survey-derived pair
            net = net_score(reported_pos.astype(float), reported.astype(float)).fillna(net)
        derived[net_column(pillar)] = net

        split_positive.append(pos_split)
        mean_positive.append(pos_mean)
        nets.append(derived[net_column(pillar)])

    derived[composite_column(ScoreVariant.SIGNED_SPLIT)] = pd.concat(split_positive, axis=1).mean(axis=1)
    derived[composite_column(ScoreVariant.ALL_VALUES)] = pd.concat(mean_positive, axis=1).mean(axis=1)
    derived["dei_net"] = pd.concat(nets, axis=1).mean(axis=1, skipna=True)

    flags = _flag_frame(records)
    rows = list(flags.itertuples(index=False, name=None))
    derived["marginalization_count"] = pd.Series(
        [marginalization_count(r) for r in rows], index=records.index, dtype=int
    )
    derived["intersectional_category"] = pd.Series(
        [intersectional_category(*r) for r in rows], index=records.index, dtype=object
    )
    # identity combinations follow the self-reported Minority answer, not ethnicity
    if "reports_minority" in records.columns:
        flags = flags.assign(**{FLAG_COLUMNS["Minority"]: records["reports_minority"].astype(bool)})
    derived["identity_combination"] = pd.Series(
        [identity_combination(*r) for r in flags.itertuples(index=False, name=None)],
        index=records.index,
        dtype=object,
    )

    return records.assign(**derived)


def pillar_score(
    records: pd.DataFrame, pillar: str, polarity: str = "positive", variant: ScoreVariant = ScoreVariant.SIGNED_SPLIT
) -> pd.Series:
    if pillar not in PILLARS:
        raise UnknownDimensionError(f"Unknown pillar: {pillar!r}")
    return records[score_column(pillar, polarity, variant)]


def composite_score(records: pd.DataFrame, variant: ScoreVariant = ScoreVariant.SIGNED_SPLIT) -> pd.Series:
    return records[composite_column(variant)]

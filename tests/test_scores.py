"""Tests for derived per-record scores and identity labels."""

import pandas as pd
import pytest

from conftest import make_row, make_table
from dei_core.data import build_dataset
from dei_core.dimensions import UnknownDimensionError
from dei_core.scores import (
    DerivationSettings,
    NegativeMode,
    ScoreVariant,
    combination_layers,
    composite_score,
    identity_combination,
    intersectional_category,
    pillar_score,
    score_category,
    signed_split_scores,
    synthetic_negative,
)


class TestSignedSplit:
    """Test the signed-split variant."""

    def test_positive_and_negative_means(self):
        answers = pd.DataFrame([[2.0, -1.0, 4.0, -3.0, float("nan")]])
        positive, negative = signed_split_scores(answers)
        assert positive.iloc[0] == pytest.approx(3.0)
        assert negative.iloc[0] == pytest.approx(2.0)

    def test_no_matching_sign_is_zero(self):
        answers = pd.DataFrame([[1.0, 2.0, 3.0, 4.0, 5.0]])
        _, negative = signed_split_scores(answers)
        assert negative.iloc[0] == 0.0


class TestDerivedColumns:
    """Test derive_metrics output on built datasets."""

    def test_both_variants(self):
        raw = make_table([make_row(1, d=(2, -1, 4, -3, None))])
        records = build_dataset(raw).records
        assert pillar_score(records, "diversity", "positive", ScoreVariant.SIGNED_SPLIT).iloc[0] == pytest.approx(3.0)
        assert pillar_score(records, "diversity", "negative", ScoreVariant.SIGNED_SPLIT).iloc[0] == pytest.approx(2.0)
        assert pillar_score(records, "diversity", "positive", ScoreVariant.ALL_VALUES).iloc[0] == pytest.approx(0.5)
        assert records.loc[0, "diversity_gap"] == pytest.approx(1.0)

    def test_all_missing_answers_score_zero(self):
        """Test a record with no answers scores 0 rather than NaN."""
        raw = make_table([make_row(1, d=(None,) * 5, e=(None,) * 5, i=(None,) * 5)])
        records = build_dataset(raw).records
        for variant in ScoreVariant:
            assert pillar_score(records, "equity", "positive", variant).iloc[0] == 0.0
            assert composite_score(records, variant).iloc[0] == 0.0
        assert records.loc[0, "dei_net"] == 0.0

    def test_composite_is_pillar_mean(self):
        raw = make_table([make_row(1, d=(3,) * 5, e=(2,) * 5, i=(1,) * 5)])
        records = build_dataset(raw).records
        assert composite_score(records).iloc[0] == pytest.approx(2.0)

    def test_net_scores(self):
        """Test (positive - negative) / 5 per pillar and their average."""
        raw = make_table(
            [make_row(1, d=(3,) * 5, e=(2,) * 5, i=(1,) * 5, D_Negative="1", E_Negative="1", I_Negative="1")]
        )
        records = build_dataset(raw).records
        assert records.loc[0, "diversity_net"] == pytest.approx(0.4)
        assert records.loc[0, "equity_net"] == pytest.approx(0.2)
        assert records.loc[0, "inclusion_net"] == pytest.approx(0.0)
        assert records.loc[0, "dei_net"] == pytest.approx(0.2)

    def test_unknown_pillar(self, gender_dataset):
        with pytest.raises(UnknownDimensionError):
            pillar_score(gender_dataset.records, "belonging")


class TestSyntheticNegative:
    """Test the configurable synthetic negative score."""

    def test_zero_is_default(self):
        positive = pd.Series([1.0, 2.0])
        assert synthetic_negative(positive, DerivationSettings()).tolist() == [0.0, 0.0]

    def test_complement(self):
        positive = pd.Series([1.0, 2.0])
        settings = DerivationSettings(negative_mode=NegativeMode.COMPLEMENT)
        assert synthetic_negative(positive, settings).tolist() == [-1.0, -2.0]

    def test_random_is_reproducible_with_seed(self):
        positive = pd.Series([1.0, 2.0, 3.0])
        settings = DerivationSettings(negative_mode=NegativeMode.RANDOM, seed=7)
        first = synthetic_negative(positive, settings)
        second = synthetic_negative(positive, settings)
        assert first.tolist() == second.tolist()
        offsets = first + positive
        assert ((offsets >= 0) & (offsets < 0.5)).all()

    def test_reported_negative_wins(self):
        raw = make_table([make_row(1, d=(2,) * 5, D_Negative="0.75")])
        settings = DerivationSettings(negative_mode=NegativeMode.COMPLEMENT)
        records = build_dataset(raw, settings=settings).records
        assert records.loc[0, "diversity_negative_mean"] == 0.75
        assert records.loc[0, "equity_negative_mean"] == -1.0


class TestIdentityLabels:
    """Test intersectional category and identity combination labels."""

    def test_none(self):
        assert intersectional_category(False, False, False, False, False) == "None"
        assert identity_combination(False, False, False, False, False) == "Majority Group"

    @pytest.mark.parametrize(
        "flags,expected",
        [
            ((True, False, False, False, False), "LGBTQ"),
            ((False, True, False, False, False), "Minority"),
            ((False, False, True, False, False), "Disability"),
            ((False, False, False, True, False), "Indigenous"),
            ((False, False, False, False, True), "Veteran"),
        ],
    )
    def test_single_flag(self, flags, expected):
        assert intersectional_category(*flags) == expected

    def test_named_pairs(self):
        assert intersectional_category(True, True, False, False, False) == "LGBTQ+Minority"
        assert intersectional_category(False, False, True, False, True) == "Disability+Veteran"

    def test_unnamed_pair_and_three_flags(self):
        assert intersectional_category(True, False, True, False, False) == "Multiple"
        assert intersectional_category(True, True, True, False, False) == "Multiple"

    def test_combination_order(self):
        """Test Minority is listed before LGBTQ+ regardless of argument order."""
        assert identity_combination(True, True, False, False, False) == "Minority + LGBTQ+"
        assert identity_combination(False, False, True, True, True) == "Disability + Indigenous + Veteran"

    def test_combination_layers(self):
        assert combination_layers("Majority Group") == 0
        assert combination_layers("Minority") == 1
        assert combination_layers("Minority + LGBTQ+ + Veteran") == 3

    def test_derived_on_records(self, identity_dataset):
        records = identity_dataset.records
        assert records["marginalization_count"].tolist() == [0] * 6 + [1] * 5 + [2] * 5 + [2] * 2
        assert records.loc[12, "intersectional_category"] == "LGBTQ+Minority"
        assert records.loc[12, "identity_combination"] == "Minority + LGBTQ+"
        assert records.loc[17, "intersectional_category"] == "Disability+Veteran"

    def test_combination_uses_reported_minority(self):
        """Test identity combinations read the Minority answer while categories read Ethnicity."""
        raw = make_table(
            [
                make_row(1, Ethnicity="Black", Minority="No"),
                make_row(2, Ethnicity="White", Minority="Yes", LGBTQ="Yes"),
            ]
        )
        records = build_dataset(raw).records
        assert records["intersectional_category"].tolist() == ["Minority", "LGBTQ"]
        assert records["identity_combination"].tolist() == ["Majority Group", "Minority + LGBTQ+"]


class TestNetScore:
    """Test per-pillar and overall net scores."""

    def test_reported_pair_preferred(self):
        """Test a reported positive/negative pair drives the net score over survey answers."""
        reported = {f"{p}_{k}": v for p in "DEI" for k, v in (("Positive", 4), ("Negative", 1))}
        raw = make_table([make_row(1, **reported), make_row(2)])
        records = build_dataset(raw).records
        assert records.loc[0, "diversity_net"] == pytest.approx(0.6)
        assert records.loc[0, "dei_net"] == pytest.approx(0.6)

    def test_survey_fallback_for_rows_without_reported_values(self):
        raw = make_table([make_row(1, D_Positive=4, D_Negative=1), make_row(2, d=(2,) * 5)])
        records = build_dataset(raw).records
        assert records.loc[1, "diversity_net"] == pytest.approx(2 / 5)

    def test_survey_only(self, gender_dataset):
        records = gender_dataset.records
        assert records.loc[0, "diversity_net"] == pytest.approx(2 / 5)


class TestScoreCategory:
    @pytest.mark.parametrize(
        "score,expected",
        [(-1.5, "critical"), (-1.0, "low"), (-0.5, "moderate"), (-0.1, "moderate"), (0.0, "good"), (0.5, "excellent")],
    )
    def test_thresholds(self, score, expected):
        assert score_category(score) == expected

    def test_missing(self):
        assert score_category(None) is None
        assert score_category(float("nan")) is None

"""Tests for dimension and numeric field lookup."""

import pytest

from dei_core.dimensions import Dimension, NumericField, UnknownDimensionError


class TestDimensionParse:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("gender", Dimension.GENDER),
            ("Gender", Dimension.GENDER),
            ("Age_Group", Dimension.AGE_GROUP),
            ("sexual orientation", Dimension.SEXUAL_ORIENTATION),
            ("department", Dimension.DIVISION),
            (Dimension.MANAGER, Dimension.MANAGER),
        ],
    )
    def test_known_names(self, name, expected):
        assert Dimension.parse(name) is expected

    def test_unknown(self):
        with pytest.raises(UnknownDimensionError, match="shoe_size"):
            Dimension.parse("shoe_size")

    def test_unknown_is_value_error(self):
        with pytest.raises(ValueError):
            Dimension.parse(None)

    def test_column_and_label(self):
        assert Dimension.AGE_GROUP.column == "age_group"
        assert Dimension.AGE_GROUP.label == "Age Group"


class TestNumericFieldParse:
    @pytest.mark.parametrize(
        "name,column",
        [
            ("diversity", "diversity_positive_mean"),
            ("E_Positive", "equity_positive_mean"),
            ("Inclusion Score", "inclusion_positive_mean"),
            ("Age", "age"),
            ("marginalization", "marginalization_count"),
            ("dei_net", "dei_net"),
        ],
    )
    def test_columns(self, name, column):
        assert NumericField.parse(name).column == column

    def test_unknown(self):
        with pytest.raises(UnknownDimensionError):
            NumericField.parse("salary")

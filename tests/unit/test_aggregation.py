"""
Tests for the grouping and reduction primitives.
"""
import math

import numpy as np
import pandas as pd
import pytest

from outlet_metrics.engine.aggregation import (
    Reducer,
    group_aggregate,
    round_projection,
    safe_ratio,
    stddev_pop,
)


@pytest.fixture
def rows():
    return pd.DataFrame({
        "store": ["B", "A", "B", "A", "C"],
        "kind": ["x", "x", "y", "x", "y"],
        "amount": [10.0, 20.0, 30.0, 40.0, 5.0],
    })


class TestStddevPop:
    """Population standard deviation."""

    def test_divides_by_n(self):
        # mean 5, squared deviations 9,1,1,9 -> variance 5
        assert stddev_pop([2, 4, 6, 8]) == pytest.approx(math.sqrt(5))
        assert stddev_pop([2, 4, 6, 8]) != pytest.approx(np.std([2, 4, 6, 8], ddof=1))

    def test_equal_values_are_zero(self):
        assert stddev_pop([3.3, 3.3, 3.3]) == 0.0
        assert stddev_pop([7]) == 0.0

    def test_empty_is_nan(self):
        assert math.isnan(stddev_pop([]))

    def test_non_negative(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            assert stddev_pop(rng.normal(size=15)) >= 0


class TestReducer:

    def test_unknown_op_rejected(self):
        with pytest.raises(ValueError):
            Reducer("total", "median", "amount")

    def test_column_required_except_count(self):
        with pytest.raises(ValueError):
            Reducer("total", "sum")
        assert Reducer("rows", "count").column is None


class TestGroupAggregate:

    def test_first_appearance_order(self, rows):
        result = group_aggregate(rows, ["store"], [Reducer("total", "sum", "amount")])
        assert result["store"].tolist() == ["B", "A", "C"]
        assert result["total"].tolist() == [40.0, 60.0, 5.0]

    def test_all_reducers(self, rows):
        result = group_aggregate(
            rows,
            ["store"],
            [
                Reducer("total", "sum", "amount"),
                Reducer("mean", "avg", "amount"),
                Reducer("rows", "count"),
                Reducer("kinds", "count_distinct", "kind"),
                Reducer("spread", "stddev_pop", "amount"),
                Reducer("low", "min", "amount"),
                Reducer("high", "max", "amount"),
            ],
        ).set_index("store")

        assert result.loc["A", "mean"] == 30.0
        assert result.loc["A", "rows"] == 2
        assert result.loc["B", "kinds"] == 2
        assert result.loc["A", "spread"] == pytest.approx(10.0)
        assert result.loc["C", "spread"] == 0.0
        assert result.loc["B", "low"] == 10.0
        assert result.loc["B", "high"] == 30.0

    def test_multiple_keys(self, rows):
        result = group_aggregate(rows, ["store", "kind"], [Reducer("rows", "count")])
        assert list(result.columns) == ["store", "kind", "rows"]
        assert len(result) == 4

    def test_grouping_completeness(self, rows):
        """Group sums add back up to the ungrouped total."""
        for keys in (["store"], ["kind"], ["store", "kind"]):
            result = group_aggregate(rows, keys, [Reducer("total", "sum", "amount")])
            assert result["total"].sum() == pytest.approx(rows["amount"].sum())

    def test_no_keys_gives_one_row(self, rows):
        result = group_aggregate(rows, [], [Reducer("total", "sum", "amount"), Reducer("rows", "count")])
        assert result.to_dict(orient="records") == [{"total": 105.0, "rows": 5}]

    def test_empty_frame(self):
        empty = pd.DataFrame({"store": pd.Series(dtype=str), "amount": pd.Series(dtype=float)})
        result = group_aggregate(empty, ["store"], [Reducer("total", "sum", "amount")])
        assert result.empty
        assert list(result.columns) == ["store", "total"]

        overall = group_aggregate(empty, [], [Reducer("mean", "avg", "amount")])
        assert math.isnan(overall.loc[0, "mean"])


def test_safe_ratio_zero_denominator():
    ratio = safe_ratio(pd.Series([10.0, 5.0, 0.0]), pd.Series([2.0, 0.0, 0.0]))
    assert ratio.tolist() == [5.0, 0.0, 0.0]


def test_round_projection_only_named_columns():
    frame = pd.DataFrame({"a": [1.23456], "b": [9.87654]})
    rounded = round_projection(frame, ["a"], digits=2)
    assert rounded.loc[0, "a"] == 1.23
    assert rounded.loc[0, "b"] == 9.87654
    # input is left untouched
    assert frame.loc[0, "a"] == 1.23456

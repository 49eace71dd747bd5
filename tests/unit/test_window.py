"""
Tests for rank, percent rank and N-tile window operators.
"""
import math

import numpy as np
import pandas as pd
import pytest

from outlet_metrics.engine.window import ntile, ntile_bucket, percent_rank, rank


@pytest.fixture
def scores():
    return pd.DataFrame({
        "group": ["g1", "g1", "g1", "g1", "g2", "g2", "g1"],
        "name": ["e", "b", "a", "d", "x", "y", "c"],
        "value": [50, 80, 80, 30, 10, 10, 80],
    })


class TestRank:

    def test_competition_ranking_with_ties(self, scores):
        g1 = scores[scores["group"] == "g1"]
        ranked = rank(g1, "value", ascending=False, tie_breaker="name")
        assert ranked["name"].tolist() == ["a", "b", "c", "e", "d"]
        assert ranked["rank"].tolist() == [1, 1, 1, 4, 5]

    def test_tie_law(self, scores):
        """Tied rows share a rank; the next value skips by the tie count."""
        ranked = rank(scores, "value", ascending=False, partition_by="group", tie_breaker="name")
        for _, part in ranked.groupby("group"):
            for value, tied in part.groupby("value"):
                assert tied["rank"].nunique() == 1
            distinct = part.drop_duplicates("value")
            ranks = distinct["rank"].tolist()
            counts = part.groupby("value", sort=False).size().loc[distinct["value"]].tolist()
            for i in range(1, len(ranks)):
                assert ranks[i] == ranks[i - 1] + counts[i - 1]

    def test_partitions_rank_independently(self, scores):
        ranked = rank(scores, "value", ascending=False, partition_by="group", tie_breaker="name")
        g2 = ranked[ranked["group"] == "g2"]
        assert g2["rank"].tolist() == [1, 1]
        assert ranked["group"].tolist() == ["g1"] * 5 + ["g2"] * 2

    def test_ascending(self, scores):
        ranked = rank(scores[scores["group"] == "g1"], "value", ascending=True, tie_breaker="name")
        assert ranked.iloc[0]["name"] == "d"
        assert ranked["rank"].tolist() == [1, 2, 3, 3, 3]

    def test_deterministic_for_shuffled_input(self, scores):
        expected = rank(scores, "value", partition_by="group", tie_breaker="name")
        shuffled = scores.sample(frac=1, random_state=3)
        result = rank(shuffled, "value", partition_by="group", tie_breaker="name")
        pd.testing.assert_frame_equal(result, expected)

    def test_empty(self):
        ranked = rank(pd.DataFrame({"value": []}), "value")
        assert ranked.empty
        assert "rank" in ranked.columns


class TestPercentRank:

    def test_values(self):
        frame = pd.DataFrame({"name": list("abcde"), "value": [50, 40, 40, 20, 10]})
        result = percent_rank(frame, "value", tie_breaker="name")
        assert result["percent_rank"].tolist() == [0.0, 0.25, 0.25, 0.75, 1.0]

    def test_bounds(self, scores):
        result = percent_rank(scores, "value", partition_by="group", tie_breaker="name")
        assert result["percent_rank"].between(0, 1).all()
        for _, part in result.groupby("group"):
            assert part.iloc[0]["percent_rank"] == 0.0

    def test_single_row_partition_is_zero(self):
        frame = pd.DataFrame({"group": ["a", "b", "b"], "value": [5, 1, 2]})
        result = percent_rank(frame, "value", partition_by="group")
        assert result[result["group"] == "a"]["percent_rank"].tolist() == [0.0]
        assert "_rank" not in result.columns


class TestNtile:

    @pytest.mark.parametrize("n,k", [(10, 3), (7, 10), (20, 10), (1, 4), (13, 5)])
    def test_balance_law(self, n, k):
        """Bucket sizes differ by at most one and the larger ones come first."""
        frame = pd.DataFrame({"value": np.arange(n, dtype=float)})
        buckets = ntile(frame, k, "value")["ntile"]
        sizes = buckets.value_counts().reindex(range(1, min(n, k) + 1), fill_value=0)
        extra = n % k
        for bucket, size in sizes.items():
            if bucket <= extra:
                assert size == math.ceil(n / k)
            else:
                assert size == n // k
        assert buckets.is_monotonic_increasing

    def test_descending_first_bucket_is_highest(self):
        frame = pd.DataFrame({"name": list("abcd"), "value": [1, 4, 2, 3]})
        result = ntile(frame, 2, "value", ascending=False, tie_breaker="name")
        assert result["name"].tolist() == ["b", "d", "c", "a"]
        assert result["ntile"].tolist() == [1, 1, 2, 2]

    def test_partitioned(self, scores):
        result = ntile(scores, 2, "value", partition_by="group", tie_breaker="name")
        assert result[result["group"] == "g1"]["ntile"].tolist() == [1, 1, 1, 2, 2]
        assert result[result["group"] == "g2"]["ntile"].tolist() == [1, 2]

    def test_bucket_helper(self):
        assert ntile_bucket(np.arange(10), np.full(10, 10), 3).tolist() == [1, 1, 1, 1, 2, 2, 2, 3, 3, 3]

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            ntile(pd.DataFrame({"value": [1]}), 0, "value")

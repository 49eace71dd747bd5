"""
Window operators: competition rank, percent rank and N-tile bucketing.

Every operator materialises the whole partition before assigning values,
since rank and bucket size depend on the partition's total size. Rows are
returned ordered by partition key, then the sort key, then the tie-breaker,
so the output order is reproducible for identical input.
"""

from typing import List, Sequence, Union

import numpy as np
import pandas as pd

Columns = Union[str, Sequence[str], None]


def _as_list(columns: Columns) -> List[str]:
    if columns is None:
        return []
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def order_partitions(
    frame: pd.DataFrame,
    order_by: str,
    ascending: bool = False,
    partition_by: Columns = None,
    tie_breaker: Columns = None,
) -> pd.DataFrame:
    """
    Sort rows into window order.

    Partitions come out in ascending key order. Inside a partition rows
    follow ``order_by`` in the requested direction, and rows tied on it are
    ordered by ``tie_breaker`` ascending. The sort is stable, so rows still
    tied after that keep their input order.
    """
    partitions = _as_list(partition_by)
    tie = [c for c in _as_list(tie_breaker) if c not in partitions and c != order_by]
    columns = partitions + [order_by] + tie
    directions = [True] * len(partitions) + [ascending] + [True] * len(tie)
    return frame.sort_values(
        columns, ascending=directions, kind="mergesort", na_position="last"
    ).reset_index(drop=True)


def _partition_groups(frame: pd.DataFrame, partitions: List[str]):
    if partitions:
        return frame.groupby(partitions, sort=False, dropna=False)
    # A single partition spanning the frame
    return frame.groupby(np.zeros(len(frame), dtype=int), sort=False)


def rank(
    frame: pd.DataFrame,
    order_by: str,
    ascending: bool = False,
    partition_by: Columns = None,
    tie_breaker: Columns = None,
    output: str = "rank",
) -> pd.DataFrame:
    """
    Standard competition ranking (1, 2, 2, 4) within each partition.

    Rows with equal ``order_by`` values share a rank; the next distinct value
    skips by the number of tied rows. Nulls rank last.
    """
    ordered = order_partitions(frame, order_by, ascending, partition_by, tie_breaker)
    if ordered.empty:
        ordered[output] = pd.Series(dtype=int)
        return ordered

    groups = _partition_groups(ordered, _as_list(partition_by))
    ordered[output] = (
        groups[order_by]
        .rank(method="min", ascending=ascending, na_option="bottom")
        .astype(int)
    )
    return ordered


def percent_rank(
    frame: pd.DataFrame,
    order_by: str,
    ascending: bool = False,
    partition_by: Columns = None,
    tie_breaker: Columns = None,
    output: str = "percent_rank",
) -> pd.DataFrame:
    """
    (rank - 1) / (n - 1) within each partition, or 0 for a single-row one.

    Values lie in [0, 1] and the top-ranked rows get 0.
    """
    ranked = rank(frame, order_by, ascending, partition_by, tie_breaker, output="_rank")
    if ranked.empty:
        ranked[output] = pd.Series(dtype=float)
        return ranked.drop(columns="_rank")

    groups = _partition_groups(ranked, _as_list(partition_by))
    size = groups[order_by].transform("size").astype(float)
    pct = (ranked["_rank"] - 1) / (size - 1).where(size > 1)
    ranked[output] = pct.fillna(0.0)
    return ranked.drop(columns="_rank")


def ntile_bucket(position, size, k: int) -> np.ndarray:
    """
    Bucket number (1-based) for 0-based ``position`` in a partition of ``size``.

    The first ``size % k`` buckets hold one extra row.
    """
    position = np.asarray(position, dtype=int)
    size = np.asarray(size, dtype=int)
    base, extra = np.divmod(size, k)
    big = base + 1
    boundary = extra * big
    in_big = position < boundary
    # base is 0 only when size < k, and then every row falls in a big bucket
    safe_base = np.where(base == 0, 1, base)
    return np.where(
        in_big,
        position // big + 1,
        extra + (position - boundary) // safe_base + 1,
    ).astype(int)


def ntile(
    frame: pd.DataFrame,
    k: int,
    order_by: str,
    ascending: bool = False,
    partition_by: Columns = None,
    tie_breaker: Columns = None,
    output: str = "ntile",
) -> pd.DataFrame:
    """Split each partition, in window order, into ``k`` near-equal buckets."""
    if k < 1:
        raise ValueError(f"NTILE bucket count must be >= 1, got {k}")

    ordered = order_partitions(frame, order_by, ascending, partition_by, tie_breaker)
    if ordered.empty:
        ordered[output] = pd.Series(dtype=int)
        return ordered

    groups = _partition_groups(ordered, _as_list(partition_by))
    position = groups.cumcount().to_numpy()
    size = groups[order_by].transform("size").to_numpy()
    ordered[output] = ntile_bucket(position, size, k)
    return ordered


def top_n_per_partition(
    ranked: pd.DataFrame, rank_column: str, n: int
) -> pd.DataFrame:
    """Keep rows whose rank is within the first ``n``; ties may exceed n rows."""
    return ranked[ranked[rank_column] <= n].reset_index(drop=True)

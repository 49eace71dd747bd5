"""
Grouping and reduction primitives every report builds on.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

REDUCER_OPS = ("sum", "avg", "count", "count_distinct", "stddev_pop", "min", "max")


def stddev_pop(values) -> float:
    """
    Population standard deviation: sqrt(mean((x - mean(x))^2)).

    Divides by n, not n - 1. Returns NaN for an empty input and exactly 0.0
    when every value is equal.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return float("nan")
    if np.all(arr == arr[0]):
        return 0.0
    return float(np.sqrt(np.mean((arr - arr.mean()) ** 2)))


@dataclass(frozen=True)
class Reducer:
    """One output column of a grouped aggregation."""

    output: str
    op: str
    column: Optional[str] = None

    def __post_init__(self):
        if self.op not in REDUCER_OPS:
            raise ValueError(f"Unknown reducer op {self.op!r}; expected one of {REDUCER_OPS}")
        if self.column is None and self.op != "count":
            raise ValueError(f"Reducer {self.output!r} ({self.op}) needs a column")

    @property
    def aggfunc(self):
        return {
            "sum": "sum",
            "avg": "mean",
            "count": "count",
            "count_distinct": "nunique",
            "stddev_pop": stddev_pop,
            "min": "min",
            "max": "max",
        }[self.op]

    def reduce(self, frame: pd.DataFrame):
        if self.op == "count" and self.column is None:
            return len(frame)
        series = frame[self.column]
        if self.op == "sum":
            return series.sum()
        if self.op == "avg":
            return series.mean() if len(series) else float("nan")
        if self.op == "count":
            return int(series.count())
        if self.op == "count_distinct":
            return int(series.nunique())
        if self.op == "stddev_pop":
            return stddev_pop(series)
        if self.op == "min":
            return series.min()
        return series.max()


def group_aggregate(
    frame: pd.DataFrame,
    keys: Sequence[str],
    reducers: Iterable[Reducer],
) -> pd.DataFrame:
    """
    Partition rows by ``keys`` and reduce each group.

    Groups are emitted in order of first appearance. With no keys the whole
    frame is one group and a single row is returned, even when the frame is
    empty (sums are then 0, averages NaN).
    """
    reducers = list(reducers)
    keys = list(keys)

    if not keys:
        return pd.DataFrame(
            [{r.output: r.reduce(frame) for r in reducers}],
            columns=[r.output for r in reducers],
        )

    if frame.empty:
        return pd.DataFrame(columns=keys + [r.output for r in reducers])

    grouped = frame.groupby(keys, sort=False, dropna=False)
    columns = {}
    for r in reducers:
        if r.op == "count" and r.column is None:
            columns[r.output] = grouped.size()
        else:
            columns[r.output] = grouped[r.column].agg(r.aggfunc)
    return pd.DataFrame(columns).reset_index()


def safe_ratio(numerator, denominator, default: float = 0.0):
    """Element-wise division that yields ``default`` where the denominator is 0."""
    numerator = pd.Series(numerator, dtype=float)
    denominator = pd.Series(denominator, dtype=float, index=numerator.index)
    ratio = numerator / denominator.where(denominator != 0)
    return ratio.fillna(default)


def round_projection(
    frame: pd.DataFrame, columns: List[str], digits: int = 2
) -> pd.DataFrame:
    """Round money and ratio columns; only ever applied at final projection."""
    frame = frame.copy()
    for column in columns:
        frame[column] = frame[column].astype(float).round(digits)
    return frame

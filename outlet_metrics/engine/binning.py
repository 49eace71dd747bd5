"""
Binning operator: maps a numeric value to one labelled, ordered bucket.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

CLOSED_POLICIES = ("both", "left")


class InvalidBoundaryConfiguration(ValueError):
    """A binning policy's boundaries are unordered, overlapping or unlabelled"""

    pass


@dataclass(frozen=True)
class Bin:
    low: float
    high: float
    label: str


class BinningPolicy:
    """
    An ordered set of non-overlapping ``Bin`` ranges plus a fallback label.

    ``closed="both"`` treats every range as ``[low, high]``; ``closed="left"``
    treats them as ``[low, high)``, with ``close_last=True`` closing the last
    range on the right too. Values outside every range, and nulls, get the
    fallback label, so each input maps to exactly one label.

    Labels keep the order they were declared in (fallback last), which is
    the display order reports use.
    """

    def __init__(
        self,
        bins: Sequence[Bin],
        fallback_label: str,
        closed: str = "both",
        close_last: bool = False,
    ):
        if closed not in CLOSED_POLICIES:
            raise InvalidBoundaryConfiguration(
                f"closed must be one of {CLOSED_POLICIES}, got {closed!r}"
            )
        self.bins = list(bins)
        self.fallback_label = fallback_label
        self.closed = closed
        self.close_last = close_last
        self._validate()

    def _validate(self) -> None:
        if not self.bins:
            raise InvalidBoundaryConfiguration("At least one bin is required")
        if not self.fallback_label:
            raise InvalidBoundaryConfiguration("A fallback label is required")

        labels = [b.label for b in self.bins] + [self.fallback_label]
        if len(set(labels)) != len(labels):
            raise InvalidBoundaryConfiguration(f"Bin labels must be unique: {labels}")

        previous: Optional[Bin] = None
        for current in self.bins:
            if any(isinstance(v, float) and math.isnan(v) for v in (current.low, current.high)):
                raise InvalidBoundaryConfiguration(f"Bin {current.label!r} has a NaN bound")
            if current.low > current.high or (
                self.closed == "left" and current.low == current.high
            ):
                raise InvalidBoundaryConfiguration(
                    f"Bin {current.label!r} has low {current.low} above high {current.high}"
                )
            if previous is not None:
                # Closed ranges may not share an endpoint; half-open ones may touch
                overlapping = (
                    current.low <= previous.high
                    if self.closed == "both"
                    else current.low < previous.high
                )
                if overlapping:
                    raise InvalidBoundaryConfiguration(
                        f"Bins {previous.label!r} and {current.label!r} are not "
                        "strictly ordered"
                    )
            previous = current

    @property
    def labels(self) -> List[str]:
        """Every label, in display order, fallback last."""
        return [b.label for b in self.bins] + [self.fallback_label]

    def _contains(self, index: int, value: float) -> bool:
        current = self.bins[index]
        if self.closed == "both":
            return current.low <= value <= current.high
        if self.close_last and index == len(self.bins) - 1:
            return current.low <= value <= current.high
        return current.low <= value < current.high

    def display_order(self, labels: pd.Series) -> pd.Series:
        """Position of each label in display order, for sorting."""
        positions = {label: i for i, label in enumerate(self.labels)}
        return labels.map(positions)

    def label(self, value) -> str:
        """Label for one value."""
        if value is None or pd.isna(value):
            return self.fallback_label
        for index, current in enumerate(self.bins):
            if self._contains(index, value):
                return current.label
        return self.fallback_label

    def apply(self, values: pd.Series) -> pd.Series:
        """Label a series, returning an ordered categorical."""
        labelled = [self.label(v) for v in values]
        return pd.Series(
            pd.Categorical(labelled, categories=self.labels, ordered=True),
            index=values.index,
            name=values.name,
        )


# Report #9: 50-unit bands, closed both ends, as literally listed
MRP_BANDS_50 = BinningPolicy(
    bins=[
        Bin(0, 50, "0–50"),
        Bin(51, 100, "51–100"),
        Bin(101, 150, "101–150"),
        Bin(151, 200, "151–200"),
        Bin(201, 250, "201–250"),
        Bin(251, 300, "251–300"),
    ],
    fallback_label="Other",
    closed="both",
)

# Report #18: ascending half-open bands, last one closed at 300
PRICE_BANDS_HALF_OPEN = BinningPolicy(
    bins=[
        Bin(-math.inf, 50, "<50"),
        Bin(50, 100, "50-100"),
        Bin(100, 150, "100-150"),
        Bin(150, 200, "150-200"),
        Bin(200, 250, "200-250"),
        Bin(250, 300, "250-300"),
    ],
    fallback_label="Above 300",
    closed="left",
    close_last=True,
)

"""Analytical operators and the report catalogue."""

from .aggregation import Reducer, group_aggregate, round_projection, stddev_pop
from .binning import (
    MRP_BANDS_50,
    PRICE_BANDS_HALF_OPEN,
    Bin,
    BinningPolicy,
    InvalidBoundaryConfiguration,
)
from .metrics import (
    DegenerateGroupError,
    dominance_scores,
    high_margin_low_turnover,
    outlet_type_concentration,
)
from .reports import REPORTS, ReportDefinition
from .runner import ReportResult, ReportRunner
from .window import ntile, percent_rank, rank

__all__ = [
    "Reducer",
    "group_aggregate",
    "round_projection",
    "stddev_pop",
    "rank",
    "percent_rank",
    "ntile",
    "Bin",
    "BinningPolicy",
    "InvalidBoundaryConfiguration",
    "MRP_BANDS_50",
    "PRICE_BANDS_HALF_OPEN",
    "DegenerateGroupError",
    "dominance_scores",
    "outlet_type_concentration",
    "high_margin_low_turnover",
    "REPORTS",
    "ReportDefinition",
    "ReportResult",
    "ReportRunner",
]

"""
Composite metrics built from the aggregation and window primitives.

Each function takes the joined sales frame (sales rows with item and outlet
attributes) and returns an unrounded frame; rounding is left to the report
projection.
"""

from typing import Tuple

import pandas as pd
import structlog

from .aggregation import Reducer, group_aggregate, safe_ratio
from .window import rank

logger = structlog.get_logger()

LOW_TURNOVER_MAX_OUTLETS = 3


class DegenerateGroupError(Exception):
    """A group a metric depends on is empty"""

    pass


def dominance_scores(joined: pd.DataFrame) -> pd.DataFrame:
    """
    Fraction of outlets in which each item type is the top seller.

    Item-type sales are ranked within each outlet with competition ranking,
    so when two types tie for first place in an outlet both are counted as
    dominating it. Scores are therefore each in [0, 1] but their sum can be
    above 1. The denominator is the number of distinct outlets with sales.

    Columns: item_type, outlets_dominated, dominance_score. Item types that
    never rank first are kept with a score of 0.
    """
    total_outlets = joined["outlet_id"].nunique()
    if total_outlets == 0:
        raise DegenerateGroupError("No outlets with sales to score dominance over")

    per_outlet = group_aggregate(
        joined,
        ["outlet_id", "item_type"],
        [Reducer("total_sales", "sum", "sales_amount")],
    )
    ranked = rank(
        per_outlet,
        "total_sales",
        ascending=False,
        partition_by="outlet_id",
        tie_breaker="item_type",
        output="type_rank",
    )
    winners = ranked[ranked["type_rank"] == 1]
    dominated = winners.groupby("item_type", sort=False).size()

    scores = pd.DataFrame({"item_type": pd.unique(joined["item_type"])})
    scores["outlets_dominated"] = (
        scores["item_type"].map(dominated).fillna(0).astype(int)
    )
    scores["dominance_score"] = scores["outlets_dominated"] / total_outlets

    logger.debug(
        "Dominance scores computed",
        outlets=total_outlets,
        item_types=len(scores),
        tied_outlets=int(winners["outlet_id"].duplicated().sum()),
    )
    return scores


def outlet_type_concentration(joined: pd.DataFrame) -> pd.DataFrame:
    """
    The top item type of each outlet type and its share of that outlet type's sales.

    Columns: outlet_type, item_type, total_sales, share_pct. Tied top types
    each get a row. A zero outlet-type total gives a share of 0.
    """
    per_type = group_aggregate(
        joined,
        ["outlet_type", "item_type"],
        [Reducer("total_sales", "sum", "sales_amount")],
    )
    columns = ["outlet_type", "item_type", "total_sales", "share_pct"]
    if per_type.empty:
        return pd.DataFrame(columns=columns)

    outlet_totals = per_type.groupby("outlet_type")["total_sales"].transform("sum")
    per_type["share_pct"] = safe_ratio(per_type["total_sales"] * 100, outlet_totals)

    ranked = rank(
        per_type,
        "total_sales",
        ascending=False,
        partition_by="outlet_type",
        tie_breaker="item_type",
        output="type_rank",
    )
    return ranked[ranked["type_rank"] == 1][columns].reset_index(drop=True)


def global_averages(joined: pd.DataFrame) -> Tuple[float, float]:
    """Average MRP and average sales over every item-outlet pair."""
    if joined.empty:
        raise DegenerateGroupError("No item-outlet pairs to average over")
    return (
        Reducer("avg_mrp", "avg", "mrp").reduce(joined),
        Reducer("avg_sales", "avg", "sales_amount").reduce(joined),
    )


def high_margin_low_turnover(joined: pd.DataFrame) -> pd.DataFrame:
    """
    Items priced above the global average MRP that sell poorly and narrowly.

    An item qualifies when its average MRP is above the global average MRP,
    it is carried by fewer than three distinct outlets, and its total sales
    are below the global average per-row sales value.

    Columns: item_id, item_type, avg_mrp, outlet_count, total_sales.
    """
    avg_mrp, avg_sales = global_averages(joined)

    per_item = group_aggregate(
        joined,
        ["item_id", "item_type"],
        [
            Reducer("avg_mrp", "avg", "mrp"),
            Reducer("outlet_count", "count_distinct", "outlet_id"),
            Reducer("total_sales", "sum", "sales_amount"),
        ],
    )
    flagged = per_item[
        (per_item["avg_mrp"] > avg_mrp)
        & (per_item["outlet_count"] < LOW_TURNOVER_MAX_OUTLETS)
        & (per_item["total_sales"] < avg_sales)
    ]
    logger.debug(
        "High-margin low-turnover thresholds",
        global_avg_mrp=avg_mrp,
        global_avg_sales=avg_sales,
        flagged=len(flagged),
    )
    return flagged.reset_index(drop=True)

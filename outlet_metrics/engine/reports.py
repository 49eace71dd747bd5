"""
The report catalogue.

Each report is a short filter -> group -> derive -> rank/bin -> project
composition over the joined sales frame. Pipelines return unrounded frames;
``ReportDefinition.compute`` selects the documented columns in order and
rounds money and percentage columns.

Report numbers are stable identifiers; 1, 2 and 13 are not assigned.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple

import pandas as pd
import structlog

from ..dataset import Dataset
from .aggregation import Reducer, group_aggregate, round_projection, safe_ratio
from .binning import MRP_BANDS_50, PRICE_BANDS_HALF_OPEN
from .metrics import (
    DegenerateGroupError,
    dominance_scores,
    high_margin_low_turnover,
    outlet_type_concentration,
)
from .window import ntile, order_partitions, percent_rank, rank, top_n_per_partition

logger = structlog.get_logger()

TOP_ITEMS_LIMIT = 5
TOP_ITEM_TYPES_PER_LOCATION = 3
VISIBILITY_THRESHOLD = 0.05
SALES_DECILES = 10
TOP_PERCENTILE = 0.05

TOTAL_SALES = Reducer("total_sales", "sum", "sales_amount")
AVG_SALES = Reducer("avg_sales", "avg", "sales_amount")


@dataclass(frozen=True)
class ReportDefinition:
    """A named, numbered pipeline and its output projection."""

    number: int
    name: str
    title: str
    columns: Tuple[str, ...]
    pipeline: Callable[[Dataset], pd.DataFrame] = field(compare=False)
    rounded: Tuple[str, ...] = ()

    def compute(self, dataset: Dataset, digits: int = 2) -> pd.DataFrame:
        """Run the pipeline and apply the final projection."""
        frame = self.pipeline(dataset)
        columns = list(self.columns)
        if frame.empty:
            return pd.DataFrame(columns=columns)
        frame = frame[columns].reset_index(drop=True)
        return round_projection(frame, list(self.rounded), digits)


REPORTS: Dict[str, ReportDefinition] = {}


def report(number: int, name: str, title: str, columns, rounded=()):
    """Register a pipeline function in the catalogue."""

    def decorator(func: Callable[[Dataset], pd.DataFrame]):
        REPORTS[name] = ReportDefinition(
            number=number,
            name=name,
            title=title,
            columns=tuple(columns),
            pipeline=func,
            rounded=tuple(rounded),
        )
        return func

    return decorator


@report(
    3,
    "top_selling_items",
    "Top 5 items by total sales",
    columns=["item_id", "total_sales"],
    rounded=["total_sales"],
)
def top_selling_items(dataset: Dataset) -> pd.DataFrame:
    per_item = group_aggregate(dataset.joined, ["item_id"], [TOTAL_SALES])
    ordered = order_partitions(per_item, "total_sales", ascending=False, tie_breaker="item_id")
    return ordered.head(TOP_ITEMS_LIMIT)


@report(
    4,
    "sales_by_outlet_type",
    "Sales by outlet type",
    columns=["outlet_type", "total_sales", "avg_sales", "record_count"],
    rounded=["total_sales", "avg_sales"],
)
def sales_by_outlet_type(dataset: Dataset) -> pd.DataFrame:
    per_type = group_aggregate(
        dataset.joined,
        ["outlet_type"],
        [TOTAL_SALES, AVG_SALES, Reducer("record_count", "count")],
    )
    return order_partitions(per_type, "total_sales", ascending=False, tie_breaker="outlet_type")


@report(
    5,
    "sales_by_fat_content",
    "Sales by fat content",
    columns=["fat_content", "total_sales", "avg_sales"],
    rounded=["total_sales", "avg_sales"],
)
def sales_by_fat_content(dataset: Dataset) -> pd.DataFrame:
    per_fat = group_aggregate(dataset.joined, ["fat_content"], [TOTAL_SALES, AVG_SALES])
    return order_partitions(per_fat, "total_sales", ascending=False, tie_breaker="fat_content")


@report(
    6,
    "sales_by_location_and_size",
    "Sales by outlet location tier and size",
    columns=["location_type", "size", "total_sales", "outlet_count"],
    rounded=["total_sales"],
)
def sales_by_location_and_size(dataset: Dataset) -> pd.DataFrame:
    per_segment = group_aggregate(
        dataset.joined,
        ["location_type", "size"],
        [TOTAL_SALES, Reducer("outlet_count", "count_distinct", "outlet_id")],
    )
    return order_partitions(
        per_segment,
        "total_sales",
        ascending=False,
        partition_by="location_type",
        tie_breaker="size",
    )


@report(
    7,
    "top_item_types_by_location",
    "Top 3 item types in each location tier",
    columns=["location_type", "item_type", "total_sales", "sales_rank"],
    rounded=["total_sales"],
)
def top_item_types_by_location(dataset: Dataset) -> pd.DataFrame:
    per_type = group_aggregate(dataset.joined, ["location_type", "item_type"], [TOTAL_SALES])
    ranked = rank(
        per_type,
        "total_sales",
        ascending=False,
        partition_by="location_type",
        tie_breaker="item_type",
        output="sales_rank",
    )
    return top_n_per_partition(ranked, "sales_rank", TOP_ITEM_TYPES_PER_LOCATION)


@report(
    8,
    "sales_by_establishment_year",
    "Sales by outlet establishment year",
    columns=["establishment_year", "outlet_count", "total_sales", "avg_sales_per_outlet"],
    rounded=["total_sales", "avg_sales_per_outlet"],
)
def sales_by_establishment_year(dataset: Dataset) -> pd.DataFrame:
    per_year = group_aggregate(
        dataset.joined,
        ["establishment_year"],
        [Reducer("outlet_count", "count_distinct", "outlet_id"), TOTAL_SALES],
    )
    per_year["avg_sales_per_outlet"] = safe_ratio(
        per_year["total_sales"], per_year["outlet_count"]
    )
    return per_year.sort_values("establishment_year", kind="mergesort")


@report(
    9,
    "sales_by_mrp_band",
    "Sales by 50-unit MRP band",
    columns=["mrp_band", "item_count", "total_sales"],
    rounded=["total_sales"],
)
def sales_by_mrp_band(dataset: Dataset) -> pd.DataFrame:
    joined = dataset.joined
    # Plain strings, so unobserved bands are not emitted as empty groups
    joined["mrp_band"] = MRP_BANDS_50.apply(joined["mrp"]).astype(str)
    per_band = group_aggregate(
        joined,
        ["mrp_band"],
        [Reducer("item_count", "count_distinct", "item_id"), TOTAL_SALES],
    )
    return per_band.sort_values(
        "mrp_band", key=MRP_BANDS_50.display_order, kind="mergesort"
    )


@report(
    10,
    "low_visibility_high_sales",
    "Low visibility yet higher sales items",
    columns=["item_id", "visibility", "total_sales", "sales_decile"],
    rounded=["total_sales"],
)
def low_visibility_high_sales(dataset: Dataset) -> pd.DataFrame:
    # Keeps the last decile of a descending sort: the lowest sellers among
    # items with visibility above the threshold.
    joined = dataset.joined
    visible = joined[joined["visibility"] > VISIBILITY_THRESHOLD]
    per_item = group_aggregate(
        visible,
        ["item_id"],
        [Reducer("visibility", "avg", "visibility"), TOTAL_SALES],
    )
    bucketed = ntile(
        per_item,
        SALES_DECILES,
        "total_sales",
        ascending=False,
        tie_breaker="item_id",
        output="sales_decile",
    )
    return bucketed[bucketed["sales_decile"] == SALES_DECILES]


@report(
    11,
    "item_type_sales_stability",
    "Sales stability by item type",
    columns=["item_type", "avg_sales", "stddev_sales", "coefficient_of_variation"],
    rounded=["avg_sales", "stddev_sales", "coefficient_of_variation"],
)
def item_type_sales_stability(dataset: Dataset) -> pd.DataFrame:
    per_type = group_aggregate(
        dataset.joined,
        ["item_type"],
        [AVG_SALES, Reducer("stddev_sales", "stddev_pop", "sales_amount")],
    )
    per_type["coefficient_of_variation"] = safe_ratio(
        per_type["stddev_sales"], per_type["avg_sales"]
    )
    return order_partitions(per_type, "stddev_sales", ascending=True, tie_breaker="item_type")


@report(
    12,
    "top_items_per_outlet_type",
    "Top 5% items within each outlet type",
    columns=["outlet_type", "item_id", "total_sales", "percentile"],
    rounded=["total_sales"],
)
def top_items_per_outlet_type(dataset: Dataset) -> pd.DataFrame:
    per_item = group_aggregate(dataset.joined, ["outlet_type", "item_id"], [TOTAL_SALES])
    ranked = percent_rank(
        per_item,
        "total_sales",
        ascending=False,
        partition_by="outlet_type",
        tie_breaker="item_id",
        output="percentile",
    )
    return ranked[ranked["percentile"] <= TOP_PERCENTILE]


@report(
    14,
    "item_type_profitability",
    "Sales yield per unit of MRP by item type",
    columns=["item_type", "avg_mrp", "total_sales", "sales_per_mrp"],
    rounded=["avg_mrp", "total_sales", "sales_per_mrp"],
)
def item_type_profitability(dataset: Dataset) -> pd.DataFrame:
    per_type = group_aggregate(
        dataset.joined,
        ["item_type"],
        [
            Reducer("avg_mrp", "avg", "mrp"),
            TOTAL_SALES,
            Reducer("mrp_total", "sum", "mrp"),
        ],
    )
    per_type["sales_per_mrp"] = safe_ratio(per_type["total_sales"], per_type["mrp_total"])
    return order_partitions(per_type, "sales_per_mrp", ascending=False, tie_breaker="item_type")


@report(
    15,
    "high_margin_low_turnover",
    "High-margin, low-turnover items",
    columns=["item_id", "item_type", "avg_mrp", "outlet_count", "total_sales"],
    rounded=["avg_mrp", "total_sales"],
)
def high_margin_low_turnover_items(dataset: Dataset) -> pd.DataFrame:
    try:
        flagged = high_margin_low_turnover(dataset.joined)
    except DegenerateGroupError as e:
        logger.warning("Report skipped on empty group", report="high_margin_low_turnover", reason=str(e))
        return pd.DataFrame()
    return order_partitions(flagged, "avg_mrp", ascending=False, tie_breaker="item_id")


@report(
    16,
    "outlet_type_concentration",
    "Top item type share of sales in each outlet type",
    columns=["outlet_type", "item_type", "total_sales", "share_pct"],
    rounded=["total_sales", "share_pct"],
)
def outlet_type_concentration_report(dataset: Dataset) -> pd.DataFrame:
    return outlet_type_concentration(dataset.joined)


@report(
    17,
    "item_type_dominance",
    "Item type dominance score across outlets",
    columns=["item_type", "outlets_dominated", "dominance_score"],
)
def item_type_dominance(dataset: Dataset) -> pd.DataFrame:
    try:
        scores = dominance_scores(dataset.joined)
    except DegenerateGroupError as e:
        logger.warning("Report skipped on empty group", report="item_type_dominance", reason=str(e))
        return pd.DataFrame()
    return order_partitions(scores, "dominance_score", ascending=False, tie_breaker="item_type")


@report(
    18,
    "price_band_dependency",
    "Share of each outlet type's sales by price band",
    columns=["outlet_type", "price_band", "total_sales", "share_pct"],
    rounded=["total_sales", "share_pct"],
)
def price_band_dependency(dataset: Dataset) -> pd.DataFrame:
    joined = dataset.joined
    joined["price_band"] = PRICE_BANDS_HALF_OPEN.apply(joined["mrp"]).astype(str)
    per_band = group_aggregate(joined, ["outlet_type", "price_band"], [TOTAL_SALES])
    if per_band.empty:
        return per_band

    outlet_totals = per_band.groupby("outlet_type")["total_sales"].transform("sum")
    per_band["share_pct"] = safe_ratio(per_band["total_sales"] * 100, outlet_totals)
    per_band["_band_order"] = PRICE_BANDS_HALF_OPEN.display_order(per_band["price_band"])
    return per_band.sort_values(["outlet_type", "_band_order"], kind="mergesort")

"""Pytest configuration and fixtures."""

import pytest

from outlet_metrics import Dataset, ReportRunner, Settings
from outlet_metrics.models import Item, Outlet, SalesRecord


@pytest.fixture
def test_settings():
    """Settings with sequential execution for predictable logs."""
    return Settings(parallel_reports=False, max_workers=1, log_format="console")


@pytest.fixture
def items():
    return [
        Item(item_id="FDA01", item_type="Dairy", mrp=40, visibility=0.02, weight=9.3, fat_content="Low Fat"),
        Item(item_id="FDB02", item_type="Snacks", mrp=120, visibility=0.08, weight=None, fat_content="Regular"),
        Item(item_id="FDC03", item_type="Snacks", mrp=260, visibility=0.10, weight=12.0, fat_content="Low Fat"),
        Item(item_id="NCD04", item_type="Household", mrp=180, visibility=0.06, weight=8.0, fat_content="Low Fat"),
    ]


@pytest.fixture
def outlets():
    return [
        Outlet(outlet_id="OUT1", establishment_year=1999, size="Medium", location_type="Tier 1", outlet_type="Supermarket Type1"),
        Outlet(outlet_id="OUT2", establishment_year=2005, size=None, location_type="Tier 2", outlet_type="Grocery Store"),
        Outlet(outlet_id="OUT3", establishment_year=1999, size="Small", location_type="Tier 1", outlet_type="Supermarket Type1"),
    ]


@pytest.fixture
def sales():
    return [
        SalesRecord(outlet_id="OUT1", item_id="FDA01", sales_amount=100),
        SalesRecord(outlet_id="OUT1", item_id="FDB02", sales_amount=300),
        SalesRecord(outlet_id="OUT1", item_id="FDC03", sales_amount=50),
        SalesRecord(outlet_id="OUT2", item_id="FDA01", sales_amount=80),
        SalesRecord(outlet_id="OUT2", item_id="NCD04", sales_amount=20),
        SalesRecord(outlet_id="OUT3", item_id="FDB02", sales_amount=200),
        SalesRecord(outlet_id="OUT3", item_id="NCD04", sales_amount=200),
    ]


@pytest.fixture
def dataset(items, outlets, sales, test_settings):
    """Small dataset: 4 items, 3 outlets, 7 sales rows totalling 950."""
    return Dataset.from_records(items, outlets, sales, settings=test_settings, name="fixture")


@pytest.fixture
def runner(dataset, test_settings):
    return ReportRunner(dataset, settings=test_settings)


@pytest.fixture
def decile_dataset(test_settings):
    """Ten visible items selling 10..100 at one outlet, plus one hidden item."""
    items = [
        {"item_id": f"I{i:02d}", "item_type": "Snacks", "mrp": 100.0,
         "visibility": 0.1, "weight": 1.0, "fat_content": "Regular"}
        for i in range(10)
    ]
    items.append({"item_id": "HIDDEN", "item_type": "Snacks", "mrp": 100.0,
                  "visibility": 0.01, "weight": 1.0, "fat_content": "Regular"})
    outlets = [{"outlet_id": "OUT1", "establishment_year": 2000, "size": "High",
                "location_type": "Tier 3", "outlet_type": "Supermarket Type2"}]
    sales = [{"outlet_id": "OUT1", "item_id": f"I{i:02d}", "sales_amount": 10.0 * (i + 1)}
             for i in range(10)]
    sales.append({"outlet_id": "OUT1", "item_id": "HIDDEN", "sales_amount": 1.0})
    return Dataset.from_records(items, outlets, sales, settings=test_settings)

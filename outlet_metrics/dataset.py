"""
Immutable, validated container for the three base sets.
"""

from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd
import structlog

from .config import Settings, settings as default_settings
from .models.records import (
    ITEM_COLUMNS,
    OUTLET_COLUMNS,
    SALES_COLUMNS,
    Item,
    Outlet,
    SalesRecord,
)
from .validation import DatasetValidator, raise_for_result

logger = structlog.get_logger()

RecordLike = Union[Mapping[str, Any], Item, Outlet, SalesRecord]


def _records_to_frame(records: Iterable[RecordLike], model, columns) -> pd.DataFrame:
    rows = []
    for record in records:
        if not isinstance(record, model):
            record = model.model_validate(record)
        rows.append(record.model_dump())
    return pd.DataFrame(rows, columns=columns)


class Dataset:
    """
    Items, outlets and sales after load-boundary validation.

    The frames are private copies; pipelines only ever read them. ``joined``
    is the sales rows with their item and outlet attributes attached, which
    is what almost every report starts from.
    """

    def __init__(
        self,
        items: pd.DataFrame,
        outlets: pd.DataFrame,
        sales: pd.DataFrame,
        settings: Optional[Settings] = None,
        name: str = "dataset",
    ):
        self.settings = settings or default_settings
        self.name = name

        validator = DatasetValidator(
            fail_on_validation_error=self.settings.fail_fast_on_validation
        )
        results = validator.validate_dataset(
            items.copy(), outlets.copy(), sales.copy(), dataset_name=name
        )
        raise_for_result(results)
        self.quality_metrics = results["quality_metrics"]

        frames = results["frames"]
        self._items = frames["items"][ITEM_COLUMNS].reset_index(drop=True)
        self._outlets = frames["outlets"][OUTLET_COLUMNS].reset_index(drop=True)
        self._sales = frames["sales"][SALES_COLUMNS].reset_index(drop=True)
        self._joined = self._sales.merge(
            self._items, on="item_id", how="inner", validate="many_to_one"
        ).merge(self._outlets, on="outlet_id", how="inner", validate="many_to_one")

        logger.info(
            "Dataset loaded",
            dataset=name,
            items=len(self._items),
            outlets=len(self._outlets),
            sales=len(self._sales),
        )

    @classmethod
    def from_records(
        cls,
        items: Iterable[RecordLike],
        outlets: Iterable[RecordLike],
        sales: Iterable[RecordLike],
        settings: Optional[Settings] = None,
        name: str = "dataset",
    ) -> "Dataset":
        """Build a dataset from model instances or plain dicts."""
        return cls(
            _records_to_frame(items, Item, ITEM_COLUMNS),
            _records_to_frame(outlets, Outlet, OUTLET_COLUMNS),
            _records_to_frame(sales, SalesRecord, SALES_COLUMNS),
            settings=settings,
            name=name,
        )

    @classmethod
    def from_frames(
        cls,
        items: pd.DataFrame,
        outlets: pd.DataFrame,
        sales: pd.DataFrame,
        settings: Optional[Settings] = None,
        name: str = "dataset",
    ) -> "Dataset":
        """Build a dataset from frames carrying the record column names."""
        return cls(items, outlets, sales, settings=settings, name=name)

    # Accessors hand out copies so no caller can mutate the shared base sets
    @property
    def items(self) -> pd.DataFrame:
        return self._items.copy()

    @property
    def outlets(self) -> pd.DataFrame:
        return self._outlets.copy()

    @property
    def sales(self) -> pd.DataFrame:
        return self._sales.copy()

    @property
    def joined(self) -> pd.DataFrame:
        return self._joined.copy()

    def __len__(self) -> int:
        return len(self._sales)

    def __repr__(self) -> str:
        return (
            f"Dataset(name={self.name!r}, items={len(self._items)}, "
            f"outlets={len(self._outlets)}, sales={len(self._sales)})"
        )

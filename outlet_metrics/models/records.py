"""
Pydantic models for the item / outlet / sales data contract.

This module defines the records the engine consumes once ingestion has
resolved blanks and coerced types: one stock-keeping unit, one store and
one observed (outlet, item) sales figure.
"""

from datetime import date
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Item(BaseModel):
    """
    Data contract for a single stock-keeping unit.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )

    item_id: str = Field(min_length=1)
    item_type: str = Field(min_length=1)
    mrp: float = Field(ge=0)
    visibility: float = Field(ge=0, le=1)
    weight: Optional[float] = Field(default=None, ge=0)
    fat_content: str


class Outlet(BaseModel):
    """
    Data contract for a single store location.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )

    outlet_id: str = Field(min_length=1)
    establishment_year: int
    size: str = "Unknown"
    location_type: str
    outlet_type: str

    @field_validator("establishment_year")
    @classmethod
    def validate_year_not_future(cls, v):
        """Validate that the outlet was not established in the future."""
        if v > date.today().year:
            raise ValueError("Establishment year cannot be in the future")
        return v

    @field_validator("size", mode="before")
    @classmethod
    def default_unknown_size(cls, v):
        """Absent sizes are reported as Unknown."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return "Unknown"
        return v


class SalesRecord(BaseModel):
    """
    Data contract for the observed sales of one item at one outlet.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )

    outlet_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)
    sales_amount: float = Field(ge=0)

    @property
    def key(self) -> Tuple[str, str]:
        """Composite (outlet_id, item_id) key."""
        return (self.outlet_id, self.item_id)


class RecordSet(BaseModel):
    """
    The three base entity sets as handed over by ingestion.

    Uniqueness and referential integrity are checked by
    ``outlet_metrics.validation.DatasetValidator``, not here.
    """

    model_config = ConfigDict(extra="forbid")

    items: List[Item]
    outlets: List[Outlet]
    sales: List[SalesRecord]

    def item_ids(self) -> Set[str]:
        """Get unique item IDs."""
        return {item.item_id for item in self.items}

    def outlet_ids(self) -> Set[str]:
        """Get unique outlet IDs."""
        return {outlet.outlet_id for outlet in self.outlets}

    def total_sales(self) -> float:
        """Calculate total sales across all records."""
        return sum(record.sales_amount for record in self.sales)


# Data schema documentation
DATASET_SCHEMA = {
    "items": {
        "description": "One row per stock-keeping unit",
        "fields": {
            "item_id": {"type": "string", "constraints": ["required", "unique"]},
            "item_type": {"type": "string", "constraints": ["required"]},
            "mrp": {"type": "decimal", "constraints": ["required", "min: 0"]},
            "visibility": {
                "type": "decimal",
                "constraints": ["required", "min: 0", "max: 1"],
            },
            "weight": {"type": "decimal", "constraints": ["nullable", "min: 0"]},
            "fat_content": {"type": "string", "constraints": ["required"]},
        },
        "primary_key": ["item_id"],
    },
    "outlets": {
        "description": "One row per store location",
        "fields": {
            "outlet_id": {"type": "string", "constraints": ["required", "unique"]},
            "establishment_year": {
                "type": "integer",
                "constraints": ["required", "not_future"],
            },
            "size": {"type": "string", "constraints": ["required", "default: Unknown"]},
            "location_type": {"type": "string", "constraints": ["required"]},
            "outlet_type": {"type": "string", "constraints": ["required"]},
        },
        "primary_key": ["outlet_id"],
    },
    "sales": {
        "description": "Observed sales of one item at one outlet",
        "fields": {
            "outlet_id": {"type": "string", "constraints": ["required", "fk: outlets"]},
            "item_id": {"type": "string", "constraints": ["required", "fk: items"]},
            "sales_amount": {"type": "decimal", "constraints": ["required", "min: 0"]},
        },
        "primary_key": ["outlet_id", "item_id"],
    },
}

ITEM_COLUMNS = list(DATASET_SCHEMA["items"]["fields"])
OUTLET_COLUMNS = list(DATASET_SCHEMA["outlets"]["fields"])
SALES_COLUMNS = list(DATASET_SCHEMA["sales"]["fields"])

"""
Data validation module for the item, outlet and sales base sets.

Schema checks run through Pandera; key uniqueness and referential integrity
are checked directly on the frames. Every check runs once, at the load
boundary, before any report pipeline sees the data.
"""

from datetime import date
from typing import Any, Dict, List, Sequence

import pandas as pd
import structlog
from pandera import Check, Column, DataFrameSchema
from pandera.errors import SchemaErrors

logger = structlog.get_logger()


class DataValidationError(Exception):
    """Base exception for base-set validation failures"""

    pass


class SchemaValidationError(DataValidationError):
    """A base frame does not match its schema"""

    pass


class DuplicateKeyError(DataValidationError):
    """Two rows share the same unique or composite key"""

    pass


class ReferentialIntegrityError(DataValidationError):
    """A sales row references an unknown item or outlet"""

    pass


class DatasetSchema:
    """Schema definitions for the three base sets"""

    ITEMS_SCHEMA = DataFrameSchema(
        {
            "item_id": Column(str, checks=[Check.str_length(min_value=1)], nullable=False),
            "item_type": Column(str, checks=[Check.str_length(min_value=1)], nullable=False),
            "mrp": Column(float, checks=[Check.greater_than_or_equal_to(0)], nullable=False),
            "visibility": Column(
                float,
                checks=[
                    Check.greater_than_or_equal_to(0),
                    Check.less_than_or_equal_to(1),
                ],
                nullable=False,
            ),
            "weight": Column(float, checks=[Check.greater_than_or_equal_to(0)], nullable=True),
            "fat_content": Column(str, nullable=False),
        },
        coerce=True,
        strict="filter",
    )

    OUTLETS_SCHEMA = DataFrameSchema(
        {
            "outlet_id": Column(str, checks=[Check.str_length(min_value=1)], nullable=False),
            "establishment_year": Column(
                int,
                checks=[Check.less_than_or_equal_to(date.today().year)],
                nullable=False,
            ),
            "size": Column(str, nullable=False),
            "location_type": Column(str, nullable=False),
            "outlet_type": Column(str, nullable=False),
        },
        coerce=True,
        strict="filter",
    )

    SALES_SCHEMA = DataFrameSchema(
        {
            "outlet_id": Column(str, checks=[Check.str_length(min_value=1)], nullable=False),
            "item_id": Column(str, checks=[Check.str_length(min_value=1)], nullable=False),
            "sales_amount": Column(
                float, checks=[Check.greater_than_or_equal_to(0)], nullable=False
            ),
        },
        coerce=True,
        strict="filter",
    )

    @classmethod
    def for_entity(cls, entity: str) -> DataFrameSchema:
        """Look up the schema for ``items``, ``outlets`` or ``sales``."""
        return {
            "items": cls.ITEMS_SCHEMA,
            "outlets": cls.OUTLETS_SCHEMA,
            "sales": cls.SALES_SCHEMA,
        }[entity]


ENTITY_KEYS = {
    "items": ["item_id"],
    "outlets": ["outlet_id"],
    "sales": ["outlet_id", "item_id"],
}


class DatasetValidator:
    """Validates the base sets as one unit: schemas, keys, references"""

    def __init__(self, fail_on_validation_error: bool = True):
        self.fail_on_validation_error = fail_on_validation_error
        self.schemas = DatasetSchema()

    def _fail(self, result: Dict[str, Any], error: DataValidationError) -> None:
        result["passed"] = False
        result["errors"].append(str(error))
        result.setdefault("exceptions", []).append(error)
        if self.fail_on_validation_error:
            raise error

    def calculate_data_quality_metrics(
        self, items: pd.DataFrame, outlets: pd.DataFrame, sales: pd.DataFrame
    ) -> Dict[str, Any]:
        """Calculate row, null and key-collision counts for the base sets"""
        metrics = {
            "items_rows": len(items),
            "outlets_rows": len(outlets),
            "sales_rows": len(sales),
        }

        for entity, df in (("items", items), ("outlets", outlets), ("sales", sales)):
            total_values = len(df) * len(df.columns)
            total_nulls = int(df.isnull().sum().sum())
            metrics[f"{entity}_null_ratio"] = (
                total_nulls / total_values if total_values > 0 else 0
            )
            keys = [k for k in ENTITY_KEYS[entity] if k in df.columns]
            if keys:
                metrics[f"{entity}_duplicate_keys"] = int(
                    df.duplicated(subset=keys).sum()
                )

        if "weight" in items.columns:
            metrics["items_missing_weight"] = int(items["weight"].isnull().sum())

        return metrics

    def validate_with_pandera(
        self, df: pd.DataFrame, entity: str
    ) -> Dict[str, Any]:
        """Validate one base frame against its Pandera schema"""
        validation_result = {"entity": entity, "passed": False, "errors": [], "data": None}

        try:
            validation_result["data"] = self.schemas.for_entity(entity).validate(
                df, lazy=True
            )
            validation_result["passed"] = True
            logger.debug("Pandera validation passed", entity=entity, rows=len(df))

        except SchemaErrors as e:
            errors = [str(error) for error in e.schema_errors]
            logger.error("Pandera validation failed", entity=entity, errors=errors)
            self._fail(
                validation_result,
                SchemaValidationError(f"Schema validation failed for {entity}: {errors}"),
            )

        return validation_result

    def check_unique_keys(
        self, df: pd.DataFrame, entity: str
    ) -> Dict[str, Any]:
        """Detect rows sharing a unique or composite key"""
        keys = ENTITY_KEYS[entity]
        result = {"entity": entity, "passed": True, "errors": [], "duplicates": []}

        duplicated = df[df.duplicated(subset=keys, keep=False)]
        if not duplicated.empty:
            offending = sorted(
                {tuple(row) for row in duplicated[keys].itertuples(index=False)}
            )
            result["duplicates"] = offending
            shown = [k[0] if len(k) == 1 else k for k in offending]
            logger.error("Duplicate keys found", entity=entity, keys=shown)
            self._fail(
                result,
                DuplicateKeyError(f"Duplicate {'/'.join(keys)} in {entity}: {shown}"),
            )

        return result

    def check_referential_integrity(
        self, sales: pd.DataFrame, items: pd.DataFrame, outlets: pd.DataFrame
    ) -> Dict[str, Any]:
        """Every sales row must point at a known item and a known outlet"""
        result = {"passed": True, "errors": [], "unknown_items": [], "unknown_outlets": []}

        unknown_items = sorted(set(sales["item_id"]) - set(items["item_id"]))
        unknown_outlets = sorted(set(sales["outlet_id"]) - set(outlets["outlet_id"]))
        result["unknown_items"] = unknown_items
        result["unknown_outlets"] = unknown_outlets

        if unknown_items or unknown_outlets:
            logger.error(
                "Referential integrity violated",
                unknown_items=unknown_items,
                unknown_outlets=unknown_outlets,
            )
            problems: List[str] = []
            if unknown_items:
                problems.append(f"unknown item_id {unknown_items}")
            if unknown_outlets:
                problems.append(f"unknown outlet_id {unknown_outlets}")
            self._fail(
                result,
                ReferentialIntegrityError(
                    "Sales records reference " + " and ".join(problems)
                ),
            )

        return result

    def validate_dataset(
        self,
        items: pd.DataFrame,
        outlets: pd.DataFrame,
        sales: pd.DataFrame,
        dataset_name: str = "dataset",
    ) -> Dict[str, Any]:
        """Run every base-set check and collect the outcome"""
        logger.info(
            "Starting dataset validation",
            dataset=dataset_name,
            items=len(items),
            outlets=len(outlets),
            sales=len(sales),
        )

        validation_results: Dict[str, Any] = {
            "dataset_name": dataset_name,
            "overall_success": True,
            "quality_metrics": self.calculate_data_quality_metrics(items, outlets, sales),
            "pandera_results": {},
            "key_results": {},
            "referential_results": {},
            "frames": {},
            "exceptions": [],
        }

        frames = {"items": items, "outlets": outlets, "sales": sales}
        for entity, df in frames.items():
            pandera_result = self.validate_with_pandera(df, entity)
            validation_results["pandera_results"][entity] = pandera_result
            if pandera_result["passed"]:
                frames[entity] = pandera_result["data"]
            validation_results["exceptions"].extend(pandera_result.get("exceptions", []))

        # Key and reference checks need the key columns, which the schemas guarantee
        if all(r["passed"] for r in validation_results["pandera_results"].values()):
            for entity, df in frames.items():
                key_result = self.check_unique_keys(df, entity)
                validation_results["key_results"][entity] = key_result
                validation_results["exceptions"].extend(key_result.get("exceptions", []))

            referential_result = self.check_referential_integrity(
                frames["sales"], frames["items"], frames["outlets"]
            )
            validation_results["referential_results"] = referential_result
            validation_results["exceptions"].extend(
                referential_result.get("exceptions", [])
            )

        validation_results["overall_success"] = not validation_results["exceptions"]
        validation_results["frames"] = frames

        logger.info(
            "Dataset validation completed",
            dataset=dataset_name,
            success=validation_results["overall_success"],
        )
        return validation_results


def raise_for_result(validation_results: Dict[str, Any]) -> None:
    """Raise the first collected validation error, if any"""
    errors: Sequence[DataValidationError] = validation_results.get("exceptions", [])
    if errors:
        raise errors[0]

"""In-memory analytical reports over item, outlet and sales records."""

from .config import Settings, settings
from .dataset import Dataset
from .engine import REPORTS, ReportResult, ReportRunner
from .logging_config import setup_logging
from .models import Item, Outlet, SalesRecord
from .validation import (
    DataValidationError,
    DuplicateKeyError,
    ReferentialIntegrityError,
    SchemaValidationError,
)

__all__ = [
    "Settings",
    "settings",
    "setup_logging",
    "Item",
    "Outlet",
    "SalesRecord",
    "Dataset",
    "REPORTS",
    "ReportRunner",
    "ReportResult",
    "DataValidationError",
    "SchemaValidationError",
    "DuplicateKeyError",
    "ReferentialIntegrityError",
]

__version__ = "1.0.0"

"""
Data models for the outlet metrics engine.
"""

from .records import DATASET_SCHEMA, Item, Outlet, RecordSet, SalesRecord

__all__ = ["Item", "Outlet", "SalesRecord", "RecordSet", "DATASET_SCHEMA"]

"""SQLAlchemy adapter package for the local record store."""

from __future__ import annotations

from .store import SqlAlchemyRecordStore, create_local_store
from .tables import create_all_tables, metadata, records_table, table_catalog_table

__all__ = [
    "SqlAlchemyRecordStore",
    "create_all_tables",
    "create_local_store",
    "metadata",
    "records_table",
    "table_catalog_table",
]

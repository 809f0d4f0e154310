"""Public interface for the remote store adapter."""

from __future__ import annotations

from .client import HttpRecordStore
from .schema import BulkPayload, BulkResponse, OutcomePayload, RowErrorPayload, TableCatalogEntry
from .session import StoreSession

__all__ = [
    "BulkPayload",
    "BulkResponse",
    "HttpRecordStore",
    "OutcomePayload",
    "RowErrorPayload",
    "StoreSession",
    "TableCatalogEntry",
]

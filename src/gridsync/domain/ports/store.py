"""Port for the remote versioned record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gridsync.domain.catalog import TableDescriptor
    from gridsync.domain.reconciliation.contracts import BatchRequest, StoreResponse
    from gridsync.domain.types import JsonRecord


@runtime_checkable
class RecordStore(Protocol):
    """Bulk write, table read and catalog lookup against the store.

    ``bulk`` returns the flat outcome list exactly as the store produced it; it must
    not retry, reorder or drop entries. Transport problems raise ``TransportError``.
    """

    def bulk(self, request: BatchRequest) -> StoreResponse: ...

    def fetch_records(self, target: str, *, operation: str = "select") -> list[JsonRecord]: ...

    def list_tables(self) -> list[TableDescriptor]: ...


__all__ = ["RecordStore"]

"""HTTP client for the store's bulk edge function and table catalog."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

import httpx
from pydantic import ValidationError as PydanticValidationError

from gridsync.config.errors import ConfigurationError
from gridsync.config.store import (
    BULK_FUNCTION_NAME,
    CATALOG_RESOURCE,
    StoreConfig,
    get_store_config,
)
from gridsync.domain.errors import TransportError
from gridsync.domain.reconciliation.contracts import StoreResponse

from .schema import BulkPayload, BulkResponse, TableCatalogEntry, TableRecordsResponse
from .session import StoreSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from gridsync.config.endpoints import Endpoint
    from gridsync.domain.catalog import TableDescriptor
    from gridsync.domain.ports.store import RecordStore
    from gridsync.domain.reconciliation.contracts import BatchRequest
    from gridsync.domain.types import JsonRecord

log = getLogger(__name__)

CATALOG_COLUMNS = "id,table_name,table_type,unique_keys"


@dataclass(slots=True)
class HttpRecordStore:
    """Record store backed by the remote edge function.

    Every public call runs its own event loop, mirroring how the store is used:
    one blocking round-trip per user action.
    """

    config: StoreConfig = field(default_factory=get_store_config)
    session_factory: Callable[[Endpoint], StoreSession] = field(default=StoreSession)

    def bulk(self, request: BatchRequest) -> StoreResponse:
        return asyncio.run(self._bulk_async(request))

    def fetch_records(self, target: str, *, operation: str = "select") -> list[JsonRecord]:
        if not target or not operation:
            raise ValueError("Table name and operation are required")
        return asyncio.run(self._fetch_records_async(target, operation))

    def list_tables(self) -> list[TableDescriptor]:
        if self.config.catalog_endpoint is None:
            raise ConfigurationError("GRIDSYNC_REST_URL is required to list tables")
        return asyncio.run(self._list_tables_async(self.config.catalog_endpoint))

    async def _bulk_async(self, request: BatchRequest) -> StoreResponse:
        payload = BulkPayload.from_request(request)
        log.debug("Sending %s row(s) to %s", len(payload.rows), BULK_FUNCTION_NAME)
        async with self.session_factory(self.config.bulk_endpoint) as session:
            body = await session.post_json(BULK_FUNCTION_NAME, payload.model_dump())

        if not body:
            raise TransportError("No response from store")
        try:
            parsed = BulkResponse.model_validate(body)
        except PydanticValidationError as exc:
            raise TransportError(f"Malformed store response: {exc}") from exc
        if parsed.error:
            log.error("Store error for %s: %s", request.target, parsed.error)
            raise TransportError(f"Store error: {parsed.error}")

        return StoreResponse(
            outcomes=tuple(item.to_outcome() for item in parsed.data),
            errors=tuple(item.to_row_error() for item in parsed.errors),
        )

    async def _fetch_records_async(self, target: str, operation: str) -> list[JsonRecord]:
        params = httpx.QueryParams({"operation": operation, "table_name": target})
        async with self.session_factory(self.config.bulk_endpoint) as session:
            body = await session.get_json(BULK_FUNCTION_NAME, params=params)

        data = body.get("data") if isinstance(body, Mapping) else None
        if not isinstance(data, list):
            raise TransportError(
                f"Invalid response format. Expected array, got {type(data).__name__}"
            )
        try:
            parsed = TableRecordsResponse.model_validate(body)
        except PydanticValidationError as exc:
            raise TransportError(f"Malformed table data for {target}: {exc}") from exc
        log.debug("Fetched %s record(s) of %s", len(parsed.data), target)
        return list(parsed.data)

    async def _list_tables_async(self, endpoint: Endpoint) -> list[TableDescriptor]:
        params = httpx.QueryParams({"select": CATALOG_COLUMNS, "order": "table_type.asc"})
        async with self.session_factory(endpoint) as session:
            body = await session.get_json(f"rest/v1/{CATALOG_RESOURCE}", params=params)

        if not isinstance(body, list):
            raise TransportError("Unexpected table catalog payload")
        try:
            items = cast("list[object]", body)
            entries = [TableCatalogEntry.model_validate(item) for item in items]
        except PydanticValidationError as exc:
            raise TransportError(f"Malformed table catalog: {exc}") from exc
        return [entry.to_descriptor() for entry in entries]


if TYPE_CHECKING:
    _store_check: RecordStore = HttpRecordStore()

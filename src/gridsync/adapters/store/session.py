"""Async HTTP session for one store endpoint.

Wraps ``httpx`` with the store's transport rules: a client-side rate limit, retries
for reads only and an optional on-disk cache for catalog reads. Bodies come back as
decoded JSON; every network or HTTP failure surfaces as ``TransportError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack, cast

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from gridsync.config.endpoints import READ_METHODS
from gridsync.config.storage import get_local_paths
from gridsync.domain.errors import TransportError

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import QueryParamTypes

    from gridsync.config.endpoints import CatalogCache, Endpoint, ReadRetry

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    json: object
    params: QueryParamTypes | None


class ClientOptions(TypedDict, total=False):
    base_url: str
    timeout: float
    headers: Mapping[str, str]
    transport: httpx.AsyncBaseTransport


def build_retry(policy: ReadRetry) -> Retry:
    return Retry(
        total=policy.attempts,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        allowed_methods=tuple(READ_METHODS),
        status_forcelist=tuple(policy.statuses),
        retry_on_exceptions=(
            httpx.TimeoutException,
            httpx.NetworkError,
            httpx.RemoteProtocolError,
        ),
    )


def _catalog_storage(cache: CatalogCache) -> AsyncSqliteStorage:
    path = cache.path or get_local_paths().prepared().catalog_cache
    return AsyncSqliteStorage(
        database_path=str(path),
        default_ttl=cache.ttl_seconds,
        refresh_ttl_on_access=False,
    )


def error_text(response: httpx.Response) -> str:
    """Best human-readable reason from an error response."""

    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, Mapping):
        body = cast("Mapping[str, object]", payload)
        for key in ("error", "message", "msg"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


class StoreSession:
    """HTTP client bound to one :class:`Endpoint`; use it as ``async with``.

    ``transport`` replaces the network layer underneath the retry transport, which is
    how tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(endpoint.calls_per_second, 1.0) if endpoint.calls_per_second else None
        )

        options: ClientOptions = {
            "base_url": endpoint.base_url,
            "timeout": endpoint.timeout_seconds,
            "headers": dict(endpoint.headers),
            "transport": RetryTransport(transport=transport, retry=build_retry(endpoint.retry)),
        }
        self._client: httpx.AsyncClient
        if endpoint.cache is not None:
            self._client = AsyncCacheClient(**options, storage=_catalog_storage(endpoint.cache))
        else:
            self._client = httpx.AsyncClient(**options)

    async def __aenter__(self) -> StoreSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, url: str, *, params: QueryParamTypes | None = None) -> object:
        return await self._call("GET", url, params=params)

    async def post_json(self, url: str, payload: object) -> object:
        return await self._call("POST", url, json=payload)

    async def _call(self, method: str, url: str, **options: Unpack[RequestOptions]) -> object:
        try:
            if self._limiter is None:
                response = await self._client.request(method, url, **options)
            else:
                async with self._limiter:
                    response = await self._client.request(method, url, **options)
            log.debug("%s %s %s -> %s", self.endpoint.name, method, url, response.status_code)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise TransportError(
                f"Store answered HTTP {status}: {error_text(exc.response)}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Store unreachable: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Store returned a non-JSON response") from exc

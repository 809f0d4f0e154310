"""Per-endpoint HTTP settings for the remote record store.

The store exposes two endpoints: the bulk edge function (reads and writes) and the
REST view serving the table catalog. Writes are sent exactly once; only reads are
retried, and only catalog reads are cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

READ_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})
RETRY_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class ReadRetry:
    attempts: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    statuses: frozenset[int] = RETRY_STATUSES


@dataclass(slots=True, frozen=True)
class CatalogCache:
    """Keep catalog answers on disk for ``ttl_seconds``.

    ``path=None`` uses the cache file in the gridsync data directory.
    """

    ttl_seconds: float = 300.0
    path: Path | None = None


@dataclass(slots=True, frozen=True)
class Endpoint:
    name: str
    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict["str", "str"])
    timeout_seconds: float = 30.0
    calls_per_second: float | None = 5.0
    retry: ReadRetry = field(default_factory=ReadRetry)
    cache: CatalogCache | None = None

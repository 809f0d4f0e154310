"""Where gridsync keeps its local files.

Two files live in the data directory: the SQLite database backing the offline
record store and the HTTP cache for the remote table catalog. ``GRIDSYNC_DATA_DIR``
moves the directory, ``GRIDSYNC_DATABASE_URI`` points the offline store at any
SQLAlchemy database instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

DATA_DIR_ENV: Final[str] = "GRIDSYNC_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "GRIDSYNC_DATABASE_URI"
LOCAL_STORE_FILENAME: Final[str] = "gridsync.db"
CATALOG_CACHE_FILENAME: Final[str] = "catalog_cache.db"


@dataclass(frozen=True, slots=True)
class LocalPaths:
    root: Path

    @property
    def local_store(self) -> Path:
        return self.root / LOCAL_STORE_FILENAME

    @property
    def catalog_cache(self) -> Path:
        return self.root / CATALOG_CACHE_FILENAME

    def prepared(self) -> LocalPaths:
        """Create the data directory if needed and return ``self``."""

        self.root.mkdir(parents=True, exist_ok=True)
        return self


def _platform_data_home() -> Path:
    if os.name == "nt":
        variable, fallback = "LOCALAPPDATA", Path("AppData", "Local")
    else:
        variable, fallback = "XDG_DATA_HOME", Path(".local", "share")
    configured = os.getenv(variable)
    return Path(configured) if configured else Path.home() / fallback


def get_local_paths() -> LocalPaths:
    override = optional_env_var(DATA_DIR_ENV)
    root = Path(override) if override else _platform_data_home() / "gridsync"
    return LocalPaths(root=root.expanduser().resolve())


def local_store_uri(paths: LocalPaths | None = None) -> str:
    """SQLAlchemy URI of the offline record store."""

    override = optional_env_var(DATABASE_URI_ENV)
    if override:
        return override
    target = (paths or get_local_paths()).prepared().local_store
    return f"sqlite+pysqlite:///{target}"

"""Application configuration helpers."""

from __future__ import annotations

from .endpoints import CatalogCache, Endpoint, ReadRetry
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import LocalPaths, get_local_paths, local_store_uri
from .store import IdentityConfig, StoreConfig, get_identity_config, get_store_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CatalogCache",
    "ConfigurationError",
    "Endpoint",
    "IdentityConfig",
    "LocalPaths",
    "MissingConfigurationError",
    "ReadRetry",
    "StoreConfig",
    "SyncConfig",
    "configure_logging",
    "get_identity_config",
    "get_local_paths",
    "get_store_config",
    "get_sync_config",
    "local_store_uri",
    "require_env_var",
    "require_env_vars",
]

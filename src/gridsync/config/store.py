"""Remote record store configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .endpoints import CatalogCache, Endpoint
from .env import optional_env_var, optional_int_env_var, require_env_vars
from .errors import MissingConfigurationError

BULK_FUNCTION_NAME = "generic_bulk_crud_operation_master_data"
CATALOG_RESOURCE = "excel_addin_dropdown_values"
STORE_TIMEOUT_SECONDS = 60.0
CATALOG_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class StoreConfig:
    """Holds the remote store endpoints and credentials."""

    functions_url: str
    api_key: str
    bulk_endpoint: Endpoint
    rest_url: str | None = None
    catalog_endpoint: Endpoint | None = None


@dataclass(frozen=True)
class IdentityConfig:
    """Who is editing, and which tenant the rows belong to."""

    caller_id: str
    tenant_id: int


def _auth_headers(api_key: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
        "apikey": api_key,
    }


def get_store_config() -> StoreConfig:
    values = require_env_vars(("GRIDSYNC_FUNCTIONS_URL", "GRIDSYNC_API_KEY"))
    api_key = values["GRIDSYNC_API_KEY"]
    functions_url = values["GRIDSYNC_FUNCTIONS_URL"].rstrip("/") + "/"
    rest_url = optional_env_var("GRIDSYNC_REST_URL")

    catalog_endpoint: Endpoint | None = None
    if rest_url is not None:
        rest_url = rest_url.rstrip("/") + "/"
        catalog_endpoint = Endpoint(
            name="catalog",
            base_url=rest_url,
            headers=_auth_headers(api_key),
            cache=CatalogCache(ttl_seconds=CATALOG_TTL_SECONDS),
        )

    return StoreConfig(
        functions_url=functions_url,
        api_key=api_key,
        bulk_endpoint=Endpoint(
            name="bulk",
            base_url=functions_url,
            headers=_auth_headers(api_key),
            timeout_seconds=STORE_TIMEOUT_SECONDS,
        ),
        rest_url=rest_url,
        catalog_endpoint=catalog_endpoint,
    )


def get_identity_config() -> IdentityConfig:
    caller = optional_env_var("GRIDSYNC_CALLER_ID")
    tenant = optional_int_env_var("GRIDSYNC_TENANT_ID")
    if caller is None or tenant is None:
        missing = [
            name
            for name, value in (("GRIDSYNC_CALLER_ID", caller), ("GRIDSYNC_TENANT_ID", tenant))
            if value is None
        ]
        raise MissingConfigurationError(missing)
    return IdentityConfig(caller_id=caller, tenant_id=tenant)

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from gridsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    configure_logging,
    get_identity_config,
    get_local_paths,
    get_store_config,
    local_store_uri,
    require_env_var,
    require_env_vars,
)
from gridsync.config.env import optional_int_env_var


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_int_env_var(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", " 42 ")
    assert optional_int_env_var("EXAMPLE_INT") == 42

    monkeypatch.setenv("EXAMPLE_INT", "forty-two")
    with pytest.raises(ConfigurationError, match="must be an integer"):
        optional_int_env_var("EXAMPLE_INT")


def test_store_config_requires_functions_url_and_key() -> None:
    with pytest.raises(MissingConfigurationError) as exc:
        get_store_config()

    assert "GRIDSYNC_API_KEY, GRIDSYNC_FUNCTIONS_URL" in str(exc.value)
    assert exc.value.names == ("GRIDSYNC_API_KEY", "GRIDSYNC_FUNCTIONS_URL")


def test_store_config_builds_authenticated_clients(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRIDSYNC_FUNCTIONS_URL", "https://store.test/functions/v1")
    monkeypatch.setenv("GRIDSYNC_API_KEY", "secret")
    monkeypatch.setenv("GRIDSYNC_REST_URL", "https://store.test/")

    config = get_store_config()

    assert config.functions_url == "https://store.test/functions/v1/"
    assert config.bulk_endpoint.base_url == config.functions_url
    assert config.bulk_endpoint.cache is None
    assert config.bulk_endpoint.headers["Authorization"] == "Bearer secret"
    assert config.catalog_endpoint is not None
    assert config.catalog_endpoint.base_url == "https://store.test/"
    assert config.catalog_endpoint.cache is not None
    assert config.catalog_endpoint.cache.ttl_seconds == 300.0


def test_store_config_without_rest_url_has_no_catalog(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRIDSYNC_FUNCTIONS_URL", "https://store.test/functions/v1")
    monkeypatch.setenv("GRIDSYNC_API_KEY", "secret")

    assert get_store_config().catalog_endpoint is None


def test_identity_config(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(MissingConfigurationError, match="GRIDSYNC_CALLER_ID, GRIDSYNC_TENANT_ID"):
        get_identity_config()

    monkeypatch.setenv("GRIDSYNC_CALLER_ID", "user-1")
    monkeypatch.setenv("GRIDSYNC_TENANT_ID", "7")

    identity = get_identity_config()
    assert (identity.caller_id, identity.tenant_id) == ("user-1", 7)


def test_local_paths_respect_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GRIDSYNC_DATA_DIR", str(tmp_path / "gridsync"))

    paths = get_local_paths()

    assert paths.local_store == (tmp_path / "gridsync" / "gridsync.db").resolve()
    assert paths.catalog_cache.name == "catalog_cache.db"
    assert not paths.root.exists()
    assert local_store_uri() == f"sqlite+pysqlite:///{paths.local_store}"
    assert paths.root.is_dir()


def test_database_uri_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRIDSYNC_DATABASE_URI", "postgresql+psycopg://db/gridsync")

    assert local_store_uri() == "postgresql+psycopg://db/gridsync"


@pytest.mark.skipif(os.name == "nt", reason="XDG paths apply to POSIX only")
def test_default_data_dir_follows_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("GRIDSYNC_DATA_DIR")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert get_local_paths().root == Path(tmp_path / "gridsync").resolve()


def test_configure_logging_keeps_http_libraries_quiet_until_asked() -> None:
    configure_logging(force=True)
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger().level == logging.INFO

    configure_logging(verbosity=2, force=True)
    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG

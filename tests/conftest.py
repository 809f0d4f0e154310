from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from gridsync.config.store import IdentityConfig
from gridsync.domain.catalog import TableDescriptor

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from the user's data directory and real credentials."""

    monkeypatch.setenv("GRIDSYNC_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "GRIDSYNC_DATABASE_URI",
        "GRIDSYNC_FUNCTIONS_URL",
        "GRIDSYNC_API_KEY",
        "GRIDSYNC_REST_URL",
        "GRIDSYNC_CALLER_ID",
        "GRIDSYNC_TENANT_ID",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cargo_table() -> TableDescriptor:
    return TableDescriptor(
        id=1,
        table_name="cargo_type",
        table_type="master",
        unique_keys=("code",),
    )


@pytest.fixture
def identity() -> IdentityConfig:
    return IdentityConfig(caller_id="user-1", tenant_id=7)


@pytest.fixture
def system_fields() -> dict[str, int]:
    return {"tenant_id": 7}

"""Reconciliation defaults shared by the engine and the grid features."""

from __future__ import annotations

from dataclasses import dataclass, field

IDENTIFIER_FIELD = "id"
TENANT_FIELD = "tenant_id"
DEFAULT_READ_OPERATION = "select"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    identifier_field: str = IDENTIFIER_FIELD
    tenant_field: str = TENANT_FIELD
    read_operation: str = DEFAULT_READ_OPERATION
    system_columns: tuple[str, ...] = field(
        default_factory=lambda: (
            "id",
            "version",
            "is_active",
            "tenant_id",
            "created_by",
            "created_on",
            "updated_by",
            "updated_on",
            "valid_from",
            "valid_to",
        )
    )


def get_sync_config() -> SyncConfig:
    return SyncConfig()

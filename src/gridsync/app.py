"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from gridsync.adapters.store import HttpRecordStore
from gridsync.config.store import get_identity_config
from gridsync.config.sync import get_sync_config
from gridsync.domain.catalog import find_table
from gridsync.domain.reconciliation import ReconciliationEngine
from gridsync.domain.refresh import pull_selected_records, refresh_grid

if TYPE_CHECKING:
    from gridsync.config.store import IdentityConfig
    from gridsync.config.sync import SyncConfig
    from gridsync.domain.catalog import TableDescriptor
    from gridsync.domain.ports.grid import Grid
    from gridsync.domain.ports.store import RecordStore
    from gridsync.domain.reconciliation import PassReport
    from gridsync.domain.refresh import GridUpdate

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActionResult:
    """A reconciliation pass and the refresh that followed it, if any."""

    report: PassReport
    refresh: GridUpdate | None = None


def build_engine(
    store: RecordStore,
    *,
    identity: IdentityConfig | None = None,
    sync: SyncConfig | None = None,
) -> ReconciliationEngine:
    """Wire a reconciliation engine for the configured caller and tenant."""

    effective_identity = identity or get_identity_config()
    effective_sync = sync or get_sync_config()
    return ReconciliationEngine(
        store=store,
        caller_id=effective_identity.caller_id,
        system_fields={effective_sync.tenant_field: effective_identity.tenant_id},
        sync=effective_sync,
    )


def list_tables(*, store: RecordStore | None = None) -> list[TableDescriptor]:
    effective_store = store or HttpRecordStore()
    tables = effective_store.list_tables()
    log.info("Loaded %s table(s) from the catalog", len(tables))
    return tables


def resolve_table(table_name: str, *, store: RecordStore) -> TableDescriptor:
    return find_table(store.list_tables(), table_name)


def refresh_records(
    grid: Grid,
    table_name: str,
    *,
    store: RecordStore | None = None,
    sync: SyncConfig | None = None,
) -> GridUpdate:
    """Reload every active record of ``table_name`` into ``grid``."""

    return refresh_grid(grid, store or HttpRecordStore(), table_name, sync=sync)


def get_selected_records(
    grid: Grid,
    table_name: str,
    *,
    store: RecordStore | None = None,
    sync: SyncConfig | None = None,
) -> GridUpdate:
    """Overwrite the selected rows with the store's current values."""

    return pull_selected_records(grid, store or HttpRecordStore(), table_name, sync=sync)


def send_selected_records(
    grid: Grid,
    table_name: str,
    *,
    store: RecordStore | None = None,
    identity: IdentityConfig | None = None,
    sync: SyncConfig | None = None,
    refresh: bool = True,
) -> ActionResult:
    """Upsert the selected rows, then reload the table into the grid."""

    effective_store = store or HttpRecordStore()
    table = resolve_table(table_name, store=effective_store)
    engine = build_engine(effective_store, identity=identity, sync=sync)
    report = engine.send(grid, table)
    log.info("Send finished for %s: %s", table_name, report.summary.message)
    return ActionResult(
        report=report,
        refresh=_refresh_after(grid, effective_store, table_name, sync=sync, enabled=refresh),
    )


def delete_selected_records(
    grid: Grid,
    table_name: str,
    *,
    store: RecordStore | None = None,
    identity: IdentityConfig | None = None,
    sync: SyncConfig | None = None,
    refresh: bool = True,
) -> ActionResult:
    """Soft-delete the selected rows that carry an id, then reload the table."""

    effective_store = store or HttpRecordStore()
    table = resolve_table(table_name, store=effective_store)
    engine = build_engine(effective_store, identity=identity, sync=sync)
    report = engine.delete(grid, table)
    log.info("Delete finished for %s: %s", table_name, report.summary.message)
    return ActionResult(
        report=report,
        refresh=_refresh_after(grid, effective_store, table_name, sync=sync, enabled=refresh),
    )


def _refresh_after(
    grid: Grid,
    store: RecordStore,
    table_name: str,
    *,
    sync: SyncConfig | None,
    enabled: bool,
) -> GridUpdate | None:
    if not enabled:
        return None
    return refresh_grid(grid, store, table_name, sync=sync)

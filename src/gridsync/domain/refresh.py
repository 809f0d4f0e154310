"""Grid repopulation from the store.

Two read paths complement the reconciliation pass: a full refresh that rebuilds
the grid from every active record of a table, and a targeted pull that overwrites
only the selected rows with the store's current values.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from gridsync.config.sync import SyncConfig

from .errors import NoRowsSelectedError
from .flatten import extract_headers, flatten_record
from .protection import order_columns, unprotected
from .reconciliation.classify import InvalidIdentifierError, coerce_identifier
from .reconciliation.contracts import Summary
from .reconciliation.normalize import HEADER_POSITION
from .types import is_blank

if TYPE_CHECKING:
    from .ports.grid import Grid
    from .ports.store import RecordStore
    from .protection import ColumnLayout
    from .types import CellValue

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GridUpdate:
    count: int
    summary: Summary
    layout: ColumnLayout | None = None


def refresh_grid(
    grid: Grid,
    store: RecordStore,
    table_name: str,
    *,
    sync: SyncConfig | None = None,
) -> GridUpdate:
    """Clear ``grid`` and load every active record of ``table_name`` into it."""

    config = sync or SyncConfig()
    records = store.fetch_records(table_name, operation=config.read_operation)
    headers = extract_headers(records)
    if config.identifier_field in headers:
        records = [
            record for record in records if not is_blank(record.get(config.identifier_field))
        ]

    layout = order_columns(
        headers,
        config.system_columns,
        identifier=config.identifier_field,
    )
    rows = [layout.row_values(flatten_record(record)) for record in records]

    with unprotected(grid, protect_after=True):
        grid.render(layout, rows)
    log.info("Loaded %s record(s) of %s into the grid", len(rows), table_name)

    if not rows:
        return GridUpdate(
            count=0,
            summary=Summary(title="Warning", message="No data found. Headers created."),
            layout=layout,
        )
    return GridUpdate(
        count=len(rows),
        summary=Summary(title="Success", message=f"Successfully loaded {len(rows)} record(s)."),
        layout=layout,
    )


def pull_selected_records(
    grid: Grid,
    store: RecordStore,
    table_name: str,
    *,
    sync: SyncConfig | None = None,
) -> GridUpdate:
    """Overwrite the selected rows with the store's values, matched by identifier."""

    config = sync or SyncConfig()
    id_field = config.identifier_field
    selected = [
        row
        for row in grid.selected_rows()
        if row.position != HEADER_POSITION and not is_blank(row.fields.get(id_field))
    ]
    if not selected:
        raise NoRowsSelectedError("No rows with ID detected. Please select rows with valid IDs.")

    records = store.fetch_records(table_name, operation=config.read_operation)
    if not records:
        return GridUpdate(count=0, summary=Summary(title="Warning", message="No records found."))

    by_id: dict[str, dict[str, CellValue]] = {}
    for record in records:
        flat = flatten_record(record)
        if not is_blank(flat.get(id_field)):
            by_id[_identifier_key(flat[id_field])] = flat

    headers = grid.headers()
    matched = 0
    with unprotected(grid, protect_after=True):
        for row in selected:
            record = by_id.get(_identifier_key(row.fields[id_field]))
            if record is None:
                continue
            grid.write_row(row.position, {name: record[name] for name in headers if name in record})
            matched += 1

    if not matched:
        return GridUpdate(
            count=0,
            summary=Summary(
                title="Warning",
                message="No matching records found. Please select rows with valid IDs.",
            ),
        )
    return GridUpdate(
        count=matched,
        summary=Summary(title="Success", message=f"{matched} row(s) updated in the grid."),
    )


def _identifier_key(value: CellValue) -> str:
    try:
        identifier = coerce_identifier(value)
    except InvalidIdentifierError:
        return str(value).strip()
    return str(identifier)

"""Local record store with the remote store's versioned soft-delete semantics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, insert, select, update

from gridsync.config.storage import local_store_uri
from gridsync.config.sync import IDENTIFIER_FIELD, SyncConfig
from gridsync.domain.catalog import TableDescriptor
from gridsync.domain.errors import TransportError
from gridsync.domain.reconciliation.contracts import (
    OperationIntent,
    OutcomeLabel,
    RemoteOutcome,
    RowError,
    StoreResponse,
)
from gridsync.domain.types import is_blank, same_cell

from .tables import RECORD_COLUMNS, create_all_tables, records_table, table_catalog_table

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.engine import Connection, Engine, RowMapping

    from gridsync.domain.ports.store import RecordStore
    from gridsync.domain.reconciliation.contracts import BatchRequest, BatchRow
    from gridsync.domain.types import CellValue, JsonRecord

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class _RowRejected(Exception):
    """Internal signal: the current request row becomes a row error."""


@dataclass(slots=True)
class SqlAlchemyRecordStore:
    """Record store over a single SQLAlchemy engine.

    Inserts start at version 1. An update retires the active version
    (``is_active`` false, ``valid_to`` set) and appends ``version + 1`` under a new
    id. Id-less rows matching an active record on the table's unique keys are
    reported as duplicates. Deletes only retire the active version.
    """

    engine: Engine
    sync: SyncConfig = field(default_factory=SyncConfig)
    clock: Callable[[], datetime] = field(default=_utcnow)

    def __post_init__(self) -> None:
        create_all_tables(self.engine)

    # Catalog -------------------------------------------------------------

    def add_table(
        self,
        table_name: str,
        *,
        table_type: str,
        unique_keys: Sequence[str] = (),
    ) -> TableDescriptor:
        with self.engine.begin() as conn:
            result = conn.execute(
                insert(table_catalog_table).values(
                    table_name=table_name,
                    table_type=table_type,
                    unique_keys=list(unique_keys),
                )
            )
            primary_key = result.inserted_primary_key
        return TableDescriptor(
            id=primary_key[0] if primary_key else None,
            table_name=table_name,
            table_type=table_type,
            unique_keys=tuple(unique_keys),
        )

    def list_tables(self) -> list[TableDescriptor]:
        stmt = select(table_catalog_table).order_by(
            table_catalog_table.c.table_type, table_catalog_table.c.id
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            TableDescriptor(
                id=row["id"],
                table_name=row["table_name"],
                table_type=row["table_type"],
                unique_keys=tuple(row["unique_keys"] or ()),
            )
            for row in rows
        ]

    # Reads ---------------------------------------------------------------

    def fetch_records(self, target: str, *, operation: str = "select") -> list[JsonRecord]:
        if not target or not operation:
            raise ValueError("Table name and operation are required")
        if operation != "select":
            raise TransportError(f"Store error: unsupported operation {operation!r}")
        stmt = (
            select(records_table)
            .where(records_table.c.table_name == target)
            .where(records_table.c.is_active.is_(True))
            .order_by(records_table.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_to_record(row) for row in rows]

    # Writes --------------------------------------------------------------

    def bulk(self, request: BatchRequest) -> StoreResponse:
        outcomes: list[RemoteOutcome] = []
        errors: list[RowError] = []
        now = self.clock()
        with self.engine.begin() as conn:
            for row in request.rows:
                try:
                    outcomes.append(self._apply(conn, request, row, now))
                except _RowRejected as exc:
                    errors.append(
                        RowError(
                            message=str(exc),
                            row=row.to_payload(request.identifier_field),
                        )
                    )
        log.debug(
            "Applied %s row(s) to %s: %s outcome(s), %s error(s)",
            len(request.rows),
            request.target,
            len(outcomes),
            len(errors),
        )
        return StoreResponse(outcomes=tuple(outcomes), errors=tuple(errors))

    def _apply(
        self,
        conn: Connection,
        request: BatchRequest,
        row: BatchRow,
        now: datetime,
    ) -> RemoteOutcome:
        intent = request.intent
        if intent is OperationIntent.DELETE:
            return self._delete(conn, request, row, now)
        if row.identifier is not None:
            if intent is OperationIntent.INSERT:
                raise _RowRejected("Insert rows must not carry an id")
            return self._update(conn, request, row, now)
        if intent is OperationIntent.UPDATE:
            raise _RowRejected("Update rows require an id")
        return self._insert(conn, request, row, now)

    def _insert(
        self,
        conn: Connection,
        request: BatchRequest,
        row: BatchRow,
        now: datetime,
    ) -> RemoteOutcome:
        existing = self._find_duplicate(conn, request, row)
        if existing is not None:
            return RemoteOutcome(
                id=existing[IDENTIFIER_FIELD],
                operation=OutcomeLabel.DUPLICATE,
                version=existing["version"],
            )
        result = conn.execute(
            insert(records_table).values(
                table_name=request.target,
                version=1,
                is_active=True,
                tenant_id=_tenant(row.fields, self.sync.tenant_field),
                created_by=request.caller_id,
                created_on=now,
                valid_from=now,
                attributes=self._attributes(row.fields),
            )
        )
        primary_key = result.inserted_primary_key
        if not primary_key:
            raise TransportError("Store error: insert returned no id")
        return RemoteOutcome(id=primary_key[0], operation=OutcomeLabel.INSERT, version=1)

    def _update(
        self,
        conn: Connection,
        request: BatchRequest,
        row: BatchRow,
        now: datetime,
    ) -> RemoteOutcome:
        current = self._active_record(conn, request.target, row.identifier)
        tenant = _tenant(row.fields, self.sync.tenant_field)
        conn.execute(
            update(records_table)
            .where(records_table.c.id == current["id"])
            .values(is_active=False, valid_to=now, updated_by=request.caller_id, updated_on=now)
        )
        version = current["version"] + 1
        result = conn.execute(
            insert(records_table).values(
                table_name=request.target,
                version=version,
                is_active=True,
                tenant_id=current["tenant_id"] if tenant is None else tenant,
                created_by=current["created_by"],
                created_on=current["created_on"],
                updated_by=request.caller_id,
                updated_on=now,
                valid_from=now,
                attributes=self._attributes(row.fields),
            )
        )
        primary_key = result.inserted_primary_key
        if not primary_key:
            raise TransportError("Store error: update returned no id")
        return RemoteOutcome(id=primary_key[0], operation=OutcomeLabel.UPDATE, version=version)

    def _delete(
        self,
        conn: Connection,
        request: BatchRequest,
        row: BatchRow,
        now: datetime,
    ) -> RemoteOutcome:
        if row.identifier is None:
            raise _RowRejected("Delete rows require an id")
        current = self._active_record(conn, request.target, row.identifier)
        conn.execute(
            update(records_table)
            .where(records_table.c.id == current["id"])
            .values(is_active=False, valid_to=now, updated_by=request.caller_id, updated_on=now)
        )
        return RemoteOutcome(
            id=current["id"],
            operation=OutcomeLabel.DELETE,
            version=current["version"],
        )

    def _active_record(self, conn: Connection, target: str, identifier: int | None) -> RowMapping:
        stmt = (
            select(records_table)
            .where(records_table.c.table_name == target)
            .where(records_table.c.id == identifier)
        )
        current = conn.execute(stmt).mappings().one_or_none()
        if current is None:
            raise _RowRejected(f"Record {identifier} not found")
        if not current["is_active"]:
            raise _RowRejected(f"Record {identifier} is no longer active")
        return current

    def _find_duplicate(
        self,
        conn: Connection,
        request: BatchRequest,
        row: BatchRow,
    ) -> RowMapping | None:
        keys = request.unique_key_fields
        if not keys or any(is_blank(row.fields.get(key)) for key in keys):
            return None
        stmt = (
            select(records_table)
            .where(records_table.c.table_name == request.target)
            .where(records_table.c.is_active.is_(True))
            .order_by(records_table.c.id)
        )
        for candidate in conn.execute(stmt).mappings():
            values = _flat_values(candidate)
            if all(same_cell(values.get(key), row.fields.get(key)) for key in keys):
                return candidate
        return None

    def _attributes(self, fields: Mapping[str, CellValue]) -> dict[str, CellValue]:
        system = set(self.sync.system_columns)
        return {name: value for name, value in fields.items() if name not in system}


def create_local_store(*, database_uri: str | None = None) -> SqlAlchemyRecordStore:
    """Open (and create if needed) the local store at ``database_uri``."""

    uri = database_uri or local_store_uri()
    log.info("Opening local record store at %s", uri)
    return SqlAlchemyRecordStore(engine=create_engine(uri, future=True))


def _tenant(fields: Mapping[str, CellValue], name: str) -> int | None:
    value = fields.get(name)
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise _RowRejected(f"Invalid {name}: {value!r}") from exc


def _to_record(row: RowMapping) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for name in RECORD_COLUMNS:
        value = row[name]
        record[name] = value.isoformat() if isinstance(value, datetime) else value
    record["attributes"] = dict(row["attributes"] or {})
    return record


def _flat_values(row: RowMapping) -> dict[str, Any]:
    values: dict[str, Any] = {name: row[name] for name in RECORD_COLUMNS}
    values.update(row["attributes"] or {})
    return values


if TYPE_CHECKING:
    _store_check: RecordStore = SqlAlchemyRecordStore(engine=create_engine("sqlite://"))

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, select

from gridsync.adapters.sqlalchemy import (
    SqlAlchemyRecordStore,
    create_local_store,
    records_table,
)
from gridsync.config.sync import SyncConfig
from gridsync.domain.errors import TransportError
from gridsync.domain.reconciliation.contracts import (
    BatchRequest,
    BatchRow,
    OperationIntent,
    OutcomeLabel,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from gridsync.domain.types import CellValue


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqlAlchemyRecordStore]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'records.db'}", future=True)
    local = SqlAlchemyRecordStore(engine=engine, clock=_Clock())
    local.add_table("cargo_type", table_type="master", unique_keys=("code",))
    try:
        yield local
    finally:
        engine.dispose()


def _request(
    intent: OperationIntent,
    *rows: tuple[int | None, dict[str, CellValue]],
) -> BatchRequest:
    return BatchRequest(
        target="cargo_type",
        intent=intent,
        caller_id="user-1",
        unique_key_fields=("code",),
        rows=tuple(BatchRow(fields=fields, identifier=identifier) for identifier, fields in rows),
    )


def _insert(store: SqlAlchemyRecordStore, code: str, name: str = "") -> int:
    response = store.bulk(
        _request(OperationIntent.UPSERT, (None, {"code": code, "name": name, "tenant_id": 7}))
    )
    return response.outcomes[0].id


def test_insert_starts_at_version_one(store: SqlAlchemyRecordStore) -> None:
    response = store.bulk(
        _request(
            OperationIntent.UPSERT,
            (None, {"code": "A", "name": "Alpha", "tenant_id": 7}),
            (None, {"code": "B", "name": "Beta", "tenant_id": 7}),
        )
    )

    assert [(o.operation, o.version) for o in response.outcomes] == [
        (OutcomeLabel.INSERT, 1),
        (OutcomeLabel.INSERT, 1),
    ]
    records = store.fetch_records("cargo_type")
    assert [record["attributes"] for record in records] == [
        {"code": "A", "name": "Alpha"},
        {"code": "B", "name": "Beta"},
    ]
    assert records[0]["tenant_id"] == 7
    assert records[0]["created_by"] == "user-1"
    assert records[0]["is_active"] is True


def test_update_retires_the_old_version(store: SqlAlchemyRecordStore) -> None:
    first = _insert(store, "A", "Alpha")

    response = store.bulk(
        _request(OperationIntent.UPSERT, (first, {"code": "A", "name": "Alpha 2", "tenant_id": 7}))
    )

    (outcome,) = response.outcomes
    assert outcome.operation is OutcomeLabel.UPDATE
    assert outcome.id != first
    assert outcome.version == 2
    (record,) = store.fetch_records("cargo_type")
    assert record["id"] == outcome.id
    assert record["attributes"] == {"code": "A", "name": "Alpha 2"}
    assert record["updated_by"] == "user-1"
    with store.engine.connect() as conn:
        query = select(records_table).where(records_table.c.id == first)
        old = conn.execute(query).mappings().one()
    assert old["is_active"] is False
    assert old["valid_to"] is not None


def test_id_less_row_matching_unique_keys_is_a_duplicate(store: SqlAlchemyRecordStore) -> None:
    existing = _insert(store, "A")

    response = store.bulk(
        _request(
            OperationIntent.UPSERT,
            (None, {"code": " A ", "name": "again", "tenant_id": 7}),
            (None, {"code": "B", "tenant_id": 7}),
            (None, {"code": "B", "tenant_id": 7}),
        )
    )

    assert [(o.operation, o.id) for o in response.outcomes][0] == (OutcomeLabel.DUPLICATE, existing)
    assert [o.operation for o in response.outcomes][1:] == [
        OutcomeLabel.INSERT,
        OutcomeLabel.DUPLICATE,
    ]
    assert len(store.fetch_records("cargo_type")) == 2


def test_unknown_or_retired_ids_become_row_errors(store: SqlAlchemyRecordStore) -> None:
    first = _insert(store, "A")
    store.bulk(_request(OperationIntent.UPSERT, (first, {"code": "A", "tenant_id": 7})))

    response = store.bulk(
        _request(
            OperationIntent.UPSERT,
            (first, {"code": "A", "tenant_id": 7}),
            (999, {"code": "Z", "tenant_id": 7}),
            (None, {"code": "C", "tenant_id": 7}),
        )
    )

    assert [o.operation for o in response.outcomes] == [OutcomeLabel.INSERT]
    assert [error.message for error in response.errors] == [
        f"Record {first} is no longer active",
        "Record 999 not found",
    ]
    assert response.errors[1].row == {"id": 999, "code": "Z", "tenant_id": 7}


def test_delete_soft_deletes(store: SqlAlchemyRecordStore) -> None:
    first = _insert(store, "A")
    second = _insert(store, "B")

    response = store.bulk(_request(OperationIntent.DELETE, (first, {"tenant_id": 7})))

    assert [(o.operation, o.id) for o in response.outcomes] == [(OutcomeLabel.DELETE, first)]
    assert [record["id"] for record in store.fetch_records("cargo_type")] == [second]
    again = store.bulk(_request(OperationIntent.DELETE, (first, {"tenant_id": 7})))
    assert again.outcomes == ()
    assert again.errors[0].message == f"Record {first} is no longer active"


def test_records_are_scoped_to_their_table(store: SqlAlchemyRecordStore) -> None:
    store.add_table("port_code", table_type="master", unique_keys=("code",))
    _insert(store, "A")

    assert store.fetch_records("port_code") == []


def test_tenant_is_read_from_the_configured_field(tmp_path: Path) -> None:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'orgs.db'}", future=True)
    local = SqlAlchemyRecordStore(
        engine=engine,
        sync=SyncConfig(tenant_field="org_id", system_columns=("id", "version", "org_id")),
        clock=_Clock(),
    )
    local.add_table("cargo_type", table_type="master", unique_keys=("code",))

    response = local.bulk(
        _request(
            OperationIntent.UPSERT,
            (None, {"code": "A", "org_id": 9, "tenant_id": 7}),
            (None, {"code": "B", "org_id": "north"}),
        )
    )
    records = local.fetch_records("cargo_type")
    engine.dispose()

    assert [record["tenant_id"] for record in records] == [9]
    assert records[0]["attributes"] == {"code": "A", "tenant_id": 7}
    assert [error.message for error in response.errors] == ["Invalid org_id: 'north'"]


def test_unsupported_read_operation(store: SqlAlchemyRecordStore) -> None:
    with pytest.raises(TransportError, match="unsupported operation"):
        store.fetch_records("cargo_type", operation="history")


def test_list_tables_orders_by_type(store: SqlAlchemyRecordStore) -> None:
    store.add_table("vessel_call", table_type="analytics")
    store.add_table("port_code", table_type="master", unique_keys=("code", "country"))

    tables = store.list_tables()

    assert [table.table_name for table in tables] == ["vessel_call", "cargo_type", "port_code"]
    assert tables[2].unique_keys == ("code", "country")


def test_create_local_store_uses_the_configured_uri(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    database = tmp_path / "configured.db"
    monkeypatch.setenv("GRIDSYNC_DATABASE_URI", f"sqlite+pysqlite:///{database}")

    local = create_local_store()
    local.add_table("cargo_type", table_type="master", unique_keys=("code",))
    local.engine.dispose()

    assert database.exists()

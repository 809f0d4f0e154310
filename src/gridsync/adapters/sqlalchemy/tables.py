"""SQLAlchemy table metadata for the local versioned record store.

Every target table shares one physical ``records`` table: the system columns are
real columns and the user-editable columns live in a JSON ``attributes`` document.
Each edit of a record appends a new version row; only one version per lineage is
active at a time.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData()

records_table = Table(
    "records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(128), nullable=False),
    Column("version", Integer, nullable=False, default=1),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("tenant_id", Integer, nullable=True),
    Column("created_by", String(255), nullable=True),
    Column("created_on", UTCDateTime(), nullable=False),
    Column("updated_by", String(255), nullable=True),
    Column("updated_on", UTCDateTime(), nullable=True),
    Column("valid_from", UTCDateTime(), nullable=False),
    Column("valid_to", UTCDateTime(), nullable=True),
    Column("attributes", JSON, nullable=False, default=dict),
    Index("ix_records_table_active", "table_name", "is_active"),
)

table_catalog_table = Table(
    "table_catalog",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(128), nullable=False, unique=True),
    Column("table_type", String(128), nullable=False),
    Column("unique_keys", JSON, nullable=False, default=list),
)

RECORD_COLUMNS: tuple[str, ...] = tuple(
    column.name
    for column in records_table.columns
    if column.name not in {"table_name", "attributes"}
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)

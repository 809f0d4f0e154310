"""Data model shared by the reconciliation stages.

Everything here lives for exactly one reconciliation pass: rows are read from the
grid, classified, sent, matched back to their positions and then discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gridsync.domain.types import CellValue, JsonRecord


class RowOperation(StrEnum):
    """Classifier verdict for one grid row."""

    INSERT = "insert"
    UPDATE = "update"
    REJECT = "reject"


class OperationIntent(StrEnum):
    """What the user asked the store to do with the whole batch."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UPSERT = "upsert"


class OutcomeLabel(StrEnum):
    """Label the store attaches to each record of its flat result list."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DUPLICATE = "duplicate"


type IssueKind = Literal["invalid_identifier", "missing_fields"]


@dataclass(frozen=True, slots=True)
class GridRow:
    """One selected grid row. ``position`` is the sheet row index (header is 0)."""

    position: int
    fields: Mapping[str, CellValue]

    @property
    def display_row(self) -> int:
        return self.position + 1


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationIssue:
    kind: IssueKind
    position: int
    message: str
    fields: tuple[str, ...] = ()

    @property
    def display_row(self) -> int:
        return self.position + 1


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassifiedRow:
    row: GridRow
    operation: RowOperation
    identifier: int | None = None
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def position(self) -> int:
        return self.row.position

    @property
    def fields(self) -> Mapping[str, CellValue]:
        return self.row.fields

    @property
    def is_rejected(self) -> bool:
        return self.operation is RowOperation.REJECT

    @property
    def reason(self) -> str | None:
        if not self.issues:
            return None
        return "; ".join(issue.message for issue in self.issues)


@dataclass(frozen=True, slots=True)
class BatchRow:
    fields: Mapping[str, CellValue]
    identifier: int | None = None

    def to_payload(self, identifier_field: str = "id") -> dict[str, CellValue]:
        payload: dict[str, CellValue] = {}
        if self.identifier is not None:
            payload[identifier_field] = self.identifier
        payload.update(self.fields)
        return payload


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchRequest:
    """Ordered bulk request. Row order is the only handle for matching results."""

    target: str
    intent: OperationIntent
    caller_id: str
    unique_key_fields: tuple[str, ...]
    rows: tuple[BatchRow, ...]
    identifier_field: str = "id"

    def __len__(self) -> int:
        return len(self.rows)

    def to_payload(self) -> dict[str, object]:
        return {
            "table_name": self.target,
            "operation": self.intent.value,
            "userid": self.caller_id,
            "unique_keys": list(self.unique_key_fields),
            "rows": [row.to_payload(self.identifier_field) for row in self.rows],
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteOutcome:
    """Atomic store result. Nothing in it points back at the row it came from."""

    id: int
    operation: OutcomeLabel
    version: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RowError:
    """Store-side failure for one request row. ``position`` is None when unmatched."""

    message: str
    position: int | None = None
    row: JsonRecord | None = None

    def describe(self) -> str:
        where = f"Row {self.position + 1}" if self.position is not None else "Row ?"
        return f"{where}: {self.message}"


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreResponse:
    """Parsed store answer: flat outcomes plus any per-row errors."""

    outcomes: tuple[RemoteOutcome, ...] = ()
    errors: tuple[RowError, ...] = ()


@dataclass(slots=True)
class ReconciliationResult:
    """Aggregated counts and per-label outcome records for one pass."""

    total: int = 0
    inserted_records: list[RemoteOutcome] = field(default_factory=list["RemoteOutcome"])
    updated_records: list[RemoteOutcome] = field(default_factory=list["RemoteOutcome"])
    deleted_records: list[RemoteOutcome] = field(default_factory=list["RemoteOutcome"])
    duplicated_records: list[RemoteOutcome] = field(default_factory=list["RemoteOutcome"])
    errors: list[RowError] = field(default_factory=list["RowError"])

    @property
    def inserted(self) -> int:
        return len(self.inserted_records)

    @property
    def updated(self) -> int:
        return len(self.updated_records)

    @property
    def deleted(self) -> int:
        return len(self.deleted_records)

    @property
    def duplicated(self) -> int:
        return len(self.duplicated_records)

    @property
    def succeeded(self) -> int:
        return self.inserted + self.updated + self.deleted

    @property
    def accounted(self) -> int:
        return self.succeeded + self.duplicated + len(self.errors)


@dataclass(frozen=True, slots=True, kw_only=True)
class RowBinding:
    """What the grid writer has to put back into one row."""

    position: int
    label: OutcomeLabel
    identifier: int | None = None
    version: int | None = None

    def cell_updates(
        self,
        *,
        identifier_field: str = "id",
        version_field: str = "version",
    ) -> dict[str, CellValue]:
        if self.label is OutcomeLabel.DELETE or self.identifier is None:
            return {}
        updates: dict[str, CellValue] = {identifier_field: self.identifier}
        if self.version is not None:
            updates[version_field] = self.version
        return updates


@dataclass(frozen=True, slots=True, kw_only=True)
class Summary:
    title: Literal["Success", "Warning", "Partial Success"]
    message: str

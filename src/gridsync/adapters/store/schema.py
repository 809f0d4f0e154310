"""Pydantic models describing the store's bulk edge function payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gridsync.domain.catalog import TableDescriptor
from gridsync.domain.reconciliation.contracts import OutcomeLabel, RemoteOutcome, RowError

if TYPE_CHECKING:
    from gridsync.domain.reconciliation.contracts import BatchRequest

OutcomeOperation = Literal["insert", "update", "delete", "duplicate"]


def _normalize_label(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class StoreBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BulkPayload(StoreBaseModel):
    table_name: str
    operation: Literal["insert", "update", "delete", "upsert"]
    userid: str
    unique_keys: list[str]
    rows: list[dict[str, Any]]

    @classmethod
    def from_request(cls, request: BatchRequest) -> BulkPayload:
        return cls.model_validate(request.to_payload())


class OutcomePayload(StoreBaseModel):
    id: int | None = None
    new_id: int | None = Field(default=None, alias="newId")
    old_id: int | None = Field(default=None, alias="oldId")
    version: int | None = None
    operation: OutcomeOperation

    _normalize_operation = field_validator("operation", mode="before")(_normalize_label)

    @model_validator(mode="after")
    def _require_identifier(self) -> OutcomePayload:
        if self.id is None and self.new_id is None:
            raise ValueError("outcome carries no identifier")
        return self

    def to_outcome(self) -> RemoteOutcome:
        """Prefer ``newId``: after a versioned update the old identifier is dead."""

        identifier = self.new_id if self.new_id is not None else self.id
        label = OutcomeLabel(self.operation)
        version = self.version
        if version is None and label in {OutcomeLabel.INSERT, OutcomeLabel.DUPLICATE}:
            version = 1
        return RemoteOutcome(id=cast("int", identifier), operation=label, version=version)


class RowErrorPayload(StoreBaseModel):
    error: str
    row: dict[str, Any] | None = None
    unique_keys: list[str] | None = None

    def to_row_error(self) -> RowError:
        return RowError(message=self.error, row=self.row)


class BulkResponse(StoreBaseModel):
    data: list[OutcomePayload] = Field(default_factory=list)
    errors: list[RowErrorPayload] = Field(default_factory=list)
    error: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _split_mixed_errors(cls, value: object) -> object:
        """Per-row errors may also arrive inside ``data``; move them to ``errors``."""

        if not isinstance(value, Mapping):
            return value
        payload = dict(cast("Mapping[str, object]", value))
        data = payload.get("data")
        if data is None:
            payload["data"] = []
            return payload
        if not isinstance(data, list):
            return payload
        outcomes: list[object] = []
        errors = list(cast("list[object]", payload.get("errors") or []))
        for item in cast("list[object]", data):
            if isinstance(item, Mapping) and "error" in item and "operation" not in item:
                errors.append(item)
            else:
                outcomes.append(item)
        payload["data"] = outcomes
        payload["errors"] = errors
        return payload


class TableRecordsResponse(StoreBaseModel):
    data: list[dict[str, Any]]


class TableCatalogEntry(StoreBaseModel):
    id: int | None = None
    table_name: str
    table_type: str
    unique_keys: list[str] = Field(default_factory=list)

    @field_validator("unique_keys", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    def to_descriptor(self) -> TableDescriptor:
        return TableDescriptor(
            id=self.id,
            table_name=self.table_name,
            table_type=self.table_type,
            unique_keys=tuple(self.unique_keys),
        )

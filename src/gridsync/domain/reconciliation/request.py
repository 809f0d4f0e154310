"""Assemble classified rows into the single bulk request sent to the store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .contracts import BatchRequest, BatchRow, OperationIntent

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .contracts import ClassifiedRow


class RejectedRowInBatchError(ValueError):
    """Raised when a rejected row is handed to the request builder."""


def build_request(
    rows: Sequence[ClassifiedRow],
    *,
    target: str,
    intent: OperationIntent,
    caller_id: str,
    unique_keys: Sequence[str],
    identifier_field: str = "id",
) -> BatchRequest:
    """Build the bulk request, preserving ``rows`` order exactly."""

    batch_rows: list[BatchRow] = []
    for row in rows:
        if row.is_rejected:
            raise RejectedRowInBatchError(f"Row {row.row.display_row} was rejected: {row.reason}")
        fields = {key: value for key, value in row.fields.items() if key != identifier_field}
        batch_rows.append(BatchRow(fields=fields, identifier=row.identifier))

    return BatchRequest(
        target=target,
        intent=OperationIntent(intent),
        caller_id=caller_id,
        unique_key_fields=tuple(unique_keys),
        rows=tuple(batch_rows),
        identifier_field=identifier_field,
    )

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gridsync.adapters.store.schema import BulkResponse, OutcomePayload, TableCatalogEntry
from gridsync.domain.reconciliation.contracts import OutcomeLabel


def test_outcome_labels_are_normalised() -> None:
    outcome = OutcomePayload.model_validate({"id": 4, "operation": " Insert "}).to_outcome()

    assert outcome.operation is OutcomeLabel.INSERT
    assert outcome.version == 1


def test_update_outcome_prefers_new_id() -> None:
    payload = {"oldId": 55, "newId": 56, "version": 3, "operation": "update"}

    outcome = OutcomePayload.model_validate(payload).to_outcome()

    assert (outcome.id, outcome.version) == (56, 3)


def test_update_without_version_keeps_it_unknown() -> None:
    outcome = OutcomePayload.model_validate({"newId": 56, "operation": "update"}).to_outcome()

    assert outcome.version is None


def test_outcome_without_identifier_is_rejected() -> None:
    with pytest.raises(ValidationError):
        OutcomePayload.model_validate({"operation": "insert"})


def test_unknown_label_is_rejected() -> None:
    with pytest.raises(ValidationError):
        OutcomePayload.model_validate({"id": 1, "operation": "merge"})


def test_row_errors_mixed_into_data_are_split_out() -> None:
    response = BulkResponse.model_validate(
        {
            "data": [
                {"id": 1, "operation": "insert"},
                {"error": "duplicate key", "row": {"code": "A"}},
            ],
            "errors": [{"error": "too long", "row": {"code": "B"}, "unique_keys": ["code"]}],
        }
    )

    assert [item.id for item in response.data] == [1]
    assert [error.to_row_error().message for error in response.errors] == [
        "too long",
        "duplicate key",
    ]
    assert response.errors[1].to_row_error().row == {"code": "A"}


def test_error_only_response() -> None:
    response = BulkResponse.model_validate({"error": "permission denied"})

    assert response.error == "permission denied"
    assert response.data == []


def test_catalog_entry_tolerates_null_unique_keys() -> None:
    entry = TableCatalogEntry.model_validate(
        {"id": 3, "table_name": "port_code", "table_type": "master", "unique_keys": None}
    )

    descriptor = entry.to_descriptor()
    assert descriptor.unique_keys == ()
    assert descriptor.display_name == "Port Code"

from __future__ import annotations

import math

import pytest

from gridsync.domain.errors import (
    NoRowsSelectedError,
    UniqueKeysNotConfiguredError,
    ValidationError,
)
from gridsync.domain.reconciliation.classify import (
    InvalidIdentifierError,
    classify_deletions,
    classify_row,
    classify_rows,
    coerce_identifier,
    required_fields,
)
from gridsync.domain.reconciliation.contracts import RowOperation
from tests.support.fakes import grid_row


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, None), ("", None), ("  ", None), (101, 101), (101.0, 101), (" 42 ", 42), ("7.0", 7)],
)
def test_coerce_identifier_accepts_numeric_cells(value: object, expected: int | None) -> None:
    assert coerce_identifier(value) == expected  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "value",
    ["abc", "12a", 1.5, "2.25", True, math.nan, math.inf, "1_000", "١٢", " ７ "],
)
def test_coerce_identifier_rejects_non_numeric_cells(value: object) -> None:
    with pytest.raises(InvalidIdentifierError):
        coerce_identifier(value)  # type: ignore[arg-type]


def test_required_fields_put_system_fields_first_without_repeats() -> None:
    assert required_fields(("code", "tenant_id", "name"), ("tenant_id",)) == (
        "tenant_id",
        "code",
        "name",
    )


def test_row_without_identifier_is_an_insert() -> None:
    row = classify_row(grid_row(2, code="A", tenant_id=7), required=("tenant_id", "code"))

    assert row.operation is RowOperation.INSERT
    assert row.identifier is None


def test_row_with_numeric_identifier_is_an_update() -> None:
    row = classify_row(grid_row(2, id="101", code="A", tenant_id=7), required=("code",))

    assert row.operation is RowOperation.UPDATE
    assert row.identifier == 101


def test_row_collects_every_issue() -> None:
    row = classify_row(grid_row(4, id="x", tenant_id=7), required=("tenant_id", "code", "name"))

    assert row.operation is RowOperation.REJECT
    assert [issue.kind for issue in row.issues] == ["invalid_identifier", "missing_fields"]
    assert row.issues[1].fields == ("code", "name")


def test_classify_rows_requires_unique_keys() -> None:
    with pytest.raises(UniqueKeysNotConfiguredError, match="cargo_type"):
        classify_rows(
            [grid_row(1, code="A")],
            target="cargo_type",
            unique_keys=(),
            system_fields=("tenant_id",),
        )


def test_classify_rows_reports_all_invalid_rows_at_once() -> None:
    rows = [
        grid_row(1, code="A", tenant_id=7),
        grid_row(2, id="abc", code="B", tenant_id=7),
        grid_row(3, tenant_id=7),
        grid_row(4, id="1x", tenant_id=7),
    ]

    with pytest.raises(ValidationError) as excinfo:
        classify_rows(rows, target="t", unique_keys=("code",), system_fields=("tenant_id",))

    message = str(excinfo.value)
    assert "Invalid ID value in row(s): 3, 5. IDs must be numeric." in message
    assert "Missing required fields:\nRow 4: code\nRow 5: code" in message
    assert {issue.position for issue in excinfo.value.issues} == {2, 3, 4}


def test_classify_rows_returns_rows_in_input_order() -> None:
    rows = [
        grid_row(3, id=5, code="C", tenant_id=7),
        grid_row(1, code="A", tenant_id=7),
    ]

    classified = classify_rows(
        rows, target="t", unique_keys=("code",), system_fields=("tenant_id",)
    )

    assert [(row.position, row.operation) for row in classified] == [
        (3, RowOperation.UPDATE),
        (1, RowOperation.INSERT),
    ]


def test_classify_deletions_keeps_only_rows_with_identifiers() -> None:
    rows = [grid_row(1, code="A"), grid_row(2, id=12, code="B"), grid_row(3, id="13")]

    classified = classify_deletions(rows, target="t", unique_keys=("code",))

    assert [row.identifier for row in classified] == [12, 13]


def test_classify_deletions_without_identifiers_is_rejected() -> None:
    with pytest.raises(NoRowsSelectedError, match="Only rows with IDs can be deleted"):
        classify_deletions([grid_row(1, code="A")], target="t", unique_keys=("code",))


def test_classify_deletions_rejects_non_numeric_identifier() -> None:
    with pytest.raises(ValidationError, match="Invalid ID value in row"):
        classify_deletions([grid_row(1, id="abc")], target="t", unique_keys=("code",))

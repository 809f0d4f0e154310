"""Identity classification of normalized rows.

A row with a valid numeric identifier is an update candidate, a row without one is
an insert candidate, and anything else is rejected before it can reach the store.
Every row is classified before failing so the user sees all problems at once.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from gridsync.domain.errors import (
    NoRowsSelectedError,
    UniqueKeysNotConfiguredError,
    ValidationError,
)
from gridsync.domain.types import is_blank

from .contracts import ClassifiedRow, GridRow, RowOperation, ValidationIssue

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from gridsync.domain.types import CellValue

INVALID_IDENTIFIER_MESSAGE = "identifier must be numeric"


class InvalidIdentifierError(ValueError):
    """Raised by :func:`coerce_identifier` for non-numeric identifier cells."""


def coerce_identifier(value: CellValue) -> int | None:
    """Return the numeric identifier held by a cell, ``None`` when the cell is blank.

    Accepts ints, integral floats (spreadsheets hand back ``101.0``) and numeric
    strings with surrounding whitespace. Strings must be plain ASCII without digit
    separators, so ``1_000`` and non-Latin digits are rejected.
    """

    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise InvalidIdentifierError(repr(value))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _integral(value, value)
    if isinstance(value, str):
        text = value.strip()
        if not text.isascii() or "_" in text:
            raise InvalidIdentifierError(repr(value))
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError as exc:
            raise InvalidIdentifierError(repr(value)) from exc
        return _integral(number, value)
    raise InvalidIdentifierError(repr(value))


def _integral(number: float, original: CellValue) -> int:
    if not math.isfinite(number) or not number.is_integer():
        raise InvalidIdentifierError(repr(original))
    return int(number)


def required_fields(
    unique_keys: Sequence[str],
    system_fields: Iterable[str],
) -> tuple[str, ...]:
    """System fields first, then unique keys in declared order, without repeats."""

    return tuple(dict.fromkeys((*system_fields, *unique_keys)))


def classify_row(
    row: GridRow,
    *,
    required: Sequence[str],
    identifier_field: str = "id",
) -> ClassifiedRow:
    issues: list[ValidationIssue] = []

    identifier: int | None = None
    try:
        identifier = coerce_identifier(row.fields.get(identifier_field))
    except InvalidIdentifierError:
        issues.append(
            ValidationIssue(
                kind="invalid_identifier",
                position=row.position,
                message=f"Row {row.display_row}: {INVALID_IDENTIFIER_MESSAGE}",
                fields=(identifier_field,),
            )
        )

    missing = tuple(name for name in required if is_blank(row.fields.get(name)))
    if missing:
        issues.append(
            ValidationIssue(
                kind="missing_fields",
                position=row.position,
                message=f"Row {row.display_row}: missing required fields {', '.join(missing)}",
                fields=missing,
            )
        )

    if issues:
        return ClassifiedRow(row=row, operation=RowOperation.REJECT, issues=tuple(issues))
    operation = RowOperation.UPDATE if identifier is not None else RowOperation.INSERT
    return ClassifiedRow(row=row, operation=operation, identifier=identifier)


def classify_rows(
    rows: Sequence[GridRow],
    *,
    target: str,
    unique_keys: Sequence[str],
    system_fields: Iterable[str],
    identifier_field: str = "id",
) -> list[ClassifiedRow]:
    """Classify every row for an insert/update batch; raise once if any were rejected."""

    if not unique_keys:
        raise UniqueKeysNotConfiguredError(target)
    required = required_fields(unique_keys, system_fields)
    classified = [
        classify_row(row, required=required, identifier_field=identifier_field) for row in rows
    ]
    _raise_for_rejects(classified)
    return classified


def classify_deletions(
    rows: Sequence[GridRow],
    *,
    target: str,
    unique_keys: Sequence[str],
    identifier_field: str = "id",
) -> list[ClassifiedRow]:
    """Classify rows for deletion; only rows carrying an identifier are deletable."""

    if not unique_keys:
        raise UniqueKeysNotConfiguredError(target)
    deletable = [row for row in rows if not is_blank(row.fields.get(identifier_field))]
    if not deletable:
        raise NoRowsSelectedError(
            "No valid rows with IDs found. Only rows with IDs can be deleted."
        )
    classified = [
        classify_row(row, required=(), identifier_field=identifier_field) for row in deletable
    ]
    _raise_for_rejects(classified)
    return classified


def _raise_for_rejects(classified: Sequence[ClassifiedRow]) -> None:
    issues = [issue for row in classified for issue in row.issues]
    if issues:
        raise ValidationError(issues)

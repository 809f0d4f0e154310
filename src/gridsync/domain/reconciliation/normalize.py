"""Row normalization: raw grid selection -> canonical rows.

Responsibilities of this stage:
- reject an empty selection outright
- skip the header row and rows whose every cell is blank
- collapse repeated selections of the same sheet row
- drop blank cells and stamp system fields (tenant scope) onto every row
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from gridsync.domain.errors import NoRowsSelectedError
from gridsync.domain.types import is_blank

from .contracts import GridRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from gridsync.domain.types import CellValue

HEADER_POSITION = 0


def normalize_rows(
    rows: Iterable[GridRow],
    *,
    system_fields: Mapping[str, CellValue],
) -> list[GridRow]:
    """Return the selected data rows in traversal order with system fields injected."""

    selected = list(rows)
    if not selected:
        raise NoRowsSelectedError

    by_position: dict[int, GridRow] = {}
    for row in selected:
        if row.position == HEADER_POSITION:
            continue
        if all(is_blank(value) for value in row.fields.values()):
            continue
        # the first occurrence fixes the order, the last read wins
        by_position[row.position] = row

    if not by_position:
        raise NoRowsSelectedError("No valid data rows found (excluding headers).")

    return [normalize_row(row, system_fields=system_fields) for row in by_position.values()]


def normalize_row(row: GridRow, *, system_fields: Mapping[str, CellValue]) -> GridRow:
    fields: dict[str, CellValue] = {
        key: value
        for key, value in row.fields.items()
        if key not in system_fields and not is_blank(value)
    }
    fields.update(system_fields)
    return GridRow(position=row.position, fields=fields)

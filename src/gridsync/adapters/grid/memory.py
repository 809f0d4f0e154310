"""In-memory grid used by the CLI and the tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gridsync.domain.reconciliation.contracts import GridRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from gridsync.domain.ports.grid import Grid
    from gridsync.domain.protection import ColumnLayout
    from gridsync.domain.types import CellValue


class GridProtectedError(PermissionError):
    """Raised when a locked cell is written while the grid is protected."""


@dataclass(slots=True)
class InMemoryGrid:
    """A sheet as a list of rows; row 0 holds the headers.

    Selection is a list of areas, each an ordered range of row positions, matching
    how a spreadsheet reports a multi-area selection.
    """

    rows: list[list[CellValue]] = field(default_factory=list["list[CellValue]"])
    areas: list[range] = field(default_factory=list["range"])
    locked_columns: set[str] = field(default_factory=set["str"])
    shaded_columns: set[str] = field(default_factory=set["str"])
    protected: bool = False
    writes: int = 0

    @classmethod
    def from_rows(
        cls,
        headers: Sequence[str],
        rows: Iterable[Sequence[CellValue]] = (),
    ) -> InMemoryGrid:
        return cls(rows=[list(headers), *(list(row) for row in rows)])

    # Selection -----------------------------------------------------------

    def select(self, *areas: range | int) -> None:
        self.areas = [range(area, area + 1) if isinstance(area, int) else area for area in areas]

    def select_all(self) -> None:
        self.areas = [range(1, len(self.rows))] if len(self.rows) > 1 else []

    # Grid port -----------------------------------------------------------

    def headers(self) -> list[str]:
        return list(self._header_index())

    def selected_rows(self) -> list[GridRow]:
        index_of = self._header_index()
        selected: list[GridRow] = []
        for area in self.areas:
            for position in area:
                values = self.rows[position] if position < len(self.rows) else []
                fields = {
                    name: values[index] if index < len(values) else None
                    for name, index in index_of.items()
                }
                selected.append(GridRow(position=position, fields=fields))
        return selected

    def has_data(self) -> bool:
        return any(any(value not in (None, "") for value in row) for row in self.rows[1:])

    def write_row(self, position: int, values: Mapping[str, CellValue]) -> None:
        index_of = self._header_index()
        unknown = [name for name in values if name not in index_of]
        if unknown:
            raise KeyError(f"Unknown column(s): {', '.join(unknown)}")
        if self.protected and any(name in self.locked_columns for name in values):
            raise GridProtectedError(
                f"Row {position + 1} has locked cells and the grid is protected"
            )

        while len(self.rows) <= position:
            self.rows.append([])
        row = self.rows[position]
        width = len(self.rows[0])
        if len(row) < width:
            row.extend([None] * (width - len(row)))
        for name, value in values.items():
            row[index_of[name]] = value
        self.writes += 1

    def render(self, layout: ColumnLayout, rows: Sequence[Sequence[CellValue]]) -> None:
        if self.protected:
            raise GridProtectedError("Cannot clear a protected grid")
        self.rows = [list(layout.headers), *(list(row) for row in rows)]
        self.locked_columns = set(layout.locked_columns)
        self.shaded_columns = {column.name for column in layout.columns if column.shaded}
        self.areas = []

    def is_protected(self) -> bool:
        return self.protected

    def protect(self) -> None:
        self.protected = True

    def unprotect(self) -> None:
        self.protected = False

    # Helpers -------------------------------------------------------------

    def cell(self, position: int, column: str) -> CellValue:
        index = self._header_index()[column]
        row = self.rows[position]
        return row[index] if index < len(row) else None

    def column(self, name: str) -> list[CellValue]:
        return [self.cell(position, name) for position in range(1, len(self.rows))]

    def _header_index(self) -> dict[str, int]:
        if not self.rows:
            return {}
        return {
            str(name): index
            for index, name in enumerate(self.rows[0])
            if name not in (None, "")
        }


if TYPE_CHECKING:
    _grid_check: Grid = InMemoryGrid()

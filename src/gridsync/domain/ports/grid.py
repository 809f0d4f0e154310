"""Port for the editable grid (spreadsheet) the user works in."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from gridsync.domain.protection import ColumnLayout
    from gridsync.domain.reconciliation.contracts import GridRow
    from gridsync.domain.types import CellValue


@runtime_checkable
class Grid(Protocol):
    """Read/write contract of the grid collaborator.

    Row positions are sheet row indexes; position 0 holds the headers.
    """

    def headers(self) -> list[str]: ...

    def selected_rows(self) -> list[GridRow]:
        """Rows of the current selection in traversal order (areas, then rows)."""
        ...

    def has_data(self) -> bool:
        """Whether anything beyond the header row is populated."""
        ...

    def write_row(self, position: int, values: Mapping[str, CellValue]) -> None:
        """Apply one batched write of ``column -> value`` to the row at ``position``."""
        ...

    def render(self, layout: ColumnLayout, rows: Sequence[Sequence[CellValue]]) -> None:
        """Clear the grid and repopulate it with ``layout`` headers and ``rows``."""
        ...

    def is_protected(self) -> bool: ...

    def protect(self) -> None: ...

    def unprotect(self) -> None: ...


__all__ = ["Grid"]

"""Column protection policy.

System-managed columns are owned by the store (identity, versioning, audit) and are
always locked and shaded; every other column is user-editable. The layout is a pure
function of the source columns so it can be recomputed on every render and cached
column indexes stay valid for the whole render pass.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gridsync.config.sync import IDENTIFIER_FIELD, SyncConfig

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from .ports.grid import Grid
    from .types import CellValue

SYSTEM_COLUMNS: tuple[str, ...] = SyncConfig().system_columns


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    name: str
    index: int
    system: bool

    @property
    def locked(self) -> bool:
        return self.system

    @property
    def shaded(self) -> bool:
        return self.system


@dataclass(frozen=True, slots=True)
class ColumnLayout:
    columns: tuple[ColumnSpec, ...]

    @property
    def headers(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def locked_columns(self) -> list[str]:
        return [column.name for column in self.columns if column.locked]

    @property
    def editable_columns(self) -> list[str]:
        return [column.name for column in self.columns if not column.locked]

    def index_of(self, name: str) -> int:
        for column in self.columns:
            if column.name == name:
                return column.index
        raise KeyError(name)

    def row_values(self, record: Mapping[str, CellValue]) -> list[CellValue]:
        """Project a flat record onto the layout; missing or null cells become ``""``."""

        values: list[CellValue] = []
        for column in self.columns:
            value = record.get(column.name)
            values.append("" if value is None else value)
        return values


def order_columns(
    all_columns: Iterable[str],
    system_columns: Sequence[str] = SYSTEM_COLUMNS,
    *,
    identifier: str = IDENTIFIER_FIELD,
) -> ColumnLayout:
    """Identifier first, then user-editable columns in source order, then system columns.

    The full system column set is always laid out, so an empty table still gets the
    standard frame.
    """

    system = set(system_columns) | {identifier}
    editable = [name for name in dict.fromkeys(all_columns) if name not in system]
    trailing = [name for name in dict.fromkeys(system_columns) if name != identifier]
    ordered = [identifier, *editable, *trailing]
    return ColumnLayout(
        columns=tuple(
            ColumnSpec(name=name, index=index, system=name in system)
            for index, name in enumerate(ordered)
        )
    )


@contextmanager
def unprotected(grid: Grid, *, protect_after: bool | None = None) -> Iterator[Grid]:
    """Lift sheet protection for a mutation sequence and restore it on the way out.

    ``protect_after=None`` restores whatever state the grid was in; ``True`` always
    re-protects, which is what a fresh render wants.
    """

    was_protected = grid.is_protected()
    if was_protected:
        grid.unprotect()
    try:
        yield grid
    finally:
        if protect_after or (protect_after is None and was_protected):
            grid.protect()

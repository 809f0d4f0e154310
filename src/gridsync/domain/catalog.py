"""Table catalog: which targets exist, how they group, and their unique keys."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .types import snake_to_title

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True, kw_only=True)
class TableDescriptor:
    table_name: str
    table_type: str
    unique_keys: tuple[str, ...] = ()
    id: int | None = None

    @property
    def display_name(self) -> str:
        return snake_to_title(self.table_name)


class UnknownTableError(LookupError):
    """Raised when a table name is not present in the catalog."""


def group_by_type(tables: Iterable[TableDescriptor]) -> dict[str, list[TableDescriptor]]:
    grouped: dict[str, list[TableDescriptor]] = {}
    for table in tables:
        grouped.setdefault(table.table_type, []).append(table)
    return grouped


def find_table(tables: Iterable[TableDescriptor], name: str) -> TableDescriptor:
    for table in tables:
        if table.table_name == name:
            return table
    raise UnknownTableError(f"Unknown table: {name}")

"""CSV-file backed grid for the command line."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .memory import InMemoryGrid

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


@dataclass(slots=True)
class CsvGrid(InMemoryGrid):
    """An :class:`InMemoryGrid` loaded from and saved back to a CSV file.

    Cells are read as text; empty cells count as blank. Protection and shading have
    no representation in CSV and only live for the lifetime of the object.
    """

    path: Path | None = None

    @classmethod
    def load(cls, path: Path) -> CsvGrid:
        if not path.exists():
            log.debug("Grid file %s does not exist yet, starting empty", path)
            return cls(path=path)
        with path.open(newline="", encoding="utf-8") as handle:
            rows: list[list[str | None]] = [list(row) for row in csv.reader(handle)]
        log.debug("Loaded %s row(s) from %s", max(len(rows) - 1, 0), path)
        return cls(rows=list(rows), path=path)

    def save(self, path: Path | None = None) -> Path:
        target = path or self.path
        if target is None:
            raise ValueError("No path to save the grid to")
        target.parent.mkdir(parents=True, exist_ok=True)
        width = len(self.rows[0]) if self.rows else 0
        with target.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            for row in self.rows:
                cells = ["" if value is None else value for value in row]
                writer.writerow([*cells, *([""] * (width - len(cells)))])
        log.debug("Saved %s row(s) to %s", max(len(self.rows) - 1, 0), target)
        return target

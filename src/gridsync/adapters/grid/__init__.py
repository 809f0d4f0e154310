"""Grid adapters."""

from __future__ import annotations

from .csv_file import CsvGrid
from .memory import GridProtectedError, InMemoryGrid

__all__ = ["CsvGrid", "GridProtectedError", "InMemoryGrid"]

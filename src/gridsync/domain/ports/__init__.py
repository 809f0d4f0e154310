"""Domain port definitions for adapters."""

from __future__ import annotations

from .grid import Grid
from .store import RecordStore

__all__ = ["Grid", "RecordStore"]

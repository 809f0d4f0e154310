"""Batch reconciliation between grid selections and the versioned record store.

Flow of one pass:
1) normalize the selected grid rows (drop blanks, stamp system fields)
2) classify each row as insert, update or reject
3) build one ordered bulk request
4) send it to the store
5) demultiplex the flat outcome list back onto row positions
6) write new identifiers and versions back into the grid
"""

from __future__ import annotations

from .contracts import (
    BatchRequest,
    BatchRow,
    ClassifiedRow,
    GridRow,
    OperationIntent,
    OutcomeLabel,
    ReconciliationResult,
    RemoteOutcome,
    RowBinding,
    RowError,
    RowOperation,
    StoreResponse,
    Summary,
    ValidationIssue,
)
from .demux import DemuxResult, demultiplex
from .engine import PassReport, ReconciliationEngine
from .state import PassState

__all__ = [
    "BatchRequest",
    "BatchRow",
    "ClassifiedRow",
    "DemuxResult",
    "GridRow",
    "OperationIntent",
    "OutcomeLabel",
    "PassReport",
    "PassState",
    "ReconciliationEngine",
    "ReconciliationResult",
    "RemoteOutcome",
    "RowBinding",
    "RowError",
    "RowOperation",
    "StoreResponse",
    "Summary",
    "ValidationIssue",
    "demultiplex",
]

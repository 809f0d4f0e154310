"""Orchestrator for one reconciliation pass.

The engine composes the pure stages (normalize, classify, build, demultiplex,
summarize) around the two collaborators that can suspend: the record store and
the grid. Both are called sequentially; write-back mutates grid cells and must not
interleave with another pass, so the engine refuses to start a second pass while
one is in flight.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from gridsync.config.sync import SyncConfig
from gridsync.domain.errors import GridSyncError, PartialFailure, ReconciliationInProgressError
from gridsync.domain.protection import unprotected

from .classify import classify_deletions, classify_rows
from .contracts import OperationIntent
from .demux import DemuxResult, attribute_errors, demultiplex
from .normalize import normalize_rows
from .request import build_request
from .state import PassState, PassTracker
from .summary import summarize

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gridsync.domain.catalog import TableDescriptor
    from gridsync.domain.ports.grid import Grid
    from gridsync.domain.ports.store import RecordStore
    from gridsync.domain.types import CellValue

    from .contracts import BatchRequest, ClassifiedRow, ReconciliationResult, RowError, Summary

log = getLogger(__name__)


@dataclass(slots=True)
class PassReport:
    """Everything one finished pass produced."""

    intent: OperationIntent
    request: BatchRequest
    demuxed: DemuxResult
    summary: Summary
    history: list[PassState]

    @property
    def result(self) -> ReconciliationResult:
        return self.demuxed.result

    @property
    def errors(self) -> list[RowError]:
        return self.demuxed.result.errors

    def raise_for_errors(self) -> None:
        """Raise :class:`PartialFailure` if the store rejected any row."""

        if self.errors:
            raise PartialFailure(self.result)


@dataclass(slots=True)
class ReconciliationEngine:
    """Run classify -> submit -> demultiplex -> write back for grid selections."""

    store: RecordStore
    caller_id: str
    system_fields: Mapping[str, CellValue]
    sync: SyncConfig = field(default_factory=SyncConfig)
    last_pass: PassTracker | None = field(default=None, init=False)
    _active: bool = field(default=False, init=False)

    def send(self, grid: Grid, table: TableDescriptor) -> PassReport:
        """Upsert the selected rows of ``grid`` into ``table``."""

        return self._run(grid, table, OperationIntent.UPSERT)

    def delete(self, grid: Grid, table: TableDescriptor) -> PassReport:
        """Soft-delete the selected rows of ``grid`` that carry an identifier."""

        return self._run(grid, table, OperationIntent.DELETE)

    def _run(self, grid: Grid, table: TableDescriptor, intent: OperationIntent) -> PassReport:
        if self._active:
            raise ReconciliationInProgressError("A reconciliation pass is already running.")
        self._active = True
        tracker = self.last_pass = PassTracker()
        try:
            return self._run_pass(grid, table, intent, tracker)
        finally:
            if tracker.state is PassState.FAILED:
                tracker.reset()
            self._active = False

    def _run_pass(
        self,
        grid: Grid,
        table: TableDescriptor,
        intent: OperationIntent,
        tracker: PassTracker,
    ) -> PassReport:
        log.info("Starting %s pass for table %s", intent.value, table.table_name)

        tracker.advance(PassState.VALIDATING)
        try:
            classified = self._classify(grid, table, intent)
            request = build_request(
                classified,
                target=table.table_name,
                intent=intent,
                caller_id=self.caller_id,
                unique_keys=table.unique_keys,
                identifier_field=self.sync.identifier_field,
            )
        except GridSyncError:
            tracker.fail()
            raise

        tracker.advance(PassState.AWAITING_STORE_RESPONSE)
        try:
            response = self.store.bulk(request)
        except GridSyncError as exc:
            log.error("Store call failed for %s: %s", table.table_name, exc)
            tracker.fail()
            raise

        tracker.advance(PassState.DEMULTIPLEXING)
        errors = attribute_errors(
            classified,
            response.errors,
            unique_keys=table.unique_keys,
            identifier_field=self.sync.identifier_field,
        )
        for error in errors:
            log.error("Store rejected %s", error.describe())
        demuxed = demultiplex(
            classified,
            replace(response, errors=tuple(errors)),
            intent=intent,
        )

        tracker.advance(PassState.WRITING_BACK)
        try:
            self._write_back(grid, demuxed)
        except Exception:
            tracker.fail()
            raise

        summary = summarize(demuxed, intent=intent)
        tracker.advance(PassState.IDLE)
        result = demuxed.result
        log.info(
            "Finished %s pass: inserted=%s, updated=%s, deleted=%s, duplicated=%s, "
            "failed=%s, total=%s",
            intent.value,
            result.inserted,
            result.updated,
            result.deleted,
            result.duplicated,
            len(result.errors),
            result.total,
        )
        return PassReport(
            intent=intent,
            request=request,
            demuxed=demuxed,
            summary=summary,
            history=list(tracker.history),
        )

    def _classify(
        self,
        grid: Grid,
        table: TableDescriptor,
        intent: OperationIntent,
    ) -> list[ClassifiedRow]:
        rows = normalize_rows(grid.selected_rows(), system_fields=self.system_fields)
        if intent is OperationIntent.DELETE:
            return classify_deletions(
                rows,
                target=table.table_name,
                unique_keys=table.unique_keys,
                identifier_field=self.sync.identifier_field,
            )
        return classify_rows(
            rows,
            target=table.table_name,
            unique_keys=table.unique_keys,
            system_fields=self.system_fields.keys(),
            identifier_field=self.sync.identifier_field,
        )

    def _write_back(self, grid: Grid, demuxed: DemuxResult) -> None:
        plan = demuxed.write_plan(identifier_field=self.sync.identifier_field)
        if not plan:
            return
        headers = set(grid.headers())
        with unprotected(grid):
            for position, updates in plan.items():
                cells = {column: value for column, value in updates.items() if column in headers}
                if cells:
                    grid.write_row(position, cells)

from __future__ import annotations

from gridsync.domain.errors import IntegrityViolation
from gridsync.domain.reconciliation.contracts import (
    OperationIntent,
    OutcomeLabel,
    ReconciliationResult,
    RemoteOutcome,
    RowError,
)
from gridsync.domain.reconciliation.demux import DemuxResult
from gridsync.domain.reconciliation.summary import summarize


def _outcomes(label: OutcomeLabel, count: int) -> list[RemoteOutcome]:
    return [RemoteOutcome(id=index + 1, operation=label) for index in range(count)]


def _demuxed(
    *,
    inserted: int = 0,
    updated: int = 0,
    deleted: int = 0,
    duplicated: int = 0,
    failed: int = 0,
    violations: list[IntegrityViolation] | None = None,
) -> DemuxResult:
    result = ReconciliationResult(
        total=inserted + updated + deleted + duplicated + failed,
        inserted_records=_outcomes(OutcomeLabel.INSERT, inserted),
        updated_records=_outcomes(OutcomeLabel.UPDATE, updated),
        deleted_records=_outcomes(OutcomeLabel.DELETE, deleted),
        duplicated_records=_outcomes(OutcomeLabel.DUPLICATE, duplicated),
        errors=[RowError(message="failed") for _ in range(failed)],
    )
    return DemuxResult(result=result, violations=violations or [])


def test_clean_upsert_is_a_success() -> None:
    summary = summarize(_demuxed(inserted=2, updated=1), intent=OperationIntent.UPSERT)

    assert summary.title == "Success"
    assert summary.message == "2 row(s) created. 1 row(s) updated"


def test_duplicates_turn_the_summary_into_a_warning() -> None:
    summary = summarize(_demuxed(updated=1, duplicated=1), intent=OperationIntent.UPSERT)

    assert summary.title == "Warning"
    assert summary.message == "1 duplicate record(s), insert skipped. 1 row(s) updated"


def test_failures_next_to_successes_are_a_partial_success() -> None:
    summary = summarize(_demuxed(inserted=1, failed=2), intent=OperationIntent.UPSERT)

    assert summary.title == "Partial Success"
    assert "2 row(s) failed" in summary.message


def test_only_failures_are_a_warning() -> None:
    summary = summarize(_demuxed(failed=1), intent=OperationIntent.UPSERT)

    assert summary.title == "Warning"


def test_nothing_happened() -> None:
    summary = summarize(_demuxed(), intent=OperationIntent.UPSERT)

    assert summary.title == "Warning"
    assert summary.message == "No changes detected, update skipped."


def test_violation_is_mentioned_with_its_queues() -> None:
    violation = IntegrityViolation("mismatch", queues=("insert",), expected=2, actual=1)

    summary = summarize(_demuxed(inserted=1, violations=[violation]), intent=OperationIntent.UPSERT)

    assert summary.title == "Warning"
    assert summary.message.endswith("write-back skipped for: insert")


def test_delete_summary() -> None:
    assert summarize(_demuxed(deleted=3), intent=OperationIntent.DELETE).message == (
        "3 row(s) successfully deleted."
    )
    empty = summarize(_demuxed(), intent=OperationIntent.DELETE)
    assert (empty.title, empty.message) == ("Warning", "No rows were deleted.")
    partial = summarize(_demuxed(deleted=1, failed=1), intent=OperationIntent.DELETE)
    assert partial.title == "Partial Success"

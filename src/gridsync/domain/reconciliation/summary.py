"""User-facing summary built from the aggregated counts of a pass."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .contracts import OperationIntent, Summary

if TYPE_CHECKING:
    from .demux import DemuxResult


def summarize(demuxed: DemuxResult, *, intent: OperationIntent) -> Summary:
    if intent is OperationIntent.DELETE:
        return _summarize_delete(demuxed)
    return _summarize_upsert(demuxed)


def _summarize_upsert(demuxed: DemuxResult) -> Summary:
    result = demuxed.result
    failed = len(result.errors)
    parts: list[str] = []
    if result.inserted:
        parts.append(f"{result.inserted} row(s) created")
    if result.duplicated:
        parts.append(f"{result.duplicated} duplicate record(s), insert skipped")
    if result.updated:
        parts.append(f"{result.updated} row(s) updated")
    if result.deleted:
        parts.append(f"{result.deleted} row(s) deleted")
    if failed:
        parts.append(f"{failed} row(s) failed")
    if demuxed.violations:
        parts.append(_skipped_note(demuxed))

    if not parts:
        return Summary(title="Warning", message="No changes detected, update skipped.")
    if failed and result.succeeded:
        title = "Partial Success"
    elif failed or result.duplicated or demuxed.violations:
        title = "Warning"
    else:
        title = "Success"
    return Summary(title=title, message=". ".join(parts))


def _summarize_delete(demuxed: DemuxResult) -> Summary:
    result = demuxed.result
    if result.deleted:
        message = f"{result.deleted} row(s) successfully deleted."
    else:
        message = "No rows were deleted."
    if demuxed.violations:
        message = f"{message} {_skipped_note(demuxed)}."
    if result.errors:
        title = "Partial Success" if result.deleted else "Warning"
    elif demuxed.violations or not result.deleted:
        title = "Warning"
    else:
        title = "Success"
    return Summary(title=title, message=message)


def _skipped_note(demuxed: DemuxResult) -> str:
    queues = ", ".join(sorted(demuxed.skipped_queues))
    return f"Store results did not line up with the sent rows, write-back skipped for: {queues}"

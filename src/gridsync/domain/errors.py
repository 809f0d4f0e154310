"""Error kinds raised by the reconciliation engine and its collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .reconciliation.contracts import ReconciliationResult, ValidationIssue


class GridSyncError(RuntimeError):
    """Base class for every error surfaced to the user."""


class NoRowsSelectedError(GridSyncError):
    """Raised when the selection holds no usable data rows."""

    def __init__(self, message: str = "Please select one or more rows first.") -> None:
        super().__init__(message)


class UniqueKeysNotConfiguredError(GridSyncError):
    """Raised when the target table declares no unique-key fields."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Unique keys are not configured for table {target!r}.")
        self.target = target


class ValidationError(GridSyncError):
    """Aggregated, row-addressed validation failures for one batch.

    Every invalid row of the batch is listed so the user can fix them all at once.
    """

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues = tuple(issues)
        super().__init__(format_validation_issues(self.issues))


class TransportError(GridSyncError):
    """Raised when the store is unreachable or answers with an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IntegrityViolation(GridSyncError):
    """Outcome queues do not line up with the rows that were sent.

    Positional correlation is only valid when the counts match exactly, so the
    affected queues must not be bound to rows.
    """

    def __init__(self, message: str, *, queues: Sequence[str], expected: int, actual: int) -> None:
        super().__init__(message)
        self.queues = tuple(queues)
        self.expected = expected
        self.actual = actual


class PartialFailure(GridSyncError):
    """Some rows were stored, others were rejected by the store."""

    def __init__(self, result: ReconciliationResult) -> None:
        details = "\n".join(error.describe() for error in result.errors)
        super().__init__(f"Some rows failed:\n{details}")
        self.result = result


class ReconciliationInProgressError(GridSyncError):
    """Raised when a second pass is started before the first one finished."""


def format_validation_issues(issues: Sequence[ValidationIssue]) -> str:
    invalid_rows = [issue.display_row for issue in issues if issue.kind == "invalid_identifier"]
    missing = [issue for issue in issues if issue.kind == "missing_fields"]
    parts: list[str] = []
    if invalid_rows:
        rows = ", ".join(str(row) for row in invalid_rows)
        parts.append(f"Invalid ID value in row(s): {rows}. IDs must be numeric.")
    if missing:
        details = "\n".join(
            f"Row {issue.display_row}: {', '.join(issue.fields)}" for issue in missing
        )
        parts.append(f"Missing required fields:\n{details}")
    return "\n".join(parts) or "Validation failed."

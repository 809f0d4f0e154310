"""Map the store's flat result list back onto the rows that produced it.

The store answers a bulk request with an unordered-by-row list of outcomes tagged
``insert``/``update``/``delete``/``duplicate`` and no reference to the request row.
Correlation is therefore positional per label: outcomes are split into one FIFO
queue per label, and the original rows are walked again in request order, each row
consuming the next entry of the queue matching its classification.

That correlation only holds while the counts line up exactly::

    inserted + updated + deleted + duplicated + errors == rows sent

and per label while a queue is either full or empty. A queue holding fewer outcomes
than candidate rows means some candidates failed without saying which, and popping
in order would hand a later row's id to an earlier one.

Whenever a check fails, the affected queues are not bound at all. A missing id is
recoverable with a refresh, a wrong id written into a row is not.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from gridsync.domain.errors import IntegrityViolation
from gridsync.domain.types import same_cell

from .contracts import (
    OperationIntent,
    OutcomeLabel,
    ReconciliationResult,
    RowBinding,
    RowError,
    RowOperation,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

    from gridsync.domain.types import CellValue, JsonRecord

    from .contracts import ClassifiedRow, RemoteOutcome, StoreResponse

log = getLogger(__name__)

BINDING_LABELS = (OutcomeLabel.INSERT, OutcomeLabel.UPDATE, OutcomeLabel.DELETE)

ALLOWED_LABELS: dict[OperationIntent, frozenset[OutcomeLabel]] = {
    OperationIntent.UPSERT: frozenset(
        {OutcomeLabel.INSERT, OutcomeLabel.UPDATE, OutcomeLabel.DUPLICATE}
    ),
    OperationIntent.INSERT: frozenset({OutcomeLabel.INSERT, OutcomeLabel.DUPLICATE}),
    OperationIntent.UPDATE: frozenset({OutcomeLabel.UPDATE, OutcomeLabel.DUPLICATE}),
    OperationIntent.DELETE: frozenset({OutcomeLabel.DELETE}),
}

type OutcomeQueues = dict[OutcomeLabel, deque[RemoteOutcome]]


@dataclass(slots=True)
class DemuxResult:
    """Row bindings for the grid writer plus the aggregated pass result."""

    result: ReconciliationResult
    bindings: dict[int, RowBinding] = field(default_factory=dict["int", "RowBinding"])
    unbound: list[int] = field(default_factory=list["int"])
    violations: list[IntegrityViolation] = field(default_factory=list["IntegrityViolation"])

    @property
    def removed_positions(self) -> list[int]:
        return [
            position
            for position, binding in self.bindings.items()
            if binding.label is OutcomeLabel.DELETE
        ]

    @property
    def skipped_queues(self) -> set[str]:
        return {queue for violation in self.violations for queue in violation.queues}

    def write_plan(
        self,
        *,
        identifier_field: str = "id",
        version_field: str = "version",
    ) -> dict[int, dict[str, CellValue]]:
        """Return ``position -> column -> value`` for every row that needs a write."""

        plan: dict[int, dict[str, CellValue]] = {}
        for position, binding in self.bindings.items():
            updates = binding.cell_updates(
                identifier_field=identifier_field,
                version_field=version_field,
            )
            if updates:
                plan[position] = updates
        return plan


def partition_outcomes(outcomes: Iterable[RemoteOutcome]) -> OutcomeQueues:
    """Split outcomes into one FIFO queue per label, keeping store order within a label."""

    queues: OutcomeQueues = {label: deque() for label in OutcomeLabel}
    for outcome in outcomes:
        queues[OutcomeLabel(outcome.operation)].append(outcome)
    return queues


def consumed_label(
    row: ClassifiedRow,
    intent: OperationIntent,
    failed: Collection[int] = (),
) -> OutcomeLabel | None:
    """Label of the queue ``row`` takes its result from, ``None`` if it takes none.

    Rows in ``failed`` already own a store error and take no outcome.
    """

    if row.is_rejected or row.position in failed:
        return None
    if intent is OperationIntent.DELETE:
        return OutcomeLabel.DELETE if row.identifier is not None else None
    if row.operation is RowOperation.INSERT:
        return OutcomeLabel.INSERT
    return OutcomeLabel.UPDATE


def check_integrity(
    rows: Sequence[ClassifiedRow],
    queues: OutcomeQueues,
    *,
    error_count: int,
    intent: OperationIntent,
    failed: Collection[int] = (),
) -> list[IntegrityViolation]:
    """Return one violation per failed check; an empty list means binding is safe."""

    violations: list[IntegrityViolation] = []
    allowed = ALLOWED_LABELS[intent]

    for label, queue in queues.items():
        if queue and label not in allowed:
            violations.append(
                IntegrityViolation(
                    f"store returned {len(queue)} {label.value!r} outcome(s) "
                    f"for a {intent.value!r} request",
                    queues=(label.value,),
                    expected=0,
                    actual=len(queue),
                )
            )

    capacity = {label: 0 for label in BINDING_LABELS}
    for row in rows:
        label = consumed_label(row, intent, failed)
        if label is not None:
            capacity[label] += 1
    for label in BINDING_LABELS:
        if label not in allowed:
            continue
        actual = len(queues[label])
        if actual > capacity[label]:
            message = f"{actual} {label.value!r} outcome(s) for {capacity[label]} candidate row(s)"
        elif 0 < actual < capacity[label]:
            # some candidates failed without saying which, so order no longer identifies rows
            message = (
                f"{actual} {label.value!r} outcome(s) for {capacity[label]} candidate row(s), "
                "cannot tell which rows they belong to"
            )
        else:
            continue
        violations.append(
            IntegrityViolation(
                message,
                queues=(label.value,),
                expected=capacity[label],
                actual=actual,
            )
        )

    sent = sum(1 for row in rows if not row.is_rejected)
    accounted = sum(len(queue) for queue in queues.values()) + error_count
    if accounted != sent:
        violations.append(
            IntegrityViolation(
                f"store accounted for {accounted} row(s) but {sent} were sent",
                queues=tuple(label.value for label in BINDING_LABELS if label in allowed),
                expected=sent,
                actual=accounted,
            )
        )
    return violations


def demultiplex(
    rows: Sequence[ClassifiedRow],
    response: StoreResponse,
    *,
    intent: OperationIntent = OperationIntent.UPSERT,
    strict: bool = False,
) -> DemuxResult:
    """Bind each outcome to the grid position of the row that produced it.

    ``rows`` must be the exact sequence the request was built from. With
    ``strict=True`` the first integrity violation is raised instead of recorded.
    """

    queues = partition_outcomes(response.outcomes)
    result = ReconciliationResult(
        total=sum(1 for row in rows if not row.is_rejected),
        inserted_records=list(queues[OutcomeLabel.INSERT]),
        updated_records=list(queues[OutcomeLabel.UPDATE]),
        deleted_records=list(queues[OutcomeLabel.DELETE]),
        duplicated_records=list(queues[OutcomeLabel.DUPLICATE]),
        errors=list(response.errors),
    )

    failed = {error.position for error in response.errors if error.position is not None}
    violations = check_integrity(
        rows,
        queues,
        error_count=len(response.errors),
        intent=intent,
        failed=failed,
    )
    if violations and strict:
        raise violations[0]
    for violation in violations:
        log.warning(
            "Integrity violation, write-back skipped for %s: %s",
            ", ".join(violation.queues),
            violation,
        )

    skipped = {OutcomeLabel(queue) for violation in violations for queue in violation.queues}
    demuxed = DemuxResult(result=result, violations=violations)

    for row in rows:
        label = consumed_label(row, intent, failed)
        if label is None:
            continue
        queue = queues[label]
        if label in skipped or not queue:
            demuxed.unbound.append(row.position)
            continue
        outcome = queue.popleft()
        demuxed.bindings[row.position] = RowBinding(
            position=row.position,
            label=label,
            identifier=outcome.id,
            version=outcome.version,
        )

    return demuxed


def attribute_errors(
    rows: Sequence[ClassifiedRow],
    errors: Iterable[RowError],
    *,
    unique_keys: Sequence[str],
    identifier_field: str = "id",
) -> list[RowError]:
    """Resolve the grid position of store errors that echo their request row.

    Errors are matched on the identifier first, then on the unique-key values. When
    several rows share that key the echo must equal one row field for field. Each row
    absorbs at most one error; errors that match no single row keep ``position=None``.
    """

    taken: set[int] = set()
    attributed: list[RowError] = []
    for error in errors:
        if error.position is not None or error.row is None:
            attributed.append(error)
            continue
        position = _match_error_row(
            rows,
            error.row,
            unique_keys=unique_keys,
            identifier_field=identifier_field,
            taken=taken,
        )
        if position is not None:
            taken.add(position)
        attributed.append(RowError(message=error.message, position=position, row=error.row))
    return attributed


def _match_error_row(
    rows: Sequence[ClassifiedRow],
    echoed: JsonRecord,
    *,
    unique_keys: Sequence[str],
    identifier_field: str,
    taken: set[int],
) -> int | None:
    candidates = [row for row in rows if not row.is_rejected and row.position not in taken]
    matches: list[ClassifiedRow] = []
    echoed_id = echoed.get(identifier_field)
    if echoed_id is not None:
        matches = [
            row
            for row in candidates
            if row.identifier is not None and same_cell(row.identifier, echoed_id)
        ]
    if not matches and unique_keys and all(key in echoed for key in unique_keys):
        matches = [
            row
            for row in candidates
            if all(same_cell(row.fields.get(key), echoed.get(key)) for key in unique_keys)
        ]
    if len(matches) > 1:
        # several rows share the key: only an exact echo of one of them is attributable
        matches = [row for row in matches if _echoes(row, echoed, identifier_field)]
    if len(matches) != 1:
        return None
    return matches[0].position


def _echoes(row: ClassifiedRow, echoed: JsonRecord, identifier_field: str) -> bool:
    for key, value in echoed.items():
        cell = row.identifier if key == identifier_field else row.fields.get(key)
        if not same_cell(cell, value):
            return False
    return True

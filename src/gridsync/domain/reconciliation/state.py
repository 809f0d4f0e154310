"""Lifecycle of one user-triggered reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class PassState(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_STORE_RESPONSE = "awaiting_store_response"
    DEMULTIPLEXING = "demultiplexing"
    WRITING_BACK = "writing_back"
    FAILED = "failed"


TRANSITIONS: dict[PassState, frozenset[PassState]] = {
    PassState.IDLE: frozenset({PassState.VALIDATING}),
    PassState.VALIDATING: frozenset({PassState.AWAITING_STORE_RESPONSE, PassState.FAILED}),
    PassState.AWAITING_STORE_RESPONSE: frozenset({PassState.DEMULTIPLEXING, PassState.FAILED}),
    PassState.DEMULTIPLEXING: frozenset({PassState.WRITING_BACK, PassState.FAILED}),
    PassState.WRITING_BACK: frozenset({PassState.IDLE, PassState.FAILED}),
    PassState.FAILED: frozenset({PassState.IDLE}),
}


class IllegalTransitionError(RuntimeError):
    """Raised when a pass tries to skip or reverse a lifecycle step."""


@dataclass(slots=True)
class PassTracker:
    """Record the states one pass went through and refuse illegal jumps."""

    state: PassState = PassState.IDLE
    history: list[PassState] = field(default_factory=lambda: [PassState.IDLE])

    def advance(self, target: PassState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise IllegalTransitionError(f"cannot move from {self.state} to {target}")
        self.state = target
        self.history.append(target)

    def fail(self) -> None:
        if self.state is not PassState.FAILED:
            self.advance(PassState.FAILED)

    def reset(self) -> None:
        self.advance(PassState.IDLE)

    @property
    def failed(self) -> bool:
        return PassState.FAILED in self.history

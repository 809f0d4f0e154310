from __future__ import annotations

import pytest

from gridsync.domain.reconciliation.state import IllegalTransitionError, PassState, PassTracker


def test_happy_path_returns_to_idle() -> None:
    tracker = PassTracker()

    for state in (
        PassState.VALIDATING,
        PassState.AWAITING_STORE_RESPONSE,
        PassState.DEMULTIPLEXING,
        PassState.WRITING_BACK,
        PassState.IDLE,
    ):
        tracker.advance(state)

    assert tracker.state is PassState.IDLE
    assert not tracker.failed
    assert len(tracker.history) == 6


def test_steps_cannot_be_skipped() -> None:
    tracker = PassTracker()

    with pytest.raises(IllegalTransitionError):
        tracker.advance(PassState.DEMULTIPLEXING)


def test_failure_then_reset() -> None:
    tracker = PassTracker()
    tracker.advance(PassState.VALIDATING)

    tracker.fail()
    tracker.fail()
    tracker.reset()

    assert tracker.history == [
        PassState.IDLE,
        PassState.VALIDATING,
        PassState.FAILED,
        PassState.IDLE,
    ]
    assert tracker.failed


def test_idle_cannot_fail() -> None:
    with pytest.raises(IllegalTransitionError):
        PassTracker().fail()

"""Tests for stack status classification and the follow-mode state machine."""

from __future__ import annotations

import pytest

from stack_tail.engine.lifecycle import (
    StackPhase,
    TerminalStateDetector,
    classify_status,
    is_terminal_phase,
    next_phase,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("CREATE_IN_PROGRESS", StackPhase.RUNNING),
        ("UPDATE_IN_PROGRESS", StackPhase.RUNNING),
        ("UPDATE_COMPLETE_CLEANUP_IN_PROGRESS", StackPhase.RUNNING),
        ("UPDATE_ROLLBACK_IN_PROGRESS", StackPhase.RUNNING),
        ("REVIEW_IN_PROGRESS", StackPhase.RUNNING),
        ("CREATE_COMPLETE", StackPhase.SUCCEEDED),
        ("UPDATE_COMPLETE", StackPhase.SUCCEEDED),
        ("DELETE_COMPLETE", StackPhase.SUCCEEDED),
        ("IMPORT_COMPLETE", StackPhase.SUCCEEDED),
        ("ROLLBACK_COMPLETE", StackPhase.FAILED),
        ("UPDATE_ROLLBACK_COMPLETE", StackPhase.FAILED),
        ("IMPORT_ROLLBACK_COMPLETE", StackPhase.FAILED),
        ("CREATE_FAILED", StackPhase.FAILED),
        ("DELETE_FAILED", StackPhase.FAILED),
        ("UPDATE_ROLLBACK_FAILED", StackPhase.FAILED),
        ("SOMETHING_NEW", StackPhase.UNKNOWN),
        ("", StackPhase.UNKNOWN),
    ],
)
def test_classify_status(status: str, expected: StackPhase) -> None:
    assert classify_status(status) is expected


def test_detector_starts_running_and_continues() -> None:
    detector = TerminalStateDetector()

    assert detector.phase is StackPhase.RUNNING
    assert detector.should_continue
    assert detector.last_status is None


def test_unknown_status_keeps_polling() -> None:
    detector = TerminalStateDetector()

    phase = detector.observe("NOT_A_REAL_STATUS")

    assert phase is StackPhase.UNKNOWN
    assert detector.should_continue


def test_detector_follows_update_through_rollback_to_failure() -> None:
    detector = TerminalStateDetector()
    phases = [
        detector.observe(status)
        for status in (
            "UPDATE_IN_PROGRESS",
            "UPDATE_ROLLBACK_IN_PROGRESS",
            "UPDATE_ROLLBACK_COMPLETE",
        )
    ]

    assert phases == [StackPhase.RUNNING, StackPhase.RUNNING, StackPhase.FAILED]
    assert detector.is_terminal
    assert detector.last_status == "UPDATE_ROLLBACK_COMPLETE"


def test_terminal_phases_absorb_further_statuses() -> None:
    assert next_phase(StackPhase.SUCCEEDED, "UPDATE_IN_PROGRESS") is StackPhase.SUCCEEDED
    assert next_phase(StackPhase.FAILED, "UPDATE_COMPLETE") is StackPhase.FAILED
    assert next_phase(StackPhase.UNKNOWN, "UPDATE_COMPLETE") is StackPhase.SUCCEEDED


def test_only_success_and_failure_are_terminal() -> None:
    assert is_terminal_phase(StackPhase.SUCCEEDED)
    assert is_terminal_phase(StackPhase.FAILED)
    assert not is_terminal_phase(StackPhase.RUNNING)
    assert not is_terminal_phase(StackPhase.UNKNOWN)

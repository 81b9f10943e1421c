"""Stack status classification and the follow-mode termination state machine."""

from __future__ import annotations

from enum import StrEnum


class StackPhase(StrEnum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNKNOWN = "unknown"


_TERMINAL_PHASES: frozenset[StackPhase] = frozenset({StackPhase.SUCCEEDED, StackPhase.FAILED})


def classify_status(status: str) -> StackPhase:
    """Map a CloudFormation status string onto a phase.

    Rollbacks count as failures even once they complete, and anything still
    in progress (rollbacks included) is running. Unrecognized statuses are
    UNKNOWN, which keeps a follow loop polling.
    """
    normalized = status.strip().upper()
    if normalized.endswith("_IN_PROGRESS"):
        return StackPhase.RUNNING
    if normalized.endswith("_FAILED"):
        return StackPhase.FAILED
    if normalized.endswith("_COMPLETE"):
        if "ROLLBACK" in normalized:
            return StackPhase.FAILED
        return StackPhase.SUCCEEDED
    return StackPhase.UNKNOWN


def is_terminal_phase(phase: StackPhase) -> bool:
    """Return True when the phase stops a follow loop."""
    return phase in _TERMINAL_PHASES


def next_phase(current: StackPhase, status: str) -> StackPhase:
    """Transition function: terminal phases absorb, all others follow the status."""
    if is_terminal_phase(current):
        return current
    return classify_status(status)


class TerminalStateDetector:
    """Track the stack phase across poll cycles."""

    def __init__(self) -> None:
        self.phase = StackPhase.RUNNING
        self.last_status: str | None = None

    def observe(self, status: str) -> StackPhase:
        """Apply one polled stack status and return the resulting phase."""
        self.last_status = status
        self.phase = next_phase(self.phase, status)
        return self.phase

    @property
    def is_terminal(self) -> bool:
        return is_terminal_phase(self.phase)

    @property
    def should_continue(self) -> bool:
        return not self.is_terminal

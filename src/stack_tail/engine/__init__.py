"""Event tailing engine: deduplication, terminal-state detection, aggregation, control loop."""

from .aggregate import aggregate_resources
from .controller import RetryPolicy, TailController, TailMode, TailOutcome
from .dedup import EventDeduplicator
from .lifecycle import StackPhase, TerminalStateDetector, classify_status, next_phase

__all__ = [
    "EventDeduplicator",
    "RetryPolicy",
    "StackPhase",
    "TailController",
    "TailMode",
    "TailOutcome",
    "TerminalStateDetector",
    "aggregate_resources",
    "classify_status",
    "next_phase",
]

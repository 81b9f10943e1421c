"""Poll, deduplicate, classify and render: the stack tail control loop."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TypeVar

from ..exceptions import RetryBudgetExhausted, TailInterrupted, TransientStackError, UsageError
from ..models import ResourceSummary
from ..source.base import StackEventSource
from .aggregate import aggregate_resources
from .dedup import EventDeduplicator
from .lifecycle import StackPhase, TerminalStateDetector

if TYPE_CHECKING:
    from ..ui.render import EventRenderer

T = TypeVar("T")


class TailMode(StrEnum):
    EVENTS = "events"
    RESOURCES = "resources"


class TailOutcome(StrEnum):
    COMPLETED = "completed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def exit_code(self) -> int:
        return 1 if self is TailOutcome.FAILED else 0


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff for transient fetch failures."""

    max_retries: int = 3
    base_seconds: float = 1.0
    max_seconds: float = 8.0
    jitter_seconds: float = 0.25

    def delay_for(self, attempt: int, rng: random.Random) -> float:
        backoff = min(self.base_seconds * (2**attempt), self.max_seconds)
        jitter = rng.uniform(0, self.jitter_seconds) if self.jitter_seconds > 0 else 0.0
        return backoff + jitter


class TailController:
    """Owns the poll loop, the seen-event set and the poll cadence."""

    def __init__(
        self,
        *,
        source: StackEventSource,
        renderer: EventRenderer,
        stack_name: str,
        logger: logging.Logger,
        mode: TailMode = TailMode.EVENTS,
        follow: bool = False,
        poll_interval_seconds: float = 5.0,
        retry_policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if follow and mode is TailMode.RESOURCES:
            raise UsageError("--follow applies to events only; drop it or drop --resources.")
        self.source = source
        self.renderer = renderer
        self.stack_name = stack_name
        self.logger = logger
        self.mode = mode
        self.follow = follow
        self.poll_interval_seconds = poll_interval_seconds
        self.retry_policy = retry_policy or RetryPolicy()
        self.cancel_event = cancel_event or threading.Event()
        self.deduplicator = EventDeduplicator()
        self.detector = TerminalStateDetector()
        self.cycles = 0
        self._rng = rng or random.Random()

    def run(self) -> TailOutcome:
        """Run to completion and report how the run ended."""
        try:
            if self.mode is TailMode.RESOURCES:
                self.show_resources()
                return TailOutcome.COMPLETED
            return self._tail_events()
        except TailInterrupted:
            self.logger.info("Tail cancelled stack=%s cycles=%d", self.stack_name, self.cycles)
            return TailOutcome.CANCELLED

    def show_resources(self) -> ResourceSummary:
        resources = self._fetch_with_retry("stack resources", self.source.fetch_resources)
        summary = aggregate_resources(resources)
        self.renderer.emit_resources(summary)
        return summary

    def poll_once(self) -> int:
        """Fetch the event history once and render only events not shown before.

        Events that arrive after a later event was already shown are rendered
        once, after the ordered batch, with a late marker.
        """
        self.cycles += 1
        raw_events = self._fetch_with_retry("stack events", self.source.fetch_events)
        new_events = self.deduplicator.accept(raw_events)
        for late in self.deduplicator.late_events:
            self.logger.warning(
                "Rendering out-of-order event event_id=%s timestamp=%s resource=%s status=%s",
                late.event_id,
                late.timestamp.isoformat(),
                late.logical_resource_id,
                late.status,
            )
        rendered = self.renderer.emit_events(new_events)
        if self.deduplicator.late_events:
            rendered += self.renderer.emit_events(self.deduplicator.late_events, late=True)
        self.logger.debug(
            "Poll cycle %d stack=%s fetched=%d rendered=%d seen=%d",
            self.cycles,
            self.stack_name,
            len(raw_events),
            rendered,
            len(self.deduplicator.seen),
        )
        return rendered

    def _tail_events(self) -> TailOutcome:
        while True:
            self._raise_if_cancelled()
            self.poll_once()
            if not self.follow:
                return TailOutcome.COMPLETED

            stack_status = self._fetch_with_retry("stack status", self.source.fetch_stack_status)
            phase = self.detector.observe(stack_status.status)
            self.logger.info(
                "Stack status stack=%s status=%s phase=%s",
                self.stack_name,
                stack_status.status,
                phase,
            )
            if phase is StackPhase.SUCCEEDED:
                return TailOutcome.SUCCEEDED
            if phase is StackPhase.FAILED:
                return TailOutcome.FAILED
            self._wait(self.poll_interval_seconds)

    def _fetch_with_retry(self, description: str, fetch: Callable[[str], T]) -> T:
        attempt = 0
        while True:
            try:
                return fetch(self.stack_name)
            except TransientStackError as exc:
                if attempt >= self.retry_policy.max_retries:
                    raise RetryBudgetExhausted(
                        f"Fetching {description} for {self.stack_name!r} failed after "
                        f"{attempt + 1} attempts: {exc}",
                        attempts=attempt + 1,
                        code=exc.code,
                    ) from exc
                delay = self.retry_policy.delay_for(attempt, self._rng)
                attempt += 1
                self.logger.warning(
                    "Fetching %s failed; retrying attempt=%d/%d category=%s code=%s delay_ms=%d",
                    description,
                    attempt,
                    self.retry_policy.max_retries,
                    exc.category,
                    exc.code,
                    int(delay * 1000),
                )
                self._wait(delay)

    def _wait(self, seconds: float) -> None:
        if self.cancel_event.wait(seconds):
            raise TailInterrupted(f"Tail of {self.stack_name!r} cancelled.")

    def _raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise TailInterrupted(f"Tail of {self.stack_name!r} cancelled.")

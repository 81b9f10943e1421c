"""Turn repeated full-history event fetches into an incremental, ordered stream."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from ..models import StackEvent


class EventDeduplicator:
    """Emit each event id at most once, ordered by ``(timestamp, event_id)``.

    CloudFormation returns the whole event history, newest first, on every
    call. Every id returned is remembered in ``seen``; the first copy observed
    wins. The ordered stream never goes backwards across calls: an unseen
    event sorting before the last emitted one is remembered, kept out of the
    ordered stream and reported once through ``late_events``.
    """

    def __init__(self) -> None:
        self.seen: set[str] = set()
        self.late_events: list[StackEvent] = []
        self._high_water: tuple[datetime, str] | None = None

    def accept(self, newest_first: Sequence[StackEvent]) -> list[StackEvent]:
        """Return unseen events from one raw fetch in chronological order."""
        fresh: list[StackEvent] = []
        for event in reversed(newest_first):
            if event.event_id in self.seen:
                continue
            self.seen.add(event.event_id)
            fresh.append(event)
        fresh.sort(key=lambda event: event.sort_key)

        emitted: list[StackEvent] = []
        late: list[StackEvent] = []
        for event in fresh:
            if self._high_water is not None and event.sort_key < self._high_water:
                late.append(event)
                continue
            emitted.append(event)

        if emitted:
            self._high_water = emitted[-1].sort_key
        self.late_events = late
        return emitted

"""Shared builders and a scripted event source for stack-tail tests."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from stack_tail.models import StackEvent, StackResource, StackStatus
from stack_tail.source.base import StackEventSource

BASE_TS = datetime(2026, 2, 24, 12, 0, tzinfo=UTC)


def make_event(
    event_id: str,
    *,
    seconds: float = 0,
    logical_id: str | None = None,
    resource_type: str = "AWS::S3::Bucket",
    status: str = "CREATE_IN_PROGRESS",
    reason: str | None = None,
    stack_name: str = "demo",
) -> StackEvent:
    return StackEvent(
        event_id=event_id,
        stack_name=stack_name,
        logical_resource_id=logical_id or f"Res{event_id}",
        physical_resource_id=None,
        resource_type=resource_type,
        timestamp=BASE_TS + timedelta(seconds=seconds),
        status=status,
        status_reason=reason,
    )


def make_resource(
    logical_id: str,
    *,
    resource_type: str = "AWS::S3::Bucket",
    status: str = "CREATE_COMPLETE",
    seconds: float = 0,
) -> StackResource:
    return StackResource(
        logical_resource_id=logical_id,
        physical_resource_id=f"{logical_id.lower()}-physical",
        resource_type=resource_type,
        status=status,
        last_updated=BASE_TS + timedelta(seconds=seconds),
    )


def newest_first(events: Iterable[StackEvent]) -> list[StackEvent]:
    """Order events the way describe_stack_events returns them."""
    return sorted(events, key=lambda event: event.sort_key, reverse=True)


class ScriptedSource(StackEventSource):
    """Replays queued responses; queued exceptions are raised instead of returned."""

    def __init__(
        self,
        *,
        event_batches: Iterable[Any] = (),
        statuses: Iterable[Any] = (),
        resource_batches: Iterable[Any] = (),
    ) -> None:
        self.event_batches = list(event_batches)
        self.statuses = list(statuses)
        self.resource_batches = list(resource_batches)
        self.calls: list[str] = []
        self.closed = False

    def fetch_events(self, stack_name: str) -> list[StackEvent]:
        self.calls.append("events")
        return list(self._next(self.event_batches))

    def fetch_resources(self, stack_name: str) -> list[StackResource]:
        self.calls.append("resources")
        return list(self._next(self.resource_batches))

    def fetch_stack_status(self, stack_name: str) -> StackStatus:
        self.calls.append("status")
        item = self._next(self.statuses)
        if isinstance(item, StackStatus):
            return item
        return StackStatus(stack_name=stack_name, status=item)

    def close(self) -> None:
        self.closed = True

    @staticmethod
    def _next(queue: list[Any]) -> Any:
        if not queue:
            raise AssertionError("ScriptedSource ran out of scripted responses")
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

"""Provider-agnostic stack event source interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models import StackEvent, StackResource, StackStatus


class StackEventSource(ABC):
    """Base contract for the data source behind the tail controller.

    Implementations are faithful passthroughs of one API round-trip: no
    deduplication, reordering, caching or retries happen here.
    """

    def __enter__(self) -> StackEventSource:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    @abstractmethod
    def fetch_events(self, stack_name: str) -> list[StackEvent]:
        """Return the stack's full event history, newest first."""

    @abstractmethod
    def fetch_resources(self, stack_name: str) -> list[StackResource]:
        """Return the current resource snapshot for the stack."""

    @abstractmethod
    def fetch_stack_status(self, stack_name: str) -> StackStatus:
        """Return the stack's own aggregate status."""

    def close(self) -> None:
        """Release source resources."""

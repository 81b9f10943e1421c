"""Terminal rendering for stack events and resources."""

from .render import EventRenderer, resolve_timezone

__all__ = ["EventRenderer", "resolve_timezone"]

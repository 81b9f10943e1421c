"""Render stack events and resources as aligned terminal lines in a chosen time zone."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rich.console import Console
from rich.text import Text

from ..engine.lifecycle import StackPhase, classify_status
from ..exceptions import ConfigError
from ..models import ResourceSummary, StackEvent, StackResource

_PHASE_STYLES: dict[StackPhase, str] = {
    StackPhase.SUCCEEDED: "bold bright_green",
    StackPhase.FAILED: "bold bright_red",
    StackPhase.RUNNING: "",
    StackPhase.UNKNOWN: "",
}
_LOGICAL_ID_STYLE = "bold"
_STACK_LOGICAL_ID_STYLE = "bold magenta"
_LATE_MARKER = "(late) "
_COLUMN_GAP = "  "
# timestamp, logical id, resource type, status; the reason column is never padded.
_ALIGNED_COLUMNS = 4


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Resolve an IANA zone identifier; ``None`` means the system's local zone.

    The local zone is applied per instant at render time so events on either
    side of a DST change get their own offset. Raises ConfigError for unknown
    identifiers so a bad ``--timezone`` fails before any polling starts.
    """
    if name is None or not name.strip():
        return None
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # Region names like "America" resolve to a directory in the zone database.
        raise ConfigError(
            f"Unknown time zone {name!r}; expected an IANA identifier such as "
            "'America/New_York'. See "
            "https://en.wikipedia.org/wiki/List_of_tz_database_time_zones"
        ) from exc


def status_marker(status: str) -> str:
    phase = classify_status(status)
    if phase is StackPhase.SUCCEEDED:
        return "⚰️ " if status.startswith("DELETE") else "✅"
    if phase is StackPhase.FAILED:
        return "❌"
    return "🔄"


class EventRenderer:
    """Format events, resources and summaries and write them to a console.

    Columns are padded to the widest cell seen so far in the run, so rows stay
    aligned within a batch and across poll cycles.
    """

    def __init__(self, *, console: Console, zone: tzinfo | None = None) -> None:
        self.console = console
        self.zone = zone
        self._widths = [0] * _ALIGNED_COLUMNS

    def format_timestamp(self, value: datetime) -> str:
        """Convert a UTC instant to the configured zone, keeping full precision."""
        instant = value.replace(tzinfo=UTC) if value.tzinfo is None else value
        if self.zone is None:
            return instant.astimezone().isoformat(sep=" ")
        return instant.astimezone(self.zone).isoformat(sep=" ")

    def render_event(self, event: StackEvent, *, late: bool = False) -> Text:
        return self._layout([self._event_cells(event, late=late)])[0]

    def render_resource(self, resource: StackResource) -> Text:
        return self._layout([self._resource_cells(resource)])[0]

    def render_summary(self, summary: ResourceSummary) -> list[Text]:
        """One line per status bucket, followed by its per-type breakdown."""
        lines: list[Text] = []
        for status, count in summary.counts_by_status.items():
            style = _PHASE_STYLES[classify_status(status)]
            line = Text()
            line.append(f"{status_marker(status)} ")
            line.append(status, style=style)
            line.append(f"  {count}")
            lines.append(line)
            for (bucket_status, resource_type), type_count in (
                summary.counts_by_status_and_type.items()
            ):
                if bucket_status != status:
                    continue
                lines.append(Text(f"    {resource_type}  {type_count}", style="bright_black"))
        noun = "resource" if summary.total == 1 else "resources"
        lines.append(Text(f"total  {summary.total} {noun}", style="bold"))
        return lines

    def emit_events(self, events: Iterable[StackEvent], *, late: bool = False) -> int:
        """Write one aligned line per event; ``late`` rows carry an out-of-order marker."""
        rows = [self._event_cells(event, late=late) for event in events]
        for line in self._layout(rows):
            self._write(line)
        return len(rows)

    def emit_resources(self, summary: ResourceSummary) -> int:
        for line in self._layout([self._resource_cells(r) for r in summary.resources]):
            self._write(line)
        lines = self.render_summary(summary)
        for line in lines:
            self._write(line)
        return summary.total + len(lines)

    def _write(self, line: Text) -> None:
        self.console.print(line, soft_wrap=True, highlight=False)

    def _event_cells(self, event: StackEvent, *, late: bool) -> list[Text]:
        cells = self._cells(
            timestamp=event.timestamp,
            logical_id=event.logical_resource_id,
            resource_type=event.resource_type,
            status=event.status,
            reason=event.status_reason,
            is_stack=event.is_stack_event,
        )
        if late:
            cells[-1] = Text(_LATE_MARKER, style="yellow").append_text(cells[-1])
        return cells

    def _resource_cells(self, resource: StackResource) -> list[Text]:
        return self._cells(
            timestamp=resource.last_updated,
            logical_id=resource.logical_resource_id,
            resource_type=resource.resource_type,
            status=resource.status,
            reason=resource.status_reason,
            is_stack=resource.is_stack_resource,
        )

    def _cells(
        self,
        *,
        timestamp: datetime,
        logical_id: str,
        resource_type: str,
        status: str,
        reason: str | None,
        is_stack: bool,
    ) -> list[Text]:
        status_cell = Text(f"{status_marker(status)} ")
        status_cell.append(status, style=_PHASE_STYLES[classify_status(status)])
        return [
            Text(self.format_timestamp(timestamp)),
            Text(logical_id, style=_STACK_LOGICAL_ID_STYLE if is_stack else _LOGICAL_ID_STYLE),
            Text(resource_type, style="bright_black"),
            status_cell,
            Text(reason or "", style="bright_black"),
        ]

    def _layout(self, rows: list[list[Text]]) -> list[Text]:
        for row in rows:
            for index, cell in enumerate(row[:_ALIGNED_COLUMNS]):
                self._widths[index] = max(self._widths[index], cell.cell_len)

        lines: list[Text] = []
        for row in rows:
            line = Text()
            for index, cell in enumerate(row[:_ALIGNED_COLUMNS]):
                line.append_text(cell)
                line.append(" " * (self._widths[index] - cell.cell_len) + _COLUMN_GAP)
            line.append_text(row[_ALIGNED_COLUMNS])
            line.rstrip()
            lines.append(line)
        return lines

"""Shared typed models for CloudFormation events, resources and stack status."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class StackEvent(BaseModel):
    """One immutable entry from a stack's event history."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(min_length=1, description="Provider event identifier")
    stack_name: str
    logical_resource_id: str
    physical_resource_id: str | None = None
    resource_type: str
    timestamp: datetime = Field(description="Event time, normalized to UTC")
    status: str
    status_reason: str | None = None

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Total order: timestamp, then event id for same-instant events."""
        return (self.timestamp, self.event_id)

    @property
    def is_stack_event(self) -> bool:
        """True for rows describing the stack itself rather than one of its resources."""
        return self.resource_type == STACK_RESOURCE_TYPE


class StackResource(BaseModel):
    """Current state of one resource in a stack snapshot."""

    model_config = ConfigDict(frozen=True)

    logical_resource_id: str
    physical_resource_id: str | None = None
    resource_type: str
    status: str
    status_reason: str | None = None
    last_updated: datetime

    @field_validator("last_updated")
    @classmethod
    def normalize_last_updated(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def is_stack_resource(self) -> bool:
        return self.resource_type == STACK_RESOURCE_TYPE


class StackStatus(BaseModel):
    """Aggregate status of the stack itself."""

    model_config = ConfigDict(frozen=True)

    stack_name: str
    status: str
    status_reason: str | None = None


class ResourceSummary(BaseModel):
    """Resources grouped by status and by (status, resource type)."""

    counts_by_status: dict[str, int] = Field(default_factory=dict)
    counts_by_status_and_type: dict[tuple[str, str], int] = Field(default_factory=dict)
    resources: list[StackResource] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.resources)

"""Reduce a stack resource snapshot to per-status and per-type counts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from ..models import ResourceSummary, StackResource


def _detail_key(resource: StackResource) -> tuple[str, str, str, str]:
    return (
        resource.logical_resource_id,
        resource.resource_type,
        resource.status,
        resource.physical_resource_id or "",
    )


def aggregate_resources(resources: Iterable[StackResource]) -> ResourceSummary:
    """Group resources by status and by (status, resource type).

    Output depends only on the multiset of resources, never on input order:
    bucket keys and the detail list are sorted.
    """
    ordered = sorted(resources, key=_detail_key)
    by_status: Counter[str] = Counter()
    by_status_and_type: Counter[tuple[str, str]] = Counter()
    for resource in ordered:
        by_status[resource.status] += 1
        by_status_and_type[(resource.status, resource.resource_type)] += 1

    return ResourceSummary(
        counts_by_status={status: by_status[status] for status in sorted(by_status)},
        counts_by_status_and_type={
            key: by_status_and_type[key] for key in sorted(by_status_and_type)
        },
        resources=ordered,
    )

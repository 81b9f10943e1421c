"""Stack event sources."""

from .base import StackEventSource
from .cloudformation import CloudFormationSource

__all__ = ["CloudFormationSource", "StackEventSource"]

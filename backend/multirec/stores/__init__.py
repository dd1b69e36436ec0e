"""Backing store adapters"""

from .base import AssignmentStore, EventStore, InteractionStore
from .interactions import SqlInteractionStore
from .assignments import InMemoryAssignmentStore, SqlAssignmentStore
from .events import InMemoryEventStore, SqlEventStore

__all__ = [
    "AssignmentStore",
    "EventStore",
    "InteractionStore",
    "SqlInteractionStore",
    "SqlAssignmentStore",
    "InMemoryAssignmentStore",
    "SqlEventStore",
    "InMemoryEventStore",
]

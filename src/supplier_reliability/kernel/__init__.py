"""
Kernel - infrastructure shared by the tracker

Event envelope and stores, ids, injectable time, errors, policy
configuration, logging, metrics and retry helpers.
"""

from supplier_reliability.kernel.errors import (
    EventStoreError,
    InvariantViolation,
    NotFoundError,
    StreamVersionConflict,
    TrackerError,
    ValidationError,
)
from supplier_reliability.kernel.event_store import (
    EventStore,
    InMemoryEventStore,
    SQLiteEventStore,
)
from supplier_reliability.kernel.events import Event
from supplier_reliability.kernel.ids import generate_id
from supplier_reliability.kernel.policy import ScoringWeights, TrackerPolicy, load_policy
from supplier_reliability.kernel.time import RealTimeProvider, TestTimeProvider, TimeProvider

__all__ = [
    # IDs
    "generate_id",
    # Time
    "TimeProvider",
    "RealTimeProvider",
    "TestTimeProvider",
    # Events & storage
    "Event",
    "EventStore",
    "InMemoryEventStore",
    "SQLiteEventStore",
    # Policy
    "TrackerPolicy",
    "ScoringWeights",
    "load_policy",
    # Errors
    "TrackerError",
    "ValidationError",
    "InvariantViolation",
    "NotFoundError",
    "EventStoreError",
    "StreamVersionConflict",
]

"""
Pytest configuration and shared fixtures
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest

from supplier_reliability.kernel.event_store import InMemoryEventStore, SQLiteEventStore
from supplier_reliability.kernel.policy import TrackerPolicy
from supplier_reliability.kernel.time import TestTimeProvider
from supplier_reliability.performance.handlers import PerformanceCommandHandlers
from supplier_reliability.performance.projections import (
    BlacklistRegistry,
    IncidentLedger,
    MetricsStore,
)
from supplier_reliability.tracker import SupplierTracker


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    for path in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
        if path.exists():
            path.unlink()


@pytest.fixture
def event_store(temp_db: Path) -> SQLiteEventStore:
    """Provide a fresh SQLite event store for each test"""
    return SQLiteEventStore(temp_db)


@pytest.fixture
def test_time() -> TestTimeProvider:
    """
    Provide a controllable time provider for deterministic tests

    Default time: 2025-01-15 12:00:00 UTC
    """
    return TestTimeProvider(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy() -> TrackerPolicy:
    """Default tracker policy"""
    return TrackerPolicy()


@pytest.fixture
def tracker(test_time: TestTimeProvider, policy: TrackerPolicy) -> SupplierTracker:
    """In-memory tracker on the test clock"""
    return SupplierTracker(store=InMemoryEventStore(), policy=policy, time_provider=test_time)


@pytest.fixture
def sqlite_tracker(
    event_store: SQLiteEventStore, test_time: TestTimeProvider, policy: TrackerPolicy
) -> SupplierTracker:
    """Durable tracker on the test clock"""
    return SupplierTracker(store=event_store, policy=policy, time_provider=test_time)


# =============================================================================
# Performance Module Fixtures
# =============================================================================


@pytest.fixture
def performance_handlers(
    test_time: TestTimeProvider, policy: TrackerPolicy
) -> PerformanceCommandHandlers:
    """Stateless handlers; projections are passed in per call"""
    return PerformanceCommandHandlers(test_time, policy)


@pytest.fixture
def metrics_store() -> MetricsStore:
    return MetricsStore()


@pytest.fixture
def incident_ledger() -> IncidentLedger:
    return IncidentLedger()


@pytest.fixture
def blacklist_registry() -> BlacklistRegistry:
    return BlacklistRegistry()

"""
Tests for the event stores

Both stores must offer the same guarantees:
- Append-only semantics
- Idempotency via command_id
- Optimistic locking via stream versioning
- Replay in append order
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from supplier_reliability.kernel.errors import StreamVersionConflict
from supplier_reliability.kernel.event_store import InMemoryEventStore, SQLiteEventStore
from supplier_reliability.kernel.events import Event
from supplier_reliability.kernel.ids import generate_id

T0 = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _event(
    stream_id: str,
    version: int,
    payload: dict | None = None,
    command_id: str | None = None,
    event_type: str = "OrderTracked",
) -> Event:
    return Event(
        event_id=generate_id(),
        stream_id=stream_id,
        event_type=event_type,
        occurred_at=T0,
        actor_id="storefront",
        command_id=command_id or generate_id(),
        payload=payload or {},
        version=version,
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request, temp_db: Path):
    """Run each test against both store implementations"""
    if request.param == "memory":
        return InMemoryEventStore()
    return SQLiteEventStore(temp_db)


def test_append_and_load_single_event(store) -> None:
    """Appended events come back unchanged"""
    event = _event("spocket_luxe_home", 1, {"order_id": "o-1", "success": True})

    appended = store.append("spocket_luxe_home", 0, [event])
    assert len(appended) == 1
    assert appended[0].event_id == event.event_id

    loaded = store.load_stream("spocket_luxe_home")
    assert len(loaded) == 1
    assert loaded[0].event_id == event.event_id
    assert loaded[0].payload == {"order_id": "o-1", "success": True}
    assert loaded[0].occurred_at == T0
    assert loaded[0].stream_type == "Supplier"


def test_stream_versioning(store) -> None:
    store.append("s1", 0, [_event("s1", 1)])
    assert store.get_stream_version("s1") == 1

    store.append("s1", 1, [_event("s1", 2)])
    assert store.get_stream_version("s1") == 2

    events = store.load_stream("s1")
    assert [e.version for e in events] == [1, 2]


def test_unknown_stream_has_version_zero(store) -> None:
    assert store.get_stream_version("never-seen") == 0
    assert store.load_stream("never-seen") == []


def test_batch_append_is_one_unit(store) -> None:
    """A mutation and its policy reaction are stored together"""
    command_id = generate_id()
    batch = [
        _event("s1", 1, command_id=command_id, event_type="IncidentReported"),
        _event("s1", 2, command_id=command_id, event_type="SupplierBlacklisted"),
    ]

    store.append("s1", 0, batch)

    assert [e.event_type for e in store.load_stream("s1")] == [
        "IncidentReported",
        "SupplierBlacklisted",
    ]
    assert store.get_stream_version("s1") == 2


def test_optimistic_locking_conflict(store) -> None:
    """Writers holding a stale version are rejected"""
    store.append("s1", 0, [_event("s1", 1)])

    with pytest.raises(StreamVersionConflict) as exc_info:
        store.append("s1", 0, [_event("s1", 2)])

    assert exc_info.value.stream_id == "s1"
    assert exc_info.value.expected_version == 0
    assert exc_info.value.actual_version == 1
    assert len(store.load_stream("s1")) == 1


def test_command_idempotency(store) -> None:
    """Re-appending a command returns the originally stored events"""
    command_id = generate_id()
    first = _event("s1", 1, {"attempt": 1}, command_id=command_id)
    store.append("s1", 0, [first])

    retry = _event("s1", 2, {"attempt": 2}, command_id=command_id)
    result = store.append("s1", 1, [retry])

    assert len(result) == 1
    assert result[0].event_id == first.event_id
    assert result[0].payload["attempt"] == 1
    assert len(store.load_stream("s1")) == 1


def test_load_all_events_preserves_append_order(store) -> None:
    """Replay order is append order even when timestamps tie"""
    store.append("b", 0, [_event("b", 1, {"n": 1})])
    store.append("a", 0, [_event("a", 1, {"n": 2})])
    store.append("b", 1, [_event("b", 2, {"n": 3})])

    assert [e.payload["n"] for e in store.load_all_events()] == [1, 2, 3]


def test_count_operations(store) -> None:
    assert store.count_events() == 0
    assert store.count_streams() == 0

    for stream_num in range(2):
        for version in range(1, 4):
            store.append(f"s{stream_num}", version - 1, [_event(f"s{stream_num}", version)])

    assert store.count_events() == 6
    assert store.count_streams() == 2


def test_append_empty_events_list(store) -> None:
    assert store.append("s1", 0, []) == []
    assert store.count_events() == 0


def test_sqlite_store_survives_reopen(temp_db: Path) -> None:
    """A second store on the same file sees everything the first wrote"""
    first = SQLiteEventStore(temp_db)
    first.append("s1", 0, [_event("s1", 1, {"order_id": "o-1"})])

    reopened = SQLiteEventStore(temp_db)

    assert reopened.get_stream_version("s1") == 1
    assert reopened.load_all_events()[0].payload == {"order_id": "o-1"}

"""
Event stores - append-only logs behind one interface

The tracker persists each mutation (an order outcome, an incident, a
blacklist change and any policy reaction it caused) as a batch of events
appended in a single transaction, so metrics, incidents and blacklist
entries can never drift out of sync with each other.

Two implementations:
- InMemoryEventStore: default, process-lifetime only
- SQLiteEventStore: durable file-backed log (WAL mode)
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Protocol

from supplier_reliability.kernel.errors import EventStoreError, StreamVersionConflict
from supplier_reliability.kernel.events import Event
from supplier_reliability.kernel.logging import get_logger
from supplier_reliability.kernel.metrics import events_appended_total, events_loaded_total
from supplier_reliability.kernel.retry import retry_on_sqlite_lock

logger = get_logger(__name__)


class EventStore(Protocol):
    """Storage interface the tracker depends on"""

    def append(self, stream_id: str, expected_version: int, events: list[Event]) -> list[Event]:
        ...

    def load_stream(self, stream_id: str) -> list[Event]:
        ...

    def load_all_events(self) -> list[Event]:
        ...

    def get_stream_version(self, stream_id: str) -> int:
        ...

    def count_events(self) -> int:
        ...


class InMemoryEventStore:
    """
    Event store held in a Python list

    Same semantics as SQLiteEventStore (optimistic locking, command
    idempotency, append-order replay) without durability.
    """

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._versions: dict[str, int] = {}

    def append(self, stream_id: str, expected_version: int, events: list[Event]) -> list[Event]:
        """
        Append events to a stream

        Raises:
            StreamVersionConflict: If the stream moved past expected_version
        """
        if not events:
            return []

        existing = [
            e
            for e in self._events
            if e.command_id == events[0].command_id and e.stream_id == stream_id
        ]
        if existing:
            return existing

        current_version = self._versions.get(stream_id, 0)
        if current_version != expected_version:
            raise StreamVersionConflict(stream_id, expected_version, current_version)

        self._events.extend(events)
        self._versions[stream_id] = events[-1].version
        for event in events:
            events_appended_total.labels(event_type=event.event_type).inc()
        return events

    def load_stream(self, stream_id: str) -> list[Event]:
        return [e for e in self._events if e.stream_id == stream_id]

    def load_all_events(self) -> list[Event]:
        events_loaded_total.inc(len(self._events))
        return list(self._events)

    def get_stream_version(self, stream_id: str) -> int:
        return self._versions.get(stream_id, 0)

    def count_events(self) -> int:
        return len(self._events)

    def count_streams(self) -> int:
        return len(self._versions)


class SQLiteEventStore:
    """
    SQLite-based event store with append-only semantics

    Schema:
    - events table: append-only event log
    - sequence: global append order, used for replay
    - Unique constraint: (stream_id, version)
    """

    _COLUMNS = (
        "event_id, stream_id, stream_type, version, "
        "command_id, event_type, occurred_at, actor_id, payload_json"
    )

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize event store with SQLite database

        Args:
            db_path: Path to SQLite database file (created if missing)
        """
        self.db_path = Path(db_path)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Create tables and indices if they don't exist"""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL UNIQUE,
                    stream_id TEXT NOT NULL,
                    stream_type TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    command_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    occurred_at TEXT NOT NULL,
                    actor_id TEXT,
                    payload_json TEXT NOT NULL,

                    UNIQUE(stream_id, version)
                )
            """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_stream ON events(stream_id, version)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_command ON events(command_id)")

            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager that always closes the connection"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @retry_on_sqlite_lock()
    def append(
        self,
        stream_id: str,
        expected_version: int,
        events: list[Event],
    ) -> list[Event]:
        """
        Append events to a stream with optimistic locking

        All events go in one transaction: either the whole mutation is
        persisted or none of it is.

        Args:
            stream_id: Supplier identifier
            expected_version: Stream version the caller built the events against
            events: Events with sequential versions starting at expected_version + 1

        Returns:
            The appended events, or the previously stored ones if this
            command_id was already persisted for the stream

        Raises:
            StreamVersionConflict: If stream version doesn't match expected
            EventStoreError: On other database errors
        """
        if not events:
            return []

        command_id = events[0].command_id
        existing = [e for e in self._get_events_by_command_id(command_id) if e.stream_id == stream_id]
        if existing:
            return existing

        with self._connect() as conn:
            try:
                current_version = self._get_stream_version(conn, stream_id)
                if current_version != expected_version:
                    raise StreamVersionConflict(stream_id, expected_version, current_version)

                conn.executemany(
                    f"INSERT INTO events ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        (
                            event.event_id,
                            event.stream_id,
                            event.stream_type,
                            event.version,
                            event.command_id,
                            event.event_type,
                            event.occurred_at.isoformat(),
                            event.actor_id,
                            json.dumps(event.payload),
                        )
                        for event in events
                    ],
                )
                conn.commit()

            except StreamVersionConflict:
                raise

            except sqlite3.IntegrityError as e:
                conn.rollback()
                error_msg = str(e).lower()
                if "stream_id" in error_msg and "version" in error_msg:
                    current = self._get_stream_version(conn, stream_id)
                    raise StreamVersionConflict(stream_id, expected_version, current) from e
                raise EventStoreError(f"Failed to append events: {e}") from e

            except sqlite3.OperationalError:
                conn.rollback()
                raise

            except Exception as e:
                conn.rollback()
                raise EventStoreError(f"Unexpected error appending events: {e}") from e

        for event in events:
            events_appended_total.labels(event_type=event.event_type).inc()
        return events

    def load_stream(self, stream_id: str) -> list[Event]:
        """All events of one supplier in version order"""
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {self._COLUMNS} FROM events WHERE stream_id = ? ORDER BY version ASC",
                (stream_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    @retry_on_sqlite_lock()
    def load_all_events(self) -> list[Event]:
        """
        Every event in append order (for projection rebuilding)

        Append order rather than occurred_at: many events can share a
        timestamp and replay must see them exactly as they were written.
        """
        with self._connect() as conn:
            cursor = conn.execute(f"SELECT {self._COLUMNS} FROM events ORDER BY sequence ASC")
            events = [self._row_to_event(row) for row in cursor.fetchall()]

        events_loaded_total.inc(len(events))
        logger.debug("Events loaded for replay", db_path=str(self.db_path), count=len(events))
        return events

    def get_stream_version(self, stream_id: str) -> int:
        """Current version of a stream (0 if it doesn't exist)"""
        with self._connect() as conn:
            return self._get_stream_version(conn, stream_id)

    def _get_stream_version(self, conn: sqlite3.Connection, stream_id: str) -> int:
        row = conn.execute(
            "SELECT MAX(version) FROM events WHERE stream_id = ?",
            (stream_id,),
        ).fetchone()
        return row[0] if row[0] is not None else 0

    def _get_events_by_command_id(self, command_id: str) -> list[Event]:
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {self._COLUMNS} FROM events WHERE command_id = ? ORDER BY sequence ASC",
                (command_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        return Event(
            event_id=row["event_id"],
            stream_id=row["stream_id"],
            stream_type=row["stream_type"],
            version=row["version"],
            command_id=row["command_id"],
            event_type=row["event_type"],
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            actor_id=row["actor_id"],
            payload=json.loads(row["payload_json"]),
        )

    def count_events(self) -> int:
        """Total number of events in store"""
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]

    def count_streams(self) -> int:
        """Number of distinct suppliers with at least one event"""
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(DISTINCT stream_id) FROM events").fetchone()[0]

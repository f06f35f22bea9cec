"""
Tests for health server

Flask-based liveness, readiness and detailed health endpoints backed by the
tracker's SQLite event database.
"""

import sqlite3
from pathlib import Path

import pytest

from supplier_reliability import __version__, health_server
from supplier_reliability.health_server import app, initialize_health_server
from supplier_reliability.kernel.event_store import SQLiteEventStore
from supplier_reliability.tracker import SupplierTracker
from tests.helpers import record_good_orders


@pytest.fixture
def tracker_db(tmp_path: Path, test_time) -> tuple[Path, SupplierTracker]:
    """Tracker database with two suppliers, one of them blacklisted"""
    db_path = tmp_path / "suppliers.db"
    tracker = SupplierTracker(store=SQLiteEventStore(db_path), time_provider=test_time)
    record_good_orders(tracker, "spocket_luxe_home", 2)
    tracker.report_incident("ali_golden_thread", "o-1", "quality_issue", "critical", "unsafe", 9)
    return db_path, tracker


@pytest.fixture
def client():
    """Flask test client"""
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture(autouse=True)
def reset_server():
    """Reset module state between tests"""
    yield
    health_server._db_path = None
    health_server._tracker = None


# =============================================================================
# Initialization Tests
# =============================================================================


def test_initialize_health_server_sets_db_path(tracker_db):
    db_path, _ = tracker_db
    initialize_health_server(str(db_path))

    assert health_server._db_path == db_path
    assert health_server._tracker is None


def test_initialize_health_server_with_tracker(tracker_db):
    db_path, tracker = tracker_db
    initialize_health_server(db_path, tracker=tracker)

    assert health_server._tracker is tracker


# =============================================================================
# Liveness Endpoint Tests
# =============================================================================


def test_liveness_works_without_initialization(client):
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.get_json() == {"status": "alive", "service": "supplier-reliability"}


# =============================================================================
# Readiness Endpoint Tests
# =============================================================================


def test_readiness_returns_event_count(client, tracker_db):
    """2 orders + incident + automatic blacklisting"""
    db_path, _ = tracker_db
    initialize_health_server(db_path)

    response = client.get("/health/ready")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ready"
    assert data["database"] == "accessible"
    assert data["event_count"] == 4


def test_readiness_returns_503_when_not_initialized(client):
    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.get_json()["reason"] == "database_path_not_initialized"


def test_readiness_returns_503_when_db_file_missing(client):
    initialize_health_server("/nonexistent/path/to/suppliers.db")

    response = client.get("/health/ready")

    assert response.status_code == 503
    data = response.get_json()
    assert data["reason"] == "database_file_not_found"
    assert "/nonexistent/path/to/suppliers.db" in data["db_path"]


def test_readiness_returns_503_on_database_error(client, tracker_db):
    db_path, _ = tracker_db
    initialize_health_server(db_path)

    conn = sqlite3.connect(str(db_path))
    conn.execute("DROP TABLE events")
    conn.commit()
    conn.close()

    response = client.get("/health/ready")

    assert response.status_code == 503
    data = response.get_json()
    assert data["reason"] == "database_operational_error"
    assert "error" in data


# =============================================================================
# Detailed Health Endpoint Tests
# =============================================================================


def test_detailed_health_includes_database_metrics(client, tracker_db):
    db_path, _ = tracker_db
    initialize_health_server(db_path)

    response = client.get("/health")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "healthy"
    assert data["service"] == "supplier-reliability"
    assert data["version"] == __version__
    assert data["database"]["status"] == "healthy"
    assert data["database"]["event_count"] == 4
    assert data["database"]["supplier_count"] == 2
    assert "size_mb" in data["database"]
    assert "suppliers" not in data


def test_detailed_health_includes_supplier_overview(client, tracker_db):
    db_path, tracker = tracker_db
    initialize_health_server(db_path, tracker=tracker)

    data = client.get("/health").get_json()

    assert data["suppliers"] == {
        "total": 2,
        "active": 1,
        "blacklisted": 1,
        "recent_incidents": 1,
        "poor_tier": 1,
    }


def test_detailed_health_degraded_when_not_initialized(client):
    response = client.get("/health")

    assert response.status_code == 503
    data = response.get_json()
    assert data["status"] == "degraded"
    assert data["database"]["status"] == "not_initialized"


def test_detailed_health_degraded_on_database_error(client, tracker_db):
    db_path, _ = tracker_db
    initialize_health_server(db_path)

    conn = sqlite3.connect(str(db_path))
    conn.execute("DROP TABLE events")
    conn.commit()
    conn.close()

    response = client.get("/health")

    assert response.status_code == 503
    data = response.get_json()
    assert data["status"] == "degraded"
    assert data["database"]["status"] == "unhealthy"

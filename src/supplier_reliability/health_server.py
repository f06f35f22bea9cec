"""
Health check HTTP server for liveness and readiness probes.

Reports whether the tracker's event database is reachable and, when a live
tracker is attached, a summary of the supplier base.
"""

import sqlite3
from pathlib import Path
from typing import Any

from flask import Flask, jsonify

from supplier_reliability import __version__
from supplier_reliability.kernel.logging import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

SERVICE_NAME = "supplier-reliability"

# Set by initialize_health_server()
_db_path: Path | None = None
_tracker: Any = None


def initialize_health_server(db_path: str | Path, tracker: Any = None) -> None:
    """
    Point the health server at a tracker database.

    Args:
        db_path: Path to the SQLite event database
        tracker: Optional SupplierTracker for the detailed /health report
    """
    global _db_path, _tracker
    _db_path = Path(db_path)
    _tracker = tracker
    logger.info("Health server initialized", db_path=str(_db_path))


def _count_events(db_path: Path) -> int:
    conn = sqlite3.connect(str(db_path), timeout=1.0)
    try:
        return conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
    finally:
        conn.close()


@app.route("/health/live", methods=["GET"])
def liveness() -> tuple[dict[str, Any], int]:
    """Liveness probe - the process is up."""
    return jsonify({"status": "alive", "service": SERVICE_NAME}), 200


@app.route("/health/ready", methods=["GET"])
def readiness() -> tuple[dict[str, Any], int]:
    """
    Readiness probe - the event database exists and answers a query.

    Returns:
        200 with the event count when ready, 503 otherwise
    """
    if _db_path is None:
        logger.error("Readiness check failed: DB path not initialized")
        return jsonify({"status": "not_ready", "reason": "database_path_not_initialized"}), 503

    if not _db_path.exists():
        logger.error("Readiness check failed: DB file does not exist", db_path=str(_db_path))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "database_file_not_found",
                    "db_path": str(_db_path),
                }
            ),
            503,
        )

    try:
        event_count = _count_events(_db_path)
    except sqlite3.Error as e:
        logger.error("Readiness check failed: DB error", error=str(e))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "database_operational_error",
                    "error": str(e),
                }
            ),
            503,
        )

    logger.debug("Readiness check passed", event_count=event_count)
    return jsonify({"status": "ready", "database": "accessible", "event_count": event_count}), 200


@app.route("/health", methods=["GET"])
def detailed_health() -> tuple[dict[str, Any], int]:
    """
    Detailed health - database statistics plus the tracker overview.

    Returns:
        200 when healthy, 503 when degraded
    """
    health_data: dict[str, Any] = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
    }

    if _db_path and _db_path.exists():
        try:
            conn = sqlite3.connect(str(_db_path), timeout=1.0)
            try:
                event_count = conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
                supplier_count = conn.execute(
                    "SELECT COUNT(DISTINCT stream_id) FROM events"
                ).fetchone()[0]
                page_count = conn.execute("PRAGMA page_count").fetchone()[0]
                page_size = conn.execute("PRAGMA page_size").fetchone()[0]
            finally:
                conn.close()

            health_data["database"] = {
                "status": "healthy",
                "path": str(_db_path),
                "event_count": event_count,
                "supplier_count": supplier_count,
                "size_mb": round(page_count * page_size / (1024 * 1024), 2),
            }
        except sqlite3.Error as e:
            logger.error("Database health check failed", error=str(e))
            health_data["database"] = {"status": "unhealthy", "error": str(e)}
            health_data["status"] = "degraded"
    else:
        health_data["database"] = {"status": "not_initialized"}
        health_data["status"] = "degraded"

    if _tracker is not None:
        overview = _tracker.get_overview()
        health_data["suppliers"] = {
            "total": overview.total_suppliers,
            "active": overview.active_suppliers,
            "blacklisted": overview.blacklisted_suppliers,
            "recent_incidents": overview.recent_incidents,
            "poor_tier": len(overview.tiers.poor),
        }

    status_code = 200 if health_data["status"] == "healthy" else 503
    return jsonify(health_data), status_code


def run_health_server(port: int = 8080, debug: bool = False) -> None:
    """
    Run the health check server.

    Args:
        port: Port to listen on (default: 8080)
        debug: Enable Flask debug mode (default: False)
    """
    logger.info("Starting health check server", port=port)
    app.run(host="0.0.0.0", port=port, debug=debug)

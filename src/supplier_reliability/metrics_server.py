"""
Prometheus metrics server for the supplier reliability tracker.

Serves the tracker's metrics at /metrics. With --db, the tracker state is
loaded first so the per-supplier score gauge starts populated.

Usage:
    python -m supplier_reliability.metrics_server --port 9090 --db suppliers.db
"""

import argparse
import time

from supplier_reliability.kernel.event_store import SQLiteEventStore
from supplier_reliability.kernel.logging import configure_logging, get_logger
from supplier_reliability.kernel.metrics import start_metrics_server, supplier_reliability_score
from supplier_reliability.tracker import SupplierTracker

logger = get_logger(__name__)


def publish_scores(tracker: SupplierTracker) -> int:
    """Set the score gauge for every tracked supplier; returns how many"""
    rankings = tracker.get_supplier_rankings()
    for entry in rankings:
        supplier_reliability_score.labels(supplier_id=entry.supplier_id).set(entry.score)
    return len(rankings)


def main() -> None:
    """Start the Prometheus metrics server."""
    parser = argparse.ArgumentParser(description="Supplier Reliability Metrics Server")
    parser.add_argument(
        "--port",
        type=int,
        default=9090,
        help="Port to listen on (default: 9090)",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Tracker database whose scores to publish",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs in JSON format (default: False)",
    )

    args = parser.parse_args()

    configure_logging(json_output=args.json_logs, log_level=args.log_level)

    if args.db:
        tracker = SupplierTracker(store=SQLiteEventStore(args.db))
        published = publish_scores(tracker)
        logger.info("Supplier scores published", suppliers=published, db_path=args.db)

    logger.info(
        "Starting Prometheus metrics server",
        port=args.port,
        endpoint=f"http://0.0.0.0:{args.port}/metrics",
    )
    start_metrics_server(port=args.port)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down metrics server")


if __name__ == "__main__":
    main()

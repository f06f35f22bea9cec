"""
Prometheus metrics for the supplier reliability tracker.

Provides observability into event intake, policy reactions and store writes.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram, start_http_server

# ============================================================================
# Event Store Metrics
# ============================================================================

events_appended_total = Counter(
    "supplier_tracker_events_appended_total",
    "Total number of events appended to the event store",
    ["event_type"],
)

events_loaded_total = Counter(
    "supplier_tracker_events_loaded_total",
    "Total number of events replayed from the event store",
)

# ============================================================================
# Intake Metrics
# ============================================================================

orders_tracked_total = Counter(
    "supplier_tracker_orders_tracked_total",
    "Total number of order outcomes tracked",
    ["outcome"],  # success, failure
)

incidents_reported_total = Counter(
    "supplier_tracker_incidents_reported_total",
    "Total number of supplier incidents reported",
    ["incident_type", "severity"],
)

# ============================================================================
# Policy Metrics
# ============================================================================

blacklist_transitions_total = Counter(
    "supplier_tracker_blacklist_transitions_total",
    "Blacklist registry transitions",
    ["transition", "severity"],  # transition: blacklisted, removed, expired
)

supplier_reliability_score = Gauge(
    "supplier_tracker_reliability_score",
    "Composite reliability score after the latest mutation",
    ["supplier_id"],
)

# ============================================================================
# Command Processing Metrics
# ============================================================================

command_duration_seconds = Histogram(
    "supplier_tracker_command_duration_seconds",
    "Duration of tracker commands in seconds",
    ["command_type"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

commands_processed_total = Counter(
    "supplier_tracker_commands_processed_total",
    "Total number of tracker commands processed",
    ["command_type", "status"],  # status: success, failure
)

P = ParamSpec("P")
R = TypeVar("R")


def track_command_duration(command_type: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to track command processing duration and outcome.

    Args:
        command_type: Label for the command, e.g. "track_order"
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                command_duration_seconds.labels(command_type=command_type).observe(
                    time.perf_counter() - start
                )
                commands_processed_total.labels(command_type=command_type, status=status).inc()

        return wrapper

    return decorator


def start_metrics_server(port: int = 9090) -> None:
    """Start Prometheus metrics HTTP server on the given port."""
    start_http_server(port)

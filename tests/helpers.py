"""
Test Helper Functions - Builders and synthetic data

Builders keep the scoring and projection tests readable; the simulator
feeds a tracker with a seeded random history of orders and incidents.
"""

import random
from datetime import datetime, timezone
from typing import Any

from supplier_reliability.kernel.events import Event, create_event
from supplier_reliability.kernel.ids import generate_id
from supplier_reliability.performance.models import (
    Incident,
    IncidentSeverity,
    IncidentType,
    SupplierMetrics,
)
from supplier_reliability.tracker import SupplierTracker

BASE_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_metrics(
    supplier_id: str = "s1",
    total_orders: int = 0,
    successful_orders: int | None = None,
    shipping_durations: list[float] | None = None,
    at: datetime = BASE_TIME,
    **counters: int,
) -> SupplierMetrics:
    """
    Builder for SupplierMetrics

    successful_orders defaults to total_orders; extra keyword arguments set
    incident counters (quality_incident_count=2, ...).
    """
    return SupplierMetrics(
        supplier_id=supplier_id,
        total_orders=total_orders,
        successful_orders=total_orders if successful_orders is None else successful_orders,
        shipping_durations=shipping_durations or [],
        first_seen=at,
        last_updated=at,
        **counters,
    )


def make_incident(
    supplier_id: str = "s1",
    type: IncidentType = IncidentType.QUALITY_ISSUE,
    severity: IncidentSeverity = IncidentSeverity.MEDIUM,
    impact: int = 5,
    reported_at: datetime = BASE_TIME,
    order_id: str = "o-1",
) -> Incident:
    """Builder for Incident with a fresh id"""
    return Incident(
        incident_id=generate_id(),
        supplier_id=supplier_id,
        order_id=order_id,
        type=type,
        severity=severity,
        description="test incident",
        impact=impact,
        reported_at=reported_at,
    )


def make_event(
    event_type: str,
    payload: dict[str, Any],
    stream_id: str = "s1",
    version: int = 1,
    occurred_at: datetime = BASE_TIME,
    command_id: str | None = None,
) -> Event:
    """Builder for kernel events with a JSON-safe payload"""
    return create_event(
        event_id=generate_id(),
        stream_id=stream_id,
        event_type=event_type,
        occurred_at=occurred_at,
        command_id=command_id or generate_id(),
        version=version,
        actor_id="test",
        payload=payload,
    )


INCIDENT_TYPES = [t.value for t in IncidentType]
SIMULATED_SEVERITIES = ["low", "medium", "high"]


def simulate_supplier_history(
    tracker: SupplierTracker,
    supplier_id: str,
    seed: int = 0,
    order_count: int | None = None,
    success_rate: float | None = None,
    max_incidents: int = 10,
    max_impact: int = 7,
) -> dict[str, int]:
    """
    Feed a tracker with a seeded synthetic order and incident history

    Orders succeed with a rate between 70% and 100% and ship in 3 to 10
    days. Incidents get a random type, a low to high severity and an impact
    up to max_impact (below the default auto-blacklist impact).

    Returns:
        Counts of what was generated: orders, successes, incidents
    """
    rng = random.Random(seed)
    orders = order_count if order_count is not None else 50 + rng.randrange(100)
    rate = success_rate if success_rate is not None else 0.7 + rng.random() * 0.3

    successes = 0
    for i in range(orders):
        success = rng.random() < rate
        successes += success
        tracker.track_order(
            supplier_id,
            f"sim-order-{seed}-{i}",
            success,
            shipping_days=3 + rng.random() * 7 if success else None,
        )

    incidents = rng.randrange(max_incidents + 1)
    for i in range(incidents):
        tracker.report_incident(
            supplier_id,
            f"sim-incident-{seed}-{i}",
            rng.choice(INCIDENT_TYPES),
            rng.choice(SIMULATED_SEVERITIES),
            "simulated incident",
            1 + rng.randrange(max_impact),
        )

    return {"orders": orders, "successes": successes, "incidents": incidents}


def record_good_orders(
    tracker: SupplierTracker,
    supplier_id: str,
    count: int,
    shipping_days: float = 3.0,
) -> None:
    """Track `count` successful, on-time orders"""
    for i in range(count):
        tracker.track_order(supplier_id, f"{supplier_id}-o{i}", True, shipping_days=shipping_days)

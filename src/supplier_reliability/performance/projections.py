"""
Supplier Performance Projections

Read models rebuilt from the event log: the metrics store, the incident
ledger and the blacklist registry. Each one only understands the event types
it cares about and ignores the rest, so the facade can feed every event to
every projection.
"""

from datetime import datetime

from supplier_reliability.kernel.events import Event
from supplier_reliability.kernel.time import ensure_utc
from supplier_reliability.performance.events import (
    BlacklistExpired,
    OrderTracked,
    SupplierBlacklisted,
    SupplierBlacklistRemoved,
)
from supplier_reliability.performance.models import (
    INCIDENT_COUNTERS,
    BlacklistEntry,
    Incident,
    SupplierMetrics,
)


def apply_to_metrics(
    metrics: SupplierMetrics | None,
    event: Event,
    shipping_window_size: int,
) -> SupplierMetrics | None:
    """
    Fold one event into a supplier's metrics without mutating the input

    Metrics are created lazily by the first order or incident. Blacklist
    events leave metrics untouched, so an admin can blacklist a supplier
    that never shipped anything without it appearing in rankings.

    Args:
        metrics: Current metrics (None if the supplier is unknown)
        event: Event to fold in
        shipping_window_size: Number of shipping samples to retain

    Returns:
        The updated metrics, or the input if the event doesn't affect them
    """
    if event.event_type == "OrderTracked":
        payload = OrderTracked.model_validate(event.payload)
        base = metrics or _new_metrics(payload.supplier_id, payload.tracked_at)
        durations = list(base.shipping_durations)
        if payload.success and payload.shipping_days is not None:
            durations.append(payload.shipping_days)
            durations = durations[-shipping_window_size:]
        return base.model_copy(
            update={
                "total_orders": base.total_orders + 1,
                "successful_orders": base.successful_orders + (1 if payload.success else 0),
                "shipping_durations": durations,
                "last_updated": payload.tracked_at,
            }
        )

    if event.event_type == "IncidentReported":
        incident = Incident.model_validate(event.payload)
        base = metrics or _new_metrics(incident.supplier_id, incident.reported_at)
        counter = INCIDENT_COUNTERS[incident.type]
        return base.model_copy(
            update={
                counter: getattr(base, counter) + 1,
                "last_updated": incident.reported_at,
            }
        )

    return metrics


def _new_metrics(supplier_id: str, seen_at: datetime) -> SupplierMetrics:
    return SupplierMetrics(supplier_id=supplier_id, first_seen=seen_at, last_updated=seen_at)


class MetricsStore:
    """
    Metrics projection

    One SupplierMetrics per supplier ever seen in an order or incident.
    Rebuilt from OrderTracked and IncidentReported events.
    """

    def __init__(self, shipping_window_size: int = 100) -> None:
        self.metrics: dict[str, SupplierMetrics] = {}
        self.shipping_window_size = shipping_window_size

    def apply_event(self, event: Event) -> None:
        current = self.metrics.get(event.stream_id)
        updated = apply_to_metrics(current, event, self.shipping_window_size)
        if updated is not None:
            self.metrics[updated.supplier_id] = updated

    def preview(self, supplier_id: str, events: list[Event]) -> SupplierMetrics | None:
        """
        Metrics as they would be after the given events, leaving the store as is

        The policy engine judges a mutation against this preview so the
        mutation and its blacklist reaction can be persisted together.
        """
        metrics = self.metrics.get(supplier_id)
        for event in events:
            if event.stream_id == supplier_id:
                metrics = apply_to_metrics(metrics, event, self.shipping_window_size)
        return metrics

    def get(self, supplier_id: str) -> SupplierMetrics | None:
        return self.metrics.get(supplier_id)

    def list_all(self) -> list[SupplierMetrics]:
        return list(self.metrics.values())

    def __contains__(self, supplier_id: object) -> bool:
        return supplier_id in self.metrics

    def __len__(self) -> int:
        return len(self.metrics)


class IncidentLedger:
    """
    Incident projection

    Append-only list of every incident ever reported, plus a per-supplier
    index over the same objects. Entries are never mutated or deleted;
    recency is applied at query time.
    """

    def __init__(self) -> None:
        self.incidents: list[Incident] = []
        self._by_supplier: dict[str, list[Incident]] = {}

    def apply_event(self, event: Event) -> None:
        if event.event_type == "IncidentReported":
            incident = Incident.model_validate(event.payload)
            self.incidents.append(incident)
            self._by_supplier.setdefault(incident.supplier_id, []).append(incident)

    def for_supplier(self, supplier_id: str) -> list[Incident]:
        """All incidents of a supplier in report order"""
        return list(self._by_supplier.get(supplier_id, []))

    def preview(self, supplier_id: str, events: list[Event]) -> list[Incident]:
        """The supplier's incidents including any reported by the given events"""
        pending = [
            Incident.model_validate(e.payload)
            for e in events
            if e.event_type == "IncidentReported" and e.stream_id == supplier_id
        ]
        return self.for_supplier(supplier_id) + pending

    def recent(self, since: datetime, supplier_id: str | None = None) -> list[Incident]:
        """
        Incidents reported at or after since, newest first

        Incidents sharing a timestamp come back in reverse report order.
        """
        since = ensure_utc(since)
        source = self.incidents if supplier_id is None else self._by_supplier.get(supplier_id, [])
        matches = [i for i in reversed(source) if ensure_utc(i.reported_at) >= since]
        matches.sort(key=lambda i: ensure_utc(i.reported_at), reverse=True)
        return matches

    def count_since(self, since: datetime) -> int:
        since = ensure_utc(since)
        return sum(1 for i in self.incidents if ensure_utc(i.reported_at) >= since)

    def __len__(self) -> int:
        return len(self.incidents)


class BlacklistRegistry:
    """
    Blacklist projection

    At most one active entry per supplier. Also remembers how many times
    each supplier was blacklisted automatically, which decides when an
    automatic blacklisting becomes permanent. Removal and expiry drop the
    entry but keep that count.
    """

    def __init__(self) -> None:
        self.entries: dict[str, BlacklistEntry] = {}
        self.auto_blacklist_counts: dict[str, int] = {}

    def apply_event(self, event: Event) -> None:
        if event.event_type == "SupplierBlacklisted":
            payload = SupplierBlacklisted.model_validate(event.payload)
            self.entries[payload.supplier_id] = BlacklistEntry(
                supplier_id=payload.supplier_id,
                reason=payload.reason,
                severity=payload.severity,
                blacklisted_at=payload.blacklisted_at,
                blacklisted_by=payload.blacklisted_by,
                expires_at=payload.expires_at,
                automatic=payload.automatic,
            )
            if payload.automatic:
                self.auto_blacklist_counts[payload.supplier_id] = (
                    self.auto_blacklist_counts.get(payload.supplier_id, 0) + 1
                )
        elif event.event_type == "SupplierBlacklistRemoved":
            removed = SupplierBlacklistRemoved.model_validate(event.payload)
            self.entries.pop(removed.supplier_id, None)
        elif event.event_type == "BlacklistExpired":
            expired = BlacklistExpired.model_validate(event.payload)
            self.entries.pop(expired.supplier_id, None)

    def get(self, supplier_id: str) -> BlacklistEntry | None:
        """Stored entry for a supplier, without applying expiry"""
        return self.entries.get(supplier_id)

    def expired(self, now: datetime) -> list[BlacklistEntry]:
        """Entries whose expiry has passed but which are still stored"""
        now = ensure_utc(now)
        return [
            entry
            for entry in self.entries.values()
            if entry.expires_at is not None and now > ensure_utc(entry.expires_at)
        ]

    def active_entries(self) -> list[BlacklistEntry]:
        """Stored entries ordered by blacklisting time"""
        return sorted(self.entries.values(), key=lambda e: ensure_utc(e.blacklisted_at))

    def auto_blacklist_count(self, supplier_id: str) -> int:
        return self.auto_blacklist_counts.get(supplier_id, 0)

    def __contains__(self, supplier_id: object) -> bool:
        return supplier_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

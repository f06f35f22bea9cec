"""
Tests for the metrics store, incident ledger and blacklist registry projections
"""

from datetime import timedelta

from supplier_reliability.performance.events import (
    BlacklistExpired,
    IncidentReported,
    OrderTracked,
    SupplierBlacklisted,
    SupplierBlacklistRemoved,
)
from supplier_reliability.performance.models import (
    BlacklistSeverity,
    IncidentSeverity,
    IncidentType,
)
from supplier_reliability.performance.projections import (
    BlacklistRegistry,
    IncidentLedger,
    MetricsStore,
)
from tests.helpers import BASE_TIME, make_event


def _order(supplier_id: str, version: int, success: bool, shipping_days=None, at=BASE_TIME):
    payload = OrderTracked(
        supplier_id=supplier_id,
        order_id=f"o-{version}",
        success=success,
        shipping_days=shipping_days,
        tracked_at=at,
    ).model_dump(mode="json")
    return make_event("OrderTracked", payload, stream_id=supplier_id, version=version)


def _incident(
    supplier_id: str,
    version: int,
    type: IncidentType = IncidentType.LATE_SHIPPING,
    at=BASE_TIME,
):
    payload = IncidentReported(
        incident_id=f"inc-{supplier_id}-{version}",
        supplier_id=supplier_id,
        order_id=f"o-{version}",
        type=type,
        severity=IncidentSeverity.LOW,
        impact=2,
        reported_at=at,
    ).model_dump(mode="json")
    return make_event("IncidentReported", payload, stream_id=supplier_id, version=version)


def _blacklisted(supplier_id: str, version: int, automatic: bool = False, expires_at=None):
    payload = SupplierBlacklisted(
        supplier_id=supplier_id,
        reason="test",
        severity=BlacklistSeverity.SUSPENSION if expires_at else BlacklistSeverity.WARNING,
        blacklisted_at=BASE_TIME,
        blacklisted_by="system" if automatic else "admin",
        expires_at=expires_at,
        automatic=automatic,
    ).model_dump(mode="json")
    return make_event("SupplierBlacklisted", payload, stream_id=supplier_id, version=version)


# =============================================================================
# MetricsStore
# =============================================================================


def test_metrics_created_lazily_by_first_order(metrics_store: MetricsStore) -> None:
    assert metrics_store.get("s1") is None

    metrics_store.apply_event(_order("s1", 1, True, 4.0))

    metrics = metrics_store.get("s1")
    assert metrics.total_orders == 1
    assert metrics.successful_orders == 1
    assert metrics.shipping_durations == [4.0]
    assert metrics.first_seen == BASE_TIME


def test_failed_order_counts_without_shipping_sample(metrics_store: MetricsStore) -> None:
    metrics_store.apply_event(_order("s1", 1, False))

    metrics = metrics_store.get("s1")
    assert metrics.total_orders == 1
    assert metrics.successful_orders == 0
    assert metrics.shipping_durations == []


def test_shipping_window_keeps_most_recent_samples() -> None:
    store = MetricsStore(shipping_window_size=3)
    for version, days in enumerate([1.0, 2.0, 3.0, 4.0, 5.0], start=1):
        store.apply_event(_order("s1", version, True, days))

    assert store.get("s1").shipping_durations == [3.0, 4.0, 5.0]
    assert store.get("s1").total_orders == 5


def test_incident_increments_matching_counter(metrics_store: MetricsStore) -> None:
    metrics_store.apply_event(_incident("s1", 1, IncidentType.OUT_OF_STOCK))
    metrics_store.apply_event(_incident("s1", 2, IncidentType.PRICE_CHANGE))

    metrics = metrics_store.get("s1")
    assert metrics.stockout_count == 1
    assert metrics.price_change_count == 1
    assert metrics.total_incidents == 2
    assert metrics.total_orders == 0


def test_blacklist_events_do_not_create_metrics(metrics_store: MetricsStore) -> None:
    metrics_store.apply_event(_blacklisted("s1", 1))

    assert "s1" not in metrics_store


def test_preview_leaves_store_untouched(metrics_store: MetricsStore) -> None:
    metrics_store.apply_event(_order("s1", 1, True, 3.0))

    preview = metrics_store.preview("s1", [_order("s1", 2, False), _order("other", 1, True)])

    assert preview.total_orders == 2
    assert metrics_store.get("s1").total_orders == 1
    assert "other" not in metrics_store


def test_last_updated_follows_latest_event(metrics_store: MetricsStore) -> None:
    later = BASE_TIME + timedelta(days=3)
    metrics_store.apply_event(_order("s1", 1, True, 3.0))
    metrics_store.apply_event(_incident("s1", 2, at=later))

    metrics = metrics_store.get("s1")
    assert metrics.first_seen == BASE_TIME
    assert metrics.last_updated == later


# =============================================================================
# IncidentLedger
# =============================================================================


def test_recent_incidents_newest_first(incident_ledger: IncidentLedger) -> None:
    for day, version in [(10, 1), (1, 2), (5, 3)]:
        incident_ledger.apply_event(_incident("s1", version, at=BASE_TIME - timedelta(days=day)))

    recent = incident_ledger.recent(BASE_TIME - timedelta(days=7))

    assert [i.incident_id for i in recent] == ["inc-s1-2", "inc-s1-3"]


def test_recent_incidents_filter_by_supplier(incident_ledger: IncidentLedger) -> None:
    incident_ledger.apply_event(_incident("s1", 1))
    incident_ledger.apply_event(_incident("s2", 1))

    recent = incident_ledger.recent(BASE_TIME - timedelta(days=1), supplier_id="s2")

    assert [i.supplier_id for i in recent] == ["s2"]


def test_same_timestamp_incidents_newest_report_first(incident_ledger: IncidentLedger) -> None:
    incident_ledger.apply_event(_incident("s1", 1))
    incident_ledger.apply_event(_incident("s1", 2))

    recent = incident_ledger.recent(BASE_TIME)

    assert [i.incident_id for i in recent] == ["inc-s1-2", "inc-s1-1"]


def test_ledger_preview_appends_pending_incidents(incident_ledger: IncidentLedger) -> None:
    incident_ledger.apply_event(_incident("s1", 1))

    preview = incident_ledger.preview("s1", [_incident("s1", 2), _order("s1", 3, True)])

    assert [i.incident_id for i in preview] == ["inc-s1-1", "inc-s1-2"]
    assert len(incident_ledger) == 1


def test_supplier_index_after_replay() -> None:
    history = [_incident("s1", 1), _incident("s2", 1), _order("s1", 2, True), _incident("s1", 3)]
    ledger = IncidentLedger()
    for event in history:
        ledger.apply_event(event)

    assert [i.incident_id for i in ledger.for_supplier("s1")] == ["inc-s1-1", "inc-s1-3"]
    assert [i.incident_id for i in ledger.for_supplier("s2")] == ["inc-s2-1"]
    assert ledger.for_supplier("s3") == []
    assert ledger.preview("s3", [_incident("s3", 1)])[0].incident_id == "inc-s3-1"
    assert len(ledger) == 3


def test_for_supplier_returns_a_copy(incident_ledger: IncidentLedger) -> None:
    incident_ledger.apply_event(_incident("s1", 1))

    incident_ledger.for_supplier("s1").clear()

    assert len(incident_ledger.for_supplier("s1")) == 1


# =============================================================================
# BlacklistRegistry
# =============================================================================


def test_blacklist_and_remove(blacklist_registry: BlacklistRegistry) -> None:
    blacklist_registry.apply_event(_blacklisted("s1", 1))
    assert blacklist_registry.get("s1").severity == BlacklistSeverity.WARNING

    removed = SupplierBlacklistRemoved(
        supplier_id="s1",
        removed_at=BASE_TIME,
        removed_by="admin",
        previous_severity=BlacklistSeverity.WARNING,
    ).model_dump(mode="json")
    blacklist_registry.apply_event(make_event("SupplierBlacklistRemoved", removed, version=2))

    assert blacklist_registry.get("s1") is None


def test_auto_blacklist_count_survives_expiry(blacklist_registry: BlacklistRegistry) -> None:
    expires = BASE_TIME + timedelta(days=30)
    blacklist_registry.apply_event(_blacklisted("s1", 1, automatic=True, expires_at=expires))

    expired = BlacklistExpired(
        supplier_id="s1",
        expired_at=expires + timedelta(seconds=1),
        expires_at=expires,
        severity=BlacklistSeverity.SUSPENSION,
    ).model_dump(mode="json")
    blacklist_registry.apply_event(make_event("BlacklistExpired", expired, version=2))

    assert "s1" not in blacklist_registry
    assert blacklist_registry.auto_blacklist_count("s1") == 1


def test_admin_entries_do_not_count_as_automatic(blacklist_registry: BlacklistRegistry) -> None:
    blacklist_registry.apply_event(_blacklisted("s1", 1))

    assert blacklist_registry.auto_blacklist_count("s1") == 0


def test_expired_lists_only_lapsed_entries(blacklist_registry: BlacklistRegistry) -> None:
    expires = BASE_TIME + timedelta(days=30)
    blacklist_registry.apply_event(_blacklisted("s1", 1, automatic=True, expires_at=expires))
    blacklist_registry.apply_event(_blacklisted("s2", 1))

    assert blacklist_registry.expired(expires) == []
    assert [e.supplier_id for e in blacklist_registry.expired(expires + timedelta(seconds=1))] == [
        "s1"
    ]

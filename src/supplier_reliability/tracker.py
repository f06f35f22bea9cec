"""
SupplierTracker - main facade

The single entry point the storefront talks to. It owns the event store and
the three projections, runs the command handlers and the policy engine, and
answers every query through the scoring engine.

Example:
    >>> from supplier_reliability import SupplierTracker
    >>> tracker = SupplierTracker()
    >>> tracker.track_order("spocket_luxe_home_us", "o-1", True, shipping_days=4)
    >>> tracker.report_incident(
    ...     "spocket_luxe_home_us", "o-2", "late_shipping", "low", "two days late", 3
    ... )
    >>> tracker.calculate_overall_score("spocket_luxe_home_us")
    >>> tracker.get_active_suppliers()
"""

import threading
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from supplier_reliability.kernel.errors import NotFoundError, from_pydantic
from supplier_reliability.kernel.event_store import EventStore, InMemoryEventStore
from supplier_reliability.kernel.events import Event
from supplier_reliability.kernel.ids import generate_id
from supplier_reliability.kernel.logging import LogOperation, get_logger
from supplier_reliability.kernel.metrics import (
    blacklist_transitions_total,
    incidents_reported_total,
    orders_tracked_total,
    supplier_reliability_score,
    track_command_duration,
)
from supplier_reliability.kernel.policy import TrackerPolicy
from supplier_reliability.kernel.time import RealTimeProvider, TimeProvider
from supplier_reliability.performance import curation, intake, invariants, scoring
from supplier_reliability.performance.commands import (
    BlacklistSupplier,
    RemoveFromBlacklist,
    ReportIncident,
    TrackOrder,
)
from supplier_reliability.performance.handlers import PerformanceCommandHandlers
from supplier_reliability.performance.models import (
    BlacklistEntry,
    Incident,
    IncidentSeverity,
    IncidentType,
    RankingEntry,
    SupplierReport,
    SupplierStatus,
    SupplierTier,
    SupplierTiers,
    TrackerOverview,
)
from supplier_reliability.performance.projections import (
    BlacklistRegistry,
    IncidentLedger,
    MetricsStore,
)

logger = get_logger(__name__)

C = TypeVar("C", bound=BaseModel)

OVERVIEW_INCIDENT_DAYS = 7
TOP_PERFORMERS = 5


def _build_command(command_cls: type[C], **fields: Any) -> C:
    """Build an input model, translating pydantic failures into ValidationError"""
    try:
        return command_cls(**fields)
    except PydanticValidationError as e:
        raise from_pydantic(e, command_cls.__name__) from e


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


class SupplierTracker:
    """
    Supplier performance and reliability tracker

    - Order outcomes and incidents update per-supplier metrics
    - Scores, tiers and rankings are computed on demand
    - The policy engine blacklists suppliers inside the mutation that
      breached policy
    - Expired blacklist entries are dropped lazily when next looked at

    All public methods hold one re-entrant lock, so concurrent callers
    always see a consistent snapshot.
    """

    def __init__(
        self,
        store: EventStore | None = None,
        policy: TrackerPolicy | None = None,
        time_provider: TimeProvider | None = None,
    ) -> None:
        """
        Initialize the tracker and rebuild its state from the store

        Args:
            store: Event store (in-memory if None; SQLiteEventStore for durability)
            policy: Scoring and blacklist policy (defaults if None)
            time_provider: Clock (real time if None)
        """
        self.event_store = store if store is not None else InMemoryEventStore()
        self.policy = policy or TrackerPolicy()
        self.time_provider = time_provider or RealTimeProvider()

        self.handlers = PerformanceCommandHandlers(self.time_provider, self.policy)

        self.metrics_store = MetricsStore(self.policy.shipping_window_size)
        self.incident_ledger = IncidentLedger()
        self.blacklist_registry = BlacklistRegistry()
        self._versions: dict[str, int] = {}

        self._lock = threading.RLock()

        self._rebuild_projections()

    def _rebuild_projections(self) -> None:
        """Replay every stored event in append order"""
        all_events = self.event_store.load_all_events()
        for event in all_events:
            self._apply(event)
        logger.info(
            "Tracker state rebuilt",
            events=len(all_events),
            suppliers=len(self.metrics_store),
            blacklisted=len(self.blacklist_registry),
        )

    def _apply(self, event: Event) -> None:
        self.metrics_store.apply_event(event)
        self.incident_ledger.apply_event(event)
        self.blacklist_registry.apply_event(event)
        self._versions[event.stream_id] = event.version

    def _commit(self, events: list[Event]) -> list[Event]:
        """Append one supplier's batch in a single transaction, then apply it"""
        if not events:
            return []

        stream_id = events[0].stream_id
        stored = self.event_store.append(stream_id, self._versions.get(stream_id, 0), events)
        for event in stored:
            self._apply(event)
            self._observe(event)
        return stored

    def _observe(self, event: Event) -> None:
        payload = event.payload
        if event.event_type == "OrderTracked":
            outcome = "success" if payload["success"] else "failure"
            orders_tracked_total.labels(outcome=outcome).inc()
        elif event.event_type == "IncidentReported":
            incidents_reported_total.labels(
                incident_type=payload["type"], severity=payload["severity"]
            ).inc()
        elif event.event_type == "SupplierBlacklisted":
            blacklist_transitions_total.labels(
                transition="blacklisted", severity=payload["severity"]
            ).inc()
            logger.warning(
                "Supplier blacklisted",
                supplier_id=event.stream_id,
                severity=payload["severity"],
                reason=payload["reason"],
                automatic=payload["automatic"],
                trigger=payload.get("trigger"),
                score=payload.get("score"),
                expires_at=payload.get("expires_at"),
            )
        elif event.event_type == "SupplierBlacklistRemoved":
            blacklist_transitions_total.labels(
                transition="removed", severity=payload["previous_severity"]
            ).inc()
            logger.warning(
                "Supplier removed from blacklist",
                supplier_id=event.stream_id,
                removed_by=payload["removed_by"],
            )
        elif event.event_type == "BlacklistExpired":
            blacklist_transitions_total.labels(
                transition="expired", severity=payload["severity"]
            ).inc()
            logger.info("Blacklist entry expired", supplier_id=event.stream_id)

    def _now(self) -> datetime:
        return self.time_provider.now()

    def _expire(self, supplier_id: str) -> None:
        self._commit(
            self.handlers.handle_expire_blacklist(
                supplier_id,
                generate_id(),
                self._versions.get(supplier_id, 0),
                self.blacklist_registry,
            )
        )

    def _sweep_expired(self) -> None:
        for entry in self.blacklist_registry.expired(self._now()):
            self._expire(entry.supplier_id)

    def _score(self, supplier_id: str) -> int | None:
        metrics = self.metrics_store.get(supplier_id)
        if metrics is None:
            return None
        return scoring.calculate_overall_score(
            metrics,
            self.incident_ledger.for_supplier(supplier_id),
            self.policy,
            self._now(),
        )

    def _publish_score(self, supplier_id: str) -> None:
        score = self._score(supplier_id)
        if score is not None:
            supplier_reliability_score.labels(supplier_id=supplier_id).set(score)

    # ========================================================================
    # Intake
    # ========================================================================

    @track_command_duration("track_order")
    def track_order(
        self,
        supplier_id: str,
        order_id: str,
        success: bool,
        shipping_days: float | None = None,
        actor_id: str = "storefront",
    ) -> None:
        """
        Record an order outcome for a supplier

        Unknown suppliers are created on first sight. The same order id may
        be tracked more than once; each call counts.

        Raises:
            ValidationError: Empty ids or non-positive shipping_days
        """
        with self._lock, LogOperation(
            logger, "track_order", supplier_id=supplier_id, order_id=order_id, success=success
        ):
            command = _build_command(
                TrackOrder,
                supplier_id=supplier_id,
                order_id=order_id,
                success=success,
                shipping_days=shipping_days,
            )
            self._commit(
                self.handlers.handle_track_order(
                    command,
                    generate_id(),
                    actor_id,
                    self._versions.get(command.supplier_id, 0),
                    self.metrics_store,
                    self.incident_ledger,
                    self.blacklist_registry,
                )
            )
            self._publish_score(command.supplier_id)

    @track_command_duration("report_incident")
    def report_incident(
        self,
        supplier_id: str,
        order_id: str,
        type: IncidentType | str,
        severity: IncidentSeverity | str,
        description: str,
        impact: int,
        actor_id: str = "storefront",
    ) -> str:
        """
        Append an incident and re-evaluate the supplier

        Args:
            supplier_id: Supplier the incident is attributed to
            order_id: Related order
            type: One of the IncidentType values
            severity: low, medium, high or critical
            description: Free-text description
            impact: Weight from 1 to 10

        Returns:
            The new incident's id

        Raises:
            ValidationError: Unknown type or severity, impact outside 1-10,
                empty ids. Nothing is recorded.
        """
        with self._lock, LogOperation(
            logger,
            "report_incident",
            supplier_id=supplier_id,
            order_id=order_id,
            incident_type=_label(type),
            severity=_label(severity),
            impact=impact,
        ):
            command = _build_command(
                ReportIncident,
                supplier_id=supplier_id,
                order_id=order_id,
                type=type,
                severity=severity,
                description=description,
                impact=impact,
            )
            stored = self._commit(
                self.handlers.handle_report_incident(
                    command,
                    generate_id(),
                    actor_id,
                    self._versions.get(command.supplier_id, 0),
                    self.metrics_store,
                    self.incident_ledger,
                    self.blacklist_registry,
                )
            )
            self._publish_score(command.supplier_id)
            return next(
                e.payload["incident_id"] for e in stored if e.event_type == "IncidentReported"
            )

    def get_recent_incidents(
        self, supplier_id: str | None = None, days: float = 30
    ) -> list[Incident]:
        """
        Incidents from the last `days` days, newest first

        A window reaching past the earliest representable date returns
        every incident.

        Raises:
            ValidationError: If days is negative or not finite
        """
        invariants.validate_lookback_days(days)
        with self._lock:
            try:
                since = self._now() - timedelta(days=days)
            except OverflowError:
                since = datetime.min.replace(tzinfo=timezone.utc)
            return self.incident_ledger.recent(since, supplier_id)

    @track_command_duration("track_return")
    def track_return(
        self,
        supplier_id: str,
        order_id: str,
        return_reason: str,
        description: str = "",
        actor_id: str = "storefront",
    ) -> str | None:
        """
        Record a returned order

        Every return counts as a failed order. Returns that are the
        supplier's fault (defective, not as described, wrong item) also
        report a quality incident, stored in the same transaction as the
        failed order.

        Returns:
            The quality incident's id, or None for customer-side returns
        """
        with self._lock, LogOperation(
            logger,
            "track_return",
            supplier_id=supplier_id,
            order_id=order_id,
            return_reason=return_reason,
        ):
            fault = intake.incident_for_return(return_reason)
            order = _build_command(
                TrackOrder, supplier_id=supplier_id, order_id=order_id, success=False
            )
            incident_command = None
            if fault is not None:
                severity, impact = fault
                incident_command = _build_command(
                    ReportIncident,
                    supplier_id=supplier_id,
                    order_id=order_id,
                    type=IncidentType.QUALITY_ISSUE,
                    severity=severity,
                    description=intake.return_description(return_reason, description),
                    impact=impact,
                )

            stored = self._commit(
                self.handlers.handle_track_return(
                    order,
                    incident_command,
                    generate_id(),
                    actor_id,
                    self._versions.get(order.supplier_id, 0),
                    self.metrics_store,
                    self.incident_ledger,
                    self.blacklist_registry,
                )
            )
            self._publish_score(order.supplier_id)
            return next(
                (e.payload["incident_id"] for e in stored if e.event_type == "IncidentReported"),
                None,
            )

    def report_quality_issue(
        self,
        supplier_id: str,
        order_id: str,
        issue_type: str,
        description: str,
        severity: str = "medium",
    ) -> str:
        """Customer quality report; impact follows from severity"""
        impact = intake.quality_issue_impact(severity)
        return self.report_incident(
            supplier_id,
            order_id,
            IncidentType.QUALITY_ISSUE,
            severity,
            intake.quality_issue_description(issue_type, description),
            impact,
        )

    # ========================================================================
    # Blacklist
    # ========================================================================

    @track_command_duration("blacklist_supplier")
    def blacklist_supplier(
        self,
        supplier_id: str,
        reason: str,
        severity: str = "warning",
        expires_at: datetime | None = None,
        blacklisted_by: str = "admin",
    ) -> BlacklistEntry:
        """
        Blacklist a supplier, replacing any active entry

        Raises:
            ValidationError: Empty supplier id or reason, unknown severity,
                or a permanent entry with an expiry
        """
        with self._lock, LogOperation(
            logger,
            "blacklist_supplier",
            supplier_id=supplier_id,
            severity=_label(severity),
            blacklisted_by=blacklisted_by,
        ):
            command = _build_command(
                BlacklistSupplier,
                supplier_id=supplier_id,
                reason=reason,
                severity=severity,
                expires_at=expires_at,
                blacklisted_by=blacklisted_by,
            )
            self._commit(
                self.handlers.handle_blacklist_supplier(
                    command, generate_id(), self._versions.get(command.supplier_id, 0)
                )
            )
            return self.blacklist_registry.get(command.supplier_id)

    @track_command_duration("remove_from_blacklist")
    def remove_from_blacklist(self, supplier_id: str, actor_id: str = "admin") -> bool:
        """
        Lift a supplier's blacklist entry

        Returns:
            True if an active entry was removed, False otherwise
        """
        with self._lock, LogOperation(logger, "remove_from_blacklist", supplier_id=supplier_id):
            command = _build_command(RemoveFromBlacklist, supplier_id=supplier_id)
            stored = self._commit(
                self.handlers.handle_remove_from_blacklist(
                    command,
                    generate_id(),
                    actor_id,
                    self._versions.get(command.supplier_id, 0),
                    self.blacklist_registry,
                )
            )
            return any(e.event_type == "SupplierBlacklistRemoved" for e in stored)

    def is_blacklisted(self, supplier_id: str) -> BlacklistEntry | None:
        """The supplier's active entry, after dropping it if it has expired"""
        with self._lock:
            self._expire(supplier_id)
            return self.blacklist_registry.get(supplier_id)

    def list_blacklist_entries(self) -> list[BlacklistEntry]:
        """All active entries, oldest first"""
        with self._lock:
            self._sweep_expired()
            return self.blacklist_registry.active_entries()

    # ========================================================================
    # Queries
    # ========================================================================

    def calculate_overall_score(self, supplier_id: str) -> int | None:
        """Composite 0-100 score, or None for a supplier never seen"""
        with self._lock:
            return self._score(supplier_id)

    def get_supplier_report(self, supplier_id: str) -> SupplierReport | None:
        """Full snapshot of a supplier, or None if it never had an order or incident"""
        with self._lock:
            metrics = self.metrics_store.get(supplier_id)
            if metrics is None:
                return None

            self._expire(supplier_id)
            now = self._now()
            incidents = self.incident_ledger.for_supplier(supplier_id)
            sub_scores = scoring.calculate_sub_scores(metrics, incidents, self.policy, now)
            score = scoring.calculate_overall_score(metrics, incidents, self.policy, now)
            entry = self.blacklist_registry.get(supplier_id)
            window_start = now - timedelta(days=self.policy.incident_window_days)

            return SupplierReport(
                supplier_id=supplier_id,
                total_orders=metrics.total_orders,
                successful_orders=metrics.successful_orders,
                quality_incident_count=metrics.quality_incident_count,
                late_shipment_count=metrics.late_shipment_count,
                stockout_count=metrics.stockout_count,
                communication_issue_count=metrics.communication_issue_count,
                price_change_count=metrics.price_change_count,
                average_shipping_days=scoring.average_shipping_days(metrics),
                success_rate=sub_scores.success_rate,
                on_time_delivery=sub_scores.on_time,
                quality_score=sub_scores.quality,
                customer_satisfaction=sub_scores.satisfaction,
                overall_score=score,
                tier=scoring.classify_tier(score, self.policy),
                status=self._status(score, entry),
                recent_incident_count=len(
                    self.incident_ledger.recent(window_start, supplier_id)
                ),
                blacklist=entry,
                first_seen=metrics.first_seen,
                last_updated=metrics.last_updated,
            )

    def require_supplier_report(self, supplier_id: str) -> SupplierReport:
        """
        Like get_supplier_report, for callers that treat an unknown supplier as an error

        Raises:
            NotFoundError: If the supplier was never seen
        """
        report = self.get_supplier_report(supplier_id)
        if report is None:
            raise NotFoundError(supplier_id)
        return report

    def _status(self, score: int | None, entry: BlacklistEntry | None) -> SupplierStatus:
        if entry is not None:
            return SupplierStatus.BLACKLISTED
        if score is not None and score < self.policy.watch_score_threshold:
            return SupplierStatus.WATCH
        return SupplierStatus.ACTIVE

    def get_supplier_status(self, supplier_id: str) -> SupplierStatus | None:
        """
        BLACKLISTED, WATCH or ACTIVE

        A supplier that was only ever blacklisted by an admin is known to
        the registry and reports BLACKLISTED. None if neither metrics nor an
        entry exist.
        """
        with self._lock:
            entry = self.is_blacklisted(supplier_id)
            score = self._score(supplier_id)
            if score is None and entry is None:
                return None
            return self._status(score, entry)

    def get_supplier_rankings(self) -> list[RankingEntry]:
        """Every tracked supplier, best first"""
        with self._lock:
            return scoring.rank(
                [
                    RankingEntry(
                        supplier_id=metrics.supplier_id,
                        score=self._score(metrics.supplier_id),
                        total_orders=metrics.total_orders,
                    )
                    for metrics in self.metrics_store.list_all()
                ]
            )

    def get_suppliers_by_tier(self) -> SupplierTiers:
        with self._lock:
            tiers = SupplierTiers()
            for entry in self.get_supplier_rankings():
                tier = scoring.classify_tier(entry.score, self.policy)
                if tier == SupplierTier.ELITE:
                    tiers.elite.append(entry.supplier_id)
                elif tier == SupplierTier.GOOD:
                    tiers.good.append(entry.supplier_id)
                else:
                    tiers.poor.append(entry.supplier_id)
            return tiers

    def get_active_suppliers(self) -> list[str]:
        """Tracked suppliers without an active blacklist entry, best first"""
        with self._lock:
            self._sweep_expired()
            return [
                entry.supplier_id
                for entry in self.get_supplier_rankings()
                if entry.supplier_id not in self.blacklist_registry
            ]

    def filter_allowed_suppliers(self, supplier_ids: Iterable[str]) -> list[str]:
        """Drop blacklisted suppliers from a candidate list, keeping its order"""
        with self._lock:
            self._sweep_expired()
            return [sid for sid in supplier_ids if sid not in self.blacklist_registry]

    def blend_product_score(
        self,
        product_score: float,
        supplier_id: str,
        supplier_weight: float = curation.DEFAULT_SUPPLIER_WEIGHT,
    ) -> int:
        """A product's quality score adjusted by its supplier's reliability"""
        return curation.blend_product_score(
            product_score, self.calculate_overall_score(supplier_id), supplier_weight
        )

    def get_overview(self) -> TrackerOverview:
        """Dashboard summary"""
        with self._lock:
            active = self.get_active_suppliers()
            since = self._now() - timedelta(days=OVERVIEW_INCIDENT_DAYS)
            return TrackerOverview(
                total_suppliers=len(self.metrics_store),
                active_suppliers=len(active),
                blacklisted_suppliers=len(self.blacklist_registry),
                recent_incidents=self.incident_ledger.count_since(since),
                tiers=self.get_suppliers_by_tier(),
                top_performers=active[:TOP_PERFORMERS],
            )

    # ========================================================================
    # Policy
    # ========================================================================

    def get_policy(self) -> TrackerPolicy:
        return self.policy

    def update_policy(self, **changes: Any) -> TrackerPolicy:
        """
        Replace policy fields for this process

        Changes are not persisted; a restarted tracker starts from the
        policy it is constructed with.

        Raises:
            ValidationError: If the resulting policy is invalid
        """
        with self._lock:
            new_policy = self.policy.with_changes(**changes)
            self.policy = new_policy
            self.handlers.policy = new_policy
            self.metrics_store.shipping_window_size = new_policy.shipping_window_size
            logger.info(
                "Tracker policy updated",
                changes=sorted(changes),
                policy_version=new_policy.policy_version,
            )
            return new_policy

    def stats(self) -> dict[str, int]:
        """Storage and projection sizes for health checks"""
        with self._lock:
            return {
                "total_events": self.event_store.count_events(),
                "suppliers": len(self.metrics_store),
                "incidents": len(self.incident_ledger),
                "blacklisted": len(self.blacklist_registry),
            }

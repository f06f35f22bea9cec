"""
Supplier Performance Command Handlers

Turn validated commands into events. Every handler returns the complete
batch for one supplier stream: a lazy expiry of the supplier's blacklist
entry (if due), the mutation itself, and the policy engine's reaction to it.
The facade appends the batch in one transaction and then applies it.
"""

from supplier_reliability.kernel.events import Event, create_event
from supplier_reliability.kernel.ids import generate_id
from supplier_reliability.kernel.policy import TrackerPolicy
from supplier_reliability.kernel.time import TimeProvider, ensure_utc
from supplier_reliability.performance import commands, events, invariants, triggers
from supplier_reliability.performance.models import Incident
from supplier_reliability.performance.projections import (
    BlacklistRegistry,
    IncidentLedger,
    MetricsStore,
)


class PerformanceCommandHandlers:
    """
    Command handlers for supplier performance tracking

    Stateless apart from the clock and the policy; projections are passed
    in and only read, never modified.
    """

    def __init__(self, time_provider: TimeProvider, policy: TrackerPolicy) -> None:
        """
        Args:
            time_provider: Source of current time
            policy: Scoring and blacklist policy (replaced on policy updates)
        """
        self.time_provider = time_provider
        self.policy = policy

    # ========================================================================
    # Intake Handlers
    # ========================================================================

    def handle_track_order(
        self,
        command: commands.TrackOrder,
        command_id: str,
        actor_id: str,
        current_version: int,
        metrics_store: MetricsStore,
        ledger: IncidentLedger,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        """
        Record an order outcome

        shipping_days is only kept for successful orders.

        Returns:
            [BlacklistExpired?, OrderTracked, SupplierBlacklisted?]
        """
        batch = self._expire_if_due(
            command.supplier_id, command_id, current_version, registry
        )
        batch.append(self._order_tracked(command, command_id, actor_id, current_version, batch))

        return batch + self._policy_reaction(
            command.supplier_id,
            batch,
            None,
            command_id,
            current_version,
            metrics_store,
            ledger,
            registry,
        )

    def handle_report_incident(
        self,
        command: commands.ReportIncident,
        command_id: str,
        actor_id: str,
        current_version: int,
        metrics_store: MetricsStore,
        ledger: IncidentLedger,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        """
        Append an incident to the ledger

        The incident id is carried in the IncidentReported payload.

        Returns:
            [BlacklistExpired?, IncidentReported, SupplierBlacklisted?]
        """
        batch = self._expire_if_due(
            command.supplier_id, command_id, current_version, registry
        )
        incident, event = self._incident_reported(
            command, command_id, actor_id, current_version, batch
        )
        batch.append(event)

        return batch + self._policy_reaction(
            command.supplier_id,
            batch,
            incident,
            command_id,
            current_version,
            metrics_store,
            ledger,
            registry,
        )

    def handle_track_return(
        self,
        order: commands.TrackOrder,
        incident_command: commands.ReportIncident | None,
        command_id: str,
        actor_id: str,
        current_version: int,
        metrics_store: MetricsStore,
        ledger: IncidentLedger,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        """
        Record a returned order and, for supplier-fault returns, its incident

        Both land in one batch so the failed order is never stored without
        the incident it caused. The policy engine sees them together.

        Returns:
            [BlacklistExpired?, OrderTracked, IncidentReported?, SupplierBlacklisted?]
        """
        batch = self._expire_if_due(order.supplier_id, command_id, current_version, registry)
        batch.append(self._order_tracked(order, command_id, actor_id, current_version, batch))

        incident = None
        if incident_command is not None:
            incident, event = self._incident_reported(
                incident_command, command_id, actor_id, current_version, batch
            )
            batch.append(event)

        return batch + self._policy_reaction(
            order.supplier_id,
            batch,
            incident,
            command_id,
            current_version,
            metrics_store,
            ledger,
            registry,
        )

    # ========================================================================
    # Blacklist Handlers
    # ========================================================================

    def handle_blacklist_supplier(
        self,
        command: commands.BlacklistSupplier,
        command_id: str,
        current_version: int,
    ) -> list[Event]:
        """
        Create or overwrite the supplier's blacklist entry (admin action)

        Raises:
            PermanentBlacklistWithExpiry: If a permanent entry is given an expiry
        """
        expires_at = ensure_utc(command.expires_at) if command.expires_at else None
        invariants.validate_permanent_has_no_expiry(
            command.supplier_id, command.severity, expires_at
        )
        now = self.time_provider.now()

        payload = events.SupplierBlacklisted(
            supplier_id=command.supplier_id,
            reason=command.reason,
            severity=command.severity,
            blacklisted_at=now,
            blacklisted_by=command.blacklisted_by,
            expires_at=expires_at,
            automatic=False,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=command.supplier_id,
                event_type="SupplierBlacklisted",
                occurred_at=now,
                actor_id=command.blacklisted_by,
                command_id=command_id,
                version=current_version + 1,
                payload=payload,
            )
        ]

    def handle_remove_from_blacklist(
        self,
        command: commands.RemoveFromBlacklist,
        command_id: str,
        actor_id: str,
        current_version: int,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        """
        Lift the supplier's active entry

        An entry that has already expired is recorded as expired rather than
        removed.

        Returns:
            [] if there is no entry, [BlacklistExpired] if it had lapsed,
            otherwise [SupplierBlacklistRemoved]
        """
        entry = registry.get(command.supplier_id)
        if entry is None:
            return []

        expired = self._expire_if_due(command.supplier_id, command_id, current_version, registry)
        if expired:
            return expired

        now = self.time_provider.now()
        payload = events.SupplierBlacklistRemoved(
            supplier_id=command.supplier_id,
            removed_at=now,
            removed_by=actor_id,
            previous_severity=entry.severity,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=command.supplier_id,
                event_type="SupplierBlacklistRemoved",
                occurred_at=now,
                actor_id=actor_id,
                command_id=command_id,
                version=current_version + 1,
                payload=payload,
            )
        ]

    def handle_expire_blacklist(
        self,
        supplier_id: str,
        command_id: str,
        current_version: int,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        """Lazy expiry on read paths: [BlacklistExpired] if due, else []"""
        return self._expire_if_due(supplier_id, command_id, current_version, registry)

    # ========================================================================
    # Internals
    # ========================================================================

    def _expire_if_due(
        self,
        supplier_id: str,
        command_id: str,
        current_version: int,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        return triggers.evaluate_expiry_trigger(
            registry.get(supplier_id),
            self.time_provider.now(),
            command_id,
            current_version + 1,
        )

    def _order_tracked(
        self,
        command: commands.TrackOrder,
        command_id: str,
        actor_id: str,
        current_version: int,
        batch: list[Event],
    ) -> Event:
        now = self.time_provider.now()
        payload = events.OrderTracked(
            supplier_id=command.supplier_id,
            order_id=command.order_id,
            success=command.success,
            shipping_days=command.shipping_days if command.success else None,
            tracked_at=now,
        ).model_dump(mode="json")

        return create_event(
            event_id=generate_id(),
            stream_id=command.supplier_id,
            event_type="OrderTracked",
            occurred_at=now,
            actor_id=actor_id,
            command_id=command_id,
            version=current_version + len(batch) + 1,
            payload=payload,
        )

    def _incident_reported(
        self,
        command: commands.ReportIncident,
        command_id: str,
        actor_id: str,
        current_version: int,
        batch: list[Event],
    ) -> tuple[Incident, Event]:
        now = self.time_provider.now()
        incident = Incident(
            incident_id=generate_id(),
            supplier_id=command.supplier_id,
            order_id=command.order_id,
            type=command.type,
            severity=command.severity,
            description=command.description,
            impact=command.impact,
            reported_at=now,
        )
        payload = events.IncidentReported(**incident.model_dump()).model_dump(mode="json")

        event = create_event(
            event_id=generate_id(),
            stream_id=command.supplier_id,
            event_type="IncidentReported",
            occurred_at=now,
            actor_id=actor_id,
            command_id=command_id,
            version=current_version + len(batch) + 1,
            payload=payload,
        )
        return incident, event

    def _policy_reaction(
        self,
        supplier_id: str,
        batch: list[Event],
        new_incident: Incident | None,
        command_id: str,
        current_version: int,
        metrics_store: MetricsStore,
        ledger: IncidentLedger,
        registry: BlacklistRegistry,
    ) -> list[Event]:
        expired = any(e.event_type == "BlacklistExpired" for e in batch)
        active_entry = None if expired else registry.get(supplier_id)

        return triggers.evaluate_blacklist_trigger(
            metrics=metrics_store.preview(supplier_id, batch),
            incidents=ledger.preview(supplier_id, batch),
            new_incident=new_incident,
            active_entry=active_entry,
            auto_blacklist_count=registry.auto_blacklist_count(supplier_id),
            policy=self.policy,
            now=self.time_provider.now(),
            command_id=command_id,
            next_version=current_version + len(batch) + 1,
        )

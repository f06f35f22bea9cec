"""
Policy Engine - automatic blacklist reactions

Triggers run synchronously inside every mutation. They look at a preview of
the supplier's state after the mutation and emit the blacklist events the
policy calls for, which the facade appends in the same batch as the
mutation itself.

Rules, checked in order:
1. The new incident is critical
2. The new incident's impact reaches the auto-blacklist impact threshold
3. The composite score fell below the critical score threshold

A supplier already under an active suspension or permanent entry is left
alone; an active warning is escalated.
"""

from datetime import datetime, timedelta

from supplier_reliability.kernel.events import Event, create_event
from supplier_reliability.kernel.ids import generate_id
from supplier_reliability.kernel.policy import TrackerPolicy
from supplier_reliability.kernel.time import ensure_utc
from supplier_reliability.performance.events import BlacklistExpired, SupplierBlacklisted
from supplier_reliability.performance.models import (
    BlacklistEntry,
    BlacklistSeverity,
    Incident,
    IncidentSeverity,
    SupplierMetrics,
)
from supplier_reliability.performance.scoring import calculate_overall_score

SYSTEM_ACTOR = "system"

TRIGGER_CRITICAL_INCIDENT = "critical_incident"
TRIGGER_HIGH_IMPACT = "high_impact_incident"
TRIGGER_LOW_SCORE = "score_below_threshold"


def evaluate_expiry_trigger(
    entry: BlacklistEntry | None,
    now: datetime,
    command_id: str,
    next_version: int,
) -> list[Event]:
    """
    Emit BlacklistExpired if the entry's expiry has passed

    Args:
        entry: The supplier's stored entry (None if not blacklisted)
        now: Current time
        command_id: Command the expiry is recorded under
        next_version: Stream version for the emitted event

    Returns:
        Empty list, or a single BlacklistExpired event
    """
    if entry is None or not entry.is_expired(ensure_utc(now)):
        return []

    return [
        create_event(
            event_id=generate_id(),
            stream_id=entry.supplier_id,
            event_type="BlacklistExpired",
            occurred_at=now,
            actor_id=SYSTEM_ACTOR,
            command_id=command_id,
            version=next_version,
            payload=BlacklistExpired(
                supplier_id=entry.supplier_id,
                expired_at=now,
                expires_at=entry.expires_at,
                severity=entry.severity,
            ).model_dump(mode="json"),
        )
    ]


def blacklist_trigger(
    score: int,
    new_incident: Incident | None,
    policy: TrackerPolicy,
) -> tuple[str, str] | None:
    """
    Which rule (if any) calls for an automatic blacklisting

    Returns:
        (trigger, reason) or None
    """
    if new_incident is not None:
        if new_incident.severity == IncidentSeverity.CRITICAL:
            return (
                TRIGGER_CRITICAL_INCIDENT,
                f"Critical {new_incident.type.value} incident on order {new_incident.order_id}",
            )
        if new_incident.impact >= policy.auto_blacklist_impact_threshold:
            return (
                TRIGGER_HIGH_IMPACT,
                f"{new_incident.type.value} incident with impact {new_incident.impact} "
                f"on order {new_incident.order_id}",
            )
    if score < policy.critical_score_threshold:
        return (
            TRIGGER_LOW_SCORE,
            f"Reliability score {score} below {policy.critical_score_threshold}",
        )
    return None


def evaluate_blacklist_trigger(
    *,
    metrics: SupplierMetrics | None,
    incidents: list[Incident],
    new_incident: Incident | None,
    active_entry: BlacklistEntry | None,
    auto_blacklist_count: int,
    policy: TrackerPolicy,
    now: datetime,
    command_id: str,
    next_version: int,
) -> list[Event]:
    """
    Decide whether the supplier must be blacklisted after a mutation

    Args:
        metrics: Preview of the supplier's metrics after the mutation
        incidents: Preview of the supplier's incidents after the mutation
        new_incident: Incident reported by the mutation, if any
        active_entry: Entry still in force after expiry was applied
        auto_blacklist_count: Automatic blacklistings the supplier already had
        policy: Current tracker policy
        now: Mutation time (reference for incident decay and suspension expiry)
        command_id: Command the reaction is recorded under
        next_version: Stream version for the emitted event

    Returns:
        Empty list, or a single automatic SupplierBlacklisted event
    """
    if metrics is None:
        return []

    if active_entry is not None and active_entry.severity != BlacklistSeverity.WARNING:
        return []

    score = calculate_overall_score(metrics, incidents, policy, now)
    decision = blacklist_trigger(score, new_incident, policy)
    if decision is None:
        return []
    trigger, reason = decision

    if auto_blacklist_count + 1 >= policy.permanent_after_auto_blacklists:
        severity = BlacklistSeverity.PERMANENT
        expires_at = None
    else:
        severity = BlacklistSeverity.SUSPENSION
        expires_at = now + timedelta(days=policy.default_suspension_days)

    return [
        create_event(
            event_id=generate_id(),
            stream_id=metrics.supplier_id,
            event_type="SupplierBlacklisted",
            occurred_at=now,
            actor_id=SYSTEM_ACTOR,
            command_id=command_id,
            version=next_version,
            payload=SupplierBlacklisted(
                supplier_id=metrics.supplier_id,
                reason=reason,
                severity=severity,
                blacklisted_at=now,
                blacklisted_by=SYSTEM_ACTOR,
                expires_at=expires_at,
                automatic=True,
                trigger=trigger,
                score=score,
            ).model_dump(mode="json"),
        )
    ]

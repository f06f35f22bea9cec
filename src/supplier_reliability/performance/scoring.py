"""
Scoring Engine

Pure functions from a supplier snapshot (metrics, incidents, a point in
time and the policy) to sub-scores, a composite 0-100 score and a tier.
Nothing here reads a clock or touches a projection, so the same snapshot
always yields the same score.

Composite score
    Weighted average of the four sub-scores, taken only over sub-scores
    that have evidence behind them. Quality and satisfaction always count;
    success rate counts once the supplier has orders, on-time delivery once
    there are shipping samples. The weights of the counted sub-scores are
    renormalised to sum to one.

    A supplier with no orders is therefore judged on incidents alone, and a
    run of serious incidents can take it below the blacklist threshold.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from supplier_reliability.kernel.policy import TrackerPolicy
from supplier_reliability.kernel.time import age_in_days
from supplier_reliability.performance.models import (
    Incident,
    RankingEntry,
    SubScores,
    SupplierMetrics,
    SupplierTier,
)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (Python's round() is banker's)"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def recency_weight(reported_at: datetime, now: datetime, window_days: int) -> float:
    """
    Linear decay from 1.0 (just reported) to 0.0 (window_days old)

    Incidents stamped in the future relative to now count fully.
    """
    age = max(0.0, age_in_days(reported_at, now))
    return max(0.0, 1.0 - age / window_days)


def quality_score(incidents: list[Incident], now: datetime, policy: TrackerPolicy) -> float:
    """
    100 minus the recency-weighted, impact-scaled penalties of all incidents

    An incident at the reference impact costs exactly its severity penalty;
    impact 10 costs twice that.
    """
    penalty = 0.0
    for incident in incidents:
        weight = recency_weight(incident.reported_at, now, policy.incident_window_days)
        if weight <= 0.0:
            continue
        base = policy.severity_penalties[incident.severity.value]
        penalty += base * (incident.impact / policy.impact_reference) * weight
    return _clamp(100.0 - penalty)


def on_time_delivery(metrics: SupplierMetrics, policy: TrackerPolicy) -> float:
    """Share of shipping samples at or under the on-time threshold (100 without samples)"""
    samples = metrics.shipping_durations
    if not samples:
        return 100.0
    on_time = sum(1 for days in samples if days <= policy.on_time_threshold_days)
    return _clamp(100.0 * on_time / len(samples))


def success_rate(metrics: SupplierMetrics) -> float:
    """Successful share of all orders (100 for a supplier without orders)"""
    if metrics.total_orders == 0:
        return 100.0
    return _clamp(100.0 * metrics.successful_orders / metrics.total_orders)


def customer_satisfaction(metrics: SupplierMetrics, policy: TrackerPolicy) -> float:
    """Customer-facing complaint rate per order, inverted onto 0-100"""
    complaints = (
        metrics.quality_incident_count
        + policy.communication_weight * metrics.communication_issue_count
    )
    return _clamp(100.0 * (1.0 - complaints / max(metrics.total_orders, 1)))


def average_shipping_days(metrics: SupplierMetrics) -> float | None:
    if not metrics.shipping_durations:
        return None
    return sum(metrics.shipping_durations) / len(metrics.shipping_durations)


def calculate_sub_scores(
    metrics: SupplierMetrics,
    incidents: list[Incident],
    policy: TrackerPolicy,
    now: datetime | None = None,
) -> SubScores:
    """All four sub-scores; now defaults to the metrics' last update"""
    at = now or metrics.last_updated
    return SubScores(
        quality=quality_score(incidents, at, policy),
        on_time=on_time_delivery(metrics, policy),
        success_rate=success_rate(metrics),
        satisfaction=customer_satisfaction(metrics, policy),
    )


def calculate_overall_score(
    metrics: SupplierMetrics,
    incidents: list[Incident],
    policy: TrackerPolicy,
    now: datetime | None = None,
) -> int:
    """
    Composite reliability score in [0, 100]

    Args:
        metrics: Supplier counters
        incidents: The supplier's incidents (any age; decay handles the window)
        policy: Weights and penalties
        now: Reference time for incident decay (defaults to metrics.last_updated)

    Returns:
        Integer score, rounded half-up
    """
    scores = calculate_sub_scores(metrics, incidents, policy, now)
    weights = policy.scoring_weights

    weighted = [
        (scores.quality, weights.quality),
        (scores.satisfaction, weights.satisfaction),
    ]
    if metrics.total_orders > 0:
        weighted.append((scores.success_rate, weights.success_rate))
    if metrics.shipping_durations:
        weighted.append((scores.on_time, weights.on_time))

    total_weight = sum(w for _, w in weighted)
    if total_weight <= 0.0:
        return 100
    composite = sum(score * w for score, w in weighted) / total_weight
    return max(0, min(100, round_half_up(composite)))


def classify_tier(score: int, policy: TrackerPolicy) -> SupplierTier:
    """elite at or above the elite threshold, good at or above watch, poor below"""
    if score >= policy.elite_score_threshold:
        return SupplierTier.ELITE
    if score >= policy.watch_score_threshold:
        return SupplierTier.GOOD
    return SupplierTier.POOR


def rank(entries: list[RankingEntry]) -> list[RankingEntry]:
    """Score descending, then total orders descending, then supplier id"""
    return sorted(entries, key=lambda e: (-e.score, -e.total_orders, e.supplier_id))

"""
Tests for the scoring engine

Sub-scores, the evidence-weighted composite, tiers and ranking order.
"""

from datetime import timedelta

import pytest

from supplier_reliability.kernel.policy import TrackerPolicy
from supplier_reliability.performance import scoring
from supplier_reliability.performance.models import (
    IncidentSeverity,
    RankingEntry,
    SupplierTier,
)
from tests.helpers import BASE_TIME, make_incident, make_metrics

POLICY = TrackerPolicy()


# =============================================================================
# Quality
# =============================================================================


def test_quality_is_perfect_without_incidents() -> None:
    assert scoring.quality_score([], BASE_TIME, POLICY) == 100.0


def test_quality_penalty_at_reference_impact() -> None:
    incidents = [make_incident(severity=IncidentSeverity.MEDIUM, impact=5)]

    assert scoring.quality_score(incidents, BASE_TIME, POLICY) == pytest.approx(95.0)


def test_quality_penalty_scales_with_impact() -> None:
    incidents = [make_incident(severity=IncidentSeverity.HIGH, impact=10)]

    assert scoring.quality_score(incidents, BASE_TIME, POLICY) == pytest.approx(80.0)


@pytest.mark.parametrize(
    "age_days,expected",
    [(0, 95.0), (45, 97.5), (90, 100.0), (200, 100.0)],
)
def test_quality_penalty_decays_linearly(age_days: int, expected: float) -> None:
    incidents = [make_incident(impact=5, reported_at=BASE_TIME - timedelta(days=age_days))]

    assert scoring.quality_score(incidents, BASE_TIME, POLICY) == pytest.approx(expected)


def test_quality_is_clamped_at_zero() -> None:
    incidents = [
        make_incident(severity=IncidentSeverity.CRITICAL, impact=10) for _ in range(5)
    ]

    assert scoring.quality_score(incidents, BASE_TIME, POLICY) == 0.0


def test_future_incident_counts_fully() -> None:
    incidents = [make_incident(impact=5, reported_at=BASE_TIME + timedelta(hours=1))]

    assert scoring.quality_score(incidents, BASE_TIME, POLICY) == pytest.approx(95.0)


# =============================================================================
# Delivery, success and satisfaction
# =============================================================================


def test_on_time_delivery_share() -> None:
    metrics = make_metrics(total_orders=4, shipping_durations=[3.0, 7.0, 8.0, 10.0])

    assert scoring.on_time_delivery(metrics, POLICY) == pytest.approx(50.0)


def test_on_time_delivery_without_samples() -> None:
    assert scoring.on_time_delivery(make_metrics(), POLICY) == 100.0


def test_success_rate() -> None:
    assert scoring.success_rate(make_metrics(total_orders=10, successful_orders=8)) == 80.0
    assert scoring.success_rate(make_metrics()) == 100.0


def test_customer_satisfaction_weights_communication_half() -> None:
    metrics = make_metrics(
        total_orders=10, quality_incident_count=1, communication_issue_count=2
    )

    assert scoring.customer_satisfaction(metrics, POLICY) == pytest.approx(80.0)


def test_customer_satisfaction_without_orders() -> None:
    assert scoring.customer_satisfaction(make_metrics(), POLICY) == 100.0
    assert scoring.customer_satisfaction(make_metrics(quality_incident_count=1), POLICY) == 0.0


def test_average_shipping_days() -> None:
    assert scoring.average_shipping_days(make_metrics()) is None
    assert scoring.average_shipping_days(
        make_metrics(total_orders=2, shipping_durations=[3.0, 5.0])
    ) == pytest.approx(4.0)


# =============================================================================
# Composite
# =============================================================================


def test_perfect_supplier_scores_100() -> None:
    metrics = make_metrics(total_orders=10, shipping_durations=[3.0] * 10)

    assert scoring.calculate_overall_score(metrics, [], POLICY) == 100


def test_new_supplier_scores_100() -> None:
    assert scoring.calculate_overall_score(make_metrics(), [], POLICY) == 100


def test_composite_weights_all_sub_scores() -> None:
    metrics = make_metrics(
        total_orders=10,
        successful_orders=8,
        shipping_durations=[3.0] * 6 + [9.0] * 2,
        quality_incident_count=1,
        communication_issue_count=1,
    )
    incidents = [make_incident(impact=5)]

    # quality 95, on-time 75, success 80, satisfaction 85
    assert scoring.calculate_overall_score(metrics, incidents, POLICY) == 85


def test_composite_skips_on_time_without_samples() -> None:
    metrics = make_metrics(total_orders=10, successful_orders=5)

    # (100*.35 + 100*.15 + 50*.25) / .75
    assert scoring.calculate_overall_score(metrics, [], POLICY) == 83


def test_incidents_alone_can_sink_an_order_less_supplier() -> None:
    incidents = [
        make_incident(severity=IncidentSeverity.HIGH, impact=6) for _ in range(5)
    ]
    metrics = make_metrics(quality_incident_count=5)

    assert scoring.calculate_overall_score(metrics, incidents, POLICY) == 28
    assert scoring.calculate_overall_score(
        make_metrics(quality_incident_count=4), incidents[:4], POLICY
    ) == 36


def test_composite_defaults_now_to_last_update() -> None:
    incident = make_incident(impact=5, reported_at=BASE_TIME)
    later = make_metrics(at=BASE_TIME + timedelta(days=45))

    assert scoring.calculate_overall_score(later, [incident], POLICY) == scoring.calculate_overall_score(
        later, [incident], POLICY, now=BASE_TIME + timedelta(days=45)
    )


def test_composite_is_deterministic() -> None:
    metrics = make_metrics(total_orders=7, successful_orders=6, shipping_durations=[4.0, 9.0])
    incidents = [make_incident(impact=3), make_incident(severity=IncidentSeverity.LOW, impact=9)]

    scores = {scoring.calculate_overall_score(metrics, incidents, POLICY) for _ in range(20)}

    assert len(scores) == 1
    assert 0 <= scores.pop() <= 100


def test_round_half_up() -> None:
    assert scoring.round_half_up(84.5) == 85
    assert scoring.round_half_up(85.5) == 86
    assert scoring.round_half_up(85.49) == 85


# =============================================================================
# Tiers and ranking
# =============================================================================


@pytest.mark.parametrize(
    "score,tier",
    [
        (100, SupplierTier.ELITE),
        (80, SupplierTier.ELITE),
        (79, SupplierTier.GOOD),
        (50, SupplierTier.GOOD),
        (49, SupplierTier.POOR),
        (0, SupplierTier.POOR),
    ],
)
def test_classify_tier_boundaries(score: int, tier: SupplierTier) -> None:
    assert scoring.classify_tier(score, POLICY) == tier


def test_rank_orders_by_score_then_orders_then_id() -> None:
    entries = [
        RankingEntry(supplier_id="c", score=90, total_orders=5),
        RankingEntry(supplier_id="b", score=90, total_orders=5),
        RankingEntry(supplier_id="a", score=90, total_orders=10),
        RankingEntry(supplier_id="d", score=95, total_orders=1),
    ]

    assert [e.supplier_id for e in scoring.rank(entries)] == ["d", "a", "b", "c"]

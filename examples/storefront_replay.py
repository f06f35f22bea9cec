#!/usr/bin/env python3
"""
Storefront Walkthrough - Supplier Scoring, Blacklisting and Replay

Follows two suppliers through a month of storefront traffic:

1. A reliable supplier ships on time and ends up elite
2. A flaky supplier collects quality incidents until the policy engine
   suspends it
3. The suspension lapses and the supplier is back in the catalog
4. A second tracker on the same database rebuilds identical state

Run:
    python examples/storefront_replay.py
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

from supplier_reliability import SupplierTracker
from supplier_reliability.kernel.event_store import SQLiteEventStore
from supplier_reliability.kernel.time import TestTimeProvider
from supplier_reliability.performance.curation import build_supplier_id


def print_section(title: str) -> None:
    """Print section header"""
    print(f"\n{'='*70}")
    print(f"  {title}")
    print(f"{'='*70}\n")


def print_report(tracker: SupplierTracker, supplier_id: str) -> None:
    report = tracker.get_supplier_report(supplier_id)
    print(f"  {supplier_id}")
    print(f"    Score: {report.overall_score} ({report.tier.value}), status {report.status.value}")
    print(f"    Orders: {report.successful_orders}/{report.total_orders} successful")
    print(f"    Quality: {report.quality_score:.1f}  On-time: {report.on_time_delivery:.1f}")


def main() -> None:
    """Run the storefront walkthrough"""

    print_section("Supplier Reliability - Storefront Walkthrough")

    db_path = Path(tempfile.mkdtemp()) / "suppliers.db"
    clock = TestTimeProvider(datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc))
    tracker = SupplierTracker(store=SQLiteEventStore(db_path), time_provider=clock)

    reliable = build_supplier_id("spocket", "Luxe Home", "United States")
    flaky = build_supplier_id("aliexpress", "Golden Thread Co", "CN")

    print(f"Database: {db_path}")
    print(f"Suppliers: {reliable}, {flaky}")

    # Phase 1: Normal trading
    print_section("Phase 1: Two Weeks of Orders")

    for day in range(14):
        tracker.track_order(reliable, f"lux-{day}", True, shipping_days=4)
        tracker.track_order(flaky, f"gtc-{day}", day % 4 != 0, shipping_days=9)
        clock.advance_days(1)

    print_report(tracker, reliable)
    print_report(tracker, flaky)

    # Phase 2: Complaints pile up
    print_section("Phase 2: Customer Complaints")

    tracker.track_return(flaky, "gtc-3", "defective", "zip broke on first use")
    print(f"✓ Defective return recorded for {flaky}")
    tracker.report_quality_issue(flaky, "gtc-5", "stitching", "seams opening", severity="high")
    print(f"✓ Quality issue recorded for {flaky}")
    tracker.report_incident(
        flaky, "gtc-6", "quality_issue", "critical", "dye bleeding onto skin", 8
    )
    print(f"✓ Critical incident recorded for {flaky}")

    entry = tracker.is_blacklisted(flaky)
    print(f"\n  {flaky} blacklisted: {entry.severity.value} until {entry.expires_at:%Y-%m-%d}")
    print(f"  Reason: {entry.reason}")
    print(f"  Catalog may query: {tracker.filter_allowed_suppliers([reliable, flaky])}")

    # Phase 3: Suspension lapses
    print_section("Phase 3: Suspension Lapses")

    clock.advance_days(31)
    print(f"  {clock.now():%Y-%m-%d}: blacklisted = {tracker.is_blacklisted(flaky) is not None}")
    print(f"  Active suppliers: {tracker.get_active_suppliers()}")

    # Phase 4: Rebuild from the event log
    print_section("Phase 4: Rebuild From Events")

    rebuilt = SupplierTracker(store=SQLiteEventStore(db_path), time_provider=clock)
    identical = all(
        tracker.get_supplier_report(s) == rebuilt.get_supplier_report(s)
        for s in (reliable, flaky)
    )
    print(f"  Events in store: {rebuilt.stats()['total_events']}")
    print(f"  Rebuilt reports identical: {'✓' if identical else '✗'}")

    print("\nEvent history for the flaky supplier:")
    for event in rebuilt.event_store.load_stream(flaky):
        if event.event_type != "OrderTracked":
            print(f"  v{event.version:<3} {event.event_type:<22} by {event.actor_id}")

    print_section("Overview")
    summary = rebuilt.get_overview()
    print(f"  Suppliers: {summary.total_suppliers}, blacklisted: {summary.blacklisted_suppliers}")
    print(f"  Elite: {summary.tiers.elite}")
    print(f"  Top performers: {summary.top_performers}")

    print(f"\nDatabase: {db_path}")
    print("To explore events directly:")
    print(f"  sqlite3 {db_path}")
    print("  SELECT event_type, occurred_at FROM events ORDER BY sequence;")


if __name__ == "__main__":
    main()

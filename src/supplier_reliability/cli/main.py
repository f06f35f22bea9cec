"""
Supplier Reliability CLI

Operator interface to a tracker database: record outcomes and incidents,
manage the blacklist and inspect scores.

Usage:
    supplier-tracker init --db suppliers.db
    supplier-tracker order track --supplier spocket_luxe_home_us --order o-1 --shipping-days 4
    supplier-tracker incident report --supplier spocket_luxe_home_us --order o-2 \\
        --type quality_issue --severity high --impact 6 --description "scratched"
    supplier-tracker blacklist add --supplier ali_cheap_co --reason "counterfeits" --severity permanent
    supplier-tracker supplier report --supplier spocket_luxe_home_us
    supplier-tracker overview
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import NoReturn, Optional

import typer
from typing_extensions import Annotated

from supplier_reliability.kernel.errors import TrackerError
from supplier_reliability.kernel.event_store import SQLiteEventStore
from supplier_reliability.kernel.logging import configure_logging
from supplier_reliability.kernel.policy import load_policy
from supplier_reliability.performance.curation import build_supplier_id
from supplier_reliability.tracker import SupplierTracker

# Logs go to stderr so --json output on stdout stays parseable
configure_logging(json_output=False, log_level="WARNING", stream=sys.stderr)

app = typer.Typer(
    name="supplier-tracker",
    help="Supplier performance & reliability tracker",
    add_completion=False,
)

order_app = typer.Typer(help="Order outcome commands")
incident_app = typer.Typer(help="Incident commands")
blacklist_app = typer.Typer(help="Blacklist management commands")
supplier_app = typer.Typer(help="Supplier score and ranking commands")

app.add_typer(order_app, name="order")
app.add_typer(incident_app, name="incident")
app.add_typer(blacklist_app, name="blacklist")
app.add_typer(supplier_app, name="supplier")

DEFAULT_DB = Path(".suppliers.db")

DbOption = Annotated[Optional[Path], typer.Option("--db", help="Database path")]
ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", help="Policy JSON file")
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]


def get_tracker(db_path: Optional[Path] = None, config: Optional[Path] = None) -> SupplierTracker:
    """Open the tracker behind an existing database"""
    db = db_path or DEFAULT_DB
    if not db.exists():
        typer.echo(f"Error: Database not found: {db}", err=True)
        typer.echo(f"Run 'supplier-tracker init --db {db}' to initialize", err=True)
        raise typer.Exit(1)
    try:
        policy = load_policy(config) if config else None
    except TrackerError as e:
        fail(e)
    return SupplierTracker(store=SQLiteEventStore(db), policy=policy)


def fail(error: Exception) -> NoReturn:
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


def echo_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


# Initialization command


@app.command()
def init(
    db: Annotated[Path, typer.Option(help="Database path")] = DEFAULT_DB,
) -> None:
    """Initialize a new tracker database"""
    if db.exists():
        typer.echo(f"Error: Database already exists: {db}", err=True)
        raise typer.Exit(1)

    SupplierTracker(store=SQLiteEventStore(db))
    typer.echo(f"✓ Initialized tracker database: {db}")


# Order commands


@order_app.command("track")
def order_track(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    order: Annotated[str, typer.Option("--order", help="Order ID")],
    success: Annotated[
        bool,
        typer.Option("--success/--failed", help="Order outcome"),
    ] = True,
    shipping_days: Annotated[
        Optional[float],
        typer.Option("--shipping-days", help="Days from order to delivery"),
    ] = None,
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Record an order outcome"""
    tracker = get_tracker(db, config)
    try:
        tracker.track_order(supplier, order, success, shipping_days=shipping_days)
    except TrackerError as e:
        fail(e)

    typer.echo(f"✓ Tracked order {order} for {supplier} ({'success' if success else 'failed'})")
    _echo_blacklist_notice(tracker, supplier)


@order_app.command("return")
def order_return(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    order: Annotated[str, typer.Option("--order", help="Order ID")],
    reason: Annotated[
        str,
        typer.Option("--reason", help="Return reason, e.g. defective, wrong-item, changed-mind"),
    ],
    description: Annotated[str, typer.Option("--description", help="Details")] = "",
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Record a returned order"""
    tracker = get_tracker(db, config)
    try:
        incident_id = tracker.track_return(supplier, order, reason, description)
    except TrackerError as e:
        fail(e)

    typer.echo(f"✓ Tracked return of order {order} for {supplier}")
    if incident_id:
        typer.echo(f"  Quality incident: {incident_id}")
    else:
        typer.echo("  Customer-initiated return, no incident recorded")
    _echo_blacklist_notice(tracker, supplier)


# Incident commands


@incident_app.command("report")
def incident_report(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    order: Annotated[str, typer.Option("--order", help="Order ID")],
    incident_type: Annotated[
        str,
        typer.Option(
            "--type",
            help="quality_issue, late_shipping, out_of_stock, communication_issue, price_change",
        ),
    ],
    severity: Annotated[str, typer.Option("--severity", help="low, medium, high, critical")],
    impact: Annotated[int, typer.Option("--impact", help="Impact weight 1-10")],
    description: Annotated[str, typer.Option("--description", help="Details")] = "",
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Report a supplier incident"""
    tracker = get_tracker(db, config)
    try:
        incident_id = tracker.report_incident(
            supplier, order, incident_type, severity, description, impact
        )
    except TrackerError as e:
        fail(e)

    typer.echo(f"✓ Reported incident: {incident_id}")
    typer.echo(f"  Supplier: {supplier}")
    typer.echo(f"  Type: {incident_type} ({severity}, impact {impact})")
    _echo_blacklist_notice(tracker, supplier)


@incident_app.command("quality")
def incident_quality(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    order: Annotated[str, typer.Option("--order", help="Order ID")],
    issue_type: Annotated[str, typer.Option("--issue-type", help="e.g. scratched, faded")],
    description: Annotated[str, typer.Option("--description", help="Details")],
    severity: Annotated[str, typer.Option("--severity", help="low, medium, high, critical")] = "medium",
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Report a customer quality issue"""
    tracker = get_tracker(db, config)
    try:
        incident_id = tracker.report_quality_issue(
            supplier, order, issue_type, description, severity=severity
        )
    except TrackerError as e:
        fail(e)

    typer.echo(f"✓ Reported quality issue: {incident_id}")
    _echo_blacklist_notice(tracker, supplier)


@incident_app.command("list")
def incident_list(
    supplier: Annotated[
        Optional[str], typer.Option("--supplier", help="Only this supplier")
    ] = None,
    days: Annotated[float, typer.Option("--days", help="Lookback window in days")] = 30,
    json_output: JsonOption = False,
    db: DbOption = None,
) -> None:
    """List recent incidents, newest first"""
    tracker = get_tracker(db)
    try:
        incidents = tracker.get_recent_incidents(supplier, days)
    except TrackerError as e:
        fail(e)

    if json_output:
        echo_json([i.model_dump(mode="json") for i in incidents])
        return

    if not incidents:
        typer.echo(f"No incidents in the last {days:g} days")
        return

    typer.echo(f"Incidents in the last {days:g} days ({len(incidents)}):")
    for incident in incidents:
        typer.echo(
            f"  {incident.reported_at.isoformat()} {incident.supplier_id} "
            f"{incident.type.value}/{incident.severity.value} impact={incident.impact} "
            f"order={incident.order_id}"
        )


# Blacklist commands


@blacklist_app.command("add")
def blacklist_add(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    reason: Annotated[str, typer.Option("--reason", help="Reason for blacklisting")],
    severity: Annotated[
        str, typer.Option("--severity", help="warning, suspension, permanent")
    ] = "warning",
    expires_at: Annotated[
        Optional[datetime],
        typer.Option("--expires-at", help="Expiry (ISO date/time), none for no expiry"),
    ] = None,
    blacklisted_by: Annotated[str, typer.Option("--by", help="Acting admin")] = "admin",
    db: DbOption = None,
) -> None:
    """Blacklist a supplier (replaces any active entry)"""
    tracker = get_tracker(db)
    try:
        entry = tracker.blacklist_supplier(
            supplier,
            reason,
            severity=severity,
            expires_at=expires_at,
            blacklisted_by=blacklisted_by,
        )
    except TrackerError as e:
        fail(e)

    typer.echo(f"✓ Blacklisted {supplier} ({entry.severity.value})")
    typer.echo(f"  Reason: {entry.reason}")
    typer.echo(f"  Expires: {entry.expires_at.isoformat() if entry.expires_at else 'never'}")


@blacklist_app.command("remove")
def blacklist_remove(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    db: DbOption = None,
) -> None:
    """Lift a supplier's blacklist entry"""
    tracker = get_tracker(db)
    try:
        removed = tracker.remove_from_blacklist(supplier)
    except TrackerError as e:
        fail(e)

    if removed:
        typer.echo(f"✓ Removed {supplier} from blacklist")
    else:
        typer.echo(f"{supplier} is not blacklisted")


@blacklist_app.command("check")
def blacklist_check(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    db: DbOption = None,
) -> None:
    """Check whether a supplier is blacklisted (exit code 2 if so)"""
    tracker = get_tracker(db)
    entry = tracker.is_blacklisted(supplier)
    if entry is None:
        typer.echo(f"{supplier} is not blacklisted")
        return

    typer.echo(f"{supplier} is BLACKLISTED ({entry.severity.value}): {entry.reason}")
    raise typer.Exit(2)


@blacklist_app.command("list")
def blacklist_list(
    json_output: JsonOption = False,
    db: DbOption = None,
) -> None:
    """List active blacklist entries"""
    tracker = get_tracker(db)
    entries = tracker.list_blacklist_entries()

    if json_output:
        echo_json([e.model_dump(mode="json") for e in entries])
        return

    if not entries:
        typer.echo("No blacklisted suppliers")
        return

    typer.echo(f"Blacklisted suppliers ({len(entries)}):")
    for entry in entries:
        expiry = entry.expires_at.isoformat() if entry.expires_at else "never"
        source = "auto" if entry.automatic else entry.blacklisted_by
        typer.echo(f"  {entry.supplier_id}: {entry.severity.value} by {source}, expires {expiry}")
        typer.echo(f"    {entry.reason}")


# Supplier commands


@supplier_app.command("report")
def supplier_report(
    supplier: Annotated[str, typer.Option("--supplier", help="Supplier ID")],
    json_output: JsonOption = False,
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Show a supplier's metrics, scores and status"""
    tracker = get_tracker(db, config)
    try:
        report = tracker.require_supplier_report(supplier)
    except TrackerError as e:
        fail(e)

    if json_output:
        echo_json(report.model_dump(mode="json"))
        return

    typer.echo(f"Supplier: {report.supplier_id}")
    typer.echo(f"  Status: {report.status.value}")
    typer.echo(f"  Score: {report.overall_score} ({report.tier.value})")
    typer.echo(f"  Orders: {report.successful_orders}/{report.total_orders} successful")
    typer.echo(f"  Success rate: {report.success_rate:.1f}")
    typer.echo(f"  On-time delivery: {report.on_time_delivery:.1f}")
    typer.echo(f"  Quality: {report.quality_score:.1f}")
    typer.echo(f"  Customer satisfaction: {report.customer_satisfaction:.1f}")
    if report.average_shipping_days is not None:
        typer.echo(f"  Average shipping: {report.average_shipping_days:.1f} days")
    typer.echo(f"  Recent incidents: {report.recent_incident_count}")
    if report.blacklist:
        typer.echo(f"  Blacklist: {report.blacklist.severity.value} - {report.blacklist.reason}")


@supplier_app.command("rankings")
def supplier_rankings(
    json_output: JsonOption = False,
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Rank all suppliers by score"""
    tracker = get_tracker(db, config)
    rankings = tracker.get_supplier_rankings()

    if json_output:
        echo_json([r.model_dump() for r in rankings])
        return

    if not rankings:
        typer.echo("No suppliers tracked")
        return

    for position, entry in enumerate(rankings, start=1):
        typer.echo(f"{position:>3}. {entry.supplier_id}  {entry.score}  ({entry.total_orders} orders)")


@supplier_app.command("tiers")
def supplier_tiers(
    json_output: JsonOption = False,
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Group suppliers into elite / good / poor"""
    tracker = get_tracker(db, config)
    tiers = tracker.get_suppliers_by_tier()

    if json_output:
        echo_json(tiers.model_dump())
        return

    for name, members in tiers.model_dump().items():
        typer.echo(f"{name.capitalize()} ({len(members)}): {', '.join(members) or '-'}")


@supplier_app.command("active")
def supplier_active(
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """List suppliers the catalog may query, best first"""
    tracker = get_tracker(db, config)
    for supplier_id in tracker.get_active_suppliers():
        typer.echo(supplier_id)


@supplier_app.command("id")
def supplier_id(
    platform: Annotated[str, typer.Option("--platform", help="spocket, aliexpress, ...")],
    name: Annotated[str, typer.Option("--name", help="Supplier name")],
    location: Annotated[str, typer.Option("--location", help="Supplier location")] = "",
) -> None:
    """Print the tracker id of a platform supplier"""
    try:
        typer.echo(build_supplier_id(platform, name, location))
    except TrackerError as e:
        fail(e)


# Dashboard


@app.command()
def overview(
    json_output: JsonOption = False,
    db: DbOption = None,
    config: ConfigOption = None,
) -> None:
    """Show the supplier base at a glance"""
    tracker = get_tracker(db, config)
    summary = tracker.get_overview()

    if json_output:
        echo_json(summary.model_dump())
        return

    typer.echo(f"Suppliers: {summary.total_suppliers}")
    typer.echo(f"  Active: {summary.active_suppliers}")
    typer.echo(f"  Blacklisted: {summary.blacklisted_suppliers}")
    typer.echo(f"  Incidents (7 days): {summary.recent_incidents}")
    typer.echo(
        f"  Tiers: elite {len(summary.tiers.elite)}, good {len(summary.tiers.good)}, "
        f"poor {len(summary.tiers.poor)}"
    )
    if summary.top_performers:
        typer.echo(f"  Top performers: {', '.join(summary.top_performers)}")


def _echo_blacklist_notice(tracker: SupplierTracker, supplier: str) -> None:
    entry = tracker.is_blacklisted(supplier)
    if entry is not None and entry.automatic:
        typer.echo(f"⚠ {supplier} is blacklisted ({entry.severity.value}): {entry.reason}")


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()

"""
Supplier Performance Module

Order outcomes and incidents feed rolling per-supplier metrics; a composite
score and tier are derived from them on demand, and a policy engine
blacklists suppliers that breach policy so their products drop out of the
catalog.
"""

from supplier_reliability.performance.commands import (
    BlacklistSupplier,
    RemoveFromBlacklist,
    ReportIncident,
    TrackOrder,
)
from supplier_reliability.performance.events import (
    BlacklistExpired,
    IncidentReported,
    OrderTracked,
    SupplierBlacklisted,
    SupplierBlacklistRemoved,
)
from supplier_reliability.performance.models import (
    BlacklistEntry,
    BlacklistSeverity,
    Incident,
    IncidentSeverity,
    IncidentType,
    RankingEntry,
    SubScores,
    SupplierMetrics,
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

__all__ = [
    # Commands
    "TrackOrder",
    "ReportIncident",
    "BlacklistSupplier",
    "RemoveFromBlacklist",
    # Events
    "OrderTracked",
    "IncidentReported",
    "SupplierBlacklisted",
    "SupplierBlacklistRemoved",
    "BlacklistExpired",
    # Models
    "SupplierMetrics",
    "Incident",
    "IncidentType",
    "IncidentSeverity",
    "BlacklistEntry",
    "BlacklistSeverity",
    "SupplierTier",
    "SupplierStatus",
    "SubScores",
    "SupplierReport",
    "RankingEntry",
    "SupplierTiers",
    "TrackerOverview",
    # Projections
    "MetricsStore",
    "IncidentLedger",
    "BlacklistRegistry",
]

"""
Supplier Performance Domain Models

Metrics, incidents, blacklist entries and the derived report/ranking views.

Incident type and severity are closed enums validated at the boundary;
free-form strings never reach the scoring engine.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class IncidentType(str, Enum):
    """Kinds of negative supplier events, each with its own metrics counter"""

    QUALITY_ISSUE = "quality_issue"
    LATE_SHIPPING = "late_shipping"
    OUT_OF_STOCK = "out_of_stock"
    COMMUNICATION_ISSUE = "communication_issue"
    PRICE_CHANGE = "price_change"


class IncidentSeverity(str, Enum):
    """Incident severity, mapped to a quality penalty by the policy"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BlacklistSeverity(str, Enum):
    """
    Blacklist entry severity

    WARNING: admin flag, still excludes the supplier from product queries
    SUSPENSION: time-boxed exclusion (default for automatic blacklisting)
    PERMANENT: no expiry, removed only by an explicit admin action
    """

    WARNING = "warning"
    SUSPENSION = "suspension"
    PERMANENT = "permanent"


class SupplierTier(str, Enum):
    """Coarse score bucket"""

    ELITE = "elite"
    GOOD = "good"
    POOR = "poor"


class SupplierStatus(str, Enum):
    """
    Supplier policy state

    ACTIVE → WATCH → BLACKLISTED → (expired/removed) → ACTIVE

    WATCH is derived from the current score at query time and never stored.
    """

    ACTIVE = "ACTIVE"
    WATCH = "WATCH"
    BLACKLISTED = "BLACKLISTED"


# Which SupplierMetrics counter each incident type increments
INCIDENT_COUNTERS: dict[IncidentType, str] = {
    IncidentType.QUALITY_ISSUE: "quality_incident_count",
    IncidentType.LATE_SHIPPING: "late_shipment_count",
    IncidentType.OUT_OF_STOCK: "stockout_count",
    IncidentType.COMMUNICATION_ISSUE: "communication_issue_count",
    IncidentType.PRICE_CHANGE: "price_change_count",
}


class SupplierMetrics(BaseModel):
    """
    Accumulated counters for one supplier

    Created lazily the first time a supplier is seen. Counters only grow.
    """

    supplier_id: str = Field(..., description="Stable supplier identifier")
    total_orders: int = Field(default=0, ge=0)
    successful_orders: int = Field(default=0, ge=0)
    shipping_durations: list[float] = Field(
        default_factory=list,
        description="Most recent shipping durations in days (bounded window)",
    )
    quality_incident_count: int = Field(default=0, ge=0)
    late_shipment_count: int = Field(default=0, ge=0)
    stockout_count: int = Field(default=0, ge=0)
    communication_issue_count: int = Field(default=0, ge=0)
    price_change_count: int = Field(default=0, ge=0)
    first_seen: datetime = Field(..., description="When the supplier was first seen")
    last_updated: datetime = Field(..., description="Time of the latest mutation")

    @model_validator(mode="after")
    def validate_success_bound(self) -> "SupplierMetrics":
        if self.successful_orders > self.total_orders:
            raise ValueError(
                f"successful_orders ({self.successful_orders}) cannot exceed "
                f"total_orders ({self.total_orders})"
            )
        return self

    @property
    def total_incidents(self) -> int:
        return sum(getattr(self, counter) for counter in INCIDENT_COUNTERS.values())


class Incident(BaseModel):
    """A reported negative event attributable to a supplier (immutable)"""

    incident_id: str = Field(..., description="Unique incident identifier")
    supplier_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)
    type: IncidentType
    severity: IncidentSeverity
    description: str = Field(default="")
    impact: int = Field(..., ge=1, le=10, description="Caller-supplied weight 1-10")
    reported_at: datetime

    model_config = {"frozen": True}


class BlacklistEntry(BaseModel):
    """Active suppression of a supplier"""

    supplier_id: str = Field(..., min_length=1)
    reason: str = Field(..., description="Why the supplier was blacklisted")
    severity: BlacklistSeverity
    blacklisted_at: datetime
    blacklisted_by: str = Field(default="admin")
    expires_at: datetime | None = Field(default=None, description="None = no expiry")
    automatic: bool = Field(default=False, description="Created by the policy engine")

    model_config = {"frozen": True}

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Blacklist reason cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_permanent_has_no_expiry(self) -> "BlacklistEntry":
        if self.severity == BlacklistSeverity.PERMANENT and self.expires_at is not None:
            raise ValueError("Permanent blacklist entries cannot expire")
        return self

    def is_expired(self, check_time: datetime) -> bool:
        """True once check_time is strictly past expires_at"""
        if self.expires_at is None:
            return False
        return check_time > self.expires_at


class SubScores(BaseModel):
    """The four sub-scores behind a composite, each in [0, 100]"""

    quality: float = Field(..., ge=0.0, le=100.0)
    on_time: float = Field(..., ge=0.0, le=100.0)
    success_rate: float = Field(..., ge=0.0, le=100.0)
    satisfaction: float = Field(..., ge=0.0, le=100.0)


class SupplierReport(BaseModel):
    """Displayable snapshot of one supplier (derived, never stored)"""

    supplier_id: str
    total_orders: int
    successful_orders: int
    quality_incident_count: int
    late_shipment_count: int
    stockout_count: int
    communication_issue_count: int
    price_change_count: int
    average_shipping_days: float | None
    success_rate: float = Field(..., ge=0.0, le=100.0)
    on_time_delivery: float = Field(..., ge=0.0, le=100.0)
    quality_score: float = Field(..., ge=0.0, le=100.0)
    customer_satisfaction: float = Field(..., ge=0.0, le=100.0)
    overall_score: int = Field(..., ge=0, le=100)
    tier: SupplierTier
    status: SupplierStatus
    recent_incident_count: int = Field(..., ge=0)
    blacklist: BlacklistEntry | None = None
    first_seen: datetime
    last_updated: datetime


class RankingEntry(BaseModel):
    """One row of the supplier ranking"""

    supplier_id: str
    score: int = Field(..., ge=0, le=100)
    total_orders: int = Field(..., ge=0)


class SupplierTiers(BaseModel):
    """Suppliers partitioned by tier, each list in ranking order"""

    elite: list[str] = Field(default_factory=list)
    good: list[str] = Field(default_factory=list)
    poor: list[str] = Field(default_factory=list)


class TrackerOverview(BaseModel):
    """Dashboard summary of the whole supplier base"""

    total_suppliers: int
    active_suppliers: int
    blacklisted_suppliers: int
    recent_incidents: int = Field(..., description="Incidents in the last 7 days")
    tiers: SupplierTiers
    top_performers: list[str] = Field(..., description="Best five active suppliers")

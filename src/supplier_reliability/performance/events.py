"""
Supplier Performance Events

Payload schemas for everything the tracker records. Handlers and triggers
build these, dump them to JSON-safe dicts and wrap them in the kernel Event
envelope; projections read the dicts back.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from supplier_reliability.performance.models import (
    BlacklistSeverity,
    IncidentSeverity,
    IncidentType,
)

# ============================================================================
# Intake Events
# ============================================================================


class OrderTracked(BaseModel):
    """Order outcome recorded for a supplier"""

    supplier_id: str = Field(..., description="Supplier identifier")
    order_id: str = Field(..., description="Order identifier")
    success: bool = Field(..., description="Fulfilled successfully")
    shipping_days: float | None = Field(
        default=None, description="Shipping duration (successful orders only)"
    )
    tracked_at: datetime = Field(..., description="When the outcome was recorded")


class IncidentReported(BaseModel):
    """Incident appended to the ledger"""

    incident_id: str = Field(..., description="Unique incident identifier")
    supplier_id: str = Field(..., description="Supplier identifier")
    order_id: str = Field(..., description="Related order")
    type: IncidentType = Field(..., description="Incident type")
    severity: IncidentSeverity = Field(..., description="Incident severity")
    description: str = Field(default="", description="Free-text description")
    impact: int = Field(..., ge=1, le=10, description="Impact weight")
    reported_at: datetime = Field(..., description="Report timestamp")


# ============================================================================
# Blacklist Events
# ============================================================================


class SupplierBlacklisted(BaseModel):
    """
    Blacklist entry created or overwritten

    trigger records which policy rule fired for automatic entries
    ("score_below_threshold", "critical_incident", "high_impact_incident");
    it is None for admin actions.
    """

    supplier_id: str = Field(..., description="Supplier identifier")
    reason: str = Field(..., description="Reason for blacklisting")
    severity: BlacklistSeverity = Field(..., description="Entry severity")
    blacklisted_at: datetime = Field(..., description="Blacklist timestamp")
    blacklisted_by: str = Field(..., description="Actor or 'system'")
    expires_at: datetime | None = Field(default=None, description="Expiry (None = never)")
    automatic: bool = Field(default=False, description="Created by the policy engine")
    trigger: str | None = Field(default=None, description="Policy rule that fired")
    score: int | None = Field(default=None, description="Composite score at decision time")


class SupplierBlacklistRemoved(BaseModel):
    """Active blacklist entry lifted explicitly"""

    supplier_id: str = Field(..., description="Supplier identifier")
    removed_at: datetime = Field(..., description="Removal timestamp")
    removed_by: str = Field(..., description="Actor who lifted the entry")
    previous_severity: BlacklistSeverity = Field(..., description="Severity of lifted entry")


class BlacklistExpired(BaseModel):
    """Active blacklist entry passed its expiry and was dropped"""

    supplier_id: str = Field(..., description="Supplier identifier")
    expired_at: datetime = Field(..., description="When the expiry was applied")
    expires_at: datetime = Field(..., description="The entry's expiry time")
    severity: BlacklistSeverity = Field(..., description="Severity of expired entry")

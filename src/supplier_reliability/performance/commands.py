"""
Supplier Performance Commands

Commands are the validated inputs of the tracker's mutations. Building one
from raw caller values is where unknown enum values, blank ids and
out-of-range impacts are rejected, before any state is touched.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from supplier_reliability.performance.models import (
    BlacklistSeverity,
    IncidentSeverity,
    IncidentType,
)


def _non_blank(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value.strip()


class TrackOrder(BaseModel):
    """Record the outcome of one order fulfilled by a supplier"""

    supplier_id: str = Field(..., description="Supplier that fulfilled the order")
    order_id: str = Field(..., description="Storefront order id")
    success: bool = Field(..., description="Whether the order was fulfilled successfully")
    shipping_days: float | None = Field(
        default=None,
        gt=0,
        allow_inf_nan=False,
        description="Days from order to delivery (only recorded for successful orders)",
    )

    @field_validator("supplier_id")
    @classmethod
    def validate_supplier_id(cls, v: str) -> str:
        return _non_blank(v, "Supplier id")

    @field_validator("order_id")
    @classmethod
    def validate_order_id(cls, v: str) -> str:
        return _non_blank(v, "Order id")


class ReportIncident(BaseModel):
    """Report a quality, shipping, stock, communication or pricing incident"""

    supplier_id: str = Field(..., description="Supplier the incident is attributed to")
    order_id: str = Field(..., description="Order the incident relates to")
    type: IncidentType = Field(..., description="Incident type")
    severity: IncidentSeverity = Field(..., description="Incident severity")
    description: str = Field(default="", description="Free-text description")
    impact: int = Field(
        ..., ge=1, le=10, strict=True, description="Caller-supplied weight 1-10"
    )

    @field_validator("supplier_id")
    @classmethod
    def validate_supplier_id(cls, v: str) -> str:
        return _non_blank(v, "Supplier id")

    @field_validator("order_id")
    @classmethod
    def validate_order_id(cls, v: str) -> str:
        return _non_blank(v, "Order id")


class BlacklistSupplier(BaseModel):
    """
    Explicitly blacklist a supplier (admin action)

    Overwrites any active entry for the supplier.
    """

    supplier_id: str = Field(..., description="Supplier to blacklist")
    reason: str = Field(..., description="Reason shown to operators")
    severity: BlacklistSeverity = Field(default=BlacklistSeverity.WARNING)
    expires_at: datetime | None = Field(default=None, description="None = no expiry")
    blacklisted_by: str = Field(default="admin", description="Actor applying the entry")

    @field_validator("supplier_id")
    @classmethod
    def validate_supplier_id(cls, v: str) -> str:
        return _non_blank(v, "Supplier id")

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        return _non_blank(v, "Blacklist reason")

    @field_validator("blacklisted_by")
    @classmethod
    def validate_blacklisted_by(cls, v: str) -> str:
        return _non_blank(v, "blacklisted_by")


class RemoveFromBlacklist(BaseModel):
    """Lift the active blacklist entry of a supplier"""

    supplier_id: str = Field(..., description="Supplier to reinstate")

    @field_validator("supplier_id")
    @classmethod
    def validate_supplier_id(cls, v: str) -> str:
        return _non_blank(v, "Supplier id")

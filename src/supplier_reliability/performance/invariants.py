"""
Supplier Performance Invariants

Pure validation functions checked by the handlers before any event is
emitted. They raise the kernel's ValidationError family so callers see a
single error type for malformed input.
"""

import math
from datetime import datetime

from supplier_reliability.kernel.errors import (
    PermanentBlacklistWithExpiry,
    ValidationError,
)
from supplier_reliability.performance.models import BlacklistSeverity


def validate_permanent_has_no_expiry(
    supplier_id: str,
    severity: BlacklistSeverity,
    expires_at: datetime | None,
) -> None:
    """
    Permanent entries never expire

    Raises:
        PermanentBlacklistWithExpiry: If a permanent entry carries expires_at
    """
    if severity == BlacklistSeverity.PERMANENT and expires_at is not None:
        raise PermanentBlacklistWithExpiry(supplier_id)


def validate_lookback_days(days: float) -> None:
    """
    Incident queries look backwards only

    Raises:
        ValidationError: If days is negative or not a finite number
    """
    if isinstance(days, float) and not math.isfinite(days):
        raise ValidationError(f"Lookback window must be a finite number of days, got {days}")
    if days < 0:
        raise ValidationError(f"Lookback window cannot be negative, got {days}")

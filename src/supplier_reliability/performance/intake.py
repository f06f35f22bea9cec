"""
Returns and quality-issue intake

Maps storefront return reasons and customer quality reports onto incidents.
Only returns that are the supplier's fault become quality incidents; the
rest are recorded as failed orders alone.
"""

from supplier_reliability.kernel.errors import ValidationError
from supplier_reliability.performance.models import IncidentSeverity

# Return reason -> (severity, impact) of the quality incident it causes
SUPPLIER_FAULT_RETURNS: dict[str, tuple[IncidentSeverity, int]] = {
    "defective": (IncidentSeverity.HIGH, 7),
    "not-as-described": (IncidentSeverity.MEDIUM, 5),
    "wrong-item": (IncidentSeverity.MEDIUM, 5),
}

QUALITY_ISSUE_IMPACT: dict[IncidentSeverity, int] = {
    IncidentSeverity.CRITICAL: 8,
    IncidentSeverity.HIGH: 6,
    IncidentSeverity.MEDIUM: 4,
    IncidentSeverity.LOW: 2,
}


def normalize_return_reason(reason: str) -> str:
    """'Not As Described' and 'not_as_described' both become 'not-as-described'"""
    if not reason or not reason.strip():
        raise ValidationError("Return reason cannot be empty")
    return "-".join(reason.strip().lower().replace("_", " ").split())


def incident_for_return(reason: str) -> tuple[IncidentSeverity, int] | None:
    """Severity and impact of the quality incident a return causes, if any"""
    return SUPPLIER_FAULT_RETURNS.get(normalize_return_reason(reason))


def return_description(reason: str, description: str = "") -> str:
    return f"Return due to {normalize_return_reason(reason)}: {description or 'Customer return'}"


def quality_issue_impact(severity: IncidentSeverity | str) -> int:
    """
    Impact of a customer-reported quality issue

    Raises:
        ValidationError: For an unknown severity
    """
    try:
        return QUALITY_ISSUE_IMPACT[IncidentSeverity(severity)]
    except ValueError as e:
        raise ValidationError(f"Unknown incident severity: {severity}") from e


def quality_issue_description(issue_type: str, description: str) -> str:
    if not issue_type or not issue_type.strip():
        raise ValidationError("Quality issue type cannot be empty")
    return f"{issue_type.strip()}: {description}"

"""
Custom exceptions for the supplier reliability tracker

A small, well-defined hierarchy lets the HTTP layer map failures onto
transport responses (400 for validation, 404 for not-found) without
inspecting messages.
"""

from typing import Any


class TrackerError(Exception):
    """Base exception for all tracker errors"""

    pass


class ValidationError(TrackerError):
    """
    Raised when caller input is malformed

    Unknown enum value, empty required field, out-of-range impact and the
    like. The operation is aborted before any state is touched.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class NotFoundError(TrackerError):
    """Raised when an operation requires a supplier that was never seen"""

    def __init__(self, supplier_id: str) -> None:
        self.supplier_id = supplier_id
        super().__init__(f"Supplier {supplier_id} not found")


class EventStoreError(TrackerError):
    """Base class for event store errors"""

    pass


class StreamVersionConflict(EventStoreError):
    """
    Raised when stream version doesn't match expected (optimistic locking)

    Indicates a concurrent writer - caller should reload and retry.
    """

    def __init__(self, stream_id: str, expected_version: int, actual_version: int) -> None:
        self.stream_id = stream_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stream {stream_id} version mismatch: "
            f"expected {expected_version}, got {actual_version}"
        )


class InvariantViolation(ValidationError):
    """Raised when a domain invariant would be violated by the request"""

    pass


class PermanentBlacklistWithExpiry(InvariantViolation):
    """Raised when a permanent blacklist entry is given an expiry date"""

    def __init__(self, supplier_id: str) -> None:
        self.supplier_id = supplier_id
        super().__init__(
            f"Permanent blacklist for supplier {supplier_id} cannot have an expiry date"
        )


def from_pydantic(exc: Any, subject: str) -> ValidationError:
    """
    Translate a pydantic ValidationError into the tracker's ValidationError

    Args:
        exc: pydantic.ValidationError raised while building an input model
        subject: What was being validated (e.g. "ReportIncident")

    Returns:
        ValidationError carrying the pydantic field errors
    """
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    return ValidationError(f"Invalid {subject}: {summary}", errors=errors)

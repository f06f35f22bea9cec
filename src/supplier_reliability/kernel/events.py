"""
Base Event model

Every mutation of the tracker is recorded as one or more immutable events.
Projections (metrics, incident ledger, blacklist registry) are rebuilt by
replaying them, so the stored log is the single source of truth.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Event(BaseModel):
    """
    Base event - all tracker events share this envelope

    stream_id is the supplier id; version increases by one per event in the
    supplier's stream. command_id groups the events of one facade call so a
    mutation and the blacklist decision it caused are persisted together.
    """

    event_id: str = Field(..., description="Unique event identifier (UUIDv7)")

    stream_id: str = Field(..., description="Supplier identifier")

    stream_type: str = Field(default="Supplier", description="Aggregate type")

    event_type: str = Field(
        ...,
        description="Event type: 'OrderTracked', 'IncidentReported', 'SupplierBlacklisted', ...",
    )

    occurred_at: datetime = Field(..., description="UTC timestamp when event occurred")

    actor_id: str | None = Field(
        default=None,
        description="Actor who triggered the event ('system' for policy reactions)",
    )

    command_id: str = Field(..., description="ID of the facade call that caused this event")

    payload: dict = Field(default_factory=dict, description="JSON-serializable event data")

    version: int = Field(..., ge=1, description="Stream version after this event")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "event_id": "01908e9a-3b87-7000-8000-123456789abc",
                    "stream_id": "spocket_luxe_home_united_states",
                    "stream_type": "Supplier",
                    "event_type": "OrderTracked",
                    "occurred_at": "2025-01-15T10:30:00Z",
                    "actor_id": "webhook",
                    "command_id": "01908e9a-3b87-7000-8000-123456789abd",
                    "payload": {"order_id": "o-1", "success": True, "shipping_days": 5.0},
                    "version": 1,
                }
            ]
        },
    }


def create_event(
    *,
    event_id: str,
    stream_id: str,
    event_type: str,
    occurred_at: datetime,
    command_id: str,
    version: int,
    actor_id: str | None = None,
    payload: dict | None = None,
    stream_type: str = "Supplier",
) -> Event:
    """Factory for events with named parameters"""
    return Event(
        event_id=event_id,
        stream_id=stream_id,
        stream_type=stream_type,
        event_type=event_type,
        occurred_at=occurred_at,
        actor_id=actor_id,
        command_id=command_id,
        payload=payload or {},
        version=version,
    )

"""
Domain events for the audit trail (lightweight).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class EventVersion(str, Enum):
    """Event version for upcasting."""
    V1 = "1.0"


@dataclass
class DomainEvent:
    """Base domain event."""
    event_id: UUID
    aggregate_id: UUID
    event_type: str
    # version and occurred_at are set in subclasses to avoid dataclass field ordering issues


@dataclass
class OrderPlaced(DomainEvent):
    """Order written for a confirmed payment."""
    payment_reference: str
    total_minor_units: int
    items_count: int
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


@dataclass
class OrderCancelled(DomainEvent):
    """Order cancelled, either at creation (oversold) or by an admin."""
    payment_reference: str
    reason: str
    unfulfillable: list = field(default_factory=list)
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


@dataclass
class OrderStatusChanged(DomainEvent):
    """Admin-driven status transition."""
    previous_status: str
    new_status: str
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


@dataclass
class EditionsSold(DomainEvent):
    """Ledger increment for one order line; aggregate_id is the order id."""
    artwork_id: str
    size: str
    quantity: int
    edition_number_start: int
    payment_reference: str
    order_id: UUID | None = None
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""

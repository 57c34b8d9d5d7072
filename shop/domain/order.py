"""
Domain model for Order aggregate.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from shop.domain.exceptions import InvalidStatusTransitionError


class OrderStatus(str, Enum):
    """Order status enumeration."""
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


@dataclass(frozen=True)
class ShippingAddress:
    line1: str
    city: str
    postal_code: str
    country: str
    state: str = ""
    line2: str = ""

    def as_dict(self) -> dict:
        return {
            "line1": self.line1,
            "line2": self.line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ShippingAddress | None":
        if not data:
            return None
        return cls(
            line1=data.get("line1") or "",
            line2=data.get("line2") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            postal_code=data.get("postal_code") or "",
            country=data.get("country") or "",
        )


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    address: ShippingAddress | None = None


@dataclass
class OrderLineItem:
    """Order line value object."""
    artwork_id: str
    size: str
    unit_price_minor_units: int
    quantity: int
    edition_number_start: int | None = None
    title: str = ""
    unfulfillable: bool = False

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError("Quantity must be positive")
        if self.unit_price_minor_units < 0:
            raise ValueError("Price must be non-negative")
        self.artwork_id = str(self.artwork_id)

    @property
    def key(self) -> tuple[str, str]:
        return (self.artwork_id, self.size)

    @property
    def edition_number_end(self) -> int | None:
        if self.edition_number_start is None:
            return None
        return self.edition_number_start + self.quantity - 1

    @property
    def subtotal_minor_units(self) -> int:
        return self.unit_price_minor_units * self.quantity


class Order:
    """Order aggregate root. Immutable after creation except for status."""

    def __init__(
        self,
        items: list[OrderLineItem],
        customer: CustomerInfo,
        payment_reference: str,
        status: OrderStatus = OrderStatus.PAID,
        currency: str = "usd",
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        if not items:
            raise ValueError("Order must contain at least one item")
        if not payment_reference:
            raise ValueError("Payment reference is required")

        self.id = id or uuid4()
        self._items = list(items)
        self.customer = customer
        self.payment_reference = payment_reference
        self._status = status
        self.currency = currency
        self.created_at = created_at

    @property
    def items(self) -> list[OrderLineItem]:
        """Get order items (copy)."""
        return list(self._items)

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def total_minor_units(self) -> int:
        """Calculate total from line items."""
        return sum(item.subtotal_minor_units for item in self._items)

    @property
    def unfulfillable_items(self) -> list[OrderLineItem]:
        return [item for item in self._items if item.unfulfillable]

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self._status]

    def transition_to(self, new_status: OrderStatus) -> OrderStatus:
        """Move to ``new_status``; returns the previous status."""
        new_status = OrderStatus(new_status)
        if not self.can_transition_to(new_status):
            raise InvalidStatusTransitionError(
                f"Cannot move order {self.id} from {self._status.value} to {new_status.value}"
            )
        previous = self._status
        self._status = new_status
        return previous

    def start_processing(self) -> None:
        self.transition_to(OrderStatus.PROCESSING)

    def ship(self) -> None:
        self.transition_to(OrderStatus.SHIPPED)

    def deliver(self) -> None:
        self.transition_to(OrderStatus.DELIVERED)

    def cancel(self) -> None:
        self.transition_to(OrderStatus.CANCELLED)

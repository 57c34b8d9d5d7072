"""
Value objects exchanged with the payment provider.
"""
from __future__ import annotations

from dataclasses import dataclass

from shop.domain.order import CustomerInfo


@dataclass(frozen=True)
class CheckoutItem:
    """One cart line submitted for checkout."""
    artwork_id: str
    size: str
    quantity: int
    expected_unit_price: int
    title: str = ""
    size_display: str = ""
    image_url: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.artwork_id, self.size)


@dataclass(frozen=True)
class SessionLineItem:
    """Validated line sent to the provider with its prospective edition range."""
    artwork_id: str
    size: str
    title: str
    size_display: str
    image_url: str
    unit_price_minor_units: int
    quantity: int
    edition_limit: int
    edition_number_start: int

    @property
    def edition_number_end(self) -> int:
        return self.edition_number_start + self.quantity - 1

    def metadata(self) -> dict:
        """Product metadata attached to the provider line item."""
        return {
            "artwork_id": self.artwork_id,
            "size": self.size,
            "unit_price": str(self.unit_price_minor_units),
            "edition_number_start": str(self.edition_number_start),
            "edition_number_end": str(self.edition_number_end),
        }


@dataclass(frozen=True)
class PaymentLine:
    """Line item carried by a payment confirmation event."""
    artwork_id: str
    size: str
    quantity: int
    unit_price_minor_units: int
    provisional_edition_number: int | None = None
    title: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.artwork_id, self.size)


@dataclass(frozen=True)
class PaymentConfirmation:
    """A completed payment reported by the provider."""
    payment_reference: str
    lines: list[PaymentLine]
    customer: CustomerInfo
    currency: str = "usd"
    session_id: str = ""
    amount_total: int | None = None

"""
Checkout reservation step: validate a cart against the ledger, then open a
payment session. Never writes to the ledger.
"""
from __future__ import annotations

import logging
from collections import defaultdict

from shop.domain.edition import ArtworkEdition, is_available
from shop.domain.exceptions import NotFoundError, PriceMismatchError, SoldOutError
from shop.domain.order import CustomerInfo
from shop.domain.payment import CheckoutItem, SessionLineItem
from shop.infra.payments import PaymentGateway
from shop.infra.pii_masker import mask_email
from shop.infra.repositories import EditionRepository, OrderRepository

logger = logging.getLogger(__name__)


class CheckoutService:
    """Service for checkout operations."""

    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        edition_repo: EditionRepository | None = None,
        order_repo: OrderRepository | None = None,
    ):
        self.gateway = gateway or PaymentGateway.from_settings()
        self.edition_repo = edition_repo or EditionRepository()
        self.order_repo = order_repo or OrderRepository()

    def validate_items(self, items: list[CheckoutItem]) -> list[SessionLineItem]:
        """
        Re-check every item against freshly read editions.

        Repeated lines for the same edition are checked cumulatively and get
        consecutive prospective edition numbers.
        """
        if not items:
            raise ValueError("Checkout requires at least one item")

        editions: dict[tuple[str, str], ArtworkEdition] = {}
        requested: dict[tuple[str, str], int] = defaultdict(int)
        lines = []

        for item in items:
            if item.quantity < 1:
                raise ValueError("Quantity must be at least 1")

            edition = editions.get(item.key)
            if edition is None:
                edition = self.edition_repo.get(item.artwork_id, item.size)
                if edition is None:
                    raise NotFoundError(
                        f"Size {item.size} not available for artwork {item.artwork_id}"
                    )
                editions[item.key] = edition

            already_requested = requested[item.key]
            total_requested = already_requested + item.quantity
            if not is_available(edition, total_requested):
                raise SoldOutError(
                    edition.title,
                    item.size_display or edition.size_display,
                    total_requested,
                    edition.remaining,
                )
            if item.expected_unit_price != edition.price_minor_units:
                raise PriceMismatchError(
                    edition.title,
                    item.size_display or edition.size_display,
                    item.expected_unit_price,
                    edition.price_minor_units,
                )

            requested[item.key] = total_requested
            lines.append(SessionLineItem(
                artwork_id=edition.artwork_id,
                size=edition.size,
                title=edition.title,
                size_display=item.size_display or edition.size_display,
                image_url=item.image_url,
                unit_price_minor_units=edition.price_minor_units,
                quantity=item.quantity,
                edition_limit=edition.edition_limit,
                # provisional; the payment event processor assigns the real numbers
                edition_number_start=edition.editions_sold + already_requested + 1,
            ))

        return lines

    def create_checkout_session(self, items: list[CheckoutItem], customer: CustomerInfo) -> dict:
        """Validate the cart and create a payment session; returns {"sessionId", "url"}."""
        lines = self.validate_items(items)
        session = self.gateway.create_checkout_session(lines, customer)

        logger.info(
            "checkout_session_created",
            extra={
                "operation": "CREATE_CHECKOUT",
                "session_id": session["id"],
                "items_count": len(lines),
                "customer_email": mask_email(customer.email),
            },
        )
        return {"sessionId": session["id"], "url": session["url"]}

    def describe_session(self, session_id: str) -> dict:
        """Summary for the checkout success page, preferring the written order."""
        session = self.gateway.retrieve_session(session_id)
        payment_reference = session["payment_intent"] or session["id"]
        order = self.order_repo.get_by_payment_reference(payment_reference)

        if order is None:
            return {
                "id": session["id"],
                "customer": {
                    "name": session["customer_name"],
                    "email": session["customer_email"],
                },
                "total": session["amount_total"],
                "status": session["payment_status"],
                "items": [],
                "created_at": None,
            }

        return {
            "id": str(order.id),
            "customer": {
                "name": order.customer.name,
                "email": order.customer.email,
            },
            "total": order.total_minor_units,
            "status": order.status.value,
            "items": [
                {
                    "artwork_id": item.artwork_id,
                    "size": item.size,
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price_minor_units,
                    "edition_number_start": item.edition_number_start,
                    "edition_number_end": item.edition_number_end,
                    "unfulfillable": item.unfulfillable,
                }
                for item in order.items
            ],
            "created_at": order.created_at.isoformat() if order.created_at else None,
        }

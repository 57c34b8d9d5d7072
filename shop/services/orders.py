"""
Order writer and order administration services.
"""
from __future__ import annotations

import logging
from uuid import UUID, uuid4

from django.db import transaction

from shop.domain.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from shop.domain.exceptions import DuplicatePaymentReferenceError, NotFoundError
from shop.domain.order import CustomerInfo, Order, OrderLineItem, OrderStatus
from shop.infra.event_store import EventStoreRepository
from shop.infra.pii_masker import mask_pii_in_dict
from shop.infra.repositories import OrderRepository

logger = logging.getLogger(__name__)


class OrderWriter:
    """Creates immutable order records, one per payment reference."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        event_store_repo: EventStoreRepository | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.event_store_repo = event_store_repo or EventStoreRepository()

    @transaction.atomic
    def create_order(
        self,
        line_items: list[OrderLineItem],
        customer: CustomerInfo,
        payment_reference: str,
        status: OrderStatus = OrderStatus.PAID,
        currency: str = "usd",
        cancellation_reason: str = "",
    ) -> Order:
        """Persist one order; the total is always computed from ``line_items``."""
        if status not in (OrderStatus.PAID, OrderStatus.CANCELLED):
            raise ValueError(f"Orders are created as paid or cancelled, not {status.value}")

        if self.order_repo.exists_for_payment_reference(payment_reference):
            raise DuplicatePaymentReferenceError(payment_reference)

        order = Order(
            items=line_items,
            customer=customer,
            payment_reference=payment_reference,
            status=status,
            currency=currency,
        )
        self.order_repo.add(order)

        self.event_store_repo.save_event(
            OrderPlaced(
                event_id=uuid4(),
                aggregate_id=order.id,
                event_type="OrderPlaced",
                payment_reference=payment_reference,
                total_minor_units=order.total_minor_units,
                items_count=len(order.items),
            ),
            "Order",
        )
        if status == OrderStatus.CANCELLED:
            self.event_store_repo.save_event(
                OrderCancelled(
                    event_id=uuid4(),
                    aggregate_id=order.id,
                    event_type="OrderCancelled",
                    payment_reference=payment_reference,
                    reason=cancellation_reason,
                    unfulfillable=[
                        {"artwork_id": item.artwork_id, "size": item.size, "quantity": item.quantity}
                        for item in order.unfulfillable_items
                    ],
                ),
                "Order",
            )

        logger.info(
            "order_created",
            extra={
                "order_id": str(order.id),
                "payment_reference": payment_reference,
                "status": order.status.value,
                "customer": mask_pii_in_dict({
                    "name": customer.name,
                    "email": customer.email,
                    "address": customer.address.as_dict() if customer.address else None,
                }),
            },
        )
        return order


class OrderService:
    """Read access and admin-driven status transitions."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        event_store_repo: EventStoreRepository | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.event_store_repo = event_store_repo or EventStoreRepository()

    def get_order(self, order_id: UUID) -> Order | None:
        """Get order by ID."""
        return self.order_repo.get_by_id(order_id)

    def get_order_by_payment_reference(self, payment_reference: str) -> Order | None:
        return self.order_repo.get_by_payment_reference(payment_reference)

    def list_orders(self, status: OrderStatus | None = None, limit: int = 50, offset: int = 0) -> list[Order]:
        """Get orders newest first with pagination."""
        limit = max(1, min(limit, 200))
        return self.order_repo.list_orders(status=status, limit=limit, offset=max(0, offset))

    @transaction.atomic
    def change_status(self, order_id: UUID, new_status: OrderStatus) -> Order:
        """Apply an admin status transition (paid → processing → shipped → delivered, or cancel)."""
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        previous = order.transition_to(OrderStatus(new_status))
        self.order_repo.update_status(order, expected_status=previous)

        self.event_store_repo.save_event(
            OrderStatusChanged(
                event_id=uuid4(),
                aggregate_id=order.id,
                event_type="OrderStatusChanged",
                previous_status=previous.value,
                new_status=order.status.value,
            ),
            "Order",
        )
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(order.id),
                "operation": f"{previous.value}->{order.status.value}",
                "status": order.status.value,
            },
        )
        return order

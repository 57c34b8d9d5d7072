"""
Payment event processor.

Turns an at-least-once "payment confirmed" notification into exactly one
order and at most one ledger increment per line. The idempotency key is the
payment reference; the ledger increments and the order insert share one
database transaction, so a retry after a crash finds nothing half-applied.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from uuid import uuid4

from django.db import transaction

from shop.domain.edition import ArtworkEdition, is_available
from shop.domain.events import EditionsSold
from shop.domain.exceptions import DuplicatePaymentReferenceError
from shop.domain.order import Order, OrderLineItem, OrderStatus
from shop.domain.payment import PaymentConfirmation
from shop.infra.event_store import EventStoreRepository
from shop.infra.locks import edition_locks
from shop.infra.repositories import EditionRepository, OrderRepository
from shop.services.orders import OrderWriter

logger = logging.getLogger(__name__)


class PaymentEventProcessor:
    """Service for confirmed payments."""

    def __init__(
        self,
        edition_repo: EditionRepository | None = None,
        order_repo: OrderRepository | None = None,
        order_writer: OrderWriter | None = None,
        event_store_repo: EventStoreRepository | None = None,
    ):
        self.edition_repo = edition_repo or EditionRepository()
        self.order_repo = order_repo or OrderRepository()
        self.event_store_repo = event_store_repo or EventStoreRepository()
        self.order_writer = order_writer or OrderWriter(
            order_repo=self.order_repo,
            event_store_repo=self.event_store_repo,
        )

    def process(self, confirmation: PaymentConfirmation) -> Order:
        """Handle one payment confirmation; safe to call again with the same event."""
        reference = confirmation.payment_reference

        existing = self.order_repo.get_by_payment_reference(reference)
        if existing:
            logger.info(
                "payment_event_duplicate",
                extra={"payment_reference": reference, "order_id": str(existing.id)},
            )
            return existing

        try:
            with transaction.atomic():
                return self._apply(confirmation)
        except DuplicatePaymentReferenceError:
            # a concurrent delivery of the same event committed first
            order = self.order_repo.get_by_payment_reference(reference)
            logger.info(
                "payment_event_duplicate",
                extra={"payment_reference": reference, "order_id": str(order.id) if order else None},
            )
            if order is None:
                raise
            return order

    def _apply(self, confirmation: PaymentConfirmation) -> Order:
        reference = confirmation.payment_reference

        with edition_locks(line.key for line in confirmation.lines):
            # re-check inside the transaction now that the editions are locked
            if self.order_repo.exists_for_payment_reference(reference):
                raise DuplicatePaymentReferenceError(reference)

            editions: dict[tuple[str, str], ArtworkEdition | None] = {}
            for key in sorted({line.key for line in confirmation.lines}):
                editions[key] = self.edition_repo.get_for_update(*key)

            unfulfillable = self._find_unfulfillable(confirmation, editions)
            if unfulfillable:
                return self._write_cancelled(confirmation, editions, unfulfillable)

            items = []
            sales = []
            for line in confirmation.lines:
                edition = editions[line.key]
                edition_number_start = edition.sell(line.quantity)
                self.edition_repo.record_sale(edition, line.quantity)
                if line.provisional_edition_number not in (None, edition_number_start):
                    # another buyer paid first; the number shown at checkout moves up
                    logger.info(
                        "edition_number_reassigned",
                        extra={
                            "payment_reference": reference,
                            "artwork_id": line.artwork_id,
                            "size": line.size,
                            "status": f"provisional={line.provisional_edition_number} assigned={edition_number_start}",
                        },
                    )
                sales.append((line, edition_number_start))
                items.append(OrderLineItem(
                    artwork_id=line.artwork_id,
                    size=line.size,
                    unit_price_minor_units=line.unit_price_minor_units,
                    quantity=line.quantity,
                    edition_number_start=edition_number_start,
                    title=line.title or edition.title,
                ))

            order = self.order_writer.create_order(
                items,
                confirmation.customer,
                reference,
                status=OrderStatus.PAID,
                currency=confirmation.currency,
            )

            for line, edition_number_start in sales:
                self.event_store_repo.save_event(
                    EditionsSold(
                        event_id=uuid4(),
                        aggregate_id=order.id,
                        event_type="EditionsSold",
                        artwork_id=line.artwork_id,
                        size=line.size,
                        quantity=line.quantity,
                        edition_number_start=edition_number_start,
                        payment_reference=reference,
                        order_id=order.id,
                    ),
                    "Edition",
                )

        if confirmation.amount_total is not None and confirmation.amount_total != order.total_minor_units:
            logger.warning(
                "payment_amount_mismatch",
                extra={
                    "payment_reference": reference,
                    "order_id": str(order.id),
                    "status": f"charged={confirmation.amount_total} computed={order.total_minor_units}",
                },
            )
        logger.info(
            "payment_event_processed",
            extra={
                "payment_reference": reference,
                "session_id": confirmation.session_id,
                "order_id": str(order.id),
                "status": order.status.value,
            },
        )
        return order

    def _find_unfulfillable(self, confirmation: PaymentConfirmation, editions: dict) -> set[int]:
        """Indexes of lines that no longer fit, counting earlier lines of the same edition."""
        requested: dict[tuple[str, str], int] = defaultdict(int)
        unfulfillable = set()
        for index, line in enumerate(confirmation.lines):
            edition = editions[line.key]
            requested[line.key] += line.quantity
            if edition is None or not is_available(edition, requested[line.key]):
                unfulfillable.add(index)
        return unfulfillable

    def _write_cancelled(self, confirmation: PaymentConfirmation, editions: dict, unfulfillable: set[int]) -> Order:
        """Record the payment as a cancelled order without touching the ledger."""
        reference = confirmation.payment_reference
        items = []
        for index, line in enumerate(confirmation.lines):
            edition = editions[line.key]
            items.append(OrderLineItem(
                artwork_id=line.artwork_id,
                size=line.size,
                unit_price_minor_units=line.unit_price_minor_units,
                quantity=line.quantity,
                title=line.title or (edition.title if edition else ""),
                unfulfillable=index in unfulfillable,
            ))

            if index in unfulfillable:
                logger.error(
                    "payment_event_oversold",
                    extra={
                        "payment_reference": reference,
                        "artwork_id": line.artwork_id,
                        "size": line.size,
                        "status": (
                            f"requested={line.quantity} "
                            f"remaining={edition.remaining if edition else 'missing'}"
                        ),
                    },
                )

        return self.order_writer.create_order(
            items,
            confirmation.customer,
            reference,
            status=OrderStatus.CANCELLED,
            currency=confirmation.currency,
            cancellation_reason="oversold",
        )

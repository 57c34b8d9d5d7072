"""
Infrastructure repositories for domain entities.
"""
from __future__ import annotations

from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from shop.domain.edition import ArtworkEdition
from shop.domain.exceptions import (
    ConcurrentEditionUpdateError,
    DuplicatePaymentReferenceError,
    InvalidStatusTransitionError,
)
from shop.domain.order import (
    CustomerInfo,
    Order,
    OrderLineItem,
    OrderStatus,
    ShippingAddress,
)
from shop.infra.models import ArtworkEditionORM, OrderItemORM, OrderORM


def _parse_uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError):
        return None


class EditionRepository:
    """Repository for the edition ledger. Sole writer of editions_sold."""

    def get(self, artwork_id: str, size: str) -> ArtworkEdition | None:
        """Fresh read of a published edition."""
        edition_orm = self._query(artwork_id, size)
        if edition_orm is None:
            return None
        return self._to_domain(edition_orm)

    def get_for_update(self, artwork_id: str, size: str) -> ArtworkEdition | None:
        """Read an edition row under a row lock (inside a transaction)."""
        edition_orm = self._query(artwork_id, size, for_update=True)
        if edition_orm is None:
            return None
        return self._to_domain(edition_orm)

    def record_sale(self, edition: ArtworkEdition, quantity: int) -> None:
        """
        Persist a sale already applied to ``edition`` by ArtworkEdition.sell().

        Conditional update: only succeeds if the row still holds the value
        read before the sale and the new value stays within the limit.
        """
        previous_sold = edition.editions_sold - quantity
        updated = (
            ArtworkEditionORM.objects
            .filter(
                artwork_id=_parse_uuid(edition.artwork_id),
                size=edition.size,
                editions_sold=previous_sold,
                edition_limit__gte=F("editions_sold") + quantity,
            )
            .update(
                editions_sold=F("editions_sold") + quantity,
                updated_at=timezone.now(),
            )
        )
        if updated != 1:
            raise ConcurrentEditionUpdateError(
                f"Edition {edition.artwork_id}/{edition.size} changed while selling {quantity}"
            )

    def list_all(self) -> list[ArtworkEdition]:
        editions = (
            ArtworkEditionORM.objects
            .select_related("artwork")
            .order_by("artwork__title", "size")
        )
        return [self._to_domain(edition_orm) for edition_orm in editions]

    def _query(self, artwork_id: str, size: str, for_update: bool = False) -> ArtworkEditionORM | None:
        artwork_uuid = _parse_uuid(artwork_id)
        if artwork_uuid is None:
            return None
        queryset = ArtworkEditionORM.objects.select_related("artwork").filter(
            artwork_id=artwork_uuid,
            artwork__is_published=True,
            size=size,
        )
        if for_update:
            queryset = queryset.select_for_update(of=("self",))
        return queryset.first()

    def _to_domain(self, edition_orm: ArtworkEditionORM) -> ArtworkEdition:
        return ArtworkEdition(
            artwork_id=str(edition_orm.artwork_id),
            size=edition_orm.size,
            price_minor_units=edition_orm.price,
            edition_limit=edition_orm.edition_limit,
            editions_sold=edition_orm.editions_sold,
            title=edition_orm.artwork.title,
            size_display=edition_orm.size_display,
        )


class OrderRepository:
    """Repository for Order aggregate."""

    def get_by_id(self, order_id: UUID) -> Order | None:
        """Get order by ID with items (no N+1)."""
        order_uuid = _parse_uuid(order_id)
        if order_uuid is None:
            return None
        try:
            order_orm = OrderORM.objects.prefetch_related("items").get(id=order_uuid)
        except OrderORM.DoesNotExist:
            return None
        return self._to_domain(order_orm)

    def get_by_payment_reference(self, payment_reference: str) -> Order | None:
        try:
            order_orm = (
                OrderORM.objects
                .prefetch_related("items")
                .get(payment_reference=payment_reference)
            )
        except OrderORM.DoesNotExist:
            return None
        return self._to_domain(order_orm)

    def exists_for_payment_reference(self, payment_reference: str) -> bool:
        return OrderORM.objects.filter(payment_reference=payment_reference).exists()

    def list_orders(self, status: OrderStatus | None = None, limit: int = 50, offset: int = 0) -> list[Order]:
        """List orders newest first, with pagination."""
        orders_orm = OrderORM.objects.prefetch_related("items").order_by("-created_at")
        if status is not None:
            orders_orm = orders_orm.filter(status=OrderStatus(status).value)
        return [self._to_domain(order_orm) for order_orm in orders_orm[offset:offset + limit]]

    @transaction.atomic
    def add(self, order: Order) -> Order:
        """Insert a new order with its items. Orders are never rewritten."""
        try:
            with transaction.atomic():
                order_orm = OrderORM.objects.create(
                    id=order.id,
                    customer_name=order.customer.name,
                    customer_email=order.customer.email,
                    shipping_address=order.customer.address.as_dict() if order.customer.address else None,
                    total_minor_units=order.total_minor_units,
                    currency=order.currency,
                    status=order.status.value,
                    payment_reference=order.payment_reference,
                )
        except IntegrityError as e:
            if OrderORM.objects.filter(payment_reference=order.payment_reference).exists():
                raise DuplicatePaymentReferenceError(order.payment_reference) from e
            raise

        OrderItemORM.objects.bulk_create([
            OrderItemORM(
                order=order_orm,
                position=position,
                artwork_id=_parse_uuid(item.artwork_id),
                size=item.size,
                title=item.title,
                unit_price_minor_units=item.unit_price_minor_units,
                quantity=item.quantity,
                edition_number_start=item.edition_number_start,
                unfulfillable=item.unfulfillable,
            )
            for position, item in enumerate(order.items)
        ])
        order.created_at = order_orm.created_at
        return order

    def update_status(self, order: Order, expected_status: OrderStatus) -> None:
        """Persist a status change made on the aggregate (compare-and-set)."""
        updated = OrderORM.objects.filter(id=order.id, status=expected_status.value).update(
            status=order.status.value,
            updated_at=timezone.now(),
        )
        if updated != 1:
            raise InvalidStatusTransitionError(f"Order {order.id} status changed concurrently")

    def fulfilled_quantities(self) -> dict[tuple[str, str], int]:
        """Sum of assigned quantities per (artwork, size) across all orders."""
        rows = (
            OrderItemORM.objects
            .filter(unfulfillable=False, edition_number_start__isnull=False)
            .values("artwork_id", "size")
            .annotate(total=Sum("quantity"))
        )
        return {(str(row["artwork_id"]), row["size"]): row["total"] for row in rows}

    def _to_domain(self, order_orm: OrderORM) -> Order:
        """Convert ORM model to domain entity."""
        items = [
            OrderLineItem(
                artwork_id=str(item_orm.artwork_id),
                size=item_orm.size,
                unit_price_minor_units=item_orm.unit_price_minor_units,
                quantity=item_orm.quantity,
                edition_number_start=item_orm.edition_number_start,
                title=item_orm.title,
                unfulfillable=item_orm.unfulfillable,
            )
            for item_orm in order_orm.items.all()
        ]
        customer = CustomerInfo(
            name=order_orm.customer_name,
            email=order_orm.customer_email,
            address=ShippingAddress.from_dict(order_orm.shipping_address),
        )
        return Order(
            id=order_orm.id,
            items=items,
            customer=customer,
            payment_reference=order_orm.payment_reference,
            status=OrderStatus(order_orm.status),
            currency=order_orm.currency,
            created_at=order_orm.created_at,
        )

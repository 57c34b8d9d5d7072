from __future__ import annotations

from uuid import uuid4

from django.db import models
from django.db.models import F, Q


ORDER_STATUS_CHOICES = (
    ("paid", "Paid"),
    ("processing", "Processing"),
    ("shipped", "Shipped"),
    ("delivered", "Delivered"),
    ("cancelled", "Cancelled"),
)

OPERATION_TYPE = (
    ("CREATE_CHECKOUT", "Create checkout session"),
)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ArtworkORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    is_published = models.BooleanField(default=True)

    class Meta:
        indexes = [
            models.Index(fields=("is_published",), name="shop_artwork_published_idx"),
        ]

    def __str__(self):
        return self.title


class ArtworkEditionORM(TimeStampedModel):
    """Edition ledger row: one size of an artwork."""
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    artwork = models.ForeignKey(
        ArtworkORM,
        on_delete=models.PROTECT,
        related_name="editions",
    )
    size = models.CharField(max_length=50)
    size_display = models.CharField(max_length=100, blank=True, default="")
    price = models.PositiveIntegerField()  # minor units
    edition_limit = models.PositiveIntegerField()
    editions_sold = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=("artwork", "size"),
                name="unique_artwork_edition_size",
            ),
            models.CheckConstraint(
                condition=Q(editions_sold__lte=F("edition_limit")),
                name="editions_sold_within_limit",
            ),
            models.CheckConstraint(
                condition=Q(edition_limit__gt=0),
                name="edition_limit_positive",
            ),
        ]

    def __str__(self):
        return f"{self.artwork_id} / {self.size} ({self.editions_sold}/{self.edition_limit})"


class OrderORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    shipping_address = models.JSONField(null=True, blank=True)
    total_minor_units = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=20, choices=ORDER_STATUS_CHOICES)
    payment_reference = models.CharField(max_length=255, unique=True)

    class Meta:
        indexes = [
            models.Index(fields=("status", "created_at"), name="shop_order_status_created_idx"),
            models.Index(fields=("created_at",), name="shop_order_created_idx"),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.status})"


class OrderItemORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order = models.ForeignKey(
        OrderORM,
        on_delete=models.PROTECT,
        related_name="items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    artwork_id = models.UUIDField()
    size = models.CharField(max_length=50)
    title = models.CharField(max_length=255, blank=True, default="")
    unit_price_minor_units = models.PositiveIntegerField()
    quantity = models.PositiveIntegerField()
    edition_number_start = models.PositiveIntegerField(null=True, blank=True)
    unfulfillable = models.BooleanField(default=False)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=("order",), name="shop_item_order_idx"),
            models.Index(fields=("artwork_id", "size"), name="shop_item_artwork_size_idx"),
        ]


class IdempotencyKey(TimeStampedModel):
    key = models.CharField(max_length=255)
    operation = models.CharField(max_length=50, choices=OPERATION_TYPE)
    request_hash = models.CharField(max_length=255)
    response_payload = models.JSONField()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=("key", "operation"),
                name="unique_idempotency_key_operation",
            ),
        ]
        indexes = [
            models.Index(fields=("request_hash",), name="shop_idem_request_hash_idx"),
        ]

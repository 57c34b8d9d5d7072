import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ArtworkORM",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("is_published", models.BooleanField(default=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["is_published"], name="shop_artwork_published_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ArtworkEditionORM",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("size", models.CharField(max_length=50)),
                ("size_display", models.CharField(blank=True, default="", max_length=100)),
                ("price", models.PositiveIntegerField()),
                ("edition_limit", models.PositiveIntegerField()),
                ("editions_sold", models.PositiveIntegerField(default=0)),
                (
                    "artwork",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="editions",
                        to="shop.artworkorm",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("artwork", "size"), name="unique_artwork_edition_size"),
                    models.CheckConstraint(
                        condition=models.Q(("editions_sold__lte", models.F("edition_limit"))),
                        name="editions_sold_within_limit",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("edition_limit__gt", 0)),
                        name="edition_limit_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderORM",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_name", models.CharField(max_length=255)),
                ("customer_email", models.EmailField(max_length=254)),
                ("shipping_address", models.JSONField(blank=True, null=True)),
                ("total_minor_units", models.PositiveBigIntegerField()),
                ("currency", models.CharField(default="usd", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("paid", "Paid"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        max_length=20,
                    ),
                ),
                ("payment_reference", models.CharField(max_length=255, unique=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="shop_order_status_created_idx"),
                    models.Index(fields=["created_at"], name="shop_order_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItemORM",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("artwork_id", models.UUIDField()),
                ("size", models.CharField(max_length=50)),
                ("title", models.CharField(blank=True, default="", max_length=255)),
                ("unit_price_minor_units", models.PositiveIntegerField()),
                ("quantity", models.PositiveIntegerField()),
                ("edition_number_start", models.PositiveIntegerField(blank=True, null=True)),
                ("unfulfillable", models.BooleanField(default=False)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                        to="shop.orderorm",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "indexes": [
                    models.Index(fields=["order"], name="shop_item_order_idx"),
                    models.Index(fields=["artwork_id", "size"], name="shop_item_artwork_size_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="IdempotencyKey",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("key", models.CharField(max_length=255)),
                (
                    "operation",
                    models.CharField(
                        choices=[("CREATE_CHECKOUT", "Create checkout session")],
                        max_length=50,
                    ),
                ),
                ("request_hash", models.CharField(max_length=255)),
                ("response_payload", models.JSONField()),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("key", "operation"), name="unique_idempotency_key_operation"),
                ],
                "indexes": [
                    models.Index(fields=["request_hash"], name="shop_idem_request_hash_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="EventStore",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("aggregate_id", models.UUIDField()),
                ("aggregate_type", models.CharField(max_length=50)),
                ("event_type", models.CharField(max_length=100)),
                ("event_version", models.CharField(default="1.0", max_length=10)),
                ("event_data", models.JSONField()),
                ("sequence_number", models.BigIntegerField()),
            ],
            options={
                "ordering": ["sequence_number"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("aggregate_id", "aggregate_type", "sequence_number"),
                        name="unique_event_sequence",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["aggregate_id", "aggregate_type"], name="shop_event_aggregate_idx"),
                ],
            },
        ),
    ]

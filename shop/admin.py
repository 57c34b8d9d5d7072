from django.contrib import admin, messages

from shop.domain.exceptions import ShopError
from shop.domain.order import OrderStatus
from shop.infra.event_store import EventStore
from shop.infra.models import (
    ArtworkEditionORM,
    ArtworkORM,
    IdempotencyKey,
    OrderItemORM,
    OrderORM,
)
from shop.services.orders import OrderService


class ArtworkEditionInline(admin.TabularInline):
    model = ArtworkEditionORM
    extra = 0
    fields = ("size", "size_display", "price", "edition_limit", "editions_sold")
    # the ledger only moves through confirmed payments
    readonly_fields = ("editions_sold",)

    def _has_sales(self, artwork):
        return artwork is not None and artwork.editions.filter(editions_sold__gt=0).exists()

    def get_readonly_fields(self, request, obj=None):
        # order lines reference editions by (artwork, size)
        if self._has_sales(obj):
            return ("size", "editions_sold")
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        if self._has_sales(obj):
            return False
        return super().has_delete_permission(request, obj)


@admin.register(ArtworkORM)
class ArtworkAdmin(admin.ModelAdmin):
    list_display = ("title", "is_published", "created_at")
    list_filter = ("is_published",)
    search_fields = ("title",)
    inlines = (ArtworkEditionInline,)


@admin.register(ArtworkEditionORM)
class ArtworkEditionAdmin(admin.ModelAdmin):
    list_display = ("artwork", "size", "price", "editions_sold", "edition_limit")
    list_filter = ("size",)
    search_fields = ("artwork__title",)
    readonly_fields = ("editions_sold",)

    def get_readonly_fields(self, request, obj=None):
        if obj is not None and obj.editions_sold > 0:
            return ("size", "editions_sold")
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.editions_sold > 0:
            return False
        return super().has_delete_permission(request, obj)

    def get_actions(self, request):
        # bulk delete skips the per-object check above
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions


class OrderItemInline(admin.TabularInline):
    model = OrderItemORM
    extra = 0
    can_delete = False
    readonly_fields = (
        "position",
        "artwork_id",
        "size",
        "title",
        "unit_price_minor_units",
        "quantity",
        "edition_number_start",
        "unfulfillable",
    )

    def has_add_permission(self, request, obj=None):
        return False


def _transition_action(status: OrderStatus, description: str):
    def action(modeladmin, request, queryset):
        service = OrderService()
        changed = 0
        for order_id in queryset.values_list("id", flat=True):
            try:
                service.change_status(order_id, status)
            except ShopError as e:
                modeladmin.message_user(request, f"Order {order_id}: {e.message}", messages.WARNING)
            else:
                changed += 1
        if changed:
            modeladmin.message_user(request, f"{changed} order(s) marked {status.value}", messages.SUCCESS)

    action.__name__ = f"mark_{status.value}"
    action.short_description = description
    return action


@admin.register(OrderORM)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_name", "status", "total_minor_units", "currency", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("id", "customer_name", "customer_email", "payment_reference")
    readonly_fields = (
        "id",
        "customer_name",
        "customer_email",
        "shipping_address",
        "total_minor_units",
        "currency",
        "status",
        "payment_reference",
        "created_at",
    )
    inlines = (OrderItemInline,)
    actions = (
        _transition_action(OrderStatus.PROCESSING, "Mark selected orders as processing"),
        _transition_action(OrderStatus.SHIPPED, "Mark selected orders as shipped"),
        _transition_action(OrderStatus.DELIVERED, "Mark selected orders as delivered"),
        _transition_action(OrderStatus.CANCELLED, "Cancel selected orders"),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(IdempotencyKey)
class IdempotencyAdmin(admin.ModelAdmin):
    list_display = ("key", "operation", "created_at")
    list_filter = ("operation", "created_at")
    search_fields = ("key",)


@admin.register(EventStore)
class EventStoreAdmin(admin.ModelAdmin):
    list_display = ("id", "aggregate_id", "aggregate_type", "event_type", "sequence_number", "created_at")
    list_filter = ("aggregate_type", "event_type", "created_at")
    readonly_fields = ("id", "aggregate_id", "aggregate_type", "event_type", "event_version", "event_data", "sequence_number")

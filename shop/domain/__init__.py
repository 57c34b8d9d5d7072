from shop.domain.edition import ArtworkEdition, is_available
from shop.domain.order import CustomerInfo, Order, OrderLineItem, OrderStatus, ShippingAddress

__all__ = [
    "ArtworkEdition",
    "is_available",
    "CustomerInfo",
    "Order",
    "OrderLineItem",
    "OrderStatus",
    "ShippingAddress",
]

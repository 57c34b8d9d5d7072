"""
Application services for checkout, payment events and orders.
"""
from shop.services.checkout import CheckoutService
from shop.services.orders import OrderService, OrderWriter
from shop.services.payments import PaymentEventProcessor

__all__ = ["CheckoutService", "OrderService", "OrderWriter", "PaymentEventProcessor"]

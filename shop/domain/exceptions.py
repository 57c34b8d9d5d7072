"""
Domain exceptions.

Raised by domain objects and application services when a business rule is
violated. The API layer maps ``code`` to an HTTP status.
"""
from __future__ import annotations


class ShopError(Exception):
    """Base class for shop errors."""
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ShopError):
    """Referenced artwork, size or order does not exist."""
    code = "NOT_FOUND"


class SoldOutError(ShopError):
    """Requested quantity exceeds the remaining editions."""
    code = "SOLD_OUT"

    def __init__(self, title: str, size: str, requested: int, remaining: int):
        self.title = title
        self.size = size
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"No more editions available for {title} in size {size} "
            f"(requested {requested}, remaining {remaining})"
        )


class PriceMismatchError(ShopError):
    """Submitted unit price differs from the current price."""
    code = "PRICE_MISMATCH"

    def __init__(self, title: str, size: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Price for {title} in size {size} has changed: "
            f"submitted {expected}, current {actual}"
        )


class DuplicatePaymentReferenceError(ShopError):
    """An order for this payment reference already exists."""
    code = "DUPLICATE_PAYMENT"

    def __init__(self, payment_reference: str):
        self.payment_reference = payment_reference
        super().__init__(f"Order for payment {payment_reference} already exists")


class InvalidStatusTransitionError(ShopError):
    """Order status transition is not allowed."""
    code = "INVALID_STATE"


class ConcurrentEditionUpdateError(ShopError):
    """Edition row changed between the locked read and the update."""
    code = "CONCURRENT_UPDATE"


class PaymentGatewayError(ShopError):
    """Payment provider call failed."""
    code = "PAYMENT_PROVIDER_ERROR"


class InvalidWebhookError(ShopError):
    """Webhook payload or signature could not be verified."""
    code = "INVALID_WEBHOOK"

"""
Parsing of JSON request bodies into domain values.
"""
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from shop.api.middleware import ValidationError
from shop.domain.order import CustomerInfo, ShippingAddress
from shop.domain.payment import CheckoutItem
from shop.infra.payments import MAX_SESSION_LINES

REQUIRED_ADDRESS_FIELDS = ("line1", "city", "state", "postal_code", "country")


def _require_str(data: dict, field: str, path: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{path}{field} is required")
    return value.strip()


def _require_int(data: dict, field: str, path: str, minimum: int) -> int:
    value = data.get(field)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{path}{field} must be an integer")
    if value < minimum:
        raise ValidationError(f"{path}{field} must be at least {minimum}")
    return value


def parse_checkout_items(raw_items) -> list[CheckoutItem]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")
    if len(raw_items) > MAX_SESSION_LINES:
        raise ValidationError(f"items must have at most {MAX_SESSION_LINES} entries")

    items = []
    for index, raw in enumerate(raw_items):
        path = f"items[{index}]."
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        items.append(CheckoutItem(
            artwork_id=_require_str(raw, "id", path),
            size=_require_str(raw, "size", path),
            quantity=_require_int(raw, "quantity", path, minimum=1),
            expected_unit_price=_require_int(raw, "price", path, minimum=0),
            title=raw.get("title") or "",
            size_display=raw.get("sizeDisplay") or "",
            image_url=raw.get("imageUrl") or "",
        ))
    return items


def parse_customer_info(raw) -> CustomerInfo:
    if not isinstance(raw, dict):
        raise ValidationError("customerInfo is required")

    email = _require_str(raw, "email", "customerInfo.")
    try:
        validate_email(email)
    except DjangoValidationError:
        raise ValidationError("customerInfo.email is not a valid email address")

    raw_address = raw.get("address")
    if not isinstance(raw_address, dict):
        raise ValidationError("customerInfo.address is required")
    for field in REQUIRED_ADDRESS_FIELDS:
        _require_str(raw_address, field, "customerInfo.address.")

    return CustomerInfo(
        name=_require_str(raw, "name", "customerInfo."),
        email=email,
        address=ShippingAddress.from_dict(raw_address),
    )


def parse_checkout_request(data) -> tuple[list[CheckoutItem], CustomerInfo]:
    """Parse ``{items: [...], customerInfo: {...}}``."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return parse_checkout_items(data.get("items")), parse_customer_info(data.get("customerInfo"))

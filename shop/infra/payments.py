"""
Stripe Checkout gateway.

Keeps the SDK behind one object that services receive as a dependency; no
module-level API key is set.
"""
from __future__ import annotations

import json
import logging
from uuid import UUID

import stripe
from django.conf import settings

from shop.domain.exceptions import InvalidWebhookError, NotFoundError, PaymentGatewayError
from shop.domain.order import CustomerInfo, ShippingAddress
from shop.domain.payment import PaymentConfirmation, PaymentLine, SessionLineItem
from shop.infra.retry import retry_with_backoff

logger = logging.getLogger(__name__)

TRANSIENT_STRIPE_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError)

# Stripe allows 50 metadata keys per object; two are used for the customer.
MAX_SESSION_LINES = 40
LINE_METADATA_PREFIX = "line_"


def encode_line_metadata(lines: list[SessionLineItem]) -> dict:
    """One metadata key per line, each a compact JSON document (< 500 chars)."""
    metadata = {}
    for index, line in enumerate(lines):
        metadata[f"{LINE_METADATA_PREFIX}{index}"] = json.dumps(
            {
                "artwork_id": line.artwork_id,
                "size": line.size,
                "quantity": line.quantity,
                "unit_price": line.unit_price_minor_units,
                "edition_number_start": line.edition_number_start,
                "title": line.title[:100],
            },
            separators=(",", ":"),
        )
    return metadata


def decode_line_metadata(metadata: dict) -> list[PaymentLine]:
    keys = sorted(
        (key for key in metadata if key.startswith(LINE_METADATA_PREFIX)),
        key=lambda key: int(key[len(LINE_METADATA_PREFIX):]),
    )
    lines = []
    for key in keys:
        data = json.loads(metadata[key])
        artwork_id = str(UUID(str(data["artwork_id"])))
        quantity = int(data["quantity"])
        unit_price = int(data["unit_price"])
        if quantity < 1:
            raise ValueError(f"{key}: quantity must be at least 1")
        if unit_price < 0:
            raise ValueError(f"{key}: unit_price must not be negative")
        lines.append(PaymentLine(
            artwork_id=artwork_id,
            size=data["size"],
            quantity=quantity,
            unit_price_minor_units=unit_price,
            provisional_edition_number=data.get("edition_number_start"),
            title=data.get("title", ""),
        ))
    return lines


def payment_confirmation_from_session(session: dict) -> PaymentConfirmation:
    """Build a PaymentConfirmation from a checkout.session webhook object."""
    metadata = session.get("metadata") or {}
    try:
        lines = decode_line_metadata(metadata)
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidWebhookError(f"Malformed line metadata on session {session.get('id')}") from e
    if not lines:
        raise InvalidWebhookError(f"Session {session.get('id')} carries no line items")

    customer_details = session.get("customer_details") or {}
    shipping = (
        (session.get("collected_information") or {}).get("shipping_details")
        or session.get("shipping_details")
        or {}
    )
    address = ShippingAddress.from_dict(shipping.get("address") or customer_details.get("address"))
    customer = CustomerInfo(
        name=metadata.get("customer_name") or shipping.get("name") or customer_details.get("name") or "",
        email=customer_details.get("email") or metadata.get("customer_email") or "",
        address=address,
    )

    # payment_intent is the transaction id; sessions without one fall back to their own id
    payment_reference = session.get("payment_intent") or session.get("id")
    if isinstance(payment_reference, dict):
        payment_reference = payment_reference.get("id")

    return PaymentConfirmation(
        payment_reference=payment_reference,
        lines=lines,
        customer=customer,
        currency=session.get("currency") or settings.SHOP_CURRENCY,
        session_id=session.get("id", ""),
        amount_total=session.get("amount_total"),
    )


class PaymentGateway:
    """Thin wrapper over Stripe Checkout."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        api_version: str | None = None,
        currency: str = "usd",
        public_url: str = "http://localhost:8000",
        shipping_countries: list[str] | None = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.api_version = api_version
        self.currency = currency
        self.public_url = public_url.rstrip("/")
        self.shipping_countries = shipping_countries or ["US", "CA", "GB", "AU"]

    @classmethod
    def from_settings(cls) -> "PaymentGateway":
        return cls(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            api_version=settings.STRIPE_API_VERSION or None,
            currency=settings.SHOP_CURRENCY,
            public_url=settings.SHOP_PUBLIC_URL,
            shipping_countries=settings.SHOP_SHIPPING_COUNTRIES,
        )

    def _request_options(self) -> dict:
        options = {"api_key": self.api_key}
        if self.api_version:
            options["stripe_version"] = self.api_version
        return options

    def create_checkout_session(self, lines: list[SessionLineItem], customer: CustomerInfo) -> dict:
        """Create a hosted checkout session; returns {"id", "url"}."""
        line_items = []
        for line in lines:
            if line.quantity == 1:
                edition_label = f"{line.edition_number_start}/{line.edition_limit}"
            else:
                edition_label = f"{line.edition_number_start}-{line.edition_number_end}/{line.edition_limit}"
            product_data = {
                "name": f"{line.title} - {line.size_display}",
                "description": f"Limited Edition Print ({edition_label})",
                "metadata": line.metadata(),
            }
            if line.image_url:
                product_data["images"] = [line.image_url]
            line_items.append({
                "price_data": {
                    "currency": self.currency,
                    "product_data": product_data,
                    "unit_amount": line.unit_price_minor_units,
                },
                "quantity": line.quantity,
            })

        metadata = {"customer_name": customer.name, "customer_email": customer.email}
        metadata.update(encode_line_metadata(lines))

        try:
            session = self._create_session(
                payment_method_types=["card"],
                line_items=line_items,
                mode="payment",
                success_url=f"{self.public_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.public_url}/checkout",
                customer_email=customer.email,
                shipping_address_collection={"allowed_countries": self.shipping_countries},
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("checkout_session_failed", extra={"error": str(e)})
            raise PaymentGatewayError("Failed to create checkout session") from e

        return {"id": session.id, "url": session.url}

    def retrieve_session(self, session_id: str) -> dict:
        """Fetch a checkout session as a plain dict of the fields the shop uses."""
        try:
            session = self._retrieve_session(session_id)
        except stripe.InvalidRequestError as e:
            raise NotFoundError(f"Unknown checkout session {session_id}") from e
        except stripe.StripeError as e:
            raise PaymentGatewayError("Failed to retrieve checkout session") from e

        customer_details = getattr(session, "customer_details", None)
        payment_intent = getattr(session, "payment_intent", None)
        if payment_intent is not None and not isinstance(payment_intent, str):
            payment_intent = payment_intent.id
        return {
            "id": session.id,
            "payment_intent": payment_intent,
            "payment_status": getattr(session, "payment_status", None),
            "amount_total": getattr(session, "amount_total", None),
            "customer_name": getattr(customer_details, "name", None) if customer_details else None,
            "customer_email": getattr(customer_details, "email", None) if customer_details else None,
        }

    def parse_webhook(self, payload: bytes, signature: str | None) -> dict:
        """Verify the Stripe-Signature header and return the event as a dict."""
        if not signature:
            raise InvalidWebhookError("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            raise InvalidWebhookError("Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            raise InvalidWebhookError("Invalid signature") from e
        return json.loads(payload)

    @retry_with_backoff(max_retries=2, initial_delay=0.5, max_delay=4.0, exceptions=TRANSIENT_STRIPE_ERRORS)
    def _create_session(self, **params):
        return stripe.checkout.Session.create(**params, **self._request_options())

    @retry_with_backoff(max_retries=2, initial_delay=0.5, max_delay=4.0, exceptions=TRANSIENT_STRIPE_ERRORS)
    def _retrieve_session(self, session_id: str):
        return stripe.checkout.Session.retrieve(session_id, **self._request_options())

"""
Shared test data builders and a fake payment gateway.
"""
from uuid import uuid4

from shop.domain.order import CustomerInfo, ShippingAddress
from shop.domain.payment import PaymentConfirmation, PaymentLine
from shop.infra.models import ArtworkEditionORM, ArtworkORM


def create_edition(title="Harbour at Dusk", size="a3", price=4500, edition_limit=10, editions_sold=0,
                   is_published=True, size_display="A3 (297 x 420 mm)"):
    artwork = ArtworkORM.objects.create(title=title, is_published=is_published)
    return ArtworkEditionORM.objects.create(
        artwork=artwork,
        size=size,
        size_display=size_display,
        price=price,
        edition_limit=edition_limit,
        editions_sold=editions_sold,
    )


def make_customer(name="Ada Lovelace", email="ada@example.com"):
    return CustomerInfo(
        name=name,
        email=email,
        address=ShippingAddress(
            line1="12 Analytical Row",
            city="London",
            state="LDN",
            postal_code="N1 7AA",
            country="GB",
        ),
    )


def make_confirmation(lines, reference=None, amount_total=None):
    """``lines`` is a list of (edition_orm, quantity) pairs."""
    payment_lines = [
        PaymentLine(
            artwork_id=str(edition.artwork_id),
            size=edition.size,
            quantity=quantity,
            unit_price_minor_units=edition.price,
            title=edition.artwork.title,
        )
        for edition, quantity in lines
    ]
    return PaymentConfirmation(
        payment_reference=reference or f"pi_{uuid4().hex}",
        lines=payment_lines,
        customer=make_customer(),
        amount_total=amount_total,
    )


class FakeGateway:
    """Records sessions instead of calling the provider."""

    def __init__(self, sessions=None, webhook_event=None, webhook_error=None):
        self.created = []
        self.sessions = sessions or {}
        self.webhook_event = webhook_event
        self.webhook_error = webhook_error

    def create_checkout_session(self, lines, customer):
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append((session_id, lines, customer))
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}

    def retrieve_session(self, session_id):
        return self.sessions[session_id]

    def parse_webhook(self, payload, signature):
        if self.webhook_error:
            raise self.webhook_error
        return self.webhook_event

"""
Tests for ledger invariants and reconciliation.
"""
from io import StringIO

from django.core.management import CommandError, call_command
from django.db import IntegrityError, transaction
from django.test import TestCase

from shop.domain.exceptions import ConcurrentEditionUpdateError, DuplicatePaymentReferenceError
from shop.domain.order import Order, OrderLineItem
from shop.infra.models import ArtworkEditionORM
from shop.infra.repositories import EditionRepository, OrderRepository
from shop.services.payments import PaymentEventProcessor
from shop.test.factories import create_edition, make_confirmation, make_customer


class EditionLedgerInvariantTest(TestCase):
    """Tests for the editions_sold <= edition_limit invariant."""

    def test_database_rejects_sold_above_limit(self):
        """Test that the check constraint blocks a direct overshoot."""
        edition = create_edition(edition_limit=3, editions_sold=3)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ArtworkEditionORM.objects.filter(pk=edition.pk).update(editions_sold=4)

    def test_unique_edition_per_size(self):
        edition = create_edition()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ArtworkEditionORM.objects.create(
                    artwork=edition.artwork,
                    size=edition.size,
                    price=100,
                    edition_limit=5,
                )

    def test_record_sale_detects_stale_read(self):
        """Test that the conditional update fails when the row moved since the read."""
        edition_orm = create_edition(edition_limit=10, editions_sold=2)
        repo = EditionRepository()
        edition = repo.get(str(edition_orm.artwork_id), edition_orm.size)

        ArtworkEditionORM.objects.filter(pk=edition_orm.pk).update(editions_sold=5)
        edition.sell(1)
        with self.assertRaises(ConcurrentEditionUpdateError):
            repo.record_sale(edition, 1)

        edition_orm.refresh_from_db()
        self.assertEqual(edition_orm.editions_sold, 5)

    def test_record_sale_never_exceeds_limit(self):
        edition_orm = create_edition(edition_limit=3, editions_sold=2)
        repo = EditionRepository()
        edition = repo.get(str(edition_orm.artwork_id), edition_orm.size)
        edition.sell(1)
        repo.record_sale(edition, 1)

        edition_orm.refresh_from_db()
        self.assertEqual(edition_orm.editions_sold, 3)

    def test_unpublished_artwork_is_not_for_sale(self):
        edition_orm = create_edition(is_published=False)
        self.assertIsNone(EditionRepository().get(str(edition_orm.artwork_id), edition_orm.size))

    def test_unparsable_artwork_id(self):
        self.assertIsNone(EditionRepository().get("not-a-uuid", "a3"))


class OrderRepositoryInvariantTest(TestCase):
    """Tests for one order per payment reference."""

    def _order(self, reference):
        return Order(
            items=[OrderLineItem(
                artwork_id=str(create_edition().artwork_id),
                size="a3",
                unit_price_minor_units=4500,
                quantity=1,
                edition_number_start=1,
            )],
            customer=make_customer(),
            payment_reference=reference,
        )

    def test_duplicate_payment_reference_rejected(self):
        repo = OrderRepository()
        repo.add(self._order("pi_same"))
        with self.assertRaises(DuplicatePaymentReferenceError):
            repo.add(self._order("pi_same"))

    def test_round_trip_keeps_line_order(self):
        repo = OrderRepository()
        first = create_edition(title="First")
        second = create_edition(title="Second")
        order = Order(
            items=[
                OrderLineItem(artwork_id=str(second.artwork_id), size="a3", unit_price_minor_units=10, quantity=1),
                OrderLineItem(artwork_id=str(first.artwork_id), size="a3", unit_price_minor_units=20, quantity=2),
            ],
            customer=make_customer(),
            payment_reference="pi_order",
        )
        repo.add(order)

        loaded = repo.get_by_payment_reference("pi_order")
        self.assertEqual([item.artwork_id for item in loaded.items], [str(second.artwork_id), str(first.artwork_id)])
        self.assertEqual(loaded.total_minor_units, 50)
        self.assertEqual(loaded.customer.address.city, "London")


class ReconcileEditionsCommandTest(TestCase):
    """Tests for the reconcile_editions management command."""

    def test_balanced_ledger(self):
        edition = create_edition(edition_limit=5)
        PaymentEventProcessor().process(make_confirmation([(edition, 2)]))

        out = StringIO()
        call_command("reconcile_editions", stdout=out)
        self.assertIn("all balanced", out.getvalue())

    def test_cancelled_oversold_order_is_not_counted(self):
        edition = create_edition(edition_limit=1)
        PaymentEventProcessor().process(make_confirmation([(edition, 2)]))

        out = StringIO()
        call_command("reconcile_editions", stdout=out)
        self.assertIn("all balanced", out.getvalue())

    def test_reports_mismatch(self):
        edition = create_edition(edition_limit=5)
        PaymentEventProcessor().process(make_confirmation([(edition, 2)]))
        ArtworkEditionORM.objects.filter(pk=edition.pk).update(editions_sold=3)

        out = StringIO()
        with self.assertRaises(CommandError):
            call_command("reconcile_editions", stdout=out)
        self.assertIn("ledger=3 orders=2", out.getvalue())

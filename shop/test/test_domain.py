"""
Unit tests for domain models.
"""
from uuid import uuid4

from django.test import SimpleTestCase

from shop.domain.edition import ArtworkEdition, is_available
from shop.domain.exceptions import InvalidStatusTransitionError, SoldOutError
from shop.domain.order import CustomerInfo, Order, OrderLineItem, OrderStatus


def _customer():
    return CustomerInfo(name="Test Customer", email="test@example.com")


class ArtworkEditionTest(SimpleTestCase):
    """Tests for the edition ledger value."""

    def test_remaining(self):
        edition = ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=4500, edition_limit=10, editions_sold=7)
        self.assertEqual(edition.remaining, 3)

    def test_is_available_at_boundary(self):
        """Test that exactly the remaining quantity is available and one more is not."""
        edition = ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=4500, edition_limit=10, editions_sold=8)
        self.assertTrue(is_available(edition, 2))
        self.assertFalse(is_available(edition, 3))

    def test_is_available_rejects_non_positive_quantity(self):
        edition = ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=4500, edition_limit=10)
        with self.assertRaises(ValueError):
            is_available(edition, 0)

    def test_sold_out_edition(self):
        edition = ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=4500, edition_limit=5, editions_sold=5)
        self.assertEqual(edition.remaining, 0)
        self.assertFalse(is_available(edition, 1))

    def test_sell_assigns_consecutive_numbers(self):
        """Test that consecutive sales get consecutive edition numbers."""
        edition = ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=4500, edition_limit=10, editions_sold=2)
        self.assertEqual(edition.sell(3), 3)
        self.assertEqual(edition.sell(1), 6)
        self.assertEqual(edition.editions_sold, 6)

    def test_sell_beyond_limit_fails(self):
        edition = ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=4500, edition_limit=3, editions_sold=2)
        with self.assertRaises(SoldOutError) as context:
            edition.sell(2)
        self.assertEqual(context.exception.remaining, 1)
        self.assertEqual(edition.editions_sold, 2)

    def test_invalid_construction_fails(self):
        with self.assertRaises(ValueError):
            ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=100, edition_limit=0)
        with self.assertRaises(ValueError):
            ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=100, edition_limit=5, editions_sold=6)
        with self.assertRaises(ValueError):
            ArtworkEdition(artwork_id="a1", size="a3", price_minor_units=-1, edition_limit=5)


class OrderLineItemTest(SimpleTestCase):
    """Tests for OrderLineItem value object."""

    def test_edition_range(self):
        item = OrderLineItem(artwork_id="a1", size="a3", unit_price_minor_units=4500, quantity=3, edition_number_start=4)
        self.assertEqual(item.edition_number_end, 6)
        self.assertEqual(item.subtotal_minor_units, 13500)

    def test_unassigned_range(self):
        item = OrderLineItem(artwork_id="a1", size="a3", unit_price_minor_units=4500, quantity=1)
        self.assertIsNone(item.edition_number_end)

    def test_non_positive_quantity_fails(self):
        with self.assertRaises(ValueError):
            OrderLineItem(artwork_id="a1", size="a3", unit_price_minor_units=4500, quantity=0)

    def test_negative_price_fails(self):
        with self.assertRaises(ValueError):
            OrderLineItem(artwork_id="a1", size="a3", unit_price_minor_units=-5, quantity=1)


class OrderTest(SimpleTestCase):
    """Tests for Order aggregate."""

    def _order(self, status=OrderStatus.PAID):
        return Order(
            items=[OrderLineItem(artwork_id=str(uuid4()), size="a3", unit_price_minor_units=4500, quantity=1)],
            customer=_customer(),
            payment_reference="pi_test",
            status=status,
        )

    def test_total_is_sum_of_lines(self):
        """Test two lines (1 x 5000, 2 x 7500) total 20000."""
        order = Order(
            items=[
                OrderLineItem(artwork_id="a1", size="a3", unit_price_minor_units=5000, quantity=1),
                OrderLineItem(artwork_id="a2", size="a2", unit_price_minor_units=7500, quantity=2),
            ],
            customer=_customer(),
            payment_reference="pi_total",
        )
        self.assertEqual(order.total_minor_units, 20000)

    def test_empty_order_fails(self):
        with self.assertRaises(ValueError):
            Order(items=[], customer=_customer(), payment_reference="pi_empty")

    def test_payment_reference_required(self):
        with self.assertRaises(ValueError):
            Order(
                items=[OrderLineItem(artwork_id="a1", size="a3", unit_price_minor_units=1, quantity=1)],
                customer=_customer(),
                payment_reference="",
            )

    def test_items_are_copied(self):
        order = self._order()
        order.items.clear()
        self.assertEqual(len(order.items), 1)

    def test_fulfilment_path(self):
        """Test paid -> processing -> shipped -> delivered."""
        order = self._order()
        order.start_processing()
        order.ship()
        order.deliver()
        self.assertEqual(order.status, OrderStatus.DELIVERED)

    def test_cancel_from_shipped(self):
        order = self._order(status=OrderStatus.SHIPPED)
        order.cancel()
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_transition_returns_previous_status(self):
        order = self._order()
        self.assertEqual(order.transition_to(OrderStatus.PROCESSING), OrderStatus.PAID)

    def test_skipping_a_step_fails(self):
        order = self._order()
        with self.assertRaises(InvalidStatusTransitionError):
            order.ship()
        self.assertEqual(order.status, OrderStatus.PAID)

    def test_terminal_statuses(self):
        for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            order = self._order(status=status)
            with self.assertRaises(InvalidStatusTransitionError):
                order.cancel()

    def test_transition_accepts_string_value(self):
        order = self._order()
        order.transition_to("processing")
        self.assertEqual(order.status, OrderStatus.PROCESSING)

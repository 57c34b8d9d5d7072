"""
Tests for infrastructure helpers.
"""
import json
import logging

from django.db import transaction
from django.test import SimpleTestCase, TestCase

from shop.infra.event_store import EventStoreRepository
from shop.infra.locks import edition_lock, edition_locks
from shop.infra.pii_masker import mask_email, mask_name, mask_pii_in_dict
from shop.infra.retry import retry_with_backoff
from shop.services.payments import PaymentEventProcessor
from shop.test.factories import create_edition, make_confirmation
from shop.utils.logging import JsonFormatter


class RetryWithBackoffTest(SimpleTestCase):
    """Tests for retry_with_backoff."""

    def test_retries_then_succeeds(self):
        delays = []
        calls = []

        @retry_with_backoff(max_retries=3, initial_delay=1.0, jitter=False, exceptions=(ConnectionError,), sleep=delays.append)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("reset")
            return "ok"

        self.assertEqual(flaky(), "ok")
        self.assertEqual(delays, [1.0, 2.0])

    def test_gives_up_after_max_retries(self):
        delays = []

        @retry_with_backoff(max_retries=2, initial_delay=1.0, max_delay=1.5, jitter=False, exceptions=(ConnectionError,), sleep=delays.append)
        def broken():
            raise ConnectionError("down")

        with self.assertRaises(ConnectionError):
            broken()
        self.assertEqual(delays, [1.0, 1.5])

    def test_other_errors_not_retried(self):
        delays = []

        @retry_with_backoff(exceptions=(ConnectionError,), sleep=delays.append)
        def failing():
            raise ValueError("bad input")

        with self.assertRaises(ValueError):
            failing()
        self.assertEqual(delays, [])


class PiiMaskerTest(SimpleTestCase):
    """Tests for PII masking."""

    def test_mask_email(self):
        self.assertEqual(mask_email("ada@example.com"), "ad*@example.com")

    def test_mask_name(self):
        self.assertEqual(mask_name("Ada"), "A*a")

    def test_mask_nested_dict(self):
        masked = mask_pii_in_dict({
            "name": "Ada Lovelace",
            "address": {"line1": "12 Row", "city": "London"},
            "order_id": "o-1",
        })
        self.assertEqual(masked["address"]["line1"], "******")
        self.assertEqual(masked["address"]["city"], "London")
        self.assertEqual(masked["order_id"], "o-1")
        self.assertNotIn("Lovelace", masked["name"])


class EditionLockTest(TestCase):
    """Tests for per-edition locks."""

    def test_locks_inside_transaction(self):
        with transaction.atomic():
            with edition_lock("a1", "a3"):
                pass
            with edition_locks([("b", "a3"), ("a", "a3"), ("b", "a3")]):
                pass


class EditionLockOutsideTransactionTest(SimpleTestCase):
    """The lock guard runs before any query."""

    def test_requires_transaction(self):
        with self.assertRaises(RuntimeError):
            with edition_lock("a1", "a3"):
                pass


class EventStoreRepositoryTest(TestCase):
    """Tests for the audit trail."""

    def test_events_in_sequence(self):
        edition = create_edition(edition_limit=5)
        order = PaymentEventProcessor().process(make_confirmation([(edition, 1)], reference="pi_audit"))

        events = EventStoreRepository().get_events(order.id, "Order")

        self.assertEqual([event["event_type"] for event in events], ["OrderPlaced"])
        self.assertEqual(events[0]["sequence_number"], 1)
        self.assertEqual(events[0]["data"]["payment_reference"], "pi_audit")
        self.assertEqual(events[0]["data"]["total_minor_units"], 4500)

    def test_cancelled_order_records_unfulfillable_lines(self):
        edition = create_edition(edition_limit=1, editions_sold=1)
        order = PaymentEventProcessor().process(make_confirmation([(edition, 1)], reference="pi_gone"))

        events = EventStoreRepository().get_events(order.id, "Order")

        self.assertEqual([event["event_type"] for event in events], ["OrderPlaced", "OrderCancelled"])
        self.assertEqual(events[1]["data"]["reason"], "oversold")
        self.assertEqual(events[1]["data"]["unfulfillable"][0]["quantity"], 1)


class JsonFormatterTest(SimpleTestCase):
    """Tests for the JSON log formatter."""

    def test_extra_fields_lifted(self):
        record = logging.LogRecord("shop", logging.INFO, __file__, 1, "order_created", None, None)
        record.order_id = "o-1"
        record.payment_reference = "pi_1"

        data = json.loads(JsonFormatter().format(record))

        self.assertEqual(data["message"], "order_created")
        self.assertEqual(data["order_id"], "o-1")
        self.assertEqual(data["payment_reference"], "pi_1")
        self.assertTrue(data["timestamp"].endswith("Z"))

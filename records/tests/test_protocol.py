from unittest import mock

from django.test import TestCase

from records import protocol
from records.exceptions import RecordNotFound, ServiceError, StoreError, StoreUnavailable
from records.tests.utils import DEFAULT_FIELDS, FreshStoreMixin


class ProtocolTests(FreshStoreMixin, TestCase):
    def test_success_path(self):
        self.assertEqual(protocol.fetch().fields, DEFAULT_FIELDS)

        self.assertTrue(protocol.apply("X", "Y", "Z", "W", 1))

        record = protocol.fetch()
        self.assertEqual(record.fields, ("X", "Y", "Z", "W"))
        self.assertEqual(record.version, 2)

    def test_conflict_is_a_result_not_an_error(self):
        self.assertTrue(protocol.apply("B1", "B2", "B3", "B4", 1))
        self.assertFalse(protocol.apply("A1", "A2", "A3", "A4", 1))

    def test_apply_makes_a_single_attempt(self):
        with mock.patch("records.services.update", return_value=False) as update:
            self.assertFalse(protocol.apply("a", "b", "c", "d", 1))
        update.assert_called_once()

    def test_store_failure_on_apply_is_opaque(self):
        with mock.patch(
            "records.services.update",
            side_effect=StoreError("sqlite3.OperationalError: database is locked at /tmp/fields.db"),
        ):
            with self.assertRaises(ServiceError) as ctx:
                protocol.apply("a", "b", "c", "d", 1)

        self.assertEqual(str(ctx.exception), "service error")
        self.assertNotIn("sqlite", ctx.exception.message)
        self.assertIsNone(ctx.exception.__cause__)

    def test_missing_record_on_fetch_is_opaque(self):
        with mock.patch("records.services.get_current", side_effect=RecordNotFound("Shared record is missing")):
            with self.assertRaises(ServiceError) as ctx:
                protocol.fetch()
        self.assertEqual(ctx.exception.message, ServiceError.MESSAGE)

    def test_unavailable_store_is_opaque(self):
        with mock.patch(
            "records.protocol.get_store_manager",
            side_effect=StoreUnavailable("unable to open database file"),
        ):
            with self.assertRaises(ServiceError):
                protocol.fetch()
            with self.assertRaises(ServiceError):
                protocol.apply("a", "b", "c", "d", 1)

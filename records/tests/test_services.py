from unittest import mock

from django.db import OperationalError
from django.db.models import QuerySet
from django.test import TestCase

from records import services
from records.exceptions import RecordNotFound, StoreError
from records.models import VersionedRecord
from records.tests.utils import DEFAULT_FIELDS, FreshStoreMixin


class GetCurrentTests(FreshStoreMixin, TestCase):
    def test_returns_seeded_record(self):
        record = services.get_current()
        self.assertEqual(record.fields, DEFAULT_FIELDS)
        self.assertEqual(record.version, 1)

    def test_repeated_reads_are_identical(self):
        self.assertEqual(services.get_current(), services.get_current())

    def test_missing_record_raises_not_found(self):
        VersionedRecord.objects.all().delete()
        with self.assertRaises(RecordNotFound):
            services.get_current()

    def test_record_instance_refuses_delete(self):
        record = VersionedRecord.objects.get()
        with self.assertRaises(StoreError):
            record.delete()
        self.assertEqual(VersionedRecord.objects.count(), 1)

    def test_database_failure_raises_store_error(self):
        with mock.patch.object(QuerySet, "get", side_effect=OperationalError("disk I/O error")):
            with self.assertRaises(StoreError):
                services.get_current()


class UpdateTests(FreshStoreMixin, TestCase):
    def test_matching_version_updates_fields_and_increments_version(self):
        self.assertTrue(services.update(("X", "Y", "Z", "W"), 1))

        record = services.get_current()
        self.assertEqual(record.fields, ("X", "Y", "Z", "W"))
        self.assertEqual(record.version, 2)

    def test_each_success_increments_by_exactly_one(self):
        for version in range(1, 6):
            self.assertTrue(services.update((str(version), "b", "c", "d"), version))
            self.assertEqual(services.get_current().version, version + 1)

    def test_stale_version_returns_false_and_leaves_record_untouched(self):
        self.assertTrue(services.update(("first", "b", "c", "d"), 1))

        self.assertFalse(services.update(("second", "b", "c", "d"), 1))

        record = services.get_current()
        self.assertEqual(record.fields, ("first", "b", "c", "d"))
        self.assertEqual(record.version, 2)

    def test_replayed_stale_update_keeps_returning_false(self):
        self.assertTrue(services.update(("X", "Y", "Z", "W"), 1))
        for _ in range(3):
            self.assertFalse(services.update(("X", "Y", "Z", "W"), 1))
        self.assertEqual(services.get_current().version, 2)

    def test_future_version_is_a_conflict(self):
        self.assertFalse(services.update(("a", "b", "c", "d"), 7))
        self.assertEqual(services.get_current().version, 1)

    def test_empty_strings_are_valid_values(self):
        self.assertTrue(services.update(("", "", "", ""), 1))
        self.assertEqual(services.get_current().fields, ("", "", "", ""))

    def test_missing_record_raises_not_found(self):
        VersionedRecord.objects.all().delete()
        with self.assertRaises(RecordNotFound):
            services.update(("a", "b", "c", "d"), 1)

    def test_database_failure_raises_store_error_without_partial_write(self):
        with mock.patch.object(QuerySet, "update", side_effect=OperationalError("database is locked")):
            with self.assertRaises(StoreError):
                services.update(("a", "b", "c", "d"), 1)

        record = services.get_current()
        self.assertEqual(record.fields, DEFAULT_FIELDS)
        self.assertEqual(record.version, 1)

    def test_malformed_arguments_are_rejected(self):
        with self.assertRaises(ValueError):
            services.update(("a", "b", "c"), 1)
        with self.assertRaises(ValueError):
            services.update(("a", "b", "c", 4), 1)
        with self.assertRaises(ValueError):
            services.update(("a", "b", "c", "d"), 0)
        with self.assertRaises(ValueError):
            services.update(("a", "b", "c", "d"), "1")
        self.assertEqual(services.get_current().version, 1)

from records.snapshot import RecordSnapshot
from records.store import get_store_manager, reset_store_manager

DEFAULT_FIELDS = ("Default value 1", "Default value 2", "Default value 3", "Default value 4")


class FreshStoreMixin:
    """Give every test its own initialized process-wide store manager."""

    def setUp(self):
        super().setUp()
        reset_store_manager()
        self.addCleanup(reset_store_manager)
        self.store = get_store_manager()


class FakeTransport:
    """In-memory transport with scripted failures, for driving the editor without a server."""

    def __init__(self, fields=DEFAULT_FIELDS, version=1):
        self.record = RecordSnapshot(*fields, version=version)
        self.fetch_calls = 0
        self.apply_calls = []
        self.fetch_error = None
        self.apply_error = None

    def fetch(self):
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.record

    def apply(self, field1, field2, field3, field4, expected_version):
        self.apply_calls.append((field1, field2, field3, field4, expected_version))
        if self.apply_error is not None:
            raise self.apply_error
        if expected_version != self.record.version:
            return False
        self.record = RecordSnapshot(field1, field2, field3, field4, version=expected_version + 1)
        return True

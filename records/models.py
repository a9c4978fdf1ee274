from django.db import models

from records.exceptions import StoreError
from records.snapshot import FIELD_NAMES, RecordSnapshot

SINGLETON_ID = 1

__all__ = ["FIELD_NAMES", "SINGLETON_ID", "RecordSnapshot", "VersionedRecord"]


class VersionedRecord(models.Model):
    """The single shared record, guarded by a monotonically increasing version."""

    id = models.IntegerField(primary_key=True, default=SINGLETON_ID)
    field1 = models.TextField()
    field2 = models.TextField()
    field3 = models.TextField()
    field4 = models.TextField()
    version = models.PositiveIntegerField(default=1)

    def __str__(self) -> str:
        return f"record {self.pk} (v{self.version})"

    def delete(self, *args, **kwargs):
        raise StoreError("The shared record is never deleted")

    def to_snapshot(self) -> RecordSnapshot:
        return RecordSnapshot(
            field1=self.field1,
            field2=self.field2,
            field3=self.field3,
            field4=self.field4,
            version=self.version,
        )

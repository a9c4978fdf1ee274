from dataclasses import dataclass
from typing import Tuple

FIELD_NAMES = ("field1", "field2", "field3", "field4")


@dataclass(frozen=True)
class RecordSnapshot:
    """Committed state of the record as seen by callers outside the ORM."""

    field1: str
    field2: str
    field3: str
    field4: str
    version: int

    @property
    def fields(self) -> Tuple[str, str, str, str]:
        return (self.field1, self.field2, self.field3, self.field4)

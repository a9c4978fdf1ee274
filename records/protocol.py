"""
The two remote operations on the shared record.

``fetch`` and ``apply`` are the whole boundary offered to remote callers,
whatever carries the call. Store failures are logged here with full detail and
replaced by an opaque ``ServiceError``; a stale version is reported as a plain
``False`` from ``apply``.
"""

import logging

from records import services
from records.exceptions import ServiceError, StoreError
from records.snapshot import RecordSnapshot
from records.store import get_store_manager

logger = logging.getLogger(__name__)


def fetch() -> RecordSnapshot:
    """Return the current record, or raise ``ServiceError``."""
    try:
        return services.get_current(get_store_manager())
    except StoreError as exc:
        logger.exception("fetch failed: %s", exc)
        raise ServiceError() from None


def apply(field1: str, field2: str, field3: str, field4: str, expected_version: int) -> bool:
    """
    Submit new field values against the version the caller last read.

    A single attempt is made. ``ValueError`` for malformed arguments is left
    to the binding to report as a bad request.

    Returns:
        True if applied, False on a version conflict

    Raises:
        ServiceError: If the store failed
    """
    logger.debug("apply requested with expected version %s", expected_version)
    try:
        return services.update(
            (field1, field2, field3, field4),
            expected_version,
            get_store_manager(),
        )
    except StoreError as exc:
        logger.exception("apply failed: %s", exc)
        raise ServiceError() from None

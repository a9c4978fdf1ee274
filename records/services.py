import logging
from typing import Optional, Sequence

from django.db import DatabaseError, transaction
from django.db.models import F

from records.exceptions import RecordNotFound, StoreError
from records.models import FIELD_NAMES, SINGLETON_ID, RecordSnapshot, VersionedRecord
from records.store import StoreManager, get_store_manager

logger = logging.getLogger(__name__)


def _resolve_store(store: Optional[StoreManager]) -> StoreManager:
    if store is None:
        return get_store_manager()
    return store.require_ready()


def _validate_update(fields: Sequence[str], expected_version: int) -> None:
    if len(fields) != len(FIELD_NAMES):
        raise ValueError(f"Expected {len(FIELD_NAMES)} field values, got {len(fields)}")
    if not all(isinstance(value, str) for value in fields):
        raise ValueError("Field values must be strings")
    if isinstance(expected_version, bool) or not isinstance(expected_version, int):
        raise ValueError("expected_version must be an integer")
    if expected_version < 1:
        raise ValueError("expected_version must be at least 1")


def get_current(store: Optional[StoreManager] = None) -> RecordSnapshot:
    """
    Read the committed state of the shared record.

    Args:
        store: Ready store manager (defaults to the process-wide one)

    Returns:
        Snapshot of the four fields and the version

    Raises:
        RecordNotFound: If the record is missing after initialization
        StoreError: If the store fails during the read
    """
    store = _resolve_store(store)

    try:
        record = VersionedRecord.objects.using(store.alias).get(pk=SINGLETON_ID)
    except VersionedRecord.DoesNotExist as exc:
        logger.error("Shared record missing from store '%s'", store.alias)
        raise RecordNotFound("Shared record is missing") from exc
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc

    return record.to_snapshot()


def update(
    fields: Sequence[str],
    expected_version: int,
    store: Optional[StoreManager] = None,
) -> bool:
    """
    Compare-and-swap update of the shared record.

    The version check and the write are one conditional UPDATE inside a
    transaction, and the version is incremented with an F() expression at the
    database level. Of any number of concurrent callers presenting the same
    ``expected_version``, at most one sees a matching row.

    Args:
        fields: The four new field values, in order
        expected_version: Version the caller last read
        store: Ready store manager (defaults to the process-wide one)

    Returns:
        True if the record was updated, False if ``expected_version`` is stale

    Raises:
        ValueError: If the arguments are malformed
        RecordNotFound: If the record is missing after initialization
        StoreError: If the store fails; nothing is committed
    """
    _validate_update(fields, expected_version)
    store = _resolve_store(store)
    values = dict(zip(FIELD_NAMES, fields))

    try:
        with transaction.atomic(using=store.alias):
            queryset = VersionedRecord.objects.using(store.alias)
            updated = queryset.filter(pk=SINGLETON_ID, version=expected_version).update(
                version=F("version") + 1,
                **values,
            )

            if not updated and not queryset.filter(pk=SINGLETON_ID).exists():
                raise RecordNotFound("Shared record is missing")
    except RecordNotFound:
        logger.error("Shared record missing from store '%s'", store.alias)
        raise
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc

    if updated:
        logger.debug("Record updated from version %d to %d", expected_version, expected_version + 1)
        return True

    logger.info("Version conflict: update expected version %d", expected_version)
    return False

"""
Store lifecycle for the shared record.

A ``StoreManager`` owns one Django database alias. ``initialize()`` brings the
schema up to date and seeds the record; every repository call goes through
``require_ready()`` so nothing touches the store before that has happened.
"""

import logging
import threading
from typing import Optional

from django.conf import settings
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError, connections
from django.db.migrations.exceptions import MigrationSchemaMissing

from records.exceptions import StoreNotInitialized, StoreUnavailable
from records.models import SINGLETON_ID, VersionedRecord

logger = logging.getLogger(__name__)

_manager: Optional["StoreManager"] = None
_manager_lock = threading.Lock()


def get_default_values() -> tuple:
    """Seed values for the record, overridable through ``FIELD_EDITOR_DEFAULTS``."""
    defaults = tuple(getattr(settings, "FIELD_EDITOR_DEFAULTS", ()))
    if len(defaults) != 4:
        raise ValueError("FIELD_EDITOR_DEFAULTS must hold exactly four strings")
    return defaults


class StoreManager:
    """Owns the connection alias used for every operation on the record."""

    def __init__(self, alias: str = "default"):
        self.alias = alias
        self._ready = False
        self._lock = threading.Lock()

    @property
    def connection(self):
        return connections[self.alias]

    @property
    def is_ready(self) -> bool:
        return self._ready

    def require_ready(self) -> "StoreManager":
        if not self._ready:
            raise StoreNotInitialized(f"Store '{self.alias}' has not been initialized")
        return self

    def initialize(self) -> "StoreManager":
        """
        Create the schema if needed and seed the record on an empty store.

        Safe to call repeatedly: migrations only apply what is missing and the
        seed is a single insert-if-absent on the fixed primary key, so an
        existing record is never reset or duplicated.

        Raises:
            StoreUnavailable: If the store cannot be reached or migrated
        """
        with self._lock:
            try:
                call_command(
                    "migrate",
                    "records",
                    database=self.alias,
                    interactive=False,
                    verbosity=0,
                )
                self._seed()
            except (DatabaseError, CommandError, MigrationSchemaMissing) as exc:
                logger.exception("Failed to initialize store '%s'", self.alias)
                raise StoreUnavailable(str(exc)) from exc

            self._ready = True
            return self

    def _seed(self) -> None:
        field1, field2, field3, field4 = get_default_values()
        VersionedRecord.objects.using(self.alias).bulk_create(
            [
                VersionedRecord(
                    id=SINGLETON_ID,
                    field1=field1,
                    field2=field2,
                    field3=field3,
                    field4=field4,
                    version=1,
                )
            ],
            ignore_conflicts=True,
        )
        logger.info("Store '%s' ready with %d record(s)", self.alias, self.record_count())

    def record_count(self) -> int:
        try:
            return VersionedRecord.objects.using(self.alias).count()
        except DatabaseError as exc:
            raise StoreUnavailable(str(exc)) from exc


def get_store_manager() -> StoreManager:
    """
    Return the process-wide store manager, initializing it on first use.

    Concurrent first callers block on the lock; exactly one of them runs
    ``initialize()`` and the rest receive the same ready manager.
    """
    global _manager

    manager = _manager
    if manager is not None:
        return manager

    with _manager_lock:
        if _manager is None:
            _manager = StoreManager().initialize()
        return _manager


def reset_store_manager() -> None:
    """Forget the process-wide manager so the next call initializes again."""
    global _manager

    with _manager_lock:
        _manager = None

"""Status aggregation for Database resources."""

from __future__ import annotations

import logging
from typing import Any

from . import metrics
from .exceptions import StatusPersistError, StoreError
from .models import Database, DatabaseStatus, ReconcileContext
from .store import ObjectStore
from .utils.errors import sanitize_exception


class StatusAggregator:
    """Merges values observed on children into the Database status.

    Each call to ``apply`` issues at most one status write, and none when
    every requested field already holds the requested value.
    """

    def __init__(self, store: ObjectStore):
        self.store = store

    def apply(self, database: Database, ctx: ReconcileContext, **fields: Any) -> bool:
        """Persist changed status fields.

        Args:
            database: Database whose status is updated in place on success
            ctx: Reconcile context
            **fields: DatabaseStatus attribute names and their new values

        Returns:
            True if a write was issued, False if nothing changed

        Raises:
            StatusPersistError: If the store rejects the write
        """
        changes = {
            DatabaseStatus.wire_name(attr): value
            for attr, value in fields.items()
            if getattr(database.status, attr) != value
        }
        if not changes:
            return False

        try:
            self.store.patch_primary_status(database, changes, timeout=ctx.request_timeout)
        except StoreError as e:
            metrics.status_updates_total.labels(result="error").inc()
            ctx.log(
                database.request,
                f"Failed to update status with {', '.join(sorted(changes))}",
                event="error",
                reason="StatusUpdateFailed",
                level=logging.ERROR,
                error=sanitize_exception(e),
                error_type=type(e).__name__,
            )
            raise StatusPersistError(str(e), status=e.status) from e

        for attr, value in fields.items():
            setattr(database.status, attr, value)
        metrics.status_updates_total.labels(result="success").inc()
        ctx.log(database.request, "Updated status", event="status", reason="StatusUpdated", fields=changes)
        return True

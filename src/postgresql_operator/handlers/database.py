"""Handler for the Database CRD and the children it owns."""

from __future__ import annotations

import time
from typing import Any

import kopf

from ..config import OperatorConfig, resync_interval_from_env
from ..constants import API_GROUP, API_GROUP_VERSION, API_VERSION, KIND_DATABASE, PLURAL_DATABASE
from ..exceptions import OperatorError
from ..models import ReconcileContext, ReconcileRequest, ReconcileResult
from ..reconciler import Reconciler
from ..utils.context import with_correlation_id
from ..utils.errors import sanitize_exception
from ..utils.events import emit_child_created
from .base import BaseHandler, KeyedLocks


def database_reference_body(namespace: str, name: str, uid: str | None = None) -> dict[str, Any]:
    """Minimal Database body for attaching events when only a reference is known."""
    metadata = {"name": name, "namespace": namespace}
    if uid:
        metadata["uid"] = uid
    return {"apiVersion": API_GROUP_VERSION, "kind": KIND_DATABASE, "metadata": metadata}


def controlling_database(meta: dict[str, Any]) -> dict[str, Any] | None:
    """Return the controller owner reference if it points at a Database."""
    for ref in meta.get("ownerReferences") or []:
        if (
            ref.get("controller")
            and ref.get("kind") == KIND_DATABASE
            and ref.get("apiVersion") == API_GROUP_VERSION
        ):
            return ref
    return None


class DatabaseHandler(BaseHandler):
    """Handler for Database resources.

    Translates kopf invocations into reconcile passes. Passes for the same
    Database are serialized here; the reconciler itself takes no locks.
    """

    def __init__(self, reconciler: Reconciler | None = None, config: OperatorConfig | None = None):
        super().__init__(KIND_DATABASE)
        self.reconciler = reconciler
        self.config = config or OperatorConfig()
        self.locks = KeyedLocks()

    def configure(self, reconciler: Reconciler, config: OperatorConfig) -> None:
        self.reconciler = reconciler
        self.config = config

    def context(self) -> ReconcileContext:
        return ReconcileContext(logger=self.logger, request_timeout=self.config.request_timeout_seconds)

    def run_pass(self, request: ReconcileRequest, body: dict[str, Any]) -> ReconcileResult:
        """Run a single serialized reconcile pass for a Database.

        Raises:
            kopf.PermanentError: If the handler was never configured
            OperatorError: Propagated from the reconciler
        """
        if self.reconciler is None:
            raise kopf.PermanentError("Database handler is not configured")

        with self.locks.hold(request), with_correlation_id():
            result = self.reconcile_with_metrics(
                body, lambda: self.reconciler.reconcile(request, self.context())
            )

        if result.created is not None:
            emit_child_created(body, result.created.value, request.name)
        return result

    def reconcile(self, request: ReconcileRequest, body: dict[str, Any]) -> None:
        """Reconcile once and map the result onto kopf's retry semantics.

        Raises:
            kopf.TemporaryError: With the requeue delay when another pass is
                needed, or with the error backoff when the pass failed
        """
        meta = body.get("metadata", {})
        try:
            result = self.run_pass(request, body)
        except OperatorError as e:
            raise kopf.TemporaryError(
                f"Reconciliation failed: {sanitize_exception(e)}",
                delay=self.config.error_backoff_seconds,
            ) from e

        if result.requeue:
            self.log_info(meta, f"Requeue after {result.stage.value}", event="requeue", reason="Requeue")
            raise kopf.TemporaryError(
                f"Requeue after {result.stage.value}",
                delay=self.config.requeue_delay_seconds,
            )

    def reconcile_owner(self, request: ReconcileRequest, body: dict[str, Any]) -> ReconcileResult | None:
        """Reconcile a Database in response to an event on one of its children.

        kopf does not retry event handlers, so requeues and failures are
        retried here within ``event_max_passes`` passes: after the requeue
        delay following a create, after the error backoff following a failure.
        Anything left over is picked up by the resync timer.

        Returns:
            Result of the last pass, or None if the last pass failed
        """
        meta = body.get("metadata", {})
        result = None
        delay = 0.0
        for attempt in range(self.config.event_max_passes):
            if attempt:
                time.sleep(delay)
            try:
                result = self.run_pass(request, body)
            except OperatorError as e:
                self.log_warning(
                    meta,
                    "Reconcile triggered by child event failed",
                    reason="ChildEventFailed",
                    error=sanitize_exception(e),
                    attempt=attempt + 1,
                )
                result = None
                delay = self.config.error_backoff_seconds
                continue
            if not result.requeue:
                break
            delay = self.config.requeue_delay_seconds
        return result


# Global handler instance, configured at startup
_handler = DatabaseHandler()


def get_handler() -> DatabaseHandler:
    return _handler


@kopf.on.create(API_GROUP, API_VERSION, PLURAL_DATABASE)
@kopf.on.update(API_GROUP, API_VERSION, PLURAL_DATABASE)
@kopf.on.resume(API_GROUP, API_VERSION, PLURAL_DATABASE)
def handle_database(
    body: kopf.Body,
    namespace: str,
    name: str,
    **kwargs: Any,
) -> None:
    """Handle Database resource reconciliation."""
    _handler.reconcile(ReconcileRequest(namespace=namespace, name=name), dict(body))


@kopf.timer(API_GROUP, API_VERSION, PLURAL_DATABASE, interval=resync_interval_from_env())
def resync_database(
    body: kopf.Body,
    namespace: str,
    name: str,
    **kwargs: Any,
) -> None:
    """Periodically re-evaluate a Database against its children."""
    _handler.reconcile(ReconcileRequest(namespace=namespace, name=name), dict(body))


def owned_by_database(meta: dict[str, Any], **_: Any) -> bool:
    return controlling_database(meta) is not None


@kopf.on.event("apps", "v1", "deployments", when=owned_by_database)
@kopf.on.event("v1", "services", when=owned_by_database)
@kopf.on.event("v1", "secrets", when=owned_by_database)
@kopf.on.event("v1", "configmaps", when=owned_by_database)
def handle_child_event(
    meta: dict[str, Any],
    namespace: str,
    type: str | None = None,
    **kwargs: Any,
) -> None:
    """Reconcile the owning Database when one of its children changes or disappears."""
    owner = controlling_database(meta)
    if owner is None:
        return
    owner_body = database_reference_body(namespace, owner["name"], owner.get("uid"))
    _handler.log_info(
        owner_body["metadata"],
        f"Child {meta.get('name')} changed",
        event="child_event",
        reason="ChildChanged",
        event_type=type,
    )
    _handler.reconcile_owner(ReconcileRequest(namespace=namespace, name=owner["name"]), owner_body)

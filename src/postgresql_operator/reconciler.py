"""Reconciler for Database resources.

A reconcile pass walks a fixed sequence of stages. Every stage looks up its
child by a name derived from the Database name, creates it when absent and
then stops the pass with ``requeue=True``: the next pass starts again from
the first stage and finds the child through a fresh read. A pass against a
converged Database performs reads only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from . import metrics
from .builders import (
    child_name,
    config_map_name,
    create_config_map_from_spec,
    create_config_set,
    create_deployment_from_spec,
    create_secret_from_spec,
    create_service_from_spec,
)
from .constants import DB_HOST_KEY, DB_NAME_KEY, DB_PORT_KEY
from .credentials import CredentialStrategy, StaticCredentials
from .exceptions import AlreadyExistsError, NotFoundError
from .models import (
    ChildKind,
    ConfigSet,
    Database,
    ReconcileContext,
    ReconcileRequest,
    ReconcileResult,
    Stage,
)
from .status import StatusAggregator
from .store import ObjectStore
from .tracing import reconcile_span, record_result, stage_span

# Stage -> stage entered when the current one completes without stopping the pass
TRANSITIONS: dict[Stage, Stage] = {
    Stage.FETCH_PRIMARY: Stage.ENSURE_WORKLOAD,
    Stage.ENSURE_WORKLOAD: Stage.ENSURE_NETWORK_ENDPOINT,
    Stage.ENSURE_NETWORK_ENDPOINT: Stage.ENSURE_CREDENTIAL_STORE,
    Stage.ENSURE_CREDENTIAL_STORE: Stage.ENSURE_CONFIG_STORE,
    Stage.ENSURE_CONFIG_STORE: Stage.DONE,
}


@dataclass
class _Pass:
    """Working state of a single reconcile pass. Never outlives the pass."""

    request: ReconcileRequest
    ctx: ReconcileContext
    database: Database | None = None
    config: ConfigSet = field(default_factory=dict)


class Reconciler:
    """Drives a Database and its children towards the declared spec."""

    def __init__(
        self,
        store: ObjectStore,
        credentials: CredentialStrategy | None = None,
    ):
        self.store = store
        self.credentials = credentials or StaticCredentials()
        self.status = StatusAggregator(store)
        self._stages: dict[Stage, Callable[[_Pass], ReconcileResult | None]] = {
            Stage.FETCH_PRIMARY: self._fetch_primary,
            Stage.ENSURE_WORKLOAD: self._ensure_workload,
            Stage.ENSURE_NETWORK_ENDPOINT: self._ensure_network_endpoint,
            Stage.ENSURE_CREDENTIAL_STORE: self._ensure_credential_store,
            Stage.ENSURE_CONFIG_STORE: self._ensure_config_store,
        }

    def reconcile(self, request: ReconcileRequest, ctx: ReconcileContext) -> ReconcileResult:
        """Run one reconcile pass.

        Args:
            request: Identity of the Database
            ctx: Logger and store timeout supplied by the caller

        Returns:
            Result with ``requeue=True`` when a child was created and another
            pass is needed, ``requeue=False`` when converged or deleted

        Raises:
            StoreError: Any store failure other than an expected not-found,
                unchanged, for the dispatcher to retry with backoff
        """
        ctx.log(request, "Reconciling Database", event="reconcile", reason="Reconciling")
        state = _Pass(request=request, ctx=ctx)

        stage = Stage.FETCH_PRIMARY
        with reconcile_span(request) as span:
            while stage is not Stage.DONE:
                with stage_span(stage, request):
                    result = self._stages[stage](state)
                if result is not None:
                    record_result(span, result)
                    return result
                stage = TRANSITIONS[stage]

            result = ReconcileResult(requeue=False, stage=Stage.DONE)
            record_result(span, result)

        ctx.log(request, "Database reconciled", event="reconcile", reason="Reconciled")
        return result

    def _fetch_primary(self, state: _Pass) -> ReconcileResult | None:
        request, ctx = state.request, state.ctx
        try:
            state.database = self.store.get_primary(
                request.namespace, request.name, timeout=ctx.request_timeout
            )
        except NotFoundError:
            # Deleted after the request was queued; owned children are garbage collected
            ctx.log(request, "Database not found, nothing to do", event="reconcile", reason="NotFound")
            return ReconcileResult(requeue=False, stage=Stage.FETCH_PRIMARY)

        credentials = self.credentials.credentials_for(state.database)
        state.config = create_config_set(state.database, credentials)
        return None

    def _ensure(self, state: _Pass, stage: Stage, kind: ChildKind, desired: Any) -> Any | None:
        """Return the existing child, or create it and return None.

        Raises:
            StoreError: On any lookup or create failure other than not-found
                or a lost create race
        """
        ctx = state.ctx
        namespace, name = desired.metadata.namespace, desired.metadata.name
        try:
            return self.store.get_child(kind, namespace, name, timeout=ctx.request_timeout)
        except NotFoundError:
            pass

        ctx.log(
            state.request,
            f"Creating a new {kind.value}",
            event="create",
            reason="Creating",
            child_kind=kind.value,
            child_namespace=namespace,
            child_name=name,
            stage=stage.value,
        )
        try:
            self.store.create_child(kind, desired, timeout=ctx.request_timeout)
        except AlreadyExistsError:
            ctx.log(
                state.request,
                f"{kind.value} {name} appeared concurrently",
                event="create",
                reason="AlreadyExists",
                level=logging.WARNING,
                child_kind=kind.value,
            )
            return None

        metrics.child_created_total.labels(kind=kind.value).inc()
        return None

    def _ensure_workload(self, state: _Pass) -> ReconcileResult | None:
        database = state.database
        desired = create_deployment_from_spec(database, state.config)

        found = self._ensure(state, Stage.ENSURE_WORKLOAD, ChildKind.WORKLOAD, desired)
        # dbName is derived from the Database spec and recorded once the Deployment exists
        self.status.apply(database, state.ctx, db_name=state.config[DB_NAME_KEY])
        if found is None:
            return ReconcileResult(requeue=True, stage=Stage.ENSURE_WORKLOAD, created=ChildKind.WORKLOAD)
        return None

    def _ensure_network_endpoint(self, state: _Pass) -> ReconcileResult | None:
        database = state.database
        desired = create_service_from_spec(database)

        found = self._ensure(state, Stage.ENSURE_NETWORK_ENDPOINT, ChildKind.NETWORK_ENDPOINT, desired)
        if found is None:
            return ReconcileResult(
                requeue=True, stage=Stage.ENSURE_NETWORK_ENDPOINT, created=ChildKind.NETWORK_ENDPOINT
            )

        address, port = service_address(found)
        if not address:
            state.ctx.log(
                state.request,
                f"Service {desired.metadata.name} has no cluster IP yet",
                event="wait",
                reason="AddressPending",
            )
            return ReconcileResult(requeue=True, stage=Stage.ENSURE_NETWORK_ENDPOINT)

        state.config[DB_HOST_KEY] = address
        state.config[DB_PORT_KEY] = str(port)
        self.status.apply(database, state.ctx, connection_address=address, connection_port=port)
        return None

    def _ensure_credential_store(self, state: _Pass) -> ReconcileResult | None:
        database = state.database
        desired = create_secret_from_spec(database, state.config)

        found = self._ensure(state, Stage.ENSURE_CREDENTIAL_STORE, ChildKind.CREDENTIAL_STORE, desired)
        if found is None:
            return ReconcileResult(
                requeue=True, stage=Stage.ENSURE_CREDENTIAL_STORE, created=ChildKind.CREDENTIAL_STORE
            )

        self.status.apply(database, state.ctx, credentials_ref=child_name(database))
        return None

    def _ensure_config_store(self, state: _Pass) -> ReconcileResult | None:
        database = state.database
        desired = create_config_map_from_spec(database, state.config)

        found = self._ensure(state, Stage.ENSURE_CONFIG_STORE, ChildKind.CONFIG_STORE, desired)
        if found is None:
            return ReconcileResult(requeue=True, stage=Stage.ENSURE_CONFIG_STORE, created=ChildKind.CONFIG_STORE)

        self.status.apply(database, state.ctx, config_ref=config_map_name(database))
        return None


def service_address(service: Any) -> tuple[str | None, int | None]:
    """Return the cluster IP and target port of the first Service port."""
    spec = service.spec
    ports = spec.ports or []
    if not ports:
        return spec.cluster_ip, None

    target = ports[0].target_port
    if isinstance(target, int):
        port = target
    elif isinstance(target, str) and target.isdigit():
        port = int(target)
    else:
        # Named or unset target ports resolve to the service port
        port = ports[0].port
    return spec.cluster_ip, port

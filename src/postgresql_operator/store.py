"""Object store access for Database resources and their children.

The reconciler talks to the cluster only through the ``ObjectStore``
protocol: get, create and status-update. Deletion is never issued here;
children are removed by the garbage collector through their owner reference.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Protocol

from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from . import metrics
from .constants import API_GROUP, API_VERSION, FIELD_MANAGER, KIND_DATABASE, PLURAL_DATABASE
from .exceptions import AlreadyExistsError, NotFoundError, TransientStoreError
from .models import ChildKind, Database
from .utils.errors import sanitize_exception
from .utils.rate_limit import handle_rate_limit_error, rate_limit_k8s


class ObjectStore(Protocol):
    """Narrow store contract consumed by the reconciler.

    Every call blocks and honours the caller-supplied ``timeout`` (seconds).
    Absent objects raise ``NotFoundError``; create conflicts raise
    ``AlreadyExistsError``; anything else raises ``TransientStoreError``.
    """

    def get_primary(self, namespace: str, name: str, timeout: float | None = None) -> Database:
        ...

    def patch_primary_status(
        self, database: Database, status: dict[str, Any], timeout: float | None = None
    ) -> None:
        ...

    def get_child(self, kind: ChildKind, namespace: str, name: str, timeout: float | None = None) -> Any:
        ...

    def create_child(self, kind: ChildKind, body: Any, timeout: float | None = None) -> Any:
        ...


class KubernetesObjectStore:
    """ObjectStore backed by the Kubernetes API."""

    def __init__(
        self,
        core_api: client.CoreV1Api | None = None,
        apps_api: client.AppsV1Api | None = None,
        custom_api: client.CustomObjectsApi | None = None,
    ):
        self.core_api = core_api or client.CoreV1Api()
        self.apps_api = apps_api or client.AppsV1Api()
        self.custom_api = custom_api or client.CustomObjectsApi()

    def _readers(self) -> dict[ChildKind, Callable[..., Any]]:
        return {
            ChildKind.WORKLOAD: self.apps_api.read_namespaced_deployment,
            ChildKind.NETWORK_ENDPOINT: self.core_api.read_namespaced_service,
            ChildKind.CREDENTIAL_STORE: self.core_api.read_namespaced_secret,
            ChildKind.CONFIG_STORE: self.core_api.read_namespaced_config_map,
        }

    def _creators(self) -> dict[ChildKind, Callable[..., Any]]:
        return {
            ChildKind.WORKLOAD: self.apps_api.create_namespaced_deployment,
            ChildKind.NETWORK_ENDPOINT: self.core_api.create_namespaced_service,
            ChildKind.CREDENTIAL_STORE: self.core_api.create_namespaced_secret,
            ChildKind.CONFIG_STORE: self.core_api.create_namespaced_config_map,
        }

    def _call(
        self,
        operation: str,
        ref: tuple[str, str, str],
        func: Callable[..., Any],
        timeout: float | None,
        **kwargs: Any,
    ) -> Any:
        """Invoke an API method with rate limiting, metrics and error mapping."""
        kind, namespace, name = ref
        if timeout is not None:
            kwargs["_request_timeout"] = timeout

        attempt = 0
        while True:
            start_time = time.time()
            try:
                result = rate_limit_k8s(func)(**kwargs)
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
                return result
            except ApiException as e:
                if e.status == 404:
                    metrics.api_call_total.labels(api_type="k8s", operation=operation, result="not_found").inc()
                    raise NotFoundError(kind, namespace, name) from e
                if e.status == 409:
                    metrics.api_call_total.labels(api_type="k8s", operation=operation, result="conflict").inc()
                    raise AlreadyExistsError(kind, namespace, name) from e
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
                if handle_rate_limit_error(e, attempt):
                    attempt += 1
                    continue
                raise TransientStoreError(
                    f"{operation} {kind} {namespace}/{name} failed: {sanitize_exception(e)}",
                    status=e.status,
                ) from e
            except Urllib3HTTPError as e:
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
                raise TransientStoreError(
                    f"{operation} {kind} {namespace}/{name} failed: {sanitize_exception(e)}"
                ) from e
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get_primary(self, namespace: str, name: str, timeout: float | None = None) -> Database:
        obj = self._call(
            "get_database",
            (KIND_DATABASE, namespace, name),
            self.custom_api.get_namespaced_custom_object,
            timeout,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_DATABASE,
            name=name,
        )
        return Database.from_dict(obj)

    def patch_primary_status(
        self, database: Database, status: dict[str, Any], timeout: float | None = None
    ) -> None:
        self._call(
            "patch_database_status",
            (KIND_DATABASE, database.namespace, database.name),
            self.custom_api.patch_namespaced_custom_object_status,
            timeout,
            group=API_GROUP,
            version=API_VERSION,
            namespace=database.namespace,
            plural=PLURAL_DATABASE,
            name=database.name,
            body={"status": status},
            field_manager=FIELD_MANAGER,
        )

    def get_child(self, kind: ChildKind, namespace: str, name: str, timeout: float | None = None) -> Any:
        return self._call(
            f"get_{kind.name.lower()}",
            (kind.value, namespace, name),
            self._readers()[kind],
            timeout,
            name=name,
            namespace=namespace,
        )

    def create_child(self, kind: ChildKind, body: Any, timeout: float | None = None) -> Any:
        return self._call(
            f"create_{kind.name.lower()}",
            (kind.value, body.metadata.namespace, body.metadata.name),
            self._creators()[kind],
            timeout,
            namespace=body.metadata.namespace,
            body=body,
            field_manager=FIELD_MANAGER,
        )


def load_kubernetes_config() -> None:
    """Load in-cluster config, falling back to the local kubeconfig."""
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

"""Shared fixtures for unit tests."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from postgresql_operator.exceptions import AlreadyExistsError, NotFoundError
from postgresql_operator.models import ChildKind, Database, ReconcileContext


class FakeObjectStore:
    """In-memory ObjectStore that records every call.

    Created Services get ``cluster_ip`` assigned, the way the API server
    allocates one on create.
    """

    def __init__(self, cluster_ip: str = "10.0.0.5"):
        self.cluster_ip = cluster_ip
        self.primaries: dict[tuple[str, str], dict[str, Any]] = {}
        self.children: dict[tuple[ChildKind, str, str], Any] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, tuple[Exception, int | None]] = {}

    def add_primary(
        self,
        name: str = "pgdb1",
        namespace: str = "default",
        spec: dict[str, Any] | None = None,
        uid: str = "uid-pgdb1",
    ) -> dict[str, Any]:
        body = {
            "apiVersion": "postgresql.baiju.dev/v1alpha1",
            "kind": "Database",
            "metadata": {"name": name, "namespace": namespace, "uid": uid},
            "spec": spec if spec is not None else {"image": "postgres:16", "imageName": "postgresql"},
            "status": {},
        }
        self.primaries[(namespace, name)] = body
        return body

    def fail(self, operation: str, error: Exception, times: int | None = None) -> None:
        """Make the named operation (e.g. "get_child:Service") raise error.

        With ``times`` set the failure clears itself after that many calls.
        """
        self.failures[operation] = (error, times)

    def _check(self, operation: str) -> None:
        if operation not in self.failures:
            return
        error, times = self.failures[operation]
        if times is not None:
            if times <= 1:
                del self.failures[operation]
            else:
                self.failures[operation] = (error, times - 1)
        raise error

    @property
    def mutations(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] in ("create_child", "patch_primary_status")]

    def get_primary(self, namespace: str, name: str, timeout: float | None = None) -> Database:
        self.calls.append(("get_primary", namespace, name, timeout))
        self._check("get_primary")
        body = self.primaries.get((namespace, name))
        if body is None:
            raise NotFoundError("Database", namespace, name)
        return Database.from_dict(body)

    def patch_primary_status(
        self, database: Database, status: dict[str, Any], timeout: float | None = None
    ) -> None:
        self.calls.append(("patch_primary_status", database.name, dict(status), timeout))
        self._check("patch_primary_status")
        self.primaries[(database.namespace, database.name)]["status"].update(status)

    def get_child(self, kind: ChildKind, namespace: str, name: str, timeout: float | None = None) -> Any:
        self.calls.append(("get_child", kind, name, timeout))
        self._check(f"get_child:{kind.value}")
        child = self.children.get((kind, namespace, name))
        if child is None:
            raise NotFoundError(kind.value, namespace, name)
        return child

    def create_child(self, kind: ChildKind, body: Any, timeout: float | None = None) -> Any:
        namespace, name = body.metadata.namespace, body.metadata.name
        self.calls.append(("create_child", kind, name, timeout))
        self._check(f"create_child:{kind.value}")
        if (kind, namespace, name) in self.children:
            raise AlreadyExistsError(kind.value, namespace, name)
        if kind is ChildKind.NETWORK_ENDPOINT:
            body.spec.cluster_ip = self.cluster_ip
        self.children[(kind, namespace, name)] = body
        return body

    def status_of(self, name: str = "pgdb1", namespace: str = "default") -> dict[str, Any]:
        return self.primaries[(namespace, name)]["status"]


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def ctx() -> ReconcileContext:
    return ReconcileContext(logger=logging.getLogger("tests"), request_timeout=None)


@pytest.fixture
def database() -> Database:
    return Database(
        name="pgdb1",
        namespace="default",
        uid="uid-pgdb1",
        image="postgres:16",
        image_name="postgresql",
    )

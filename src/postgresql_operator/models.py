"""Data model for Database resources and reconcile requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import (
    API_GROUP_VERSION,
    KIND_DATABASE,
    STATUS_CONFIG_REF,
    STATUS_CONNECTION_ADDRESS,
    STATUS_CONNECTION_PORT,
    STATUS_CREDENTIALS_REF,
    STATUS_DB_NAME,
)
from .logging import CONTROLLER_NAME, log_resource_event


class ChildKind(str, Enum):
    """Kinds of child resources owned by a Database."""

    WORKLOAD = "Deployment"
    NETWORK_ENDPOINT = "Service"
    CREDENTIAL_STORE = "Secret"
    CONFIG_STORE = "ConfigMap"


class Stage(str, Enum):
    """Stages of the reconcile state machine, in execution order."""

    FETCH_PRIMARY = "FetchPrimary"
    ENSURE_WORKLOAD = "EnsureWorkload"
    ENSURE_NETWORK_ENDPOINT = "EnsureNetworkEndpoint"
    ENSURE_CREDENTIAL_STORE = "EnsureCredentialStore"
    ENSURE_CONFIG_STORE = "EnsureConfigStore"
    DONE = "Done"


@dataclass(frozen=True)
class ReconcileRequest:
    """Identity of a Database to reconcile."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ReconcileResult:
    """Continuation signal returned to the dispatcher."""

    requeue: bool = False
    stage: Stage = Stage.DONE
    created: ChildKind | None = None


@dataclass
class DatabaseStatus:
    """Observed and derived values, written only by the reconciler."""

    db_name: str | None = None
    connection_address: str | None = None
    connection_port: int | None = None
    credentials_ref: str | None = None
    config_ref: str | None = None

    _WIRE_NAMES = {
        "db_name": STATUS_DB_NAME,
        "connection_address": STATUS_CONNECTION_ADDRESS,
        "connection_port": STATUS_CONNECTION_PORT,
        "credentials_ref": STATUS_CREDENTIALS_REF,
        "config_ref": STATUS_CONFIG_REF,
    }

    @classmethod
    def wire_name(cls, attr: str) -> str:
        return cls._WIRE_NAMES[attr]

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DatabaseStatus":
        data = data or {}
        port = data.get(STATUS_CONNECTION_PORT)
        return cls(
            db_name=data.get(STATUS_DB_NAME),
            connection_address=data.get(STATUS_CONNECTION_ADDRESS),
            connection_port=int(port) if port is not None else None,
            credentials_ref=data.get(STATUS_CREDENTIALS_REF),
            config_ref=data.get(STATUS_CONFIG_REF),
        )


@dataclass
class Database:
    """A Database custom resource (the Primary)."""

    name: str
    namespace: str
    uid: str = ""
    image: str = ""
    image_name: str = ""
    db_name: str = ""
    status: DatabaseStatus = field(default_factory=DatabaseStatus)
    api_version: str = API_GROUP_VERSION
    kind: str = KIND_DATABASE

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "Database":
        """Build a Database from a custom object body as returned by the API."""
        meta = obj.get("metadata", {}) or {}
        spec = obj.get("spec", {}) or {}
        return cls(
            name=meta["name"],
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", ""),
            image=spec.get("image", ""),
            image_name=spec.get("imageName", ""),
            db_name=spec.get("dbName", "") or "",
            status=DatabaseStatus.from_dict(obj.get("status")),
            api_version=obj.get("apiVersion", API_GROUP_VERSION),
            kind=obj.get("kind", KIND_DATABASE),
        )

    @property
    def request(self) -> ReconcileRequest:
        return ReconcileRequest(namespace=self.namespace, name=self.name)


@dataclass(frozen=True)
class ReconcileContext:
    """Per-invocation collaborators handed to the reconciler by its caller.

    The logger is injected here instead of living in a module global, and
    ``request_timeout`` is forwarded to every store call unchanged.
    """

    logger: logging.Logger
    request_timeout: float | None = None

    def log(
        self,
        request: ReconcileRequest,
        message: str,
        event: str = "info",
        reason: str = "Info",
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=KIND_DATABASE,
            resource_name=request.name,
            namespace=request.namespace,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )


# Transient map of config keys to values, built up across stages.
ConfigSet = dict[str, str]

"""Exception hierarchy for the PostgreSQL Operator."""

from __future__ import annotations


class OperatorError(Exception):
    """Base class for all operator errors."""


class StoreError(OperatorError):
    """Raised when an object store call fails."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFoundError(StoreError):
    """The requested object does not exist in the store."""

    def __init__(self, kind: str, namespace: str, name: str):
        super().__init__(f"{kind} {namespace}/{name} not found", status=404)
        self.kind = kind
        self.namespace = namespace
        self.name = name


class AlreadyExistsError(StoreError):
    """A create call lost the race against another writer."""

    def __init__(self, kind: str, namespace: str, name: str):
        super().__init__(f"{kind} {namespace}/{name} already exists", status=409)
        self.kind = kind
        self.namespace = namespace
        self.name = name


class TransientStoreError(StoreError):
    """Any other read, write or create failure. Retried by the dispatcher."""


class StatusPersistError(TransientStoreError):
    """Persisting Primary status failed."""


class ConfigurationError(OperatorError):
    """Raised when configuration validation fails."""

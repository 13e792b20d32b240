"""Naming, labels and ownership shared by all child builders."""

from __future__ import annotations

from kubernetes import client

from ..constants import CHILD_NAME_SUFFIX, DEFAULT_DB_NAME, LABEL_APP
from ..models import Database


def db_name(database: Database) -> str:
    """Return the database name to create, falling back to "postgres"."""
    if database.db_name:
        return database.db_name
    return DEFAULT_DB_NAME


def child_name(database: Database) -> str:
    """Name shared by the Deployment, Service and Secret of a Database."""
    return f"{database.name}{CHILD_NAME_SUFFIX}"


def config_map_name(database: Database) -> str:
    """The ConfigMap is named after the Database itself."""
    return database.name


def labels_for(database: Database) -> dict[str, str]:
    return {LABEL_APP: database.name}


def owner_reference(database: Database) -> client.V1OwnerReference:
    """Controller owner reference pointing at the Database."""
    return client.V1OwnerReference(
        api_version=database.api_version,
        kind=database.kind,
        name=database.name,
        uid=database.uid,
        controller=True,
        block_owner_deletion=True,
    )


def child_metadata(database: Database, name: str) -> client.V1ObjectMeta:
    """Object metadata for a child of the given Database.

    Args:
        database: Owning Database
        name: Child name

    Returns:
        Metadata with namespace, labels and the controller owner reference set
    """
    return client.V1ObjectMeta(
        name=name,
        namespace=database.namespace,
        labels=labels_for(database),
        owner_references=[owner_reference(database)],
    )

"""Builder for the PostgreSQL Service."""

from __future__ import annotations

from kubernetes import client

from ..constants import POSTGRES_PORT
from ..models import Database
from .metadata import child_metadata, child_name, labels_for


def create_service_from_spec(database: Database) -> client.V1Service:
    """Create the desired Service exposing port 5432 of the Database pods."""
    name = child_name(database)
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=child_metadata(database, name),
        spec=client.V1ServiceSpec(
            ports=[
                client.V1ServicePort(
                    name=name,
                    port=POSTGRES_PORT,
                    protocol="TCP",
                    target_port=POSTGRES_PORT,
                )
            ],
            selector=labels_for(database),
        ),
    )

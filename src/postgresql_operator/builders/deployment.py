"""Builder for the PostgreSQL Deployment."""

from __future__ import annotations

from kubernetes import client

from ..constants import (
    DB_NAME_KEY,
    DB_PASSWORD_KEY,
    DB_USERNAME_KEY,
    ENV_PGDATA,
    ENV_POSTGRES_DB,
    ENV_POSTGRES_PASSWORD,
    ENV_POSTGRES_USER,
    PGDATA_PATH,
    POSTGRES_PORT,
)
from ..models import ConfigSet, Database
from .metadata import child_metadata, child_name, labels_for


def create_deployment_from_spec(database: Database, config: ConfigSet) -> client.V1Deployment:
    """Create the desired Deployment for a Database.

    A single replica with the Recreate strategy: the old pod is stopped before
    a new one starts, so two instances never write the same data directory.

    Args:
        database: Database resource
        config: Config set holding at least db.user, db.password and db.name

    Returns:
        Desired Deployment
    """
    name = child_name(database)
    labels = labels_for(database)

    container = client.V1Container(
        name=database.image_name,
        image=database.image,
        image_pull_policy="IfNotPresent",
        ports=[client.V1ContainerPort(container_port=POSTGRES_PORT, protocol="TCP")],
        env=[
            client.V1EnvVar(name=ENV_POSTGRES_USER, value=config[DB_USERNAME_KEY]),
            client.V1EnvVar(name=ENV_POSTGRES_PASSWORD, value=config[DB_PASSWORD_KEY]),
            client.V1EnvVar(name=ENV_POSTGRES_DB, value=config[DB_NAME_KEY]),
            client.V1EnvVar(name=ENV_PGDATA, value=PGDATA_PATH),
        ],
    )

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=child_metadata(database, name),
        spec=client.V1DeploymentSpec(
            strategy=client.V1DeploymentStrategy(type="Recreate"),
            replicas=1,
            selector=client.V1LabelSelector(match_labels=labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(
                    name=name,
                    namespace=database.namespace,
                    labels=labels,
                ),
                spec=client.V1PodSpec(containers=[container]),
            ),
        ),
    )

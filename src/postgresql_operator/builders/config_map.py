"""Builders for the config set and the ConfigMap that publishes it."""

from __future__ import annotations

from kubernetes import client

from ..constants import (
    DB_HOST_KEY,
    DB_NAME_KEY,
    DB_PASSWORD_KEY,
    DB_PORT_KEY,
    DB_USERNAME_KEY,
)
from ..credentials import Credentials
from ..models import ConfigSet, Database
from .metadata import child_metadata, config_map_name, db_name

CONFIG_KEYS = (DB_HOST_KEY, DB_PORT_KEY, DB_USERNAME_KEY, DB_PASSWORD_KEY, DB_NAME_KEY)


def create_config_set(database: Database, credentials: Credentials) -> ConfigSet:
    """Seed the config set with the values known before any child exists."""
    return {
        DB_NAME_KEY: db_name(database),
        DB_USERNAME_KEY: credentials.user,
        DB_PASSWORD_KEY: credentials.password,
    }


def create_config_map_from_spec(database: Database, config: ConfigSet) -> client.V1ConfigMap:
    """Create the desired ConfigMap from a complete config set.

    Args:
        database: Database resource
        config: Config set with all of db.host, db.port, db.user, db.password, db.name

    Returns:
        Desired ConfigMap

    Raises:
        KeyError: If the config set is missing a key
    """
    return client.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=child_metadata(database, config_map_name(database)),
        data={key: config[key] for key in CONFIG_KEYS},
    )

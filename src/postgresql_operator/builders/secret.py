"""Builder for the credentials Secret."""

from __future__ import annotations

import base64

from kubernetes import client

from ..constants import DB_PASSWORD_KEY, DB_USERNAME_KEY, SECRET_PASSWORD_KEY, SECRET_USER_KEY
from ..models import ConfigSet, Database
from .metadata import child_metadata, child_name


def _encode(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("utf-8")


def create_secret_from_spec(database: Database, config: ConfigSet) -> client.V1Secret:
    """Create the desired Opaque Secret holding the database user and password.

    Args:
        database: Database resource
        config: Config set holding db.user and db.password

    Returns:
        Desired Secret, values base64 encoded as the API expects
    """
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=child_metadata(database, child_name(database)),
        type="Opaque",
        data={
            SECRET_USER_KEY: _encode(config[DB_USERNAME_KEY]),
            SECRET_PASSWORD_KEY: _encode(config[DB_PASSWORD_KEY]),
        },
    )

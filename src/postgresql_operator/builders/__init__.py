"""Builders for Database child resources."""

from .config_map import create_config_map_from_spec, create_config_set
from .deployment import create_deployment_from_spec
from .metadata import (
    child_metadata,
    child_name,
    config_map_name,
    db_name,
    labels_for,
    owner_reference,
)
from .secret import create_secret_from_spec
from .service import create_service_from_spec

__all__ = [
    "child_metadata",
    "child_name",
    "config_map_name",
    "create_config_map_from_spec",
    "create_config_set",
    "create_deployment_from_spec",
    "create_secret_from_spec",
    "create_service_from_spec",
    "db_name",
    "labels_for",
    "owner_reference",
]

"""Credential strategies for Database instances.

Credentials are recomputed on every reconcile, so a strategy must return the
same pair for the same Database each time it is asked.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from typing import Protocol

from .constants import DEFAULT_DB_PASSWORD, DEFAULT_DB_USER
from .exceptions import ConfigurationError
from .models import Database


@dataclass(frozen=True)
class Credentials:
    """Database superuser credentials."""

    user: str
    password: str


class CredentialStrategy(Protocol):
    """Produces credentials for a Database."""

    def credentials_for(self, database: Database) -> Credentials:
        ...


class StaticCredentials:
    """Fixed user/password pair shared by every Database."""

    def __init__(self, user: str = DEFAULT_DB_USER, password: str = DEFAULT_DB_PASSWORD):
        self.user = user
        self.password = password

    def credentials_for(self, database: Database) -> Credentials:
        return Credentials(user=self.user, password=self.password)


class DerivedCredentials:
    """Per-Database password derived from an operator seed and the Database UID.

    The password is HMAC-SHA256(seed, uid), URL-safe base64 encoded without
    padding. A recreated Database gets a new UID and therefore a new password.
    """

    def __init__(self, seed: str, user: str = DEFAULT_DB_USER, length: int = 32):
        if not seed:
            raise ConfigurationError("A non-empty seed is required for derived credentials")
        self._seed = seed.encode("utf-8")
        self.user = user
        self.length = length

    def credentials_for(self, database: Database) -> Credentials:
        if not database.uid:
            raise ConfigurationError(f"Database {database.namespace}/{database.name} has no uid")
        digest = hmac.new(self._seed, database.uid.encode("utf-8"), hashlib.sha256).digest()
        password = base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
        return Credentials(user=self.user, password=password[: self.length])


def create_credential_strategy(name: str, seed: str | None = None) -> CredentialStrategy:
    """Create a credential strategy by name.

    Args:
        name: Strategy name ("static" or "derived")
        seed: Seed for the derived strategy

    Returns:
        Credential strategy instance

    Raises:
        ConfigurationError: If the name is unknown or the seed is missing
    """
    if name == "static":
        return StaticCredentials()
    if name == "derived":
        return DerivedCredentials(seed or "")
    raise ConfigurationError(f"Unknown credentials strategy: {name}")

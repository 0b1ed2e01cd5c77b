"""
Registry credential resolution from the cluster pull secret.

The pull secret is a single cluster-wide ``.dockerconfigjson`` document
mapping registry hosts to auth entries. A host that is present with an empty
``Auth`` token means anonymous access; a host that is absent is an error.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedCredentials, NoCredentialForHost
from .storage.credential_store import CredentialStore

__all__ = [
    "Credential",
    "PullSecret",
    "parse_pull_secret",
    "resolve_credentials",
    "PULL_SECRET_NAMESPACE",
    "PULL_SECRET_NAME",
]

logger = logging.getLogger(__name__)

PULL_SECRET_NAMESPACE = "openshift-config"
PULL_SECRET_NAME = "pull-secret"


@dataclass(frozen=True)
class Credential:
    """
    Auth entry for one registry host.

    Attributes:
        auth: Opaque token, typically base64 ``user:pass``. Empty means anonymous.
        email: Identity associated with the token (may be empty)
    """
    auth: str = ""
    email: str = ""

    @property
    def is_anonymous(self) -> bool:
        return not self.auth

    def __repr__(self) -> str:
        # Never render the token
        return f"Credential(email={self.email!r}, anonymous={self.is_anonymous})"


class _AuthEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    auth: str = Field(default="", alias="Auth")
    email: str = Field(default="", alias="Email")


class PullSecret(BaseModel):
    """Decoded ``.dockerconfigjson`` document."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    auths: Dict[str, _AuthEntry] = Field(default_factory=dict, alias="Auths")

    def lookup(self, host: str) -> Optional[Credential]:
        entry = self.auths.get(host)
        if entry is None:
            return None
        return Credential(auth=entry.auth, email=entry.email)


def _normalize_keys(data: dict) -> dict:
    # kubectl/podman write lowercase keys; accept both spellings
    if "auths" in data and "Auths" not in data:
        data = {**data, "Auths": data["auths"]}
    auths = data.get("Auths")
    if isinstance(auths, dict):
        normalized = {}
        for host, entry in auths.items():
            if isinstance(entry, dict):
                entry = {
                    "Auth": entry.get("Auth", entry.get("auth", "")),
                    "Email": entry.get("Email", entry.get("email", "")),
                }
            normalized[host] = entry
        data = {**data, "Auths": normalized}
    return data


def parse_pull_secret(document: bytes) -> PullSecret:
    """
    Decode a pull-secret document.

    Raises:
        MalformedCredentials: If the document is not JSON or the auths
            table does not have the expected shape
    """
    try:
        data = json.loads(document.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedCredentials(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedCredentials("document is not a JSON object")

    try:
        return PullSecret.model_validate(_normalize_keys(data))
    except ValidationError as e:
        raise MalformedCredentials(str(e)) from e


def resolve_credentials(store: CredentialStore, host: str, *,
                        namespace: str = PULL_SECRET_NAMESPACE,
                        name: str = PULL_SECRET_NAME) -> Credential:
    """
    Resolve the credential for a registry host from the cluster pull secret.

    The secret is read fresh on every call so rotated credentials are
    picked up.

    Args:
        store: Credential store holding the pull secret
        host: Registry host the credential is keyed by
        namespace: Namespace of the pull secret
        name: Name of the pull secret

    Returns:
        Credential for the host; anonymous if its token is empty

    Raises:
        CredentialStoreUnavailable: If the store cannot be read
        MalformedCredentials: If the document cannot be decoded
        NoCredentialForHost: If the host has no entry
    """
    document = store.get_pull_secret(namespace, name)
    secret = parse_pull_secret(document)

    credential = secret.lookup(host)
    if credential is None:
        raise NoCredentialForHost(host)

    if credential.is_anonymous:
        logger.debug(f"Pull secret entry for {host} has no token, using anonymous access")
    else:
        logger.debug(f"Using pull secret credentials for {host}")
    return credential

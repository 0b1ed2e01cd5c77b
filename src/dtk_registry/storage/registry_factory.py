"""
Factories building the engine's collaborators from settings.

Keeps adapter selection in one place so call sites only ever see the
``RegistryTransport`` and ``CredentialStore`` protocols.
"""
from __future__ import annotations

from pathlib import Path

from ..settings import Settings
from .credential_store import CredentialStore, KubernetesSecretStore, MountedSecretStore
from .registry_http import HttpRegistryTransport
from .transport import RegistryTransport


def make_transport(settings: Settings) -> RegistryTransport:
    """Create the HTTP registry transport."""
    return HttpRegistryTransport(
        insecure=settings.registry_insecure,
        timeout_s=settings.http_timeout_s,
    )


def make_credential_store(settings: Settings) -> CredentialStore:
    """
    Create the credential store selected by ``settings.secret_store``.

    Raises:
        ValueError: If the store type is unknown
    """
    if settings.secret_store == "kubernetes":
        return KubernetesSecretStore(kubeconfig=settings.kubeconfig, key=settings.pull_secret_key)
    elif settings.secret_store == "mounted":
        return MountedSecretStore(Path(settings.secret_dir), key=settings.pull_secret_key)
    else:
        raise ValueError(f"Unknown secret_store: {settings.secret_store}")


__all__ = ["make_transport", "make_credential_store"]

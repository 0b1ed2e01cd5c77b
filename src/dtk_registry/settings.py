"""
Settings and configuration for dtk-registry.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at adapter construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

from .credentials import PULL_SECRET_NAME, PULL_SECRET_NAMESPACE
from .storage.credential_store import DOCKER_CONFIG_JSON_KEY

__all__ = ["Settings", "create_settings_from_env", "SECRET_STORES"]

SECRET_STORES = ("kubernetes", "mounted")

# Kubernetes object names: DNS-1123 subdomain
_K8S_NAME_RE = re.compile(r"^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the resolution engine and its adapters.

    Pull secret:
        pull_secret_namespace: Namespace holding the cluster pull secret
        pull_secret_name: Name of the cluster pull secret
        pull_secret_key: Secret data key holding the docker config document
        secret_store: "kubernetes" (API) or "mounted" (directory tree)
        secret_dir: Root directory for the mounted store
        kubeconfig: Kubeconfig path; in-cluster config when unset

    Registry:
        architecture: Architecture selected from manifest indexes
            (None = architecture of the running process)
        registry_insecure: Use plain HTTP for registries (local/dev only)
        http_timeout_s: HTTP request timeout in seconds
    """
    pull_secret_namespace: str = PULL_SECRET_NAMESPACE
    pull_secret_name: str = PULL_SECRET_NAME
    pull_secret_key: str = DOCKER_CONFIG_JSON_KEY
    secret_store: str = "kubernetes"
    secret_dir: Optional[str] = None
    kubeconfig: Optional[str] = None

    architecture: Optional[str] = None
    registry_insecure: bool = False
    http_timeout_s: float = 30.0

    def __post_init__(self):
        """Validate settings on construction."""
        if not _K8S_NAME_RE.match(self.pull_secret_namespace):
            raise ValueError(f"Invalid pull_secret_namespace: {self.pull_secret_namespace!r}")

        if not _K8S_NAME_RE.match(self.pull_secret_name):
            raise ValueError(f"Invalid pull_secret_name: {self.pull_secret_name!r}")

        if not self.pull_secret_key:
            raise ValueError("pull_secret_key is required")

        if self.secret_store not in SECRET_STORES:
            raise ValueError(
                f"Unknown secret_store: {self.secret_store}. "
                f"Supported values: {', '.join(SECRET_STORES)}"
            )

        if self.secret_store == "mounted" and not self.secret_dir:
            raise ValueError("secret_dir is required when secret_store is 'mounted'")

        if self.architecture is not None and not self.architecture:
            raise ValueError("architecture cannot be empty")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - DTK_PULL_SECRET_NAMESPACE (default: openshift-config)
        - DTK_PULL_SECRET_NAME (default: pull-secret)
        - DTK_PULL_SECRET_KEY (default: .dockerconfigjson)
        - DTK_SECRET_STORE (default: kubernetes)
        - DTK_SECRET_DIR (required for the mounted store)
        - KUBECONFIG (optional)
        - DTK_ARCH (optional)
        - DTK_REGISTRY_INSECURE (default: false)
        - DTK_HTTP_TIMEOUT (default: 30.0)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    return Settings(
        pull_secret_namespace=os.getenv("DTK_PULL_SECRET_NAMESPACE", PULL_SECRET_NAMESPACE),
        pull_secret_name=os.getenv("DTK_PULL_SECRET_NAME", PULL_SECRET_NAME),
        pull_secret_key=os.getenv("DTK_PULL_SECRET_KEY", DOCKER_CONFIG_JSON_KEY),
        secret_store=os.getenv("DTK_SECRET_STORE", "kubernetes").lower(),
        secret_dir=os.getenv("DTK_SECRET_DIR") or None,
        kubeconfig=os.getenv("KUBECONFIG") or None,
        architecture=os.getenv("DTK_ARCH") or None,
        registry_insecure=str_to_bool(os.getenv("DTK_REGISTRY_INSECURE", "false")),
        http_timeout_s=get_float("DTK_HTTP_TIMEOUT", 30.0),
    )

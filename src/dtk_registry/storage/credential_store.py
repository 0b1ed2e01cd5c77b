"""
Credential store interface and adapters.

The credential store hands out the raw pull-secret document. Decoding it and
picking the entry for a registry host is the credential resolver's job.
"""
from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from ..errors import CredentialStoreUnavailable

__all__ = [
    "CredentialStore",
    "KubernetesSecretStore",
    "MountedSecretStore",
    "DOCKER_CONFIG_JSON_KEY",
]

logger = logging.getLogger(__name__)

DOCKER_CONFIG_JSON_KEY = ".dockerconfigjson"


@runtime_checkable
class CredentialStore(Protocol):
    """Protocol for reading cluster-stored pull secrets."""

    def get_pull_secret(self, namespace: str, name: str) -> bytes:
        """
        Get the pull-secret document.

        Args:
            namespace: Namespace holding the secret
            name: Secret name

        Returns:
            Raw ``.dockerconfigjson`` document bytes

        Raises:
            CredentialStoreUnavailable: If the secret cannot be read or has
                no document under the expected key
        """
        ...


class KubernetesSecretStore:
    """
    Reads pull secrets through the Kubernetes API.

    Uses the kubeconfig file when one is given, the in-cluster service
    account otherwise.
    """

    def __init__(self, *, kubeconfig: Optional[str] = None,
                 key: str = DOCKER_CONFIG_JSON_KEY, core_api=None) -> None:
        """
        Initialize the store.

        Args:
            kubeconfig: Path to a kubeconfig file (None for in-cluster config)
            key: Secret data key holding the document
            core_api: Pre-built ``CoreV1Api`` (used by tests)
        """
        self._kubeconfig = kubeconfig
        self._key = key
        self._core = core_api

    def _core_api(self):
        if self._core is None:
            from kubernetes import client, config

            if self._kubeconfig:
                api_client = config.new_client_from_config(config_file=self._kubeconfig)
            else:
                config.load_incluster_config()
                api_client = client.ApiClient()
            self._core = client.CoreV1Api(api_client=api_client)
        return self._core

    def get_pull_secret(self, namespace: str, name: str) -> bytes:
        from kubernetes.client.exceptions import ApiException
        from kubernetes.config.config_exception import ConfigException
        from urllib3.exceptions import HTTPError

        try:
            secret = self._core_api().read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            raise CredentialStoreUnavailable(namespace, name, f"API error {e.status}: {e.reason}") from e
        except ConfigException as e:
            raise CredentialStoreUnavailable(namespace, name, f"no cluster configuration: {e}") from e
        except HTTPError as e:
            raise CredentialStoreUnavailable(namespace, name, f"API server unreachable: {e}") from e

        data = secret.data or {}
        encoded = data.get(self._key)
        if encoded is None:
            raise CredentialStoreUnavailable(namespace, name, f"secret has no {self._key} data")

        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CredentialStoreUnavailable(namespace, name, f"{self._key} is not valid base64") from e


class MountedSecretStore:
    """
    Reads pull secrets from a directory tree.

    Layout: ``<root>/<namespace>/<name>/<key>``, matching a secret volume
    mounted per namespace. Useful outside a cluster and for local runs.
    """

    def __init__(self, root: Path, *, key: str = DOCKER_CONFIG_JSON_KEY) -> None:
        self.root = Path(root)
        self._key = key

    def get_pull_secret(self, namespace: str, name: str) -> bytes:
        path = self.root / namespace / name / self._key
        logger.debug(f"Reading pull secret from {path}")
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise CredentialStoreUnavailable(namespace, name, f"{path} does not exist") from e
        except OSError as e:
            raise CredentialStoreUnavailable(namespace, name, f"failed to read {path}: {e}") from e

"""
Image resolution and layer metadata engine.

Resolves an image reference to its repository and ordered layer digests,
following multi-architecture indexes to the sub-manifest for the target
architecture, fetches layers, and reads driver-toolkit and release metadata
out of them.

The engine is stateless apart from its collaborators: credentials,
manifests and layers are fetched fresh on every call.
"""
from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from typing import Optional, Tuple

from .credentials import (
    PULL_SECRET_NAME,
    PULL_SECRET_NAMESPACE,
    Credential,
    resolve_credentials,
)
from .errors import ManifestDecodeError
from .layer import Layer
from .manifests import ImageIndex, ImageManifest, decode_manifest
from .reference import join_digest, registry_from_image, repository_from_image
from .release import (
    DriverToolkitEntry,
    extract_toolkit_release,
    release_image_machine_os_config,
    release_manifests,
)
from .storage.credential_store import CredentialStore
from .storage.transport import RegistryTransport

__all__ = ["Registry", "LayerDigests", "runtime_architecture"]

logger = logging.getLogger(__name__)

# platform.machine() spellings -> OCI platform architecture
_MACHINE_TO_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
}


def runtime_architecture() -> str:
    """OCI architecture name of the running process."""
    machine = platform.machine().lower()
    return _MACHINE_TO_ARCH.get(machine, machine)


@dataclass(frozen=True)
class LayerDigests:
    """
    Result of resolving an image to its layers.

    Attributes:
        repository: Repository reference, registry host included
        digests: Layer digests, base layer first
        credential: Credential to fetch the layers with (None = anonymous)
    """
    repository: str
    digests: Tuple[str, ...]
    credential: Optional[Credential]

    @property
    def last(self) -> str:
        """Digest of the most recently applied layer."""
        if not self.digests:
            raise ManifestDecodeError(self.repository, "manifest has no layers")
        return self.digests[-1]


class Registry:
    """
    Resolves images and reads metadata from their layers.

    Design Notes:

    - The target architecture is a constructor parameter, defaulting to the
      running process's, so index selection is deterministic in tests.
    - Credential store and transport are injected collaborators; fakes
      stand in for both in tests.
    """

    def __init__(self, transport: RegistryTransport, credential_store: CredentialStore, *,
                 architecture: Optional[str] = None,
                 pull_secret_namespace: str = PULL_SECRET_NAMESPACE,
                 pull_secret_name: str = PULL_SECRET_NAME):
        """
        Initialize the engine.

        Args:
            transport: Registry transport for manifests and layers
            credential_store: Store holding the cluster pull secret
            architecture: Architecture to select from manifest indexes
            pull_secret_namespace: Namespace of the pull secret
            pull_secret_name: Name of the pull secret
        """
        self.transport = transport
        self.credential_store = credential_store
        self.architecture = architecture or runtime_architecture()
        self.pull_secret_namespace = pull_secret_namespace
        self.pull_secret_name = pull_secret_name

    def get_layers_digests(self, image: str) -> LayerDigests:
        """
        Resolve an image to its repository and ordered layer digests.

        Args:
            image: Image reference with a tag or digest

        Returns:
            LayerDigests with the credential the layers should be fetched with

        Raises:
            InvalidReference: If the reference is malformed
            CredentialError: If the pull secret has no usable entry
            ManifestError: If the manifest cannot be decoded or has no
                entry for the target architecture
            OciError: If the registry fetch fails
        """
        host = registry_from_image(image)
        # Malformed references fail before any credential store I/O
        repository = repository_from_image(image)
        credential = resolve_credentials(
            self.credential_store, host,
            namespace=self.pull_secret_namespace,
            name=self.pull_secret_name,
        )

        options = None if credential.is_anonymous else credential
        manifest = self._resolve_manifest(image, repository, options)
        digests = tuple(manifest.layer_digests())

        logger.info(f"Resolved {image} to {len(digests)} layers in {repository}")
        return LayerDigests(repository=repository, digests=digests, credential=options)

    def get_layer_by_digest(self, repository: str, digest: str,
                            credential: Optional[Credential]) -> Layer:
        """Fetch the layer at ``repository@digest``."""
        return self.transport.get_layer(join_digest(repository, digest), credential)

    def last_layer(self, image: str) -> Layer:
        """
        Fetch the most recently applied layer of an image.

        Release payloads and driver-toolkit images append their metadata in
        the final layer, so this is the common entry point.
        """
        resolved = self.get_layers_digests(image)
        logger.debug(f"Last layer of {image} is {resolved.last}")
        return self.get_layer_by_digest(resolved.repository, resolved.last, resolved.credential)

    def extract_toolkit_release(self, layer: Layer) -> DriverToolkitEntry:
        return extract_toolkit_release(layer)

    def release_manifests(self, layer: Layer) -> str:
        return release_manifests(layer)

    def release_image_machine_os_config(self, layer: Layer) -> str:
        return release_image_machine_os_config(layer)

    def _resolve_manifest(self, image: str, repository: str,
                          credential: Optional[Credential]) -> ImageManifest:
        manifest = decode_manifest(self.transport.get_manifest(image, credential), image)

        if isinstance(manifest, ImageIndex):
            arch_digest = manifest.digest_for(self.architecture, image)
            arch_ref = join_digest(repository, arch_digest)
            logger.debug(f"Selected {self.architecture} manifest {arch_digest} from index of {image}")

            manifest = decode_manifest(self.transport.get_manifest(arch_ref, credential), arch_ref)
            if isinstance(manifest, ImageIndex):
                raise ManifestDecodeError(arch_ref, "nested manifest index")

        return manifest

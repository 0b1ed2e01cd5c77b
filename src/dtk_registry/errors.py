"""
Error taxonomy for image resolution and layer metadata extraction.

Every error is terminal to the call that raised it. Nothing here is retried:
failures are either data/format problems, where a retry cannot help, or
auth/availability problems owned by the credential store or registry
transport. Each error keeps the context needed to act on it (image, host,
architecture, archive path, field name) as attributes.
"""
from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """Base class for all resolution and extraction errors."""
    pass


class InvalidReference(RegistryError):
    """
    Malformed image reference.

    Raised when:
    - No registry host can be parsed from the reference
    - The reference has neither a ``@digest`` nor a ``:tag`` suffix
    """

    def __init__(self, image: str, reason: str):
        super().__init__(f"Invalid image reference {image!r}: {reason}")
        self.image = image
        self.reason = reason


# Credential resolution

class CredentialError(RegistryError):
    """Base class for pull-secret lookup failures."""
    pass


class CredentialStoreUnavailable(CredentialError):
    """The pull-secret document could not be read from the credential store."""

    def __init__(self, namespace: str, name: str, reason: str):
        super().__init__(f"Could not retrieve pull secret {namespace}/{name}: {reason}")
        self.namespace = namespace
        self.name = name
        self.reason = reason


class MalformedCredentials(CredentialError):
    """The pull-secret document is not a decodable auths table."""

    def __init__(self, reason: str):
        super().__init__(f"Failed to decode pull secret auths: {reason}")
        self.reason = reason


class NoCredentialForHost(CredentialError):
    """
    The pull secret has no entry for the registry host.

    Callers must treat this as fatal; there is no silent anonymous fallback.
    """

    def __init__(self, host: str):
        super().__init__(f"Cluster pull secret does not contain auth for registry {host}")
        self.host = host


# Manifest resolution

class ManifestError(RegistryError):
    """Base class for manifest resolution failures."""
    pass


class ManifestDecodeError(ManifestError):
    """The manifest could not be decoded into a known shape."""

    def __init__(self, image: str, reason: str):
        super().__init__(f"Failed to decode manifest of {image}: {reason}")
        self.image = image
        self.reason = reason


class ArchitectureNotFound(ManifestError):
    """A manifest index has no entry for the target architecture."""

    def __init__(self, image: str, architecture: str):
        super().__init__(f"Failed to find manifest for architecture {architecture} in {image}")
        self.image = image
        self.architecture = architecture


# Layer extraction

class LayerError(RegistryError):
    """Base class for layer archive failures."""
    pass


class LayerReadError(LayerError):
    """
    The layer could not be decompressed, read as tar, or the target entry
    could not be decoded as a JSON object.
    """

    def __init__(self, path: str, reason: str, digest: Optional[str] = None):
        where = f" in layer {digest}" if digest else ""
        super().__init__(f"Failed to read {path}{where}: {reason}")
        self.path = path
        self.reason = reason
        self.digest = digest


class FileNotFoundInLayer(LayerError):
    """The archive was read to the end without an entry named ``path``."""

    def __init__(self, path: str, digest: Optional[str] = None):
        where = f" layer {digest}" if digest else " the layer"
        super().__init__(f"File {path} not found in{where}")
        self.path = path
        self.digest = digest


# Metadata projection

class ProjectionError(RegistryError):
    """Base class for failures projecting fields out of an extracted file."""
    pass


class MissingField(ProjectionError):
    """An expected field is absent or not a string."""

    def __init__(self, field: str, path: str):
        super().__init__(f"Failed to get {field} from {path}")
        self.field = field
        self.path = path


class EntryNotFound(ProjectionError):
    """No ``spec.tags`` entry carries the requested tag name."""

    def __init__(self, tag: str, path: str):
        super().__init__(f"Failed to find {tag} in {path}")
        self.tag = tag
        self.path = path


class MalformedTagEntry(ProjectionError):
    """The tag entry exists but lacks the field being projected."""

    def __init__(self, tag: str, field: str, path: str):
        super().__init__(f"Invalid {tag} entry in {path}: missing {field}")
        self.tag = tag
        self.field = field
        self.path = path


__all__ = [
    "RegistryError",
    "InvalidReference",
    "CredentialError",
    "CredentialStoreUnavailable",
    "MalformedCredentials",
    "NoCredentialForHost",
    "ManifestError",
    "ManifestDecodeError",
    "ArchitectureNotFound",
    "LayerError",
    "LayerReadError",
    "FileNotFoundInLayer",
    "ProjectionError",
    "MissingField",
    "EntryNotFound",
    "MalformedTagEntry",
]

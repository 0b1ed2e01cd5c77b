"""
Image reference parsing.

Splits raw image references such as ``quay.io/openshift/release:4.14`` or
``registry.example.com:5000/org/dtk@sha256:...`` into the registry host
(the key credentials are looked up by), the repository, and the tag or
digest.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from .errors import InvalidReference

__all__ = [
    "ImageName",
    "registry_from_image",
    "repository_from_image",
    "split_reference",
    "join_digest",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageName:
    """
    Parsed components of an image reference.

    Attributes:
        host: Registry host, including any port (e.g. "localhost:5000")
        path: Repository path below the host (e.g. "openshift/release")
        ref: Tag or digest (e.g. "4.14", "sha256:abc...")
        original: Original reference string for error messages
    """
    host: str
    path: str
    ref: str
    original: str

    @property
    def is_digest(self) -> bool:
        return ":" in self.ref


def _host_of(candidate: str) -> str:
    try:
        parts = urlsplit(candidate)
        # Non-numeric ports are parse failures, not hosts
        parts.port
    except ValueError:
        return ""
    return parts.netloc.rpartition("@")[2]


def registry_from_image(image: str) -> str:
    """
    Derive the registry host from an image reference.

    The reference is first parsed as a URL. Bare ``host/repo:tag`` forms
    have no scheme and yield no host, so parsing is retried with a ``//``
    prefix.

    Args:
        image: Raw image reference, with or without a URL scheme

    Returns:
        Registry host (port preserved)

    Raises:
        InvalidReference: If neither attempt yields a host

    Examples:
        >>> registry_from_image("quay.io/openshift/release:4.14")
        'quay.io'

        >>> registry_from_image("https://localhost:5000/dtk@sha256:abc")
        'localhost:5000'
    """
    host = _host_of(image)
    if not host:
        host = _host_of("//" + image)
    if not host:
        raise InvalidReference(image, "failed to parse registry host")
    return host


def _strip_tag(name: str) -> str:
    # A tag colon only counts after the last path separator; earlier ones are ports
    slash = name.rfind("/")
    colon = name.rfind(":")
    if colon > slash:
        return name[:colon]
    return name


def repository_from_image(image: str) -> str:
    """
    Derive the repository name from an image reference.

    The digest form (``repo@sha256:...``) is split at ``@``; otherwise the
    tag form (``repo:tag``) is split at the tag colon. The prefix is the
    repository, still qualified with the registry host.

    Raises:
        InvalidReference: If the reference has neither a digest nor a tag
    """
    if "@" in image:
        repo = _strip_tag(image.split("@", 1)[0])
    else:
        repo = _strip_tag(image)
        if repo == image:
            repo = ""

    if not repo:
        raise InvalidReference(image, "does not contain hash or tag")
    return repo


def split_reference(image: str) -> ImageName:
    """
    Split a fully-qualified reference into host, repository path and ref.

    Used by transports that address the registry API directly. A digest
    takes precedence over a tag when both are present.

    Raises:
        InvalidReference: If the host, repository path or ref is missing
    """
    host = registry_from_image(image)
    repo = repository_from_image(image)

    if "@" in image:
        ref = image.split("@", 1)[1]
    else:
        ref = image[len(repo) + 1:]

    # Drop any scheme, then the host, leaving the repository path
    bare = repo.split("://", 1)[1] if "://" in repo else repo
    path = bare[len(host):].lstrip("/") if bare.startswith(host) else ""
    if not path:
        raise InvalidReference(image, "missing repository path")
    if not ref:
        raise InvalidReference(image, "empty tag or digest")

    return ImageName(host=host, path=path, ref=ref, original=image)


def join_digest(repository: str, digest: str) -> str:
    """Compose the ``repository@digest`` reference for a manifest or layer."""
    return f"{repository}@{digest}"

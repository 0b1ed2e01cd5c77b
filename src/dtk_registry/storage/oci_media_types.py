"""
OCI and Docker media types and constants.

Single source of truth for the manifest media types the resolver accepts.
"""
from __future__ import annotations

# Single-platform manifests
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"

# Multi-architecture manifests
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"

# Layer blobs
OCI_IMAGE_LAYER = "application/vnd.oci.image.layer.v1.tar+gzip"
DOCKER_IMAGE_LAYER = "application/vnd.docker.image.rootfs.diff.tar.gzip"

# Accept header order: indexes first so the registry never down-converts
ACCEPTED_MANIFEST_TYPES = [
    DOCKER_MANIFEST_LIST,
    OCI_IMAGE_INDEX,
    DOCKER_MANIFEST_V2,
    OCI_IMAGE_MANIFEST,
]

INDEX_MEDIA_TYPES = frozenset({DOCKER_MANIFEST_LIST, OCI_IMAGE_INDEX})

# Schema 1 manifests carry no layer digests in the v2 sense
DOCKER_MANIFEST_V1_TYPES = frozenset({
    "application/vnd.docker.distribution.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v1+prettyjws",
})


def is_index_media_type(media_type: str) -> bool:
    """True for Docker manifest lists and OCI image indexes."""
    return media_type in INDEX_MEDIA_TYPES or "manifest.list" in media_type


__all__ = [
    "OCI_IMAGE_MANIFEST",
    "DOCKER_MANIFEST_V2",
    "OCI_IMAGE_INDEX",
    "DOCKER_MANIFEST_LIST",
    "OCI_IMAGE_LAYER",
    "DOCKER_IMAGE_LAYER",
    "ACCEPTED_MANIFEST_TYPES",
    "INDEX_MEDIA_TYPES",
    "DOCKER_MANIFEST_V1_TYPES",
    "is_index_media_type",
]

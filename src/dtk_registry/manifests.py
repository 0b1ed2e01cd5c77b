"""
Manifest data model.

A manifest is either a single-platform image manifest (an ordered list of
layers) or a manifest index (per-platform sub-manifests). The shape is
decided once, at decode time, from the ``mediaType`` field.
"""
from __future__ import annotations

import json
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ArchitectureNotFound, ManifestDecodeError
from .storage.oci_media_types import is_index_media_type

__all__ = [
    "Platform",
    "Descriptor",
    "ImageManifest",
    "ImageIndex",
    "Manifest",
    "decode_manifest",
]


class Platform(BaseModel):
    """Index entry platform; entries without an architecture are never selected."""
    model_config = ConfigDict(extra="ignore")

    architecture: Optional[str] = None
    os: str = ""
    variant: Optional[str] = None


class Descriptor(BaseModel):
    """Content descriptor pointing at a blob or sub-manifest."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    media_type: Optional[str] = Field(default=None, alias="mediaType")
    digest: str
    size: Optional[int] = None
    platform: Optional[Platform] = None

    @field_validator("digest")
    @classmethod
    def validate_digest(cls, v: str) -> str:
        """Digests are ``algorithm:hex``."""
        algorithm, sep, hex_part = v.partition(":")
        if not sep or not algorithm or not hex_part:
            raise ValueError(f"Invalid digest format: {v}")
        return v

    @property
    def algorithm(self) -> str:
        return self.digest.split(":", 1)[0]

    @property
    def hex(self) -> str:
        return self.digest.split(":", 1)[1]


class ImageManifest(BaseModel):
    """Single-platform image manifest."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    media_type: str = Field(alias="mediaType")
    config: Optional[Descriptor] = None
    layers: List[Descriptor] = Field(default_factory=list)

    def layer_digests(self) -> List[str]:
        """Layer digests in application order (base layer first)."""
        return [f"{layer.algorithm}:{layer.hex}" for layer in self.layers]


class ImageIndex(BaseModel):
    """Multi-architecture manifest list or OCI image index."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    media_type: str = Field(alias="mediaType")
    manifests: List[Descriptor] = Field(default_factory=list)

    def digest_for(self, architecture: str, image: str = "") -> str:
        """
        Select the sub-manifest for an architecture.

        The first entry whose platform architecture matches wins.

        Raises:
            ArchitectureNotFound: If no entry matches
        """
        for entry in self.manifests:
            if entry.platform is not None and entry.platform.architecture == architecture:
                return f"{entry.algorithm}:{entry.hex}"
        raise ArchitectureNotFound(image, architecture)


Manifest = Union[ImageManifest, ImageIndex]


def decode_manifest(payload: bytes, image: str = "") -> Manifest:
    """
    Decode raw manifest bytes into an image manifest or an index.

    Args:
        payload: Raw manifest bytes from the registry
        image: Reference the manifest was fetched for (error context)

    Raises:
        ManifestDecodeError: If the payload is not JSON, lacks ``mediaType``,
            or does not match the shape its media type announces
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestDecodeError(image, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestDecodeError(image, "manifest is not a JSON object")

    media_type = data.get("mediaType")
    if not isinstance(media_type, str) or not media_type:
        raise ManifestDecodeError(image, "mediaType is missing from the manifest")

    model = ImageIndex if is_index_media_type(media_type) else ImageManifest
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ManifestDecodeError(image, str(e)) from e

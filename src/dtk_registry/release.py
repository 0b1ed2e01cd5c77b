"""
Metadata projections over files embedded in image layers.

Two file formats are read:

- ``etc/driver-toolkit-release.json`` in driver-toolkit images, holding the
  kernel, real-time kernel and RHEL versions the toolkit was built for.
- ``release-manifests/image-references`` in release payload images, an
  ImageStream listing every component image of the release under
  ``spec.tags``.

Each projection either returns a fully populated result or raises; there is
no partial result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from .errors import EntryNotFound, MalformedTagEntry, MissingField
from .layer import Layer, extract_json_file

__all__ = [
    "DriverToolkitEntry",
    "DriverToolkitRelease",
    "ImageReferences",
    "ImageTag",
    "TagFrom",
    "extract_toolkit_release",
    "release_manifests",
    "release_image_machine_os_config",
    "DRIVER_TOOLKIT_RELEASE_PATH",
    "IMAGE_REFERENCES_PATH",
    "DRIVER_TOOLKIT_TAG",
    "MACHINE_OS_CONTENT_TAG",
    "BUILD_VERSIONS_ANNOTATION",
]

logger = logging.getLogger(__name__)

DRIVER_TOOLKIT_RELEASE_PATH = "etc/driver-toolkit-release.json"
IMAGE_REFERENCES_PATH = "release-manifests/image-references"

DRIVER_TOOLKIT_TAG = "driver-toolkit"
MACHINE_OS_CONTENT_TAG = "machine-os-content"
BUILD_VERSIONS_ANNOTATION = "io.openshift.build.versions"


@dataclass(frozen=True)
class DriverToolkitEntry:
    """
    Versions a driver-toolkit image was built for.

    ``image_url`` is not part of the release file; callers fill it in from
    the release payload (see ``release_manifests``).
    """
    image_url: str
    kernel_full_version: str
    rt_kernel_full_version: str
    os_version: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "imageURL": self.image_url,
            "kernelFullVersion": self.kernel_full_version,
            "RTKernelFullVersion": self.rt_kernel_full_version,
            "OSVersion": self.os_version,
        }


class DriverToolkitRelease(BaseModel):
    """``etc/driver-toolkit-release.json``; every version must be a string."""
    model_config = ConfigDict(extra="ignore")

    KERNEL_VERSION: StrictStr
    RT_KERNEL_VERSION: StrictStr
    RHEL_VERSION: StrictStr


class TagFrom(BaseModel):
    """Image a tag points at (``{"kind": "DockerImage", "name": ...}``)."""
    model_config = ConfigDict(extra="ignore")

    kind: Optional[StrictStr] = None
    name: Optional[StrictStr] = None

    @field_validator("kind", "name", mode="before")
    @classmethod
    def drop_non_strings(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None


class ImageTag(BaseModel):
    """
    One ``spec.tags`` entry of the release ImageStream.

    Only the entry a projection looks up is checked for completeness, so a
    malformed ``from`` or ``annotations`` decodes as None instead of failing
    the whole document.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: StrictStr
    from_: Optional[TagFrom] = Field(default=None, alias="from")
    annotations: Optional[Dict[str, Any]] = None

    @field_validator("from_", "annotations", mode="before")
    @classmethod
    def drop_non_objects(cls, v: Any) -> Optional[Dict[str, Any]]:
        return v if isinstance(v, dict) else None


class _ImageStreamSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tags: List[ImageTag]


class ImageReferences(BaseModel):
    """``release-manifests/image-references``."""
    model_config = ConfigDict(extra="ignore")

    spec: _ImageStreamSpec

    def find_tag(self, name: str) -> ImageTag:
        """
        First tag entry with the given name.

        Raises:
            EntryNotFound: If no tag has that name
        """
        for tag in self.spec.tags:
            if tag.name == name:
                return tag
        raise EntryNotFound(name, IMAGE_REFERENCES_PATH)


def _validate(model, obj: Dict[str, Any], path: str):
    """Strict decode; the first failing field is reported by its dotted path."""
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise MissingField(field, path) from e


def extract_toolkit_release(layer: Layer) -> DriverToolkitEntry:
    """
    Read the driver-toolkit release file from a layer.

    Raises:
        FileNotFoundInLayer: If the layer has no release file
        LayerReadError: If the layer or file cannot be read
        MissingField: If a version field is absent or not a string
    """
    obj = extract_json_file(layer, DRIVER_TOOLKIT_RELEASE_PATH)
    release = _validate(DriverToolkitRelease, obj, DRIVER_TOOLKIT_RELEASE_PATH)

    logger.debug(f"Driver toolkit built for kernel {release.KERNEL_VERSION}, RHEL {release.RHEL_VERSION}")
    return DriverToolkitEntry(
        image_url="",
        kernel_full_version=release.KERNEL_VERSION,
        rt_kernel_full_version=release.RT_KERNEL_VERSION,
        os_version=release.RHEL_VERSION,
    )


def _image_references(layer: Layer) -> ImageReferences:
    obj = extract_json_file(layer, IMAGE_REFERENCES_PATH)
    return _validate(ImageReferences, obj, IMAGE_REFERENCES_PATH)


def release_manifests(layer: Layer) -> str:
    """
    Driver-toolkit image URL listed in a release payload layer.

    Raises:
        EntryNotFound: If the release has no driver-toolkit tag
        MalformedTagEntry: If the tag lacks ``from`` or ``from.name``
        MissingField: If ``spec.tags`` is missing or malformed
    """
    tag = _image_references(layer).find_tag(DRIVER_TOOLKIT_TAG)

    if tag.from_ is None:
        raise MalformedTagEntry(DRIVER_TOOLKIT_TAG, "from", IMAGE_REFERENCES_PATH)
    if tag.from_.name is None:
        raise MalformedTagEntry(DRIVER_TOOLKIT_TAG, "from.name", IMAGE_REFERENCES_PATH)
    return tag.from_.name


def release_image_machine_os_config(layer: Layer) -> str:
    """
    Build versions annotation of the machine-os-content tag.

    Raises:
        EntryNotFound: If the release has no machine-os-content tag
        MalformedTagEntry: If the tag lacks ``annotations`` or the
            versions annotation is not a string
        MissingField: If ``spec.tags`` is missing or malformed
    """
    tag = _image_references(layer).find_tag(MACHINE_OS_CONTENT_TAG)

    if tag.annotations is None:
        raise MalformedTagEntry(MACHINE_OS_CONTENT_TAG, "annotations", IMAGE_REFERENCES_PATH)

    versions = tag.annotations.get(BUILD_VERSIONS_ANNOTATION)
    if not isinstance(versions, str):
        raise MalformedTagEntry(
            MACHINE_OS_CONTENT_TAG,
            f"annotations.{BUILD_VERSIONS_ANNOTATION}",
            IMAGE_REFERENCES_PATH,
        )
    return versions

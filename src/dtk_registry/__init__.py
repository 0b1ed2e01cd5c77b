"""
dtk-registry: resolve container images to their layers and read
driver-toolkit and release metadata embedded in them.
"""
from .credentials import Credential
from .errors import RegistryError
from .layer import BlobLayer, Layer, extract_json_file
from .registry import LayerDigests, Registry
from .release import DriverToolkitEntry

__all__ = [
    "Credential",
    "RegistryError",
    "BlobLayer",
    "Layer",
    "extract_json_file",
    "LayerDigests",
    "Registry",
    "DriverToolkitEntry",
]

__version__ = "0.1.0"

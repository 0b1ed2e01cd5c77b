"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the resolution engine,
centralizing command orchestration while keeping CLI commands thin and
testable.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from ..registry import LayerDigests, Registry
from ..release import DriverToolkitEntry


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes output policy to avoid scattered configuration.
    """
    json_output: bool = False     # Print JSON instead of human text


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. Exceptions bubble up unchanged for the central
    exit-code mapping in ``run_and_exit``.
    """

    def __init__(self, config: OpsConfig, registry: Registry):
        """
        Initialize Operations facade.

        Args:
            config: Output policy for the calling command
            registry: Resolution engine (built by ``CLIContext``)
        """
        self.cfg = config
        self.registry = registry

    def digests(self, image: str) -> LayerDigests:
        """Resolve an image to its repository and ordered layer digests."""
        return self.registry.get_layers_digests(image)

    def toolkit_release(self, image: str) -> DriverToolkitEntry:
        """
        Read kernel and OS versions from a driver-toolkit image.

        The entry's image URL is the image it was read from.
        """
        layer = self.registry.last_layer(image)
        entry = self.registry.extract_toolkit_release(layer)
        return dataclasses.replace(entry, image_url=image)

    def toolkit_image(self, release_image: str) -> str:
        """Driver-toolkit image URL listed in a release payload image."""
        layer = self.registry.last_layer(release_image)
        return self.registry.release_manifests(layer)

    def machine_os(self, release_image: str) -> str:
        """machine-os-content build versions of a release payload image."""
        layer = self.registry.last_layer(release_image)
        return self.registry.release_image_machine_os_config(layer)

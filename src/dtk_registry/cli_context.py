"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
resolution engine, avoiding global state and enabling dependency injection.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional

from .registry import Registry
from .settings import Settings, create_settings_from_env
from .storage.registry_factory import make_credential_store, make_transport


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Holds the settings and the engine for one CLI command execution.
    """
    settings: Settings
    _registry: Optional[Registry] = None

    @classmethod
    def from_env(cls, *, architecture: Optional[str] = None) -> CLIContext:
        """
        Create CLI context from environment variables.

        Args:
            architecture: Overrides DTK_ARCH when given
        """
        settings = create_settings_from_env()
        if architecture:
            settings = dataclasses.replace(settings, architecture=architecture)
        return cls(settings=settings)

    @property
    def registry(self) -> Registry:
        """
        Get or create the engine (lazy initialization).

        Nothing touches the cluster or the network until a command needs it.
        """
        if self._registry is None:
            self._registry = Registry(
                make_transport(self.settings),
                make_credential_store(self.settings),
                architecture=self.settings.architecture,
                pull_secret_namespace=self.settings.pull_secret_namespace,
                pull_secret_name=self.settings.pull_secret_name,
            )
        return self._registry

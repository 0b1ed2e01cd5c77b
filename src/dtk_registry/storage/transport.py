"""
Registry transport protocol definition.

The transport owns the registry wire protocol: authentication handshake,
manifest fetch and blob transport. The engine only ever hands it a
fully-qualified reference and the credential resolved for the registry host.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..credentials import Credential
    from ..layer import Layer


@runtime_checkable
class RegistryTransport(Protocol):
    """
    Reference-addressed registry reads.

    References are fully qualified (``host/repo:tag`` or
    ``host/repo@sha256:...``). A ``None`` credential means anonymous access.
    """

    def get_manifest(self, reference: str, credential: Optional[Credential]) -> bytes:
        """
        GET manifest content.

        Args:
            reference: Fully-qualified tag or digest reference
            credential: Credential for the registry host, or None

        Returns:
            Raw manifest bytes (image manifest or index)

        Raises:
            OciNotFound: If the manifest doesn't exist
            OciAuthError: If authentication fails
            OciError: For other registry or network errors
        """
        ...

    def get_layer(self, reference: str, credential: Optional[Credential]) -> Layer:
        """
        Get a layer by ``repository@digest`` reference.

        Args:
            reference: Fully-qualified digest reference
            credential: Credential for the registry host, or None

        Returns:
            Layer whose ``compressed()`` streams the blob

        Raises:
            OciNotFound: If the blob doesn't exist
            OciAuthError: If authentication fails
            OciError: For other registry or network errors
        """
        ...


__all__ = ["RegistryTransport"]

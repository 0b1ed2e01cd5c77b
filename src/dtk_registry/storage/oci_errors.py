"""
Registry transport error classes.

Errors raised by a registry transport while fetching manifests and layer
blobs. HTTP status codes and client exceptions are mapped onto this
hierarchy so the engine sees one error interface regardless of the
transport implementation. The engine never retries these.
"""
from __future__ import annotations


class OciError(Exception):
    """
    Base class for all registry transport errors.

    Network failures and unexpected status codes surface as this class.
    """
    pass


class OciAuthError(OciError):
    """
    Authentication or authorization error.

    Raised when:
    - HTTP 401 Unauthorized (invalid or missing credentials)
    - HTTP 403 Forbidden (insufficient permissions)
    - Token exchange with the registry's auth realm fails
    """
    pass


class OciNotFound(OciError):
    """
    Resource not found in registry.

    Raised when:
    - HTTP 404 Not Found (manifest, blob, or repository doesn't exist)
    """
    pass


class OciUnsupportedMediaType(OciError):
    """
    Manifest media type not accepted by the client.

    Raised when the registry answers with a Docker schema 1 manifest, which
    has no v2 layer list.
    """
    pass


class OciRateLimited(OciError):
    """
    Rate limit exceeded.

    Raised when:
    - HTTP 429 Too Many Requests
    """
    pass


__all__ = [
    "OciError",
    "OciAuthError",
    "OciNotFound",
    "OciUnsupportedMediaType",
    "OciRateLimited",
]

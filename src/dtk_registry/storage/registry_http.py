"""
Registry HTTP transport for the OCI Distribution API.

Fetches manifests and streams layer blobs over HTTP with the Docker Registry
v2 auth flow. Pull-secret tokens are base64 ``user:pass`` strings, so they
are sent as Basic credentials directly or exchanged for a Bearer token at
the realm the registry challenges with.
"""
from __future__ import annotations

import io
import logging
import re
from typing import Dict, Iterator, Optional

import httpx

from ..credentials import Credential
from ..reference import ImageName, split_reference
from .oci_errors import (
    OciAuthError,
    OciError,
    OciNotFound,
    OciRateLimited,
    OciUnsupportedMediaType,
)
from .oci_media_types import ACCEPTED_MANIFEST_TYPES, DOCKER_MANIFEST_V1_TYPES

__all__ = ["HttpRegistryTransport", "HttpLayer"]

logger = logging.getLogger(__name__)

USER_AGENT = "dtk-registry/0.1.0"


def _raise_for_status(response: httpx.Response, what: str) -> None:
    """Map HTTP error statuses onto the transport error taxonomy."""
    status = response.status_code
    if status < 400:
        return
    if status == 404:
        raise OciNotFound(f"Not found: {what}")
    if status in (401, 403):
        raise OciAuthError(f"Authentication failed for {what} (HTTP {status})")
    if status == 429:
        raise OciRateLimited(f"Rate limited fetching {what}")
    raise OciError(f"Registry error {status} fetching {what}")


class _ResponseStream(io.RawIOBase):
    """Read-only file object over a streaming response; closing it closes the response."""

    def __init__(self, response: httpx.Response, what: str):
        self._response = response
        # Bodies already loaded by the transport cannot be iterated again
        if response.is_stream_consumed:
            self._chunks: Iterator[bytes] = iter([response.content])
        else:
            self._chunks = response.iter_raw()
        self._pending = b""
        self._what = what

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as e:
                raise OciError(f"Network error streaming {self._what}: {e}") from e
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


class HttpLayer:
    """
    Layer blob served by a registry.

    Nothing is downloaded until ``compressed()`` is called, and every call
    starts a new download.
    """

    def __init__(self, transport: HttpRegistryTransport, name: ImageName,
                 credential: Optional[Credential]):
        self._transport = transport
        self._name = name
        self._credential = credential

    @property
    def repository(self) -> str:
        return f"{self._name.host}/{self._name.path}"

    @property
    def digest(self) -> str:
        return self._name.ref

    def compressed(self) -> io.RawIOBase:
        return self._transport.open_blob(self._name, self._credential)

    def __repr__(self) -> str:
        return f"HttpLayer({self.repository}@{self.digest})"


class HttpRegistryTransport:
    """
    HTTP client for OCI Distribution API reads.

    Stateless between calls: no token or manifest cache is kept, so rotated
    credentials and moved tags are always seen.
    """

    def __init__(self, *, insecure: bool = False, timeout_s: float = 30.0,
                 client: Optional[httpx.Client] = None):
        """
        Initialize registry HTTP transport.

        Args:
            insecure: Use plain HTTP and skip TLS verification (dev registries)
            timeout_s: Per-request read/write timeout
            client: Pre-built client (tests inject ``httpx.MockTransport`` here)
        """
        self.insecure = insecure
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(connect=5.0, read=timeout_s, write=timeout_s, pool=5.0),
            follow_redirects=True,
            verify=not insecure,
            headers={"User-Agent": USER_AGENT},
        )

    def _url(self, host: str, path: str) -> str:
        scheme = "http" if self.insecure else "https"
        return f"{scheme}://{host}{path}"

    def get_manifest(self, reference: str, credential: Optional[Credential]) -> bytes:
        name = split_reference(reference)
        url = self._url(name.host, f"/v2/{name.path}/manifests/{name.ref}")
        headers = {"Accept": ", ".join(ACCEPTED_MANIFEST_TYPES)}

        logger.debug(f"Fetching manifest {reference}")
        response = self._request("GET", url, credential, headers=headers, what=reference)
        try:
            _raise_for_status(response, reference)
            content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
            if content_type in DOCKER_MANIFEST_V1_TYPES:
                raise OciUnsupportedMediaType(f"Unsupported manifest type {content_type} for {reference}")
            return response.read()
        finally:
            response.close()

    def get_layer(self, reference: str, credential: Optional[Credential]) -> HttpLayer:
        name = split_reference(reference)
        if not name.is_digest:
            raise OciError(f"Layers are addressed by digest, got {reference}")
        return HttpLayer(self, name, credential)

    def open_blob(self, name: ImageName, credential: Optional[Credential]) -> _ResponseStream:
        """Start streaming a blob; the caller closes the returned stream."""
        what = f"{name.host}/{name.path}@{name.ref}"
        url = self._url(name.host, f"/v2/{name.path}/blobs/{name.ref}")

        logger.debug(f"Streaming blob {what}")
        response = self._request("GET", url, credential, what=what)
        try:
            _raise_for_status(response, what)
        except OciError:
            response.close()
            raise
        return _ResponseStream(response, what)

    def _request(self, method: str, url: str, credential: Optional[Credential], *,
                 headers: Optional[Dict[str, str]] = None, what: str) -> httpx.Response:
        """
        Send a streaming request, answering one auth challenge if needed.

        Handles 401 responses by:
        1. Parsing the WWW-Authenticate challenge
        2. Exchanging the credential for a Bearer token at the realm, or
           sending it as Basic auth when challenged for Basic
        3. Retrying the original request once with the Authorization header
        """
        request_headers = dict(headers or {})
        try:
            response = self.client.send(
                self.client.build_request(method, url, headers=request_headers), stream=True
            )
            if response.status_code != 401:
                return response

            challenge = response.headers.get("WWW-Authenticate", "")
            response.close()

            authorization = self._authorize(challenge, credential, what)
            if authorization is None:
                raise OciAuthError(f"Authentication required for {what}")

            request_headers["Authorization"] = authorization
            return self.client.send(
                self.client.build_request(method, url, headers=request_headers), stream=True
            )
        except httpx.RequestError as e:
            raise OciError(f"Network error fetching {what}: {e}") from e

    def _authorize(self, challenge: str, credential: Optional[Credential], what: str) -> Optional[str]:
        scheme, _, params_str = challenge.partition(" ")
        scheme = scheme.lower()

        if scheme == "basic":
            if credential is None or credential.is_anonymous:
                return None
            return f"Basic {credential.auth}"

        if scheme != "bearer":
            return None

        # Format: Bearer realm="...",service="...",scope="..."
        params = dict(re.findall(r'(\w+)="([^"]*)"', params_str))
        realm = params.get("realm")
        if not realm:
            return None

        query = {key: params[key] for key in ("service", "scope") if params.get(key)}
        token_headers = {}
        if credential is not None and not credential.is_anonymous:
            token_headers["Authorization"] = f"Basic {credential.auth}"

        logger.debug(f"Requesting bearer token from {realm} for {what}")
        token_response = self.client.get(realm, params=query, headers=token_headers)
        if token_response.status_code in (401, 403):
            raise OciAuthError(f"Token exchange rejected by {realm} for {what}")
        _raise_for_status(token_response, f"token for {what}")

        try:
            token_data = token_response.json()
        except ValueError as e:
            raise OciAuthError(f"Invalid token response from {realm}: {e}") from e

        token = token_data.get("token") or token_data.get("access_token")
        if not token:
            raise OciAuthError(f"Token response from {realm} has no token")
        return f"Bearer {token}"

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

"""
Layer access and streaming JSON extraction from layer archives.

A layer is an immutable gzip-compressed tar archive addressed by repository
and digest. Extraction scans the archive entries in stream order and stops
at the first entry whose name matches, so the rest of the layer is never
downloaded or decompressed.
"""
from __future__ import annotations

import io
import json
import logging
import tarfile
import zlib
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, Protocol, runtime_checkable

from .errors import FileNotFoundInLayer, LayerReadError

__all__ = ["Layer", "BlobLayer", "extract_json_file"]

logger = logging.getLogger(__name__)

# Errors that mean the bytes themselves are bad; never worth retrying
_ARCHIVE_ERRORS = (tarfile.TarError, zlib.error, EOFError, OSError)


@runtime_checkable
class Layer(Protocol):
    """
    A compressed layer addressed by ``repository@digest``.

    ``compressed()`` opens a new stream on every call. The caller owns the
    stream and must close it.
    """
    repository: str
    digest: str

    def compressed(self) -> BinaryIO:
        ...


@dataclass(frozen=True)
class BlobLayer:
    """Layer whose compressed bytes are already in memory."""
    repository: str
    digest: str
    data: bytes = field(repr=False)

    def compressed(self) -> BinaryIO:
        return io.BytesIO(self.data)


def extract_json_file(layer: Layer, path: str) -> Dict[str, Any]:
    """
    Find ``path`` in a layer archive and decode it as a JSON object.

    The entry name must match exactly (archive-root-relative, no leading
    ``./``). The stream and the tar reader are closed on every exit path.

    Args:
        layer: Layer to scan
        path: Archive entry name to look for

    Returns:
        Decoded JSON object

    Raises:
        FileNotFoundInLayer: If no entry is named ``path``
        LayerReadError: On decompression, tar format or JSON decode errors
    """
    digest = getattr(layer, "digest", None)
    logger.debug(f"Scanning layer {digest} for {path}")

    try:
        with layer.compressed() as stream, tarfile.open(fileobj=stream, mode="r|gz") as archive:
            for member in archive:
                if member.name != path:
                    continue

                entry = archive.extractfile(member)
                if entry is None:
                    raise LayerReadError(path, "entry is not a regular file", digest)
                content = entry.read()
                return _decode_object(content, path, digest)
    except _ARCHIVE_ERRORS as e:
        raise LayerReadError(path, f"{type(e).__name__}: {e}", digest) from e

    raise FileNotFoundInLayer(path, digest)


def _decode_object(content: bytes, path: str, digest: str | None) -> Dict[str, Any]:
    try:
        obj = json.loads(content.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LayerReadError(path, f"invalid JSON: {e}", digest) from e

    if not isinstance(obj, dict):
        raise LayerReadError(path, f"expected a JSON object, got {type(obj).__name__}", digest)

    logger.debug(f"Decoded {path} ({len(content)} bytes)")
    return obj

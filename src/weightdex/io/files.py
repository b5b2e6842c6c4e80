"""Content identity hashing for files and byte streams."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from blake3 import blake3

from weightdex.constants.cache import FILE_HASH_CHUNK_SIZE
from weightdex.exceptions import HashError
from weightdex.types import ContentIdentity


def compute_content_identity(
    stream: BinaryIO,
    *,
    chunk_size: int = FILE_HASH_CHUNK_SIZE,
    path: Path | None = None,
) -> ContentIdentity:
    """Return the BLAKE3 hex digest of everything readable from *stream*.

    The stream is consumed in ``chunk_size`` reads so arbitrarily large files
    never sit in memory at once. A digest is only returned after the stream is
    exhausted; any read failure raises ``HashError`` instead.
    """
    digest = blake3()
    try:
        for chunk in iter(lambda: stream.read(chunk_size), b""):
            digest.update(chunk)
    except OSError as exc:
        where = f" {path}" if path is not None else ""
        raise HashError(f"Failed to read{where} for hashing: {exc}", path=path) from exc
    return digest.hexdigest()


def file_content_identity(path: Path, *, chunk_size: int = FILE_HASH_CHUNK_SIZE) -> ContentIdentity:
    """Return the content identity of the file at *path*."""
    try:
        handle = path.open("rb")
    except OSError as exc:
        raise HashError(f"Failed to open {path} for hashing: {exc}", path=path) from exc
    with handle:
        return compute_content_identity(handle, chunk_size=chunk_size, path=path)

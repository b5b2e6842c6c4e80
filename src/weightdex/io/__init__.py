"""Shared file I/O helpers."""

from .files import compute_content_identity, file_content_identity
from .json_io import load_json_file, write_json_atomic
from .reader import ByteReader

__all__ = [
    "ByteReader",
    "compute_content_identity",
    "file_content_identity",
    "load_json_file",
    "write_json_atomic",
]

"""Typed cache payload structures."""

from __future__ import annotations

from typing import TypedDict


class CacheFileEntry(TypedDict):
    """Last-seen stat signature for a single file."""

    size_bytes: int
    modified_at_epoch: float


class CachePayload(TypedDict):
    """Top-level cache payload persisted to disk."""

    version: int
    files: dict[str, CacheFileEntry]

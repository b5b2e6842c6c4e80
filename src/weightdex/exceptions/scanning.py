"""Exceptions raised while enumerating, hashing, caching, and decoding files."""

from __future__ import annotations

from pathlib import Path

from weightdex.exceptions.base import WeightdexError


class EnumerationError(WeightdexError, OSError):
    """Raised when a directory cannot be listed during a walk."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"Cannot list directory {path}: {message}")
        self.path = path


class HashError(WeightdexError, OSError):
    """Raised when a file cannot be fully read for hashing."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class CacheCorruptionError(WeightdexError, ValueError):
    """Raised when a persisted cache document is unreadable or has the wrong version."""


class TruncatedDataError(WeightdexError, ValueError):
    """Raised when a binary read runs past the end of its buffer."""

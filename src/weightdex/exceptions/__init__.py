"""Shared exception hierarchy for Weightdex."""

from __future__ import annotations

from .base import WeightdexError
from .config import ConfigError
from .scanning import CacheCorruptionError, EnumerationError, HashError, TruncatedDataError

__all__ = [
    "CacheCorruptionError",
    "ConfigError",
    "EnumerationError",
    "HashError",
    "TruncatedDataError",
    "WeightdexError",
]

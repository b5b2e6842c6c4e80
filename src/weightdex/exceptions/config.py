"""Configuration-related exceptions."""

from __future__ import annotations

from weightdex.exceptions.base import WeightdexError


class ConfigError(WeightdexError, ValueError):
    """Raised when scanner configuration is invalid."""

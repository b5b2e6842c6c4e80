"""Base exception type for Weightdex."""

from __future__ import annotations


class WeightdexError(Exception):
    """Base class for all Weightdex errors."""

"""Configuration loading and validation for Weightdex scans."""

from __future__ import annotations

from weightdex.config.loader import load_config
from weightdex.config.model import WeightdexConfig

__all__ = ["WeightdexConfig", "load_config"]

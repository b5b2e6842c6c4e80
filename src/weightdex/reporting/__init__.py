"""Reporting package for Weightdex outputs."""

from __future__ import annotations

from .stdout import StdoutReporter

__all__ = ["StdoutReporter"]

"""Shared constants for Weightdex."""

"""Command-line interface for Weightdex."""

"""Configuration defaults and filenames."""

from __future__ import annotations

CONFIG_FILENAME: str = "weightdex.yaml"

CONFIG_ALLOWED_KEYS: frozenset[str] = frozenset(
    {
        "roots",
        "model_extensions",
        "preview_extensions",
        "mode",
        "concurrency",
        "checkpoint_interval",
        "cache_path",
    }
)

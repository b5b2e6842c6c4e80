"""Config data model for Weightdex scans."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from weightdex.constants.discovery import DEFAULT_MODEL_EXTENSIONS, DEFAULT_PREVIEW_EXTENSIONS
from weightdex.constants.scanning import (
    DEFAULT_CHECKPOINT_INTERVAL,
    DEFAULT_CONCURRENCY,
    SCAN_MODE_INCREMENTAL,
)
from weightdex.types import ScanMode


@dataclass(frozen=True)
class WeightdexConfig:
    """Resolved scanner config."""

    roots: tuple[Path, ...] = ()
    model_extensions: tuple[str, ...] = DEFAULT_MODEL_EXTENSIONS
    preview_extensions: tuple[str, ...] = DEFAULT_PREVIEW_EXTENSIONS
    mode: ScanMode = SCAN_MODE_INCREMENTAL
    concurrency: int = DEFAULT_CONCURRENCY
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL
    cache_path: Path | None = None

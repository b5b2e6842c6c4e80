"""Config loading and normalization for Weightdex scans."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any

import yaml

from weightdex.config.model import WeightdexConfig
from weightdex.constants.config import CONFIG_ALLOWED_KEYS, CONFIG_FILENAME
from weightdex.constants.discovery import DEFAULT_MODEL_EXTENSIONS, DEFAULT_PREVIEW_EXTENSIONS
from weightdex.constants.scanning import (
    DEFAULT_CHECKPOINT_INTERVAL,
    DEFAULT_CONCURRENCY,
    SCAN_MODE_INCREMENTAL,
    VALID_SCAN_MODES,
)
from weightdex.exceptions import ConfigError
from weightdex.scanner.discovery import normalize_extensions


def load_config(base_dir: Path, config_path: Path | None = None) -> WeightdexConfig:
    """Load and validate scanner config from ``weightdex.yaml`` or an explicit path.

    Relative ``roots`` and ``cache_path`` entries resolve against the directory
    holding the config file.
    """
    base_dir = base_dir.resolve()
    path = config_path.resolve() if config_path else (base_dir / CONFIG_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return WeightdexConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config file at {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")

    for key in sorted(str(key) for key in raw):
        if key not in CONFIG_ALLOWED_KEYS:
            raise ConfigError(f"Unknown config key '{key}'{_suggest_key(key)}")

    anchor = path.parent

    mode = raw.get("mode", SCAN_MODE_INCREMENTAL)
    if not isinstance(mode, str) or mode not in VALID_SCAN_MODES:
        raise ConfigError(f"mode must be one of {sorted(VALID_SCAN_MODES)}, got {mode!r}")

    cache_path_raw = raw.get("cache_path")
    if cache_path_raw is not None and (not isinstance(cache_path_raw, str) or not cache_path_raw.strip()):
        raise ConfigError("cache_path must be a non-empty string")

    model_extensions = _ensure_extensions(raw.get("model_extensions", DEFAULT_MODEL_EXTENSIONS), "model_extensions")
    preview_extensions = _ensure_extensions(
        raw.get("preview_extensions", DEFAULT_PREVIEW_EXTENSIONS), "preview_extensions"
    )

    return WeightdexConfig(
        roots=tuple(_resolve(anchor, root) for root in _ensure_string_list(raw.get("roots", []), "roots")),
        model_extensions=model_extensions,
        preview_extensions=preview_extensions,
        mode=mode,  # type: ignore[arg-type]
        concurrency=_ensure_positive_int(raw.get("concurrency", DEFAULT_CONCURRENCY), "concurrency"),
        checkpoint_interval=_ensure_positive_int(
            raw.get("checkpoint_interval", DEFAULT_CHECKPOINT_INTERVAL), "checkpoint_interval"
        ),
        cache_path=_resolve(anchor, cache_path_raw) if cache_path_raw is not None else None,
    )


def _ensure_string_list(value: Any, key_name: str) -> list[str]:
    """Coerce a value to a list of strings, raising ConfigError on type mismatch."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key_name} must be a list of strings")
    return list(value)


def _ensure_extensions(value: Any, key_name: str) -> tuple[str, ...]:
    extensions = normalize_extensions(_ensure_string_list(value, key_name))
    if not extensions:
        raise ConfigError(f"{key_name} must list at least one extension")
    return tuple(sorted(extensions))


def _ensure_positive_int(value: Any, key_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{key_name} must be a positive integer")
    return value


def _resolve(anchor: Path, value: str) -> Path:
    candidate = Path(value).expanduser()
    return candidate if candidate.is_absolute() else (anchor / candidate)


def _suggest_key(unknown: str) -> str:
    """Return a ' (did you mean ...)' hint for a close key match, or empty string."""
    matches = difflib.get_close_matches(unknown, sorted(CONFIG_ALLOWED_KEYS), n=1, cutoff=0.6)
    if matches:
        return f" (did you mean `{matches[0]}`?)"
    return ""

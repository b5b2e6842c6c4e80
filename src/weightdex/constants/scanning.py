"""Constants for scan orchestration."""

from __future__ import annotations

from typing import Final

SCAN_MODE_INCREMENTAL: Final = "incremental"
SCAN_MODE_FULL: Final = "full"
VALID_SCAN_MODES: frozenset[str] = frozenset({SCAN_MODE_INCREMENTAL, SCAN_MODE_FULL})

PHASE_ENUMERATING: Final = "enumerating"
PHASE_HASHING: Final = "hashing"
PHASE_METADATA: Final = "metadata"
PHASE_DONE: Final = "done"

CLASSIFICATION_UNCHANGED: Final = "unchanged"
CLASSIFICATION_NEW_OR_CHANGED: Final = "new-or-changed"

DEFAULT_CONCURRENCY: int = 2
DEFAULT_CHECKPOINT_INTERVAL: int = 25

ERROR_KIND_ENUMERATION: Final = "enumeration"
ERROR_KIND_STAT: Final = "stat"
ERROR_KIND_HASH: Final = "hash"
ERROR_KIND_STORE: Final = "store"
ERROR_KIND_PREVIEW: Final = "preview"

"""Stat-signature change cache deciding which files need reprocessing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from weightdex.constants.cache import CACHE_TEMP_PREFIX, CACHE_TEMP_SUFFIX, CACHE_VERSION
from weightdex.constants.scanning import (
    CLASSIFICATION_NEW_OR_CHANGED,
    CLASSIFICATION_UNCHANGED,
    SCAN_MODE_FULL,
)
from weightdex.exceptions import CacheCorruptionError
from weightdex.io import load_json_file, write_json_atomic
from weightdex.model import CandidateFile, FileFingerprint
from weightdex.scanner.discovery import normalize_path_key
from weightdex.types import CacheFileEntry, CachePayload, ChangeClassification, ScanMode

logger = logging.getLogger(__name__)


class ChangeCache:
    """In-memory map of normalized path to last-seen ``(size, mtime)``.

    Only size and mtime are compared. Content that changes without touching
    either goes unnoticed until one of them moves; that gap is accepted so
    unchanged multi-gigabyte files are never re-read. Instances are not safe
    for concurrent writers.
    """

    def __init__(self, fingerprints: Iterable[FileFingerprint] = ()) -> None:
        self._entries: dict[str, FileFingerprint] = {}
        for fingerprint in fingerprints:
            key = normalize_path_key(fingerprint.path)
            self._entries[key] = FileFingerprint(
                path=key,
                size_bytes=fingerprint.size_bytes,
                modified_at_epoch=fingerprint.modified_at_epoch,
            )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return normalize_path_key(path) in self._entries

    def get(self, path: Path | str) -> FileFingerprint | None:
        """Return the stored fingerprint for *path*, if any."""
        return self._entries.get(normalize_path_key(path))

    def classify(self, candidate: CandidateFile, mode: ScanMode) -> ChangeClassification:
        """Decide whether *candidate* needs heavy processing in this scan."""
        if mode == SCAN_MODE_FULL:
            return CLASSIFICATION_NEW_OR_CHANGED
        stored = self.get(candidate.path)
        if stored is not None and stored.matches(candidate):
            return CLASSIFICATION_UNCHANGED
        return CLASSIFICATION_NEW_OR_CHANGED

    def mark_seen(self, candidate: CandidateFile) -> None:
        """Record the candidate's signature after it was fully processed."""
        key = normalize_path_key(candidate.path)
        self._entries[key] = FileFingerprint(
            path=key,
            size_bytes=candidate.size_bytes,
            modified_at_epoch=candidate.modified_at_epoch,
        )

    def prune(self, seen_paths: Iterable[Path | str]) -> int:
        """Drop entries whose path is not in *seen_paths*; return the number removed."""
        keep = {normalize_path_key(path) for path in seen_paths}
        stale = [key for key in self._entries if key not in keep]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def fingerprints(self) -> tuple[FileFingerprint, ...]:
        return tuple(self._entries[key] for key in sorted(self._entries))

    def to_payload(self) -> CachePayload:
        """Render the versioned document persisted to disk."""
        files: dict[str, CacheFileEntry] = {
            fingerprint.path: {
                "size_bytes": fingerprint.size_bytes,
                "modified_at_epoch": fingerprint.modified_at_epoch,
            }
            for fingerprint in self.fingerprints()
        }
        return {"version": CACHE_VERSION, "files": files}

    @classmethod
    def from_payload(cls, payload: object) -> ChangeCache:
        """Build a cache from a parsed document, raising on structural corruption.

        Individually malformed file entries are dropped rather than failing the
        whole document.
        """
        if not isinstance(payload, dict):
            raise CacheCorruptionError("Cache document is not a JSON object")
        version = payload.get("version")
        if isinstance(version, bool) or version != CACHE_VERSION:
            raise CacheCorruptionError(f"Unsupported cache version {version!r} (expected {CACHE_VERSION})")
        raw_files = payload.get("files")
        if not isinstance(raw_files, dict):
            raise CacheCorruptionError("Cache document 'files' is not a mapping")
        return cls(_normalize_files(raw_files))


def new_cache() -> ChangeCache:
    """Return an empty change cache."""
    return ChangeCache()


def load_cache(cache_path: Path) -> ChangeCache:
    """Load the cache document if valid, otherwise return an empty cache.

    A corrupt or version-mismatched document costs a full rescan, never a crash.
    """
    if not cache_path.is_file():
        return new_cache()

    try:
        payload = load_json_file(cache_path)
        return ChangeCache.from_payload(payload)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unusable cache document %s: %s", cache_path, exc)
        return new_cache()


def save_cache(cache_path: Path, cache: ChangeCache) -> None:
    """Persist cache to disk atomically."""
    write_json_atomic(
        path=cache_path,
        payload=cache.to_payload(),
        temp_prefix=CACHE_TEMP_PREFIX,
        temp_suffix=CACHE_TEMP_SUFFIX,
    )


def _normalize_files(raw_files: dict[object, object]) -> list[FileFingerprint]:
    fingerprints: list[FileFingerprint] = []
    for key, value in raw_files.items():
        if not isinstance(key, str) or not isinstance(value, dict):
            continue

        size_bytes = value.get("size_bytes")
        modified_at_epoch = value.get("modified_at_epoch")

        if isinstance(size_bytes, bool) or not isinstance(size_bytes, int) or size_bytes < 0:
            continue
        if isinstance(modified_at_epoch, bool) or not isinstance(modified_at_epoch, (int, float)):
            continue

        fingerprints.append(
            FileFingerprint(path=key, size_bytes=size_bytes, modified_at_epoch=float(modified_at_epoch))
        )
    return fingerprints

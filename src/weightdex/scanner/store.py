"""Collaborator seams injected into the scan orchestrator."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from weightdex.constants.cache import CACHE_TEMP_SUFFIX, STORE_TEMP_PREFIX
from weightdex.constants.discovery import PREVIEW_NAME_TEMPLATES
from weightdex.io import load_json_file, write_json_atomic
from weightdex.model import GenerationMetadata
from weightdex.scanner.discovery import normalize_path_key
from weightdex.types import ContentIdentity

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Durable record store that receives scan results."""

    def upsert_file(
        self,
        path: str,
        *,
        size_bytes: int,
        modified_at_epoch: float,
        identity: ContentIdentity,
    ) -> None:
        """Insert or update the file row keyed by *path*."""

    def upsert_generation_metadata(
        self,
        identity: ContentIdentity,
        metadata: GenerationMetadata,
        *,
        image_path: str,
    ) -> None:
        """Insert or update generation metadata keyed by content identity."""

    def get_identity(self, path: str) -> ContentIdentity | None:
        """Return the identity previously stored for *path*, if any."""


class PreviewSupplier(Protocol):
    """Supplies preview image bytes for a weight file."""

    def previews_for(self, path: Path) -> list[Path]:
        """Return preview image paths associated with *path*."""

    def read_bytes(self, path: Path) -> bytes:
        """Return the raw bytes of a preview image."""


@dataclass(frozen=True)
class StoredFile:
    """A file row held by ``InMemoryRecordStore``."""

    path: str
    size_bytes: int
    modified_at_epoch: float
    identity: ContentIdentity


@dataclass
class InMemoryRecordStore:
    """Thread-safe dictionary-backed ``RecordStore`` used by the CLI and tests."""

    files: dict[str, StoredFile] = field(default_factory=dict)
    metadata: dict[ContentIdentity, dict[str, GenerationMetadata]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def upsert_file(
        self,
        path: str,
        *,
        size_bytes: int,
        modified_at_epoch: float,
        identity: ContentIdentity,
    ) -> None:
        with self._lock:
            self.files[path] = StoredFile(
                path=path,
                size_bytes=size_bytes,
                modified_at_epoch=modified_at_epoch,
                identity=identity,
            )

    def upsert_generation_metadata(
        self,
        identity: ContentIdentity,
        metadata: GenerationMetadata,
        *,
        image_path: str,
    ) -> None:
        with self._lock:
            self.metadata.setdefault(identity, {})[image_path] = metadata

    def get_identity(self, path: str) -> ContentIdentity | None:
        with self._lock:
            stored = self.files.get(path)
        return stored.identity if stored is not None else None

    def to_dict(self) -> dict[str, object]:
        """Render stored rows as JSON-able data."""
        with self._lock:
            return {
                "files": [
                    {
                        "path": row.path,
                        "size_bytes": row.size_bytes,
                        "modified_at_epoch": row.modified_at_epoch,
                        "identity": row.identity,
                    }
                    for _, row in sorted(self.files.items())
                ],
                "metadata": {
                    identity: {image: meta.to_dict() for image, meta in sorted(by_image.items())}
                    for identity, by_image in sorted(self.metadata.items())
                },
            }


def load_record_store(path: Path) -> InMemoryRecordStore:
    """Load a store saved by ``save_record_store``; unusable documents yield an empty store."""
    store = InMemoryRecordStore()
    if not path.is_file():
        return store
    try:
        payload = load_json_file(path)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unusable index document %s: %s", path, exc)
        return store
    if not isinstance(payload, dict):
        logger.warning("Ignoring index document %s: not a JSON object", path)
        return store

    rows = payload.get("files")
    for row in rows if isinstance(rows, list) else []:
        if not isinstance(row, dict):
            continue
        file_path = row.get("path")
        size_bytes = row.get("size_bytes")
        modified_at_epoch = row.get("modified_at_epoch")
        identity = row.get("identity")
        if not isinstance(file_path, str) or not isinstance(identity, str):
            continue
        if isinstance(size_bytes, bool) or not isinstance(size_bytes, int):
            continue
        if isinstance(modified_at_epoch, bool) or not isinstance(modified_at_epoch, (int, float)):
            continue
        store.upsert_file(
            file_path,
            size_bytes=size_bytes,
            modified_at_epoch=float(modified_at_epoch),
            identity=identity,
        )

    metadata = payload.get("metadata")
    for identity, by_image in (metadata.items() if isinstance(metadata, dict) else ()):
        if not isinstance(by_image, dict):
            continue
        for image_path, entry in by_image.items():
            store.upsert_generation_metadata(identity, GenerationMetadata.from_dict(entry), image_path=image_path)
    return store


def save_record_store(path: Path, store: InMemoryRecordStore) -> None:
    """Persist *store* to disk atomically."""
    write_json_atomic(
        path=path,
        payload=store.to_dict(),
        temp_prefix=STORE_TEMP_PREFIX,
        temp_suffix=CACHE_TEMP_SUFFIX,
    )


class SiblingPreviewSupplier:
    """Finds previews stored next to a weight file under conventional names."""

    def __init__(self, name_templates: tuple[str, ...] = PREVIEW_NAME_TEMPLATES) -> None:
        self._name_templates = name_templates

    @classmethod
    def for_extensions(cls, extensions: Iterable[str]) -> SiblingPreviewSupplier:
        """Probe `{stem}.preview<ext>` then `{stem}<ext>` for each extension in order."""
        ordered = [extension if extension.startswith(".") else f".{extension}" for extension in extensions]
        templates = [f"{{stem}}.preview{extension}" for extension in ordered]
        templates.extend(f"{{stem}}{extension}" for extension in ordered)
        return cls(tuple(templates))

    def previews_for(self, path: Path) -> list[Path]:
        previews: list[Path] = []
        seen: set[str] = set()
        for template in self._name_templates:
            candidate = path.with_name(template.format(stem=path.stem))
            key = normalize_path_key(candidate)
            if key in seen or not candidate.is_file():
                continue
            seen.add(key)
            previews.append(candidate)
        return previews

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()

"""Recursive, fault-tolerant file discovery under scan roots."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from weightdex.exceptions import EnumerationError

logger = logging.getLogger(__name__)


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions and ensure each carries a leading dot."""
    normalized: set[str] = set()
    for extension in extensions:
        cleaned = extension.strip().lower()
        if not cleaned:
            continue
        normalized.add(cleaned if cleaned.startswith(".") else f".{cleaned}")
    return frozenset(normalized)


def normalize_path_key(path: Path | str) -> str:
    """Return the canonical absolute form used to key paths across a scan."""
    return os.path.normcase(os.path.abspath(os.path.normpath(os.fspath(path))))


def walk_files(
    roots: Iterable[Path],
    allowed_extensions: Iterable[str],
    *,
    cancel: threading.Event | None = None,
    on_error: Callable[[EnumerationError], None] | None = None,
) -> list[Path]:
    """Enumerate files under *roots* whose extension is in *allowed_extensions*.

    Directories are visited depth-first with entries in lexicographic order,
    so one walk over an unchanged tree always yields the same sequence.
    Unlistable directories (including missing roots) are logged, reported to
    *on_error* and skipped. Overlapping roots never produce duplicates.
    """
    extensions = normalize_extensions(allowed_extensions)
    discovered: list[Path] = []
    seen: set[str] = set()

    for root in roots:
        if cancel is not None and cancel.is_set():
            break
        for path in _walk_directory(Path(root).absolute(), extensions, cancel=cancel, on_error=on_error):
            key = normalize_path_key(path)
            if key in seen:
                continue
            seen.add(key)
            discovered.append(path)

    return discovered


def _walk_directory(
    root: Path,
    extensions: frozenset[str],
    *,
    cancel: threading.Event | None,
    on_error: Callable[[EnumerationError], None] | None,
) -> Iterable[Path]:
    pending: list[Path] = [root]
    while pending:
        if cancel is not None and cancel.is_set():
            return
        directory = pending.pop()
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            error = EnumerationError(directory, exc.strerror or str(exc))
            logger.warning("%s", error)
            if on_error is not None:
                on_error(error)
            continue

        subdirectories: list[Path] = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(Path(entry.path))
                    continue
                if not entry.is_file():
                    continue
            except OSError as exc:
                logger.debug("Skipping unreadable entry %s: %s", entry.path, exc)
                continue
            if os.path.splitext(entry.name)[1].lower() in extensions:
                yield Path(entry.path)

        # Reversed so the stack pops subdirectories in lexicographic order.
        pending.extend(reversed(subdirectories))

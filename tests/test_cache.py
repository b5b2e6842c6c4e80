"""Tests for the stat-signature change cache."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from weightdex.constants.cache import CACHE_VERSION
from weightdex.exceptions import CacheCorruptionError
from weightdex.model import CandidateFile, FileFingerprint
from weightdex.scanner.cache import ChangeCache, load_cache, save_cache
from weightdex.scanner.discovery import normalize_path_key


def _candidate(path: Path, size: int = 10, mtime: float = 1_700_000_000.5) -> CandidateFile:
    return CandidateFile(path=path, size_bytes=size, modified_at_epoch=mtime)


def test_unknown_path_is_new_or_changed(tmp_path: Path) -> None:
    cache = ChangeCache()

    assert cache.classify(_candidate(tmp_path / "a.safetensors"), "incremental") == "new-or-changed"


def test_marked_file_is_unchanged(tmp_path: Path) -> None:
    cache = ChangeCache()
    candidate = _candidate(tmp_path / "a.safetensors")

    cache.mark_seen(candidate)

    assert cache.classify(candidate, "incremental") == "unchanged"
    assert candidate.path in cache


def test_mtime_only_change_is_detected(tmp_path: Path) -> None:
    cache = ChangeCache()
    cache.mark_seen(_candidate(tmp_path / "a.safetensors", mtime=100.0))

    assert cache.classify(_candidate(tmp_path / "a.safetensors", mtime=100.001), "incremental") == "new-or-changed"


def test_size_change_is_detected(tmp_path: Path) -> None:
    cache = ChangeCache()
    cache.mark_seen(_candidate(tmp_path / "a.safetensors", size=10))

    assert cache.classify(_candidate(tmp_path / "a.safetensors", size=11), "incremental") == "new-or-changed"


def test_full_mode_always_reprocesses(tmp_path: Path) -> None:
    cache = ChangeCache()
    candidate = _candidate(tmp_path / "a.safetensors")
    cache.mark_seen(candidate)

    assert cache.classify(candidate, "full") == "new-or-changed"


def test_prune_drops_paths_outside_the_seen_set(tmp_path: Path) -> None:
    cache = ChangeCache()
    kept = tmp_path / "kept.safetensors"
    cache.mark_seen(_candidate(kept))
    cache.mark_seen(_candidate(tmp_path / "deleted.safetensors"))
    cache.mark_seen(_candidate(tmp_path / "also-deleted.ckpt"))

    removed = cache.prune([kept])

    assert removed == 2
    assert len(cache) == 1
    assert kept in cache


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "state" / "cache.json"
    cache = ChangeCache()
    cache.mark_seen(_candidate(tmp_path / "a.safetensors", size=5, mtime=12.25))
    cache.mark_seen(_candidate(tmp_path / "b.ckpt", size=7, mtime=13.0))

    save_cache(cache_path, cache)
    loaded = load_cache(cache_path)

    assert loaded.fingerprints() == cache.fingerprints()
    payload = json.loads(cache_path.read_text(encoding="utf-8"))
    assert payload["version"] == CACHE_VERSION
    assert payload["files"][normalize_path_key(tmp_path / "a.safetensors")] == {
        "size_bytes": 5,
        "modified_at_epoch": 12.25,
    }


def test_missing_cache_file_yields_empty_cache(tmp_path: Path) -> None:
    assert len(load_cache(tmp_path / "nope.json")) == 0


@pytest.mark.parametrize(
    "document",
    [
        "{not json",
        "[]",
        json.dumps({"version": CACHE_VERSION + 1, "files": {}}),
        json.dumps({"version": CACHE_VERSION, "files": []}),
        json.dumps({"files": {}}),
    ],
)
def test_unusable_cache_document_yields_empty_cache_with_warning(
    tmp_path: Path, document: str, caplog: pytest.LogCaptureFixture
) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text(document, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="weightdex.scanner.cache"):
        cache = load_cache(cache_path)

    assert len(cache) == 0
    assert "Ignoring unusable cache document" in caplog.text


def test_from_payload_rejects_version_mismatch() -> None:
    with pytest.raises(CacheCorruptionError, match="version"):
        ChangeCache.from_payload({"version": 0, "files": {}})


def test_from_payload_drops_malformed_entries(tmp_path: Path) -> None:
    good = normalize_path_key(tmp_path / "good.safetensors")
    payload = {
        "version": CACHE_VERSION,
        "files": {
            good: {"size_bytes": 3, "modified_at_epoch": 4},
            "bad-size": {"size_bytes": -1, "modified_at_epoch": 4.0},
            "bool-size": {"size_bytes": True, "modified_at_epoch": 4.0},
            "bad-mtime": {"size_bytes": 3, "modified_at_epoch": "yesterday"},
            "not-a-dict": 17,
        },
    }

    cache = ChangeCache.from_payload(payload)

    assert cache.fingerprints() == (FileFingerprint(path=good, size_bytes=3, modified_at_epoch=4.0),)

"""End-to-end scan orchestration for Weightdex.

``ScanOrchestrator.scan`` walks the roots, decides per file whether heavy work
is needed, hashes new or changed files on a bounded worker pool, extracts
generation metadata from their previews and hands every result to the
injected ``RecordStore``. Store calls, cache updates and progress callbacks
all happen on the thread that called ``scan``.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from weightdex.constants.discovery import DEFAULT_MODEL_EXTENSIONS
from weightdex.constants.scanning import (
    CLASSIFICATION_UNCHANGED,
    DEFAULT_CHECKPOINT_INTERVAL,
    DEFAULT_CONCURRENCY,
    ERROR_KIND_ENUMERATION,
    ERROR_KIND_HASH,
    ERROR_KIND_PREVIEW,
    ERROR_KIND_STAT,
    ERROR_KIND_STORE,
    PHASE_DONE,
    PHASE_ENUMERATING,
    PHASE_HASHING,
    PHASE_METADATA,
    SCAN_MODE_INCREMENTAL,
    VALID_SCAN_MODES,
)
from weightdex.exceptions import ConfigError, EnumerationError, HashError
from weightdex.io import file_content_identity
from weightdex.metadata import extract_metadata
from weightdex.model import CandidateFile, GenerationMetadata, ScanErrorDetail, ScanProgress, ScanSummary
from weightdex.scanner.cache import ChangeCache, load_cache, new_cache, save_cache
from weightdex.scanner.discovery import normalize_path_key, walk_files
from weightdex.scanner.store import PreviewSupplier, RecordStore
from weightdex.types import ContentIdentity, ScanMode

logger = logging.getLogger(__name__)

type ProgressCallback = Callable[[ScanProgress], None]


@dataclass(frozen=True)
class _PreviewOutcome:
    image_path: Path
    metadata: GenerationMetadata | None = None
    error: str | None = None


@dataclass(frozen=True)
class _FileOutcome:
    candidate: CandidateFile
    identity: ContentIdentity | None = None
    error: str | None = None
    previews: tuple[_PreviewOutcome, ...] = ()


@dataclass
class _ScanState:
    cache: ChangeCache
    cancel: threading.Event
    emit: ProgressCallback
    errors: list[ScanErrorDetail] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    processed: int = 0
    metadata_extracted: int = 0
    since_checkpoint: int = 0

    def record_error(self, path: Path | str, message: str, kind: str) -> None:
        detail = ScanErrorDetail(path=str(path), message=message, kind=kind)
        self.errors.append(detail)
        logger.warning("%s error for %s: %s", kind, path, message)


class ScanOrchestrator:
    """Runs incremental scans against one change cache and one record store.

    A new ``scan`` on the same instance cancels the scan in flight and waits
    for it to wind down, so two scans never share the change cache.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        cache_path: Path | None = None,
        preview_supplier: PreviewSupplier | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
    ) -> None:
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise ConfigError(f"concurrency must be a positive integer, got {concurrency!r}")
        if (
            isinstance(checkpoint_interval, bool)
            or not isinstance(checkpoint_interval, int)
            or checkpoint_interval < 1
        ):
            raise ConfigError(f"checkpoint_interval must be a positive integer, got {checkpoint_interval!r}")
        self._store = store
        self._cache_path = cache_path
        self._preview_supplier = preview_supplier
        self._concurrency = concurrency
        self._checkpoint_interval = checkpoint_interval
        self._cache = new_cache()
        self._scan_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._active_cancel: threading.Event | None = None

    @property
    def cache(self) -> ChangeCache:
        """The change cache as left by the most recent scan."""
        return self._cache

    def cancel(self) -> None:
        """Request cancellation of the scan in flight, if any."""
        with self._state_lock:
            active = self._active_cancel
        if active is not None:
            active.set()

    def scan(
        self,
        roots: Iterable[Path],
        mode: ScanMode = SCAN_MODE_INCREMENTAL,
        allowed_extensions: Iterable[str] = DEFAULT_MODEL_EXTENSIONS,
        *,
        cancel: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScanSummary:
        """Scan *roots* and return the aggregated summary.

        Per-file failures are collected in the summary and never abort the
        scan. Setting *cancel* stops scheduling new files; files already in
        flight finish and are recorded.
        """
        if mode not in VALID_SCAN_MODES:
            raise ConfigError(f"Unknown scan mode {mode!r}. Valid modes: {', '.join(sorted(VALID_SCAN_MODES))}")
        roots = [Path(root) for root in roots]
        extensions = tuple(allowed_extensions)
        cancel = cancel if cancel is not None else threading.Event()

        with self._state_lock:
            previous = self._active_cancel
            self._active_cancel = cancel
        if previous is not None:
            logger.info("Cancelling the scan in flight before starting a new one")
            previous.set()

        with self._scan_lock:
            try:
                return self._run(roots, mode, extensions, cancel, on_progress or _ignore_progress)
            finally:
                with self._state_lock:
                    if self._active_cancel is cancel:
                        self._active_cancel = None

    def _run(
        self,
        roots: list[Path],
        mode: ScanMode,
        extensions: tuple[str, ...],
        cancel: threading.Event,
        emit: ProgressCallback,
    ) -> ScanSummary:
        started_at = time.perf_counter()
        if self._cache_path is not None:
            self._cache = load_cache(self._cache_path)
        state = _ScanState(cache=self._cache, cancel=cancel, emit=emit)

        failed_directories: list[str] = []

        def on_enumeration_error(exc: EnumerationError) -> None:
            failed_directories.append(normalize_path_key(exc.path))
            state.record_error(exc.path, str(exc), ERROR_KIND_ENUMERATION)

        paths = walk_files(roots, extensions, cancel=cancel, on_error=on_enumeration_error)
        enumeration_complete = not cancel.is_set()

        candidates: list[CandidateFile] = []
        for path in paths:
            if cancel.is_set():
                enumeration_complete = False
                break
            try:
                stat = path.stat()
            except OSError as exc:
                state.record_error(path, f"Failed to stat file: {exc}", ERROR_KIND_STAT)
                continue
            candidates.append(CandidateFile(path=path, size_bytes=stat.st_size, modified_at_epoch=stat.st_mtime))
        emit(ScanProgress(phase=PHASE_ENUMERATING, processed=0, total=len(candidates)))

        work: list[CandidateFile] = []
        skipped = 0
        for candidate in candidates:
            if state.cache.classify(candidate, mode) == CLASSIFICATION_UNCHANGED and self._has_identity(
                candidate, state
            ):
                skipped += 1
            else:
                work.append(candidate)
        logger.info(
            "Found %d candidate file(s): %d to process, %d unchanged",
            len(candidates),
            len(work),
            skipped,
        )

        self._process(work, state)

        pruned = 0
        if enumeration_complete:
            keep = [*paths, *_entries_under(state.cache, failed_directories)]
            pruned = state.cache.prune(keep)
            if pruned:
                logger.info("Pruned %d stale cache entr%s", pruned, "y" if pruned == 1 else "ies")
        self._persist(state)

        cancelled = cancel.is_set()
        if cancelled:
            logger.info("Scan cancelled after %d processed file(s)", state.processed)
        emit(ScanProgress(phase=PHASE_DONE, processed=state.processed, total=len(work)))

        return ScanSummary(
            processed=state.processed,
            skipped=skipped,
            total_candidates=len(candidates),
            errors=len(state.errors),
            error_details=tuple(state.errors),
            cancelled=cancelled,
            pruned=pruned,
            metadata_extracted=state.metadata_extracted,
            duration_seconds=time.perf_counter() - started_at,
            warnings=tuple(state.warnings),
        )

    def _has_identity(self, candidate: CandidateFile, state: _ScanState) -> bool:
        try:
            return self._store.get_identity(normalize_path_key(candidate.path)) is not None
        except Exception as exc:
            logger.debug("Identity lookup failed for %s", candidate.path, exc_info=True)
            state.warnings.append(f"Identity lookup failed for {candidate.path} ({exc}); rehashing")
            return False

    def _process(self, work: list[CandidateFile], state: _ScanState) -> None:
        """Hash *work* on the pool, keeping at most ``concurrency`` files in flight."""
        if not work:
            return

        pending: Iterator[CandidateFile] = iter(work)
        in_flight: dict[Future[_FileOutcome], CandidateFile] = {}
        total = len(work)

        with ThreadPoolExecutor(max_workers=self._concurrency, thread_name_prefix="weightdex-scan") as executor:

            def schedule() -> None:
                while len(in_flight) < self._concurrency and not state.cancel.is_set():
                    candidate = next(pending, None)
                    if candidate is None:
                        return
                    state.emit(
                        ScanProgress(
                            phase=PHASE_HASHING,
                            processed=state.processed,
                            total=total,
                            current_path=str(candidate.path),
                        )
                    )
                    in_flight[executor.submit(self._process_file, candidate)] = candidate

            schedule()
            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    candidate = in_flight.pop(future)
                    try:
                        outcome = future.result()
                    except Exception as exc:
                        logger.debug("Worker failed for %s", candidate.path, exc_info=True)
                        outcome = _FileOutcome(candidate=candidate, error=f"Worker failed: {exc}")
                    self._complete(outcome, state, total)
                schedule()

    def _process_file(self, candidate: CandidateFile) -> _FileOutcome:
        """Worker body: hash the file and extract metadata from its previews."""
        try:
            identity = file_content_identity(candidate.path)
        except HashError as exc:
            return _FileOutcome(candidate=candidate, error=str(exc))

        if self._preview_supplier is None:
            return _FileOutcome(candidate=candidate, identity=identity)

        try:
            preview_paths = self._preview_supplier.previews_for(candidate.path)
        except Exception as exc:
            logger.debug("Preview lookup failed for %s", candidate.path, exc_info=True)
            failed = _PreviewOutcome(image_path=candidate.path, error=f"Failed to list previews: {exc}")
            return _FileOutcome(candidate=candidate, identity=identity, previews=(failed,))

        previews: list[_PreviewOutcome] = []
        for image_path in preview_paths:
            try:
                data = self._preview_supplier.read_bytes(image_path)
            except Exception as exc:
                logger.debug("Preview read failed for %s", image_path, exc_info=True)
                previews.append(_PreviewOutcome(image_path=image_path, error=f"Failed to read preview: {exc}"))
                continue
            previews.append(_PreviewOutcome(image_path=image_path, metadata=extract_metadata(data)))
        return _FileOutcome(candidate=candidate, identity=identity, previews=tuple(previews))

    def _complete(self, outcome: _FileOutcome, state: _ScanState, total: int) -> None:
        """Hand one finished file to the store and record it in the cache."""
        candidate = outcome.candidate
        if outcome.identity is None:
            state.record_error(candidate.path, outcome.error or "Hashing failed", ERROR_KIND_HASH)
            return

        key = normalize_path_key(candidate.path)
        try:
            self._store.upsert_file(
                key,
                size_bytes=candidate.size_bytes,
                modified_at_epoch=candidate.modified_at_epoch,
                identity=outcome.identity,
            )
        except Exception as exc:
            state.record_error(candidate.path, f"Store rejected file record: {exc}", ERROR_KIND_STORE)
            return

        for preview in outcome.previews:
            state.emit(
                ScanProgress(
                    phase=PHASE_METADATA,
                    processed=state.processed,
                    total=total,
                    current_path=str(preview.image_path),
                )
            )
            if preview.metadata is None:
                state.record_error(preview.image_path, preview.error or "Preview unavailable", ERROR_KIND_PREVIEW)
                continue
            try:
                self._store.upsert_generation_metadata(
                    outcome.identity,
                    preview.metadata,
                    image_path=normalize_path_key(preview.image_path),
                )
            except Exception as exc:
                state.record_error(preview.image_path, f"Store rejected metadata: {exc}", ERROR_KIND_STORE)
                continue
            state.metadata_extracted += 1

        state.cache.mark_seen(candidate)
        state.processed += 1
        state.since_checkpoint += 1
        if state.since_checkpoint >= self._checkpoint_interval:
            state.since_checkpoint = 0
            self._persist(state)

    def _persist(self, state: _ScanState) -> None:
        if self._cache_path is None:
            return
        try:
            save_cache(self._cache_path, state.cache)
        except OSError as exc:
            warning = f"Failed to write cache document {self._cache_path} ({exc})"
            state.warnings.append(warning)
            logger.warning(warning)


def scan(
    roots: Iterable[Path],
    mode: ScanMode = SCAN_MODE_INCREMENTAL,
    allowed_extensions: Iterable[str] = DEFAULT_MODEL_EXTENSIONS,
    cancel: threading.Event | None = None,
    *,
    store: RecordStore,
    cache_path: Path | None = None,
    preview_supplier: PreviewSupplier | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
    on_progress: ProgressCallback | None = None,
) -> ScanSummary:
    """Run a single scan with a throwaway ``ScanOrchestrator``."""
    orchestrator = ScanOrchestrator(
        store,
        cache_path=cache_path,
        preview_supplier=preview_supplier,
        concurrency=concurrency,
        checkpoint_interval=checkpoint_interval,
    )
    return orchestrator.scan(roots, mode, allowed_extensions, cancel=cancel, on_progress=on_progress)


def _entries_under(cache: ChangeCache, directories: list[str]) -> list[str]:
    """Cached paths below directories that could not be listed this scan."""
    if not directories:
        return []
    prefixes = tuple(directory.rstrip(os.sep) + os.sep for directory in directories)
    return [fingerprint.path for fingerprint in cache.fingerprints() if fingerprint.path.startswith(prefixes)]


def _ignore_progress(_event: ScanProgress) -> None:
    return None

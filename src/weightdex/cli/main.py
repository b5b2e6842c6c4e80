"""CLI entrypoint for the Weightdex indexer."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path

from weightdex import __version__
from weightdex.config import WeightdexConfig, load_config
from weightdex.constants.branding import CLI_DESCRIPTION
from weightdex.constants.cache import CACHE_FILENAME, STORE_FILENAME
from weightdex.constants.scanning import SCAN_MODE_FULL
from weightdex.exceptions import ConfigError, WeightdexError
from weightdex.io import file_content_identity
from weightdex.metadata import extract_metadata
from weightdex.model import ScanProgress
from weightdex.reporting.stdout import StdoutReporter
from weightdex.scanner import ScanOrchestrator
from weightdex.scanner.store import SiblingPreviewSupplier, load_record_store, save_record_store

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="weightdex",
        description=CLI_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Index model weight files and their preview metadata")
    scan.add_argument(
        "-r",
        "--root",
        type=Path,
        action="append",
        default=None,
        help="Directory to scan (repeat flag for multiple roots; defaults to config roots)",
    )
    scan.add_argument("-c", "--config", type=Path, help="Explicit config file")
    scan.add_argument("--full", action="store_true", help="Reprocess every file regardless of the change cache")
    scan.add_argument("--cache", type=Path, default=None, help=f"Change cache path (default: ./{CACHE_FILENAME})")
    scan.add_argument("-n", "--no-cache", action="store_true", help="Disable change cache reads/writes")
    scan.add_argument("--store", type=Path, default=None, help=f"Index document path (default: ./{STORE_FILENAME})")
    scan.add_argument(
        "--ext",
        action="append",
        default=None,
        help="Model file extension to include (repeat flag for multiple values)",
    )
    scan.add_argument("--concurrency", type=int, default=None, help="Number of files hashed in parallel")
    scan.add_argument("--json", action="store_true", help="Print the scan summary as JSON")
    scan.add_argument("--no-stdout", action="store_true", help="Silence stdout output")
    scan.add_argument("--no-color", action="store_true", help="Disable colored output")
    scan.add_argument("-v", "--verbose", action="store_true", help="Show progress events and every error")

    extract = subparsers.add_parser("extract", help="Print generation metadata embedded in images")
    extract.add_argument("images", type=Path, nargs="+", help="PNG, JPEG or WEBP files")

    hash_files = subparsers.add_parser("hash", help="Print content identities of files")
    hash_files.add_argument("files", type=Path, nargs="+", help="Files to hash")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s %(message)s")

    if args.command == "extract":
        return _handle_extract(args)
    if args.command == "hash":
        return _handle_hash(args)
    if args.command != "scan":
        parser.error(f"Unsupported command: {args.command}")

    try:
        config = load_config(Path.cwd(), args.config)
        return _handle_scan(args, config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except WeightdexError as exc:
        print(f"Scanner error: {exc}", file=sys.stderr)
        return 1


def _handle_scan(args: argparse.Namespace, config: WeightdexConfig) -> int:
    roots = tuple(args.root) if args.root else config.roots
    if not roots:
        raise ConfigError("No scan roots given; pass --root or set roots in the config file")
    concurrency = args.concurrency if args.concurrency is not None else config.concurrency
    mode = SCAN_MODE_FULL if args.full else config.mode
    extensions = tuple(args.ext) if args.ext else config.model_extensions

    cache_path: Path | None = None
    if not args.no_cache:
        cache_path = args.cache or config.cache_path or (Path.cwd() / CACHE_FILENAME)
    store_path = args.store or (Path.cwd() / STORE_FILENAME)

    store = load_record_store(store_path)
    orchestrator = ScanOrchestrator(
        store,
        cache_path=cache_path,
        preview_supplier=SiblingPreviewSupplier.for_extensions(config.preview_extensions),
        concurrency=concurrency,
        checkpoint_interval=config.checkpoint_interval,
    )

    cancel = threading.Event()
    previous_handler = signal.getsignal(signal.SIGINT)

    def _request_cancel(_signum: int, _frame: object) -> None:
        logger.warning("Interrupt received; finishing files in flight")
        cancel.set()

    in_main_thread = threading.current_thread() is threading.main_thread()
    if in_main_thread:
        signal.signal(signal.SIGINT, _request_cancel)
    try:
        summary = orchestrator.scan(
            roots,
            mode,
            extensions,
            cancel=cancel,
            on_progress=_log_progress if args.verbose else None,
        )
    finally:
        if in_main_thread:
            signal.signal(signal.SIGINT, previous_handler)

    try:
        save_record_store(store_path, store)
    except OSError as exc:
        raise WeightdexError(f"Failed to write index document {store_path}: {exc}") from exc

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2, sort_keys=True))
    elif not args.no_stdout:
        use_color = not args.no_color and sys.stdout.isatty()
        print(StdoutReporter(summary, color=use_color, verbose=args.verbose).render())
    return 0


def _handle_extract(args: argparse.Namespace) -> int:
    results: dict[str, object] = {}
    exit_code = 0
    for image in args.images:
        try:
            data = image.read_bytes()
        except OSError as exc:
            print(f"Cannot read {image}: {exc}", file=sys.stderr)
            exit_code = 1
            continue
        results[str(image)] = extract_metadata(data).to_dict()
    print(json.dumps(results, indent=2, sort_keys=True))
    return exit_code


def _handle_hash(args: argparse.Namespace) -> int:
    exit_code = 0
    for path in args.files:
        try:
            identity = file_content_identity(path)
        except WeightdexError as exc:
            print(str(exc), file=sys.stderr)
            exit_code = 1
            continue
        print(f"{identity}  {path}")
    return exit_code


def _log_progress(event: ScanProgress) -> None:
    suffix = f" {event.current_path}" if event.current_path else ""
    logger.debug("[%s] %d/%d%s", event.phase, event.processed, event.total, suffix)


if __name__ == "__main__":
    raise SystemExit(main())

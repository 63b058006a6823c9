# src/main.py — v2
"""CLI entry point — scan, status, clear, review, classify commands.

Usage:
    receiptscan scan <image>... --title <title> --owner <owner> [--retry]
    receiptscan status --owner <owner>
    receiptscan clear --owner <owner>
    receiptscan review --owner <owner>
    receiptscan classify <record.json>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from receiptscan.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="receiptscan",
        description=f"receiptscan v{__version__} — batch receipt scan ingestion",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- scan ---
    p_scan = subparsers.add_parser(
        "scan", help="Extract, upload, classify and save receipt images",
    )
    p_scan.add_argument("files", type=Path, nargs="+", help="Receipt images")
    p_scan.add_argument("-t", "--title", required=True, help="Batch title")
    p_scan.add_argument("-o", "--owner", required=True, help="Owner id")
    p_scan.add_argument(
        "--retry", action="store_true",
        help="Retry failed receipts once after the first pass",
    )
    p_scan.set_defaults(func=_cmd_scan)

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Show the persisted batch session of an owner",
    )
    p_status.add_argument("-o", "--owner", required=True, help="Owner id")
    p_status.set_defaults(func=_cmd_status)

    # --- clear ---
    p_clear = subparsers.add_parser(
        "clear", help="Discard the persisted batch session of an owner",
    )
    p_clear.add_argument("-o", "--owner", required=True, help="Owner id")
    p_clear.set_defaults(func=_cmd_clear)

    # --- review ---
    p_review = subparsers.add_parser(
        "review", help="List saved records that need manual review",
    )
    p_review.add_argument("-o", "--owner", required=True, help="Owner id")
    p_review.set_defaults(func=_cmd_review)

    # --- classify ---
    p_classify = subparsers.add_parser(
        "classify", help="Check a record document for missing fields",
    )
    p_classify.add_argument("record", type=Path, help="Path to a JSON record")
    p_classify.set_defaults(func=_cmd_classify)

    return parser


async def _cmd_scan(args: argparse.Namespace) -> int:
    """Submit the files as one batch and process it."""
    from receiptscan.api.facade import scan_receipts

    missing = [p for p in args.files if not p.is_file()]
    if missing:
        for path in missing:
            logger.error("File not found: %s", path)
        return 1

    settings = _load_settings(args.verbose)
    results = await scan_receipts(
        args.files, args.title, args.owner, settings=settings, retry=args.retry,
    )

    for n, result in enumerate(results, start=1):
        label = "Retry" if n > 1 else "Batch"
        print(f"\n{label} complete: {result.batch_title}")
        _print_items(result.items)
        print(f"  Done:         {result.done}")
        print(f"  Needs review: {result.needs_review}")
        print(f"  Failed:       {result.failed}")
        print(f"  Duration:     {result.duration_seconds:.1f}s")

    return 0 if results[-1].succeeded else 1


async def _cmd_status(args: argparse.Namespace) -> int:
    """Print the restored session ledger."""
    store = _session_store(args.owner, _load_settings(args.verbose))
    try:
        session = await store.restore()
    finally:
        store.close()

    if not session.items and not session.batch_title:
        print(f"No active batch for {args.owner}")
        return 0

    print(f"\nBatch: {session.batch_title or '(untitled)'}")
    if session.error:
        print(f"  Error: {session.error}")
    _print_items(session.items)
    state = "in progress" if session.has_active_session else "complete"
    print(f"  State: {state}")
    return 0


async def _cmd_clear(args: argparse.Namespace) -> int:
    """Wipe the persisted session."""
    store = _session_store(args.owner, _load_settings(args.verbose))
    try:
        await store.clear()
    finally:
        store.close()
    print(f"Cleared batch session for {args.owner}")
    return 0


async def _cmd_review(args: argparse.Namespace) -> int:
    """List records classified as needs_review."""
    from receiptscan.core.validation import missing_fields
    from receiptscan.records.base_record_store import receipt_key
    from receiptscan.records.record_factory import create_record_store

    store = create_record_store(_load_settings(args.verbose))
    try:
        records = await store.list_records(args.owner, status="needs_review")
        duplicates: dict[str, list[str]] = {}
        for record in records:
            matches = await store.find_by_key(args.owner, receipt_key(record))
            duplicates[record.id] = [m.id for m in matches if m.id != record.id]
    finally:
        store.close()

    print(f"\n{len(records)} record(s) need review for {args.owner}")
    for record in records:
        fields = ", ".join(missing_fields(record))
        print(
            f"  {record.id}  {record.supplier or 'N/A'}  "
            f"{record.total_amount or 'N/A'}  {record.receipt_date or 'N/A'}"
        )
        print(f"      missing: {fields}")
        if duplicates[record.id]:
            print(f"      possible duplicate of: {', '.join(duplicates[record.id])}")
    return 0


async def _cmd_classify(args: argparse.Namespace) -> int:
    """Classify a record document read from disk."""
    from receiptscan.core.validation import classify, missing_fields

    _setup_logging(args.verbose)
    path: Path = args.record
    if not path.is_file():
        logger.error("File not found: %s", path)
        return 1

    try:
        record = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", path, e)
        return 1
    if not isinstance(record, dict):
        logger.error("Expected a JSON object in %s", path)
        return 1

    print(f"status: {classify(record)}")
    fields = missing_fields(record)
    if fields:
        print(f"missing: {', '.join(fields)}")
    return 0


def _print_items(items: list) -> None:
    for index, item in enumerate(items):
        message = f" - {item.message}" if item.message else ""
        print(f"  [{index}] {item.name}: {item.status}{message}")


def _session_store(owner_id: str, settings: object):
    from receiptscan.session.backend_factory import create_session_backend
    from receiptscan.session.store import SessionStore

    return SessionStore(
        backend=create_session_backend(settings),
        owner_id=owner_id,
        ttl_ms=settings.session_ttl_ms,
    )


def _load_settings(verbose: bool):
    """Load settings and configure logging from them."""
    from receiptscan.config.settings import Settings
    from receiptscan.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    return settings


def _setup_logging(verbose: bool) -> None:
    """Configure logging for commands that need no settings."""
    from receiptscan.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")


if __name__ == "__main__":
    sys.exit(main())

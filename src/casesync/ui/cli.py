from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv

from casesync.adapters.sqlalchemy.unit_of_work import shutdown
from casesync.app import SyncApplication, build_application
from casesync.config import configure_logging
from casesync.domain.model import SyncStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise case participants from matters")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy async database URI (defaults to DATABASE_URI or the data directory)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_case = subparsers.add_parser("sync-case", help="Sync the people of a single case")
    sync_case.add_argument("case_id", type=str, help="Internal case id (UUID)")

    for name, help_text in (
        ("sync-full", "Sync every active case with a matter payload"),
        ("sync-incremental", "Sync never-synced, stale or recently changed cases"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument(
            "--reason",
            type=str,
            default="manual",
            help="Free-text reason recorded in the logs (default: %(default)s)",
        )

    subparsers.add_parser("fetch-source", help="Fetch matters and store them on cases")

    preview = subparsers.add_parser("preview", help="Show what a case sync would do")
    preview.add_argument("case_id", type=str, help="Internal case id (UUID)")

    subparsers.add_parser("status", help="Show whether a sync is running and the schedule")

    history = subparsers.add_parser("history", help="List recent sync log entries")
    history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of entries to show (default: %(default)s)",
    )
    history.add_argument(
        "--status",
        choices=[status.value for status in SyncStatus],
        help="Only show entries with this status",
    )
    history.add_argument(
        "--stats-days",
        type=int,
        default=7,
        help="Window for the status counts printed with the history (default: %(default)s)",
    )

    subparsers.add_parser("purge-logs", help="Delete sync log entries past retention")
    subparsers.add_parser("serve", help="Run the scheduled syncs until interrupted")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if getattr(args, "case_id", None) is not None:
        args.case_id = _parse_uuid(args.case_id)
    if args.command == "history":
        if args.limit < 1:
            raise ValueError("--limit must be positive")
        if args.stats_days < 1:
            raise ValueError("--stats-days must be positive")


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))  # noqa: T201


async def _serve(app: SyncApplication) -> None:
    if not app.install_schedule():
        return
    app.start_schedule()
    _emit(app.get_sync_status().as_dict())
    try:
        await asyncio.Event().wait()
    finally:
        await app.stop_schedule()


async def _dispatch(app: SyncApplication, args: argparse.Namespace) -> int:
    match args.command:
        case "sync-case":
            result = await app.trigger_single_case_sync(args.case_id)
        case "sync-full":
            result = await app.trigger_full_sync(args.reason)
        case "sync-incremental":
            result = await app.trigger_incremental_sync(args.reason)
        case "fetch-source":
            fetched = await app.sync_source_cases()
            _emit(
                {"fetched": fetched.fetched, "created": fetched.created, "updated": fetched.updated}
            )
            return 0
        case "preview":
            _emit((await app.preview_case(args.case_id)).as_dict())
            return 0
        case "status":
            app.install_schedule()
            _emit(app.get_sync_status().as_dict())
            return 0
        case "history":
            status = SyncStatus(args.status) if args.status else None
            entries = await app.sync_history(limit=args.limit, status=status)
            statistics = await app.sync_statistics(days=args.stats_days)
            _emit(
                {
                    "statistics": statistics.as_dict(),
                    "entries": [
                        {
                            "id": entry.id,
                            "case_id": entry.case_id,
                            "trigger": entry.trigger.value,
                            "status": entry.status.value,
                            "started_at": entry.started_at,
                            "completed_at": entry.completed_at,
                            "results": entry.results,
                            "errors": entry.errors,
                        }
                        for entry in entries
                    ],
                }
            )
            return 0
        case "purge-logs":
            _emit({"deleted": await app.purge_sync_logs()})
            return 0
        case "serve":
            await _serve(app)
            return 0
        case _:
            raise ValueError(f"Unsupported command: {args.command}")

    _emit(result)
    return 0 if result.get("status") != "crashed" else 1


async def _run(args: argparse.Namespace) -> int:
    app = await build_application(database_uri=args.database_uri)
    try:
        return await _dispatch(app, args)
    finally:
        await shutdown()


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = asyncio.run(_run(parsed_args))
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point: loads ``.env`` and installs the SIGINT handler."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

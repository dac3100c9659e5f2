"""cuetrim command-line interface.

Usage:
    cuetrim-cli trim <ids...> [--file ids.txt] [--dry-run] [--continue-on-reject] [--report out.md]
    cuetrim-cli markers <ids...> [--file ids.txt]

Asset ids are written as CAT/CART, e.g. ``MUS/0012``.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from cuetrim.config import Settings, get_settings
from cuetrim.errors import FetchFailure, InvalidAssetId, NegativeMarkerError
from cuetrim.export.report import save_report
from cuetrim.models.asset import AssetId
from cuetrim.models.job import CueTrimJob, JobStage
from cuetrim.models.pipeline import BatchPolicy
from cuetrim.pipeline.pipeline import CueTrimPipeline
from cuetrim.services.inventory import InventoryClient
from cuetrim.services.planner import CueTrimPlanner

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ABORTED = 2


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _collect_ids(args: argparse.Namespace) -> list[AssetId]:
    """Gather asset ids from positional args and an optional id file."""
    raw: list[str] = list(args.ids or [])
    if args.file:
        for line in Path(args.file).read_text(encoding="utf-8").splitlines():
            line = line.split("#", 1)[0].strip()
            if line:
                raw.append(line)
    return [AssetId.parse(text) for text in raw]


def _print_progress(asset_id: AssetId, stage: JobStage, message: str) -> None:
    suffix = f" - {message}" if message else ""
    print(f"  {asset_id}: {stage.value}{suffix}")


def _confirm(job: CueTrimJob, action: str) -> bool:
    answer = input(f"{job.asset_id}: {action}? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def _markers_line(markers: dict[str, int]) -> str:
    if not markers:
        return "(none)"
    return ", ".join(f"{name}={value}" for name, value in markers.items())


# --- Trim subcommand ---

async def cmd_trim(args: argparse.Namespace, settings: Settings) -> int:
    """Run the trim batch."""
    ids = _collect_ids(args)
    if not ids:
        print("Error: no asset ids given", file=sys.stderr)
        return EXIT_FAILURES

    if args.dry_run:
        settings = settings.model_copy(update={"dry_run": True})
    settings.ensure_directories()

    policy = BatchPolicy(
        abort_on_update_rejection=settings.abort_on_update_rejection and not args.continue_on_reject,
    )
    confirm = _confirm if settings.dry_run and not args.no_confirm else None
    pipeline = CueTrimPipeline.from_settings(settings, policy=policy, confirm=confirm)

    mode = " (dry run)" if settings.dry_run else ""
    print(f"Trimming {len(ids)} asset(s){mode}")
    print(f"  API: {settings.api_url}{settings.api_path}")
    print(f"  Import directory: {settings.import_dir}")

    report = await pipeline.run_batch(ids, progress_callback=_print_progress)

    print("\nDone!")
    print(f"  Trimmed: {len(report.completed)}")
    print(f"  Skipped: {len(report.skipped)}")
    print(f"  Failed: {len(report.failed)}")
    for outcome in report.failed:
        print(f"    - {outcome.asset_id}: {outcome.message}")

    if report.aborted:
        print(f"\nBatch aborted: {report.abort_reason}", file=sys.stderr)
        print(f"  Not processed: {', '.join(str(a) for a in report.not_processed)}", file=sys.stderr)

    if args.report:
        report_format = "json" if str(args.report).endswith(".json") else "markdown"
        path = save_report(report, Path(args.report), format=report_format)
        print(f"  Report: {path}")

    if report.aborted:
        return EXIT_ABORTED
    return EXIT_OK if report.ok else EXIT_FAILURES


# --- Markers subcommand ---

async def cmd_markers(args: argparse.Namespace, settings: Settings) -> int:
    """Show current and planned markers without changing anything."""
    ids = _collect_ids(args)
    if not ids:
        print("Error: no asset ids given", file=sys.stderr)
        return EXIT_FAILURES

    client = InventoryClient(
        base_url=settings.api_url,
        client_id=settings.client_id,
        path=settings.api_path,
        timeout=settings.http_timeout,
    )
    planner = CueTrimPlanner(settings.negative_markers)
    status = EXIT_OK

    for asset_id in ids:
        try:
            record = await client.fetch(asset_id)
        except FetchFailure as e:
            print(f"{asset_id}: fetch failed: {e}", file=sys.stderr)
            status = EXIT_FAILURES
            continue

        print(f"{asset_id}: {record.title}")
        print(f"  markers: {_markers_line(record.markers.as_dict())}")
        try:
            decision = planner.plan(record.markers)
        except NegativeMarkerError as e:
            print(f"  plan: cannot trim: {e}")
            status = EXIT_FAILURES
            continue

        if decision.needs_trim:
            print(f"  plan: trim {decision.cue_offset_ms} ms")
            print(f"  after: {_markers_line(decision.adjusted_markers.as_dict())}")
        else:
            print(f"  plan: {decision.reason}")

    return status


# --- Main CLI ---

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cuetrim-cli",
        description="cuetrim - cue point trimming for automation carts",
    )
    parser.add_argument("--log-level", type=str, help="Logging level (default: CUETRIM_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- trim ---
    p_trim = subparsers.add_parser("trim", help="Trim leading audio up to the cue point")
    p_trim.add_argument("ids", nargs="*", help="Asset ids (CAT/CART)")
    p_trim.add_argument("-f", "--file", type=str, help="File with one asset id per line")
    p_trim.add_argument("--dry-run", action="store_true", help="Confirm every side effect before it happens")
    p_trim.add_argument("--no-confirm", action="store_true", help="With --dry-run, decline every side effect without asking")
    p_trim.add_argument("--continue-on-reject", action="store_true", help="Keep going when a metadata update is rejected")
    p_trim.add_argument("-r", "--report", type=str, help="Write a report (.md or .json)")

    # --- markers ---
    p_markers = subparsers.add_parser("markers", help="Show markers and planned trim (read-only)")
    p_markers.add_argument("ids", nargs="*", help="Asset ids (CAT/CART)")
    p_markers.add_argument("-f", "--file", type=str, help="File with one asset id per line")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURES

    settings = get_settings()
    _configure_logging(args.log_level or settings.log_level)

    try:
        if args.command == "trim":
            return asyncio.run(cmd_trim(args, settings))
        if args.command == "markers":
            return asyncio.run(cmd_markers(args, settings))
    except InvalidAssetId as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURES
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURES

    parser.print_help()
    return EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())

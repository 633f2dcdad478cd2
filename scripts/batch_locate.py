#!/usr/bin/env python3
"""PhotoGeo batch runner: locate every image in a directory.

Writes one JSON record per image under the output root plus a summary.json,
and prints a tabular summary.

Usage:
    python scripts/batch_locate.py --input photos/
    python scripts/batch_locate.py --input photos/ --recursive --ai-guess
    python scripts/batch_locate.py --input photos/ --dry-run
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import DEFAULT_LOG_LEVEL  # noqa: E402
from config.settings import LocatorConfig  # noqa: E402
from photogeo.errors import AIAnalysisFailure, UnsupportedInputFailure  # noqa: E402
from photogeo.io.image_loader import is_supported_image_file, load_image  # noqa: E402
from photogeo.io.persistence import save_json, save_record  # noqa: E402
from photogeo.pipeline import LocationPipeline  # noqa: E402
from photogeo.utils.logging_utils import configure_logging, get_logger  # noqa: E402

logger = get_logger("scripts.batch_locate")


# ── Argument parsing ──────────────────────────────────────────────────────────────

def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the batch runner."""
    parser = argparse.ArgumentParser(
        prog="batch_locate",
        description="PhotoGeo batch runner: locate every image in a directory",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Directory containing images",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        default=False,
        help="Descend into subdirectories",
    )
    parser.add_argument(
        "--ai-guess",
        action="store_true",
        default=False,
        help="Ask the AI for images without embedded GPS",
    )
    parser.add_argument(
        "--llm-backend",
        type=str,
        default=None,
        choices=["anthropic", "ollama"],
        help="Override the LLM backend (default: LLM_BACKEND env var)",
    )
    parser.add_argument(
        "--output-root",
        type=str,
        default=None,
        help="Directory for per-image records and summary.json",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="List the images that would be processed without processing them",
    )
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        default=False,
        help="Halt the batch if any image fails",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    return parser


# ── Discovery ─────────────────────────────────────────────────────────────────────

def discover_images(input_dir: Path, recursive: bool = False) -> List[Path]:
    """List image files in a directory, sorted by path.

    Args:
        input_dir: Directory to scan.
        recursive: Whether to descend into subdirectories.

    Returns:
        Sorted list of image paths (by extension).
    """
    pattern = "**/*" if recursive else "*"
    return sorted(p for p in input_dir.glob(pattern) if is_supported_image_file(p))


# ── Batch execution ───────────────────────────────────────────────────────────────

def run_batch(
    paths: List[Path],
    pipeline: LocationPipeline,
    config: LocatorConfig,
    ai_guess: bool = False,
    stop_on_error: bool = False,
    dry_run: bool = False,
) -> List[Dict[str, Any]]:
    """Process images sequentially and save one record per image.

    Args:
        paths: Image files to process.
        pipeline: Pipeline shared across the batch.
        config: Configuration (limits and output root).
        ai_guess: Run the AI fallback for images without GPS.
        stop_on_error: Halt on the first failure.
        dry_run: Only list images.

    Returns:
        List of per-image summary dicts.
    """
    results: List[Dict[str, Any]] = []
    total = len(paths)

    for idx, path in enumerate(paths, start=1):
        logger.info("Batch [%d/%d]: %s", idx, total, path)

        if dry_run:
            print(f"  [DRY RUN] Would locate: {path}")
            results.append({"source": str(path), "status": "DRY_RUN"})
            continue

        start_ts = time.monotonic()
        try:
            image = load_image(
                path,
                max_bytes=config.max_image_bytes,
                fetch_timeout=config.image_fetch_timeout,
            )
        except UnsupportedInputFailure as exc:
            logger.error("  Skipped: %s", exc)
            results.append({"source": str(path), "status": "FAILED", "error": str(exc)})
            if stop_on_error:
                break
            continue

        record = pipeline.process_image(image.data, source=image.source)
        status = "GPS" if record.gps_found else "NO_GPS"
        error = None

        if ai_guess and not record.gps_found:
            try:
                record = pipeline.augment_with_ai_guess(record, image.data)
                status = "AI"
            except AIAnalysisFailure as exc:
                error = str(exc)
                status = "AI_FAILED"

        output_path = save_record(record, config.output_root)
        entry: Dict[str, Any] = {
            "source": record.source,
            "status": status,
            "image_id": record.image_id,
            "place": record.location_info.display_name if record.location_info else None,
            "record_path": str(output_path),
            "elapsed_seconds": round(time.monotonic() - start_ts, 2),
        }
        if error:
            entry["error"] = error
        results.append(entry)

        if status == "AI_FAILED" and stop_on_error:
            logger.error("Stopping batch due to --stop-on-error flag")
            break

    return results


def print_summary(results: List[Dict[str, Any]]) -> None:
    """Print a tabular batch summary to stdout."""
    print("\n" + "=" * 72)
    print("BATCH LOCATE SUMMARY")
    print("=" * 72)
    counts: Dict[str, int] = {}
    for r in results:
        counts[r["status"]] = counts.get(r["status"], 0) + 1
    print("Total: %d  " % len(results) + "  ".join(f"{k}: {v}" for k, v in sorted(counts.items())))
    print()
    for r in results:
        status_label = r["status"].ljust(9)
        source_label = Path(r["source"]).name[:30].ljust(32)
        place = (r.get("place") or "")[:28]
        print(f"  {status_label}  {source_label}  {place}")
        if r.get("error"):
            print(f"            ERROR: {r['error']}")
    print("=" * 72)


# ── Entry point ───────────────────────────────────────────────────────────────────

def main() -> None:
    """Main entry point for the batch runner."""
    parser = build_arg_parser()
    args = parser.parse_args()

    configure_logging(log_level=args.log_level)

    input_dir = Path(args.input)
    if not input_dir.is_dir():
        logger.error("Input directory not found: %s", input_dir)
        sys.exit(1)

    try:
        config = LocatorConfig()
        if args.llm_backend:
            config.llm_backend = args.llm_backend
        if args.output_root:
            config.output_root = args.output_root
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    paths = discover_images(input_dir, recursive=args.recursive)
    if not paths:
        logger.error("No images found in %s", input_dir)
        sys.exit(1)
    logger.info("Batch runner: %d image(s) queued (dry_run=%s)", len(paths), args.dry_run)

    with LocationPipeline.from_config(config) as pipeline:
        results = run_batch(
            paths,
            pipeline,
            config,
            ai_guess=args.ai_guess,
            stop_on_error=args.stop_on_error,
            dry_run=args.dry_run,
        )

    if not args.dry_run:
        save_json(results, Path(config.output_root) / "summary.json")
    print_summary(results)

    if any(r["status"] in ("FAILED", "AI_FAILED") for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()

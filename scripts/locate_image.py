#!/usr/bin/env python3
"""PhotoGeo CLI: find where a single image was taken.

Usage:
    python scripts/locate_image.py photos/IMG_0042.jpg
    python scripts/locate_image.py https://example.com/photo.jpg --json
    python scripts/locate_image.py photos/beach.png --ai-guess --llm-backend anthropic
    python scripts/locate_image.py photos/IMG_0042.jpg --save
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import (  # noqa: E402
    ANTHROPIC_MODEL,
    DEFAULT_LOG_LEVEL,
    OLLAMA_MODEL,
)
from config.settings import LocatorConfig  # noqa: E402
from photogeo.errors import AIAnalysisFailure, UnsupportedInputFailure  # noqa: E402
from photogeo.io.image_loader import load_image  # noqa: E402
from photogeo.io.persistence import save_record  # noqa: E402
from photogeo.pipeline import LocationPipeline  # noqa: E402
from photogeo.utils.formatting import summarize_record  # noqa: E402
from photogeo.utils.logging_utils import configure_logging, get_logger  # noqa: E402

logger = get_logger("scripts.locate_image")


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the single-image CLI."""
    parser = argparse.ArgumentParser(
        prog="locate_image",
        description="PhotoGeo: locate an image from its EXIF GPS, or ask an AI to guess",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("source", type=str, help="Image file path or http(s) URL")

    # ── AI fallback ─────────────────────────────────────────────────────────────
    parser.add_argument(
        "--ai-guess",
        action="store_true",
        default=False,
        help="When the image has no embedded GPS, ask the AI to estimate the location",
    )
    parser.add_argument(
        "--llm-backend",
        type=str,
        default=None,
        choices=["anthropic", "ollama"],
        help="LLM backend for --ai-guess (default: LLM_BACKEND env var)",
    )
    parser.add_argument(
        "--anthropic-model",
        type=str,
        default=None,
        help=f"Anthropic vision model ID (default: {ANTHROPIC_MODEL})",
    )
    parser.add_argument(
        "--ollama-model",
        type=str,
        default=None,
        help=f"Ollama vision model name (default: {OLLAMA_MODEL})",
    )

    # ── Output and logging ───────────────────────────────────────────────────────
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the record as JSON instead of a text summary",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=False,
        help="Also write the record under --output-root",
    )
    parser.add_argument(
        "--output-root",
        type=str,
        default=None,
        help="Directory for saved records (default: OUTPUT_ROOT env var)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity level",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to receive log output",
    )
    return parser


def args_to_config(args: argparse.Namespace) -> LocatorConfig:
    """Build a LocatorConfig, letting CLI flags override environment defaults."""
    config = LocatorConfig()
    if args.llm_backend:
        config.llm_backend = args.llm_backend
    if args.anthropic_model:
        config.anthropic_model = args.anthropic_model
    if args.ollama_model:
        config.ollama_model = args.ollama_model
    if args.output_root:
        config.output_root = args.output_root
    config.log_level = args.log_level
    return config


def main() -> None:
    """CLI entrypoint: load the image, locate it, print the result."""
    parser = build_arg_parser()
    args = parser.parse_args()

    configure_logging(log_level=args.log_level, log_file=args.log_file)

    try:
        config = args_to_config(args)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    try:
        image = load_image(
            args.source,
            max_bytes=config.max_image_bytes,
            fetch_timeout=config.image_fetch_timeout,
        )
    except UnsupportedInputFailure as exc:
        logger.error("Cannot read image: %s", exc)
        sys.exit(1)

    exit_code = 0
    with LocationPipeline.from_config(config) as pipeline:
        record = pipeline.process_image(image.data, source=image.source)

        if args.ai_guess and not record.gps_found:
            try:
                record = pipeline.augment_with_ai_guess(record, image.data)
            except AIAnalysisFailure as exc:
                logger.error("AI location guess failed: %s", exc)
                exit_code = 3
        elif args.ai_guess:
            logger.info("Embedded GPS found; AI guess not needed")

    if args.json:
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(summarize_record(record))

    if args.save:
        path = save_record(record, config.output_root)
        logger.info("Record saved to %s", path)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

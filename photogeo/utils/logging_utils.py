"""Logging utilities for PhotoGeo.

Provides YAML-based logging configuration and an adapter that tags every log
record with the identity of the image being processed. All loggers are
namespaced under 'photogeo'.
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, MutableMapping, Optional

import yaml

# Characters of the SHA-256 image id shown in log prefixes
_SHORT_ID_LENGTH = 12


def configure_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure logging from the YAML configuration file.

    Falls back to basicConfig if the YAML file is not found.

    Args:
        config_path: Path to logging.yaml (defaults to config/logging.yaml).
        log_level: Override log level (e.g., "DEBUG", "INFO", "WARNING").
        log_file: Optional file to receive log output in addition to stderr.
    """
    if config_path is None:
        config_path = str(Path(__file__).parent.parent.parent / "config" / "logging.yaml")

    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f)

        if log_file:
            cfg.setdefault("handlers", {})["file"] = {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "filename": log_file,
                "encoding": "utf-8",
            }
            for logger_cfg in cfg.get("loggers", {}).values():
                logger_cfg.setdefault("handlers", []).append("file")

        if log_level and "loggers" in cfg:
            for logger_cfg in cfg["loggers"].values():
                logger_cfg["level"] = log_level.upper()

        logging.config.dictConfig(cfg)
    else:
        logging.basicConfig(
            level=getattr(logging, (log_level or "INFO").upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            filename=log_file,
        )


def get_logger(name: str) -> logging.Logger:
    """Get a namespaced logger under 'photogeo'.

    Args:
        name: Module or component name (e.g., "clients.geocoding_client").

    Returns:
        Logger instance with full 'photogeo.<name>' namespace.
    """
    if name.startswith("photogeo"):
        return logging.getLogger(name)
    return logging.getLogger(f"photogeo.{name}")


class ImageContextAdapter(logging.LoggerAdapter):
    """Logger adapter that injects the short image id into all log records.

    Usage:
        logger = get_image_logger("pipeline", image_id="3f9a1c...")
        logger.info("Extracting metadata")
        # Output: [INFO] photogeo.pipeline: [3f9a1c0d22e7] Extracting metadata
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        image_id = self.extra.get("image_id", "unknown")
        return f"[{image_id}] {msg}", kwargs


def get_image_logger(name: str, image_id: str) -> ImageContextAdapter:
    """Get an image-context-aware logger adapter.

    Args:
        name: Module or component name.
        image_id: Full image identity (SHA-256 hex digest); only a prefix is logged.

    Returns:
        LoggerAdapter that prefixes all messages with [<short image id>].
    """
    return ImageContextAdapter(get_logger(name), {"image_id": image_id[:_SHORT_ID_LENGTH]})

"""JSON persistence utilities for PhotoGeo.

Provides atomic file writes (write-to-temp-then-rename), safe JSON loading,
and LocationRecord (de)serialization. No business logic, file I/O only.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from photogeo.models.location import (
    CaptureDetails,
    GeoCoordinate,
    LocationRecord,
    PlaceDescription,
)

logger = logging.getLogger(__name__)


class _RecordEncoder(json.JSONEncoder):
    """JSON encoder for records, other dataclasses, datetimes and paths."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, LocationRecord):
            return obj.to_dict()
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(data: Any, path: str | Path, indent: int = 2) -> None:
    """Atomically write data to a JSON file.

    Creates parent directories if they do not exist.

    Args:
        data: Data to serialize. Supports dicts, lists, records, dataclasses,
            datetimes and Path objects.
        path: Output file path.
        indent: JSON indentation level (default: 2).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        serialized = json.dumps(data, indent=indent, ensure_ascii=False, cls=_RecordEncoder)
    except (TypeError, ValueError) as exc:
        logger.error("JSON serialization failed for %s: %s", path, exc)
        raise

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp.write(serialized)
        tmp_path = tmp.name

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        os.unlink(tmp_path)
        logger.error("Atomic rename failed for %s: %s", path, exc)
        raise

    logger.debug("Saved JSON to %s (%d bytes)", path, len(serialized))


def load_json(path: str | Path) -> Optional[Any]:
    """Load and parse a JSON file.

    Returns:
        Parsed Python object, or None if the file is missing or unparseable.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("JSON file not found: %s", path)
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to load JSON from %s: %s", path, exc)
        return None


def record_from_dict(data: Dict[str, Any]) -> LocationRecord:
    """Rebuild a LocationRecord from its to_dict() form.

    Raises:
        ValueError: A nested value is invalid (e.g. out-of-range coordinate).
        KeyError: A required top-level key is missing.
    """
    location = data.get("exif_location")
    date = data.get("exif_date")
    details = data.get("exif_details")
    place = data.get("location_info")
    return LocationRecord(
        source=data["source"],
        image_id=data["image_id"],
        gps_found=bool(data["gps_found"]),
        preview=data.get("preview"),
        exif_location=GeoCoordinate(**location) if location else None,
        exif_date=datetime.fromisoformat(date) if date else None,
        exif_details=CaptureDetails(**details) if details else None,
        location_info=PlaceDescription(**place) if place else None,
        ai_guessed=bool(data.get("ai_guessed", False)),
        ai_confidence=data.get("ai_confidence"),
        ai_reasoning=data.get("ai_reasoning"),
    )


def record_path(output_root: str | Path, record: LocationRecord) -> Path:
    """Output path for a record: <output_root>/<first 16 hex chars of image_id>.json."""
    return Path(output_root) / f"{record.image_id[:16]}.json"


def save_record(record: LocationRecord, output_root: str | Path) -> Path:
    """Persist a record under output_root and return the written path."""
    path = record_path(output_root, record)
    save_json(record, path)
    return path


def load_record(path: str | Path) -> Optional[LocationRecord]:
    """Load a record saved by save_record.

    Returns:
        LocationRecord, or None if the file is missing, unparseable or invalid.
    """
    data = load_json(path)
    if not isinstance(data, dict):
        return None
    try:
        return record_from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Invalid record in %s: %s", path, exc)
        return None

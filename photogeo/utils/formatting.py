"""Display formatting helpers for PhotoGeo records."""

from __future__ import annotations

from typing import Optional

from photogeo.models.location import CaptureDetails, LocationRecord
from photogeo.utils.geo_utils import format_coordinates


def format_exposure_time(seconds: Optional[float]) -> Optional[str]:
    """Render an exposure time the way cameras print it.

    0.005 -> "1/200s", 2.0 -> "2s", 2.5 -> "2.5s".

    Returns:
        Formatted string, or None when absent or non-positive.
    """
    if seconds is None or seconds <= 0:
        return None
    if seconds >= 1:
        return f"{seconds:g}s"
    return f"1/{round(1 / seconds)}s"


def format_capture_details(details: CaptureDetails) -> str:
    """One-line camera summary, e.g. "Canon EOS R5 | f/2.8 | 1/200s | ISO 100 | 50mm"."""
    parts = []
    camera = " ".join(p for p in (details.make, details.model) if p)
    if camera:
        parts.append(camera)
    if details.lens_model:
        parts.append(details.lens_model)
    if details.f_number is not None:
        parts.append(f"f/{details.f_number:g}")
    exposure = format_exposure_time(details.exposure_time)
    if exposure:
        parts.append(exposure)
    if details.iso is not None:
        parts.append(f"ISO {details.iso}")
    if details.focal_length is not None:
        parts.append(f"{details.focal_length:g}mm")
    return " | ".join(parts)


def summarize_record(record: LocationRecord) -> str:
    """Multi-line human-readable summary used by the CLI scripts."""
    lines = [f"Image:      {record.source}"]

    if record.ai_guessed:
        provenance = f"AI estimate (confidence {record.ai_confidence}%)"
    elif record.gps_found:
        provenance = "EXIF GPS"
    else:
        provenance = "no location data"
    lines.append(f"Source:     {provenance}")

    if record.location_info is not None:
        lines.append(f"Place:      {record.location_info.display_name}")
    if record.exif_location is not None:
        lines.append(f"Coordinates: {format_coordinates(record.exif_location)}")
    elif record.ai_guessed:
        lines.append("Coordinates: none (not mappable)")
    if record.exif_date is not None:
        lines.append(f"Taken:      {record.exif_date.isoformat(sep=' ')}")
    if record.exif_details is not None:
        camera = format_capture_details(record.exif_details)
        if camera:
            lines.append(f"Camera:     {camera}")
    if record.ai_reasoning:
        lines.append(f"Reasoning:  {record.ai_reasoning}")
    return "\n".join(lines)

"""Geographic utility functions for PhotoGeo.

Pure geographic computations with no I/O.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from photogeo.models.location import GeoCoordinate


def rational_to_float(value: Any) -> Optional[float]:
    """Convert an EXIF rational to float.

    Accepts a (numerator, denominator) pair as produced by piexif, any object
    exposing numerator/denominator, or a plain number.

    Returns:
        Float value, or None for a zero denominator or unconvertible input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (tuple, list)) and len(value) == 2:
        num, den = value
        if not den:
            return None
        return float(num) / float(den)
    if hasattr(value, "numerator") and hasattr(value, "denominator"):
        if not value.denominator:
            return None
        return float(value.numerator) / float(value.denominator)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def dms_to_decimal(dms: Sequence[Any], ref: Optional[str]) -> Optional[float]:
    """Convert an EXIF degrees/minutes/seconds triple to signed decimal degrees.

    Args:
        dms: Three rationals (degrees, minutes, seconds).
        ref: Hemisphere reference ("N", "S", "E", "W"); "S" and "W" negate.

    Returns:
        Decimal degrees, or None if dms is not a three-element sequence or
        any component is invalid.
    """
    if not isinstance(dms, (tuple, list)) or len(dms) != 3:
        return None
    parts = [rational_to_float(p) for p in dms]
    if any(p is None for p in parts):
        return None
    degrees, minutes, seconds = parts
    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if ref and ref.strip().upper() in ("S", "W"):
        decimal = -decimal
    return decimal


def is_valid_coordinate(latitude: Any, longitude: Any) -> bool:
    """Check that a latitude/longitude pair is numeric, finite, and in range."""
    for value, bound in ((latitude, 90.0), (longitude, 180.0)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value) or not -bound <= value <= bound:
            return False
    return True


def make_coordinate(latitude: Any, longitude: Any) -> Optional[GeoCoordinate]:
    """Build a GeoCoordinate when both values are valid, else return None."""
    if latitude is None or longitude is None:
        return None
    if not is_valid_coordinate(latitude, longitude):
        return None
    return GeoCoordinate(latitude=latitude, longitude=longitude)


def format_coordinates(coordinate: GeoCoordinate, precision: int = 6) -> str:
    """Render a coordinate as "lat, lon" text for copying.

    Args:
        coordinate: Point to format.
        precision: Decimal places (default 6, roughly 0.1 m).

    Returns:
        String such as "37.774900, -122.419400".
    """
    return f"{coordinate.latitude:.{precision}f}, {coordinate.longitude:.{precision}f}"

"""Location data models for PhotoGeo.

Defines the canonical record produced for every processed image together with
its coordinate, place, and camera sub-records. LocationRecord is frozen: the
AI merge step builds a new record instead of patching the old one.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class GeoCoordinate:
    """A WGS-84 point in decimal degrees.

    An absent coordinate is represented as None by its owner, never as (0, 0).
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, bound in (
            ("latitude", self.latitude, 90.0),
            ("longitude", self.longitude, 180.0),
        ):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
            if not -bound <= value <= bound:
                raise ValueError(f"{name} must be in [-{bound:g}, {bound:g}], got {value!r}")
        object.__setattr__(self, "latitude", float(self.latitude))
        object.__setattr__(self, "longitude", float(self.longitude))


@dataclass(frozen=True)
class CaptureDetails:
    """Camera parameters read from the EXIF block. Every field is optional."""

    make: Optional[str] = None
    model: Optional[str] = None
    lens_model: Optional[str] = None
    exposure_time: Optional[float] = None   # seconds
    f_number: Optional[float] = None
    iso: Optional[int] = None
    focal_length: Optional[float] = None    # millimetres

    @property
    def is_empty(self) -> bool:
        """True when no field is populated."""
        return all(getattr(self, f.name) is None for f in dataclasses.fields(self))


@dataclass(frozen=True)
class PlaceDescription:
    """Human-readable place for a coordinate (or the AI's own location name)."""

    display_name: str
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.display_name:
            raise ValueError("display_name must be a non-empty string")


@dataclass(frozen=True)
class LocationRecord:
    """Canonical per-image output.

    Provenance rules:
      - gps_found is True only when exif_location came from the embedded tags.
      - ai_guessed is True only when the location fields came from the AI
        fallback, which is never applied on top of embedded GPS.
    """

    source: str                                    # path, URL, or upload label
    image_id: str                                  # SHA-256 of the image bytes
    gps_found: bool
    preview: Optional[str] = None                  # preview handle for the caller
    exif_location: Optional[GeoCoordinate] = None
    exif_date: Optional[datetime] = None
    exif_details: Optional[CaptureDetails] = None
    location_info: Optional[PlaceDescription] = None
    ai_guessed: bool = False
    ai_confidence: Optional[int] = None            # 0-100
    ai_reasoning: Optional[str] = None

    @property
    def has_mappable_location(self) -> bool:
        """Whether a map marker can be placed for this record.

        An AI guess that named a place but gave no coordinates is shown by
        name only and is not placed on a map.
        """
        return self.exif_location is not None

    @property
    def is_estimated(self) -> bool:
        """Whether the location fields are an AI estimate rather than EXIF data."""
        return self.ai_guessed

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation with ISO 8601 dates."""
        data = dataclasses.asdict(self)
        data["exif_date"] = self.exif_date.isoformat() if self.exif_date else None
        return data

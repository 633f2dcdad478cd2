"""Intermediate result models for PhotoGeo.

ExtractedMetadata is what the extractor hands to the pipeline; AIGuess is the
validated shape of the AI collaborator's structured answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from photogeo.models.location import CaptureDetails, GeoCoordinate


@dataclass(frozen=True)
class ExtractedMetadata:
    """Location, time, and camera data read from an image's EXIF block."""

    coordinate: Optional[GeoCoordinate] = None
    capture_date: Optional[datetime] = None
    capture_details: Optional[CaptureDetails] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.coordinate is None
            and self.capture_date is None
            and self.capture_details is None
        )


@dataclass(frozen=True)
class AIGuess:
    """Structured location estimate returned by the AI collaborator."""

    location_name: str
    confidence: int                   # 0-100
    reasoning: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

"""PhotoGeo data models package.

All pipeline inputs and outputs are typed dataclasses.
Never return raw Dict from pipeline code; always use the typed models.
"""

from photogeo.models.location import (
    CaptureDetails,
    GeoCoordinate,
    LocationRecord,
    PlaceDescription,
)
from photogeo.models.metadata import AIGuess, ExtractedMetadata

__all__ = [
    # location
    "GeoCoordinate",
    "CaptureDetails",
    "PlaceDescription",
    "LocationRecord",
    # metadata
    "ExtractedMetadata",
    "AIGuess",
]

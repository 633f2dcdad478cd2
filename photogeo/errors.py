"""Exception taxonomy for PhotoGeo.

Only AIAnalysisFailure and UnsupportedInputFailure ever reach a caller.
MetadataParseFailure and GeocodeFailure are raised inside the extraction and
geocoding layers and absorbed there into absent values.
"""

from __future__ import annotations


class PhotoGeoError(Exception):
    """Base class for all PhotoGeo errors."""


class MetadataParseFailure(PhotoGeoError):
    """The embedded metadata block could not be read or decoded."""


class GeocodeFailure(PhotoGeoError):
    """The reverse-geocoding service failed or returned an unusable payload."""


class AIAnalysisFailure(PhotoGeoError):
    """The AI location guess could not be obtained.

    Covers a missing credential, a backend or network failure, and a
    response that does not match the structured guess shape.
    """


class UnsupportedInputFailure(PhotoGeoError):
    """Input rejected at the boundary: not an image, empty, or too large."""

"""MetadataExtractor: image bytes to normalized location/time/camera metadata.

The extractor never raises for bad input. A missing, corrupt, or partial
metadata block degrades to absent fields; an unparseable source degrades to
the fully-absent result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from photogeo.errors import MetadataParseFailure
from photogeo.extraction.metadata_source import MetadataSource, PillowExifSource
from photogeo.models.location import CaptureDetails
from photogeo.models.metadata import ExtractedMetadata
from photogeo.utils.date_utils import parse_exif_datetime
from photogeo.utils.geo_utils import make_coordinate

logger = logging.getLogger(__name__)

# Canonical tag key -> CaptureDetails field
_DETAIL_FIELDS = {
    "Make": "make",
    "Model": "model",
    "LensModel": "lens_model",
    "ExposureTime": "exposure_time",
    "FNumber": "f_number",
    "ISO": "iso",
    "FocalLength": "focal_length",
}


class MetadataExtractor:
    """Normalizes embedded image metadata into an ExtractedMetadata record.

    Args:
        source: Tag reader; defaults to PillowExifSource.
    """

    def __init__(self, source: Optional[MetadataSource] = None) -> None:
        self.source = source or PillowExifSource()

    def extract(self, image_bytes: bytes) -> ExtractedMetadata:
        """Extract coordinate, capture date and camera details.

        Args:
            image_bytes: Raw image file contents.

        Returns:
            ExtractedMetadata; every field is None when nothing usable was found.
        """
        try:
            tags = self.source.read_tags(image_bytes)
        except MetadataParseFailure as exc:
            logger.warning("Metadata parse failed, treating image as untagged: %s", exc)
            return ExtractedMetadata()
        except Exception as exc:
            logger.warning(
                "Metadata source %s raised %s, treating image as untagged: %s",
                type(self.source).__name__,
                type(exc).__name__,
                exc,
            )
            return ExtractedMetadata()

        metadata = ExtractedMetadata(
            coordinate=self._coordinate(tags),
            capture_date=self._capture_date(tags),
            capture_details=self._capture_details(tags),
        )
        logger.debug(
            "Extracted metadata: coordinate=%s date=%s details=%s",
            metadata.coordinate is not None,
            metadata.capture_date is not None,
            metadata.capture_details is not None,
        )
        return metadata

    @staticmethod
    def _coordinate(tags: Dict[str, Any]):
        lat = tags.get("latitude")
        lon = tags.get("longitude")
        if lat is None or lon is None:
            if lat is not None or lon is not None:
                logger.debug("Partial GPS data ignored (lat=%r lon=%r)", lat, lon)
            return None
        coordinate = make_coordinate(lat, lon)
        if coordinate is None:
            logger.warning("Embedded GPS out of range, ignoring (lat=%r lon=%r)", lat, lon)
        return coordinate

    @staticmethod
    def _capture_date(tags: Dict[str, Any]):
        """DateTimeOriginal, else CreateDate; each with its own offset tag."""
        for date_key, offset_key in (
            ("DateTimeOriginal", "OffsetTimeOriginal"),
            ("CreateDate", "OffsetTimeDigitized"),
        ):
            value = tags.get(date_key)
            if value is None:
                continue
            parsed = parse_exif_datetime(str(value), tags.get(offset_key))
            if parsed is not None:
                return parsed
        return None

    @staticmethod
    def _capture_details(tags: Dict[str, Any]) -> Optional[CaptureDetails]:
        values = {
            field: tags[key]
            for key, field in _DETAIL_FIELDS.items()
            if tags.get(key) is not None
        }
        if not values:
            return None
        return CaptureDetails(**values)

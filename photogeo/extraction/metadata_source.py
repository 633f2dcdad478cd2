"""Embedded-metadata sources for PhotoGeo.

MetadataSource is the capability the extractor depends on: given image bytes,
return a flat mapping of canonical tag keys to already-decoded values. The
default implementation opens the container with Pillow and decodes the raw
EXIF block with piexif.

Canonical keys:
    latitude, longitude                     signed decimal degrees
    DateTimeOriginal, CreateDate            raw EXIF datetime strings
    OffsetTimeOriginal, OffsetTimeDigitized raw "+HH:MM" strings
    Make, Model, LensModel                  stripped text
    ExposureTime, FNumber, FocalLength      floats
    ISO                                     int
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import piexif
from PIL import Image

from photogeo.errors import MetadataParseFailure
from photogeo.utils.geo_utils import dms_to_decimal, rational_to_float

logger = logging.getLogger(__name__)

# Tags piexif may not name in its tables; looked up by number
_TAG_OFFSET_TIME_ORIGINAL = 0x9011
_TAG_OFFSET_TIME_DIGITIZED = 0x9012
_TAG_LENS_MODEL = 0xA434

_TIFF_HEADERS = (b"II*\x00", b"MM\x00*")


class MetadataSource(ABC):
    """Reads embedded metadata tags from image bytes."""

    @abstractmethod
    def read_tags(self, image_bytes: bytes) -> Dict[str, Any]:
        """Return canonical tag keys mapped to decoded values.

        Absent tags are simply missing from the mapping. An image with no
        metadata block yields an empty dict.

        Raises:
            MetadataParseFailure: The bytes or the metadata block cannot be parsed.
        """


def _bytes_to_str(value: Any) -> Optional[str]:
    """Decode an EXIF ASCII/undefined value to stripped text (blank stays "")."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).replace("\x00", "").strip()


def _to_int(value: Any) -> Optional[int]:
    """Coerce an EXIF SHORT (possibly a one-element sequence) to int."""
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PillowExifSource(MetadataSource):
    """MetadataSource backed by Pillow (container) and piexif (EXIF decoding).

    Handles JPEG, PNG (eXIf chunk), WebP and TIFF. Other Pillow-readable
    formats are accepted and simply report no tags.
    """

    def read_tags(self, image_bytes: bytes) -> Dict[str, Any]:
        if not image_bytes:
            raise MetadataParseFailure("Empty image payload")

        try:
            raw = self._raw_exif(image_bytes)
        except Exception as exc:
            raise MetadataParseFailure(f"Unreadable image container: {exc}") from exc

        if not raw:
            logger.debug("No EXIF block present")
            return {}

        try:
            exif = piexif.load(raw)
        except Exception as exc:
            raise MetadataParseFailure(f"Corrupt EXIF block: {exc}") from exc

        try:
            return self._canonicalize(exif)
        except Exception as exc:
            raise MetadataParseFailure(f"Malformed EXIF tag values: {exc}") from exc

    # ── Container handling ────────────────────────────────────────────────────

    @staticmethod
    def _raw_exif(image_bytes: bytes) -> Optional[bytes]:
        """Pull the raw EXIF block out of the image container."""
        with Image.open(io.BytesIO(image_bytes)) as img:
            raw = img.info.get("exif")
            if not raw and img.format == "PNG":
                # eXIf chunks after the image data are only seen once loaded
                img.load()
                raw = img.info.get("exif")
            if not raw:
                exif = img.getexif()
                if len(exif):
                    raw = exif.tobytes()

        if not raw:
            return None
        if not raw.startswith(b"Exif") and raw[:4] in _TIFF_HEADERS:
            raw = b"Exif\x00\x00" + raw
        return raw

    # ── Tag decoding ──────────────────────────────────────────────────────────

    @staticmethod
    def _canonicalize(exif: Dict[str, Any]) -> Dict[str, Any]:
        zeroth = exif.get("0th") or {}
        exif_ifd = exif.get("Exif") or {}
        gps = exif.get("GPS") or {}
        tags: Dict[str, Any] = {}

        lat = gps.get(piexif.GPSIFD.GPSLatitude)
        lat_ref = _bytes_to_str(gps.get(piexif.GPSIFD.GPSLatitudeRef))
        lon = gps.get(piexif.GPSIFD.GPSLongitude)
        lon_ref = _bytes_to_str(gps.get(piexif.GPSIFD.GPSLongitudeRef))
        if lat is not None:
            latitude = dms_to_decimal(lat, lat_ref)
            if latitude is not None:
                tags["latitude"] = latitude
        if lon is not None:
            longitude = dms_to_decimal(lon, lon_ref)
            if longitude is not None:
                tags["longitude"] = longitude

        text_tags = {
            "DateTimeOriginal": exif_ifd.get(piexif.ExifIFD.DateTimeOriginal),
            "CreateDate": exif_ifd.get(piexif.ExifIFD.DateTimeDigitized),
            "OffsetTimeOriginal": exif_ifd.get(_TAG_OFFSET_TIME_ORIGINAL),
            "OffsetTimeDigitized": exif_ifd.get(_TAG_OFFSET_TIME_DIGITIZED),
            "Make": zeroth.get(piexif.ImageIFD.Make),
            "Model": zeroth.get(piexif.ImageIFD.Model),
            "LensModel": exif_ifd.get(_TAG_LENS_MODEL),
        }
        for key, value in text_tags.items():
            text = _bytes_to_str(value)
            if text is not None:
                tags[key] = text

        numeric_tags = {
            "ExposureTime": rational_to_float(exif_ifd.get(piexif.ExifIFD.ExposureTime)),
            "FNumber": rational_to_float(exif_ifd.get(piexif.ExifIFD.FNumber)),
            "FocalLength": rational_to_float(exif_ifd.get(piexif.ExifIFD.FocalLength)),
            "ISO": _to_int(exif_ifd.get(piexif.ExifIFD.ISOSpeedRatings)),
        }
        for key, value in numeric_tags.items():
            if value is not None:
                tags[key] = value

        return tags

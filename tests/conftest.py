"""Shared pytest fixtures for PhotoGeo tests.

Conventions:
- Test images are generated in memory with Pillow; EXIF blocks with piexif.
- mock_geocoding_client and mock_llm_client return canned payloads.
- No real external HTTP calls are made in any test.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Optional, Tuple
from unittest.mock import MagicMock

import piexif
import pytest
from PIL import Image

# Exact rationals so decoded coordinates compare equal to the decimal literals
SF_LATITUDE = 37.7749
SF_LONGITUDE = -122.4194


def _decimal_dms(value: float, scale: int = 10000) -> Tuple[Tuple[int, int], ...]:
    """Encode |value| as (degrees/scale, 0, 0) so decoding is exact."""
    return ((round(abs(value) * scale), scale), (0, 1), (0, 1))


def build_jpeg(
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    date_original: Optional[str] = None,
    date_digitized: Optional[str] = None,
    make: Optional[str] = None,
    model: Optional[str] = None,
    lens_model: Optional[str] = None,
    exposure_time: Optional[Tuple[int, int]] = None,
    f_number: Optional[Tuple[int, int]] = None,
    iso: Optional[int] = None,
    focal_length: Optional[Tuple[int, int]] = None,
    color: Tuple[int, int, int] = (90, 140, 200),
) -> bytes:
    """Build a small JPEG with only the requested EXIF tags.

    With no arguments the JPEG carries no EXIF block at all.
    """
    zeroth: Dict[int, Any] = {}
    exif: Dict[int, Any] = {}
    gps: Dict[int, Any] = {}

    if make is not None:
        zeroth[piexif.ImageIFD.Make] = make.encode("ascii")
    if model is not None:
        zeroth[piexif.ImageIFD.Model] = model.encode("ascii")
    if date_original is not None:
        exif[piexif.ExifIFD.DateTimeOriginal] = date_original.encode("ascii")
    if date_digitized is not None:
        exif[piexif.ExifIFD.DateTimeDigitized] = date_digitized.encode("ascii")
    if lens_model is not None:
        exif[piexif.ExifIFD.LensModel] = lens_model.encode("ascii")
    if exposure_time is not None:
        exif[piexif.ExifIFD.ExposureTime] = exposure_time
    if f_number is not None:
        exif[piexif.ExifIFD.FNumber] = f_number
    if iso is not None:
        exif[piexif.ExifIFD.ISOSpeedRatings] = iso
    if focal_length is not None:
        exif[piexif.ExifIFD.FocalLength] = focal_length
    if latitude is not None:
        gps[piexif.GPSIFD.GPSLatitudeRef] = b"S" if latitude < 0 else b"N"
        gps[piexif.GPSIFD.GPSLatitude] = _decimal_dms(latitude)
    if longitude is not None:
        gps[piexif.GPSIFD.GPSLongitudeRef] = b"W" if longitude < 0 else b"E"
        gps[piexif.GPSIFD.GPSLongitude] = _decimal_dms(longitude)

    buf = io.BytesIO()
    img = Image.new("RGB", (8, 8), color)
    if zeroth or exif or gps:
        exif_bytes = piexif.dump({"0th": zeroth, "Exif": exif, "GPS": gps, "1st": {}})
        img.save(buf, format="JPEG", exif=exif_bytes)
    else:
        img.save(buf, format="JPEG")
    return buf.getvalue()


# ── Image fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
def jpeg_factory():
    """The build_jpeg helper, for tests that need custom tag combinations."""
    return build_jpeg


@pytest.fixture
def plain_jpeg() -> bytes:
    """JPEG without any EXIF block."""
    return build_jpeg()


@pytest.fixture
def sf_jpeg() -> bytes:
    """Fully tagged JPEG taken in San Francisco (37.7749, -122.4194)."""
    return build_jpeg(
        latitude=SF_LATITUDE,
        longitude=SF_LONGITUDE,
        date_original="2024:05:01 14:30:00",
        date_digitized="2024:05:01 14:30:05",
        make="Canon",
        model="Canon EOS R5",
        lens_model="RF24-70mm F2.8 L IS USM",
        exposure_time=(1, 200),
        f_number=(28, 10),
        iso=100,
        focal_length=(50, 1),
    )


@pytest.fixture
def untagged_camera_jpeg() -> bytes:
    """JPEG with camera tags and a date but no GPS."""
    return build_jpeg(
        date_original="2023:08:12 09:15:00",
        make="FUJIFILM",
        model="X-T4",
        exposure_time=(1, 500),
        iso=200,
    )


# ── Nominatim payloads ───────────────────────────────────────────────────────────

@pytest.fixture
def nominatim_sf_payload() -> Dict[str, Any]:
    """Nominatim reverse response for downtown San Francisco at zoom 10."""
    return {
        "place_id": 299325426,
        "licence": "Data © OpenStreetMap contributors, ODbL 1.0.",
        "osm_type": "relation",
        "lat": "37.7792588",
        "lon": "-122.4193286",
        "display_name": "San Francisco, California, United States",
        "address": {
            "city": "San Francisco",
            "county": "San Francisco",
            "state": "California",
            "ISO3166-2-lvl4": "US-CA",
            "country": "United States",
            "country_code": "us",
        },
    }


# ── Mock clients ─────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_geocoding_client(nominatim_sf_payload):
    """Mock GeocodingClient whose reverse() returns the San Francisco payload."""
    from photogeo.clients.geocoding_client import GeocodingClient

    client = MagicMock(spec=GeocodingClient)
    client.reverse.return_value = nominatim_sf_payload
    return client


@pytest.fixture
def paris_guess_payload() -> Dict[str, Any]:
    """AI response naming Paris without coordinates."""
    return {
        "locationName": "Paris, France",
        "confidence": 72,
        "reasoning": "Haussmann-style facades and a Metro sign.",
    }


@pytest.fixture
def mock_llm_client(paris_guess_payload):
    """Mock LLMClient that returns the Paris guess without real API calls."""
    from photogeo.clients.llm_client import LLMClient

    client = MagicMock(spec=LLMClient)
    client.backend = "mock"
    client.model_name = "mock-vision"
    client.require_credentials.return_value = None
    client.call_vision_json.return_value = dict(paris_guess_payload)
    return client


# ── Config and pipeline fixtures ─────────────────────────────────────────────────

@pytest.fixture
def test_config(tmp_path):
    """LocatorConfig isolated from the environment: local Ollama, no keys, no spacing."""
    from config.settings import LocatorConfig

    return LocatorConfig(
        nominatim_url="https://nominatim.test/reverse",
        geocoder_min_interval=0.0,
        llm_backend="ollama",
        ollama_host="http://localhost:11434",
        ollama_api_key="",
        anthropic_api_key=None,
        output_root=str(tmp_path / "records"),
        log_level="WARNING",
    )


@pytest.fixture
def pipeline(mock_geocoding_client, mock_llm_client):
    """LocationPipeline with real extraction and mocked network collaborators."""
    from photogeo.analysis.ai_estimator import LocationEstimator
    from photogeo.analysis.location_resolver import LocationResolver
    from photogeo.extraction.metadata_extractor import MetadataExtractor
    from photogeo.pipeline import LocationPipeline

    return LocationPipeline(
        extractor=MetadataExtractor(),
        resolver=LocationResolver(mock_geocoding_client),
        estimator=LocationEstimator(mock_llm_client),
    )

"""Unit tests for photogeo.io.

Covers:
- validate_image_bytes: empty, oversized, non-image, valid
- load_image: file paths, URLs (requests.get patched), missing files
- image_fingerprint
- save_json / load_json atomic round trip
- save_record / load_record with nested records and tz-aware dates
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from photogeo.errors import UnsupportedInputFailure
from photogeo.io.image_loader import (
    image_fingerprint,
    is_supported_image_file,
    load_image,
    validate_image_bytes,
)
from photogeo.io.persistence import (
    load_json,
    load_record,
    record_path,
    save_json,
    save_record,
)
from photogeo.models.location import (
    CaptureDetails,
    GeoCoordinate,
    LocationRecord,
    PlaceDescription,
)


def _stream_response(status_code: int, body: bytes) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.iter_content.return_value = [body[i : i + 1024] for i in range(0, len(body), 1024)]
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


# ── validate_image_bytes ─────────────────────────────────────────────────────────

class TestValidateImageBytes:
    def test_valid_jpeg(self, plain_jpeg):
        assert validate_image_bytes(plain_jpeg, max_bytes=1_000_000) == "JPEG"

    def test_empty_rejected(self):
        with pytest.raises(UnsupportedInputFailure, match="empty"):
            validate_image_bytes(b"", max_bytes=100)

    def test_oversized_rejected(self, plain_jpeg):
        """Payloads above the limit must be rejected before decoding."""
        with pytest.raises(UnsupportedInputFailure, match="limit"):
            validate_image_bytes(plain_jpeg, max_bytes=10)

    def test_non_image_rejected(self):
        with pytest.raises(UnsupportedInputFailure):
            validate_image_bytes(b"%PDF-1.7 not an image", max_bytes=1000)


# ── load_image ───────────────────────────────────────────────────────────────────

class TestLoadImage:
    def test_load_from_path(self, tmp_path, sf_jpeg):
        path = tmp_path / "sf.jpg"
        path.write_bytes(sf_jpeg)
        loaded = load_image(path)
        assert loaded.data == sf_jpeg
        assert loaded.source == str(path)
        assert loaded.image_format == "JPEG"
        assert loaded.image_id == hashlib.sha256(sf_jpeg).hexdigest()

    def test_missing_file(self, tmp_path):
        with pytest.raises(UnsupportedInputFailure, match="not found"):
            load_image(tmp_path / "nope.jpg")

    def test_oversized_file(self, tmp_path, plain_jpeg):
        path = tmp_path / "big.jpg"
        path.write_bytes(plain_jpeg)
        with pytest.raises(UnsupportedInputFailure):
            load_image(path, max_bytes=10)

    def test_text_file_rejected(self, tmp_path):
        path = tmp_path / "notes.jpg"
        path.write_text("just text")
        with pytest.raises(UnsupportedInputFailure):
            load_image(path)

    def test_load_from_url(self, sf_jpeg):
        """URLs must be fetched with requests and validated like files."""
        with patch(
            "photogeo.io.image_loader.requests.get",
            return_value=_stream_response(200, sf_jpeg),
        ) as mock_get:
            loaded = load_image("https://example.com/sf.jpg", fetch_timeout=7)
        assert loaded.data == sf_jpeg
        assert loaded.source == "https://example.com/sf.jpg"
        assert mock_get.call_args.kwargs["timeout"] == 7
        assert mock_get.call_args.kwargs["stream"] is True

    def test_url_http_error(self):
        with patch(
            "photogeo.io.image_loader.requests.get",
            return_value=_stream_response(404, b""),
        ):
            with pytest.raises(UnsupportedInputFailure, match="404"):
                load_image("https://example.com/missing.jpg")

    def test_url_network_error(self):
        with patch(
            "photogeo.io.image_loader.requests.get",
            side_effect=requests.exceptions.ConnectionError("down"),
        ):
            with pytest.raises(UnsupportedInputFailure):
                load_image("http://example.com/a.jpg")

    def test_url_oversized_body(self, sf_jpeg):
        """The download must stop once the size limit is exceeded."""
        with patch(
            "photogeo.io.image_loader.requests.get",
            return_value=_stream_response(200, sf_jpeg),
        ):
            with pytest.raises(UnsupportedInputFailure, match="limit"):
                load_image("https://example.com/sf.jpg", max_bytes=100)


class TestHelpers:
    def test_fingerprint_is_sha256(self):
        assert image_fingerprint(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_fingerprint_differs_per_image(self, plain_jpeg, sf_jpeg):
        assert image_fingerprint(plain_jpeg) != image_fingerprint(sf_jpeg)

    def test_supported_extensions(self, tmp_path):
        jpg = tmp_path / "a.JPG"
        jpg.write_bytes(b"x")
        txt = tmp_path / "b.txt"
        txt.write_bytes(b"x")
        assert is_supported_image_file(jpg) is True
        assert is_supported_image_file(txt) is False
        assert is_supported_image_file(tmp_path) is False


# ── JSON persistence ─────────────────────────────────────────────────────────────

class TestJsonPersistence:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        save_json({"a": 1, "b": [1, 2]}, path)
        assert load_json(path) == {"a": 1, "b": [1, 2]}

    def test_no_temp_file_left(self, tmp_path):
        save_json({"a": 1}, tmp_path / "data.json")
        assert not list(tmp_path.glob("*.tmp"))

    def test_missing_file_returns_none(self, tmp_path):
        assert load_json(tmp_path / "missing.json") is None

    def test_corrupt_file_returns_none(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert load_json(path) is None

    def test_unserializable_raises(self, tmp_path):
        with pytest.raises(TypeError):
            save_json({"x": object()}, tmp_path / "x.json")


class TestRecordPersistence:
    def _record(self) -> LocationRecord:
        return LocationRecord(
            source="sf.jpg",
            image_id="0123456789abcdef" * 4,
            gps_found=True,
            exif_location=GeoCoordinate(37.7749, -122.4194),
            exif_date=datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=-7))),
            exif_details=CaptureDetails(make="Canon", iso=100, exposure_time=0.005),
            location_info=PlaceDescription(
                display_name="San Francisco, California, United States",
                city="San Francisco",
                region="California",
                country="United States",
            ),
        )

    def test_record_round_trip(self, tmp_path):
        """A saved record must load back equal, date offset included."""
        record = self._record()
        path = save_record(record, tmp_path)
        assert path == tmp_path / "0123456789abcdef.json"
        assert load_record(path) == record

    def test_saved_json_is_readable(self, tmp_path):
        path = save_record(self._record(), tmp_path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["exif_date"] == "2024-05-01T14:30:00-07:00"
        assert data["location_info"]["city"] == "San Francisco"

    def test_record_path(self, tmp_path):
        assert record_path(tmp_path, self._record()).name == "0123456789abcdef.json"

    def test_invalid_record_returns_none(self, tmp_path):
        path = tmp_path / "bad.json"
        save_json({"source": "x", "image_id": "y", "gps_found": True,
                   "exif_location": {"latitude": 999, "longitude": 0}}, path)
        assert load_record(path) is None

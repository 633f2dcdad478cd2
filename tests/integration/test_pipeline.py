"""Integration tests for photogeo.pipeline.

Real extraction from in-memory JPEGs, mocked geocoder and LLM collaborators.

Scenarios:
- GPS photo: exact coordinate, resolved place, gps_found, no AI call
- Photo without GPS: incomplete record, no geocoder or AI call
- AI fallback: Paris guess without coordinates, provenance flags
- AI fallback failures: missing credential, malformed response
- Geocoder failure keeps the coordinate
- LocationSession supersession rules
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from photogeo.analysis.ai_estimator import LocationEstimator
from photogeo.analysis.location_resolver import LocationResolver
from photogeo.clients.geocoding_client import GeocodingClient
from photogeo.clients.llm_client import LLMClient
from photogeo.errors import AIAnalysisFailure, GeocodeFailure
from photogeo.extraction.metadata_extractor import MetadataExtractor
from photogeo.models.location import GeoCoordinate, PlaceDescription
from photogeo.pipeline import LocationPipeline, LocationSession


# ── process_image ────────────────────────────────────────────────────────────────

class TestProcessImage:
    def test_gps_photo(self, pipeline, sf_jpeg, mock_geocoding_client, mock_llm_client):
        """Embedded GPS must be kept exactly and resolved once; the AI is never called."""
        record = pipeline.process_image(sf_jpeg, source="sf.jpg", preview="blob:1")

        assert record.gps_found is True
        assert record.ai_guessed is False
        assert record.exif_location == GeoCoordinate(37.7749, -122.4194)
        assert record.location_info.city == "San Francisco"
        assert record.location_info.display_name == "San Francisco, California, United States"
        assert record.exif_date == datetime(2024, 5, 1, 14, 30)
        assert record.exif_details.model == "Canon EOS R5"
        assert record.source == "sf.jpg"
        assert record.preview == "blob:1"
        assert record.image_id == hashlib.sha256(sf_jpeg).hexdigest()
        mock_geocoding_client.reverse.assert_called_once_with(37.7749, -122.4194)
        mock_llm_client.call_vision_json.assert_not_called()

    def test_no_gps_photo(self, pipeline, untagged_camera_jpeg, mock_geocoding_client,
                          mock_llm_client):
        """Without GPS the record is incomplete and neither service is called."""
        record = pipeline.process_image(untagged_camera_jpeg, source="fuji.jpg")

        assert record.gps_found is False
        assert record.ai_guessed is False
        assert record.exif_location is None
        assert record.location_info is None
        assert record.exif_details.make == "FUJIFILM"
        assert record.exif_date == datetime(2023, 8, 12, 9, 15)
        mock_geocoding_client.reverse.assert_not_called()
        mock_llm_client.call_vision_json.assert_not_called()

    def test_no_metadata_at_all(self, pipeline, plain_jpeg):
        record = pipeline.process_image(plain_jpeg)
        assert record.gps_found is False
        assert record.exif_date is None
        assert record.exif_details is None

    def test_garbage_bytes_do_not_raise(self, pipeline):
        """Unparseable bytes must still produce a record."""
        record = pipeline.process_image(b"\x89garbage")
        assert record.gps_found is False
        assert record.exif_location is None

    def test_geocoder_failure_keeps_coordinate(self, sf_jpeg):
        """A geocoding failure leaves location_info absent but keeps the GPS."""
        geocoder = MagicMock(spec=GeocodingClient)
        geocoder.reverse.side_effect = GeocodeFailure("HTTP 503")
        pipeline = LocationPipeline(MetadataExtractor(), LocationResolver(geocoder))

        record = pipeline.process_image(sf_jpeg)

        assert record.gps_found is True
        assert record.exif_location == GeoCoordinate(37.7749, -122.4194)
        assert record.location_info is None


# ── augment_with_ai_guess ────────────────────────────────────────────────────────

class TestAugmentWithAiGuess:
    def test_paris_guess_without_coordinates(self, pipeline, untagged_camera_jpeg):
        """The AI's location name becomes the place; no coordinate means no map marker."""
        record = pipeline.process_image(untagged_camera_jpeg, source="fuji.jpg")
        augmented = pipeline.augment_with_ai_guess(record, untagged_camera_jpeg)

        assert augmented.ai_guessed is True
        assert augmented.gps_found is False
        assert augmented.location_info == PlaceDescription(display_name="Paris, France")
        assert augmented.ai_confidence == 72
        assert augmented.ai_reasoning == "Haussmann-style facades and a Metro sign."
        assert augmented.exif_location is None
        assert augmented.has_mappable_location is False
        assert augmented.exif_details == record.exif_details
        assert augmented.exif_date == record.exif_date

    def test_guess_with_coordinates_is_mappable(self, pipeline, plain_jpeg, mock_llm_client):
        mock_llm_client.call_vision_json.return_value = {
            "locationName": "Reykjavik, Iceland",
            "lat": 64.1466,
            "lng": -21.9426,
            "confidence": 55,
            "reasoning": "Hallgrimskirkja in the background.",
        }
        record = pipeline.process_image(plain_jpeg)
        augmented = pipeline.augment_with_ai_guess(record, plain_jpeg)
        assert augmented.exif_location == GeoCoordinate(64.1466, -21.9426)
        assert augmented.has_mappable_location is True

    def test_missing_credential(self, plain_jpeg, mock_geocoding_client):
        """Anthropic without a key must fail before any call and keep the record."""
        llm = LLMClient(backend="anthropic", anthropic_api_key=None)
        llm._anthropic_client = MagicMock()
        pipeline = LocationPipeline(
            MetadataExtractor(),
            LocationResolver(mock_geocoding_client),
            LocationEstimator(llm),
        )
        record = pipeline.process_image(plain_jpeg)

        with pytest.raises(AIAnalysisFailure, match="ANTHROPIC_API_KEY"):
            pipeline.augment_with_ai_guess(record, plain_jpeg)

        llm._anthropic_client.messages.create.assert_not_called()
        assert record.ai_guessed is False
        assert record.location_info is None

    def test_malformed_response_preserves_record(self, pipeline, plain_jpeg, mock_llm_client):
        mock_llm_client.call_vision_json.return_value = {"guess": "somewhere"}
        record = pipeline.process_image(plain_jpeg)
        with pytest.raises(AIAnalysisFailure):
            pipeline.augment_with_ai_guess(record, plain_jpeg)
        assert record.ai_guessed is False

    def test_refused_for_gps_record(self, pipeline, sf_jpeg, mock_llm_client):
        """AI estimation must never be applied over embedded GPS."""
        record = pipeline.process_image(sf_jpeg)
        with pytest.raises(ValueError):
            pipeline.augment_with_ai_guess(record, sf_jpeg)
        mock_llm_client.call_vision_json.assert_not_called()

    def test_refused_for_other_image(self, pipeline, plain_jpeg, untagged_camera_jpeg):
        """The bytes must be the image the record describes."""
        record = pipeline.process_image(plain_jpeg)
        with pytest.raises(ValueError, match="image_id"):
            pipeline.augment_with_ai_guess(record, untagged_camera_jpeg)

    def test_no_estimator_configured(self, plain_jpeg, mock_geocoding_client):
        pipeline = LocationPipeline(MetadataExtractor(), LocationResolver(mock_geocoding_client))
        record = pipeline.process_image(plain_jpeg)
        with pytest.raises(AIAnalysisFailure):
            pipeline.augment_with_ai_guess(record, plain_jpeg)


# ── from_config ──────────────────────────────────────────────────────────────────

class TestFromConfig:
    def test_builds_default_collaborators(self, test_config):
        with LocationPipeline.from_config(test_config) as pipeline:
            assert isinstance(pipeline.extractor, MetadataExtractor)
            assert pipeline.resolver.client.base_url == "https://nominatim.test/reverse"
            assert pipeline.estimator.client.backend == "ollama"


# ── LocationSession ──────────────────────────────────────────────────────────────

class TestLocationSession:
    def test_load_sets_current_record(self, pipeline, sf_jpeg):
        session = LocationSession(pipeline)
        record = session.load(sf_jpeg, source="sf.jpg")
        assert record is not None
        assert session.record is record
        assert session.current_image_id == record.image_id

    def test_guess_with_ai_updates_record(self, pipeline, plain_jpeg):
        session = LocationSession(pipeline)
        session.load(plain_jpeg)
        augmented = session.guess_with_ai()
        assert augmented.ai_guessed is True
        assert session.record is augmented

    def test_guess_without_image_raises(self, pipeline):
        with pytest.raises(ValueError):
            LocationSession(pipeline).guess_with_ai()

    def test_late_ai_result_for_replaced_image_discarded(
        self, pipeline, plain_jpeg, untagged_camera_jpeg, mock_llm_client, paris_guess_payload
    ):
        """An AI answer arriving after a new image was loaded must be dropped."""
        session = LocationSession(pipeline)
        session.load(plain_jpeg)

        def _replace_then_answer(*args, **kwargs):
            session.load(untagged_camera_jpeg, source="new.jpg")
            return dict(paris_guess_payload)

        mock_llm_client.call_vision_json.side_effect = _replace_then_answer

        assert session.guess_with_ai() is None
        assert session.record.source == "new.jpg"
        assert session.record.ai_guessed is False

    def test_late_ai_failure_for_replaced_image_ignored(
        self, pipeline, plain_jpeg, untagged_camera_jpeg, mock_llm_client
    ):
        session = LocationSession(pipeline)
        session.load(plain_jpeg)

        def _replace_then_fail(*args, **kwargs):
            session.load(untagged_camera_jpeg, source="new.jpg")
            return None

        mock_llm_client.call_vision_json.side_effect = _replace_then_fail
        assert session.guess_with_ai() is None

    def test_ai_failure_for_current_image_raises(self, pipeline, plain_jpeg, mock_llm_client):
        mock_llm_client.call_vision_json.return_value = None
        session = LocationSession(pipeline)
        original = session.load(plain_jpeg)
        with pytest.raises(AIAnalysisFailure):
            session.guess_with_ai()
        assert session.record is original

    def test_stale_commit_discarded(self, pipeline, plain_jpeg, sf_jpeg):
        session = LocationSession(pipeline)
        old = pipeline.process_image(plain_jpeg)
        session.load(sf_jpeg)
        assert session._commit(old) is None
        assert session.record.gps_found is True

    def test_reset(self, pipeline, sf_jpeg):
        session = LocationSession(pipeline)
        session.load(sf_jpeg)
        session.reset()
        assert session.record is None
        assert session.current_image_id is None

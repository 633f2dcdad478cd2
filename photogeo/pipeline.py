"""PhotoGeo pipeline orchestrator.

LocationPipeline runs the per-image flow:

  Phase 1 - MetadataExtractor   (always; never raises)
  Phase 2 - LocationResolver    (only when embedded GPS was found)
  Phase 3 - LocationEstimator   (only on explicit request, only without GPS)

LocationSession wraps a pipeline for an interactive caller that shows one
image at a time, so results for an image that was replaced meanwhile are
dropped instead of overwriting the newer one.

Usage:
    from config.settings import LocatorConfig
    from photogeo.pipeline import LocationPipeline

    pipeline = LocationPipeline.from_config(LocatorConfig())
    record = pipeline.process_image(image_bytes, source="IMG_0042.jpg")
    if not record.gps_found:
        record = pipeline.augment_with_ai_guess(record, image_bytes)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from config.settings import LocatorConfig
from photogeo.analysis.ai_estimator import LocationEstimator
from photogeo.analysis.location_resolver import LocationResolver
from photogeo.analysis.record_merge import merge_ai_guess
from photogeo.clients.geocoding_client import GeocodingClient
from photogeo.clients.llm_client import LLMClient
from photogeo.errors import AIAnalysisFailure
from photogeo.extraction.metadata_extractor import MetadataExtractor
from photogeo.io.image_loader import image_fingerprint
from photogeo.models.location import LocationRecord
from photogeo.utils.logging_utils import get_image_logger

logger = logging.getLogger(__name__)


class LocationPipeline:
    """Extraction, reverse geocoding and opt-in AI estimation for single images.

    Collaborators are injected; from_config() builds the default set.

    Args:
        extractor: Metadata extractor.
        resolver: Reverse-geocoding resolver.
        estimator: AI location estimator; None disables augment_with_ai_guess.
    """

    def __init__(
        self,
        extractor: MetadataExtractor,
        resolver: LocationResolver,
        estimator: Optional[LocationEstimator] = None,
    ) -> None:
        self.extractor = extractor
        self.resolver = resolver
        self.estimator = estimator
        self._owned_geocoder: Optional[GeocodingClient] = None

    @classmethod
    def from_config(cls, config: Optional[LocatorConfig] = None) -> "LocationPipeline":
        """Build a pipeline with Pillow/piexif extraction, Nominatim and the configured LLM."""
        config = config or LocatorConfig()
        geocoder = GeocodingClient.from_config(config)
        pipeline = cls(
            extractor=MetadataExtractor(),
            resolver=LocationResolver(geocoder),
            estimator=LocationEstimator(LLMClient.from_config(config)),
        )
        pipeline._owned_geocoder = geocoder
        return pipeline

    def close(self) -> None:
        """Release HTTP resources created by from_config()."""
        if self._owned_geocoder is not None:
            self._owned_geocoder.close()
            self._owned_geocoder = None

    def __enter__(self) -> "LocationPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def process_image(
        self,
        image_bytes: bytes,
        source: str = "upload",
        preview: Optional[str] = None,
    ) -> LocationRecord:
        """Extract metadata and, when GPS is embedded, resolve the place.

        Never calls the AI service and never raises for bad image data; an
        unreadable image yields a record with every optional field absent.

        Args:
            image_bytes: Raw image file contents.
            source: Label for where the image came from (path, URL, upload name).
            preview: Optional preview handle passed through to the record.

        Returns:
            LocationRecord with gps_found set from the embedded tags.
        """
        image_id = image_fingerprint(image_bytes)
        log = get_image_logger(__name__, image_id)
        start = time.monotonic()

        metadata = self.extractor.extract(image_bytes)
        log.debug("Extraction done (%.3fs)", time.monotonic() - start)

        if metadata.coordinate is None:
            log.info("No embedded GPS in %s", source)
            return LocationRecord(
                source=source,
                image_id=image_id,
                gps_found=False,
                preview=preview,
                exif_date=metadata.capture_date,
                exif_details=metadata.capture_details,
            )

        resolve_start = time.monotonic()
        place = self.resolver.resolve(metadata.coordinate)
        log.info(
            "Embedded GPS (%.5f, %.5f) -> %s (%.2fs)",
            metadata.coordinate.latitude,
            metadata.coordinate.longitude,
            place.display_name if place else "unresolved",
            time.monotonic() - resolve_start,
        )
        return LocationRecord(
            source=source,
            image_id=image_id,
            gps_found=True,
            preview=preview,
            exif_location=metadata.coordinate,
            exif_date=metadata.capture_date,
            exif_details=metadata.capture_details,
            location_info=place,
        )

    def augment_with_ai_guess(self, record: LocationRecord, image_bytes: bytes) -> LocationRecord:
        """Ask the AI where the image was taken and merge the answer.

        Every call makes a fresh AI request. The input record is never
        modified; on failure the caller keeps it as it was.

        Args:
            record: Record returned by process_image for the same bytes.
            image_bytes: The image the record describes.

        Returns:
            New LocationRecord with ai_guessed True.

        Raises:
            ValueError: The record has embedded GPS, or the bytes are not the
                image the record describes.
            AIAnalysisFailure: No estimator configured, missing credential,
                backend failure, or malformed response.
        """
        if record.gps_found:
            raise ValueError("Record already has embedded GPS; AI estimation is not applicable")
        image_id = image_fingerprint(image_bytes)
        if image_id != record.image_id:
            raise ValueError("Image bytes do not match the record's image_id")
        if self.estimator is None:
            raise AIAnalysisFailure("No AI estimator is configured")

        log = get_image_logger(__name__, image_id)
        start = time.monotonic()
        try:
            guess = self.estimator.estimate(image_bytes)
        except AIAnalysisFailure as exc:
            log.error("AI location guess failed: %s", exc)
            raise

        log.info("AI location guess merged (%.2fs)", time.monotonic() - start)
        return merge_ai_guess(record, guess)


class LocationSession:
    """Holds the image currently shown to one user and its latest record.

    Each result is tagged with the image it was computed for. A result that
    arrives after another image has been loaded is discarded.

    Args:
        pipeline: Pipeline used for every request in this session.
    """

    def __init__(self, pipeline: LocationPipeline) -> None:
        self.pipeline = pipeline
        self._lock = threading.Lock()
        self._image_bytes: Optional[bytes] = None
        self._image_id: Optional[str] = None
        self._record: Optional[LocationRecord] = None

    @property
    def current_image_id(self) -> Optional[str]:
        with self._lock:
            return self._image_id

    @property
    def record(self) -> Optional[LocationRecord]:
        with self._lock:
            return self._record

    def load(
        self,
        image_bytes: bytes,
        source: str = "upload",
        preview: Optional[str] = None,
    ) -> Optional[LocationRecord]:
        """Make image_bytes the current image and process it.

        Returns:
            The new record, or None if another image replaced it while processing.
        """
        image_id = image_fingerprint(image_bytes)
        with self._lock:
            self._image_bytes = image_bytes
            self._image_id = image_id
            self._record = None

        record = self.pipeline.process_image(image_bytes, source=source, preview=preview)
        return self._commit(record)

    def guess_with_ai(self) -> Optional[LocationRecord]:
        """Run the AI fallback for the current image.

        Returns:
            The augmented record, or None if the image was replaced meanwhile.

        Raises:
            ValueError: No image loaded yet, or the current image has GPS.
            AIAnalysisFailure: The guess failed for the still-current image.
        """
        with self._lock:
            record = self._record
            image_bytes = self._image_bytes
        if record is None or image_bytes is None:
            raise ValueError("No processed image in this session")

        try:
            augmented = self.pipeline.augment_with_ai_guess(record, image_bytes)
        except AIAnalysisFailure:
            if self._is_superseded(record.image_id):
                logger.info("Ignoring AI failure for a replaced image")
                return None
            raise
        return self._commit(augmented)

    def reset(self) -> None:
        """Forget the current image and record."""
        with self._lock:
            self._image_bytes = None
            self._image_id = None
            self._record = None

    def _is_superseded(self, image_id: str) -> bool:
        with self._lock:
            return image_id != self._image_id

    def _commit(self, record: LocationRecord) -> Optional[LocationRecord]:
        with self._lock:
            if record.image_id != self._image_id:
                logger.info(
                    "Discarding stale result for %s (current image changed)",
                    record.image_id[:12],
                )
                return None
            self._record = record
            return record

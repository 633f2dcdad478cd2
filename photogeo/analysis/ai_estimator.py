"""LocationEstimator: AI visual guess of where an image was taken.

Sends the raw image to the multimodal LLM with a fixed prompt and JSON schema,
then validates the reply into an AIGuess. Any failure is raised as
AIAnalysisFailure; nothing here touches an existing LocationRecord.
"""

from __future__ import annotations

import base64
import io
import logging
import math
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from config.defaults import MAX_AI_CONFIDENCE, MIN_AI_CONFIDENCE
from photogeo.clients.llm_client import LLMClient
from photogeo.errors import AIAnalysisFailure
from photogeo.models.metadata import AIGuess
from photogeo.utils.geo_utils import is_valid_coordinate

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an expert in visual geolocation. You identify where photographs "
    "were taken from their visual content alone."
)

LOCATION_PROMPT = (
    "Analyze this image visually to determine where it was taken. Look for "
    "landmarks, architectural styles, road signs, license plates, vegetation, "
    "language, and geography. Return a JSON object with your best guess. If you "
    "are not sure, provide a low confidence score but still try to guess the "
    "country or region."
)

LOCATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "locationName": {
            "type": "string",
            "description": "Best guess of the place, e.g. 'Paris, France'",
        },
        "lat": {"type": "number", "description": "Estimated latitude"},
        "lng": {"type": "number", "description": "Estimated longitude"},
        "confidence": {
            "type": "number",
            "description": "Confidence from 0 to 100",
        },
        "reasoning": {
            "type": "string",
            "description": "Short explanation of the visual clues used",
        },
    },
    "required": ["locationName", "confidence", "reasoning"],
}

_PIL_FORMAT_TO_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def detect_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of image bytes with Pillow.

    Formats the vision APIs do not accept directly (e.g. TIFF) are reported
    as image/jpeg; see encode_for_vision.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return _PIL_FORMAT_TO_MIME.get(img.format or "", "image/jpeg")
    except (UnidentifiedImageError, OSError) as exc:
        raise AIAnalysisFailure(f"Image could not be decoded for analysis: {exc}") from exc


def encode_for_vision(image_bytes: bytes) -> tuple[str, str]:
    """Base64-encode image bytes for a vision call.

    Containers the vision APIs reject are re-encoded to JPEG first.

    Returns:
        (base64 string, media type).
    """
    media_type = detect_media_type(image_bytes)
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            if (img.format or "") not in _PIL_FORMAT_TO_MIME:
                buf = io.BytesIO()
                img.convert("RGB").save(buf, format="JPEG", quality=90)
                image_bytes = buf.getvalue()
    except (UnidentifiedImageError, OSError) as exc:
        raise AIAnalysisFailure(f"Image could not be re-encoded for analysis: {exc}") from exc
    return base64.b64encode(image_bytes).decode("ascii"), media_type


def parse_ai_guess(payload: Optional[Dict[str, Any]]) -> AIGuess:
    """Validate an AI response object into an AIGuess.

    Required: non-empty string locationName, numeric confidence, string
    reasoning. Optional: numeric latitude/longitude (keys "lat"/"lng" or
    "latitude"/"longitude"); kept only when both are present and in range.
    Confidence is rounded and clamped to 0-100.

    Raises:
        AIAnalysisFailure: The payload does not match the guess shape.
    """
    if not isinstance(payload, dict):
        raise AIAnalysisFailure("AI response was empty or not a JSON object")

    location_name = payload.get("locationName")
    if not isinstance(location_name, str) or not location_name.strip():
        raise AIAnalysisFailure("AI response is missing locationName")

    confidence = payload.get("confidence")
    if not _is_number(confidence):
        raise AIAnalysisFailure(f"AI response has a non-numeric confidence: {confidence!r}")

    reasoning = payload.get("reasoning")
    if not isinstance(reasoning, str):
        raise AIAnalysisFailure("AI response is missing reasoning")

    lat = payload.get("lat", payload.get("latitude"))
    lng = payload.get("lng", payload.get("longitude"))
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    if lat is not None and lng is not None:
        if _is_number(lat) and _is_number(lng) and is_valid_coordinate(lat, lng):
            latitude, longitude = float(lat), float(lng)
        else:
            logger.warning("Discarding invalid AI coordinates (lat=%r lng=%r)", lat, lng)

    clamped = int(min(max(round(confidence), MIN_AI_CONFIDENCE), MAX_AI_CONFIDENCE))

    return AIGuess(
        location_name=location_name.strip(),
        confidence=clamped,
        reasoning=reasoning.strip(),
        latitude=latitude,
        longitude=longitude,
    )


class LocationEstimator:
    """Asks the multimodal LLM where an image was taken.

    Args:
        client: LLM client configured with a vision-capable model.
    """

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    def estimate(self, image_bytes: bytes) -> AIGuess:
        """Request a fresh location guess for the image.

        Args:
            image_bytes: Raw image file contents.

        Returns:
            Validated AIGuess.

        Raises:
            AIAnalysisFailure: Missing credential, backend failure, or a
                malformed response.
        """
        self.client.require_credentials()

        image_b64, media_type = encode_for_vision(image_bytes)
        logger.info("Requesting AI location guess (%s, %s)", self.client.backend, media_type)

        payload = self.client.call_vision_json(
            _SYSTEM_PROMPT,
            LOCATION_PROMPT,
            image_b64,
            media_type=media_type,
            schema=LOCATION_SCHEMA,
        )
        if payload is None:
            raise AIAnalysisFailure(
                f"No usable response from the {self.client.backend} backend"
            )

        guess = parse_ai_guess(payload)
        logger.info(
            "AI guess: %s (confidence %d, coordinates=%s)",
            guess.location_name,
            guess.confidence,
            guess.has_coordinates,
        )
        return guess

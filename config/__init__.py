"""PhotoGeo configuration package."""

from config.defaults import (
    ANTHROPIC_MODEL,
    GEOCODER_ZOOM,
    LLM_BACKEND,
    MAX_AI_CONFIDENCE,
    MAX_IMAGE_BYTES,
    NOMINATIM_URL,
    OLLAMA_MODEL,
)
from config.settings import LocatorConfig

__all__ = [
    "LocatorConfig",
    "ANTHROPIC_MODEL",
    "GEOCODER_ZOOM",
    "LLM_BACKEND",
    "MAX_AI_CONFIDENCE",
    "MAX_IMAGE_BYTES",
    "NOMINATIM_URL",
    "OLLAMA_MODEL",
]

"""PhotoGeo: LocatorConfig and environment-based configuration loading.

All runtime configuration flows through LocatorConfig. API keys come
exclusively from environment variables and are handed to the clients
explicitly; no client reads the environment at call time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from config.defaults import (
    ANTHROPIC_MODEL,
    DEFAULT_LOG_LEVEL,
    GEOCODER_MIN_INTERVAL_SECONDS,
    GEOCODER_TIMEOUT,
    GEOCODER_USER_AGENT,
    GEOCODER_ZOOM,
    IMAGE_FETCH_TIMEOUT,
    LLM_BACKEND,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_TEMPERATURE,
    MAX_IMAGE_BYTES,
    NOMINATIM_URL,
    OLLAMA_API_KEY,
    OLLAMA_HOST,
    OLLAMA_MODEL,
    OUTPUT_ROOT,
)

# Load .env file if present; silently skip if missing
load_dotenv()

_VALID_BACKENDS = ("anthropic", "ollama")


@dataclass
class LocatorConfig:
    """Single configuration object shared by the pipeline and its clients.

    All tuneable thresholds, API keys, model names, and endpoints live here.
    """

    # ── Reverse geocoding ──────────────────────────────────────────────────────
    nominatim_url: str = field(default_factory=lambda: os.getenv("NOMINATIM_URL", NOMINATIM_URL))
    geocoder_zoom: int = GEOCODER_ZOOM
    geocoder_timeout: int = GEOCODER_TIMEOUT
    geocoder_min_interval: float = GEOCODER_MIN_INTERVAL_SECONDS
    geocoder_user_agent: str = field(
        default_factory=lambda: os.getenv("GEOCODER_USER_AGENT", GEOCODER_USER_AGENT)
    )

    # ── LLM backend ───────────────────────────────────────────────────────────
    llm_backend: str = field(default_factory=lambda: os.getenv("LLM_BACKEND", LLM_BACKEND))
    anthropic_model: str = field(
        default_factory=lambda: os.getenv("ANTHROPIC_MODEL", ANTHROPIC_MODEL)
    )
    ollama_model: str = field(default_factory=lambda: os.getenv("OLLAMA_MODEL", OLLAMA_MODEL))
    ollama_host: str = field(default_factory=lambda: os.getenv("OLLAMA_HOST", OLLAMA_HOST))
    ollama_api_key: str = field(
        default_factory=lambda: os.getenv("OLLAMA_API_KEY", OLLAMA_API_KEY)
    )
    llm_temperature: float = LLM_TEMPERATURE
    llm_max_tokens: int = LLM_DEFAULT_MAX_TOKENS

    # ── API credentials (from environment only) ────────────────────────────────
    anthropic_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY")
    )

    # ── Image input boundary ──────────────────────────────────────────────────
    max_image_bytes: int = MAX_IMAGE_BYTES
    image_fetch_timeout: int = IMAGE_FETCH_TIMEOUT

    # ── Output and logging ─────────────────────────────────────────────────────
    output_root: str = field(default_factory=lambda: os.getenv("OUTPUT_ROOT", OUTPUT_ROOT))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL))

    def __post_init__(self) -> None:
        self.llm_backend = self.llm_backend.lower()
        if self.llm_backend not in _VALID_BACKENDS:
            raise ValueError(
                f"llm_backend must be one of {_VALID_BACKENDS}, got {self.llm_backend!r}"
            )
        if not 0 <= self.geocoder_zoom <= 18:
            raise ValueError(f"geocoder_zoom must be in [0, 18], got {self.geocoder_zoom}")
        if self.geocoder_min_interval < 0:
            raise ValueError("geocoder_min_interval must be non-negative")
        if self.geocoder_timeout <= 0 or self.image_fetch_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_image_bytes <= 0:
            raise ValueError("max_image_bytes must be positive")

"""OpenStreetMap Nominatim reverse-geocoding client for PhotoGeo.

Handles all HTTP communication with the Nominatim `reverse` endpoint: request
construction, the usage-policy User-Agent, request spacing, and safe JSON
parsing.

No business logic lives here. The client returns the raw parsed payload and
raises GeocodeFailure for anything unusable; turning a payload into a
PlaceDescription happens in photogeo.analysis.location_resolver.

Nominatim usage policy (public instance):
- Identify the application with a descriptive User-Agent.
- No more than one request per second. Enforced by _enforce_stagger().
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Optional

import requests
from requests import Session
from requests.adapters import HTTPAdapter

from photogeo.errors import GeocodeFailure

logger = logging.getLogger(__name__)


def _safe_parse_json(text: str) -> Optional[Any]:
    """Parse a response body, returning None instead of raising.

    Args:
        text: Raw response text.

    Returns:
        Parsed Python object, or None on failure.
    """
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Nominatim unparseable response body: %.200s", text)
        return None


class GeocodingClient:
    """Client for the Nominatim reverse-geocoding endpoint.

    Args:
        base_url: Full URL of the reverse endpoint.
        user_agent: Descriptive User-Agent sent with every request.
        zoom: Nominatim detail level (10 = city).
        request_timeout: HTTP request timeout in seconds.
        min_interval: Minimum seconds between successive requests.
    """

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/reverse",
        user_agent: str = "PhotoGeo/1.0 (image location lookup)",
        zoom: int = 10,
        request_timeout: int = 10,
        min_interval: float = 1.0,
    ) -> None:
        self.base_url = base_url
        self.zoom = zoom
        self.request_timeout = request_timeout
        self.min_interval = min_interval
        self._last_request_time: float = 0.0
        self._request_lock: threading.Lock = threading.Lock()

        self._session = Session()
        adapter = HTTPAdapter(max_retries=0)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)
        self._session.headers.update(
            {"User-Agent": user_agent, "Accept": "application/json"}
        )

    @classmethod
    def from_config(cls, config: Any) -> "GeocodingClient":
        """Build a client from a LocatorConfig."""
        return cls(
            base_url=config.nominatim_url,
            user_agent=config.geocoder_user_agent,
            zoom=config.geocoder_zoom,
            request_timeout=config.geocoder_timeout,
            min_interval=config.geocoder_min_interval,
        )

    def _enforce_stagger(self) -> None:
        """Enforce minimum delay between requests (thread-safe)."""
        with self._request_lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_request_time = time.monotonic()

    def reverse(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """Reverse-geocode a coordinate.

        Args:
            latitude: Decimal degrees.
            longitude: Decimal degrees.

        Returns:
            Parsed Nominatim response object (has "address" and "display_name").

        Raises:
            GeocodeFailure: Network error, non-2xx status, unparseable or
                non-object body, or a provider error payload.
        """
        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": self.zoom,
            "addressdetails": 1,
        }

        self._enforce_stagger()
        try:
            resp = self._session.get(self.base_url, params=params, timeout=self.request_timeout)
        except requests.exceptions.RequestException as exc:
            raise GeocodeFailure(f"Nominatim request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise GeocodeFailure(f"Nominatim returned HTTP {resp.status_code}")

        payload = _safe_parse_json(resp.text)
        if not isinstance(payload, dict):
            raise GeocodeFailure("Nominatim returned a non-object body")
        if "error" in payload:
            raise GeocodeFailure(f"Nominatim error: {payload['error']}")

        logger.debug("Nominatim reverse(%.5f, %.5f) ok", latitude, longitude)
        return payload

    def ping(self) -> bool:
        """Lightweight connectivity check used by validate_env.py.

        Returns:
            True if the endpoint answered a reverse query for (0, 0).
        """
        try:
            self.reverse(0.0, 0.0)
        except GeocodeFailure as exc:
            # (0, 0) is open ocean; "Unable to geocode" still proves reachability
            return "Unable to geocode" in str(exc)
        return True

    def close(self) -> None:
        """Release the pooled HTTP connections."""
        self._session.close()

    def __enter__(self) -> "GeocodingClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

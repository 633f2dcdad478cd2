"""PhotoGeo external service clients.

HTTP/API communication only. No location policy lives here.
"""

from photogeo.clients.geocoding_client import GeocodingClient
from photogeo.clients.llm_client import LLMClient

__all__ = ["GeocodingClient", "LLMClient"]

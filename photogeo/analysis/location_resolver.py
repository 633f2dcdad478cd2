"""LocationResolver: coordinate to human-readable place.

Wraps the GeocodingClient with the place-naming policy. Resolution is
best-effort: every failure becomes None so the caller still gets a record
with the coordinate and no place name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from config.defaults import UNKNOWN_PLACE_LABEL
from photogeo.clients.geocoding_client import GeocodingClient
from photogeo.errors import GeocodeFailure
from photogeo.models.location import GeoCoordinate, PlaceDescription

logger = logging.getLogger(__name__)

# Address keys in precedence order
_CITY_KEYS = ("city", "town", "village", "hamlet")
_REGION_KEYS = ("state", "region")


def _first_present(address: Dict[str, Any], keys: tuple) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_place_description(payload: Dict[str, Any]) -> PlaceDescription:
    """Build a PlaceDescription from a Nominatim reverse payload.

    Args:
        payload: Parsed Nominatim response object.

    Returns:
        PlaceDescription with display_name always populated.
    """
    address = payload.get("address")
    if not isinstance(address, dict):
        address = {}

    city = _first_present(address, _CITY_KEYS)
    region = _first_present(address, _REGION_KEYS)
    country = _first_present(address, ("country",))

    display_name = payload.get("display_name")
    if not isinstance(display_name, str) or not display_name.strip():
        display_name = f"{city or UNKNOWN_PLACE_LABEL}, {country or UNKNOWN_PLACE_LABEL}"

    return PlaceDescription(
        display_name=display_name.strip(),
        city=city,
        region=region,
        country=country,
    )


class LocationResolver:
    """Reverse-geocodes coordinates into PlaceDescriptions.

    Args:
        client: Geocoding client; the resolver does not own its lifecycle.
    """

    def __init__(self, client: GeocodingClient) -> None:
        self.client = client

    def resolve(self, coordinate: GeoCoordinate) -> Optional[PlaceDescription]:
        """Resolve a coordinate to a place.

        Args:
            coordinate: Point to resolve.

        Returns:
            PlaceDescription, or None when the geocoder fails for any reason.
        """
        try:
            payload = self.client.reverse(coordinate.latitude, coordinate.longitude)
        except GeocodeFailure as exc:
            logger.warning(
                "Reverse geocoding failed for (%.5f, %.5f): %s",
                coordinate.latitude,
                coordinate.longitude,
                exc,
            )
            return None

        place = parse_place_description(payload)
        logger.debug("Resolved (%.5f, %.5f) -> %s", coordinate.latitude, coordinate.longitude,
                     place.display_name)
        return place

"""Immutable merge of an AI guess into a LocationRecord."""

from __future__ import annotations

import dataclasses

from photogeo.models.location import GeoCoordinate, LocationRecord, PlaceDescription
from photogeo.models.metadata import AIGuess


def merge_ai_guess(record: LocationRecord, guess: AIGuess) -> LocationRecord:
    """Return a new record carrying the AI estimate.

    Location fields are replaced by the guess: the coordinate only when the
    guess has both values, the place by the AI's own location name. Capture
    date and camera details are kept.

    Args:
        record: Record from process_image with gps_found False.
        guess: Validated AI guess.

    Returns:
        New LocationRecord with ai_guessed True. The input is not modified.

    Raises:
        ValueError: The record already has embedded GPS.
    """
    if record.gps_found:
        raise ValueError("AI guesses are never merged over embedded GPS data")

    coordinate = None
    if guess.has_coordinates:
        coordinate = GeoCoordinate(latitude=guess.latitude, longitude=guess.longitude)

    return dataclasses.replace(
        record,
        exif_location=coordinate,
        location_info=PlaceDescription(display_name=guess.location_name),
        ai_guessed=True,
        ai_confidence=guess.confidence,
        ai_reasoning=guess.reasoning,
    )

"""PhotoGeo location analysis: reverse geocoding policy, AI estimation, merge."""

from photogeo.analysis.ai_estimator import LocationEstimator, parse_ai_guess
from photogeo.analysis.location_resolver import LocationResolver, parse_place_description
from photogeo.analysis.record_merge import merge_ai_guess

__all__ = [
    "LocationEstimator",
    "LocationResolver",
    "merge_ai_guess",
    "parse_ai_guess",
    "parse_place_description",
]

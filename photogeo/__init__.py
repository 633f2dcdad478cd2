"""PhotoGeo: find where a photo was taken.

Public API surface:
    - LocatorConfig: Runtime configuration
    - LocationPipeline: process_image / augment_with_ai_guess
    - LocationSession: one-image-at-a-time holder for interactive callers
"""

__version__ = "1.0.0"
__author__ = "PhotoGeo Contributors"

from config.settings import LocatorConfig
from photogeo.pipeline import LocationPipeline, LocationSession

__all__ = [
    "__version__",
    "LocatorConfig",
    "LocationPipeline",
    "LocationSession",
]

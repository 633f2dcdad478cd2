"""PhotoGeo I/O package.

Image loading and file read/write operations only. No business logic in this layer.
"""

from photogeo.io.image_loader import (
    LoadedImage,
    image_fingerprint,
    is_supported_image_file,
    load_image,
    validate_image_bytes,
)
from photogeo.io.persistence import load_json, load_record, save_json, save_record

__all__ = [
    "LoadedImage",
    "image_fingerprint",
    "is_supported_image_file",
    "load_image",
    "validate_image_bytes",
    "load_json",
    "load_record",
    "save_json",
    "save_record",
]

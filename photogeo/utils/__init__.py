"""PhotoGeo utilities package.

Stateless helpers with no external calls or side effects (logging setup aside).
"""

from photogeo.utils.date_utils import parse_exif_datetime, parse_exif_offset
from photogeo.utils.formatting import (
    format_capture_details,
    format_exposure_time,
    summarize_record,
)
from photogeo.utils.geo_utils import (
    dms_to_decimal,
    format_coordinates,
    is_valid_coordinate,
    make_coordinate,
    rational_to_float,
)

__all__ = [
    "parse_exif_datetime",
    "parse_exif_offset",
    "format_capture_details",
    "format_exposure_time",
    "summarize_record",
    "dms_to_decimal",
    "format_coordinates",
    "is_valid_coordinate",
    "make_coordinate",
    "rational_to_float",
]

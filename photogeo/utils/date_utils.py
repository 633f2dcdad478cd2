"""EXIF date parsing utilities for PhotoGeo.

EXIF stores timestamps as "YYYY:MM:DD HH:MM:SS" without a zone; the zone, when
present, lives in a separate OffsetTime* tag such as "+02:00".
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

_EXIF_DATETIME_FORMATS = (
    "%Y:%m:%d %H:%M:%S",
    "%Y:%m:%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
)

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def parse_exif_offset(offset: Optional[str]) -> Optional[timezone]:
    """Parse an EXIF OffsetTime value ("+02:00", "-0500") into a timezone.

    Returns:
        timezone instance, or None when absent or malformed.
    """
    if not offset:
        return None
    match = _OFFSET_RE.match(offset.strip())
    if not match:
        return None
    sign = -1 if match.group(1) == "-" else 1
    hours, minutes = int(match.group(2)), int(match.group(3))
    if hours > 14 or minutes > 59:
        return None
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_exif_datetime(value: Optional[str], offset: Optional[str] = None) -> Optional[datetime]:
    """Parse an EXIF datetime string.

    Zeroed placeholders written by some cameras ("0000:00:00 00:00:00") and
    blank values are treated as absent.

    Args:
        value: Raw EXIF datetime string.
        offset: Optional matching OffsetTime* value; makes the result tz-aware.

    Returns:
        datetime, or None if the value is absent or unparseable.
    """
    if not value:
        return None
    text = value.strip().rstrip("\x00").strip()
    if not text or text.startswith("0000"):
        return None

    for fmt in _EXIF_DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue
    else:
        logger.debug("Unparseable EXIF datetime: %r", text)
        return None

    tz = parse_exif_offset(offset)
    if tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed

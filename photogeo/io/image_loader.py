"""Image input boundary for PhotoGeo.

Turns a file path or an http(s) URL into validated image bytes. Everything
past this boundary may assume it holds a non-empty, size-bounded payload
that Pillow recognizes as an image.
"""

from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from photogeo.errors import UnsupportedInputFailure

logger = logging.getLogger(__name__)

_URL_SCHEMES = ("http://", "https://")
_FETCH_USER_AGENT = "PhotoGeo/1.0 (image fetch)"


@dataclass(frozen=True)
class LoadedImage:
    """Validated image payload plus where it came from."""

    data: bytes
    source: str
    image_format: str
    image_id: str


def image_fingerprint(image_bytes: bytes) -> str:
    """SHA-256 hex digest identifying an image payload."""
    return hashlib.sha256(image_bytes).hexdigest()


def validate_image_bytes(image_bytes: bytes, max_bytes: int) -> str:
    """Check that bytes are a non-empty, size-bounded, recognizable image.

    Args:
        image_bytes: Candidate payload.
        max_bytes: Upper size limit.

    Returns:
        Pillow format name (e.g. "JPEG").

    Raises:
        UnsupportedInputFailure: Empty, too large, or not an image.
    """
    if not image_bytes:
        raise UnsupportedInputFailure("Image payload is empty")
    if len(image_bytes) > max_bytes:
        raise UnsupportedInputFailure(
            f"Image is {len(image_bytes)} bytes; the limit is {max_bytes}"
        )
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise UnsupportedInputFailure(f"Not a readable image: {exc}") from exc
    if not image_format:
        raise UnsupportedInputFailure("Image format could not be determined")
    return image_format


def _fetch_url(url: str, timeout: int, max_bytes: int) -> bytes:
    """Download an image URL, refusing bodies over max_bytes."""
    try:
        with requests.get(
            url,
            timeout=timeout,
            stream=True,
            headers={"User-Agent": _FETCH_USER_AGENT},
        ) as resp:
            if resp.status_code != 200:
                raise UnsupportedInputFailure(f"Image URL returned HTTP {resp.status_code}")
            chunks = []
            total = 0
            for chunk in resp.iter_content(chunk_size=65536):
                total += len(chunk)
                if total > max_bytes:
                    raise UnsupportedInputFailure(
                        f"Image at {url} exceeds the {max_bytes}-byte limit"
                    )
                chunks.append(chunk)
    except requests.exceptions.RequestException as exc:
        raise UnsupportedInputFailure(f"Could not fetch image URL: {exc}") from exc
    return b"".join(chunks)


def load_image(
    source: str | Path,
    max_bytes: int = 20 * 1024 * 1024,
    fetch_timeout: int = 20,
) -> LoadedImage:
    """Load and validate an image from a path or an http(s) URL.

    Args:
        source: Filesystem path or URL.
        max_bytes: Upper size limit.
        fetch_timeout: Timeout in seconds for URL downloads.

    Returns:
        LoadedImage with bytes, source label, format and SHA-256 id.

    Raises:
        UnsupportedInputFailure: Unreadable path/URL, empty, too large, or not an image.
    """
    source_str = str(source)
    if source_str.lower().startswith(_URL_SCHEMES):
        logger.info("Fetching image from %s", source_str)
        data = _fetch_url(source_str, fetch_timeout, max_bytes)
    else:
        path = Path(source_str).expanduser()
        if not path.is_file():
            raise UnsupportedInputFailure(f"Image file not found: {path}")
        size = path.stat().st_size
        if size > max_bytes:
            raise UnsupportedInputFailure(f"Image is {size} bytes; the limit is {max_bytes}")
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise UnsupportedInputFailure(f"Could not read {path}: {exc}") from exc

    image_format = validate_image_bytes(data, max_bytes)
    loaded = LoadedImage(
        data=data,
        source=source_str,
        image_format=image_format,
        image_id=image_fingerprint(data),
    )
    logger.debug("Loaded %s image (%d bytes) from %s", image_format, len(data), source_str)
    return loaded


def is_supported_image_file(path: Path, extensions: Optional[tuple] = None) -> bool:
    """Cheap extension filter used when scanning directories."""
    extensions = extensions or (".jpg", ".jpeg", ".png", ".webp", ".tif", ".tiff")
    return path.is_file() and path.suffix.lower() in extensions

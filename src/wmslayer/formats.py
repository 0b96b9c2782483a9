"""Image format negotiation between a WMS service and the local Pillow install."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Set

from PIL import Image

from .errors import UnsupportedFormat

logger = logging.getLogger(__name__)

# Compressed formats first, they travel faster.
PREFERRED_FORMATS = ("image/jpeg", "image/png", "image/gif")


def decodable_mime_types() -> Set[str]:
    """MIME types (lower case) of every format Pillow is able to open."""

    Image.init()
    return {Image.MIME[fmt].lower() for fmt in Image.OPEN if fmt in Image.MIME}


def _decodable(decodable: Optional[Iterable[str]]) -> Set[str]:
    if decodable is None:
        return decodable_mime_types()
    return {mime.lower() for mime in decodable}


def choose_format(offered: Sequence[str], decodable: Optional[Iterable[str]] = None) -> str:
    """
    Pick the image format to request from a service.

    Args:
        offered: GetMap output formats in the order the service advertises them
        decodable: MIME types the local image stack can decode; defaults to
            what Pillow reports

    Returns:
        The negotiated MIME type

    Raises:
        UnsupportedFormat: If none of the offered formats can be decoded locally
    """
    for mime in PREFERRED_FORMATS:
        if mime in offered:
            logger.debug("Negotiated preferred format %s", mime)
            return mime

    local = _decodable(decodable)
    for mime in offered:
        if mime.lower() in local:
            logger.debug("Negotiated fallback format %s", mime)
            return mime

    raise UnsupportedFormat(
        f"None of the formats offered by the service can be decoded locally: {', '.join(offered) or '(none)'}"
    )


def validate_format(
    mime_type: str,
    offered: Sequence[str],
    decodable: Optional[Iterable[str]] = None,
) -> str:
    """Check an explicit format override; it must be both offered and decodable."""

    if mime_type not in offered:
        raise UnsupportedFormat(f"WMS service doesn't offer mimetype '{mime_type}'")
    if mime_type.lower() not in _decodable(decodable):
        raise UnsupportedFormat(f"Pillow can't decode mimetype '{mime_type}'")
    return mime_type

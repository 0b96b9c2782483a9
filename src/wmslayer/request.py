"""
WMS GetMap request construction.
"""

from typing import Optional, Sequence

from .errors import MissingSpatialReference
from .types import BoundingBox, ImageSize

CRS_VERSION = "1.3.0"


def format_number(value: float) -> str:
    """
    Format a coordinate for a URL independently of the process locale.

    Integral values lose their fraction (``10`` rather than ``10.0``); other
    values use the shortest representation that round-trips.
    """
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def reference_system_key(version: str) -> str:
    """WMS 1.3.0 renamed the SRS parameter to CRS."""
    return "CRS" if version == CRS_VERSION else "SRS"


def build_get_map_url(
    resource: str,
    box: BoundingBox,
    image_size: ImageSize,
    layers: Sequence[str],
    styles: Sequence[str],
    mime_type: str,
    srs: Optional[str],
    version: str,
) -> str:
    """
    Create a WMS GetMap request URL.

    Parameter order is fixed so identical inputs always give identical URLs.
    Empty layer and style lists are passed through; the server decides
    whether to accept them.

    Args:
        resource: Online resource of the chosen transport binding
        box: Area the request should cover
        image_size: Size of the image in pixels
        layers: Selected layer names
        styles: Selected style names
        mime_type: Negotiated output format
        srs: Spatial reference system identifier, e.g. "EPSG:4326"
        version: WMS protocol version of the service

    Returns:
        The request URL

    Raises:
        MissingSpatialReference: If ``srs`` is not set
    """
    if not srs:
        raise MissingSpatialReference("Spatial reference system not set")

    url = resource
    if "?" not in url:
        url += "?"
    if not url.endswith(("&", "?")):
        url += "&"

    bbox = ",".join(format_number(v) for v in box.as_tuple())
    parts = [
        f"REQUEST=GetMap&BBOX={bbox}",
        f"&WIDTH={image_size.width}&Height={image_size.height}",
        f"&Layers={','.join(layers)}",
        f"&FORMAT={mime_type}",
        f"&{reference_system_key(version)}={srs}",
        f"&VERSION={version}",
        f"&Styles={','.join(styles)}",
    ]
    return url + "".join(parts)

"""wmslayer - draw a remote Web Map Service as a map layer."""

from ._version import __version__

from .cache import CacheEntry, CapabilityCache, default_cache
from .capabilities import WMSCapabilitiesParser, capabilities_url, fetch_capabilities
from .config import LayerConfig
from .errors import (
    ConfigurationError,
    MalformedHierarchy,
    MissingSpatialReference,
    NoTransportAvailable,
    ParseError,
    RenderDecodeFailure,
    RenderError,
    RenderTransportFailure,
    ServiceError,
    ServiceUnavailable,
    UnknownLayer,
    UnknownStyle,
    UnsupportedFormat,
    ValidationError,
    WMSLayerError,
)
from .formats import choose_format, decodable_mime_types, validate_format
from .hierarchy import find_layer, iter_layers, layer_exists, style_exists
from .layer import LayerState, WMSLayer
from .request import build_get_map_url
from .transforms import color_matrix, opacity
from .transport import choose_preferred
from .types import (
    BBoxTuple,
    BoundingBox,
    CapabilityModel,
    Endpoint,
    ImageSize,
    LayerStyle,
    ServerLayer,
    ServiceDescription,
    TransportBinding,
)

__all__ = [
    "__version__",
    "CacheEntry",
    "CapabilityCache",
    "default_cache",
    "WMSCapabilitiesParser",
    "capabilities_url",
    "fetch_capabilities",
    "LayerConfig",
    "ConfigurationError",
    "MalformedHierarchy",
    "MissingSpatialReference",
    "NoTransportAvailable",
    "ParseError",
    "RenderDecodeFailure",
    "RenderError",
    "RenderTransportFailure",
    "ServiceError",
    "ServiceUnavailable",
    "UnknownLayer",
    "UnknownStyle",
    "UnsupportedFormat",
    "ValidationError",
    "WMSLayerError",
    "choose_format",
    "decodable_mime_types",
    "validate_format",
    "find_layer",
    "iter_layers",
    "layer_exists",
    "style_exists",
    "LayerState",
    "WMSLayer",
    "build_get_map_url",
    "color_matrix",
    "opacity",
    "choose_preferred",
    "BBoxTuple",
    "BoundingBox",
    "CapabilityModel",
    "Endpoint",
    "ImageSize",
    "LayerStyle",
    "ServerLayer",
    "ServiceDescription",
    "TransportBinding",
]

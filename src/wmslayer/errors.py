"""Custom exception hierarchy for the WMS layer client."""

from typing import Optional


class WMSLayerError(Exception):
    """Base exception for the wmslayer library."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ServiceError(WMSLayerError):
    """Errors related to the remote map service."""
    pass


class ValidationError(WMSLayerError):
    """A requested name is not advertised by the service."""
    pass


class ConfigurationError(WMSLayerError):
    """Configuration and setup errors."""
    pass


class ParseError(WMSLayerError):
    """Capability data could not be turned into a model."""
    pass


class RenderError(WMSLayerError):
    """Failures while rendering a layer; subject to the continue-on-error policy."""
    pass


class ServiceUnavailable(ServiceError):
    """The capability document could not be fetched or parsed."""
    pass


class NoTransportAvailable(ServiceError):
    """The capability document advertises no GetMap binding."""
    pass


class UnknownLayer(ValidationError):
    pass


class UnknownStyle(ValidationError):
    pass


class UnsupportedFormat(ConfigurationError):
    """No usable image format, or an override the service or Pillow cannot handle."""
    pass


class MissingSpatialReference(ConfigurationError):
    pass


class MalformedHierarchy(ParseError):
    """The layer tree revisits a node."""
    pass


class RenderTransportFailure(RenderError):
    """Network error, timeout, HTTP error status or a non-image response."""
    pass


class RenderDecodeFailure(RenderError):
    """The response claimed to be an image but could not be decoded."""
    pass

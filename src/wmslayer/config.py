"""Configuration helpers for constructing WMS layers."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, List, Optional

import requests
from pydantic import BaseModel, Field

from .cache import CapabilityCache
from .layer import DEFAULT_CACHE_TTL, DEFAULT_TIMEOUT_MS, WMSLayer


class LayerConfig(BaseModel):
    """Serializable configuration describing how to build a WMS layer."""

    name: str = Field(..., description="Display name of the layer")
    url: str = Field(..., min_length=1, description="WMS service URL")
    cache_ttl: float = Field(
        DEFAULT_CACHE_TTL.total_seconds(),
        ge=0,
        description="Seconds a fetched service description stays cached",
    )
    proxy: Optional[str] = Field(None, description="Proxy URL for all requests")
    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0, description="Request timeout in milliseconds")
    continue_on_error: bool = Field(
        True, description="Skip the layer instead of raising when a render request fails"
    )
    spatial_reference_system: Optional[str] = Field(
        None, description="Reference system for GetMap requests, e.g. EPSG:4326"
    )
    image_format: Optional[str] = Field(
        None, description="Image format to request instead of the negotiated one"
    )
    layers: List[str] = Field(default_factory=list, description="Server layers to draw, bottom first")
    styles: List[str] = Field(default_factory=list, description="Styles to request")

    @classmethod
    def from_url(cls, url: str, name: Optional[str] = None, **kwargs: Any) -> "LayerConfig":
        """Convenience constructor mirroring high-level usage patterns."""

        return cls(name=name or url, url=url, **kwargs)

    def build_layer(
        self,
        cache: Optional[CapabilityCache] = None,
        session: Optional[requests.Session] = None,
    ) -> WMSLayer:
        """
        Create and initialise the layer described by this configuration.

        Raises:
            ServiceUnavailable: If the service description can't be loaded
            UnknownLayer, UnknownStyle: For names the service doesn't advertise
            UnsupportedFormat: If ``image_format`` can't be used
        """
        layer = WMSLayer(
            self.name,
            cache_ttl=timedelta(seconds=self.cache_ttl),
            proxy=self.proxy,
            cache=cache,
            session=session,
        )
        layer.timeout = self.timeout_ms
        layer.continue_on_error = self.continue_on_error
        layer.spatial_reference_system = self.spatial_reference_system
        layer.url = self.url

        if self.image_format:
            layer.set_image_format(self.image_format)
        for name in self.layers:
            layer.add_layer(name)
        for name in self.styles:
            layer.add_style(name)
        return layer

"""WMS layer: a remote Web Map Service drawn as a single map layer."""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from io import BytesIO
from typing import Any, List, Optional, Tuple, Union

import requests
from PIL import Image

from .cache import TTL, CapabilityCache, default_cache
from .errors import (
    RenderDecodeFailure,
    RenderError,
    RenderTransportFailure,
    ServiceUnavailable,
    UnknownLayer,
    UnknownStyle,
)
from .formats import choose_format, validate_format
from .hierarchy import layer_exists, style_exists
from .request import build_get_map_url
from .transforms import ColorTransform
from .transport import choose_preferred
from .types import (
    BBoxTuple,
    BoundingBox,
    CapabilityModel,
    Endpoint,
    ImageSize,
    ServerLayer,
    ServiceDescription,
    TransportBinding,
)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = timedelta(hours=24)
DEFAULT_TIMEOUT_MS = 10000


class LayerState(str, Enum):
    """Lifecycle of a layer with respect to its endpoint."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class WMSLayer:
    """
    Map layer backed by a WMS server.

    Assigning a non-empty ``url`` downloads (or takes from the capability
    cache) the service description and negotiates an image format. Layers and
    styles must then be added by name before rendering; names are checked
    against the advertised hierarchy and are case sensitive.

    Example::

        layer = WMSLayer("Demis WMS", "http://www2.demis.nl/wms/wms.asp?wms=WorldMap")
        layer.add_layer("Bathymetry")
        layer.add_layer("Countries")
        layer.spatial_reference_system = "EPSG:4326"
        image = layer.render((-180, -90, 180, 90), (500, 250))
    """

    def __init__(
        self,
        name: str,
        url: str = "",
        cache_ttl: TTL = DEFAULT_CACHE_TTL,
        proxy: Optional[str] = None,
        *,
        cache: Optional[CapabilityCache] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.name = name
        self.cache_ttl = cache_ttl
        self.proxy = proxy
        self.cache = cache if cache is not None else default_cache
        self.session = session if session is not None else requests.Session()

        # Milliseconds
        self.timeout: int = DEFAULT_TIMEOUT_MS
        self.credentials: Any = None
        self.continue_on_error: bool = True
        self.spatial_reference_system: Optional[str] = None
        self.color_transform: Optional[ColorTransform] = None
        self.last_error: Optional[RenderError] = None

        self._state = LayerState.UNINITIALIZED
        self._capabilities: Optional[CapabilityModel] = None
        self._mime_type = ""
        self._layers: List[str] = []
        self._styles: List[str] = []
        self._url = ""
        self.url = url

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, url={self._url!r}, state={self._state.value})"

    # ------------------------------------------------------------------
    # Endpoint and initialisation
    # ------------------------------------------------------------------
    @property
    def url(self) -> str:
        return self._url

    @url.setter
    def url(self, value: Optional[str]) -> None:
        self._url = value or ""
        self._capabilities = None
        if not self._url:
            self._state = LayerState.UNINITIALIZED
            return
        self._initialize()

    @property
    def endpoint(self) -> Optional[Endpoint]:
        if not self._url:
            return None
        return Endpoint(url=self._url, proxy=self.proxy)

    @property
    def state(self) -> LayerState:
        return self._state

    def _initialize(self) -> None:
        self._state = LayerState.INITIALIZING
        logger.info("Initializing WMS layer '%s' from %s", self.name, self._url)
        try:
            capabilities = self.cache.fetch_or_get(
                Endpoint(url=self._url, proxy=self.proxy),
                self.cache_ttl,
                timeout=self.timeout / 1000.0,
                auth=self.credentials,
                session=self.session,
            )
            mime_type = choose_format(capabilities.output_formats)
        except Exception:
            self._state = LayerState.UNINITIALIZED
            raise

        self._capabilities = capabilities
        self._mime_type = mime_type
        self._layers = []
        self._styles = []
        self._state = LayerState.READY

    def _require_capabilities(self) -> CapabilityModel:
        if self._capabilities is None:
            raise ServiceUnavailable(f"WMS layer '{self.name}' has no service description; set a url first")
        return self._capabilities

    # ------------------------------------------------------------------
    # Layer and style selection
    # ------------------------------------------------------------------
    @property
    def layer_list(self) -> List[str]:
        return list(self._layers)

    def add_layer(self, name: str) -> None:
        """
        Add a layer to the WMS request.

        Raises:
            UnknownLayer: If the service does not advertise ``name``
        """
        if not layer_exists(self._require_capabilities().root_layer, name):
            raise UnknownLayer(f"Cannot add WMS layer '{name}' - unknown layer name")
        if name not in self._layers:
            self._layers.append(name)

    def remove_layer(self, name: str) -> None:
        if name in self._layers:
            self._layers.remove(name)

    def remove_layer_at(self, index: int) -> None:
        del self._layers[index]

    def remove_all_layers(self) -> None:
        self._layers.clear()

    @property
    def style_list(self) -> List[str]:
        return list(self._styles)

    def add_style(self, name: str) -> None:
        """
        Add a style to the WMS request.

        Raises:
            UnknownStyle: If no advertised layer offers a style called ``name``
        """
        if not style_exists(self._require_capabilities().root_layer, name):
            raise UnknownStyle(f"Cannot add WMS style '{name}' - unknown style name")
        if name not in self._styles:
            self._styles.append(name)

    def remove_style(self, name: str) -> None:
        if name in self._styles:
            self._styles.remove(name)

    def remove_style_at(self, index: int) -> None:
        del self._styles[index]

    def remove_all_styles(self) -> None:
        self._styles.clear()

    # ------------------------------------------------------------------
    # Image format
    # ------------------------------------------------------------------
    @property
    def mime_type(self) -> str:
        return self._mime_type

    @mime_type.setter
    def mime_type(self, value: str) -> None:
        self.set_image_format(value)

    def set_image_format(self, mime_type: str) -> None:
        """
        Override the negotiated image format.

        Raises:
            UnsupportedFormat: If the service doesn't offer ``mime_type`` or
                Pillow can't decode it
        """
        self._mime_type = validate_format(mime_type, self._require_capabilities().output_formats)

    # ------------------------------------------------------------------
    # Service description
    # ------------------------------------------------------------------
    @property
    def root_layer(self) -> ServerLayer:
        return self._require_capabilities().root_layer

    @property
    def output_formats(self) -> List[str]:
        return list(self._require_capabilities().output_formats)

    @property
    def service_description(self) -> ServiceDescription:
        return self._require_capabilities().service

    @property
    def version(self) -> str:
        return self._require_capabilities().version

    @property
    def envelope(self) -> Optional[BoundingBox]:
        """Geographic extent advertised for the root layer."""
        return self._require_capabilities().extent

    @property
    def layer_title(self) -> Optional[str]:
        return self.root_layer.name

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def get_request_url(
        self,
        view_box: Union[BoundingBox, BBoxTuple],
        image_size: Union[ImageSize, Tuple[int, int]],
    ) -> str:
        """URL of the GetMap request for the current settings."""
        return self._prepare_request(view_box, image_size)[1]

    def render(
        self,
        view_box: Union[BoundingBox, BBoxTuple],
        image_size: Union[ImageSize, Tuple[int, int]],
    ) -> Optional[Image.Image]:
        """
        Fetch and decode the map image for ``view_box``.

        Returns:
            The decoded image, passed through ``color_transform`` when one is
            set, or None when the request failed and ``continue_on_error`` is on

        Raises:
            RenderTransportFailure: Network error, timeout, HTTP error status or
                non-image response, when ``continue_on_error`` is off
            RenderDecodeFailure: Undecodable image, when ``continue_on_error``
                is off
            MissingSpatialReference, NoTransportAvailable, ServiceUnavailable:
                Always, whatever ``continue_on_error`` says
        """
        binding, url = self._prepare_request(view_box, image_size)
        try:
            image = self._fetch_image(binding, url)
        except RenderError as exc:
            if not self.continue_on_error:
                raise
            self.last_error = exc
            logger.warning("Skipping WMS layer '%s': %s", self.name, exc)
            return None

        self.last_error = None
        if self.color_transform is not None:
            image = self.color_transform(image)
        return image

    def _prepare_request(
        self,
        view_box: Union[BoundingBox, BBoxTuple],
        image_size: Union[ImageSize, Tuple[int, int]],
    ) -> Tuple[TransportBinding, str]:
        capabilities = self._require_capabilities()
        binding = choose_preferred(capabilities.get_map_bindings)
        box = view_box if isinstance(view_box, BoundingBox) else BoundingBox.from_tuple(view_box)
        size = image_size if isinstance(image_size, ImageSize) else ImageSize.from_tuple(image_size)
        url = build_get_map_url(
            binding.resource,
            box,
            size,
            self._layers,
            self._styles,
            self._mime_type,
            self.spatial_reference_system,
            capabilities.version,
        )
        return binding, url

    def _fetch_image(self, binding: TransportBinding, url: str) -> Image.Image:
        logger.debug("WMS layer '%s' requesting %s %s", self.name, binding.method.upper(), url)
        try:
            response = self.session.request(
                binding.method.upper(),
                url,
                timeout=self.timeout / 1000.0,
                auth=self.credentials,
                proxies=Endpoint(url=self._url, proxy=self.proxy).proxies,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RenderTransportFailure(
                f"There was a problem connecting to the WMS server when rendering layer '{self.name}': {exc}",
                cause=exc,
            ) from exc

        content_type = response.headers.get("Content-Type", "")
        if not content_type.lower().startswith("image"):
            raise RenderTransportFailure(
                f"WMS server returned '{content_type or 'no content type'}' instead of an image "
                f"for layer '{self.name}'"
            )

        try:
            image = Image.open(BytesIO(response.content))
            image.load()
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise RenderDecodeFailure(
                f"There was a problem decoding the image of layer '{self.name}': {exc}", cause=exc
            ) from exc
        return image

    def clone(self) -> "WMSLayer":
        """New layer on the same service; selections are not copied."""
        return WMSLayer(
            self.name,
            self._url,
            self.cache_ttl,
            self.proxy,
            cache=self.cache,
            session=self.session,
        )

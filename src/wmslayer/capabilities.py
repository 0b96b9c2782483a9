"""WMS GetCapabilities retrieval and XML parsing."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

import requests
import xml.etree.ElementTree as ET

from .errors import ParseError
from .types import (
    BoundingBox,
    CapabilityModel,
    Endpoint,
    LayerStyle,
    ServerLayer,
    ServiceDescription,
    TransportBinding,
)

logger = logging.getLogger(__name__)

XLINK_HREF = "{http://www.w3.org/1999/xlink}href"
DEFAULT_VERSION = "1.1.1"


class WMSCapabilitiesParser:
    """Parser for WMS 1.1.x and 1.3.0 GetCapabilities documents."""

    def __init__(self, base_url: str):
        self.base_url = base_url

    def parse_capabilities(self, xml_content: Union[str, bytes]) -> CapabilityModel:
        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as exc:
            raise ParseError(f"Invalid XML content: {exc}", cause=exc) from exc

        self._strip_namespaces(root)
        if root.tag == "ServiceExceptionReport":
            message = self._get_text(root, "ServiceException") or "unknown error"
            raise ParseError(f"Service returned an exception report: {message}")

        version = root.get("version")
        if not version:
            logger.debug("Capabilities of %s carry no version, assuming %s", self.base_url, DEFAULT_VERSION)
            version = DEFAULT_VERSION

        layer_elem = root.find("Capability/Layer")
        if layer_elem is None:
            raise ParseError("No root layer found in capabilities")

        get_map = root.find("Capability/Request/GetMap")

        return CapabilityModel(
            version=version,
            root_layer=self._parse_layer(layer_elem, None),
            output_formats=self._parse_formats(get_map),
            get_map_bindings=self._parse_bindings(get_map),
            service=self._parse_service(root.find("Service")),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _strip_namespaces(root: ET.Element) -> None:
        # 1.3.0 puts everything in the wms namespace, 1.1.1 uses none.
        for elem in root.iter():
            if isinstance(elem.tag, str) and "}" in elem.tag:
                elem.tag = elem.tag.split("}", 1)[1]

    def _get_text(self, element: Optional[ET.Element], xpath: str) -> Optional[str]:
        if element is None:
            return None
        elem = element.find(xpath)
        return elem.text.strip() if elem is not None and elem.text else None

    def _get_href(self, element: Optional[ET.Element], xpath: str) -> Optional[str]:
        if element is None:
            return None
        elem = element.find(xpath)
        if elem is None:
            return None
        return elem.get(XLINK_HREF) or elem.get("href")

    def _parse_service(self, service_elem: Optional[ET.Element]) -> ServiceDescription:
        keywords: List[str] = []
        if service_elem is not None:
            for kw_elem in service_elem.findall("KeywordList/Keyword"):
                if kw_elem.text:
                    keywords.append(kw_elem.text.strip())

        return ServiceDescription(
            title=self._get_text(service_elem, "Title") or "WMS Service",
            abstract=self._get_text(service_elem, "Abstract"),
            keywords=keywords,
            online_resource=self._get_href(service_elem, "OnlineResource"),
            contact_person=self._get_text(
                service_elem, "ContactInformation/ContactPersonPrimary/ContactPerson"
            ),
            contact_organization=self._get_text(
                service_elem, "ContactInformation/ContactPersonPrimary/ContactOrganization"
            ),
            fees=self._get_text(service_elem, "Fees"),
            access_constraints=self._get_text(service_elem, "AccessConstraints"),
        )

    def _parse_formats(self, get_map: Optional[ET.Element]) -> List[str]:
        if get_map is None:
            return []
        return [elem.text.strip() for elem in get_map.findall("Format") if elem.text and elem.text.strip()]

    def _parse_bindings(self, get_map: Optional[ET.Element]) -> List[TransportBinding]:
        bindings: List[TransportBinding] = []
        if get_map is None:
            return bindings
        for http_elem in get_map.findall("DCPType/HTTP"):
            for method_elem in http_elem:
                href = self._get_href(method_elem, "OnlineResource")
                if not href:
                    logger.debug("Skipping GetMap %s binding without online resource", method_elem.tag)
                    continue
                bindings.append(TransportBinding(method=method_elem.tag, resource=href))
        return bindings

    def _parse_layer(self, elem: ET.Element, parent: Optional[ServerLayer]) -> ServerLayer:
        styles: List[LayerStyle] = []
        for style_elem in elem.findall("Style"):
            style_name = self._get_text(style_elem, "Name")
            if style_name:
                styles.append(LayerStyle(name=style_name, title=self._get_text(style_elem, "Title")))

        bbox = self._parse_latlon_bbox(elem)
        if bbox is None and parent is not None:
            bbox = parent.latlon_bbox

        layer = ServerLayer(
            name=self._get_text(elem, "Name"),
            title=self._get_text(elem, "Title"),
            abstract=self._get_text(elem, "Abstract"),
            styles=styles,
            latlon_bbox=bbox,
        )
        layer.children = [self._parse_layer(child, layer) for child in elem.findall("Layer")]
        return layer

    def _parse_latlon_bbox(self, elem: ET.Element) -> Optional[BoundingBox]:
        try:
            llbbox = elem.find("LatLonBoundingBox")
            if llbbox is not None:
                return BoundingBox(
                    min_x=float(llbbox.attrib["minx"]),
                    min_y=float(llbbox.attrib["miny"]),
                    max_x=float(llbbox.attrib["maxx"]),
                    max_y=float(llbbox.attrib["maxy"]),
                )
            geo_bbox = elem.find("EX_GeographicBoundingBox")
            if geo_bbox is not None:
                return BoundingBox(
                    min_x=float(self._get_text(geo_bbox, "westBoundLongitude") or ""),
                    min_y=float(self._get_text(geo_bbox, "southBoundLatitude") or ""),
                    max_x=float(self._get_text(geo_bbox, "eastBoundLongitude") or ""),
                    max_y=float(self._get_text(geo_bbox, "northBoundLatitude") or ""),
                )
        except (KeyError, ValueError):
            logger.debug("Ignoring malformed geographic extent of layer '%s'", self._get_text(elem, "Name"))
        return None


def capabilities_url(url: str, version: Optional[str] = None) -> str:
    """Complete a service URL into a GetCapabilities request."""

    lower = url.lower()
    params = []
    if "service=" not in lower:
        params.append("SERVICE=WMS")
    if "request=" not in lower:
        params.append("REQUEST=GetCapabilities")
    if version and "version=" not in lower:
        params.append(f"VERSION={version}")
    if not params:
        return url

    if url.endswith(("?", "&")):
        separator = ""
    else:
        separator = "&" if "?" in url else "?"
    return url + separator + "&".join(params)


def fetch_capabilities(
    endpoint: Endpoint,
    *,
    timeout: Optional[float] = None,
    auth: Any = None,
    session: Optional[requests.Session] = None,
    version: Optional[str] = None,
) -> CapabilityModel:
    """
    Download and parse the capability document of a WMS endpoint.

    Args:
        endpoint: Service to query
        timeout: Timeout in seconds
        auth: Any value accepted by ``requests`` as ``auth``
        session: Session to use instead of a one-off request
        version: Protocol version to ask for, if the URL does not pin one

    Raises:
        requests.RequestException: For network errors and HTTP error statuses
        ParseError: If the response is not a usable capability document
    """
    url = capabilities_url(endpoint.url, version)
    logger.debug("Fetching capabilities from %s", url)

    http = session or requests
    response = http.get(url, timeout=timeout, auth=auth, proxies=endpoint.proxies)
    response.raise_for_status()
    return WMSCapabilitiesParser(endpoint.url).parse_capabilities(response.content)

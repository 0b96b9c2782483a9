"""
Shared test configuration, fixtures, and markers for wmslayer tests.
"""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image
from pytest_httpserver import HTTPServer

from wmslayer.cache import CapabilityCache
from wmslayer.types import (
    BoundingBox,
    CapabilityModel,
    LayerStyle,
    ServerLayer,
    ServiceDescription,
    TransportBinding,
)


def pytest_configure(config):
    """Configure test markers."""
    config.addinivalue_line("markers", "unit: marks unit tests (fast, pure logic)")
    config.addinivalue_line("markers", "integration: marks tests talking to a local HTTP server")
    config.addinivalue_line("markers", "property: marks property-based tests")


WMS_111_CAPABILITIES = """<?xml version="1.0" encoding="UTF-8"?>
<WMT_MS_Capabilities version="1.1.1" xmlns:xlink="http://www.w3.org/1999/xlink">
  <Service>
    <Name>OGC:WMS</Name>
    <Title>Demo Map Server</Title>
    <Abstract>Roads and rivers of nowhere</Abstract>
    <KeywordList>
      <Keyword>roads</Keyword>
      <Keyword>hydrography</Keyword>
    </KeywordList>
    <OnlineResource xlink:href="http://example.org/wms"/>
    <ContactInformation>
      <ContactPersonPrimary>
        <ContactPerson>Jo Mapper</ContactPerson>
        <ContactOrganization>Example Org</ContactOrganization>
      </ContactPersonPrimary>
    </ContactInformation>
    <Fees>none</Fees>
    <AccessConstraints>none</AccessConstraints>
  </Service>
  <Capability>
    <Request>
      <GetMap>
        <Format>image/png</Format>
        <Format>image/jpeg</Format>
        <Format>image/tiff</Format>
        <DCPType>
          <HTTP>
            <Get><OnlineResource xlink:href="http://example.org/wms?"/></Get>
            <Post><OnlineResource xlink:href="http://example.org/wms/post"/></Post>
          </HTTP>
        </DCPType>
      </GetMap>
    </Request>
    <Layer>
      <Name>world</Name>
      <Title>World</Title>
      <LatLonBoundingBox minx="-180" miny="-90" maxx="180" maxy="90"/>
      <Style><Name>default</Name><Title>Default</Title></Style>
      <Layer>
        <Name>roads</Name>
        <Title>Roads</Title>
        <Style><Name>highways</Name></Style>
      </Layer>
      <Layer>
        <Title>Water</Title>
        <Layer>
          <Name>rivers</Name>
          <Title>Rivers</Title>
          <LatLonBoundingBox minx="-10" miny="35" maxx="30" maxy="60"/>
          <Style><Name>blue</Name></Style>
        </Layer>
      </Layer>
    </Layer>
  </Capability>
</WMT_MS_Capabilities>
"""

WMS_130_CAPABILITIES = """<?xml version="1.0" encoding="UTF-8"?>
<WMS_Capabilities version="1.3.0" xmlns="http://www.opengis.net/wms"
                  xmlns:xlink="http://www.w3.org/1999/xlink">
  <Service>
    <Name>WMS</Name>
    <Title>Demo 1.3.0</Title>
  </Service>
  <Capability>
    <Request>
      <GetMap>
        <Format>image/gif</Format>
        <DCPType>
          <HTTP>
            <Get><OnlineResource xlink:type="simple" xlink:href="http://example.org/wms13?map=demo"/></Get>
          </HTTP>
        </DCPType>
      </GetMap>
    </Request>
    <Layer>
      <Name>root</Name>
      <Title>Root</Title>
      <EX_GeographicBoundingBox>
        <westBoundLongitude>-5.5</westBoundLongitude>
        <eastBoundLongitude>2.0</eastBoundLongitude>
        <southBoundLatitude>49.5</southBoundLatitude>
        <northBoundLatitude>56.0</northBoundLatitude>
      </EX_GeographicBoundingBox>
      <Layer>
        <Name>parcels</Name>
        <Title>Parcels</Title>
      </Layer>
    </Layer>
  </Capability>
</WMS_Capabilities>
"""


def make_capabilities(
    version="1.1.1",
    output_formats=("image/png", "image/jpeg"),
    bindings=(("Get", "http://example.org/wms"),),
):
    """Capability model with a small roads/rivers hierarchy."""
    rivers = ServerLayer(name="rivers", title="Rivers", styles=[LayerStyle(name="blue")])
    water = ServerLayer(title="Water", children=[rivers])
    roads = ServerLayer(name="roads", title="Roads", styles=[LayerStyle(name="highways")])
    root = ServerLayer(
        name="world",
        title="World",
        styles=[LayerStyle(name="default")],
        children=[roads, water],
        latlon_bbox=BoundingBox(min_x=-180, min_y=-90, max_x=180, max_y=90),
    )
    return CapabilityModel(
        version=version,
        root_layer=root,
        output_formats=list(output_formats),
        get_map_bindings=[TransportBinding(method=m, resource=r) for m, r in bindings],
        service=ServiceDescription(title="Demo Map Server", abstract="Roads and rivers of nowhere"),
    )


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingFetcher:
    """Capability fetcher returning a fixed model and recording every call."""

    def __init__(self, model=None, error=None):
        self.model = model or make_capabilities()
        self.error = error
        self.calls = []

    def __call__(self, endpoint, **options):
        self.calls.append((endpoint, options))
        if self.error is not None:
            raise self.error
        return self.model


def image_bytes(fmt="PNG", size=(4, 4), color=(255, 0, 0, 255)):
    mode = "RGBA" if fmt == "PNG" else "RGB"
    image = Image.new(mode, size, color if mode == "RGBA" else color[:3])
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def image_response(content=None, content_type="image/png", status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.content = image_bytes() if content is None else content
    response.headers = {"Content-Type": content_type}
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def capabilities():
    return make_capabilities()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return CountingFetcher()


@pytest.fixture
def cache(fetcher, clock):
    """Isolated capability cache so tests never share the process-wide one."""
    return CapabilityCache(fetcher=fetcher, clock=clock)


@pytest.fixture
def session():
    """Mocked requests session answering every GetMap with a small PNG."""
    mock_session = MagicMock()
    mock_session.request.return_value = image_response()
    return mock_session


@pytest.fixture
def fake_server():
    """Programmable local HTTP server."""
    with HTTPServer(host="127.0.0.1", port=0) as server:
        yield server

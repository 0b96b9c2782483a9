"""
Data models describing a WMS service and the requests sent to it.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import MalformedHierarchy

BBoxTuple = Tuple[float, float, float, float]


class BoundingBox(BaseModel):
    """Bounding box representation."""
    min_x: float = Field(..., description="Minimum X coordinate")
    min_y: float = Field(..., description="Minimum Y coordinate")
    max_x: float = Field(..., description="Maximum X coordinate")
    max_y: float = Field(..., description="Maximum Y coordinate")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode='after')
    def validate_coordinates(self):
        """Validate that min coordinates do not exceed max coordinates."""
        if self.min_x > self.max_x:
            raise ValueError('min_x must not exceed max_x')
        if self.min_y > self.max_y:
            raise ValueError('min_y must not exceed max_y')
        return self

    @classmethod
    def from_tuple(cls, bbox: BBoxTuple) -> "BoundingBox":
        """Create BoundingBox from a (min_x, min_y, max_x, max_y) tuple."""
        return cls(min_x=bbox[0], min_y=bbox[1], max_x=bbox[2], max_y=bbox[3])

    def as_tuple(self) -> BBoxTuple:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


class ImageSize(BaseModel):
    """Pixel dimensions of a requested map image."""
    width: int = Field(..., gt=0, description="Image width in pixels")
    height: int = Field(..., gt=0, description="Image height in pixels")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_tuple(cls, size: Tuple[int, int]) -> "ImageSize":
        return cls(width=size[0], height=size[1])


class Endpoint(BaseModel):
    """Identity of a WMS service: its URL plus the proxy used to reach it."""
    url: str = Field(..., min_length=1, description="Service URL")
    proxy: Optional[str] = Field(None, description="Proxy URL used for every request")

    model_config = ConfigDict(frozen=True)

    @property
    def proxies(self) -> Optional[dict]:
        """Proxy mapping in the shape ``requests`` expects."""
        if not self.proxy:
            return None
        return {"http": self.proxy, "https": self.proxy}


class LayerStyle(BaseModel):
    """A named style advertised for a server layer."""
    name: str
    title: Optional[str] = None


class ServerLayer(BaseModel):
    """A node of the server's advertised layer hierarchy."""
    name: Optional[str] = Field(None, description="Layer name; container layers may have none")
    title: Optional[str] = None
    abstract: Optional[str] = None
    styles: List[LayerStyle] = Field(default_factory=list)
    children: List["ServerLayer"] = Field(default_factory=list)
    latlon_bbox: Optional[BoundingBox] = Field(None, description="Geographic extent in lon/lat")


ServerLayer.model_rebuild()


class TransportBinding(BaseModel):
    """A (method, online resource) pair through which GetMap may be invoked."""
    method: str = Field(..., description="Transport tag as advertised, e.g. 'Get' or 'Post'")
    resource: str = Field(..., description="Online resource URL")


class ServiceDescription(BaseModel):
    """Service metadata from the capability document."""
    title: str = "WMS Service"
    abstract: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    online_resource: Optional[str] = None
    contact_person: Optional[str] = None
    contact_organization: Optional[str] = None
    fees: Optional[str] = None
    access_constraints: Optional[str] = None


class CapabilityModel(BaseModel):
    """Parsed WMS capability document. Treated as read-only once built."""
    version: str
    root_layer: ServerLayer
    output_formats: List[str] = Field(default_factory=list)
    get_map_bindings: List[TransportBinding] = Field(default_factory=list)
    service: ServiceDescription = Field(default_factory=ServiceDescription)

    @model_validator(mode='after')
    def validate_hierarchy(self):
        """Reject layer graphs that are not trees."""
        seen = set()
        stack = [self.root_layer]
        while stack:
            layer = stack.pop()
            if id(layer) in seen:
                raise MalformedHierarchy(
                    f"Layer hierarchy revisits layer '{layer.name or layer.title}'"
                )
            seen.add(id(layer))
            stack.extend(layer.children)
        return self

    @property
    def extent(self) -> Optional[BoundingBox]:
        return self.root_layer.latlon_bbox

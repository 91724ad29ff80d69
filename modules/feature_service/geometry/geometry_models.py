"""Geometry Value Models

Tagged union of the geometry shapes a snapshot row can carry. Every decoded
geometry is exactly one of these variants; callers branch on the variant
type rather than on which JSON members happen to be present.
"""

from enum import Enum
from typing import List, Literal, Tuple, Union

from pydantic import BaseModel, Field

Coordinate = Tuple[float, float]
Ring = List[Coordinate]


class GeometryType(str, Enum):
    """Discriminator values of the geometry variants."""
    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"
    UNSUPPORTED = "Unsupported"
    MALFORMED = "Malformed"


class _GeometryBase(BaseModel):
    model_config = {"frozen": True}
    
    @property
    def is_spatial(self) -> bool:
        """Whether the geometry takes part in spatial math."""
        return True


class PointGeometry(_GeometryBase):
    """Single position."""
    type: Literal[GeometryType.POINT] = GeometryType.POINT
    coordinates: Coordinate


class LineStringGeometry(_GeometryBase):
    """Ordered sequence of positions."""
    type: Literal[GeometryType.LINE_STRING] = GeometryType.LINE_STRING
    coordinates: List[Coordinate] = Field(..., min_length=2)


class PolygonGeometry(_GeometryBase):
    """Polygon as ordered rings; the first ring is the outer boundary, the rest are holes.
    
    Ring closure and orientation are not validated here.
    """
    type: Literal[GeometryType.POLYGON] = GeometryType.POLYGON
    coordinates: List[Ring] = Field(..., min_length=1)
    
    @property
    def exterior(self) -> Ring:
        return self.coordinates[0]
    
    @property
    def holes(self) -> List[Ring]:
        return self.coordinates[1:]


class MultiPolygonGeometry(_GeometryBase):
    """Ordered sequence of polygons."""
    type: Literal[GeometryType.MULTI_POLYGON] = GeometryType.MULTI_POLYGON
    coordinates: List[List[Ring]] = Field(..., min_length=1)
    
    @property
    def polygons(self) -> List[PolygonGeometry]:
        return [PolygonGeometry(coordinates=rings) for rings in self.coordinates]
    
    @property
    def rings(self) -> List[Ring]:
        """All rings of all member polygons, flattened in order."""
        return [ring for rings in self.coordinates for ring in rings]


class UnsupportedGeometry(_GeometryBase):
    """Well-formed payload of a geometry type this service does not handle."""
    type: Literal[GeometryType.UNSUPPORTED] = GeometryType.UNSUPPORTED
    source_type: str
    
    @property
    def is_spatial(self) -> bool:
        return False


class MalformedGeometry(_GeometryBase):
    """Payload that could not be decoded; the feature keeps its attributes only."""
    type: Literal[GeometryType.MALFORMED] = GeometryType.MALFORMED
    reason: str
    
    @property
    def is_spatial(self) -> bool:
        return False


Geometry = Union[
    PointGeometry,
    LineStringGeometry,
    PolygonGeometry,
    MultiPolygonGeometry,
    UnsupportedGeometry,
    MalformedGeometry,
]

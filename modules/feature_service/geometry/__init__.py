"""Geometry handling for the feature service.

Components:
- Geometry variants: PointGeometry, LineStringGeometry, PolygonGeometry,
  MultiPolygonGeometry, UnsupportedGeometry, MalformedGeometry
- GeometryCodec: decode/encode row geometry, shapely conversion and
  Web Mercator projection
"""

from .geometry_models import (
    Coordinate, Geometry, GeometryType, PointGeometry, LineStringGeometry,
    PolygonGeometry, MultiPolygonGeometry, UnsupportedGeometry, MalformedGeometry,
)
from .geometry_codec import (
    GeometryCodec, EARTH_RADIUS_METERS, WEB_MERCATOR_WKID,
)

__all__ = [
    'Coordinate', 'Geometry', 'GeometryType', 'PointGeometry', 'LineStringGeometry',
    'PolygonGeometry', 'MultiPolygonGeometry', 'UnsupportedGeometry', 'MalformedGeometry',
    'GeometryCodec', 'EARTH_RADIUS_METERS', 'WEB_MERCATOR_WKID',
]

"""Geometry Codec

Decodes the GeoJSON-style geometry cell of a snapshot row into a typed
geometry value, encodes it back, converts it to shapely for spatial math and
projects geographic coordinates onto spherical Web Mercator.
"""

import json
import logging
import math
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError
from shapely.geometry import (
    LineString as ShapelyLineString,
    MultiPolygon as ShapelyMultiPolygon,
    Point as ShapelyPoint,
    Polygon as ShapelyPolygon,
)
from shapely.geometry.base import BaseGeometry

from geoapi.exceptions import MalformedGeometryError
from .geometry_models import (
    Coordinate, Geometry, GeometryType, LineStringGeometry, MultiPolygonGeometry,
    PointGeometry, PolygonGeometry, Ring, UnsupportedGeometry,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6378137.0
WEB_MERCATOR_WKID = 102100


class GeometryCodec:
    """Serialized geometry <-> typed geometry, plus forward projection.
    
    Unknown geometry types decode to ``UnsupportedGeometry`` instead of
    failing so the feature's attributes survive; payloads that are not JSON
    objects, or lack the members a known type needs, raise
    ``MalformedGeometryError``.
    """
    
    def __init__(self, radius: float = EARTH_RADIUS_METERS):
        self.radius = radius
        self._builders: Dict[str, Callable[[Any], Geometry]] = {
            GeometryType.POINT.value: self._build_point,
            GeometryType.LINE_STRING.value: self._build_line_string,
            GeometryType.POLYGON.value: self._build_polygon,
            GeometryType.MULTI_POLYGON.value: self._build_multi_polygon,
        }
    
    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------
    
    def decode(self, raw: Optional[str]) -> Geometry:
        """Decode a serialized geometry.
        
        Args:
            raw: JSON text such as ``{"type": "Polygon", "coordinates": [...]}``
            
        Returns:
            The typed geometry value
            
        Raises:
            MalformedGeometryError: If the payload cannot be decoded
        """
        if raw is None or not str(raw).strip():
            raise MalformedGeometryError("Empty geometry payload", raw)
        
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedGeometryError(f"Geometry payload is not JSON: {e}", raw)
        
        if not isinstance(payload, dict):
            raise MalformedGeometryError("Geometry payload is not a JSON object", raw)
        
        geom_type = payload.get("type")
        has_coordinates = "coordinates" in payload
        
        if not geom_type and not has_coordinates:
            raise MalformedGeometryError("Geometry payload lacks both type and coordinates", raw)
        
        if not isinstance(geom_type, str) or not geom_type:
            raise MalformedGeometryError("Geometry payload has no type", raw)
        
        builder = self._builders.get(geom_type)
        if builder is None:
            logger.warning(f"Unsupported geometry type: {geom_type}")
            return UnsupportedGeometry(source_type=geom_type)
        
        if not has_coordinates:
            raise MalformedGeometryError(f"{geom_type} payload has no coordinates", raw)
        
        try:
            return builder(payload["coordinates"])
        except MalformedGeometryError as e:
            raise MalformedGeometryError(f"Invalid {geom_type} coordinates: {e.message}", raw)
        except ValidationError as e:
            raise MalformedGeometryError(
                f"Invalid {geom_type} coordinates: {e.error_count()} validation error(s)", raw
            )
    
    def _position(self, value: Any) -> Coordinate:
        if not isinstance(value, (list, tuple)) or len(value) < 2:
            raise MalformedGeometryError(f"Invalid position: {value!r}")
        x, y = value[0], value[1]
        for ordinate in (x, y):
            if isinstance(ordinate, bool) or not isinstance(ordinate, (int, float)):
                raise MalformedGeometryError(f"Non-numeric ordinate in position: {value!r}")
        # Extra ordinates (elevation, measure) are dropped
        return float(x), float(y)
    
    def _positions(self, value: Any) -> List[Coordinate]:
        if not isinstance(value, (list, tuple)):
            raise MalformedGeometryError(f"Expected a list of positions, got {type(value).__name__}")
        return [self._position(item) for item in value]
    
    def _rings(self, value: Any) -> List[Ring]:
        if not isinstance(value, (list, tuple)):
            raise MalformedGeometryError(f"Expected a list of rings, got {type(value).__name__}")
        rings = [self._positions(ring) for ring in value]
        for index, ring in enumerate(rings):
            if len(ring) < 4 or ring[0] != ring[-1]:
                logger.warning(
                    f"Corrupted polygon ring {index}: {len(ring)} positions, "
                    f"closed={bool(ring) and ring[0] == ring[-1]}"
                )
        return rings
    
    def _build_point(self, coordinates: Any) -> PointGeometry:
        return PointGeometry(coordinates=self._position(coordinates))
    
    def _build_line_string(self, coordinates: Any) -> LineStringGeometry:
        return LineStringGeometry(coordinates=self._positions(coordinates))
    
    def _build_polygon(self, coordinates: Any) -> PolygonGeometry:
        return PolygonGeometry(coordinates=self._rings(coordinates))
    
    def _build_multi_polygon(self, coordinates: Any) -> MultiPolygonGeometry:
        if not isinstance(coordinates, (list, tuple)):
            raise MalformedGeometryError("MultiPolygon coordinates must be a list of polygons")
        return MultiPolygonGeometry(coordinates=[self._rings(polygon) for polygon in coordinates])
    
    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------
    
    def to_mapping(self, geometry: Geometry) -> Dict[str, Any]:
        """GeoJSON-style mapping of a spatial geometry.
        
        Raises:
            ValueError: For unsupported or malformed geometry
        """
        if not geometry.is_spatial:
            raise ValueError(f"Cannot encode {geometry.type.value} geometry")
        return json.loads(geometry.model_dump_json(include={"type", "coordinates"}))
    
    def encode(self, geometry: Geometry) -> str:
        """Serialize a spatial geometry to the row cell format."""
        return json.dumps(self.to_mapping(geometry))
    
    def to_shapely(self, geometry: Geometry) -> Optional[BaseGeometry]:
        """Build the shapely equivalent, or None for non-spatial variants.
        
        Raises:
            ValueError: If shapely rejects the coordinates (e.g. a ring too short)
        """
        if isinstance(geometry, PolygonGeometry):
            return ShapelyPolygon(geometry.exterior, geometry.holes)
        if isinstance(geometry, MultiPolygonGeometry):
            return ShapelyMultiPolygon(
                [(polygon.exterior, polygon.holes) for polygon in geometry.polygons]
            )
        if isinstance(geometry, PointGeometry):
            return ShapelyPoint(geometry.coordinates)
        if isinstance(geometry, LineStringGeometry):
            return ShapelyLineString(geometry.coordinates)
        return None
    
    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------
    
    def project(self, coordinate: Coordinate) -> Coordinate:
        """Forward spherical Web Mercator projection of a (longitude, latitude) pair in degrees.
        
        Returns:
            (x, y) in meters
        """
        longitude, latitude = coordinate
        lam = math.radians(longitude)
        phi = math.radians(latitude)
        sin_phi = math.sin(phi)
        if abs(sin_phi) < 1.0:
            # atanh(sin phi) == ln(tan(pi/4 + phi/2)), exact at the equator
            y = math.atanh(sin_phi)
        else:
            # Poles: the tangent form stays finite on |phi|, and y is odd in phi
            y = math.copysign(math.log(math.tan(math.pi / 4 + abs(phi) / 2)), phi)
        return self.radius * lam, self.radius * y
    
    def _project_ring(self, ring: Ring) -> Ring:
        return [self.project(position) for position in ring]
    
    def project_geometry(self, geometry: Geometry) -> Geometry:
        """Project every coordinate of a geometry; non-spatial variants pass through."""
        if isinstance(geometry, PolygonGeometry):
            return PolygonGeometry(
                coordinates=[self._project_ring(ring) for ring in geometry.coordinates]
            )
        if isinstance(geometry, MultiPolygonGeometry):
            return MultiPolygonGeometry(
                coordinates=[[self._project_ring(ring) for ring in polygon]
                             for polygon in geometry.coordinates]
            )
        if isinstance(geometry, LineStringGeometry):
            return LineStringGeometry(coordinates=self._project_ring(geometry.coordinates))
        if isinstance(geometry, PointGeometry):
            return PointGeometry(coordinates=self.project(geometry.coordinates))
        return geometry

"""
Change Annotator

Compares the current and previous geometry of one feature and describes the
area change. Only polygon pairs take part; every other combination is
skipped without error since nearly all snapshot records are simple polygons.
"""

import logging
import math
from typing import Optional

from shapely.errors import GEOSException
from shapely.validation import make_valid

from ..geometry import Geometry, GeometryCodec, PolygonGeometry
from .change_detection_models import ChangeAnnotation, ChangeKind

logger = logging.getLogger(__name__)


class ChangeAnnotator:
    """Computes per-feature area change annotations.
    
    Areas are planar, in the geometries' native units. Both snapshots share
    one coordinate reference, so the relative delta does not depend on it.
    """
    
    def __init__(self, codec: Optional[GeometryCodec] = None):
        self.codec = codec or GeometryCodec()
    
    def compute_change(self, current: Geometry, previous: Geometry) -> Optional[ChangeAnnotation]:
        """Annotate the change between two geometries of the same feature.
        
        Args:
            current: Geometry from the current snapshot (unprojected)
            previous: Geometry from the previous snapshot (unprojected)
            
        Returns:
            ChangeAnnotation, or None when the pair is not two polygons, the
            geometries are identical, or the geometry library cannot diff them
        """
        if not isinstance(current, PolygonGeometry) or not isinstance(previous, PolygonGeometry):
            logger.debug(f"Skipping change detection for {current.type.value}/{previous.type.value} pair")
            return None
        
        try:
            current_shape = self._valid_shape(current)
            previous_shape = self._valid_shape(previous)
        except (GEOSException, ValueError) as e:
            logger.warning(f"Could not build polygons for diffing: {e}")
            return None
        
        area_current = current_shape.area
        area_previous = previous_shape.area
        
        # A collapsed baseline differs from any current polygon with area
        if not (area_previous == 0 and area_current > 0):
            try:
                difference = current_shape.symmetric_difference(previous_shape)
            except (GEOSException, ValueError) as e:
                logger.warning(f"Could not diff polygons: {e}")
                return None
            if difference.is_empty:
                return None
        
        if area_previous == 0:
            return ChangeAnnotation(
                kind=ChangeKind.NO_BASELINE,
                area_current=area_current,
                area_previous=area_previous,
            )
        
        delta = (area_current - area_previous) / area_previous * 100
        if not math.isfinite(delta):
            logger.warning(f"Non-finite area delta ({area_current} vs {area_previous})")
            return ChangeAnnotation(
                kind=ChangeKind.NO_BASELINE,
                area_current=area_current,
                area_previous=area_previous,
            )
        
        return ChangeAnnotation(
            kind=ChangeKind.AREA_CHANGED,
            delta_percent=delta,
            area_current=area_current,
            area_previous=area_previous,
        )
    
    def _valid_shape(self, geometry: PolygonGeometry):
        shape = self.codec.to_shapely(geometry)
        if not shape.is_valid:
            logger.debug("Repairing invalid polygon before diffing")
            shape = make_valid(shape)
        return shape

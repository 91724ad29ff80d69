"""Feature Store

Holds the most recently computed feature set behind a fixed freshness
window. The store only computes and caches; fetching rows and serializing
concurrent refreshes is the caller's job (see QueryEngine).
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional

from geoapi.exceptions import MalformedGeometryError
from geoapi.utils import log_performance
from ..change_detection import ChangeAnnotator, ChangeKind, RefreshSummary
from ..geometry import Geometry, GeometryCodec, MalformedGeometry, UnsupportedGeometry
from .feature_models import Feature, FeatureSet, Row

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class CacheEntry:
    """A computed feature set and the clock reading it was computed at."""
    computed_at: float
    feature_set: FeatureSet


class FeatureStore:
    """TTL cache of the annotated, projected feature set.
    
    Entries are invalidated lazily: ``get`` returns None once the freshness
    window has passed, and nothing is recomputed until ``refresh`` is called.
    """
    
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic,
                 codec: Optional[GeometryCodec] = None,
                 annotator: Optional[ChangeAnnotator] = None):
        """
        Args:
            ttl_seconds: Freshness window of a computed feature set
            clock: Monotonic time source, injectable for tests
            codec: Geometry codec used to decode and project rows
            annotator: Change annotator used to compare snapshots
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.codec = codec or GeometryCodec()
        self.annotator = annotator or ChangeAnnotator(self.codec)
        self._entry: Optional[CacheEntry] = None
        self._lock = threading.Lock()
    
    def get(self) -> Optional[FeatureSet]:
        """Return the cached feature set while it is fresh, otherwise None."""
        with self._lock:
            entry = self._entry
        if entry is None:
            return None
        if self.clock() - entry.computed_at >= self.ttl_seconds:
            return None
        return entry.feature_set
    
    def is_fresh(self) -> bool:
        return self.get() is not None
    
    def invalidate(self) -> None:
        """Drop the cached feature set."""
        with self._lock:
            self._entry = None
        logger.debug("Feature cache invalidated")
    
    @property
    def last_computed_at(self) -> Optional[float]:
        with self._lock:
            return self._entry.computed_at if self._entry else None
    
    @log_performance
    def refresh(self, current_rows: Iterable[Row],
                previous_rows: Optional[Iterable[Row]] = None) -> FeatureSet:
        """Recompute the feature set from two snapshots and cache it.
        
        Returns:
            The newly cached FeatureSet
        """
        feature_set = self.build(current_rows, previous_rows)
        with self._lock:
            self._entry = CacheEntry(computed_at=self.clock(), feature_set=feature_set)
        logger.info(f"Feature cache refreshed: {feature_set.summary.get_summary()}")
        return feature_set
    
    def build(self, current_rows: Iterable[Row],
              previous_rows: Optional[Iterable[Row]] = None) -> FeatureSet:
        """Compute the annotated feature set without touching the cache.
        
        Output order equals the current snapshot's row order. For duplicate
        identifiers in the previous snapshot the last row wins.
        """
        start = time.perf_counter()
        
        previous_by_id: Dict[str, Row] = {}
        duplicates = 0
        for row in previous_rows or []:
            if row.id in previous_by_id:
                duplicates += 1
            previous_by_id[row.id] = row
        if duplicates:
            logger.warning(f"{duplicates} duplicate identifiers in previous snapshot, last row wins")
        
        features = []
        counts = {"changed": 0, "no_baseline": 0, "malformed": 0, "unsupported": 0}
        
        for index, row in enumerate(current_rows):
            geometry = self._decode_current(row)
            if isinstance(geometry, MalformedGeometry):
                counts["malformed"] += 1
            elif isinstance(geometry, UnsupportedGeometry):
                counts["unsupported"] += 1
            
            change = None
            previous_row = previous_by_id.get(row.id)
            if previous_row is not None and geometry.is_spatial:
                previous_geometry = self._decode_previous(previous_row)
                if previous_geometry is not None:
                    change = self.annotator.compute_change(geometry, previous_geometry)
            
            if change is not None:
                if change.kind == ChangeKind.NO_BASELINE:
                    counts["no_baseline"] += 1
                else:
                    counts["changed"] += 1
            
            features.append(Feature(
                object_id=index + 1,
                id=row.id,
                name=row.name,
                category=row.category,
                year=row.year,
                geometry=self.codec.project_geometry(geometry),
                source_geometry=geometry,
                change=change,
            ))
        
        summary = RefreshSummary(
            records_processed=len(features),
            previous_records=len(previous_by_id),
            changed_features=counts["changed"],
            no_baseline_features=counts["no_baseline"],
            malformed_geometries=counts["malformed"],
            unsupported_geometries=counts["unsupported"],
            duplicate_identifiers=duplicates,
            processing_duration=time.perf_counter() - start,
            computed_at=datetime.now(),
        )
        return FeatureSet(features=features, summary=summary)
    
    def _decode_current(self, row: Row) -> Geometry:
        try:
            return self.codec.decode(row.geometry)
        except MalformedGeometryError as e:
            logger.warning(f"Feature {row.id}: {e.message}")
            return MalformedGeometry(reason=e.message)
    
    def _decode_previous(self, row: Row) -> Optional[Geometry]:
        try:
            return self.codec.decode(row.geometry)
        except MalformedGeometryError as e:
            logger.debug(f"Previous geometry of {row.id} unusable: {e.message}")
            return None

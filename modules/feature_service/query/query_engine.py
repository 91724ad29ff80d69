"""Query Engine

Serves where-clause queries from the cached feature set. When the cache is
stale, exactly one refresh runs at a time: requests that arrive while a
refresh is in flight wait for it and share its result (or its failure)
instead of fetching the snapshots again.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from geoapi.exceptions import InterpretationError, SourceUnavailable
from ..feature_store import Feature, FeatureSet, FeatureStore, Row
from ..interpretation import ClauseInterpreter
from ..row_source import CURRENT_RANGE, PREVIOUS_RANGE, RowSource
from .clause_evaluator import ClauseEvaluator
from .clause_models import Predicate, QueryRequest
from .clause_parser import ClauseParser

logger = logging.getLogger(__name__)


class QueryResult(BaseModel):
    """Features matching one query, in current snapshot row order."""
    request: QueryRequest
    predicate: Predicate
    features: List[Feature] = Field(default_factory=list)
    total_features: int = Field(ge=0, description="Size of the feature set the query ran against")
    
    @property
    def count(self) -> int:
        return len(self.features)


class _InFlightRefresh:
    """Result slot shared by every request waiting on one refresh."""
    
    def __init__(self):
        self.done = threading.Event()
        self.result: Optional[FeatureSet] = None
        self.error: Optional[BaseException] = None


class QueryEngine:
    """Fetch, cache, parse and filter.
    
    The two snapshot ranges are fetched concurrently and are not read as one
    transaction, so they may reflect slightly different instants.
    """
    
    def __init__(self, store: FeatureStore, row_source: RowSource,
                 parser: Optional[ClauseParser] = None,
                 evaluator: Optional[ClauseEvaluator] = None,
                 interpreter: Optional[ClauseInterpreter] = None):
        self.store = store
        self.row_source = row_source
        self.parser = parser or ClauseParser()
        self.evaluator = evaluator or ClauseEvaluator()
        self.interpreter = interpreter
        self._flight_lock = threading.Lock()
        self._flight: Optional[_InFlightRefresh] = None
    
    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    
    def query(self, request: Union[QueryRequest, str, None] = None) -> QueryResult:
        """Run a where-clause query.
        
        Args:
            request: QueryRequest, bare clause text, or None for everything
            
        Raises:
            SourceUnavailable: If the cache is stale and the snapshots cannot be fetched
        """
        if not isinstance(request, QueryRequest):
            request = QueryRequest(where=request or "")
        
        feature_set = self.get_features()
        predicate = self.parser.parse(request.where)
        matches = self.evaluator.filter(predicate, feature_set.features)
        
        logger.info(f"Query {request.where!r} matched {len(matches)}/{len(feature_set.features)} features")
        return QueryResult(
            request=request,
            predicate=predicate,
            features=matches,
            total_features=len(feature_set.features),
        )
    
    def query_natural_language(self, text: str) -> QueryResult:
        """Interpret free text into a clause, then query with it.
        
        Raises:
            InterpretationError: If no interpreter is configured or it fails
        """
        if self.interpreter is None:
            raise InterpretationError("No clause interpreter configured")
        clause = self.interpreter.interpret(text)
        return self.query(QueryRequest(where=clause))
    
    def detect_changes(self) -> List[Feature]:
        """Features whose geometry changed against the previous snapshot."""
        return self.get_features().changed_features()
    
    # ------------------------------------------------------------------
    # Feature set lifecycle
    # ------------------------------------------------------------------
    
    def get_features(self) -> FeatureSet:
        """Return the fresh cached feature set, refreshing it first if stale."""
        cached = self.store.get()
        if cached is not None:
            return cached
        return self._refresh_once(install=True)
    
    def refresh(self, install: bool = True) -> FeatureSet:
        """Force a refresh through the single-flight path.
        
        Args:
            install: When False the feature set is computed but not cached
        """
        return self._refresh_once(install=install, force=True)
    
    def _refresh_once(self, install: bool, force: bool = False) -> FeatureSet:
        with self._flight_lock:
            if not force:
                cached = self.store.get()
                if cached is not None:
                    return cached
            flight = self._flight
            leader = flight is None or not install
            if leader:
                flight = _InFlightRefresh()
                if install:
                    self._flight = flight
        
        if not leader:
            logger.debug("Waiting for in-flight feature refresh")
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.result
        
        try:
            current_rows, previous_rows = self._fetch_snapshots()
            if install:
                flight.result = self.store.refresh(current_rows, previous_rows)
            else:
                flight.result = self.store.build(current_rows, previous_rows)
            return flight.result
        except BaseException as e:
            flight.error = e
            raise
        finally:
            if install:
                with self._flight_lock:
                    self._flight = None
            flight.done.set()
    
    def _fetch_snapshots(self) -> Tuple[List[Row], List[Row]]:
        fetch_previous = self.row_source.has_range(PREVIOUS_RANGE)
        
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="snapshot-fetch") as pool:
            current_future = pool.submit(self.row_source.fetch_range, CURRENT_RANGE)
            previous_future = (pool.submit(self.row_source.fetch_range, PREVIOUS_RANGE)
                               if fetch_previous else None)
            try:
                current_rows = current_future.result()
                previous_rows = previous_future.result() if previous_future else []
            except SourceUnavailable:
                raise
            except Exception as e:
                logger.error(f"Snapshot fetch failed: {e}")
                raise SourceUnavailable(f"Snapshot fetch failed: {str(e)}")
        
        return current_rows, previous_rows

"""FeatureServiceModule Implementation

Hosts the simulated FeatureServer: wires the spreadsheet row source, the
feature store, the query engine and the clause interpreter together behind
the ModuleProcessor interface, and renders query results as FeatureServer
envelopes.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from geoapi.config import ConfigLoader, FeatureServiceSettings
from geoapi.connection import EnvironmentValidator, SheetsConnector
from geoapi.exceptions import GeoAPIValidationError
from geoapi.interfaces import ModuleProcessor, ModuleStatus, ProcessingResult
from ..feature_store import Feature, FeatureStore
from ..geometry import GeometryCodec
from ..interpretation import ClauseInterpreter
from ..output import (
    DEFAULT_LAYER, build_feature_collection, build_layer_info, build_query_response,
    build_service_info,
)
from ..query import QueryEngine, QueryRequest
from ..row_source import RowSource, SheetsRowSource

logger = logging.getLogger(__name__)

MODULE_NAME = "feature_service"
REQUIRED_LAYER_FIELDS = ["object_id", "id", "name", "category", "year", "change"]
RESPONSE_FORMATS = ("esri", "geojson")


class FeatureServiceModule(ModuleProcessor):
    """Simulated FeatureServer backed by two spreadsheet snapshots.
    
    Collaborators are created lazily from configuration on first use; tests
    (or a hosting service) may inject a row source and interpreter instead.
    """
    
    def __init__(self, config_loader: ConfigLoader, environment: str = "development",
                 row_source: Optional[RowSource] = None,
                 interpreter: Optional[ClauseInterpreter] = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the module.
        
        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
            environment: Environment to serve (development/production)
            row_source: Optional row source replacing the spreadsheet
            interpreter: Optional clause interpreter replacing the configured model
            clock: Monotonic time source for the feature cache
        """
        self.config_loader = config_loader
        self.environment = environment
        self.clock = clock
        self.codec = GeometryCodec()
        self._row_source = row_source
        self._uses_spreadsheet = row_source is None
        self._interpreter = interpreter
        self._settings: Optional[FeatureServiceSettings] = None
        self._configuration_valid: Optional[bool] = None
        self._last_run: Optional[datetime] = None
        self._engine: Optional[QueryEngine] = None
        
        logger.info(f"FeatureServiceModule initialized for {environment}")
    
    @property
    def settings(self) -> FeatureServiceSettings:
        if self._settings is None:
            env_config = self.config_loader.load_environment_config(self.environment)
            self._settings = FeatureServiceSettings.from_environment_config(self.environment, env_config)
        return self._settings
    
    @property
    def field_mapping(self) -> Dict[str, Any]:
        return self.config_loader.load_field_mapping()
    
    @property
    def engine(self) -> QueryEngine:
        """Query engine, built on first use."""
        if self._engine is None:
            settings = self.settings
            if self._row_source is None:
                connector = SheetsConnector(self.config_loader, self.environment)
                self._row_source = SheetsRowSource.from_connector(connector)
            if self._interpreter is None:
                self._interpreter = ClauseInterpreter(
                    model=settings.interpretation_model,
                    cache_ttl_seconds=settings.interpretation_cache_ttl_seconds,
                )
            store = FeatureStore(
                ttl_seconds=settings.cache_ttl_seconds,
                clock=self.clock,
                codec=self.codec,
            )
            self._engine = QueryEngine(store, self._row_source, interpreter=self._interpreter)
            logger.debug(f"Query engine created with {settings.cache_ttl_seconds}s cache window")
        return self._engine
    
    # ------------------------------------------------------------------
    # ModuleProcessor interface
    # ------------------------------------------------------------------
    
    def validate_configuration(self) -> bool:
        """Check the environment settings and the published layer schema.
        
        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        if self._configuration_valid is not None:
            return self._configuration_valid
        
        try:
            self.settings
            layer_fields = self.config_loader.get_layer_config(DEFAULT_LAYER)["fields"]
            missing = [key for key in REQUIRED_LAYER_FIELDS if key not in layer_fields]
            if missing:
                logger.error(f"Missing published fields in '{DEFAULT_LAYER}' layer: {missing}")
                self._configuration_valid = False
                return False
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            self._configuration_valid = False
            return False
        
        logger.info("Feature service configuration validated")
        self._configuration_valid = True
        return True
    
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Refresh the annotated feature set from the spreadsheet.
        
        Args:
            dry_run: If True, compute the feature set without replacing the cache
            
        Returns:
            ProcessingResult with refresh counts in its metadata
        """
        start_time = time.perf_counter()
        
        if not self.validate_configuration():
            return ProcessingResult(
                success=False,
                records_processed=0,
                errors=["Configuration validation failed"],
                metadata={"dry_run": dry_run},
                execution_time=0.0
            )
        
        try:
            logger.info(f"Starting feature refresh (dry_run={dry_run})")
            feature_set = self.engine.refresh(install=not dry_run)
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            logger.error(f"Feature refresh failed: {e}")
            return ProcessingResult(
                success=False,
                records_processed=0,
                errors=[str(e)],
                metadata={"dry_run": dry_run, "error_occurred_at": datetime.now().isoformat()},
                execution_time=execution_time
            )
        
        summary = feature_set.summary
        if not dry_run:
            self._last_run = datetime.now()
        
        metadata = summary.model_dump(mode="json")
        metadata.update({"dry_run": dry_run, "environment": self.environment})
        
        logger.info(f"Feature refresh completed: {summary.get_summary()}")
        return ProcessingResult(
            success=True,
            records_processed=summary.records_processed,
            errors=[],
            metadata=metadata,
            execution_time=time.perf_counter() - start_time
        )
    
    def get_status(self) -> ModuleStatus:
        """Get current module status."""
        is_configured = self.validate_configuration()
        health_check_result = self._health_check()
        
        return ModuleStatus(
            module_name=MODULE_NAME,
            is_configured=is_configured,
            last_run=self._last_run,
            status="ready" if is_configured and health_check_result else "error",
            health_check=health_check_result
        )
    
    def _health_check(self) -> bool:
        try:
            if not self.validate_configuration():
                logger.debug("Health check failed: configuration invalid")
                return False
            if not self.field_mapping:
                logger.debug("Health check failed: field mapping not accessible")
                return False
            checks = EnvironmentValidator(self.config_loader).validate_environment(self.environment)
            if not (checks["config_structure"] and checks["sheet_ranges"]):
                logger.debug(f"Health check failed: environment checks {checks}")
                return False
            if self._uses_spreadsheet and not checks["environment_variables"]:
                logger.debug("Health check failed: spreadsheet credentials missing")
                return False
        except Exception as e:
            logger.debug(f"Health check failed with exception: {e}")
            return False
        
        logger.debug("Health check passed")
        return True
    
    # ------------------------------------------------------------------
    # FeatureServer surface
    # ------------------------------------------------------------------
    
    def _render(self, features: List[Feature], out_fields: str, response_format: str) -> Dict[str, Any]:
        if response_format == "geojson":
            return build_feature_collection(features, self.codec)
        if response_format == "esri":
            return build_query_response(features, self.field_mapping, out_fields)
        raise GeoAPIValidationError(f"Unknown response format: {response_format}",
                                    {"supported": ", ".join(RESPONSE_FORMATS)})
    
    def query(self, where: str = "", out_fields: str = "*",
              response_format: str = "esri") -> Dict[str, Any]:
        """``/FeatureServer/0/query`` response for a where-clause."""
        request = QueryRequest(where=where, out_fields=out_fields)
        result = self.engine.query(request)
        return self._render(result.features, request.out_fields, response_format)
    
    def interpret(self, text: str) -> Dict[str, str]:
        """``/FeatureServer/0/interpret`` response: the clause for a free-text request."""
        return {"interpreted": self.engine.interpreter.interpret(text)}
    
    def query_natural_language(self, text: str, out_fields: str = "*",
                               response_format: str = "esri") -> Dict[str, Any]:
        """Query response for a free-text request, with the clause it was interpreted as."""
        result = self.engine.query_natural_language(text)
        response = self._render(result.features, out_fields, response_format)
        response["interpreted"] = result.request.where
        return response
    
    def detect_changes(self, response_format: str = "geojson") -> Dict[str, Any]:
        """Features whose geometry changed against the previous snapshot."""
        return self._render(self.engine.detect_changes(), "*", response_format)
    
    def features(self) -> Dict[str, Any]:
        """GeoJSON collection of every current feature."""
        return build_feature_collection(self.engine.get_features().features, self.codec)
    
    def layer_info(self) -> Dict[str, Any]:
        """``/FeatureServer/0`` layer description."""
        return build_layer_info(self.field_mapping, self.engine.get_features().features)
    
    def service_info(self) -> Dict[str, Any]:
        """``/FeatureServer`` service description."""
        return build_service_info(self.field_mapping, self.engine.get_features().features)

"""
Validated feature service settings.

Flattens the merged environment configuration into the handful of values
the feature service module actually consumes.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import GeoAPIValidationError


class FeatureServiceSettings(BaseModel):
    """Settings for the simulated feature service."""
    
    environment: str = Field(..., min_length=1, description="Environment the settings were loaded for")
    sheets_api_url: str = Field(..., min_length=1, description="Base URL of the spreadsheet values API")
    spreadsheet_id: str = Field(..., min_length=1, description="Spreadsheet holding the snapshots")
    current_range: str = Field(..., min_length=1, description="Value range of the current snapshot")
    previous_range: Optional[str] = Field(None, description="Value range of the previous snapshot")
    cache_ttl_seconds: float = Field(60.0, gt=0, description="Freshness window of computed features")
    request_timeout_seconds: float = Field(30.0, gt=0, description="HTTP timeout for row fetches")
    retry_attempts: int = Field(3, ge=1, le=10, description="Attempts per row fetch before giving up")
    interpretation_model: str = Field("gpt-4", min_length=1, description="Chat model used for clause interpretation")
    interpretation_cache_ttl_seconds: float = Field(60.0, gt=0, description="Freshness window of interpreted clauses")
    log_level: str = Field("INFO", description="Root logging level")
    log_format: Optional[str] = Field(None, description="'json' or 'standard'")
    
    @field_validator('previous_range')
    @classmethod
    def blank_previous_range_is_absent(cls, v: Optional[str]) -> Optional[str]:
        """An empty previous range means there is no previous snapshot."""
        if v is not None and not v.strip():
            return None
        return v
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and check the logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
    
    @classmethod
    def from_environment_config(cls, environment: str,
                                env_config: Dict[str, Any]) -> "FeatureServiceSettings":
        """
        Build settings from a merged environment configuration.
        
        Raises:
            GeoAPIValidationError: If any value fails validation
        """
        sheet = env_config.get("sheet", {})
        ranges = sheet.get("ranges", {})
        cache = env_config.get("cache", {})
        processing = env_config.get("processing", {})
        interpretation = env_config.get("interpretation", {})
        logging_config = env_config.get("logging", {})
        
        values = {
            "environment": environment,
            "sheets_api_url": env_config.get("sheets_api_url"),
            "spreadsheet_id": sheet.get("spreadsheet_id"),
            "current_range": ranges.get("current"),
            "previous_range": ranges.get("previous"),
            "cache_ttl_seconds": cache.get("ttl_seconds", 60),
            "request_timeout_seconds": processing.get("timeout_seconds", 30),
            "retry_attempts": processing.get("retry_attempts", 3),
            "interpretation_model": interpretation.get("model", "gpt-4"),
            "interpretation_cache_ttl_seconds": interpretation.get("cache_ttl_seconds", 60),
            "log_level": logging_config.get("level", "INFO"),
            "log_format": logging_config.get("format"),
        }
        
        try:
            return cls(**values)
        except ValidationError as e:
            raise GeoAPIValidationError(
                f"Invalid feature service settings for {environment}: {e}",
                {"environment": environment}
            )

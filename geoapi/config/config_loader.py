"""
Configuration loader for the Smart GeoAPI feature service.

This module provides the ConfigLoader class that loads and validates the JSON
configuration files describing each deployment environment and the fields
the simulated feature layer publishes.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

from ..exceptions import GeoAPIConfigurationError, GeoAPIValidationError
from ..utils import get_logger

REQUIRED_ENVIRONMENT_KEYS = ["sheets_api_url", "sheet", "logging", "cache", "processing"]
REQUIRED_RANGES = ["current"]
REQUIRED_FIELD_KEYS = ["field_name", "data_type", "required"]


class ConfigLoader:
    """
    Configuration loader and validator.
    
    Environment configuration lives in ``environment_config.json`` and the
    published layer schema in ``field_mapping.json``, both inside the
    configuration directory.
    """
    
    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.
        
        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")
    
    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.
        
        The environment's ``sheet`` block is layered over the shared ``sheet``
        block (ranges merged key by key); other shared keys are only added when
        the environment does not define them.
        
        Args:
            environment: Environment name (development/production)
            
        Returns:
            Environment configuration merged with shared configuration
            
        Raises:
            GeoAPIConfigurationError: If the file is missing or not valid JSON
            GeoAPIValidationError: If the merged configuration is incomplete
        """
        env_config_path = self.config_dir / "environment_config.json"
        config_data = self._read_json(env_config_path, "environment configuration")
        
        if "environments" not in config_data:
            raise GeoAPIValidationError("Missing 'environments' key in configuration")
        
        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise GeoAPIValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )
        
        env_config = json.loads(json.dumps(config_data["environments"][environment]))
        shared_config = config_data.get("shared", {})
        
        shared_sheet = shared_config.get("sheet", {})
        env_sheet = env_config.get("sheet", {})
        merged_sheet = {**shared_sheet, **env_sheet}
        merged_sheet["ranges"] = {
            **shared_sheet.get("ranges", {}),
            **env_sheet.get("ranges", {}),
        }
        env_config["sheet"] = merged_sheet
        
        for key, value in shared_config.items():
            if key != "sheet" and key not in env_config:
                env_config[key] = value
        
        self._validate_environment_config(env_config, environment)
        
        env_config["_validation"] = config_data.get("validation", {})
        
        self.logger.info(f"Loaded configuration for environment: {environment}")
        return env_config
    
    @lru_cache(maxsize=1)
    def load_field_mapping(self) -> Dict[str, Any]:
        """
        Load the field mapping describing the published feature layer.
        
        Returns:
            Dictionary containing field mapping configuration
            
        Raises:
            GeoAPIConfigurationError: If the file is missing or not valid JSON
            GeoAPIValidationError: If the mapping structure is incomplete
        """
        field_mapping_path = self.config_dir / "field_mapping.json"
        mapping_data = self._read_json(field_mapping_path, "field mapping configuration")
        
        self._validate_field_mapping(mapping_data)
        
        self.logger.info("Loaded field mapping configuration")
        return mapping_data
    
    def get_layer_config(self, layer_name: str) -> Dict[str, Any]:
        """
        Get configuration for a published layer.
        
        Raises:
            GeoAPIConfigurationError: If layer configuration is not found
        """
        field_mapping = self.load_field_mapping()
        
        if layer_name not in field_mapping["layers"]:
            raise GeoAPIConfigurationError(
                f"Layer '{layer_name}' not found in field mapping configuration"
            )
        
        return field_mapping["layers"][layer_name]
    
    def get_field_name(self, layer_name: str, field_key: str) -> str:
        """
        Get the published field name for a layer and field key.
        
        Args:
            layer_name: Name of the layer
            field_key: Key for the field (e.g. 'category', 'change')
            
        Returns:
            Field name as published in query responses
            
        Raises:
            GeoAPIConfigurationError: If field is not found
        """
        layer_config = self.get_layer_config(layer_name)
        
        if field_key not in layer_config["fields"]:
            raise GeoAPIConfigurationError(
                f"Field '{field_key}' not found in layer '{layer_name}' configuration"
            )
        
        return layer_config["fields"][field_key]["field_name"]
    
    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.
        
        Raises:
            GeoAPIValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", [])
        
        missing_vars = [var for var in required_vars if not os.getenv(var)]
        
        if missing_vars:
            raise GeoAPIValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )
        
        self.logger.info(f"Environment variables validated for: {environment}")
    
    def _read_json(self, path: Path, description: str) -> Dict[str, Any]:
        if not path.exists():
            raise GeoAPIConfigurationError(
                f"{description.capitalize()} file not found: {path}"
            )
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise GeoAPIConfigurationError(
                f"Invalid JSON in {description}: {str(e)}"
            )
        except OSError as e:
            raise GeoAPIConfigurationError(
                f"Failed to read {description}: {str(e)}"
            )
    
    def _validate_environment_config(self, env_config: Dict[str, Any], environment: str) -> None:
        """
        Validate a merged environment configuration.
        
        Raises:
            GeoAPIValidationError: If configuration is invalid
        """
        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config:
                raise GeoAPIValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )
        
        if not env_config["sheet"].get("spreadsheet_id"):
            raise GeoAPIValidationError(
                f"Missing 'spreadsheet_id' in {environment} sheet configuration"
            )
        
        ranges = env_config["sheet"].get("ranges", {})
        missing_ranges = [name for name in REQUIRED_RANGES if not ranges.get(name)]
        if missing_ranges:
            raise GeoAPIValidationError(
                f"Missing required sheet ranges in {environment} configuration "
                f"(including shared): {missing_ranges}"
            )
    
    def _validate_field_mapping(self, mapping_data: Dict[str, Any]) -> None:
        """
        Validate field mapping configuration structure.
        
        Raises:
            GeoAPIValidationError: If field mapping is invalid
        """
        if "layers" not in mapping_data:
            raise GeoAPIValidationError("Missing 'layers' key in field mapping")
        
        if "data_types" not in mapping_data:
            raise GeoAPIValidationError("Missing 'data_types' key in field mapping")
        
        for layer_name, layer_config in mapping_data["layers"].items():
            if "fields" not in layer_config:
                raise GeoAPIValidationError(
                    f"Missing 'fields' key in layer '{layer_name}' configuration"
                )
            
            for field_key, field_config in layer_config["fields"].items():
                for key in REQUIRED_FIELD_KEYS:
                    if key not in field_config:
                        raise GeoAPIValidationError(
                            f"Missing required key '{key}' in field '{field_key}' "
                            f"of layer '{layer_name}'"
                        )
                
                if field_config["data_type"] not in mapping_data["data_types"]:
                    raise GeoAPIValidationError(
                        f"Unknown data type '{field_config['data_type']}' in field "
                        f"'{field_key}' of layer '{layer_name}'"
                    )
    
    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.load_field_mapping.cache_clear()
        self.logger.info("Configuration cache cleared")

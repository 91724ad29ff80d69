"""
Unit tests for ConfigLoader class.

This module contains tests for configuration loading, shared/environment
merging, validation, and error handling.
"""

import json
import os
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from geoapi.config import ConfigLoader
from geoapi.exceptions import GeoAPIConfigurationError, GeoAPIValidationError


class TestConfigLoader:
    """Test suite for ConfigLoader class."""
    
    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)
    
    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with a shared sheet block."""
        return {
            "shared": {
                "sheet": {
                    "ranges": {
                        "current": "natural_data!A2:E",
                        "previous": "previous!A2:E"
                    }
                },
                "cache": {"ttl_seconds": 60},
                "interpretation": {"model": "gpt-4", "cache_ttl_seconds": 60}
            },
            "environments": {
                "development": {
                    "sheets_api_url": "https://sheets.example.com/v4",
                    "sheet": {"spreadsheet_id": "dev-sheet"},
                    "logging": {"level": "DEBUG", "format": "standard"},
                    "processing": {"timeout_seconds": 30, "retry_attempts": 3}
                },
                "production": {
                    "sheets_api_url": "https://sheets.example.com/v4",
                    "sheet": {
                        "spreadsheet_id": "prod-sheet",
                        "ranges": {"previous": "archive!A2:E"}
                    },
                    "cache": {"ttl_seconds": 120},
                    "logging": {"level": "INFO", "format": "json"},
                    "processing": {"timeout_seconds": 60, "retry_attempts": 5}
                }
            },
            "validation": {
                "required_environment_variables": ["GOOGLE_SHEETS_API_KEY"],
                "supported_environments": ["development", "production"]
            }
        }
    
    @pytest.fixture
    def valid_field_mapping(self):
        """Valid field mapping configuration for testing."""
        return {
            "layers": {
                "parcels": {
                    "name": "Simulated Parcels",
                    "object_id_field": "oid",
                    "fields": {
                        "object_id": {"field_name": "oid", "data_type": "oid", "required": True},
                        "category": {"field_name": "type", "data_type": "string", "required": False}
                    }
                }
            },
            "data_types": {
                "oid": {"python_type": "int", "esri_type": "esriFieldTypeOID"},
                "string": {"python_type": "str", "esri_type": "esriFieldTypeString"}
            }
        }
    
    @pytest.fixture
    def config_loader(self, temp_config_dir):
        """Create ConfigLoader instance with temporary directory."""
        return ConfigLoader(config_dir=str(temp_config_dir))
    
    def _write(self, directory: Path, name: str, content) -> None:
        with open(directory / name, 'w') as f:
            json.dump(content, f)
    
    def test_init_default_config_dir(self):
        """Test ConfigLoader initialization with default config directory."""
        loader = ConfigLoader()
        assert loader.config_dir == Path("config")
    
    def test_init_custom_config_dir(self, temp_config_dir):
        """Test ConfigLoader initialization with custom config directory."""
        loader = ConfigLoader(config_dir=str(temp_config_dir))
        assert loader.config_dir == temp_config_dir
    
    def test_load_environment_config_success(self, config_loader, temp_config_dir, valid_environment_config):
        """Test shared sheet ranges are merged into the environment."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        config = config_loader.load_environment_config("development")
        
        assert config["sheets_api_url"] == "https://sheets.example.com/v4"
        assert config["sheet"]["spreadsheet_id"] == "dev-sheet"
        assert config["sheet"]["ranges"]["current"] == "natural_data!A2:E"  # From shared
        assert config["sheet"]["ranges"]["previous"] == "previous!A2:E"  # From shared
        assert config["cache"]["ttl_seconds"] == 60
        assert config["interpretation"]["model"] == "gpt-4"
        assert "_validation" in config
    
    def test_load_environment_config_shared_override(self, config_loader, temp_config_dir, valid_environment_config):
        """Test that environment-specific values override shared ones."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        config = config_loader.load_environment_config("production")
        
        # Environment range overrides shared, other shared ranges survive
        assert config["sheet"]["ranges"]["previous"] == "archive!A2:E"
        assert config["sheet"]["ranges"]["current"] == "natural_data!A2:E"
        # Environment cache block wins over shared
        assert config["cache"]["ttl_seconds"] == 120
    
    def test_load_environment_config_does_not_mutate_file_data(self, config_loader, temp_config_dir,
                                                               valid_environment_config):
        """Test merged configurations are independent between environments."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        production = config_loader.load_environment_config("production")
        development = config_loader.load_environment_config("development")
        
        assert production["sheet"]["ranges"]["previous"] != development["sheet"]["ranges"]["previous"]
    
    def test_load_environment_config_file_not_found(self, config_loader):
        """Test loading environment configuration when file doesn't exist."""
        with pytest.raises(GeoAPIConfigurationError) as exc_info:
            config_loader.load_environment_config("development")
        
        assert "Environment configuration file not found" in str(exc_info.value)
    
    def test_load_environment_config_invalid_json(self, config_loader, temp_config_dir):
        """Test loading environment configuration with invalid JSON."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            f.write("{ invalid json }")
        
        with pytest.raises(GeoAPIConfigurationError) as exc_info:
            config_loader.load_environment_config("development")
        
        assert "Invalid JSON in environment configuration" in str(exc_info.value)
    
    def test_load_environment_config_missing_environment(self, config_loader, temp_config_dir,
                                                         valid_environment_config):
        """Test loading non-existent environment configuration."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader.load_environment_config("staging")
        
        assert "Environment 'staging' not found" in str(exc_info.value)
    
    def test_load_environment_config_missing_current_range(self, config_loader, temp_config_dir,
                                                           valid_environment_config):
        """Test that a configuration without a current range is rejected."""
        del valid_environment_config["shared"]["sheet"]["ranges"]["current"]
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader.load_environment_config("development")
        
        assert "Missing required sheet ranges" in str(exc_info.value)
        assert "current" in str(exc_info.value)
    
    def test_load_environment_config_missing_spreadsheet_id(self, config_loader, temp_config_dir,
                                                            valid_environment_config):
        """Test that a configuration without a spreadsheet id is rejected."""
        del valid_environment_config["environments"]["development"]["sheet"]["spreadsheet_id"]
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader.load_environment_config("development")
        
        assert "spreadsheet_id" in str(exc_info.value)
    
    def test_load_field_mapping_success(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test successful loading of field mapping configuration."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        mapping = config_loader.load_field_mapping()
        
        assert "parcels" in mapping["layers"]
        assert "data_types" in mapping
    
    def test_load_field_mapping_file_not_found(self, config_loader):
        """Test loading field mapping when file doesn't exist."""
        with pytest.raises(GeoAPIConfigurationError) as exc_info:
            config_loader.load_field_mapping()
        
        assert "Field mapping configuration file not found" in str(exc_info.value)
    
    def test_load_field_mapping_unknown_data_type(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test a field referencing an undeclared data type is rejected."""
        valid_field_mapping["layers"]["parcels"]["fields"]["category"]["data_type"] = "geometry"
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader.load_field_mapping()
        
        assert "Unknown data type 'geometry'" in str(exc_info.value)
    
    def test_get_layer_config_success(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test successful retrieval of layer configuration."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        layer_config = config_loader.get_layer_config("parcels")
        
        assert layer_config["object_id_field"] == "oid"
        assert "category" in layer_config["fields"]
    
    def test_get_layer_config_not_found(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test retrieval of non-existent layer configuration."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        with pytest.raises(GeoAPIConfigurationError) as exc_info:
            config_loader.get_layer_config("invalid_layer")
        
        assert "Layer 'invalid_layer' not found" in str(exc_info.value)
    
    def test_get_field_name_success(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test successful retrieval of field name."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        assert config_loader.get_field_name("parcels", "category") == "type"
    
    def test_get_field_name_not_found(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test retrieval of non-existent field name."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        with pytest.raises(GeoAPIConfigurationError) as exc_info:
            config_loader.get_field_name("parcels", "invalid_field")
        
        assert "Field 'invalid_field' not found" in str(exc_info.value)
    
    @patch.dict(os.environ, {"GOOGLE_SHEETS_API_KEY": "test-key"})
    def test_validate_environment_variables_success(self, config_loader, temp_config_dir,
                                                    valid_environment_config):
        """Test successful validation of environment variables."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        # Should not raise any exception
        config_loader.validate_environment_variables("development")
    
    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_missing(self, config_loader, temp_config_dir,
                                                    valid_environment_config):
        """Test validation with missing environment variables."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader.validate_environment_variables("development")
        
        assert "Missing required environment variables" in str(exc_info.value)
        assert "GOOGLE_SHEETS_API_KEY" in str(exc_info.value)
    
    def test_validate_environment_config_missing_keys(self, config_loader):
        """Test validation with missing required keys."""
        invalid_config = {"sheets_api_url": "https://test.com", "sheet": {}}
        
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader._validate_environment_config(invalid_config, "development")
        
        assert "Missing required key" in str(exc_info.value)
    
    def test_validate_field_mapping_missing_layers(self, config_loader):
        """Test validation with missing layers key."""
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader._validate_field_mapping({"data_types": {}})
        
        assert "Missing 'layers' key" in str(exc_info.value)
    
    def test_validate_field_mapping_missing_data_types(self, config_loader):
        """Test validation with missing data_types key."""
        with pytest.raises(GeoAPIValidationError) as exc_info:
            config_loader._validate_field_mapping({"layers": {}})
        
        assert "Missing 'data_types' key" in str(exc_info.value)
    
    def test_clear_cache(self, config_loader, temp_config_dir, valid_environment_config, valid_field_mapping):
        """Test cache clearing picks up changed files."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)
        
        first = config_loader.load_environment_config("development")
        assert config_loader.load_environment_config("development") is first
        
        valid_environment_config["environments"]["development"]["sheet"]["spreadsheet_id"] = "other-sheet"
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        config_loader.clear_cache()
        
        assert config_loader.load_environment_config("development")["sheet"]["spreadsheet_id"] == "other-sheet"


class TestRepositoryConfiguration:
    """The configuration shipped in config/ must load cleanly."""
    
    @pytest.fixture
    def repo_loader(self):
        return ConfigLoader(str(Path(__file__).resolve().parents[2] / "config"))
    
    @pytest.mark.parametrize("environment", ["development", "production"])
    def test_environment_loads(self, repo_loader, environment):
        config = repo_loader.load_environment_config(environment)
        
        assert config["sheet"]["ranges"]["current"]
        assert config["sheet"]["ranges"]["previous"]
    
    def test_field_mapping_publishes_parcels_layer(self, repo_loader):
        fields = repo_loader.get_layer_config("parcels")["fields"]
        
        assert fields["category"]["field_name"] == "type"
        assert fields["object_id"]["data_type"] == "oid"

"""
Unit tests for custom exceptions module.

This module contains tests for the exception hierarchy and context handling,
including the feature-service specific errors.
"""

import pytest
from geoapi.exceptions import (
    GeoAPIBaseException,
    GeoAPIConfigurationError,
    GeoAPIValidationError,
    GeoAPIAuthenticationError,
    GeoAPIConnectionError,
    GeoAPIProcessingError,
    MalformedGeometryError,
    SourceUnavailable,
    InterpretationError,
)


class TestGeoAPIBaseException:
    """Test suite for GeoAPIBaseException class."""
    
    def test_base_exception_without_context(self):
        """Test GeoAPIBaseException without context."""
        exception = GeoAPIBaseException("Test error message")
        
        assert str(exception) == "Test error message"
        assert exception.message == "Test error message"
        assert exception.context == {}
    
    def test_base_exception_with_context(self):
        """Test GeoAPIBaseException with context."""
        context = {"layer": "parcels", "field": "type"}
        exception = GeoAPIBaseException("Test error message", context)
        
        assert exception.context == context
        assert "layer=parcels" in str(exception)
        assert "field=type" in str(exception)
    
    def test_base_exception_with_none_context(self):
        """Test GeoAPIBaseException with None context."""
        exception = GeoAPIBaseException("Test error message", None)
        
        assert str(exception) == "Test error message"
        assert exception.context == {}


class TestExceptionHierarchy:
    """Test suite for exception inheritance."""
    
    @pytest.mark.parametrize("exception_class", [
        GeoAPIConfigurationError,
        GeoAPIValidationError,
        GeoAPIAuthenticationError,
        GeoAPIConnectionError,
        GeoAPIProcessingError,
        InterpretationError,
    ])
    def test_all_exceptions_inherit_from_base(self, exception_class):
        """Test that all custom exceptions can be caught as GeoAPIBaseException."""
        with pytest.raises(GeoAPIBaseException) as exc_info:
            raise exception_class("test")
        
        assert isinstance(exc_info.value, exception_class)
    
    def test_malformed_geometry_is_validation_error(self):
        assert issubclass(MalformedGeometryError, GeoAPIValidationError)
    
    def test_source_unavailable_is_connection_error(self):
        assert issubclass(SourceUnavailable, GeoAPIConnectionError)
    
    def test_interpretation_error_is_processing_error(self):
        assert issubclass(InterpretationError, GeoAPIProcessingError)


class TestMalformedGeometryError:
    """Test suite for MalformedGeometryError class."""
    
    def test_keeps_payload(self):
        """Test the offending payload is kept for diagnostics."""
        exception = MalformedGeometryError("Geometry payload is not JSON", "{not json")
        
        assert exception.payload == "{not json"
        assert str(exception) == "Geometry payload is not JSON"
    
    def test_payload_optional(self):
        exception = MalformedGeometryError("Invalid position")
        
        assert exception.payload is None


class TestSourceUnavailable:
    """Test suite for SourceUnavailable class."""
    
    def test_range_added_to_context(self):
        """Test the range name is recorded in the context."""
        exception = SourceUnavailable("Fetch failed", "natural_data!A2:E", {"status_code": 503})
        
        assert exception.range_name == "natural_data!A2:E"
        assert exception.context == {"status_code": 503, "range": "natural_data!A2:E"}
        assert "range=natural_data!A2:E" in str(exception)
        assert "status_code=503" in str(exception)
    
    def test_without_range(self):
        exception = SourceUnavailable("Fetch failed")
        
        assert exception.range_name is None
        assert str(exception) == "Fetch failed"
    
    def test_context_argument_not_mutated(self):
        context = {"attempts": 3}
        SourceUnavailable("Fetch failed", "current", context)
        
        assert context == {"attempts": 3}

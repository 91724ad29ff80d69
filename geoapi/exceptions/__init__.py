"""
Custom exceptions for the Smart GeoAPI feature service.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
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

__all__ = [
    "GeoAPIBaseException",
    "GeoAPIConfigurationError",
    "GeoAPIValidationError",
    "GeoAPIAuthenticationError",
    "GeoAPIConnectionError",
    "GeoAPIProcessingError",
    "MalformedGeometryError",
    "SourceUnavailable",
    "InterpretationError",
]

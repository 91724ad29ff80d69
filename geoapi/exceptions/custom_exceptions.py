"""
Custom exception classes for the Smart GeoAPI feature service.

Framework errors share a common base carrying an optional context mapping.
Feature-level errors (malformed geometry) are isolated per feature by the
feature store; source-level errors abort the current query.
"""

from typing import Optional, Dict, Any


class GeoAPIBaseException(Exception):
    """Base exception class for all Smart GeoAPI exceptions."""
    
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
    
    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class GeoAPIConfigurationError(GeoAPIBaseException):
    """
    Exception raised when configuration loading fails.
    
    This exception is raised when:
    - Configuration files are missing or not valid JSON
    - Settings required by the feature service cannot be resolved
    """
    pass


class GeoAPIValidationError(GeoAPIBaseException):
    """
    Exception raised when data or configuration validation fails.
    
    This exception is raised when:
    - Configuration structure is incomplete
    - Required environment variables are missing
    - Input values are rejected before processing
    """
    pass


class GeoAPIAuthenticationError(GeoAPIBaseException):
    """Exception raised when spreadsheet credentials are missing or invalid."""
    pass


class GeoAPIConnectionError(GeoAPIBaseException):
    """
    Exception raised when an external collaborator cannot be reached.
    
    This exception is raised when:
    - Network connection issues occur
    - The tabular store answers with an error status
    - Requests time out after retries
    """
    pass


class GeoAPIProcessingError(GeoAPIBaseException):
    """Exception raised when feature processing or interpretation fails."""
    pass


class MalformedGeometryError(GeoAPIValidationError):
    """
    Raised when a serialized geometry payload cannot be decoded.
    
    The payload is either not JSON, not an object, or lacks the ``type`` or
    coordinate members a known geometry type needs.
    """
    
    def __init__(self, message: str, payload: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.payload = payload


class SourceUnavailable(GeoAPIConnectionError):
    """Transient failure fetching snapshot rows from the tabular store."""
    
    def __init__(self, message: str, range_name: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if range_name:
            context.setdefault("range", range_name)
        super().__init__(message, context)
        self.range_name = range_name


class InterpretationError(GeoAPIProcessingError):
    """Raised when the text interpretation service fails to produce a clause."""
    pass

"""
Connection module for the Smart GeoAPI feature service.

This module provides spreadsheet connectivity, credential handling and
environment validation.
"""

from .auth_handler import AuthHandler
from .sheets_connector import SheetsConnector
from .environment_validator import EnvironmentValidator

__all__ = [
    'AuthHandler',
    'SheetsConnector',
    'EnvironmentValidator',
]

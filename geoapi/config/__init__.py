"""
Configuration management for the Smart GeoAPI feature service.

This module provides configuration loading and validation for
multi-environment deployments (development and production).
"""

from .config_loader import ConfigLoader
from .service_settings import FeatureServiceSettings

__all__ = ["ConfigLoader", "FeatureServiceSettings"]

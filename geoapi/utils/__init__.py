"""
Utility modules for the Smart GeoAPI feature service.

This module provides logging setup and the performance logging decorator
used throughout the system.
"""

from .logging_setup import setup_logging, get_logger, log_performance

__all__ = ["setup_logging", "get_logger", "log_performance"]

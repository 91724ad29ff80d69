"""
Smart GeoAPI Framework Core Package

This package contains the shared infrastructure for the Smart GeoAPI simulated
feature service: configuration, exceptions, logging, the spreadsheet connection
layer and the module processor interface.
"""

from .interfaces import ModuleProcessor, ProcessingResult, ModuleStatus

__version__ = "1.0.0"
__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus']

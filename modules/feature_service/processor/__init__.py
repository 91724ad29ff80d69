"""Feature service processor implementing the ModuleProcessor interface."""

from .feature_service_module import FeatureServiceModule, MODULE_NAME

__all__ = ['FeatureServiceModule', 'MODULE_NAME']

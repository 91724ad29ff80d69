"""Smart GeoAPI Processing Modules

This package contains the processing modules of the Smart GeoAPI framework.
Each module implements the ModuleProcessor interface and provides the
business logic for one service.
"""

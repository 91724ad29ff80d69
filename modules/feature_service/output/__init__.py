"""Response envelopes for the simulated FeatureServer."""

from .esri_envelope import (
    to_esri_feature, build_query_response, build_layer_info, build_service_info,
    compute_extent, published_fields, parse_out_fields, to_geojson_feature,
    build_feature_collection, DEFAULT_LAYER, SPATIAL_REFERENCE, WORLD_EXTENT,
)

__all__ = [
    'to_esri_feature', 'build_query_response', 'build_layer_info', 'build_service_info',
    'compute_extent', 'published_fields', 'parse_out_fields', 'to_geojson_feature',
    'build_feature_collection', 'DEFAULT_LAYER', 'SPATIAL_REFERENCE', 'WORLD_EXTENT',
]

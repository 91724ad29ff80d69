"""FeatureServer Response Envelopes

Renders features in the shapes a simulated ArcGIS FeatureServer returns:
query responses, layer and service descriptions, plus the plain GeoJSON
views. The published field names and aliases come from field_mapping.json.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from ..feature_store import Feature
from ..geometry import (
    GeometryCodec, MultiPolygonGeometry, PolygonGeometry, WEB_MERCATOR_WKID,
)

logger = logging.getLogger(__name__)

DEFAULT_LAYER = "parcels"
SPATIAL_REFERENCE = {"wkid": WEB_MERCATOR_WKID}
WORLD_EXTENT = {
    "xmin": -20037508.34, "ymin": -20037508.34,
    "xmax": 20037508.34, "ymax": 20037508.34,
}


def _layer(field_mapping: Dict[str, Any], layer: str) -> Dict[str, Any]:
    return field_mapping["layers"][layer]


def published_fields(field_mapping: Dict[str, Any], layer: str = DEFAULT_LAYER) -> List[Dict[str, str]]:
    """Field descriptors in ArcGIS form (name, type, alias), keyed by our field key."""
    data_types = field_mapping["data_types"]
    fields = []
    for key, config in _layer(field_mapping, layer)["fields"].items():
        fields.append({
            "key": key,
            "name": config["field_name"],
            "type": data_types[config["data_type"]]["esri_type"],
            "alias": config.get("alias", config["field_name"]),
        })
    return fields


def parse_out_fields(out_fields: Optional[str]) -> Optional[Set[str]]:
    """Requested output field names (lower-cased), or None for every field."""
    if not out_fields or out_fields.strip() == "*":
        return None
    return {name.strip().lower() for name in out_fields.split(",") if name.strip()}


def feature_attribute_values(feature: Feature) -> Dict[str, Any]:
    """Attribute values keyed by field key."""
    return {
        "object_id": feature.object_id,
        "id": feature.id,
        "name": feature.name,
        "category": feature.category,
        "year": feature.year,
        "change": feature.change_text,
    }


def esri_rings(feature: Feature) -> Optional[List[List[List[float]]]]:
    """Projected rings of a polygonal feature, multipolygons flattened; None otherwise."""
    geometry = feature.geometry
    if isinstance(geometry, PolygonGeometry):
        rings = geometry.coordinates
    elif isinstance(geometry, MultiPolygonGeometry):
        rings = geometry.rings
    else:
        return None
    return [[[x, y] for x, y in ring] for ring in rings]


def to_esri_feature(feature: Feature, field_mapping: Dict[str, Any],
                    out_fields: Optional[str] = "*", layer: str = DEFAULT_LAYER) -> Dict[str, Any]:
    """One feature as ``{"attributes": ..., "geometry": ...}``.
    
    The object id field is always included. Features without polygonal
    geometry are returned with ``geometry: null``.
    """
    requested = parse_out_fields(out_fields)
    object_id_field = _layer(field_mapping, layer).get("object_id_field", "oid")
    values = feature_attribute_values(feature)
    
    attributes = {}
    for field in published_fields(field_mapping, layer):
        name = field["name"]
        if requested is None or name.lower() in requested or name == object_id_field:
            attributes[name] = values.get(field["key"])
    
    rings = esri_rings(feature)
    geometry = None
    if rings is not None:
        geometry = {"rings": rings, "spatialReference": dict(SPATIAL_REFERENCE)}
    
    return {"attributes": attributes, "geometry": geometry}


def build_query_response(features: Iterable[Feature], field_mapping: Dict[str, Any],
                         out_fields: Optional[str] = "*", layer: str = DEFAULT_LAYER) -> Dict[str, Any]:
    """Body of a ``/FeatureServer/0/query`` response."""
    requested = parse_out_fields(out_fields)
    object_id_field = _layer(field_mapping, layer).get("object_id_field", "oid")
    fields = [
        {"name": field["name"], "type": field["type"]}
        for field in published_fields(field_mapping, layer)
        if requested is None or field["name"].lower() in requested or field["name"] == object_id_field
    ]
    return {
        "objectIdFieldName": object_id_field,
        "geometryType": "esriGeometryPolygon",
        "spatialReference": dict(SPATIAL_REFERENCE),
        "fields": fields,
        "features": [to_esri_feature(feature, field_mapping, out_fields, layer) for feature in features],
    }


def compute_extent(features: Iterable[Feature]) -> Dict[str, Any]:
    """Bounding box of all projected polygon rings; the world extent when there are none."""
    xs: List[float] = []
    ys: List[float] = []
    for feature in features:
        for ring in esri_rings(feature) or []:
            for x, y in ring:
                xs.append(x)
                ys.append(y)
    if not xs:
        extent = dict(WORLD_EXTENT)
    else:
        extent = {"xmin": min(xs), "ymin": min(ys), "xmax": max(xs), "ymax": max(ys)}
    extent["spatialReference"] = dict(SPATIAL_REFERENCE)
    return extent


def build_layer_info(field_mapping: Dict[str, Any], features: Optional[Iterable[Feature]] = None,
                     layer: str = DEFAULT_LAYER) -> Dict[str, Any]:
    """Body of a ``/FeatureServer/0`` layer description."""
    layer_config = _layer(field_mapping, layer)
    return {
        "id": 0,
        "type": "Feature Layer",
        "name": layer_config.get("name", layer),
        "geometryType": "esriGeometryPolygon",
        "objectIdField": layer_config.get("object_id_field", "oid"),
        "supportsQuery": True,
        "capabilities": "Query",
        "fields": [
            {"name": field["name"], "type": field["type"], "alias": field["alias"]}
            for field in published_fields(field_mapping, layer)
        ],
        "drawingInfo": {
            "renderer": {
                "type": "simple",
                "symbol": {
                    "type": "esriSFS",
                    "style": "esriSFSSolid",
                    "color": [255, 255, 204, 128],
                    "outline": {"color": [0, 0, 0, 255], "width": 1},
                },
            },
        },
        "extent": compute_extent(features or []),
        "spatialReference": dict(SPATIAL_REFERENCE),
    }


def build_service_info(field_mapping: Dict[str, Any], features: Optional[Iterable[Feature]] = None,
                       layer: str = DEFAULT_LAYER) -> Dict[str, Any]:
    """Body of a ``/FeatureServer`` service description."""
    layer_config = _layer(field_mapping, layer)
    full_extent = dict(WORLD_EXTENT)
    full_extent["spatialReference"] = dict(SPATIAL_REFERENCE)
    return {
        "currentVersion": 10.91,
        "serviceDescription": "Simulated FeatureService from Google Sheets",
        "hasVersionedData": False,
        "supportsDisconnectedEditing": False,
        "hasStaticData": False,
        "maxRecordCount": 1000,
        "supportedQueryFormats": "JSON",
        "capabilities": "Query",
        "spatialReference": dict(SPATIAL_REFERENCE),
        "initialExtent": compute_extent(features or []),
        "fullExtent": full_extent,
        "layers": [{
            "id": 0,
            "name": layer_config.get("name", layer),
            "parentLayerId": -1,
            "defaultVisibility": True,
            "subLayerIds": None,
            "minScale": 0,
            "maxScale": 0,
        }],
        "tables": [],
    }


def to_geojson_feature(feature: Feature, codec: Optional[GeometryCodec] = None) -> Dict[str, Any]:
    """Unprojected GeoJSON view of a feature; unusable geometry becomes null."""
    codec = codec or GeometryCodec()
    geometry = codec.to_mapping(feature.source_geometry) if feature.source_geometry.is_spatial else None
    properties = {
        "id": feature.id,
        "name": feature.name,
        "type": feature.category,
        "year": feature.year,
    }
    if feature.change is not None:
        properties["change"] = feature.change_text
    return {"type": "Feature", "geometry": geometry, "properties": properties}


def build_feature_collection(features: Iterable[Feature],
                             codec: Optional[GeometryCodec] = None) -> Dict[str, Any]:
    """GeoJSON FeatureCollection of the given features."""
    codec = codec or GeometryCodec()
    return {
        "type": "FeatureCollection",
        "features": [to_geojson_feature(feature, codec) for feature in features],
    }

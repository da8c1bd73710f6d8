"""Export Layer to GeoJSON dict (RFC 7946 compliant).

GeoJSON coordinates are [lng, lat] (already the internal storage convention).
Rendering hints travel in each feature's properties: "style" carries Leaflet
path options and "popup" the HTML popup content.
"""

from __future__ import annotations

from firemap.layers.layer import Layer, LayerFeature


def export_geojson(layer: Layer) -> dict:
    """Export a Layer to a GeoJSON FeatureCollection dict.

    Args:
        layer: The Layer to export.

    Returns:
        Dict representing a valid GeoJSON FeatureCollection.
    """
    features = []
    for feature in layer.features:
        gj_feature = _feature_to_geojson(feature)
        features.append(gj_feature)

    return {
        "type": "FeatureCollection",
        "name": layer.name,
        "features": features,
    }


def _feature_to_geojson(feature: LayerFeature) -> dict:
    """Convert a LayerFeature to a GeoJSON Feature dict."""
    properties: dict = dict(feature.properties)
    if feature.style:
        properties["style"] = dict(feature.style)
    if feature.popup:
        properties["popup"] = feature.popup
    return {
        "type": "Feature",
        "id": feature.feature_id,
        "geometry": _geometry(feature.geometry_type, feature.coordinates),
        "properties": properties,
    }


def _geometry(geometry_type: str, coordinates: list) -> dict:
    if geometry_type == "GeometryCollection":
        return {
            "type": "GeometryCollection",
            "geometries": [
                _geometry(child["type"], child["coordinates"]) for child in coordinates
            ],
        }
    return {"type": geometry_type, "coordinates": coordinates}

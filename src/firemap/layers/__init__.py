"""Map data layer system: KML parsing, the in-memory map model, GeoJSON export.

The KML parser uses only Python stdlib (xml.etree.ElementTree).
"""

from firemap.layers.layer import FeatureCollection, Layer, LayerFeature, TileLayer
from firemap.layers.map_view import LayerControl, MapView, compute_bounds, create_map_view

__all__ = [
    "FeatureCollection",
    "Layer",
    "LayerControl",
    "LayerFeature",
    "MapView",
    "TileLayer",
    "compute_bounds",
    "create_map_view",
]

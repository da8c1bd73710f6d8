"""Feature and layer dataclasses for the map model.

All coordinates are stored in GeoJSON convention: [lng, lat] or [lng, lat, alt].
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LayerFeature:
    """A single feature (point, line, polygon) within a layer.

    Attributes:
        feature_id: Unique identifier for this feature.
        geometry_type: "Point", "LineString", "Polygon" or "GeometryCollection".
        coordinates: GeoJSON-style coordinate arrays.
            Point: [lng, lat] or [lng, lat, alt]
            LineString: [[lng, lat], [lng, lat], ...]
            Polygon: [[[lng, lat], [lng, lat], ...]]  (list of rings)
            GeometryCollection: list of {"type", "coordinates"} dicts
        properties: String key-value metadata (name, description, styleUrl...).
        style: Optional rendering hints (Leaflet path options for polygons).
        popup: Optional HTML popup content shown when the feature is clicked.
    """

    feature_id: str
    geometry_type: str
    coordinates: list
    properties: dict[str, str]
    style: dict | None = None
    popup: str | None = None


@dataclass
class FeatureCollection:
    """Parsed content of one KML document.

    Attributes:
        name: Document name, empty when the document has none.
        features: Parsed features in document order.
        source_id: Identifier of the source the document came from.
    """

    name: str
    features: list[LayerFeature]
    source_id: str = ""


@dataclass
class Layer:
    """A named, togglable collection of features shown on the map.

    Attributes:
        layer_id: Unique identifier for this layer.
        name: Human-readable display name (the layer control entry).
        kind: "hotspots" or "boundary".
        features: List of LayerFeature instances.
        visible: Whether the layer is currently rendered.
        metadata: Arbitrary key-value metadata about the layer.
        created_at: ISO8601 creation timestamp.
    """

    layer_id: str
    name: str
    kind: str
    features: list[LayerFeature]
    visible: bool = True
    metadata: dict = field(default_factory=dict)
    created_at: str = ""


@dataclass(frozen=True)
class TileLayer:
    """A base map tile layer, described by its URL template only."""

    name: str
    url_template: str
    attribution: str

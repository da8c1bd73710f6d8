"""MapView: in-memory model of the map a browser displays.

Holds the layers currently on the map, the layer-visibility control
(base layers + named overlays), and the viewport (center, zoom, bounds).
The frontend polls this model; nothing here renders anything.
"""

from __future__ import annotations

from loguru import logger

from firemap.layers.layer import Layer, LayerFeature, TileLayer


class LayerControl:
    """Base-layer switcher plus named, togglable overlay entries.

    Overlay entries map a display name to the id of the layer currently
    registered under it. A name is registered at most once.
    """

    def __init__(self) -> None:
        self._base_layers: dict[str, TileLayer] = {}
        self._active_base: str | None = None
        self._overlays: dict[str, str] = {}

    # -- base layers --------------------------------------------------------

    def add_base_layer(self, tile: TileLayer) -> None:
        self._base_layers[tile.name] = tile
        if self._active_base is None:
            self._active_base = tile.name

    def select_base(self, name: str) -> None:
        """Switch the active base layer.

        Raises:
            KeyError: If no base layer has that name.
        """
        if name not in self._base_layers:
            raise KeyError(f"Base layer not found: {name}")
        self._active_base = name

    @property
    def active_base(self) -> str | None:
        return self._active_base

    def base_layers(self) -> list[TileLayer]:
        return list(self._base_layers.values())

    # -- overlays -----------------------------------------------------------

    def add_overlay(self, layer: Layer, name: str) -> None:
        """Register a layer under an overlay name.

        Raises:
            ValueError: If the name is already registered.
        """
        if name in self._overlays:
            raise ValueError(f"Overlay already registered: {name}")
        self._overlays[name] = layer.layer_id

    def remove_overlay(self, layer_id: str) -> bool:
        """Remove whichever overlay entry points at layer_id."""
        for name, registered in list(self._overlays.items()):
            if registered == layer_id:
                del self._overlays[name]
                return True
        return False

    def overlay_names(self) -> list[str]:
        return list(self._overlays)

    def overlay_layer_id(self, name: str) -> str | None:
        return self._overlays.get(name)


class MapView:
    """Registry of the layers on the map, with its control and viewport."""

    def __init__(self, center: tuple[float, float], zoom: int) -> None:
        self.center = center
        self.zoom = zoom
        self.bounds: list[list[float]] | None = None
        self.control = LayerControl()
        self._layers: dict[str, Layer] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Tear the map down; owners check `closed` before mutating it."""
        self._closed = True
        self._layers.clear()
        logger.info("Map view closed")

    def add_layer(self, layer: Layer) -> str:
        """Put a layer on the map.

        Returns:
            The layer_id of the added layer.
        """
        self._layers[layer.layer_id] = layer
        return layer.layer_id

    def remove_layer(self, layer_id: str) -> bool:
        """Take a layer off the map.

        Returns:
            True if the layer was removed, False if it wasn't on the map.
        """
        if layer_id in self._layers:
            del self._layers[layer_id]
            return True
        return False

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self._layers

    def get_layer(self, layer_id: str) -> Layer | None:
        return self._layers.get(layer_id)

    def list_layers(self) -> list[Layer]:
        return list(self._layers.values())

    def overlay(self, name: str) -> Layer | None:
        """Look up the layer currently registered under an overlay name."""
        layer_id = self.control.overlay_layer_id(name)
        if layer_id is None:
            return None
        return self._layers.get(layer_id)

    def set_visibility(self, layer_id: str, visible: bool) -> None:
        """Set the visibility of a layer.

        Raises:
            KeyError: If the layer_id is not found.
        """
        layer = self._layers.get(layer_id)
        if layer is None:
            raise KeyError(f"Layer not found: {layer_id}")
        layer.visible = visible

    def fit_bounds(self, bounds: list[list[float]] | None) -> bool:
        """Fit the viewport to [[south, west], [north, east]].

        Returns:
            False when bounds is None (nothing to fit).
        """
        if bounds is None:
            return False
        self.bounds = bounds
        (south, west), (north, east) = bounds
        self.center = ((south + north) / 2.0, (west + east) / 2.0)
        return True


def compute_bounds(features: list[LayerFeature]) -> list[list[float]] | None:
    """Bounding box of all feature coordinates as [[south, west], [north, east]].

    Returns None when there is no coordinate at all.
    """
    lngs: list[float] = []
    lats: list[float] = []
    for feature in features:
        for lng, lat in _iter_positions(feature.geometry_type, feature.coordinates):
            lngs.append(lng)
            lats.append(lat)
    if not lngs:
        return None
    return [[min(lats), min(lngs)], [max(lats), max(lngs)]]


def _iter_positions(geometry_type: str, coordinates: list):
    if geometry_type == "Point":
        if len(coordinates) >= 2:
            yield coordinates[0], coordinates[1]
    elif geometry_type == "LineString":
        for pos in coordinates:
            yield pos[0], pos[1]
    elif geometry_type == "Polygon":
        for ring in coordinates:
            for pos in ring:
                yield pos[0], pos[1]
    elif geometry_type == "GeometryCollection":
        for child in coordinates:
            yield from _iter_positions(child["type"], child["coordinates"])


DEFAULT_BASE_LAYERS: tuple[TileLayer, ...] = (
    TileLayer(
        name="OpenStreetMap",
        url_template="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        attribution=(
            '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> '
            "contributors"
        ),
    ),
    TileLayer(
        name="Satélite (ESRI)",
        url_template=(
            "https://server.arcgisonline.com/ArcGIS/rest/services/"
            "World_Imagery/MapServer/tile/{z}/{y}/{x}"
        ),
        attribution=(
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
    ),
)


def create_map_view(
    center: tuple[float, float],
    zoom: int,
    base_layers: tuple[TileLayer, ...] = DEFAULT_BASE_LAYERS,
) -> MapView:
    """New map with its base layers registered; the first one is active."""
    map_view = MapView(center=center, zoom=zoom)
    for tile in base_layers:
        map_view.control.add_base_layer(tile)
    return map_view

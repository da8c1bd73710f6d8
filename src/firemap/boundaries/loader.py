"""Load the static farm boundary overlays once, at mount."""

from __future__ import annotations

import html
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from firemap.boundaries.styles import resolve_style
from firemap.layers.layer import FeatureCollection, Layer
from firemap.layers.map_view import MapView, compute_bounds
from firemap.layers.parsers.kml import ParseError, parse_kml

DEFAULT_POPUP_TITLE = "Perímetro da Fazenda"


@dataclass(frozen=True)
class BoundarySource:
    """A local KML document and the overlay name it is shown under."""

    path: str
    name: str


def build_boundary_layer(collection: FeatureCollection, name: str) -> Layer:
    """Style every feature and attach its popup."""
    for feature in collection.features:
        feature.style = resolve_style(feature).to_path_options()
        title = feature.properties.get("name") or DEFAULT_POPUP_TITLE
        feature.popup = f"<b>{html.escape(title)}</b>"
    return Layer(
        layer_id=f"boundary-{uuid.uuid4().hex[:8]}",
        name=name,
        kind="boundary",
        features=collection.features,
        metadata={"document": collection.name},
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def load_boundary(map_view: MapView, source: BoundarySource, fit: bool = False) -> Layer | None:
    """Load one boundary document onto the map.

    Returns:
        The added layer, or None when the file is missing, unparsable or empty.
    """
    logger.info(f"Loading farm boundaries from {source.path}...")
    if map_view.control.overlay_layer_id(source.name) is not None:
        logger.warning(f"Overlay name already in use, skipping boundary: {source.name}")
        return None
    path = Path(source.path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Farm boundary file unreadable: {source.path}: {e}")
        return None

    parsed = parse_kml(content, source_id=path.stem)
    if isinstance(parsed, ParseError):
        return None
    if not parsed.features:
        logger.warning(f"No features in farm boundary KML {source.path}")
        return None

    layer = build_boundary_layer(parsed, source.name)
    map_view.add_layer(layer)
    map_view.control.add_overlay(layer, source.name)
    logger.info(f"Farm boundary layer '{source.name}' added ({len(layer.features)} features)")

    if fit and map_view.fit_bounds(compute_bounds(layer.features)):
        logger.info("Map fitted to farm boundary bounds")
    return layer


def load_boundaries(map_view: MapView, sources: list[BoundarySource]) -> list[Layer]:
    """Load every boundary; the map is fitted to the first one that loads."""
    layers: list[Layer] = []
    for source in sources:
        layer = load_boundary(map_view, source, fit=not layers)
        if layer is not None:
            layers.append(layer)
    return layers

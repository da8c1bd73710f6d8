"""Map state API: the model the Leaflet page renders.

Exposes the viewport, base layers, overlays (hotspots + farm boundaries)
as GeoJSON, and lets the page toggle overlay visibility and switch base
layers. The hotspot overlay is replaced every refresh cycle; visibility
set here survives the swap.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from firemap.layers.exporters.geojson import export_geojson
from firemap.layers.map_view import MapView

router = APIRouter(tags=["map"])


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class BaseLayerInfo(BaseModel):
    """A base tile layer entry in the layer control."""
    name: str
    url_template: str
    attribution: str
    active: bool


class OverlayInfo(BaseModel):
    """An overlay entry in the layer control."""
    name: str
    layer_id: str
    kind: str
    visible: bool
    feature_count: int


class MapStateResponse(BaseModel):
    """Full map model: viewport plus layer control."""
    center: list[float]  # [lat, lng]
    zoom: int
    bounds: list[list[float]] | None = None
    base_layers: list[BaseLayerInfo]
    overlays: list[OverlayInfo]


class VisibilityRequest(BaseModel):
    visible: bool


class BaseLayerRequest(BaseModel):
    name: str


def _get_map_view(request: Request) -> MapView:
    map_view = getattr(request.app.state, "map_view", None)
    if map_view is None or map_view.closed:
        raise HTTPException(503, "Map not available")
    return map_view


def _overlay_or_404(map_view: MapView, name: str):
    layer = map_view.overlay(name)
    if layer is None:
        raise HTTPException(404, f"Overlay not found: {name}")
    return layer


# ---------------------------------------------------------------------------
# Map state
# ---------------------------------------------------------------------------

@router.get("/api/map", response_model=MapStateResponse)
async def get_map_state(request: Request):
    """Viewport, base layers and overlays, in layer-control order."""
    map_view = _get_map_view(request)
    control = map_view.control

    overlays = []
    for name in control.overlay_names():
        layer = map_view.overlay(name)
        if layer is None:
            continue
        overlays.append(OverlayInfo(
            name=name,
            layer_id=layer.layer_id,
            kind=layer.kind,
            visible=layer.visible,
            feature_count=len(layer.features),
        ))

    return MapStateResponse(
        center=[map_view.center[0], map_view.center[1]],
        zoom=map_view.zoom,
        bounds=map_view.bounds,
        base_layers=[
            BaseLayerInfo(
                name=tile.name,
                url_template=tile.url_template,
                attribution=tile.attribution,
                active=tile.name == control.active_base,
            )
            for tile in control.base_layers()
        ],
        overlays=overlays,
    )


@router.get("/api/map/overlays/{name}")
async def get_overlay(name: str, request: Request):
    """One overlay as a GeoJSON FeatureCollection.

    Style and popup travel in feature properties; hotspot overlays also
    carry the marker icon options.
    """
    map_view = _get_map_view(request)
    layer = _overlay_or_404(map_view, name)
    data = export_geojson(layer)
    data["visible"] = layer.visible
    if "icon" in layer.metadata:
        data["icon"] = layer.metadata["icon"]
    return data


@router.put("/api/map/overlays/{name}/visibility")
async def set_overlay_visibility(name: str, body: VisibilityRequest, request: Request):
    """Show or hide an overlay."""
    map_view = _get_map_view(request)
    layer = _overlay_or_404(map_view, name)
    map_view.set_visibility(layer.layer_id, body.visible)
    return {"name": name, "visible": body.visible}


@router.put("/api/map/base")
async def select_base_layer(body: BaseLayerRequest, request: Request):
    """Switch the active base tile layer."""
    map_view = _get_map_view(request)
    try:
        map_view.control.select_base(body.name)
    except KeyError:
        raise HTTPException(404, f"Base layer not found: {body.name}")
    return {"active": body.name}


# ---------------------------------------------------------------------------
# Hotspot refresh status
# ---------------------------------------------------------------------------

@router.get("/api/hotspots/status")
async def hotspot_status(request: Request):
    """Scheduler stats and the reconciler's current generation."""
    reconciler = getattr(request.app.state, "reconciler", None)
    scheduler = getattr(request.app.state, "scheduler", None)
    if reconciler is None or scheduler is None:
        raise HTTPException(503, "Hotspot refresh not running")
    return {
        "scheduler": scheduler.stats,
        "overlay": reconciler.summary(),
    }

"""Overlay reconciler: keeps the hotspot overlay in sync with the sources.

One cycle: Idle -> Fetching -> Reconciling -> Idle. The reconciler owns an
immutable OverlayState; each cycle computes the next state with
reconcile() and installs it with apply_swap(), which is synchronous so
nothing else on the event loop can observe a half-swapped map.

Source outcomes are asymmetric on purpose:
  - success, even with zero points, is authoritative and replaces that
    source's previous records;
  - failure is not: the source's last good records are carried forward
    (unless retain_stale_on_failure is off).
When every source fails and an overlay is already shown, the cycle ends
in Idle without touching the map.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from loguru import logger

from firemap.hotspots.annotator import HotspotRecord, to_layer_feature
from firemap.hotspots.fetcher import HotspotFetcher, SourceErr, SourceOk, SourceResult
from firemap.hotspots.sources import SourceDescriptor
from firemap.layers.layer import Layer
from firemap.layers.map_view import MapView

DEFAULT_OVERLAY_NAME = "Focos de Incêndio (INPE)"
HOTSPOT_LAYER_KIND = "hotspots"

# Leaflet L.icon options for hotspot markers.
FIRE_ICON = {
    "iconUrl": "https://img.icons8.com/plasticine/100/fire-element--v1.png",
    "iconSize": [30, 30],
    "iconAnchor": [15, 30],
    "popupAnchor": [0, -30],
}


class Phase(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RECONCILING = "reconciling"


@dataclass(frozen=True)
class OverlayState:
    """Snapshot of what the reconciler has put on the map.

    Attributes:
        generation: Number of swaps performed so far.
        layer_id: Id of the overlay layer currently on the map, if any.
        records_by_source: Records shown per source id.
        outcomes: Last cycle outcome per source id ("ok" or the error reason).
        phase: Where in the cycle this state was taken.
        updated_at: ISO8601 time of the last swap.
    """

    generation: int = 0
    layer_id: str | None = None
    records_by_source: dict[str, tuple[HotspotRecord, ...]] = field(default_factory=dict)
    outcomes: dict[str, str] = field(default_factory=dict)
    phase: Phase = Phase.IDLE
    updated_at: str = ""

    @property
    def records(self) -> list[HotspotRecord]:
        """Aggregate of all per-source records."""
        return aggregate(self.records_by_source)


def aggregate(records_by_source: dict[str, tuple[HotspotRecord, ...]]) -> list[HotspotRecord]:
    merged: list[HotspotRecord] = []
    for records in records_by_source.values():
        merged.extend(records)
    return merged


def reconcile(
    state: OverlayState,
    results: list[SourceResult],
    retain_stale_on_failure: bool = True,
) -> OverlayState:
    """Compute the next state from one cycle's settled source results.

    Returns a state in Phase.RECONCILING that still has to be swapped in,
    or, on total failure with an overlay already shown, the current state
    back in Phase.IDLE.
    """
    outcomes: dict[str, str] = {}
    for result in results:
        outcomes[result.source_id] = "ok" if isinstance(result, SourceOk) else result.reason

    succeeded = [r for r in results if isinstance(r, SourceOk)]
    if results and not succeeded and state.layer_id is not None:
        return replace(state, outcomes=outcomes, phase=Phase.IDLE)

    records_by_source: dict[str, tuple[HotspotRecord, ...]] = {}
    for result in results:
        if isinstance(result, SourceOk):
            records_by_source[result.source_id] = result.records
        elif retain_stale_on_failure and result.source_id in state.records_by_source:
            records_by_source[result.source_id] = state.records_by_source[result.source_id]

    return OverlayState(
        generation=state.generation + 1,
        layer_id=None,
        records_by_source=records_by_source,
        outcomes=outcomes,
        phase=Phase.RECONCILING,
        updated_at=state.updated_at,
    )


def build_overlay_layer(state: OverlayState, overlay_name: str) -> Layer:
    """Fully construct the marker layer for a reconciled state."""
    features = [
        to_layer_feature(record, f"hotspot-{state.generation}-{idx}")
        for idx, record in enumerate(state.records)
    ]
    return Layer(
        layer_id=f"hotspots-{state.generation}",
        name=overlay_name,
        kind=HOTSPOT_LAYER_KIND,
        features=features,
        metadata={
            "generation": state.generation,
            "sources": dict(state.outcomes),
            "icon": dict(FIRE_ICON),
        },
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def _foreign_overlay(map_view: MapView, overlay_name: str) -> Layer | None:
    """The non-hotspot layer registered under overlay_name, if any."""
    layer = map_view.overlay(overlay_name)
    if layer is not None and layer.kind != HOTSPOT_LAYER_KIND:
        return layer
    return None


def apply_swap(
    map_view: MapView,
    previous: OverlayState,
    next_state: OverlayState,
    overlay_name: str = DEFAULT_OVERLAY_NAME,
) -> OverlayState:
    """Replace the previous overlay generation with the next one.

    The new layer is built before anything is removed. Removal from map and
    control happens before addition; the new layer keeps the visibility the
    user last chose for the overlay. No await: runs as one step on the loop.

    Raises:
        ValueError: If overlay_name is held by a layer that is not a hotspot
            overlay. The map is left untouched.
    """
    foreign = _foreign_overlay(map_view, overlay_name)
    if foreign is not None:
        raise ValueError(
            f"Overlay name {overlay_name!r} is held by {foreign.kind} layer {foreign.layer_id}"
        )
    layer = build_overlay_layer(next_state, overlay_name)

    visible = True
    stale_ids = []
    if previous.layer_id is not None:
        stale_ids.append(previous.layer_id)
    registered = map_view.control.overlay_layer_id(overlay_name)
    if registered is not None and registered not in stale_ids:
        stale_ids.append(registered)

    for layer_id in stale_ids:
        old = map_view.get_layer(layer_id)
        if old is not None:
            visible = old.visible
        map_view.remove_layer(layer_id)
        map_view.control.remove_overlay(layer_id)

    layer.visible = visible
    map_view.add_layer(layer)
    map_view.control.add_overlay(layer, overlay_name)

    return replace(
        next_state,
        layer_id=layer.layer_id,
        phase=Phase.IDLE,
        updated_at=layer.created_at,
    )


class OverlayReconciler:
    """Owns the hotspot overlay of one map view.

    Raises:
        ValueError: If overlay_name is already registered for a layer that
            is not a hotspot overlay, such as a farm boundary.
    """

    def __init__(
        self,
        map_view: MapView,
        fetcher: HotspotFetcher,
        sources: tuple[SourceDescriptor, ...] | list[SourceDescriptor],
        overlay_name: str = DEFAULT_OVERLAY_NAME,
        retain_stale_on_failure: bool = True,
    ) -> None:
        foreign = _foreign_overlay(map_view, overlay_name)
        if foreign is not None:
            raise ValueError(
                f"Hotspot overlay name {overlay_name!r} is already used by "
                f"{foreign.kind} layer {foreign.name!r}"
            )
        self._map_view = map_view
        self._fetcher = fetcher
        self._sources = tuple(sources)
        self._overlay_name = overlay_name
        self._retain_stale = retain_stale_on_failure
        self._state = OverlayState()

    @property
    def state(self) -> OverlayState:
        return self._state

    @property
    def overlay_name(self) -> str:
        return self._overlay_name

    @property
    def sources(self) -> tuple[SourceDescriptor, ...]:
        return self._sources

    async def run_cycle(self) -> OverlayState:
        """Fetch every source, reconcile, and swap the overlay."""
        if self._map_view.closed:
            return self._state

        logger.info(f"Refreshing hotspots from {len(self._sources)} sources...")
        self._state = replace(self._state, phase=Phase.FETCHING)
        results = await self._fetcher.fetch_all(self._sources)

        if self._map_view.closed:
            logger.debug("Map view closed during fetch, discarding results")
            return self._state

        next_state = reconcile(self._state, results, self._retain_stale)
        failed = [r.source_id for r in results if isinstance(r, SourceErr)]
        if next_state.phase is Phase.IDLE:
            logger.warning(
                f"All {len(results)} hotspot sources failed, keeping generation "
                f"{next_state.generation} on the map"
            )
            self._state = next_state
            return self._state

        try:
            self._state = apply_swap(self._map_view, self._state, next_state, self._overlay_name)
        except ValueError as e:
            logger.error(f"Hotspot overlay not swapped: {e}")
            self._state = replace(self._state, outcomes=next_state.outcomes, phase=Phase.IDLE)
            return self._state
        logger.info(
            f"Hotspots updated: {len(self._state.records)} loaded, "
            f"{len(results) - len(failed)}/{len(results)} sources ok "
            f"(generation {self._state.generation})"
        )
        if failed:
            logger.warning(f"Hotspot sources failed this cycle: {', '.join(failed)}")
        return self._state

    def summary(self) -> dict:
        state = self._state
        return {
            "generation": state.generation,
            "phase": state.phase.value,
            "layer_id": state.layer_id,
            "hotspots": len(state.records),
            "updated_at": state.updated_at,
            "sources": {
                s.source_id: {
                    "url": s.url,
                    "outcome": state.outcomes.get(s.source_id),
                    "hotspots": len(state.records_by_source.get(s.source_id, ())),
                }
                for s in self._sources
            },
        }

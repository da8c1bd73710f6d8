"""Hotspot pipeline: fetch, parse, filter, annotate, reconcile, schedule."""
from .annotator import DEFAULT_LABEL, FIELD_RULES, FieldRule, HotspotRecord, annotate, render_popup
from .fetcher import HotspotFetcher, SourceErr, SourceNotAllowed, SourceOk, process_document
from .filter import filter_points
from .reconciler import (
    DEFAULT_OVERLAY_NAME,
    FIRE_ICON,
    HOTSPOT_LAYER_KIND,
    OverlayReconciler,
    OverlayState,
    Phase,
    apply_swap,
    reconcile,
)
from .scheduler import RefreshScheduler
from .sources import SourceDescriptor, build_sources, is_allowed_address

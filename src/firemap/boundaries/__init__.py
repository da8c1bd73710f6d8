"""Static farm boundary overlays and their styling."""
from .loader import BoundarySource, build_boundary_layer, load_boundaries, load_boundary
from .styles import DEFAULT_STYLE, STYLE_TABLE, BoundaryStyle, resolve_style

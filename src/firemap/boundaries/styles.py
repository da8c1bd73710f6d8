"""Boundary style resolver: maps a feature's styleUrl to a polygon style.

The farm boundary KML references shared PolyStyles by id. Lookup is an
ordered substring match on styleUrl; the first token found wins and a
miss falls back to DEFAULT_STYLE.
"""

from __future__ import annotations

from dataclasses import dataclass

from firemap.layers.layer import LayerFeature


@dataclass(frozen=True)
class BoundaryStyle:
    """Stroke and fill for one boundary polygon."""

    color: str
    weight: float
    opacity: float
    fill_color: str
    fill_opacity: float

    def to_path_options(self) -> dict:
        """Leaflet path option names."""
        return {
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
            "fillColor": self.fill_color,
            "fillOpacity": self.fill_opacity,
        }


DEFAULT_STYLE = BoundaryStyle(
    color="#fcb4d4", weight=3, opacity=0.8, fill_color="#ffffff", fill_opacity=0.2
)

STYLE_TABLE: tuple[tuple[str, BoundaryStyle], ...] = (
    ("PolyStyle007", BoundaryStyle("#ffffff", 2, 0.8, "#fcb4d4", 0.1)),
    ("PolyStyle0012", BoundaryStyle("#fcb4d4", 2, 0.8, "#fcb4d4", 0.1)),
    ("PolyStyle00159", BoundaryStyle("#f0f0f0", 3, 0.8, "#f0f0f0", 0.07)),
)


def resolve_style(
    feature: LayerFeature,
    table: tuple[tuple[str, BoundaryStyle], ...] = STYLE_TABLE,
    default: BoundaryStyle = DEFAULT_STYLE,
) -> BoundaryStyle:
    """Style for a boundary feature, keyed by a token in its styleUrl."""
    style_url = (feature.properties or {}).get("styleUrl") or ""
    if style_url:
        for token, style in table:
            if token in style_url:
                return style
    return default

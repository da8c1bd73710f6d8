"""Tests for the boundary style resolver."""

import pytest
from firemap.boundaries.styles import (
    DEFAULT_STYLE,
    STYLE_TABLE,
    BoundaryStyle,
    resolve_style,
)
from firemap.layers import LayerFeature


def _polygon(style_url=None):
    properties = {"name": "Fazenda"}
    if style_url is not None:
        properties["styleUrl"] = style_url
    return LayerFeature("b-0", "Polygon", [[[0, 0], [1, 0], [1, 1], [0, 0]]], properties)


@pytest.mark.unit
class TestResolveStyle:

    @pytest.mark.parametrize("style_url,color,fill_color,fill_opacity", [
        ("#PolyStyle007", "#ffffff", "#fcb4d4", 0.1),
        ("#PolyStyle0012", "#fcb4d4", "#fcb4d4", 0.1),
        ("#PolyStyle00159", "#f0f0f0", "#f0f0f0", 0.07),
    ])
    def test_known_tokens(self, style_url, color, fill_color, fill_opacity):
        style = resolve_style(_polygon(style_url))
        assert style.color == color
        assert style.fill_color == fill_color
        assert style.fill_opacity == fill_opacity

    def test_token_matched_anywhere_in_url(self):
        style = resolve_style(_polygon("doc.kml#PolyStyle007_highlight"))
        assert style is STYLE_TABLE[0][1]

    @pytest.mark.parametrize("style_url", [None, "", "#LineStyle01", "#polystyle007"])
    def test_default_for_unknown(self, style_url):
        assert resolve_style(_polygon(style_url)) == DEFAULT_STYLE

    def test_first_matching_entry_wins(self):
        first = BoundaryStyle("#000000", 1, 1.0, "#000000", 1.0)
        second = BoundaryStyle("#111111", 1, 1.0, "#111111", 1.0)
        table = (("Poly", first), ("PolyStyle007", second))
        assert resolve_style(_polygon("#PolyStyle007"), table) is first

    def test_custom_default(self):
        fallback = BoundaryStyle("#123456", 1, 0.5, "#654321", 0.5)
        assert resolve_style(_polygon(), default=fallback) is fallback


@pytest.mark.unit
class TestBoundaryStyle:

    def test_default_values(self):
        assert DEFAULT_STYLE.color == "#fcb4d4"
        assert DEFAULT_STYLE.weight == 3
        assert DEFAULT_STYLE.fill_color == "#ffffff"
        assert DEFAULT_STYLE.fill_opacity == 0.2

    def test_path_options_use_leaflet_names(self):
        assert DEFAULT_STYLE.to_path_options() == {
            "color": "#fcb4d4",
            "weight": 3,
            "opacity": 0.8,
            "fillColor": "#ffffff",
            "fillOpacity": 0.2,
        }

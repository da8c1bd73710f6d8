"""Tests for the feature annotator: field rules, label fallback, popups."""

import pytest
from firemap.hotspots.annotator import (
    DEFAULT_LABEL,
    FIELD_RULES,
    FieldRule,
    HotspotRecord,
    annotate,
    extract_fields,
    render_popup,
    to_layer_feature,
)
from firemap.layers import LayerFeature
from firemap.layers.parsers.kml import parse_kml


def _point(properties):
    return LayerFeature("f-0", "Point", [-55.7, -12.5, 0.0], properties)


@pytest.mark.unit
class TestFieldExtraction:
    """Rule-table extraction from description text."""

    def test_text_rows(self):
        """`Label: value` rows are extracted verbatim; unmatched fields stay absent."""
        desc = "Data Hora UTC: 2024-08-01 12:00\nSatélite: AQUA_M-T\nBioma: Cerrado"
        record = annotate(_point({"description": desc}))
        assert record.observed_at == "2024-08-01 12:00"
        assert record.sensor == "AQUA_M-T"
        assert record.administrative_area is None
        assert record.region is None

    def test_html_table_rows(self, inpe_kml):
        """INPE's <td>Label</td><td>value</td> table is extracted."""
        feature = parse_kml(inpe_kml).features[0]
        record = annotate(feature, source_id="focos_frentes_MT")
        assert record.observed_at == "2024/08/01 12:00:00"
        assert record.sensor == "AQUA_M-T"
        assert record.administrative_area == "SORRISO"
        assert record.region == "MATO GROSSO"
        assert record.source_id == "focos_frentes_MT"

    def test_rows_separated_by_br(self):
        desc = "Satélite: NOAA-20<br/>Estado: BAHIA<br/>"
        fields = extract_fields(desc)
        assert fields == {"sensor": "NOAA-20", "region": "BAHIA"}

    def test_first_match_wins(self):
        desc = "Estado: MATO GROSSO\nEstado: BAHIA"
        assert extract_fields(desc)["region"] == "MATO GROSSO"

    def test_first_match_in_document_order_across_forms(self):
        desc = "Estado: PARA\n<table><tr><td>Estado</td><td>BAHIA</td></tr></table>"
        assert extract_fields(desc)["region"] == "PARA"

    def test_fields_are_independent(self):
        desc = "<tr><td>Município</td><td>BARREIRAS</td></tr>"
        fields = extract_fields(desc)
        assert fields == {"administrative_area": "BARREIRAS"}

    def test_empty_value_is_absent(self):
        desc = "<tr><td>Satélite</td><td>  </td></tr>"
        assert "sensor" not in extract_fields(desc)

    def test_html_entities_unescaped(self):
        desc = "<tr><td>Município</td><td>S&#195;O FELIX</td></tr>"
        assert extract_fields(desc)["administrative_area"] == "SÃO FELIX"

    def test_unaccented_labels(self):
        desc = "Satelite: TERRA_M-M\nMunicipio: SORRISO"
        fields = extract_fields(desc)
        assert fields["sensor"] == "TERRA_M-M"
        assert fields["administrative_area"] == "SORRISO"

    def test_custom_rule_table(self):
        rules = FIELD_RULES + (FieldRule("region", ("UF",), "UF"),)
        assert extract_fields("UF: MT", rules) == {"region": "MT"}

    def test_custom_extractor(self):
        rules = (FieldRule("sensor", ("Satélite",), "Satélite", extract=lambda s: s.strip().lower()),)
        assert extract_fields("Satélite: AQUA", rules) == {"sensor": "aqua"}


@pytest.mark.unit
class TestLabel:
    """Label is the feature name, or the fallback."""

    def test_fallback_label_without_description(self):
        record = annotate(_point({}))
        assert record.label == DEFAULT_LABEL
        assert record.observed_at is None
        assert record.sensor is None
        assert record.region is None
        assert record.administrative_area is None

    def test_name_used_as_label(self):
        record = annotate(_point({"name": "Foco 17"}))
        assert record.label == "Foco 17"

    def test_blank_name_falls_back(self):
        assert annotate(_point({"name": "   "})).label == DEFAULT_LABEL

    def test_coordinates_always_present(self):
        record = annotate(_point({}))
        assert record.coordinates == (-55.7, -12.5, 0.0)
        assert record.lng == -55.7
        assert record.lat == -12.5


@pytest.mark.unit
class TestPopup:
    """HTML popup rendering."""

    def test_popup_lists_present_fields(self):
        record = HotspotRecord(
            coordinates=(-55.7, -12.5),
            label="Foco",
            observed_at="2024/08/01 12:00:00",
            region="MATO GROSSO",
        )
        assert render_popup(record) == (
            "<b>Foco</b><br/>Data/Hora: 2024/08/01 12:00:00<br/>Estado: MATO GROSSO"
        )

    def test_popup_escapes_html(self):
        record = HotspotRecord(coordinates=(0.0, 0.0), label="<script>")
        assert render_popup(record) == "<b>&lt;script&gt;</b>"

    def test_to_layer_feature(self):
        record = HotspotRecord(
            coordinates=(-55.7, -12.5, 0.0),
            label="Foco",
            sensor="AQUA_M-T",
            source_id="focos_frentes_MT",
        )
        feature = to_layer_feature(record, "hotspot-1-0")
        assert feature.feature_id == "hotspot-1-0"
        assert feature.geometry_type == "Point"
        assert feature.coordinates == [-55.7, -12.5, 0.0]
        assert feature.properties == {
            "name": "Foco",
            "source": "focos_frentes_MT",
            "sensor": "AQUA_M-T",
        }
        assert feature.popup.startswith("<b>Foco</b>")

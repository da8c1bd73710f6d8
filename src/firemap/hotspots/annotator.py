"""Turn parsed point features into display-ready hotspot records.

INPE packs the interesting attributes of each hotspot into an HTML table
inside the Placemark description. Extraction is driven by FIELD_RULES:
one row per record field, each naming the row labels it answers to and
the extractor that cleans the captured value. Adding a field for a new
feed format is a new row, not new control flow.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable

from firemap.layers.layer import LayerFeature

DEFAULT_LABEL = "Foco de Incêndio"


@dataclass(frozen=True)
class HotspotRecord:
    """A single hotspot marker.

    Coordinates are always present. The descriptive fields are best-effort
    and stay None when the description had no matching row.
    region is the state (Estado), administrative_area the municipality.
    """

    coordinates: tuple[float, ...]
    label: str
    observed_at: str | None = None
    sensor: str | None = None
    region: str | None = None
    administrative_area: str | None = None
    source_id: str = ""

    @property
    def lat(self) -> float:
        return self.coordinates[1]

    @property
    def lng(self) -> float:
        return self.coordinates[0]


def _clean(raw: str) -> str | None:
    value = " ".join(html.unescape(raw).split())
    return value or None


@dataclass(frozen=True)
class FieldRule:
    """Maps description rows labelled with any of `labels` to record field `name`."""

    name: str
    labels: tuple[str, ...]
    display: str
    extract: Callable[[str], str | None] = field(default=_clean, compare=False)

    @property
    def pattern(self) -> re.Pattern:
        return _row_pattern(self.labels)


@lru_cache(maxsize=None)
def _row_pattern(labels: tuple[str, ...]) -> re.Pattern:
    """Match `<td>Label</td><td>value</td>` or a `Label: value` row (line or <br/>)."""
    alt = "|".join(re.escape(label) for label in labels)
    return re.compile(
        rf"<td[^>]*>\s*(?:{alt})\s*</td>\s*<td[^>]*>(?P<cell>[^<]*)</td>"
        rf"|(?:^|(?<=>))[ \t]*(?:{alt})[ \t]*:(?P<text>[^\r\n<]*)(?=<|\r|$)",
        re.MULTILINE,
    )


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule("observed_at", ("Data Hora UTC", "Data/Hora"), "Data/Hora"),
    FieldRule("sensor", ("Satélite", "Satelite"), "Satélite"),
    FieldRule("administrative_area", ("Município", "Municipio"), "Município"),
    FieldRule("region", ("Estado",), "Estado"),
)


def extract_fields(
    description: str, rules: tuple[FieldRule, ...] = FIELD_RULES
) -> dict[str, str]:
    """Extract every field whose rule matches; first match in the text wins."""
    values: dict[str, str] = {}
    if not description:
        return values
    for rule in rules:
        for match in rule.pattern.finditer(description):
            raw = match.group("cell")
            if raw is None:
                raw = match.group("text")
            value = rule.extract(raw)
            if value is not None:
                values[rule.name] = value
                break
    return values


def annotate(feature: LayerFeature, source_id: str = "") -> HotspotRecord:
    """Build a HotspotRecord from a Point feature."""
    props = feature.properties or {}
    label = (props.get("name") or "").strip() or DEFAULT_LABEL
    fields = extract_fields(props.get("description", ""))
    return HotspotRecord(
        coordinates=tuple(feature.coordinates),
        label=label,
        source_id=source_id,
        **fields,
    )


def render_popup(record: HotspotRecord, rules: tuple[FieldRule, ...] = FIELD_RULES) -> str:
    """HTML popup: bold label, then one line per present field."""
    parts = [f"<b>{html.escape(record.label)}</b>"]
    for rule in rules:
        value = getattr(record, rule.name, None)
        if value:
            parts.append(f"<br/>{rule.display}: {html.escape(value)}")
    return "".join(parts)


def to_layer_feature(record: HotspotRecord, feature_id: str) -> LayerFeature:
    """Marker feature for the hotspot overlay layer."""
    properties = {"name": record.label, "source": record.source_id}
    for rule in FIELD_RULES:
        value = getattr(record, rule.name, None)
        if value is not None:
            properties[rule.name] = value
    return LayerFeature(
        feature_id=feature_id,
        geometry_type="Point",
        coordinates=list(record.coordinates),
        properties=properties,
        popup=render_popup(record),
    )

"""Parse KML 2.2/2.3 XML into a FeatureCollection using xml.etree.ElementTree.

Handles Placemark/Point, Placemark/LineString, Placemark/Polygon and
Placemark/MultiGeometry (as a GeometryCollection). Extracts name,
description, styleUrl and ExtendedData values as string properties.
KML coordinate format: "lng,lat,alt lng,lat,alt" (longitude first, latitude second).
All coordinates stored as [lng, lat, alt] (GeoJSON convention).

A malformed document never raises: parse_kml returns a ParseError value
so that one bad source cannot take down the refresh cycle.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from loguru import logger

from firemap.layers.layer import FeatureCollection, LayerFeature

_SIMPLE_GEOMETRIES = ("Point", "LineString", "Polygon")


@dataclass(frozen=True)
class ParseError:
    """A document that could not be parsed.

    Attributes:
        source_id: Source the document came from.
        message: Diagnostic from the XML parser or the structure check.
    """

    source_id: str
    message: str


def parse_kml(kml_string: str, source_id: str = "") -> FeatureCollection | ParseError:
    """Parse a KML XML string into a FeatureCollection.

    Args:
        kml_string: Raw KML XML content.
        source_id: Identifier carried into the result (and any ParseError).

    Returns:
        FeatureCollection with parsed features, or ParseError when the
        document is not well-formed XML or not a KML document.
    """
    try:
        root = ET.fromstring(kml_string)
    except ET.ParseError as e:
        return _fail(source_id, f"Malformed XML: {e}")

    ns = _detect_namespace(root)
    if _local_name(root.tag) != "kml":
        return _fail(source_id, f"Root element is <{_local_name(root.tag)}>, expected <kml>")

    # Extract document name
    doc_name = ""
    doc = root.find(f"{ns}Document")
    if doc is not None:
        name_elem = doc.find(f"{ns}name")
        if name_elem is not None and name_elem.text:
            doc_name = name_elem.text.strip()

    features: list[LayerFeature] = []
    for idx, pm in enumerate(root.iter(f"{ns}Placemark")):
        feature = _parse_placemark(pm, ns, idx, source_id)
        if feature is not None:
            features.append(feature)

    return FeatureCollection(name=doc_name, features=features, source_id=source_id)


def _fail(source_id: str, message: str) -> ParseError:
    logger.warning(f"KML parse failed for {source_id or '<unnamed>'}: {message}")
    return ParseError(source_id=source_id, message=message)


def _detect_namespace(root: ET.Element) -> str:
    """Detect KML namespace from root element tag."""
    tag = root.tag
    if "{" in tag:
        return tag.split("}")[0] + "}"
    return ""


def _local_name(tag: str) -> str:
    return tag.split("}", 1)[1] if "}" in tag else tag


def _parse_placemark(
    pm: ET.Element, ns: str, idx: int, source_id: str
) -> LayerFeature | None:
    """Parse a single Placemark element into a LayerFeature."""
    properties: dict[str, str] = {}
    for key in ("name", "description", "styleUrl"):
        value = _get_direct_text(pm, key, ns)
        if value:
            properties[key] = value
    properties.update(_parse_extended_data(pm, ns))

    geometry = _parse_geometry(pm, ns)
    if geometry is None:
        return None
    geometry_type, coordinates = geometry

    prefix = source_id or "kml"
    return LayerFeature(
        feature_id=f"{prefix}-{idx}",
        geometry_type=geometry_type,
        coordinates=coordinates,
        properties=properties,
    )


def _parse_geometry(parent: ET.Element, ns: str) -> tuple[str, list] | None:
    """Return (geometry_type, coordinates) of the first geometry child."""
    for child in parent:
        name = _local_name(child.tag)
        if name in _SIMPLE_GEOMETRIES:
            coords = _parse_simple(name, child, ns)
            if coords:
                return name, coords
            return None
        if name == "MultiGeometry":
            members = []
            for member in child:
                member_name = _local_name(member.tag)
                if member_name not in _SIMPLE_GEOMETRIES:
                    continue
                coords = _parse_simple(member_name, member, ns)
                if coords:
                    members.append({"type": member_name, "coordinates": coords})
            if members:
                return "GeometryCollection", members
            return None
    return None


def _parse_simple(name: str, geom_elem: ET.Element, ns: str) -> list:
    if name == "Point":
        return _parse_coordinates_single(geom_elem, ns)
    if name == "LineString":
        return _parse_coordinates_list(geom_elem, ns)
    return _parse_polygon_rings(geom_elem, ns)


def _find_child(parent: ET.Element, tag: str, ns: str) -> ET.Element | None:
    """Find a direct or nested child element by tag."""
    return parent.find(f".//{ns}{tag}")


def _get_direct_text(parent: ET.Element, tag: str, ns: str) -> str:
    """Text of a direct child; nested Placemarks must not leak their names."""
    elem = parent.find(f"{ns}{tag}")
    if elem is not None and elem.text:
        return elem.text.strip()
    return ""


def _parse_extended_data(pm: ET.Element, ns: str) -> dict[str, str]:
    """Flatten ExtendedData/Data and SchemaData/SimpleData into name -> value."""
    ext = pm.find(f"{ns}ExtendedData")
    if ext is None:
        return {}

    values: dict[str, str] = {}
    for data in ext.iter(f"{ns}Data"):
        key = data.get("name")
        value_elem = data.find(f"{ns}value")
        if key and value_elem is not None and value_elem.text:
            values[key] = value_elem.text.strip()
    for simple in ext.iter(f"{ns}SimpleData"):
        key = simple.get("name")
        if key and simple.text:
            values[key] = simple.text.strip()
    return values


def _parse_coordinate_string(coord_str: str) -> list[list[float]]:
    """Parse KML coordinate string: 'lng,lat,alt lng,lat,alt ...'

    Returns list of [lng, lat, alt] arrays.
    """
    coords = []
    for token in coord_str.strip().split():
        parts = token.strip().split(",")
        if len(parts) >= 2:
            try:
                lng = float(parts[0])
                lat = float(parts[1])
                alt = float(parts[2]) if len(parts) >= 3 and parts[2] else 0.0
                coords.append([lng, lat, alt])
            except (ValueError, IndexError):
                continue
    return coords


def _parse_coordinates_single(
    geom_elem: ET.Element, ns: str
) -> list[float]:
    """Parse coordinates for a Point geometry (single coordinate)."""
    coord_elem = _find_child(geom_elem, "coordinates", ns)
    if coord_elem is None or not coord_elem.text:
        return []
    coords = _parse_coordinate_string(coord_elem.text)
    if coords:
        return coords[0]  # Single point: [lng, lat, alt]
    return []


def _parse_coordinates_list(
    geom_elem: ET.Element, ns: str
) -> list[list[float]]:
    """Parse coordinates for a LineString geometry (list of coordinates)."""
    coord_elem = _find_child(geom_elem, "coordinates", ns)
    if coord_elem is None or not coord_elem.text:
        return []
    return _parse_coordinate_string(coord_elem.text)


def _parse_polygon_rings(
    polygon_elem: ET.Element, ns: str
) -> list[list[list[float]]]:
    """Parse polygon rings (outer boundary + optional inner boundaries)."""
    rings = []

    outer = _find_child(polygon_elem, "outerBoundaryIs", ns)
    if outer is not None:
        linear_ring = _find_child(outer, "LinearRing", ns)
        if linear_ring is not None:
            coords = _parse_coordinates_list(linear_ring, ns)
            if coords:
                rings.append(coords)

    # Inner boundaries (holes)
    for inner in polygon_elem.findall(f".//{ns}innerBoundaryIs"):
        linear_ring = _find_child(inner, "LinearRing", ns)
        if linear_ring is not None:
            coords = _parse_coordinates_list(linear_ring, ns)
            if coords:
                rings.append(coords)

    return rings

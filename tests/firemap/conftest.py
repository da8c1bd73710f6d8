"""Shared KML documents and helpers for firemap tests."""

from __future__ import annotations

import pytest


def inpe_placemark(
    lng: float,
    lat: float,
    name: str | None = None,
    when: str = "2024/08/01 12:00:00",
    satellite: str = "AQUA_M-T",
    municipality: str = "SORRISO",
    state: str = "MATO GROSSO",
) -> str:
    """One hotspot Placemark shaped like the INPE 48h feeds."""
    name_xml = f"<name>{name}</name>" if name else ""
    return f"""
    <Placemark>
      {name_xml}
      <description><![CDATA[<table>
        <tr><td>Data Hora UTC</td><td>{when}</td></tr>
        <tr><td>Satélite</td><td>{satellite}</td></tr>
        <tr><td>Município</td><td>{municipality}</td></tr>
        <tr><td>Estado</td><td>{state}</td></tr>
      </table>]]></description>
      <Point><coordinates>{lng},{lat},0</coordinates></Point>
    </Placemark>"""


FRONT_PLACEMARK = """
    <Placemark>
      <name>Frente de fogo</name>
      <LineString>
        <coordinates>-55.1,-12.1,0 -55.2,-12.2,0</coordinates>
      </LineString>
    </Placemark>"""


def inpe_document(*placemarks: str, name: str = "focos_frentes_MT") -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>{name}</name>
    {''.join(placemarks)}
  </Document>
</kml>
"""


@pytest.fixture
def inpe_kml():
    """Two hotspots plus a fire-front line."""
    return inpe_document(
        inpe_placemark(-55.7, -12.5, name="Foco 1"),
        inpe_placemark(-55.8, -12.6, municipality="LUCAS DO RIO VERDE"),
        FRONT_PLACEMARK,
    )


@pytest.fixture
def empty_kml():
    """Well-formed feed with no hotspots."""
    return inpe_document(FRONT_PLACEMARK)


@pytest.fixture
def make_placemark():
    return inpe_placemark


@pytest.fixture
def make_document():
    return inpe_document

from __future__ import annotations

import json
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from app.domain.errors import MalformedInputError, NotFoundError

DEFAULT_BOUNDARY_PATH = Path(__file__).resolve().parents[1] / "data" / "sample_boundary.geojson"
BOUNDARY_DATA_PATH = Path(os.getenv("BOUNDARY_DATA_PATH", str(DEFAULT_BOUNDARY_PATH)))

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"
KML_DOCUMENT_NAME = "Drone Safety Boundaries"
KML_DOCUMENT_DESCRIPTION = "Safety zones for drone monitoring"


@dataclass(frozen=True)
class BoundaryFeature:
    name: str
    zone_type: str
    security_level: str
    ring: list[tuple[float, float]]

    @property
    def description(self) -> str:
        return f"Type: {self.zone_type}, Security Level: {self.security_level}"


def _parse_ring(raw: Any, index: int) -> list[tuple[float, float]]:
    if not isinstance(raw, list) or not raw:
        raise MalformedInputError(f"feature {index} has no outer ring")
    ring: list[tuple[float, float]] = []
    for position in raw:
        if (
            not isinstance(position, list)
            or len(position) < 2
            or not all(isinstance(value, int | float) and not isinstance(value, bool) for value in position[:2])
        ):
            raise MalformedInputError(f"feature {index} has an invalid coordinate: {position!r}")
        ring.append((position[0], position[1]))
    return ring


def parse_feature(raw: Any, index: int) -> BoundaryFeature:
    if not isinstance(raw, dict):
        raise MalformedInputError(f"feature {index} is not an object")
    geometry = raw.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") != "Polygon":
        raise MalformedInputError(f"feature {index} is not a polygon")
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, list) or not coordinates:
        raise MalformedInputError(f"feature {index} has no coordinates")
    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        raise MalformedInputError(f"feature {index} has invalid properties")
    return BoundaryFeature(
        name=str(properties.get("name", "")),
        zone_type=str(properties.get("type", "")),
        security_level=str(properties.get("security_level", "")),
        ring=_parse_ring(coordinates[0], index),
    )


class BoundaryService:
    """Serves the static boundary dataset as GeoJSON or KML."""

    def __init__(self, path: Path = BOUNDARY_DATA_PATH) -> None:
        self._path = path

    def geojson(self) -> dict[str, Any]:
        if not self._path.is_file():
            logger.debug("boundary dataset missing at {}", self._path)
            raise NotFoundError("boundary data not found")
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("boundary dataset at {} is not valid JSON", self._path)
            raise MalformedInputError("boundary data could not be parsed") from exc
        if not isinstance(document, dict):
            raise MalformedInputError("boundary data must be a GeoJSON object")
        return document

    def features(self) -> list[BoundaryFeature]:
        document = self.geojson()
        raw_features = document.get("features")
        if not isinstance(raw_features, list):
            raise MalformedInputError("boundary data has no feature collection")
        return [parse_feature(item, index) for index, item in enumerate(raw_features)]

    def kml(self) -> str:
        root = ET.Element("kml", {"xmlns": KML_NAMESPACE})
        document = ET.SubElement(root, "Document")
        ET.SubElement(document, "name").text = KML_DOCUMENT_NAME
        ET.SubElement(document, "description").text = KML_DOCUMENT_DESCRIPTION

        for feature in self.features():
            placemark = ET.SubElement(document, "Placemark")
            ET.SubElement(placemark, "name").text = feature.name
            ET.SubElement(placemark, "description").text = feature.description
            polygon = ET.SubElement(placemark, "Polygon")
            outer = ET.SubElement(polygon, "outerBoundaryIs")
            ring = ET.SubElement(outer, "LinearRing")
            # KML orders coordinates lon,lat,alt, same as GeoJSON positions
            ET.SubElement(ring, "coordinates").text = " ".join(f"{lon},{lat},0" for lon, lat in feature.ring)

        ET.indent(root, space="  ")
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"

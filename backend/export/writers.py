from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from typing import Any, Iterable
from xml.etree.ElementTree import Element, SubElement, indent, tostring

from shapely.geometry import mapping

from coords.systems import CoordSystem, to_storage
from export.geometry import closed_ring, drawing_distance_m, to_geometry, wgs84_coords
from export.types import Drawing, DrawingKind


KML_NS = "http://www.opengis.net/kml/2.2"
CSV_HEADERS = ["Name", "Type", "Longitude", "Latitude", "Distance (m)", "Created", "Description"]


def format_coordinate_pair(lat: float, lng: float, source: str | CoordSystem = CoordSystem.wgs84) -> str:
    """
    "lat, lng" in WGS84 with 6 decimals, for copy/paste.
    """
    lng_w, lat_w = to_storage(lng, lat, source)
    return f"{lat_w:.6f}, {lng_w:.6f}"


def _description(drawing: Drawing) -> str:
    return "Measured segment" if drawing.kind == DrawingKind.measure else "Drawing"


def to_csv(drawings: Iterable[Drawing], *, source: str | CoordSystem = CoordSystem.gcj02) -> str:
    """
    One row per point drawing, one row per vertex for lines and polygons.
    """
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(CSV_HEADERS)
    for d in drawings:
        dist = drawing_distance_m(d, source)
        base = [
            d.display_name,
            d.label,
            "",
            "",
            f"{dist:.2f}" if dist else "",
            d.timestamp.isoformat() if d.timestamp else "",
            _description(d),
        ]
        coords = wgs84_coords(d, source)
        if d.kind == DrawingKind.point:
            if not coords:
                continue
            row = list(base)
            row[2], row[3] = f"{coords[0][0]:.6f}", f"{coords[0][1]:.6f}"
            w.writerow(row)
            continue
        for i, (lng, lat) in enumerate(coords, start=1):
            row = list(base)
            row[0] = f"{d.display_name} - point {i}"
            row[2], row[3] = f"{lng:.6f}", f"{lat:.6f}"
            w.writerow(row)
    return buf.getvalue()


def to_geojson(
    drawings: Iterable[Drawing],
    *,
    source: str | CoordSystem = CoordSystem.gcj02,
    generated: datetime | None = None,
) -> dict[str, Any]:
    """
    FeatureCollection in WGS84. Drawings with too few vertices get a null geometry.
    """
    features: list[dict[str, Any]] = []
    for d in drawings:
        geom = to_geometry(d, source)
        props: dict[str, Any] = {
            "name": d.display_name,
            "type": d.kind.value,
            "typeLabel": d.label,
            "id": d.id,
            "timestamp": d.timestamp.isoformat() if d.timestamp else None,
        }
        dist = drawing_distance_m(d, source)
        if dist:
            props["distance"] = dist
            props["distanceText"] = f"{dist:.2f} m"
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(geom) if geom is not None else None,
                "properties": props,
            }
        )
    return {
        "type": "FeatureCollection",
        "features": features,
        "crs": {"type": "name", "properties": {"name": "WGS84"}},
        "metadata": {
            "generated": (generated or datetime.now(timezone.utc)).isoformat(),
            "count": len(features),
            "coordinateSystem": "WGS84",
        },
    }


def to_geojson_text(drawings: Iterable[Drawing], **kwargs: Any) -> str:
    return json.dumps(to_geojson(drawings, **kwargs), ensure_ascii=False, indent=2)


def _kml_coords(coords: list[tuple[float, float]]) -> str:
    # KML format: longitude,latitude,altitude
    return " ".join(f"{lng},{lat},0" for lng, lat in coords)


def to_kml(
    drawings: Iterable[Drawing],
    *,
    source: str | CoordSystem = CoordSystem.gcj02,
    title: str = "Drawing export",
) -> str:
    kml = Element("kml", xmlns=KML_NS)
    doc = SubElement(kml, "Document")
    SubElement(doc, "name").text = title
    SubElement(doc, "description").text = "Coordinate system: WGS84"

    for d in drawings:
        coords = wgs84_coords(d, source)
        placemark = SubElement(doc, "Placemark")
        SubElement(placemark, "name").text = d.display_name
        desc = f"Type: {d.label}"
        dist = drawing_distance_m(d, source)
        if dist:
            desc += f", distance: {dist:.2f} m"
        SubElement(placemark, "description").text = desc

        if d.kind == DrawingKind.point:
            if coords:
                point = SubElement(placemark, "Point")
                SubElement(point, "coordinates").text = _kml_coords(coords[:1])
        elif d.kind in (DrawingKind.line, DrawingKind.measure):
            line = SubElement(placemark, "LineString")
            SubElement(line, "tessellate").text = "1"
            SubElement(line, "coordinates").text = _kml_coords(coords)
        else:
            polygon = SubElement(placemark, "Polygon")
            ring = SubElement(SubElement(polygon, "outerBoundaryIs"), "LinearRing")
            SubElement(ring, "coordinates").text = _kml_coords(closed_ring(coords))

    indent(kml, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + tostring(kml, encoding="unicode")

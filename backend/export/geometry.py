from __future__ import annotations

from pyproj import Geod
from shapely.geometry import LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry

from coords.systems import CoordSystem, to_storage
from export.types import Drawing, DrawingKind


_GEOD = Geod(ellps="WGS84")


def wgs84_coords(drawing: Drawing, source: str | CoordSystem) -> list[tuple[float, float]]:
    """
    Drawing vertices as WGS84 (lng, lat), whatever system they were drawn in.
    """
    return [to_storage(lng, lat, source) for lng, lat in drawing.coords]


def closed_ring(coords: list[tuple[float, float]]) -> list[tuple[float, float]]:
    if coords and coords[0] != coords[-1]:
        return [*coords, coords[0]]
    return list(coords)


def to_geometry(drawing: Drawing, source: str | CoordSystem) -> BaseGeometry | None:
    """
    Shapely geometry in WGS84. None when the drawing has too few vertices for its kind.
    """
    coords = wgs84_coords(drawing, source)
    if drawing.kind == DrawingKind.point:
        return Point(coords[0]) if coords else None
    if drawing.kind in (DrawingKind.line, DrawingKind.measure):
        return LineString(coords) if len(coords) >= 2 else None
    return Polygon(closed_ring(coords)) if len(coords) >= 3 else None


def geodesic_length_m(coords: list[tuple[float, float]]) -> float:
    """
    Length of a WGS84 polyline on the ellipsoid, in meters.
    """
    if len(coords) < 2:
        return 0.0
    lons = [c[0] for c in coords]
    lats = [c[1] for c in coords]
    return float(_GEOD.line_length(lons, lats))


def drawing_distance_m(drawing: Drawing, source: str | CoordSystem) -> float | None:
    if drawing.kind not in (DrawingKind.line, DrawingKind.measure):
        return None
    return geodesic_length_m(wgs84_coords(drawing, source))

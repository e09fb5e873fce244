"""
Drawing exporters. Output is always WGS84, whatever system the map draws in.
"""

from .geometry import geodesic_length_m, to_geometry, wgs84_coords
from .types import Drawing, DrawingKind
from .writers import format_coordinate_pair, to_csv, to_geojson, to_geojson_text, to_kml

__all__ = [
    "Drawing",
    "DrawingKind",
    "format_coordinate_pair",
    "geodesic_length_m",
    "to_csv",
    "to_geojson",
    "to_geojson_text",
    "to_geometry",
    "to_kml",
    "wgs84_coords",
]

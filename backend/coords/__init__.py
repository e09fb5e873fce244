"""
Coordinate reference systems used by the map.

Points are stored in WGS84; map providers draw them in GCJ-02 or BD-09.
"""

from .distance import haversine_m, meters_per_pixel, pixel_distance
from .systems import (
    CoordSystem,
    convert_coordinate,
    display_coordinates,
    parse_system,
    to_display,
    to_storage,
)
from .transform import (
    bd09_to_gcj02,
    bd09_to_wgs84,
    gcj02_to_bd09,
    gcj02_to_wgs84,
    is_in_region,
    is_valid_coordinate,
    wgs84_to_bd09,
    wgs84_to_gcj02,
)

__all__ = [
    "CoordSystem",
    "bd09_to_gcj02",
    "bd09_to_wgs84",
    "convert_coordinate",
    "display_coordinates",
    "gcj02_to_bd09",
    "gcj02_to_wgs84",
    "haversine_m",
    "is_in_region",
    "is_valid_coordinate",
    "meters_per_pixel",
    "parse_system",
    "pixel_distance",
    "to_display",
    "to_storage",
    "wgs84_to_bd09",
    "wgs84_to_gcj02",
]

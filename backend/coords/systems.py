from __future__ import annotations

from enum import Enum
from typing import Callable

from coords.transform import (
    bd09_to_gcj02,
    bd09_to_wgs84,
    gcj02_to_bd09,
    gcj02_to_wgs84,
    wgs84_to_bd09,
    wgs84_to_gcj02,
)


class CoordSystem(str, Enum):
    """
    Reference systems used by stored points and by the map tile providers.

    - wgs84: GPS / storage / export system
    - gcj02: national offset system (AMap, Tencent, Google China tiles)
    - bd09: Baidu tiles (a second offset on top of gcj02)
    """

    wgs84 = "wgs84"
    gcj02 = "gcj02"
    bd09 = "bd09"


_CONVERTERS: dict[tuple[CoordSystem, CoordSystem], Callable[[float, float], tuple[float, float]]] = {
    (CoordSystem.wgs84, CoordSystem.gcj02): wgs84_to_gcj02,
    (CoordSystem.gcj02, CoordSystem.wgs84): gcj02_to_wgs84,
    (CoordSystem.gcj02, CoordSystem.bd09): gcj02_to_bd09,
    (CoordSystem.bd09, CoordSystem.gcj02): bd09_to_gcj02,
    (CoordSystem.wgs84, CoordSystem.bd09): wgs84_to_bd09,
    (CoordSystem.bd09, CoordSystem.wgs84): bd09_to_wgs84,
}


def parse_system(value: str | CoordSystem) -> CoordSystem:
    if isinstance(value, CoordSystem):
        return value
    key = str(value or "").strip().lower()
    try:
        return CoordSystem(key)
    except ValueError:
        raise ValueError(f"Unsupported coordinate system: {value!r}") from None


def convert_coordinate(
    lng: float,
    lat: float,
    from_system: str | CoordSystem,
    to_system: str | CoordSystem,
) -> tuple[float, float]:
    src = parse_system(from_system)
    dst = parse_system(to_system)
    if src == dst:
        return lng, lat
    return _CONVERTERS[(src, dst)](lng, lat)


def to_display(lng: float, lat: float, provider: str | CoordSystem) -> tuple[float, float]:
    """
    Stored WGS84 coordinate -> the active provider's display system.
    """
    return convert_coordinate(lng, lat, CoordSystem.wgs84, provider)


def to_storage(lng: float, lat: float, provider: str | CoordSystem) -> tuple[float, float]:
    """
    A coordinate picked on the provider's map -> WGS84 for storage/export.
    """
    return convert_coordinate(lng, lat, provider, CoordSystem.wgs84)


def display_coordinates(point, provider: str | CoordSystem) -> tuple[float, float]:
    """
    (lng, lat) of a stored point (anything with WGS84 `lat`/`lng`) in `provider`'s system.
    """
    return to_display(point.lng, point.lat, provider)

from __future__ import annotations

import math


EARTH_RADIUS_M = 6_371_000.0

# Web Mercator ground resolution at the equator for zoom 0, rounded as in the
# marker clustering heuristics (meters per pixel at 256px tiles).
_METERS_PER_PIXEL_Z0 = 156_412.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in meters on a spherical Earth.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def meters_per_pixel(lat: float, zoom: float) -> float:
    return _METERS_PER_PIXEL_Z0 * math.cos(math.radians(lat)) / (2.0 ** float(zoom))


def pixel_distance(
    a: tuple[float, float],
    b: tuple[float, float],
    zoom: float,
) -> float:
    """
    Approximate on-screen distance in pixels between two (lat, lng) points.

    The ground resolution is taken at `a`'s latitude. At the poles the resolution
    collapses to zero; any non-zero distance is then infinitely far.
    """
    dist = haversine_m(a[0], a[1], b[0], b[1])
    mpp = meters_per_pixel(a[0], zoom)
    if mpp <= 0.0:
        return 0.0 if dist == 0.0 else math.inf
    return dist / mpp

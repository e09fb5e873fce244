from __future__ import annotations

import math
from typing import Iterable


_MAX_MERCATOR_LAT = 85.05112878

def fit_view(
    coords: Iterable[tuple[float, float]],
    *,
    viewport: dict[str, int] | None,
    padding_px: int = 20,
) -> tuple[dict[str, float], float] | None:
    """
    Center and zoom that fit all (lng, lat) coords into a pixel viewport.

    Returns None when there is nothing to fit.
    """
    pts = list(coords)
    if not pts:
        return None
    min_lng = min(p[0] for p in pts)
    max_lng = max(p[0] for p in pts)
    min_lat = min(p[1] for p in pts)
    max_lat = max(p[1] for p in pts)

    center = {"lng": (min_lng + max_lng) / 2.0, "lat": (min_lat + max_lat) / 2.0}

    width = int((viewport or {}).get("width") or 900)
    height = int((viewport or {}).get("height") or 600)
    width = max(1, width - 2 * padding_px)
    height = max(1, height - 2 * padding_px)
    zoom = bbox_to_zoom(min_lng, min_lat, max_lng, max_lat, width=width, height=height)
    return center, zoom


def bbox_to_zoom(
    min_lng: float,
    min_lat: float,
    max_lng: float,
    max_lat: float,
    *,
    width: int,
    height: int,
    max_zoom: float = 18.0,
) -> float:
    # WebMercator bbox -> zoom heuristic.
    def lat_to_rad(lat: float) -> float:
        lat = max(-_MAX_MERCATOR_LAT, min(_MAX_MERCATOR_LAT, float(lat)))
        s = math.sin(lat * math.pi / 180.0)
        return math.log((1 + s) / (1 - s)) / 2.0

    lat_rad_min = lat_to_rad(min_lat)
    lat_rad_max = lat_to_rad(max_lat)
    lng_delta = max_lng - min_lng
    lat_delta = (lat_rad_max - lat_rad_min) * 180.0 / math.pi

    # avoid division by zero
    lng_delta = max(lng_delta, 1e-6)
    lat_delta = max(lat_delta, 1e-6)

    # 256px tiles
    zoom_x = math.log2((width * 360.0) / (256.0 * lng_delta))
    zoom_y = math.log2((height * 170.0) / (256.0 * lat_delta))
    return float(max(0.0, min(zoom_x, zoom_y, max_zoom)))

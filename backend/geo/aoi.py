from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BBox:
    """
    Bounding box in lng/lat degrees of the display coordinate system.

    Convention used throughout this repo:
    - minLng, minLat, maxLng, maxLat (west, south, east, north)
    """

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def normalized(self) -> "BBox":
        return BBox(
            min_lng=min(self.min_lng, self.max_lng),
            min_lat=min(self.min_lat, self.max_lat),
            max_lng=max(self.min_lng, self.max_lng),
            max_lat=max(self.min_lat, self.max_lat),
        )

    def contains(self, lng: float, lat: float) -> bool:
        # Inclusive on all edges.
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    def padded(self, ratio: float) -> "BBox":
        """
        Grow each side by `ratio` of the box's width/height.
        """
        b = self.normalized()
        r = max(0.0, float(ratio))
        dx = (b.max_lng - b.min_lng) * r
        dy = (b.max_lat - b.min_lat) * r
        return BBox(
            min_lng=b.min_lng - dx,
            min_lat=b.min_lat - dy,
            max_lng=b.max_lng + dx,
            max_lat=b.max_lat + dy,
        )

    def within(self, other: "BBox") -> bool:
        a = self.normalized()
        o = other.normalized()
        return (
            o.min_lng <= a.min_lng
            and o.min_lat <= a.min_lat
            and a.max_lng <= o.max_lng
            and a.max_lat <= o.max_lat
        )

    def rounded_key(self, decimals: int = 4) -> tuple[float, float, float, float]:
        """
        A stable, hashable key for caching viewport-derived computations.
        """
        b = self.normalized()
        return (
            round(b.min_lng, decimals),
            round(b.min_lat, decimals),
            round(b.max_lng, decimals),
            round(b.max_lat, decimals),
        )


@dataclass(frozen=True)
class Viewport:
    """
    What the map currently shows: display-system bounds plus zoom level.
    """

    bounds: BBox
    zoom: float

    def padded_bounds(self, buffer_pad: float) -> BBox:
        # Zoomed out, a large pad pulls in too many points.
        pad = float(buffer_pad)
        if self.zoom <= 8:
            pad = min(pad, 0.05)
        elif self.zoom <= 12:
            pad = min(pad, 0.1)
        return self.bounds.padded(pad)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Hashable, Iterable, TypeVar

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from geo.aoi import BBox


K = TypeVar("K", bound=Hashable)


@dataclass
class ViewportIndex(Generic[K]):
    """
    STRtree over display coordinates for fast "what is inside these bounds" queries.

    Build once per point set / provider; query on every viewport change.
    """

    keys: list[K]
    coords: list[tuple[float, float]]  # [(lng, lat), ...]
    _tree: STRtree | None = field(default=None, repr=False)

    @classmethod
    def build(cls, items: Iterable[tuple[K, tuple[float, float]]]) -> "ViewportIndex[K]":
        keys: list[K] = []
        coords: list[tuple[float, float]] = []
        for key, (lng, lat) in items:
            keys.append(key)
            coords.append((float(lng), float(lat)))
        tree = STRtree([ShapelyPoint(lng, lat) for lng, lat in coords]) if coords else None
        return cls(keys=keys, coords=coords, _tree=tree)

    def __len__(self) -> int:
        return len(self.keys)

    def query(self, bounds: BBox) -> list[K]:
        """
        Keys whose coordinate lies inside `bounds` (edges inclusive), in build order.
        """
        if self._tree is None:
            return []
        b = bounds.normalized()
        hits = _to_int_list(self._tree.query(shapely_box(b.min_lng, b.min_lat, b.max_lng, b.max_lat)))
        hits.sort()
        out: list[K] = []
        for i in hits:
            lng, lat = self.coords[i]
            if b.contains(lng, lat):
                out.append(self.keys[i])
        return out


def _to_int_list(arr) -> list[int]:
    # Shapely STRtree returns numpy.ndarray of indices.
    try:
        return [int(x) for x in arr.tolist()]
    except AttributeError:
        return [int(x) for x in arr]

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from cluster.engine import ClusterEngine
from cluster.types import ClusterOptions, RenderItem, Singleton
from markers.types import MarkerHandle
from points.types import PointType, parse_point_type
from styles.types import PointStyle


logger = logging.getLogger(__name__)


class ClusterGroup:
    """
    Aggregation layer for one point type.

    Holds the markers of that type and re-clusters them on demand. Markers are
    kept in insertion order; clustering is order-sensitive.
    """

    def __init__(self, point_type: PointType, style: PointStyle | None = None):
        self.type = point_type
        self.engine = ClusterEngine(ClusterOptions.from_config(style))
        self._members: dict[int, MarkerHandle] = {}

    def __len__(self) -> int:
        return len(self._members)

    @property
    def handles(self) -> list[MarkerHandle]:
        return list(self._members.values())

    def configure(self, style: PointStyle) -> None:
        self.engine.update_config(style)

    def has_layer(self, handle: MarkerHandle) -> bool:
        return id(handle) in self._members

    def add_layers(self, handles: Iterable[MarkerHandle]) -> None:
        for h in handles:
            self._members[id(h)] = h
            h.clustered = True

    def remove_layers(self, handles: Iterable[MarkerHandle]) -> int:
        """
        Remove handles; ones not in the group are ignored. Returns how many were removed.
        """
        n = 0
        for h in handles:
            if self._members.pop(id(h), None) is not None:
                h.clustered = False
                n += 1
        return n

    def clear_layers(self) -> None:
        for h in self._members.values():
            h.clustered = False
        self._members.clear()

    def render(self, zoom: float) -> list[RenderItem]:
        handles = self.handles
        if not handles:
            return []
        by_point = {id(h.point): h for h in handles}

        def display_coords(p):
            h = by_point.get(id(p))
            return (h.lat, h.lng) if h is not None else None

        return self.engine.cluster([h.point for h in handles], zoom, coords=display_coords)


class ClusterGroupManager:
    """
    One `ClusterGroup` per point type, created lazily.
    """

    def __init__(self) -> None:
        self._groups: dict[PointType, ClusterGroup] = {}

    @property
    def groups(self) -> dict[PointType, ClusterGroup]:
        return dict(self._groups)

    def group(self, point_type: PointType) -> ClusterGroup | None:
        return self._groups.get(point_type)

    def ensure_group(self, point_type: PointType, style: PointStyle | None = None) -> ClusterGroup:
        g = self._groups.get(point_type)
        if g is None:
            g = ClusterGroup(point_type, style)
            self._groups[point_type] = g
            logger.debug("created cluster group for %s", point_type.value)
        elif style is not None:
            g.configure(style)
        return g

    def remove_batches(self, batches: Mapping[Any, Iterable[MarkerHandle]]) -> int:
        """
        Remove batches of handles keyed by point type (enum or name, e.g. "pano").

        Handles already removed, or types without a group, are skipped.
        """
        removed = 0
        for key, handles in batches.items():
            try:
                point_type = key if isinstance(key, PointType) else parse_point_type(key)
            except ValueError:
                logger.warning("remove_batches: unknown point type %r", key)
                continue
            g = self._groups.get(point_type)
            if g is None or not handles:
                continue
            removed += g.remove_layers(handles)
        return removed

    def clear_all(self) -> None:
        for g in self._groups.values():
            g.clear_layers()

    def render(self, zoom: float) -> dict[PointType, list[RenderItem]]:
        return {t: g.render(zoom) for t, g in self._groups.items() if len(g)}


def as_singleton(handle: MarkerHandle) -> Singleton:
    return Singleton(point=handle.point, lat=handle.lat, lng=handle.lng)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from geo.aoi import Viewport
from geo.index import ViewportIndex
from points.types import Point, PointId, PointType, SkippedPoint
from styles.types import PointStyle


@dataclass(eq=False)
class MarkerHandle:
    """
    One materialized marker.

    Identity matters (eq=False): two handles for the same point id are different
    markers, and batch removal compares by handle, not by value.
    """

    id: PointId
    type: PointType
    point: Point
    # Display-system coordinates the marker is drawn at.
    lat: float
    lng: float
    style: PointStyle
    # Host-layer object (whatever the renderer returned from `create_marker`).
    ref: Any = None
    # True when the marker lives in its type's cluster group instead of on the map.
    clustered: bool = False


@dataclass(frozen=True)
class MarkerDiff:
    """
    Result of one add/update pass.
    """

    added: list[MarkerHandle] = field(default_factory=list)
    removed: list[MarkerHandle] = field(default_factory=list)
    skipped: list[SkippedPoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.skipped)


@dataclass
class ViewportState:
    """
    Per-session state of a `MarkerManager`.

    `id_to_marker` is the authoritative record of what is currently rendered.
    `coord_cache` holds display coordinates by point id and is cleared when the
    display provider changes.
    """

    enabled: bool = False
    buffer_pad: float = 0.2
    update_interval_ms: int = 200
    viewport: Viewport | None = None
    source_points: list[Point] = field(default_factory=list)
    id_to_marker: dict[PointId, MarkerHandle] = field(default_factory=dict)
    coord_cache: dict[PointId, tuple[float, float]] = field(default_factory=dict)  # id -> (lng, lat)
    # Stored (lat, lng) each cached entry was projected from.
    coord_src: dict[PointId, tuple[float, float]] = field(default_factory=dict, repr=False)
    index: ViewportIndex[PointId] | None = field(default=None, repr=False)
    source_by_id: dict[PointId, Point] = field(default_factory=dict, repr=False)
    is_zooming: bool = False

    @property
    def rendered_ids(self) -> set[PointId]:
        return set(self.id_to_marker)

    def clear_coords(self) -> None:
        self.coord_cache.clear()
        self.coord_src.clear()

    def reset(self) -> None:
        self.enabled = False
        self.viewport = None
        self.source_points = []
        self.id_to_marker.clear()
        self.clear_coords()
        self.index = None
        self.source_by_id.clear()
        self.is_zooming = False

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Iterable, Mapping

from cluster.types import RenderItem
from coords.systems import CoordSystem, display_coordinates, parse_system
from geo.aoi import Viewport
from geo.index import ViewportIndex
from geo.view import fit_view
from markers import config
from markers.groups import ClusterGroupManager, as_singleton
from markers.host import RenderHost
from markers.throttle import Throttle
from markers.types import MarkerDiff, MarkerHandle, ViewportState
from points.types import Point, PointId, PointType, SkippedPoint, parse_points
from styles.registry import StyleLookup, as_point_style, get_style_table, resolve_style, table_lookup
from telemetry.store import TelemetryStore


logger = logging.getLogger(__name__)

ClickHandler = Callable[[Point], Any]


def _log_skipped(skipped: list[SkippedPoint]) -> None:
    for s in skipped:
        logger.warning("skipping point %r: %s", s.id, s.reason)


class MarkerManager:
    """
    Keeps the host map's markers in sync with a point set.

    Below `viewport_threshold` points every marker is materialized. At or above
    it the manager switches to viewport culling: only points inside the padded
    viewport are rendered, and each viewport change is answered with an
    incremental add/remove diff against `state.id_to_marker`.

    Markers of a type whose style has `cluster_enabled` go into that type's
    `ClusterGroup`; all others are attached to the host map directly.
    """

    def __init__(
        self,
        host: RenderHost,
        *,
        style_lookup: StyleLookup | None = None,
        provider: str | CoordSystem = CoordSystem.wgs84,
        viewport_threshold: int | None = None,
        update_interval_ms: int | None = None,
        buffer_pad: float = config.DEFAULT_BUFFER_PAD,
        on_marker_click: ClickHandler | None = None,
        telemetry: TelemetryStore | None = None,
        session_id: str = "default",
    ):
        self.host = host
        self.style_lookup = style_lookup or table_lookup(get_style_table())
        self.provider = parse_system(provider)
        self.viewport_threshold = viewport_threshold or config.viewport_threshold()
        self.on_marker_click = on_marker_click
        self.click_disabled = False
        self.telemetry = telemetry
        self.session_id = session_id

        self.state = ViewportState(
            buffer_pad=float(buffer_pad),
            update_interval_ms=update_interval_ms or config.update_interval_ms(),
        )
        self.groups = ClusterGroupManager()
        self._throttle = Throttle(self._run_scheduled_update, self.state.update_interval_ms)
        self._last_diff = MarkerDiff()
        self._index_skips: list[SkippedPoint] = []

    # -- lookups ---------------------------------------------------------

    @property
    def markers(self) -> list[MarkerHandle]:
        return list(self.state.id_to_marker.values())

    @property
    def last_diff(self) -> MarkerDiff:
        """
        Diff produced by the most recent viewport update (throttled or not).
        """
        return self._last_diff

    def __len__(self) -> int:
        return len(self.state.id_to_marker)

    def __contains__(self, point_id: object) -> bool:
        return point_id in self.state.id_to_marker

    def get_marker(self, point_id: PointId) -> MarkerHandle | None:
        return self.state.id_to_marker.get(point_id)

    def _display_coords(self, point: Point) -> tuple[float, float] | None:
        cached = self.state.coord_cache.get(point.id)
        # Same id may come back with moved coordinates.
        if cached is not None and self.state.coord_src.get(point.id) == (point.lat, point.lng):
            return cached
        try:
            lng, lat = display_coordinates(point, self.provider)
        except (TypeError, ValueError):
            return None
        if not (math.isfinite(lng) and math.isfinite(lat)):
            return None
        self.state.coord_cache[point.id] = (lng, lat)
        self.state.coord_src[point.id] = (point.lat, point.lng)
        return lng, lat

    def _type_style(self, point_type: PointType):
        return as_point_style(self.style_lookup(point_type))

    # -- materialization -------------------------------------------------

    def _create_handle(self, point: Point) -> MarkerHandle | SkippedPoint:
        coords = self._display_coords(point)
        if coords is None:
            return SkippedPoint(id=point.id, reason="display coordinates unavailable")
        lng, lat = coords
        handle = MarkerHandle(
            id=point.id,
            type=point.type,
            point=point,
            lat=lat,
            lng=lng,
            style=resolve_style(point, self.style_lookup),
        )
        try:
            handle.ref = self.host.create_marker(handle)
        except Exception as e:
            logger.warning("host failed to create marker %r: %s", point.id, e)
            return SkippedPoint(id=point.id, reason=f"host error: {e}")
        return handle

    def _attach(self, handles: list[MarkerHandle]) -> None:
        by_type: dict[PointType, list[MarkerHandle]] = {}
        for h in handles:
            by_type.setdefault(h.type, []).append(h)

        for point_type, batch in by_type.items():
            style = self._type_style(point_type)
            if style.cluster_enabled:
                self.groups.ensure_group(point_type, style).add_layers(batch)
                continue
            for h in batch:
                try:
                    self.host.add_to_map(h.ref)
                except Exception as e:
                    logger.warning("host failed to attach marker %r: %s", h.id, e)

    def _detach(self, handle: MarkerHandle) -> None:
        if handle.clustered:
            g = self.groups.group(handle.type)
            if g is not None:
                g.remove_layers([handle])
            return
        try:
            self.host.remove_from_map(handle.ref)
        except Exception as e:
            # Already detached or the map is gone; nothing left to undo.
            logger.warning("host failed to detach marker %r: %s", handle.id, e)

    def _materialize(self, points: Iterable[Point]) -> tuple[list[MarkerHandle], list[SkippedPoint]]:
        added: list[MarkerHandle] = []
        skipped: list[SkippedPoint] = []
        for p in points:
            if p.id in self.state.id_to_marker:
                continue
            made = self._create_handle(p)
            if isinstance(made, SkippedPoint):
                skipped.append(made)
                continue
            self.state.id_to_marker[p.id] = made
            added.append(made)
        self._attach(added)
        return added, skipped

    # -- adding / removing -----------------------------------------------

    def add_point_marker(self, point: Point | Mapping[str, Any]) -> MarkerHandle | None:
        """
        Add one marker. Returns None when the id is already rendered or the point is invalid.
        """
        parsed, skipped = parse_points([point])
        _log_skipped(skipped)
        if not parsed:
            return None
        added, skipped = self._materialize(parsed)
        _log_skipped(skipped)
        return added[0] if added else None

    def add_point_markers(self, points: Iterable[Point | Mapping[str, Any]] | None) -> MarkerDiff:
        """
        Add markers for `points`, skipping ids that are already rendered.

        A batch at or above `viewport_threshold` switches the manager to viewport
        culling; while culling is on, the batch replaces the culled point set and
        markers appear on the next viewport update.
        """
        rows = list(points or [])
        if not rows:
            return MarkerDiff()

        parsed, skipped = parse_points(rows)
        _log_skipped(skipped)

        if not self.state.enabled and len(rows) >= self.viewport_threshold:
            self.enable_viewport_culling(parsed)
            return MarkerDiff(skipped=skipped + self._index_skips)
        if self.state.enabled:
            self._set_source(parsed)
            self._throttle.schedule()
            return MarkerDiff(skipped=skipped + self._index_skips)

        added, unplaced = self._materialize(parsed)
        _log_skipped(unplaced)
        logger.debug("added %d markers (%d skipped)", len(added), len(skipped) + len(unplaced))
        return MarkerDiff(added=added, skipped=skipped + unplaced)

    def remove_marker(self, point_id: PointId) -> bool:
        handle = self.state.id_to_marker.pop(point_id, None)
        if handle is None:
            return False
        self._detach(handle)
        return True

    def remove_markers_batch(self, point_ids: Iterable[PointId]) -> list[MarkerHandle]:
        removed: list[MarkerHandle] = []
        for pid in list(point_ids):
            handle = self.state.id_to_marker.pop(pid, None)
            if handle is None:
                continue
            self._detach(handle)
            removed.append(handle)
        return removed

    def remove_batches(self, batches: Mapping[Any, Iterable[MarkerHandle]]) -> int:
        """
        Remove previously returned handles, grouped by type, from their layers.

        Handles that are no longer rendered are ignored. Returns how many
        markers were actually removed.
        """
        n = 0
        for handles in batches.values():
            for h in list(handles or []):
                if self.state.id_to_marker.get(h.id) is not h:
                    continue
                del self.state.id_to_marker[h.id]
                self._detach(h)
                n += 1
        return n

    def clear_markers(self) -> None:
        if self.state.enabled:
            self.disable_viewport_culling()
        self.groups.clear_all()
        for handle in list(self.state.id_to_marker.values()):
            if not handle.clustered:
                self._detach(handle)
        self.state.id_to_marker.clear()

    # -- viewport culling ------------------------------------------------

    @property
    def culling_enabled(self) -> bool:
        return self.state.enabled

    def _set_source(self, points: list[Point]) -> None:
        state = self.state
        state.source_points = list(points)
        state.source_by_id = {}
        for p in state.source_points:
            state.source_by_id.setdefault(p.id, p)
        state.index = None
        self._ensure_index()

    def _ensure_index(self) -> ViewportIndex[PointId]:
        state = self.state
        if state.index is not None:
            return state.index
        items: list[tuple[PointId, tuple[float, float]]] = []
        skips: list[SkippedPoint] = []
        for pid, p in state.source_by_id.items():
            coords = self._display_coords(p)
            if coords is None:
                skips.append(SkippedPoint(id=pid, reason="display coordinates unavailable"))
                continue
            items.append((pid, coords))
        _log_skipped(skips)
        self._index_skips = skips
        state.index = ViewportIndex.build(items)
        return state.index

    def enable_viewport_culling(
        self,
        points: Iterable[Point | Mapping[str, Any]],
        *,
        buffer_pad: float | None = None,
    ) -> None:
        parsed, skipped = parse_points(list(points))
        _log_skipped(skipped)
        if buffer_pad is not None:
            self.state.buffer_pad = float(buffer_pad)
        self.state.enabled = True
        self.state.clear_coords()
        self._set_source(parsed)
        logger.info(
            "viewport culling enabled for %d points (threshold %d)",
            len(self.state.source_by_id),
            self.viewport_threshold,
        )
        if self.state.viewport is not None:
            self._throttle.schedule()

    def disable_viewport_culling(self) -> None:
        self._throttle.cancel()
        state = self.state
        state.enabled = False
        state.source_points = []
        state.source_by_id = {}
        state.index = None
        state.clear_coords()
        state.is_zooming = False
        self._throttle.interval_ms = state.update_interval_ms

    def set_viewport(self, viewport: Viewport) -> None:
        """
        Record the current viewport and schedule a throttled update.

        Only the newest viewport is ever applied; viewports that arrive while an
        update is pending replace the pending one.
        """
        self.state.viewport = viewport
        if self.state.enabled and not self.state.is_zooming:
            self._throttle.schedule()

    def begin_zoom(self) -> None:
        """
        A zoom animation started: hold back updates and slow the throttle down.
        """
        self.state.is_zooming = True
        self._throttle.interval_ms = max(self.state.update_interval_ms, config.ZOOM_UPDATE_INTERVAL_MS)

    def end_zoom(self, viewport: Viewport | None = None) -> None:
        self.state.is_zooming = False
        self._throttle.interval_ms = self.state.update_interval_ms
        if viewport is not None:
            self.state.viewport = viewport
        if self.state.enabled and self.state.viewport is not None:
            self._throttle.schedule()

    def flush(self) -> None:
        """
        Apply a pending throttled update now.
        """
        self._throttle.flush()

    @property
    def update_pending(self) -> bool:
        return self._throttle.pending

    def _run_scheduled_update(self) -> None:
        self.update_viewport_rendering()

    def update_viewport_rendering(self, viewport: Viewport | None = None) -> MarkerDiff:
        """
        Diff the rendered markers against the points inside the padded viewport.

        Markers outside are removed, missing ones inside are created. Markers
        already rendered and still inside are left untouched.
        """
        state = self.state
        if viewport is not None:
            state.viewport = viewport
        vp = state.viewport
        if not state.enabled or vp is None:
            return MarkerDiff()

        t0 = time.perf_counter()
        bounds = vp.padded_bounds(state.buffer_pad)
        visible_ids = self._ensure_index().query(bounds)
        visible = set(visible_ids)

        to_remove = [pid for pid in list(state.id_to_marker) if pid not in visible]
        removed = self.remove_markers_batch(to_remove)
        # Host callbacks may replace the source set while markers are created.
        pending = [state.source_by_id[pid] for pid in visible_ids if pid not in state.id_to_marker]
        added, skipped = self._materialize(pending)
        _log_skipped(skipped)

        diff = MarkerDiff(added=added, removed=removed, skipped=skipped)
        self._last_diff = diff
        total_ms = (time.perf_counter() - t0) * 1000.0
        logger.debug(
            "viewport update z=%.2f: +%d -%d (%d rendered, %.1fms)",
            vp.zoom,
            len(added),
            len(removed),
            len(state.id_to_marker),
            total_ms,
        )
        self._record(vp, diff, total_ms)
        return diff

    def _record(self, vp: Viewport, diff: MarkerDiff, total_ms: float) -> None:
        if self.telemetry is None:
            return
        self.telemetry.record(
            session_id=self.session_id,
            provider=self.provider.value,
            view_zoom=vp.zoom,
            bounds=vp.bounds.normalized(),
            stats={
                "added": len(diff.added),
                "removed": len(diff.removed),
                "skipped": len(diff.skipped),
                "rendered": len(self.state.id_to_marker),
                "source": len(self.state.source_by_id),
                "timingsMs": {"total": round(total_ms, 3)},
            },
        )

    # -- interaction -----------------------------------------------------

    def point_for_marker(self, marker: MarkerHandle | PointId) -> Point | None:
        if isinstance(marker, MarkerHandle):
            handle = self.state.id_to_marker.get(marker.id)
            return handle.point if handle is marker else None
        handle = self.state.id_to_marker.get(marker)
        return handle.point if handle is not None else None

    def click(self, marker: MarkerHandle | PointId) -> Point | None:
        """
        Resolve a clicked marker to its Point and hand it to `on_marker_click`.

        The callback may add or remove markers; nothing here iterates live state
        while it runs.
        """
        if self.click_disabled:
            return None
        point = self.point_for_marker(marker)
        if point is None:
            return None
        if self.on_marker_click is not None:
            self.on_marker_click(point)
        return point

    # -- rendering output ------------------------------------------------

    def _zoom_or_current(self, zoom: float | None) -> float:
        if zoom is not None:
            return float(zoom)
        return self.state.viewport.zoom if self.state.viewport is not None else 0.0

    def clusters(self, zoom: float | None = None) -> dict[PointType, list[RenderItem]]:
        """
        Render output of every type's aggregation layer at `zoom` (defaults to the
        current viewport zoom).
        """
        return self.groups.render(self._zoom_or_current(zoom))

    def render_items(self, zoom: float | None = None) -> list[RenderItem]:
        """
        Everything the host should draw: direct markers as singletons plus the
        clustered layers.
        """
        out: list[RenderItem] = [as_singleton(h) for h in self.markers if not h.clustered]
        for items in self.clusters(zoom).values():
            out.extend(items)
        return out

    def fit_view(
        self,
        viewport_px: dict[str, int] | None = None,
        *,
        padding_px: int = 20,
    ) -> tuple[dict[str, float], float] | None:
        """
        Center and zoom that show every rendered marker (or every culled source
        point while culling is on).
        """
        if self.state.enabled:
            coords = []
            for p in self.state.source_by_id.values():
                c = self._display_coords(p)
                if c is not None:
                    coords.append(c)
        else:
            coords = [(h.lng, h.lat) for h in self.markers]
        return fit_view(coords, viewport=viewport_px, padding_px=padding_px)

    # -- provider --------------------------------------------------------

    def set_provider(self, provider: str | CoordSystem) -> MarkerDiff:
        """
        Switch the display coordinate system.

        Cached display coordinates are dropped and every rendered marker is
        rebuilt at its new position.
        """
        new = parse_system(provider)
        if new == self.provider:
            return MarkerDiff()
        self.provider = new
        self.state.clear_coords()
        self.state.index = None

        points = [h.point for h in self.markers]
        removed = self.remove_markers_batch([h.id for h in self.markers])
        if self.state.enabled:
            diff = self.update_viewport_rendering()
            return MarkerDiff(added=diff.added, removed=removed + diff.removed, skipped=diff.skipped)
        added, skipped = self._materialize(points)
        return MarkerDiff(added=added, removed=removed, skipped=skipped)

    # -- lifecycle -------------------------------------------------------

    def close(self) -> None:
        self._throttle.cancel()
        self.clear_markers()
        self.state.reset()

from __future__ import annotations

import logging

import pytest

from cluster.types import Aggregate, Singleton
from coords.transform import wgs84_to_gcj02
from geo.aoi import BBox, Viewport
from markers.host import InMemoryHost
from markers.manager import MarkerManager
from points.types import PointType
from styles.registry import get_style_table, table_lookup


def _row(pid, lat, lng, type="image-set", **extra):
    return {"id": pid, "type": type, "lat": lat, "lng": lng, **extra}


def _grid(n, *, type="image-set", lat0=39.90, lng0=116.40, step=0.001):
    # One row of points heading east, `step` degrees apart.
    return [_row(f"p{i}", lat0, lng0 + i * step, type=type) for i in range(n)]


def _manager(host=None, **kwargs):
    kwargs.setdefault("viewport_threshold", 1000)
    return MarkerManager(host or InMemoryHost(), style_lookup=table_lookup(get_style_table()), **kwargs)


def test_add_is_idempotent_by_id():
    host = InMemoryHost()
    m = _manager(host)
    pts = _grid(10)

    first = m.add_point_markers(pts)
    second = m.add_point_markers(pts)

    assert len(first.added) == 10
    assert second.added == []
    assert len(m) == 10
    assert host.created == 10
    assert host.ids_on_map() == {f"p{i}" for i in range(10)}


def test_add_point_marker_single():
    m = _manager()
    h = m.add_point_marker(_row("x", 39.9, 116.4))
    assert h is not None
    assert m.get_marker("x") is h
    assert m.add_point_marker(_row("x", 39.9, 116.4)) is None
    assert m.add_point_marker({"id": "bad", "lat": "?", "lng": 1}) is None


def test_invalid_points_are_skipped_with_warning(caplog):
    m = _manager()
    with caplog.at_level(logging.WARNING, logger="markers.manager"):
        diff = m.add_point_markers([_row("ok", 39.9, 116.4), {"id": "nan", "lat": float("nan"), "lng": 116.4}])
    assert [h.id for h in diff.added] == ["ok"]
    assert [s.id for s in diff.skipped] == ["nan"]
    assert "nan" in caplog.text


def test_clustered_types_go_to_their_group():
    host = InMemoryHost()
    m = _manager(host)
    m.add_point_markers(
        [
            _row("a", 31.20, 121.50, type="panorama"),
            _row("b", 31.2001, 121.5001, type="panorama"),
            _row("c", 40.00, 116.40, type="panorama"),
            _row("v", 31.20, 121.50, type="image-set"),
        ]
    )
    assert host.ids_on_map() == {"v"}
    assert all(m.get_marker(pid).clustered for pid in ("a", "b", "c"))

    out = m.clusters(15)
    assert set(out) == {PointType.panorama}
    items = out[PointType.panorama]
    assert [type(i) for i in items] == [Aggregate, Singleton]
    assert items[0].size == 2
    assert items[0].icon_color == "#67C23A"
    assert items[1].id == "c"

    drawn = m.render_items(15)
    assert sum(i.size for i in drawn) == 4


def test_remove_batches_tolerates_stale_handles():
    host = InMemoryHost()
    m = _manager(host)
    pano = m.add_point_markers(_grid(3, type="panorama")).added
    images = m.add_point_markers(_grid(3, type="image-set", lat0=39.95)).added
    # ids collide across the two grids; only the first batch was added
    assert images == []
    images = m.add_point_markers([_row(f"img{i}", 39.95, 116.4 + i * 0.01) for i in range(3)]).added

    assert m.remove_batches({"pano": pano, "image-set": images}) == 6
    assert len(m) == 0
    assert host.on_map == {}
    assert m.remove_batches({"pano": pano, "image-set": images}) == 0
    assert m.remove_batches({"no-such-type": pano}) == 0


def test_host_detach_failure_is_swallowed(caplog):
    host = InMemoryHost()
    m = _manager(host)
    h = m.add_point_marker(_row("x", 39.9, 116.4))
    host.remove_from_map(h.ref)  # host lost the marker behind our back

    with caplog.at_level(logging.WARNING, logger="markers.manager"):
        assert m.remove_marker("x") is True
    assert "x" not in m
    assert "detach" in caplog.text
    assert m.remove_marker("x") is False


def test_remove_markers_batch_and_clear():
    host = InMemoryHost()
    m = _manager(host)
    m.add_point_markers(_grid(5) + [_row("pano", 31.2, 121.5, type="panorama")])
    removed = m.remove_markers_batch(["p0", "p1", "missing"])
    assert [h.id for h in removed] == ["p0", "p1"]
    assert len(m) == 4

    m.clear_markers()
    assert len(m) == 0
    assert host.on_map == {}
    assert m.clusters(10) == {}


def test_threshold_switches_to_culling():
    m = _manager(viewport_threshold=10)
    diff = m.add_point_markers(_grid(20))
    assert m.culling_enabled
    assert diff.added == []
    assert len(m) == 0
    assert len(m.state.source_points) == 20


def test_update_renders_only_padded_viewport():
    host = InMemoryHost()
    m = _manager(host, viewport_threshold=10)
    m.add_point_markers(_grid(50))

    vp = Viewport(BBox(116.4095, 39.89, 116.4205, 39.91), zoom=16)
    diff = m.update_viewport_rendering(vp)

    padded = vp.padded_bounds(m.state.buffer_pad)
    rendered = m.state.rendered_ids
    assert diff.added and not diff.removed
    assert rendered == {h.id for h in diff.added}
    assert {f"p{i}" for i in range(10, 21)} <= rendered
    for h in m.markers:
        assert padded.contains(h.lng, h.lat)
    assert host.ids_on_map() == rendered

    again = m.update_viewport_rendering(vp)
    assert again.is_empty


def test_pan_produces_incremental_diff():
    m = _manager(viewport_threshold=10)
    m.add_point_markers(_grid(100))
    m.update_viewport_rendering(Viewport(BBox(116.40, 39.89, 116.42, 39.91), zoom=16))
    before = m.state.rendered_ids
    kept = {pid: m.get_marker(pid) for pid in before}

    diff = m.update_viewport_rendering(Viewport(BBox(116.41, 39.89, 116.43, 39.91), zoom=16))
    after = m.state.rendered_ids

    assert {h.id for h in diff.removed} == before - after
    assert {h.id for h in diff.added} == after - before
    for pid in before & after:
        assert m.get_marker(pid) is kept[pid]


@pytest.mark.parametrize("zoom", [8, 11, 16])
def test_shrinking_viewport_never_adds_markers(zoom):
    m = _manager(viewport_threshold=10)
    m.add_point_markers(_grid(200, step=0.0005))

    widths = [0.1, 0.06, 0.03, 0.01, 0.002]
    counts = []
    for w in widths:
        m.update_viewport_rendering(Viewport(BBox(116.40, 39.85, 116.40 + w, 39.95), zoom=zoom))
        counts.append(len(m))

    assert counts == sorted(counts, reverse=True)


def test_disable_culling_keeps_rendered_markers():
    m = _manager(viewport_threshold=10)
    m.add_point_markers(_grid(20))
    m.update_viewport_rendering(Viewport(BBox(116.40, 39.89, 116.405, 39.91), zoom=16))
    n = len(m)
    m.disable_viewport_culling()
    assert not m.culling_enabled
    assert len(m) == n
    assert m.state.coord_cache == {}
    assert m.state.coord_src == {}
    assert m.update_viewport_rendering(Viewport(BBox(116.40, 39.89, 116.5, 39.91), zoom=16)).is_empty


def test_click_resolves_point_and_allows_reentrancy():
    clicked = []
    m = _manager()

    def on_click(point):
        clicked.append(point.id)
        m.remove_marker(point.id)
        m.add_point_markers([_row("spawned", 39.9, 116.5)])

    m.on_marker_click = on_click
    h = m.add_point_marker(_row("a", 39.9, 116.4, title="Gate"))

    point = m.click(h)
    assert point.id == "a"
    assert point.data["title"] == "Gate"
    assert clicked == ["a"]
    assert "a" not in m
    assert "spawned" in m
    assert m.click("a") is None
    assert m.point_for_marker(h) is None


class _ReloadingHost(InMemoryHost):
    """
    Swaps the point set from inside the first `create_marker` call.
    """

    def __init__(self, rows):
        super().__init__()
        self.manager = None
        self.rows = rows

    def create_marker(self, handle):
        rows, self.rows = self.rows, None
        if rows and self.manager is not None:
            self.manager.add_point_markers(rows)
        return super().create_marker(handle)


def test_host_reloading_points_during_update_is_safe():
    fresh = [_row(f"q{i}", 39.90, 116.40 + i * 0.001) for i in range(20)]
    host = _ReloadingHost(fresh)
    m = _manager(host, viewport_threshold=10)
    m.add_point_markers(_grid(20))
    host.manager = m

    vp = Viewport(BBox(116.40, 39.89, 116.41, 39.91), zoom=16)
    diff = m.update_viewport_rendering(vp)
    assert diff.added
    assert set(m.state.source_by_id) == {f"q{i}" for i in range(20)}

    m.update_viewport_rendering(vp)
    rendered = m.state.rendered_ids
    assert rendered and all(pid.startswith("q") for pid in rendered)
    assert host.ids_on_map() == rendered


def test_click_disabled():
    m = _manager(on_marker_click=lambda p: pytest.fail("should not dispatch"))
    m.add_point_marker(_row("a", 39.9, 116.4))
    m.click_disabled = True
    assert m.click("a") is None


def test_set_provider_repositions_markers():
    m = _manager()
    m.add_point_markers([_row("a", 39.915, 116.404), _row("b", 31.2304, 121.4737)])
    assert (m.get_marker("a").lng, m.get_marker("a").lat) == (116.404, 39.915)

    diff = m.set_provider("gcj02")
    assert len(diff.removed) == 2 and len(diff.added) == 2
    a = m.get_marker("a")
    assert (a.lng, a.lat) == wgs84_to_gcj02(116.404, 39.915)
    assert m.state.coord_cache["a"] == wgs84_to_gcj02(116.404, 39.915)
    assert a.point.lng == 116.404

    assert m.set_provider("gcj02").is_empty


def test_readded_id_with_moved_coordinates_is_repositioned():
    m = _manager(provider="gcj02")
    m.add_point_marker(_row("a", 39.915, 116.404))
    m.remove_marker("a")
    h = m.add_point_marker(_row("a", 31.2304, 121.4737))
    assert (h.lng, h.lat) == wgs84_to_gcj02(121.4737, 31.2304)


def test_coordinate_cache_follows_provider_and_close():
    m = _manager(provider="gcj02")
    m.add_point_markers([_row("a", 39.915, 116.404), _row("b", 31.2304, 121.4737)])
    assert set(m.state.coord_src) == {"a", "b"}

    m.remove_marker("b")
    m.set_provider("wgs84")
    assert set(m.state.coord_src) == set(m.state.coord_cache) == {"a"}

    m.close()
    assert m.state.coord_src == {}
    assert m.state.coord_cache == {}


def test_fit_view_covers_rendered_markers():
    m = _manager()
    assert m.fit_view({"width": 800, "height": 600}) is None
    m.add_point_markers([_row("a", 39.8, 116.3), _row("b", 40.0, 116.5)])
    center, zoom = m.fit_view({"width": 800, "height": 600})
    assert center == pytest.approx({"lng": 116.4, "lat": 39.9})
    assert 0.0 < zoom <= 18.0


def test_per_point_style_override_applies():
    m = _manager()
    h = m.add_point_marker(_row("a", 39.9, 116.4, styleConfig={"point_color": "#111111"}))
    assert h.style.point_color == "#111111"
    assert h.ref["color"] == "#111111"


def test_close_resets_everything():
    host = InMemoryHost()
    m = _manager(host, viewport_threshold=10)
    m.add_point_markers(_grid(20))
    m.update_viewport_rendering(Viewport(BBox(116.40, 39.89, 116.41, 39.91), zoom=16))
    m.close()
    assert len(m) == 0
    assert not m.culling_enabled
    assert m.state.source_points == []
    assert host.on_map == {}

from __future__ import annotations

from coords.systems import CoordSystem
from coords.transform import wgs84_to_bd09
from markers.host import InMemoryHost
from markers.session import open_session
from points.types import PointType
from styles.types import StyleTable


def test_session_context_closes_manager():
    host = InMemoryHost()
    with open_session(host, provider="bd09") as s:
        assert s.provider == CoordSystem.bd09
        s.manager.add_point_markers([{"id": 1, "type": "image-set", "lat": 39.915, "lng": 116.404}])
        h = s.manager.get_marker(1)
        assert (h.lng, h.lat) == wgs84_to_bd09(116.404, 39.915)
        assert host.ids_on_map() == {1}

    assert s.closed
    assert len(s.manager) == 0
    assert host.on_map == {}
    s.close()  # second close is a no-op


def test_sessions_are_isolated():
    a = open_session()
    b = open_session()
    assert a.session_id != b.session_id
    a.manager.add_point_markers([{"id": "x", "lat": 30.0, "lng": 120.0}])
    assert "x" in a.manager
    assert "x" not in b.manager
    assert a.manager.telemetry is None
    a.close()
    b.close()


def test_session_uses_given_style_table():
    table = StyleTable().with_type(PointType.panorama, {"cluster_enabled": False, "point_color": "#000000"})
    with open_session(styles=table) as s:
        h = s.manager.add_point_marker({"id": "p", "type": "panorama", "lat": 30.0, "lng": 120.0})
        assert not h.clustered
        assert h.style.point_color == "#000000"
        assert s.styles is table

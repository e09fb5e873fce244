from __future__ import annotations

from typing import Any, Protocol

from markers.types import MarkerHandle


class RenderHost(Protocol):
    """
    The rendering layer that draws markers.

    - create_marker: build a host object for a handle (not yet visible)
    - add_to_map / remove_from_map: attach or detach a marker that is not clustered

    Clustered markers never reach `add_to_map`; the host draws their type's
    `ClusterGroup.render(zoom)` output instead.
    """

    def create_marker(self, handle: MarkerHandle) -> Any: ...

    def add_to_map(self, ref: Any) -> None: ...

    def remove_from_map(self, ref: Any) -> None: ...


class InMemoryHost(RenderHost):
    """
    Host that only records what would be on screen. Used headless and in tests.
    """

    def __init__(self) -> None:
        self.on_map: dict[int, dict[str, Any]] = {}
        self.created = 0

    def create_marker(self, handle: MarkerHandle) -> dict[str, Any]:
        self.created += 1
        return {
            "id": handle.id,
            "type": handle.type.value,
            "lat": handle.lat,
            "lng": handle.lng,
            "title": handle.point.title,
            "color": handle.style.point_color,
            "size": handle.style.point_size,
        }

    def add_to_map(self, ref: dict[str, Any]) -> None:
        self.on_map[id(ref)] = ref

    def remove_from_map(self, ref: dict[str, Any]) -> None:
        # Detaching twice is a host inconsistency; surface it like a real map would.
        if id(ref) not in self.on_map:
            raise KeyError(f"marker {ref.get('id')!r} is not on the map")
        del self.on_map[id(ref)]

    def ids_on_map(self) -> set[Any]:
        return {ref["id"] for ref in self.on_map.values()}

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class DrawingKind(str, Enum):
    point = "point"
    line = "line"
    measure = "measure"
    polygon = "polygon"


TYPE_LABELS = {
    DrawingKind.point: "Point",
    DrawingKind.line: "Line",
    DrawingKind.measure: "Measurement",
    DrawingKind.polygon: "Polygon",
}

DEFAULT_NAME = "Untitled"


@dataclass(frozen=True)
class Drawing:
    """
    A user drawing to export.

    `coords` are (lng, lat) pairs in whatever system the drawing was made in;
    exporters convert them to WGS84. Polygons are open rings (the closing
    vertex is added on export).
    """

    id: str
    kind: DrawingKind
    coords: tuple[tuple[float, float], ...]
    name: str = ""
    timestamp: datetime | None = None

    @property
    def label(self) -> str:
        return TYPE_LABELS[self.kind]

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_NAME

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Drawing":
        """
        Accepts {id, type, name?, timestamp?, latlng: {lng, lat}} for points and
        {..., points: [{lng, lat}, ...]} for the other kinds.
        """
        kind = DrawingKind(str(raw.get("type") or "").strip().lower())
        data = raw.get("data") if isinstance(raw.get("data"), Mapping) else raw
        if kind == DrawingKind.point:
            ll = data.get("latlng") or {}
            coords = ((float(ll["lng"]), float(ll["lat"])),)
        else:
            coords = tuple((float(p["lng"]), float(p["lat"])) for p in data.get("points") or [])
        ts = raw.get("timestamp")
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)
        return cls(
            id=str(raw.get("id") or ""),
            kind=kind,
            coords=coords,
            name=str(raw.get("name") or ""),
            timestamp=ts if isinstance(ts, datetime) else None,
        )

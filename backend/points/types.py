from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, TypeAlias, Union


PointId: TypeAlias = Union[str, int]

# Points derived from uploaded KML overlays carry this id prefix.
OVERLAY_ID_PREFIX = "kml-"


class PointType(str, Enum):
    panorama = "panorama"
    video = "video"
    image_set = "image-set"
    overlay_point = "overlay-point"


DEFAULT_POINT_TYPE = PointType.panorama


@dataclass(frozen=True)
class Point:
    """
    A renderable point.

    `lat`/`lng` are the stored WGS84 coordinates (source of truth for export).
    Display coordinates for the active provider are derived on demand and never
    stored here.
    """

    id: PointId
    type: PointType
    lat: float
    lng: float
    style_config: dict[str, Any] | None = None
    # Original input record; kept so consumers get back every field they sent.
    data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_overlay(self) -> bool:
        return str(self.id).startswith(OVERLAY_ID_PREFIX)

    @property
    def title(self) -> str:
        t = self.data.get("title") or self.data.get("name")
        if t:
            return str(t)
        return "Video point" if self.type == PointType.video else "Panorama"


@dataclass(frozen=True)
class SkippedPoint:
    """
    Diagnostic for an input record that could not be turned into a marker.
    """

    id: PointId | None
    reason: str


class InvalidPoint(ValueError):
    def __init__(self, point_id: PointId | None, reason: str):
        super().__init__(f"point {point_id!r}: {reason}")
        self.point_id = point_id
        self.reason = reason


def _coerce_coordinate(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None:
            return v
    return None


def as_bool(v: Any) -> bool | None:
    """
    Lenient flag parsing for host config: "false", "0" and "off" are False.
    None when the value is not recognisable.
    """
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in {"1", "true", "yes", "on"}:
            return True
        if s in {"0", "false", "no", "off", ""}:
            return False
    return None


def parse_point_type(value: Any, *, point_id: PointId | None = None) -> PointType:
    if isinstance(value, PointType):
        return value
    key = str(value or "").strip().lower()
    if not key:
        if point_id is not None and str(point_id).startswith(OVERLAY_ID_PREFIX):
            return PointType.overlay_point
        return DEFAULT_POINT_TYPE
    aliases = {"pano": "panorama", "image_set": "image-set", "imageset": "image-set", "kml": "overlay-point"}
    key = aliases.get(key, key)
    try:
        return PointType(key)
    except ValueError:
        raise InvalidPoint(point_id, f"unknown point type {value!r}") from None


def parse_point(raw: Point | Mapping[str, Any]) -> Point:
    """
    Build a `Point` from a host record.

    Accepted shape: {id, type, lat|latitude, lng|longitude, styleConfig?}.
    Raises `InvalidPoint` for missing ids, unknown types and non-numeric, NaN or
    out-of-range coordinates.
    """
    if isinstance(raw, Point):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidPoint(None, f"unsupported record type {type(raw).__name__}")

    pid = raw.get("id")
    if pid is None or (isinstance(pid, str) and not pid.strip()):
        raise InvalidPoint(None, "missing id")

    lat = _coerce_coordinate(_first_present(raw, "lat", "latitude"))
    lng = _coerce_coordinate(_first_present(raw, "lng", "longitude"))
    if lat is None or lng is None:
        raise InvalidPoint(pid, "missing or non-numeric coordinates")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise InvalidPoint(pid, f"coordinates out of range ({lat}, {lng})")

    ptype = parse_point_type(raw.get("type"), point_id=pid)
    style = _first_present(raw, "styleConfig", "style_config")
    return Point(
        id=pid,
        type=ptype,
        lat=lat,
        lng=lng,
        style_config=dict(style) if isinstance(style, Mapping) else None,
        data=dict(raw),
    )


def parse_points(
    rows: list[Point | Mapping[str, Any]] | None,
) -> tuple[list[Point], list[SkippedPoint]]:
    out: list[Point] = []
    skipped: list[SkippedPoint] = []
    for raw in rows or []:
        try:
            out.append(parse_point(raw))
        except InvalidPoint as e:
            skipped.append(SkippedPoint(id=e.point_id, reason=e.reason))
    return out, skipped

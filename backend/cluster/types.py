from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, TypeAlias, Union

from points.types import Point, PointType, as_bool


DEFAULT_RADIUS_PX = 50
DEFAULT_MIN_POINTS = 2
DEFAULT_MAX_ZOOM = 16
DEFAULT_ICON_COLOR = "#409EFF"
DEFAULT_TEXT_COLOR = "#FFFFFF"


@dataclass(frozen=True)
class Singleton:
    """
    A point rendered on its own (clustering off, zoomed in past `max_zoom`,
    or too few neighbours).
    """

    point: Point
    lat: float
    lng: float

    is_cluster: ClassVar[bool] = False

    @property
    def id(self):
        return self.point.id

    @property
    def type(self) -> PointType:
        return self.point.type

    @property
    def size(self) -> int:
        return 1


@dataclass(frozen=True)
class Aggregate:
    """
    A cluster marker. `lat`/`lng` is the arithmetic mean of member coordinates.
    """

    id: str
    type: PointType
    lat: float
    lng: float
    members: tuple[Point, ...]
    icon_color: str = DEFAULT_ICON_COLOR
    text_color: str = DEFAULT_TEXT_COLOR

    is_cluster: ClassVar[bool] = True

    @property
    def size(self) -> int:
        return len(self.members)


RenderItem: TypeAlias = Union[Singleton, Aggregate]


def _pick(cfg: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in cfg and cfg[k] is not None:
            return cfg[k]
    return None


def _positive_int(v: Any, default: int) -> int:
    if v is None or isinstance(v, bool):
        return default
    try:
        n = int(float(v))
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def _positive_float(v: Any, default: float) -> float:
    if v is None or isinstance(v, bool):
        return default
    try:
        n = float(v)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) and n > 0 else default


def _color(v: Any, default: str) -> str:
    return v.strip() if isinstance(v, str) and v.strip() else default


@dataclass(frozen=True)
class ClusterOptions:
    enabled: bool = True
    radius: float = DEFAULT_RADIUS_PX
    min_points: int = DEFAULT_MIN_POINTS
    max_zoom: int = DEFAULT_MAX_ZOOM
    icon_color: str = DEFAULT_ICON_COLOR
    text_color: str = DEFAULT_TEXT_COLOR

    @classmethod
    def from_config(cls, cfg: Any, *, base: "ClusterOptions | None" = None) -> "ClusterOptions":
        """
        Build options from a style mapping (`cluster_radius`, ...), a short-name
        mapping (`radius`, ...) or a style model. Missing or invalid values keep
        `base` (or the defaults).
        """
        b = base or cls()
        if cfg is None:
            return b
        if hasattr(cfg, "model_dump"):
            cfg = cfg.model_dump()
        if not isinstance(cfg, Mapping):
            return b

        enabled = as_bool(_pick(cfg, "cluster_enabled", "enabled"))
        if enabled is None:
            enabled = b.enabled

        min_points = _positive_int(_pick(cfg, "cluster_min_points", "minPoints", "min_points"), b.min_points)
        # A single-member "cluster" would hide the point behind a count badge.
        min_points = max(min_points, 2)

        max_zoom_raw = _pick(cfg, "cluster_max_zoom", "maxZoom", "max_zoom")
        try:
            max_zoom = b.max_zoom if max_zoom_raw is None or isinstance(max_zoom_raw, bool) else int(float(max_zoom_raw))
        except (TypeError, ValueError):
            max_zoom = b.max_zoom
        if max_zoom < 0:
            max_zoom = b.max_zoom

        return cls(
            enabled=enabled,
            radius=_positive_float(_pick(cfg, "cluster_radius", "radius"), b.radius),
            min_points=min_points,
            max_zoom=max_zoom,
            icon_color=_color(_pick(cfg, "cluster_icon_color", "iconColor", "icon_color"), b.icon_color),
            text_color=_color(_pick(cfg, "cluster_text_color", "textColor", "text_color"), b.text_color),
        )

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from points.types import PointType, as_bool


ICON_TYPES = ("circle", "square", "triangle", "diamond", "marker")


def _as_int(v: Any) -> int | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return None


def _as_float(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        out = float(v)
    except (TypeError, ValueError):
        return None
    return out if out == out else None


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


class PointStyle(BaseModel):
    """
    Style of one point type (or a per-point override merged on top of it).

    Malformed values never raise: each field falls back to its default, and
    numeric fields are clamped into their supported range.
    """

    model_config = ConfigDict(extra="allow", validate_default=True)

    point_color: str = "#2ed573"
    point_size: int = 8
    point_opacity: float = 1.0
    point_icon_type: str = "circle"
    point_label_size: int = 12
    point_label_color: str = "#000000"

    cluster_enabled: bool = False
    cluster_radius: int = 50
    cluster_min_points: int = 2
    cluster_max_zoom: int = 16
    cluster_icon_color: str = "#409EFF"
    cluster_text_color: str = "#FFFFFF"

    @field_validator(
        "point_color",
        "point_label_color",
        "cluster_icon_color",
        "cluster_text_color",
        mode="before",
    )
    @classmethod
    def _color(cls, v: Any, info) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return cls.model_fields[info.field_name].default

    @field_validator("point_icon_type", mode="before")
    @classmethod
    def _icon_type(cls, v: Any) -> str:
        return v if v in ICON_TYPES else "circle"

    @field_validator("point_size", mode="before")
    @classmethod
    def _point_size(cls, v: Any) -> int:
        n = _as_int(v)
        return int(_clamp(n, 4, 32)) if n else 8

    @field_validator("point_label_size", mode="before")
    @classmethod
    def _label_size(cls, v: Any) -> int:
        n = _as_int(v)
        return int(_clamp(n, 0, 24)) if n is not None else 12

    @field_validator("point_opacity", mode="before")
    @classmethod
    def _opacity(cls, v: Any) -> float:
        f = _as_float(v)
        return _clamp(f, 0.0, 1.0) if f is not None else 1.0

    @field_validator("cluster_enabled", mode="before")
    @classmethod
    def _enabled(cls, v: Any) -> bool:
        b = as_bool(v)
        return bool(b) if b is not None else False

    @field_validator("cluster_radius", mode="before")
    @classmethod
    def _radius(cls, v: Any) -> int:
        n = _as_int(v)
        if n is None or n <= 0:
            return 50
        return int(_clamp(n, 10, 200))

    @field_validator("cluster_min_points", mode="before")
    @classmethod
    def _min_points(cls, v: Any) -> int:
        n = _as_int(v)
        if n is None:
            return 2
        return int(_clamp(n, 2, 20))

    @field_validator("cluster_max_zoom", mode="before")
    @classmethod
    def _max_zoom(cls, v: Any) -> int:
        n = _as_int(v)
        if n is None or n < 0:
            return 16
        return int(_clamp(n, 0, 24))

    def merged(self, override: Mapping[str, Any] | None) -> "PointStyle":
        if not override:
            return self
        return PointStyle.model_validate({**self.model_dump(), **dict(override)})


class StyleTable(BaseModel):
    """
    Type-level style table: point type -> style.
    """

    types: dict[PointType, PointStyle] = Field(default_factory=dict)

    def for_type(self, point_type: PointType | str) -> PointStyle:
        try:
            key = PointType(point_type)
        except ValueError:
            return PointStyle()
        return self.types.get(key) or PointStyle()

    def with_type(self, point_type: PointType | str, style: Mapping[str, Any] | PointStyle) -> "StyleTable":
        s = style if isinstance(style, PointStyle) else PointStyle.model_validate(dict(style))
        return StyleTable(types={**self.types, PointType(point_type): s})

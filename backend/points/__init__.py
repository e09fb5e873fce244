from .types import (
    OVERLAY_ID_PREFIX,
    InvalidPoint,
    Point,
    PointId,
    PointType,
    SkippedPoint,
    parse_point,
    parse_points,
)

__all__ = [
    "OVERLAY_ID_PREFIX",
    "InvalidPoint",
    "Point",
    "PointId",
    "PointType",
    "SkippedPoint",
    "parse_point",
    "parse_points",
]

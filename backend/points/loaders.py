from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from points.types import (
    OVERLAY_ID_PREFIX,
    Point,
    PointType,
    SkippedPoint,
    parse_points,
)


def load_point_rows(
    path: Path, *, point_type: PointType | None = None
) -> tuple[list[Point], list[SkippedPoint]]:
    """
    Input: a JSON list of point records, or `{"data": [...]}` as returned by the
    point list endpoints.

    `point_type` fills in records that carry no `type` of their own.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    rows = data.get("data") if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise ValueError(f"Invalid point file root: {path}")

    if point_type is not None:
        rows = [
            {**r, "type": r.get("type") or point_type.value} if isinstance(r, dict) else r
            for r in rows
        ]
    return parse_points(rows)


def load_overlay_points(
    path: Path, *, file_id: str | int | None = None
) -> tuple[list[Point], list[SkippedPoint]]:
    """
    Input: GeoJSON FeatureCollection extracted from an uploaded KML overlay.

    Only `Point` geometries become overlay points; lines and polygons are drawn
    by the overlay layer itself. Ids are namespaced as `kml-<file>-<feature>`.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    features = data.get("features") or []

    rows: list[dict[str, Any]] = []
    for i, feature in enumerate(features):
        geom = (feature or {}).get("geometry") or {}
        props = (feature or {}).get("properties") or {}
        if geom.get("type") != "Point":
            continue
        coords = geom.get("coordinates") or []
        if len(coords) < 2:
            continue

        fid = (feature or {}).get("id") or props.get("id") or i
        prefix = f"{OVERLAY_ID_PREFIX}{file_id}-" if file_id is not None else OVERLAY_ID_PREFIX
        rows.append(
            {
                **props,
                "id": f"{prefix}{fid}",
                "type": PointType.overlay_point.value,
                "lng": coords[0],
                "lat": coords[1],
            }
        )

    return parse_points(rows)

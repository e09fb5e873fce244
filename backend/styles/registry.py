from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from points.types import Point, PointType
from styles.types import PointStyle, StyleTable


StyleLookup = Callable[[PointType], "PointStyle | Mapping[str, Any] | None"]


def _default_styles_path() -> Path:
    return Path(__file__).resolve().parent / "point_styles.yaml"


def styles_path() -> Path:
    return Path(os.getenv("PTMAP_STYLES_PATH") or _default_styles_path())


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid style table yaml root: {path}")
    return data


@lru_cache(maxsize=4)
def _load_style_table(path: str) -> StyleTable:
    return StyleTable.model_validate(_load_yaml(Path(path)))


def get_style_table(path: Path | None = None) -> StyleTable:
    return _load_style_table(str(path or styles_path()))


def clear_style_cache() -> None:
    """
    Drop cached style tables so edited YAML is picked up without a restart.
    """
    _load_style_table.cache_clear()


def as_point_style(value: PointStyle | Mapping[str, Any] | None) -> PointStyle:
    if isinstance(value, PointStyle):
        return value
    if isinstance(value, Mapping):
        return PointStyle.model_validate(dict(value))
    return PointStyle()


def table_lookup(table: StyleTable) -> StyleLookup:
    return table.for_type


def resolve_style(point: Point, lookup: StyleLookup) -> PointStyle:
    """
    Type-level style with the point's own `styleConfig` merged on top.
    """
    base = as_point_style(lookup(point.type))
    return base.merged(point.style_config)

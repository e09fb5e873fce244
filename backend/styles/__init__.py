from .registry import (
    StyleLookup,
    as_point_style,
    clear_style_cache,
    get_style_table,
    resolve_style,
    table_lookup,
)
from .types import PointStyle, StyleTable

__all__ = [
    "PointStyle",
    "StyleLookup",
    "StyleTable",
    "as_point_style",
    "clear_style_cache",
    "get_style_table",
    "resolve_style",
    "table_lookup",
]

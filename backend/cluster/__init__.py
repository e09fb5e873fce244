"""
Pixel-distance clustering of point markers.
"""

from .engine import ClusterEngine, cluster_icon_size
from .types import Aggregate, ClusterOptions, RenderItem, Singleton

__all__ = [
    "Aggregate",
    "ClusterEngine",
    "ClusterOptions",
    "RenderItem",
    "Singleton",
    "cluster_icon_size",
]

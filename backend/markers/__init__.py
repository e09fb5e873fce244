"""
Viewport marker management: what the host map should show for a point set.
"""

from .groups import ClusterGroup, ClusterGroupManager
from .host import InMemoryHost, RenderHost
from .manager import MarkerManager
from .session import MapSession, open_session
from .throttle import Throttle
from .types import MarkerDiff, MarkerHandle, ViewportState

__all__ = [
    "ClusterGroup",
    "ClusterGroupManager",
    "InMemoryHost",
    "MapSession",
    "MarkerDiff",
    "MarkerHandle",
    "MarkerManager",
    "RenderHost",
    "Throttle",
    "ViewportState",
    "open_session",
]

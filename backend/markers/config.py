from __future__ import annotations

import os


DEFAULT_VIEWPORT_THRESHOLD = 1200
DEFAULT_UPDATE_INTERVAL_MS = 200
DEFAULT_BUFFER_PAD = 0.2
# Viewport updates are slowed down while a zoom animation runs.
ZOOM_UPDATE_INTERVAL_MS = 300


def _env_int(name: str, default: int) -> int:
    v = (os.getenv(name) or "").strip()
    if not v:
        return default
    try:
        n = int(v)
    except ValueError:
        return default
    return n if n > 0 else default


def viewport_threshold() -> int:
    """
    Point count at which `add_point_markers` switches to viewport culling.
    """
    return _env_int("PTMAP_VIEWPORT_THRESHOLD", DEFAULT_VIEWPORT_THRESHOLD)


def update_interval_ms() -> int:
    return _env_int("PTMAP_VIEWPORT_INTERVAL_MS", DEFAULT_UPDATE_INTERVAL_MS)

from .aoi import BBox, Viewport
from .index import ViewportIndex
from .view import bbox_to_zoom, fit_view

__all__ = ["BBox", "Viewport", "ViewportIndex", "bbox_to_zoom", "fit_view"]

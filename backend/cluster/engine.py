from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Mapping, Sequence

from cluster.types import Aggregate, ClusterOptions, RenderItem, Singleton
from coords.distance import pixel_distance
from points.types import Point, parse_points


logger = logging.getLogger(__name__)

# (lat, lng) used for distances and centroids; defaults to the stored coordinates.
CoordFn = Callable[[Point], "tuple[float, float] | None"]


def _stored_coords(p: Point) -> tuple[float, float]:
    return p.lat, p.lng


def cluster_icon_size(count: int) -> int:
    """
    Icon diameter (px) for a cluster badge showing `count` members.
    """
    if count < 10:
        return 30
    if count < 25:
        return 40
    if count < 50:
        return 50
    return 60


class ClusterEngine:
    """
    Greedy pixel-distance clustering.

    Each not-yet-assigned point (in input order) seeds a cluster and absorbs every
    later unassigned point within `radius` pixels of the seed at the given zoom.
    The first seed to reach a point keeps it, so the result depends on input
    order. Worst case is O(n^2); callers cull to the viewport first.
    """

    def __init__(self, config: ClusterOptions | Mapping[str, Any] | None = None):
        if isinstance(config, ClusterOptions):
            self.options = config
        else:
            self.options = ClusterOptions.from_config(config)
        self._pass_ids = itertools.count(1)

    def update_config(self, config: Mapping[str, Any] | Any) -> None:
        self.options = ClusterOptions.from_config(config, base=self.options)

    def cluster(
        self,
        points: Sequence[Point | Mapping[str, Any]],
        zoom: float,
        *,
        coords: CoordFn | None = None,
    ) -> list[RenderItem]:
        parsed, skipped = parse_points(list(points))
        if skipped:
            logger.debug("cluster: ignoring %d invalid points", len(skipped))

        coord_of = coords or _stored_coords
        located: list[tuple[Point, tuple[float, float]]] = []
        for p in parsed:
            c = coord_of(p)
            if c is None:
                continue
            located.append((p, c))

        opts = self.options
        if not opts.enabled or float(zoom) > opts.max_zoom:
            return [Singleton(point=p, lat=c[0], lng=c[1]) for p, c in located]

        pass_id = next(self._pass_ids)
        out: list[RenderItem] = []
        processed = [False] * len(located)

        for i, (seed, seed_c) in enumerate(located):
            if processed[i]:
                continue
            processed[i] = True
            members = [(seed, seed_c)]

            for j in range(i + 1, len(located)):
                if processed[j]:
                    continue
                other, other_c = located[j]
                if pixel_distance(seed_c, other_c, zoom) <= opts.radius:
                    members.append((other, other_c))
                    processed[j] = True

            if len(members) >= opts.min_points:
                n = len(members)
                out.append(
                    Aggregate(
                        id=f"cluster_{pass_id}_{i}",
                        type=seed.type,
                        lat=sum(c[0] for _p, c in members) / n,
                        lng=sum(c[1] for _p, c in members) / n,
                        members=tuple(p for p, _c in members),
                        icon_color=opts.icon_color,
                        text_color=opts.text_color,
                    )
                )
            else:
                # Demote back to the original points, one singleton each.
                out.extend(Singleton(point=p, lat=c[0], lng=c[1]) for p, c in members)

        return out

"""Decide which stitched loops are solids and which are holes.

Loops are sorted by area, largest first.  Each loop looks for the
smallest already-seen loop that contains it: inside a solid it becomes
that solid's hole; inside a hole it is an island and becomes a new
solid; otherwise it is a solid of its own.  Nesting can go to any
depth, the way concentric rings are drawn in real-world files.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from inlaycad.geom import (
    AREA_EPSILON, Loop, Point2, Polygon, oriented, point_in_loop,
    sample_loop_points, signed_area,
)

logger = logging.getLogger(__name__)

## vertices of a child loop tested against a candidate parent
CONTAINMENT_SAMPLES = 8


class _Node:
    __slots__ = ('points', 'area', 'hole', 'holes')

    def __init__(self, points: Loop):
        self.points = oriented(points, ccw=True)
        self.area = signed_area(self.points)
        self.hole = False
        self.holes: List[Loop] = []


def loop_inside(child: Sequence[Point2], parent: Sequence[Point2],
                samples: int = CONTAINMENT_SAMPLES) -> bool:
    """True if any sampled vertex of ``child`` is inside ``parent``.

    Several vertices are tried so that one lying exactly on the
    parent's boundary cannot cause a miss.
    """
    return any(point_in_loop(p, parent) for p in sample_loop_points(child, samples))


def classify_loops(loops: Iterable[Sequence[Point2]], *,
                   min_area: float = AREA_EPSILON) -> List[Polygon]:
    """Build polygons-with-holes from unclassified loops.

    Loops with less than ``min_area`` of area are dropped as noise.  The
    result is ordered from the largest solid to the smallest; outer
    loops wind counter-clockwise and holes clockwise.
    """
    nodes = [_Node(tuple(loop)) for loop in loops if len(loop) >= 3]
    nodes = [n for n in nodes if n.area > min_area]
    nodes.sort(key=lambda n: n.area, reverse=True)

    solids: List[_Node] = []
    for i, current in enumerate(nodes):
        parent: Optional[_Node] = None
        for j in range(i - 1, -1, -1):
            if loop_inside(current.points, nodes[j].points):
                parent = nodes[j]
                break
        if parent is not None and not parent.hole:
            current.hole = True
            parent.holes.append(oriented(current.points, ccw=False))
        else:
            solids.append(current)

    polys = [Polygon(n.points, tuple(n.holes)) for n in solids]
    logger.debug('classified %d loops into %d polygons', len(nodes), len(polys))
    return polys


__all__ = ['CONTAINMENT_SAMPLES', 'classify_loops', 'loop_inside']

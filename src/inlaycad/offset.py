"""Grow or shrink polygons by a fixed distance.

Polygons are scaled into Clipper's integer space (0.001 mm), offset
with pyclipper, and scaled back.  Offsetting can merge, split or remove
outlines and holes, so the solid/hole structure is re-derived from the
result: positive-area paths are outer candidates, negative-area paths
are holes and are given to the outer that contains their first vertex.

An empty result (for instance shrinking a shape by more than half its
width) is a valid outcome, not an error.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

import pyclipper

from inlaycad.geom import Loop, Polygon, oriented, point_in_loop, signed_area

logger = logging.getLogger(__name__)

## integer units per millimeter
SCALE = 1000

JOIN_TYPES: Dict[str, int] = {
    'miter': pyclipper.JT_MITER,
    'round': pyclipper.JT_ROUND,
    'square': pyclipper.JT_SQUARE,
}


def _to_clipper(loop: Sequence, ccw: bool) -> List[List[int]]:
    return pyclipper.scale_to_clipper([list(p) for p in oriented(loop, ccw)], SCALE)


def _from_clipper(path) -> Loop:
    return tuple((float(x), float(y)) for x, y in pyclipper.scale_from_clipper(path, SCALE))


def assemble_polygons(paths: Iterable[Sequence]) -> List[Polygon]:
    """Group loops into polygons by winding and containment.

    Counter-clockwise loops become outlines; clockwise loops are holes
    of the first outline containing their first vertex.  Loops with
    fewer than three points, and holes no outline contains, are dropped.
    """
    outers: List[Loop] = []
    holes: List[Loop] = []
    for path in paths:
        pts = tuple(path)
        if len(pts) < 3:
            continue
        area = signed_area(pts)
        if area > 0.0:
            outers.append(pts)
        elif area < 0.0:
            holes.append(pts)

    assigned: List[List[Loop]] = [[] for _ in outers]
    for hole in holes:
        for i, outer in enumerate(outers):
            if point_in_loop(hole[0], outer):
                assigned[i].append(hole)
                break
        else:
            logger.debug('dropping hole with no enclosing outline')
    return [Polygon(outer, tuple(hs)) for outer, hs in zip(outers, assigned)]


def offset_polygon(poly: Polygon, distance: float, *, join: str = 'miter',
                   miter_limit: float = 2.0) -> List[Polygon]:
    """Offset ``poly`` outward (positive) or inward (negative) by ``distance`` mm.

    Returns zero or more polygons.  ``join`` selects the corner style;
    mitered corners are the default.
    """
    if distance == 0:
        return [poly]
    try:
        join_type = JOIN_TYPES[join]
    except KeyError:
        raise ValueError(f'unknown join type {join!r}') from None

    paths = [_to_clipper(poly.outer, ccw=True)]
    paths.extend(_to_clipper(h, ccw=False) for h in poly.holes)

    pco = pyclipper.PyclipperOffset()
    pco.MiterLimit = miter_limit
    pco.AddPaths(paths, join_type, pyclipper.ET_CLOSEDPOLYGON)
    result = pco.Execute(distance * SCALE)
    if not result:
        logger.debug('offset by %g mm left nothing', distance)
        return []
    return assemble_polygons(_from_clipper(path) for path in result)


def offset_polygons(polys: Iterable[Polygon], distance: float, **kwargs) -> List[Polygon]:
    """Offset each polygon independently and concatenate the results."""
    out: List[Polygon] = []
    for poly in polys:
        out.extend(offset_polygon(poly, distance, **kwargs))
    return out


__all__ = ['JOIN_TYPES', 'SCALE', 'assemble_polygons', 'offset_polygon', 'offset_polygons']

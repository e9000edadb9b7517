"""Derived views and transforms over polygon sets.

Helpers the application layers use around the core engine: bounds and
centering of a pattern, its layout footprint, materialized tiled
copies, and flattened point / SVG path previews.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from inlaycad.geom import (
    Footprint, Placement, Point2, Polygon, Region, clean_loop, dist,
    loop_bbox, oriented, rotate_point,
)
from inlaycad.settings import LayoutSettings
from inlaycad.tiling import generate_placements


@dataclass(frozen=True)
class Bounds:
    min: Point2
    max: Point2

    @property
    def center(self) -> Point2:
        return ((self.min[0] + self.max[0]) / 2.0, (self.min[1] + self.max[1]) / 2.0)

    @property
    def size(self) -> Point2:
        return (self.max[0] - self.min[0], self.max[1] - self.min[1])


def polygons_bounds(polys: Iterable[Polygon]) -> Bounds:
    """Bounding box of a set of polygons; a zero box when the set is empty."""
    pts = [p for poly in polys for p in poly.outer]
    if not pts:
        return Bounds((0.0, 0.0), (0.0, 0.0))
    lo, hi = loop_bbox(pts)
    return Bounds(lo, hi)


def center_polygons(polys: Sequence[Polygon]) -> List[Polygon]:
    """Translate a set so that its bounding box is centered on the origin."""
    c = polygons_bounds(polys).center
    return [poly.translated((-c[0], -c[1])) for poly in polys]


def footprint_of(polys: Sequence[Polygon], scale: float = 1.0) -> Footprint:
    w, h = polygons_bounds(polys).size
    return Footprint(w * scale, h * scale)


def sanitize_loop(points: Sequence[Point2], threshold: float = 1e-4) -> List[Point2]:
    """Drop near-duplicate consecutive points and a duplicated closing point."""
    out: List[Point2] = []
    for p in points:
        if out and dist(p, out[-1]) <= threshold:
            continue
        out.append(p)
    if len(out) > 1 and dist(out[-1], out[0]) < threshold:
        out.pop()
    return out


def orient_polygon(poly: Polygon) -> Polygon:
    """Outer counter-clockwise, holes clockwise."""
    return Polygon(oriented(poly.outer, True), tuple(oriented(h, False) for h in poly.holes))


def sanitize_polygon(poly: Polygon, threshold: float = 1e-4) -> Polygon:
    holes = [sanitize_loop(h, threshold) for h in poly.holes]
    return orient_polygon(Polygon(tuple(sanitize_loop(poly.outer, threshold)),
                                  tuple(tuple(h) for h in holes if len(h) >= 3)))


def transform_polygon(poly: Polygon, rotation: float = 0.0, mirror: bool = False,
                      scale: float = 1.0, center: Point2 = (0.0, 0.0)) -> Polygon:
    """Mirror (across the vertical axis), scale and rotate about ``center``.

    ``rotation`` is in degrees.
    """
    ang = math.radians(rotation)

    def fn(p):
        x = p[0] - center[0]
        y = p[1] - center[1]
        if mirror:
            x = -x
        return rotate_point((center[0] + x * scale, center[1] + y * scale), ang, center)

    return poly.mapped(fn)


def place_polygons(polys: Sequence[Polygon], placements: Iterable[Placement],
                   scale: float = 1.0) -> List[Polygon]:
    """Materialize one transformed copy of the pattern per placement.

    The pattern is scaled about its own center, rotated by the
    placement's rotation and moved to the placement's position.
    """
    c = polygons_bounds(polys).center
    out: List[Polygon] = []
    for pl in placements:
        cos_a = math.cos(pl.rotation)
        sin_a = math.sin(pl.rotation)
        px, py = pl.position

        def fn(p, cos_a=cos_a, sin_a=sin_a, px=px, py=py):
            x = (p[0] - c[0]) * scale
            y = (p[1] - c[1]) * scale
            return (px + x * cos_a - y * sin_a, py + x * sin_a + y * cos_a)

        for poly in polys:
            out.append(Polygon(tuple(fn(p) for p in poly.outer),
                               tuple(tuple(fn(p) for p in h) for h in poly.holes)))
    return out


def layout_pattern(polys: Sequence[Polygon], region: Region,
                   settings: LayoutSettings) -> List[Placement]:
    """Placements for a pattern inside ``region`` using its scaled footprint."""
    return generate_placements(region, footprint_of(polys, settings.scale), settings)


def preview_points(poly: Polygon) -> List[List[Point2]]:
    """Flattened outline for drawing: the outer loop, then each hole."""
    return [list(loop) for loop in poly.loops]


def _fmt(v: float) -> str:
    s = f'{v:.4f}'.rstrip('0').rstrip('.')
    return '0' if s == '-0' else s


def svg_path(polys: Iterable[Polygon]) -> str:
    """SVG path data with one ``M ... Z`` subpath per loop."""
    parts: List[str] = []
    for poly in polys:
        for loop in poly.loops:
            loop = clean_loop(loop)
            if not loop:
                continue
            cmds = [f'M {_fmt(loop[0][0])} {_fmt(loop[0][1])}']
            cmds.extend(f'L {_fmt(x)} {_fmt(y)}' for x, y in loop[1:])
            cmds.append('Z')
            parts.append(' '.join(cmds))
    return ' '.join(parts)


__all__ = [
    'Bounds',
    'center_polygons',
    'footprint_of',
    'layout_pattern',
    'orient_polygon',
    'place_polygons',
    'polygons_bounds',
    'preview_points',
    'sanitize_loop',
    'sanitize_polygon',
    'svg_path',
    'transform_polygon',
]

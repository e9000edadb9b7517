## planar geometry value types and loop math for inlayCAD
## Copyright (c) 2025 inlayCAD contributors

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""planar geometry value types for **inlayCAD**

====================
OVERVIEW
====================

Everything in inlayCAD lives in a single right-handed XY working
plane, in millimeters.  This module provides the small vocabulary the
rest of the package is written in:

points
======

A point is a plain ``(x, y)`` tuple of floats.  ``point()`` builds one
from just about any plausible argument (a pair of numbers, a list, an
ezdxf ``Vec3``); any z component is dropped.

loops
=====

A loop is an ordered tuple of points.  The first point implicitly
connects to the last one, so the closing point is never repeated.
Loops carry no solid/hole meaning on their own; the sign of
``signed_area()`` (counter-clockwise positive) is what the classifier
and offset engine use to tell them apart.

polygons
========

A ``Polygon`` is an outer loop plus zero or more hole loops.  The
convention used throughout the package is that ``outer`` winds
counter-clockwise (positive area) and every hole winds clockwise
(negative area).  Polygons are immutable; every operation returns a new
value.

layout values
=============

``Footprint``, ``Region`` and ``Placement`` are the inputs and outputs
of the tile placement generator, see :mod:`inlaycad.tiling`.

"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

Point2 = Tuple[float, float]
Loop = Tuple[Point2, ...]
BBox = Tuple[Point2, Point2]

## empirically chosen tolerance for coordinate comparisons, in mm
epsilon = 1e-6

## loops with less area than this (mm^2) are treated as noise
AREA_EPSILON = 1e-3

pi2 = 2.0 * math.pi


def point(x, y=None) -> Point2:
    """Return an ``(x, y)`` tuple from two numbers or a point-like value."""
    if y is None:
        return (float(x[0]), float(x[1]))
    return (float(x), float(y))


def dist(a: Point2, b: Point2) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def close(a: float, b: float, tol: float = epsilon) -> bool:
    return abs(a - b) <= tol


def vclose(a: Point2, b: Point2, tol: float = epsilon) -> bool:
    return dist(a, b) <= tol


def rotate_point(p: Point2, ang: float, cent: Point2 = (0.0, 0.0)) -> Point2:
    """Rotate ``p`` about ``cent`` by ``ang`` radians (counter-clockwise)."""
    c = math.cos(ang)
    s = math.sin(ang)
    x = p[0] - cent[0]
    y = p[1] - cent[1]
    return (cent[0] + x * c - y * s, cent[1] + x * s + y * c)


## loop math

def signed_area(points: Sequence[Point2]) -> float:
    """Shoelace area of an implicitly closed loop; counter-clockwise is positive."""
    n = len(points)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        x1, y1 = points[i - 1]
        x2, y2 = points[i]
        total += (x1 * y2) - (x2 * y1)
    return 0.5 * total


def loop_bbox(points: Iterable[Point2]) -> BBox:
    """Return ``((xmin, ymin), (xmax, ymax))`` for a collection of points.

    Raises ``ValueError`` on an empty collection.
    """
    xs = []
    ys = []
    for p in points:
        xs.append(p[0])
        ys.append(p[1])
    if not xs:
        raise ValueError('cannot compute the bounding box of no points')
    return ((min(xs), min(ys)), (max(xs), max(ys)))


def point_in_loop(p: Point2, points: Sequence[Point2]) -> bool:
    """Even-odd ray casting test of ``p`` against an implicitly closed loop.

    Points exactly on the boundary may land on either side.
    """
    x, y = p
    inside = False
    n = len(points)
    if n < 3:
        return False
    j = n - 1
    for i in range(n):
        xi, yi = points[i]
        xj, yj = points[j]
        if (yi > y) != (yj > y):
            if x < (xj - xi) * (y - yi) / (yj - yi) + xi:
                inside = not inside
        j = i
    return inside


def sample_loop_points(points: Sequence[Point2], count: int = 8) -> List[Point2]:
    """Return up to ``count`` vertices spread evenly along a loop.

    The first, middle and last vertices are always included so that a
    single unlucky vertex sitting on another loop's boundary does not
    decide a containment test on its own.
    """
    n = len(points)
    if n == 0:
        return []
    indices = {0, n // 2, n - 1}
    step = max(n / float(count), 1.0)
    k = 0.0
    while len(indices) < count and k < n:
        indices.add(int(k))
        k += step
    return [points[i] for i in sorted(indices)]


def oriented(points: Sequence[Point2], ccw: bool = True) -> Loop:
    """Return ``points`` as a loop wound counter-clockwise (or clockwise)."""
    pts = tuple(points)
    if (signed_area(pts) < 0.0) == ccw:
        return tuple(reversed(pts))
    return pts


def clean_loop(points: Iterable[Point2], tol: float = epsilon) -> Loop:
    """Drop consecutive duplicate points and a repeated closing point."""
    out: List[Point2] = []
    for p in points:
        p = point(p)
        if out and dist(out[-1], p) <= tol:
            continue
        out.append(p)
    while len(out) > 1 and dist(out[-1], out[0]) <= tol:
        out.pop()
    return tuple(out)


def translate_loop(points: Sequence[Point2], delta: Point2) -> Loop:
    return tuple((p[0] + delta[0], p[1] + delta[1]) for p in points)


## value types

@dataclass(frozen=True)
class Polygon:
    """A solid outline with zero or more holes.

    ``outer`` is counter-clockwise and each hole clockwise; use
    ``Polygon.build()`` to get that orientation from arbitrary input.
    """

    outer: Loop
    holes: Tuple[Loop, ...] = ()

    @classmethod
    def build(cls, outer: Sequence[Point2], holes: Iterable[Sequence[Point2]] = ()) -> 'Polygon':
        return cls(oriented(clean_loop(outer), ccw=True),
                   tuple(oriented(clean_loop(h), ccw=False) for h in holes))

    @property
    def area(self) -> float:
        """Net area: the outer area minus the hole areas."""
        return signed_area(self.outer) + sum(signed_area(h) for h in self.holes)

    @property
    def loops(self) -> Tuple[Loop, ...]:
        return (self.outer,) + self.holes

    def bbox(self) -> BBox:
        return loop_bbox(self.outer)

    def contains_point(self, p: Point2) -> bool:
        """Inside the outer loop and outside every hole."""
        if not point_in_loop(p, self.outer):
            return False
        return not any(point_in_loop(p, h) for h in self.holes)

    def translated(self, delta: Point2) -> 'Polygon':
        return Polygon(translate_loop(self.outer, delta),
                       tuple(translate_loop(h, delta) for h in self.holes))

    def mapped(self, fn) -> 'Polygon':
        """Apply a point function to every vertex, restoring orientation.

        Mirroring transforms flip winding, so the result is re-oriented.
        """
        return Polygon.build([fn(p) for p in self.outer],
                             [[fn(p) for p in h] for h in self.holes])


@dataclass(frozen=True)
class Footprint:
    """Scaled bounding size of one pattern instance, used for layout only."""

    width: float
    height: float

    def scaled(self, factor: float) -> 'Footprint':
        return Footprint(self.width * factor, self.height * factor)


@dataclass(frozen=True)
class Region:
    """An axis-aligned layout box, optionally paired with an outline."""

    min: Point2
    max: Point2
    outline: Optional[Polygon] = None

    @classmethod
    def square(cls, size: float, center: Point2 = (0.0, 0.0)) -> 'Region':
        half = size / 2.0
        return cls((center[0] - half, center[1] - half),
                   (center[0] + half, center[1] + half))

    @classmethod
    def from_outline(cls, outline: Polygon) -> 'Region':
        lo, hi = outline.bbox()
        return cls(lo, hi, outline)

    @property
    def width(self) -> float:
        return self.max[0] - self.min[0]

    @property
    def height(self) -> float:
        return self.max[1] - self.min[1]

    @property
    def center(self) -> Point2:
        return ((self.min[0] + self.max[0]) / 2.0,
                (self.min[1] + self.max[1]) / 2.0)

    def inset(self, margin: float) -> 'Region':
        """Shrink the box by ``margin`` on all sides; the outline is kept."""
        return Region((self.min[0] + margin, self.min[1] + margin),
                      (self.max[0] - margin, self.max[1] - margin),
                      self.outline)

    def contains_box(self, lo: Point2, hi: Point2, tol: float = epsilon) -> bool:
        return (lo[0] >= self.min[0] - tol and lo[1] >= self.min[1] - tol and
                hi[0] <= self.max[0] + tol and hi[1] <= self.max[1] + tol)


@dataclass(frozen=True)
class Placement:
    """Position and rotation (radians) of one pattern instance."""

    position: Point2
    rotation: float = 0.0


T = TypeVar('T')


@dataclass(frozen=True)
class Styled(Generic[T]):
    """A value paired with an optional fill color such as ``'#ff0000'``."""

    value: T
    color: Optional[str] = field(default=None)


__all__ = [
    'AREA_EPSILON',
    'BBox',
    'Footprint',
    'Loop',
    'Placement',
    'Point2',
    'Polygon',
    'Region',
    'Styled',
    'clean_loop',
    'close',
    'dist',
    'epsilon',
    'loop_bbox',
    'oriented',
    'pi2',
    'point',
    'point_in_loop',
    'rotate_point',
    'sample_loop_points',
    'signed_area',
    'translate_loop',
    'vclose',
]

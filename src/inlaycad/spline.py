"""B-spline helpers for inlayCAD.

Evaluates exchange-format SPLINE entities with de Boor's algorithm at
the curve's own degree, and samples them per knot span.  Rational
splines are evaluated in homogeneous coordinates.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from inlaycad.geom import Point2

## samples taken inside every non-empty knot span
SAMPLES_PER_SPAN = 20


def knots_valid(ctrl_count: int, degree: int, knots: Sequence[float]) -> bool:
    """Return ``True`` if ``knots`` can drive a B-spline of this shape."""

    if degree < 1 or ctrl_count <= degree:
        return False
    if len(knots) != ctrl_count + degree + 1:
        return False
    for a, b in zip(knots, knots[1:]):
        if b < a:
            return False
    return knots[len(knots) - 1 - degree] > knots[degree]


def find_span(degree: int, knots: Sequence[float], u: float) -> int:
    """Index ``s`` with ``knots[s] <= u < knots[s + 1]`` inside the domain."""

    high = len(knots) - 1 - degree
    if u >= knots[high]:
        # clamp the domain end into the last non-empty span
        s = high - 1
        while s > degree and knots[s] >= knots[s + 1]:
            s -= 1
        return s
    s = degree
    while s < high - 1 and knots[s + 1] <= u:
        s += 1
    return s


def de_boor(ctrl: Sequence[Point2], degree: int, knots: Sequence[float], u: float,
            weights: Optional[Sequence[float]] = None) -> Point2:
    """Evaluate the spline at parameter ``u`` with de Boor's algorithm."""

    s = find_span(degree, knots, u)
    rational = bool(weights) and len(weights) == len(ctrl)
    d: List[Tuple[float, float, float]] = []
    for i in range(degree + 1):
        idx = s - degree + i
        x, y = ctrl[idx]
        w = float(weights[idx]) if rational else 1.0
        d.append((x * w, y * w, w))

    for r in range(1, degree + 1):
        for j in range(degree, r - 1, -1):
            lo = knots[s - degree + j]
            denom = knots[s + 1 + j - r] - lo
            alpha = (u - lo) / denom if denom != 0.0 else 0.0
            a = d[j - 1]
            b = d[j]
            d[j] = (a[0] + (b[0] - a[0]) * alpha,
                    a[1] + (b[1] - a[1]) * alpha,
                    a[2] + (b[2] - a[2]) * alpha)

    x, y, w = d[degree]
    if w == 0.0:
        return (x, y)
    return (x / w, y / w)


def sample_bspline(ctrl: Sequence[Point2], degree: int, knots: Sequence[float],
                   weights: Optional[Sequence[float]] = None,
                   *, samples_per_span: int = SAMPLES_PER_SPAN) -> List[Point2]:
    """Sample a B-spline into a point list.

    Every non-empty knot span contributes ``samples_per_span`` points and
    the domain end point is appended exactly.  Returns an empty list if
    the knot data cannot describe the curve.
    """

    if samples_per_span < 1:
        raise ValueError('samples_per_span must be >= 1')
    if not knots_valid(len(ctrl), degree, knots):
        return []

    high_idx = len(knots) - 1 - degree
    points: List[Point2] = []
    for i in range(degree, high_idx):
        u0 = knots[i]
        u1 = knots[i + 1]
        if u1 <= u0:
            continue
        for j in range(samples_per_span):
            u = u0 + (u1 - u0) * (j / samples_per_span)
            points.append(de_boor(ctrl, degree, knots, u, weights))
    points.append(de_boor(ctrl, degree, knots, knots[high_idx], weights))
    return points


def open_uniform_knots(ctrl_count: int, degree: int) -> List[float]:
    """Clamped uniform knot vector on ``[0, 1]``."""

    if ctrl_count <= degree:
        raise ValueError('need more control points than the degree')
    interior = ctrl_count - degree - 1
    knots = [0.0] * (degree + 1)
    for i in range(1, interior + 1):
        knots.append(i / (interior + 1))
    knots.extend([1.0] * (degree + 1))
    return knots


__all__ = [
    'SAMPLES_PER_SPAN',
    'de_boor',
    'find_span',
    'knots_valid',
    'open_uniform_knots',
    'sample_bspline',
]

"""Path segments and the entity segmenter.

A ``Segment`` is directionless: it knows its two end points and can
append itself to a ``PathBuilder`` in either orientation.  The stitcher
uses that to chain segments whose only known relationship is a shared
end point.

Every segment is built in world millimeters.  The emitters subtract a
caller-supplied centering offset as they write.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence

from ezdxf.math import bulge_to_arc

from inlaycad.entities import (
    ArcEntity, CircleEntity, EllipseEntity, Entity, LineEntity,
    PolylineEntity, SplineEntity,
)
from inlaycad.frame import WORLD, Frame, cross3
from inlaycad.geom import Loop, Point2, clean_loop, dist, epsilon, pi2
from inlaycad.spline import sample_bspline

logger = logging.getLogger(__name__)

## default maximum angular step, in degrees, when flattening curves
DEFAULT_RESOLUTION = 5.0


class PathBuilder:
    """Accumulates a flattened path, one point at a time."""

    def __init__(self, resolution: float = DEFAULT_RESOLUTION):
        if resolution <= 0.0:
            raise ValueError('resolution must be positive')
        self.step = math.radians(resolution)
        self.points: List[Point2] = []

    def __repr__(self):
        return f'PathBuilder({len(self.points)} points)'

    @property
    def current(self) -> Point2:
        return self.points[-1]

    def move_to(self, x: float, y: float) -> None:
        self.points = [(x, y)]

    def line_to(self, x: float, y: float) -> None:
        if self.points and dist(self.points[-1], (x, y)) <= epsilon:
            return
        self.points.append((x, y))

    def _steps(self, sweep: float) -> int:
        # absorb rounding so a 90 degree sweep at 5 degrees is 18 steps, not 19
        return max(int(math.ceil(abs(sweep) / self.step - 1e-9)), 1)

    def arc(self, cx: float, cy: float, r: float, start: float, end: float,
            clockwise: bool = False) -> None:
        """Append a circular arc from angle ``start`` to ``end`` (radians).

        The sweep runs counter-clockwise unless ``clockwise`` is set.  If
        ``start`` and ``end`` are a full turn apart the whole circle is
        drawn.  A line is added to the arc's first point if the path is
        not already there.
        """
        sweep = _sweep(start, end, clockwise)
        n = self._steps(sweep)
        for i in range(n + 1):
            a = start + sweep * (i / n)
            self.line_to(cx + r * math.cos(a), cy + r * math.sin(a))

    def ellipse(self, cx: float, cy: float, major: Point2, minor: Point2,
                start: float, end: float, clockwise: bool = False) -> None:
        """Append ``c + cos(t) * major + sin(t) * minor`` for ``t`` from start to end."""
        sweep = _sweep(start, end, clockwise)
        n = self._steps(sweep)
        for i in range(n + 1):
            t = start + sweep * (i / n)
            c = math.cos(t)
            s = math.sin(t)
            self.line_to(cx + c * major[0] + s * minor[0],
                         cy + c * major[1] + s * minor[1])

    def close(self) -> Loop:
        """Finish the path as a loop (no repeated closing point)."""
        return clean_loop(self.points)


def _sweep(start: float, end: float, clockwise: bool) -> float:
    delta = end - start
    if abs(delta) >= pi2 - epsilon:
        return -pi2 if clockwise else pi2
    if clockwise:
        delta = -((start - end) % pi2)
    else:
        delta = delta % pi2
    return delta


class Segment:
    """Base class; subclasses set ``start``/``end`` and implement the emitters."""

    kind = 'segment'

    def __init__(self, start: Point2, end: Point2):
        self.start = start
        self.end = end

    def __repr__(self):
        return f'{type(self).__name__}({self.start} -> {self.end})'

    @property
    def closed(self) -> bool:
        """True for self-referential segments such as full circles."""
        return self.start == self.end

    def emit(self, path: PathBuilder, offset: Point2 = (0.0, 0.0)) -> None:
        raise NotImplementedError

    def emit_reverse(self, path: PathBuilder, offset: Point2 = (0.0, 0.0)) -> None:
        raise NotImplementedError


class LineSegment(Segment):
    kind = 'line'

    def emit(self, path, offset=(0.0, 0.0)):
        path.line_to(self.end[0] - offset[0], self.end[1] - offset[1])

    def emit_reverse(self, path, offset=(0.0, 0.0)):
        path.line_to(self.start[0] - offset[0], self.start[1] - offset[1])


class ArcSegment(Segment):
    """Circular arc in world XY; angles in radians."""

    kind = 'arc'

    def __init__(self, center: Point2, radius: float, start_angle: float,
                 end_angle: float, clockwise: bool = False):
        self.center = center
        self.radius = radius
        self.start_angle = start_angle
        self.end_angle = end_angle
        self.clockwise = clockwise
        if abs(end_angle - start_angle) >= pi2 - epsilon:
            p = self._at(start_angle)
            super().__init__(p, p)
        else:
            super().__init__(self._at(start_angle), self._at(end_angle))

    def _at(self, a: float) -> Point2:
        return (self.center[0] + self.radius * math.cos(a),
                self.center[1] + self.radius * math.sin(a))

    def emit(self, path, offset=(0.0, 0.0)):
        path.arc(self.center[0] - offset[0], self.center[1] - offset[1], self.radius,
                 self.start_angle, self.end_angle, self.clockwise)

    def emit_reverse(self, path, offset=(0.0, 0.0)):
        path.arc(self.center[0] - offset[0], self.center[1] - offset[1], self.radius,
                 self.end_angle, self.start_angle, not self.clockwise)


class EllipseSegment(Segment):
    """Elliptical arc ``c + cos(t) * major + sin(t) * minor`` in world XY."""

    kind = 'ellipse'

    def __init__(self, center: Point2, major: Point2, minor: Point2,
                 start_param: float, end_param: float):
        self.center = center
        self.major = major
        self.minor = minor
        if abs(end_param - start_param) < epsilon or abs(end_param - start_param) >= pi2 - epsilon:
            end_param = start_param + pi2
        elif end_param < start_param:
            end_param += pi2
        self.start_param = start_param
        self.end_param = end_param
        p0 = self._at(start_param)
        if end_param - start_param >= pi2 - epsilon:
            super().__init__(p0, p0)
        else:
            super().__init__(p0, self._at(end_param))

    def _at(self, t: float) -> Point2:
        c = math.cos(t)
        s = math.sin(t)
        return (self.center[0] + c * self.major[0] + s * self.minor[0],
                self.center[1] + c * self.major[1] + s * self.minor[1])

    def emit(self, path, offset=(0.0, 0.0)):
        path.ellipse(self.center[0] - offset[0], self.center[1] - offset[1],
                     self.major, self.minor, self.start_param, self.end_param, False)

    def emit_reverse(self, path, offset=(0.0, 0.0)):
        path.ellipse(self.center[0] - offset[0], self.center[1] - offset[1],
                     self.major, self.minor, self.end_param, self.start_param, True)


class PointsSegment(Segment):
    """A pre-flattened curve, such as a sampled spline."""

    kind = 'points'

    def __init__(self, points: Sequence[Point2]):
        if len(points) < 2:
            raise ValueError('a points segment needs at least two points')
        self.points = tuple(points)
        super().__init__(self.points[0], self.points[-1])

    def emit(self, path, offset=(0.0, 0.0)):
        for p in self.points[1:]:
            path.line_to(p[0] - offset[0], p[1] - offset[1])

    def emit_reverse(self, path, offset=(0.0, 0.0)):
        for p in reversed(self.points[:-1]):
            path.line_to(p[0] - offset[0], p[1] - offset[1])


## entity segmenter

def _line_segments(e: LineEntity, scale: float) -> List[Segment]:
    return [LineSegment(WORLD.to_world(e.start, scale), WORLD.to_world(e.end, scale))]


def _arc_segments(e: ArcEntity, scale: float) -> List[Segment]:
    frame = Frame.from_normal(e.extrusion)
    center = frame.to_world(e.center, scale)
    if e.end_angle != e.start_angle and (e.end_angle - e.start_angle) % 360.0 == 0.0:
        return [ArcSegment(center, e.radius * scale, 0.0, pi2, clockwise=frame.flipped)]
    start = math.radians(e.start_angle)
    end = math.radians(e.end_angle)
    # a frame seen from below mirrors the sweep
    a0 = frame.world_angle(start)
    a1 = frame.world_angle(end)
    return [ArcSegment(center, e.radius * scale, a0, a1, clockwise=frame.flipped)]


def _circle_segments(e: CircleEntity, scale: float) -> List[Segment]:
    frame = Frame.from_normal(e.extrusion)
    center = frame.to_world(e.center, scale)
    return [ArcSegment(center, e.radius * scale, 0.0, pi2, clockwise=frame.flipped)]


def _polyline_segments(e: PolylineEntity, scale: float) -> List[Segment]:
    frame = Frame.from_normal(e.extrusion)
    n = len(e.vertices)
    if n < 2:
        return []
    edges = [(i, i + 1) for i in range(n - 1)]
    if e.closed:
        edges.append((n - 1, 0))
    out: List[Segment] = []
    for i, j in edges:
        v0 = e.vertices[i]
        v1 = e.vertices[j]
        p0 = frame.to_world(v0, scale)
        p1 = frame.to_world(v1, scale)
        b = e.bulge(i)
        if abs(b) <= epsilon or dist(p0, p1) <= epsilon:
            out.append(LineSegment(p0, p1))
            continue
        center, sa, ea, radius = bulge_to_arc(v0[:2], v1[:2], b)
        # bulge_to_arc always reports a counter-clockwise arc; for a
        # negative bulge it runs from v1 to v0
        if b > 0.0:
            a0, a1 = sa, ea
        else:
            a0, a1 = ea, sa
        cw = (b < 0.0) != frame.flipped
        c = frame.to_world((center[0], center[1], v0[2]), scale)
        arc = ArcSegment(c, radius * scale, frame.world_angle(a0), frame.world_angle(a1), clockwise=cw)
        # pin the end points to the vertices so neighbours still match exactly
        arc.start = p0
        arc.end = p1
        out.append(arc)
    return out


def _spline_segments(e: SplineEntity, scale: float) -> List[Segment]:
    ctrl = [WORLD.to_world(p, scale) for p in e.control_points]
    pts = sample_bspline(ctrl, e.degree, e.knots, e.weights or None)
    if len(pts) > 1:
        return [PointsSegment(pts)]
    raw = ctrl if len(ctrl) > 1 else [WORLD.to_world(p, scale) for p in e.fit_points]
    if len(raw) < 2:
        logger.warning('spline with %d control points skipped', len(ctrl))
        return []
    logger.warning('spline knot data unusable (degree %d, %d control points, %d knots), '
                   'using straight segments', e.degree, len(ctrl), len(e.knots))
    return [LineSegment(raw[i], raw[i + 1]) for i in range(len(raw) - 1)]


def _ellipse_segments(e: EllipseEntity, scale: float) -> List[Segment]:
    frame = Frame.from_normal(e.extrusion)
    major3 = e.major_axis
    minor3 = cross3(frame.z_axis, major3)
    center = WORLD.to_world(e.center, scale)
    major = (major3[0] * scale, major3[1] * scale)
    minor = (minor3[0] * e.ratio * scale, minor3[1] * e.ratio * scale)
    return [EllipseSegment(center, major, minor, e.start_param, e.end_param)]


def segment_entity(entity: Entity, scale: float = 1.0) -> List[Segment]:
    """Convert one entity into world-millimeter segments."""

    if isinstance(entity, LineEntity):
        return _line_segments(entity, scale)
    if isinstance(entity, ArcEntity):
        return _arc_segments(entity, scale)
    if isinstance(entity, CircleEntity):
        return _circle_segments(entity, scale)
    if isinstance(entity, PolylineEntity):
        return _polyline_segments(entity, scale)
    if isinstance(entity, SplineEntity):
        return _spline_segments(entity, scale)
    if isinstance(entity, EllipseEntity):
        return _ellipse_segments(entity, scale)
    raise TypeError(f'unsupported entity type: {type(entity).__name__}')


def segment_entities(entities: Iterable[Entity], scale: float = 1.0) -> List[Segment]:
    segments: List[Segment] = []
    for entity in entities:
        segments.extend(segment_entity(entity, scale))
    logger.debug('extracted %d segments', len(segments))
    return segments


__all__ = [
    'ArcSegment',
    'DEFAULT_RESOLUTION',
    'EllipseSegment',
    'LineSegment',
    'PathBuilder',
    'PointsSegment',
    'Segment',
    'segment_entities',
    'segment_entity',
]

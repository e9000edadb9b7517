import math

import pytest

from inlaycad.entities import (
    ArcEntity, CircleEntity, EllipseEntity, LineEntity, PolylineEntity,
    SplineEntity,
)
from inlaycad.geom import dist, signed_area
from inlaycad.segments import (
    ArcSegment, LineSegment, PathBuilder, PointsSegment, segment_entities,
    segment_entity,
)

## unit tests for the entity segmenter


def _close(a, b, tol=1e-6):
    assert dist(a, b) <= tol, f'{a} != {b}'


def _trace(seg, reverse=False):
    path = PathBuilder()
    if reverse:
        path.move_to(*seg.end)
        seg.emit_reverse(path)
    else:
        path.move_to(*seg.start)
        seg.emit(path)
    return path.points


class TestLines:

    def test_line(self):
        segs = segment_entity(LineEntity((0, 0, 0), (10, 0, 0)))
        assert len(segs) == 1
        assert isinstance(segs[0], LineSegment)
        assert segs[0].start == (0.0, 0.0)
        assert segs[0].end == (10.0, 0.0)

    def test_line_scaled(self):
        seg = segment_entity(LineEntity((1, 1, 0), (2, 1, 0)), 25.4)[0]
        _close(seg.start, (25.4, 25.4))
        _close(seg.end, (50.8, 25.4))

    def test_line_reverse(self):
        seg = segment_entity(LineEntity((0, 0, 0), (10, 0, 0)))[0]
        assert _trace(seg, reverse=True) == [(10.0, 0.0), (0.0, 0.0)]


class TestArcs:
    """arcs and circles, including frames seen from below"""

    def test_quarter_arc(self):
        seg = segment_entity(ArcEntity((0, 0, 0), 10.0, 0.0, 90.0))[0]
        _close(seg.start, (10, 0))
        _close(seg.end, (0, 10))
        pts = _trace(seg)
        assert len(pts) > 10
        _close(pts[-1], (0, 10))
        for p in pts:
            assert abs(math.hypot(*p) - 10.0) < 1e-9
            assert p[0] > -1e-9 and p[1] > -1e-9

    def test_quarter_arc_reversed(self):
        seg = segment_entity(ArcEntity((0, 0, 0), 10.0, 0.0, 90.0))[0]
        pts = _trace(seg, reverse=True)
        _close(pts[0], (0, 10))
        _close(pts[-1], (10, 0))
        for p in pts:
            assert p[0] > -1e-9 and p[1] > -1e-9

    def test_arc_wrapping_zero(self):
        seg = segment_entity(ArcEntity((0, 0, 0), 1.0, 270.0, 90.0))[0]
        pts = _trace(seg)
        # counter-clockwise from 270 to 90 passes through angle 0
        assert all(p[0] > -1e-9 for p in pts)
        assert max(p[0] for p in pts) == pytest.approx(1.0)

    def test_flipped_extrusion(self):
        arc = ArcEntity((5, 0, 0), 10.0, 0.0, 90.0, extrusion=(0, 0, -1))
        seg = segment_entity(arc)[0]
        _close(seg.start, (-15, 0))
        _close(seg.end, (-5, 10))
        pts = _trace(seg)
        _close(pts[-1], (-5, 10))
        for p in pts:
            assert abs(dist(p, (-5, 0)) - 10.0) < 1e-9
            # the short way round, through the upper left quadrant
            assert p[0] < -5 + 1e-9 and p[1] > -1e-9

    def test_full_arc_is_closed(self):
        seg = segment_entity(ArcEntity((0, 0, 0), 2.0, 0.0, 360.0))[0]
        assert seg.closed

    def test_circle(self):
        seg = segment_entity(CircleEntity((1, 1, 0), 5.0))[0]
        assert seg.closed
        _close(seg.start, (6, 1))
        pts = PathBuilder()
        pts.move_to(*seg.start)
        seg.emit(pts)
        loop = pts.close()
        # 5 degree flattening of a circle
        assert len(loop) == 72
        assert signed_area(loop) == pytest.approx(math.pi * 25.0, rel=0.01)

    def test_circle_below(self):
        seg = segment_entity(CircleEntity((1, 1, 0), 5.0, (0, 0, -1)))[0]
        assert isinstance(seg, ArcSegment)
        assert seg.clockwise
        _close(seg.center, (-1, 1))


class TestPolylines:

    SQUARE = ((0, 0, 0), (10, 0, 0), (10, 10, 0), (0, 10, 0))

    def test_closed_polyline(self):
        segs = segment_entity(PolylineEntity(self.SQUARE, closed=True))
        assert len(segs) == 4
        _close(segs[-1].start, (0, 10))
        _close(segs[-1].end, (0, 0))

    def test_open_polyline(self):
        segs = segment_entity(PolylineEntity(self.SQUARE[:3]))
        assert len(segs) == 2

    def test_single_vertex(self):
        assert segment_entity(PolylineEntity(((1, 1, 0),))) == []

    def test_bulge_semicircle(self):
        # bulge 1 is a half circle, counter-clockwise from start to end
        pl = PolylineEntity(((0, 0, 0), (10, 0, 0)), bulges=(1.0, 0.0))
        seg = segment_entity(pl)[0]
        assert seg.start == (0.0, 0.0)
        assert seg.end == (10.0, 0.0)
        pts = _trace(seg)
        assert min(p[1] for p in pts) == pytest.approx(-5.0)
        assert max(p[1] for p in pts) == pytest.approx(0.0, abs=1e-9)

    def test_negative_bulge(self):
        pl = PolylineEntity(((0, 0, 0), (10, 0, 0)), bulges=(-1.0,))
        pts = _trace(segment_entity(pl)[0])
        assert max(p[1] for p in pts) == pytest.approx(5.0)
        _close(pts[-1], (10, 0))


class TestSplinesAndEllipses:

    def test_spline(self):
        sp = SplineEntity(((0, 0, 0), (5, 10, 0), (10, 0, 0)), degree=2,
                          knots=(0, 0, 0, 1, 1, 1))
        segs = segment_entity(sp)
        assert len(segs) == 1
        assert isinstance(segs[0], PointsSegment)
        _close(segs[0].start, (0, 0))
        _close(segs[0].end, (10, 0))
        assert len(segs[0].points) == 21

    def test_spline_fallback(self, caplog):
        sp = SplineEntity(((0, 0, 0), (5, 10, 0), (10, 0, 0)), degree=3)
        with caplog.at_level('WARNING', logger='inlaycad.segments'):
            segs = segment_entity(sp)
        assert len(segs) == 2
        assert all(isinstance(s, LineSegment) for s in segs)
        assert 'straight segments' in caplog.text

    def test_full_ellipse(self):
        seg = segment_entity(EllipseEntity((0, 0, 0), (10, 0, 0), 0.5))[0]
        assert seg.closed
        pts = _trace(seg)
        assert max(p[1] for p in pts) == pytest.approx(5.0)
        assert min(p[0] for p in pts) == pytest.approx(-10.0)

    def test_half_ellipse(self):
        seg = segment_entity(EllipseEntity((0, 0, 0), (10, 0, 0), 0.5, 0.0, math.pi))[0]
        _close(seg.start, (10, 0))
        _close(seg.end, (-10, 0))
        pts = _trace(seg)
        assert max(p[1] for p in pts) == pytest.approx(5.0)
        assert min(p[1] for p in pts) > -1e-9


def test_unsupported_entity():
    with pytest.raises(TypeError):
        segment_entity('not an entity')


def test_segment_entities_flattens():
    segs = segment_entities([LineEntity((0, 0, 0), (1, 0, 0)),
                             CircleEntity((0, 0, 0), 1.0)])
    assert len(segs) == 2


def test_path_builder_rejects_bad_resolution():
    with pytest.raises(ValueError):
        PathBuilder(0.0)

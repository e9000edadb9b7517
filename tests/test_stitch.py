import math

import pytest

from inlaycad.errors import UnstitchableError
from inlaycad.geom import loop_bbox, signed_area
from inlaycad.segments import ArcSegment, LineSegment
from inlaycad.stitch import segments_center, stitch_segments


def _square(x0=0.0, y0=0.0, size=10.0, gap=0.0):
    x1 = x0 + size
    y1 = y0 + size
    return [
        LineSegment((x0, y0), (x1, y0)),
        LineSegment((x1 + gap, y0), (x1, y1)),
        LineSegment((x1, y1), (x0, y1)),
        LineSegment((x0, y1), (x0, y0)),
    ]


class TestStitching:
    """joining loose segments into loops"""

    def test_square(self):
        loops = stitch_segments(_square())
        assert len(loops) == 1
        loop = loops[0]
        assert loop.closed
        assert loop.segment_count == 4
        assert abs(signed_area(loop.points)) == pytest.approx(100.0)
        assert len(loop.points) == 4

    def test_shuffled_and_reversed(self):
        a, b, c, d = _square()
        segs = [
            LineSegment(c.end, c.start),
            a,
            LineSegment(d.end, d.start),
            b,
        ]
        loops = stitch_segments(segs)
        assert len(loops) == 1
        assert loops[0].closed
        assert abs(signed_area(loops[0].points)) == pytest.approx(100.0)

    def test_centered(self):
        loops = stitch_segments(_square(100.0, 50.0))
        assert loop_bbox(loops[0].points) == ((-5.0, -5.0), (5.0, 5.0))

    def test_not_centered(self):
        loops = stitch_segments(_square(100.0, 50.0), center=False)
        assert loop_bbox(loops[0].points) == ((100.0, 50.0), (110.0, 60.0))

    def test_explicit_offset(self):
        loops = stitch_segments(_square(), offset=(1.0, 1.0))
        assert loop_bbox(loops[0].points) == ((-1.0, -1.0), (9.0, 9.0))

    def test_within_tolerance(self):
        loops = stitch_segments(_square(gap=0.1))
        assert len(loops) == 1
        assert loops[0].closed

    def test_gap_force_closes(self, caplog):
        with caplog.at_level('WARNING', logger='inlaycad.stitch'):
            loops = stitch_segments(_square(gap=0.3))
        assert loops
        assert any(loop.forced for loop in loops)
        for loop in loops:
            assert loop.closed or loop.gap > 0.15
        assert 'force-closed' in caplog.text

    def test_strict_raises(self):
        with pytest.raises(UnstitchableError) as info:
            stitch_segments(_square(gap=0.3), strict=True)
        assert info.value.loop_index == 0
        assert info.value.gap > 0.15

    def test_two_loops(self):
        segs = _square() + _square(20.0, 0.0)
        loops = stitch_segments(segs)
        assert len(loops) == 2
        assert all(loop.closed for loop in loops)

    def test_full_circle(self):
        loops = stitch_segments([ArcSegment((3.0, 4.0), 5.0, 0.0, 2 * math.pi)], center=False)
        assert len(loops) == 1
        assert loops[0].closed
        assert abs(signed_area(loops[0].points)) == pytest.approx(math.pi * 25.0, rel=0.01)
        lo, hi = loop_bbox(loops[0].points)
        assert lo[0] == pytest.approx(-2.0)
        assert hi[0] == pytest.approx(8.0)

    def test_arc_and_chord(self):
        # half circle closed by its diameter
        segs = [
            LineSegment((-10.0, 0.0), (10.0, 0.0)),
            ArcSegment((0.0, 0.0), 10.0, 0.0, math.pi),
        ]
        loops = stitch_segments(segs, center=False)
        assert len(loops) == 1
        assert loops[0].closed
        assert abs(signed_area(loops[0].points)) == pytest.approx(50.0 * math.pi, rel=0.01)

    def test_repeatable(self):
        segs = _square() + _square(20.0, 0.0)
        assert stitch_segments(segs) == stitch_segments(segs)

    def test_empty(self):
        assert stitch_segments([]) == []


def test_segments_center():
    assert segments_center(_square(10.0, 20.0)) == (15.0, 25.0)
    assert segments_center([]) == (0.0, 0.0)

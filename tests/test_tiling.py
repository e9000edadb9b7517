import itertools
import math

import pytest

from inlaycad.geom import Footprint, Polygon, Region
from inlaycad.settings import DISTRIBUTIONS, LayoutSettings
from inlaycad.tiling import (
    generate_placements, generate_tile_positions, segment_enters_box, single_placement,
)

## tests for tile placement generation

REGION = Region.square(100.0)
TILE = Footprint(10.0, 10.0)


def _circle(r, n=72):
    return Polygon.build([(r * math.cos(2 * math.pi * i / n), r * math.sin(2 * math.pi * i / n))
                          for i in range(n)])


def _corners(pl, fp):
    x, y = pl.position
    hw = fp.width / 2.0
    hh = fp.height / 2.0
    return [(x - hw, y - hh), (x + hw, y - hh), (x + hw, y + hh), (x - hw, y + hh)]


def _in_box(pl, fp, region, tol=1e-6):
    return all(region.min[0] - tol <= cx <= region.max[0] + tol and
               region.min[1] - tol <= cy <= region.max[1] + tol
               for cx, cy in _corners(pl, fp))


class TestGrid:
    """rectangular lattices"""

    def test_hundred_tiles(self):
        placements = generate_tile_positions(REGION, TILE, 0.0)
        assert len(placements) == 100
        xs = sorted({round(p.position[0], 6) for p in placements})
        ys = sorted({round(p.position[1], 6) for p in placements})
        assert xs == [-45.0 + 10.0 * i for i in range(10)]
        assert ys == xs
        assert all(p.rotation == 0.0 for p in placements)

    def test_coverage_with_spacing(self):
        fp = Footprint(8.0, 8.0)
        placements = generate_tile_positions(REGION, fp, 3.0)
        per_axis = math.floor((100.0 - 8.0) / 11.0) + 1
        assert len(placements) == per_axis * per_axis

    def test_margin(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, margin=10.0)
        assert len(placements) == 64
        inner = REGION.inset(10.0)
        assert all(_in_box(p, TILE, inner) for p in placements)

    def test_off_center_region(self):
        region = Region((200.0, -50.0), (300.0, 50.0))
        placements = generate_tile_positions(region, TILE, 0.0)
        assert len(placements) == 100
        assert all(_in_box(p, TILE, region) for p in placements)

    def test_footprint_too_small(self):
        assert generate_tile_positions(REGION, Footprint(0.05, 10.0)) == []

    def test_footprint_larger_than_region(self):
        assert generate_tile_positions(REGION, Footprint(120.0, 10.0)) == []

    def test_margin_swallows_region(self):
        assert generate_tile_positions(REGION, TILE, margin=60.0) == []

    def test_negative_spacing_without_pitch(self):
        assert generate_tile_positions(REGION, TILE, -10.0) == []
        assert generate_tile_positions(REGION, TILE, -10.0, distribution='random') == []
        assert generate_tile_positions(REGION, TILE, -12.0, distribution='radial') == []

    def test_overlapping_spacing(self):
        placements = generate_tile_positions(REGION, TILE, -5.0)
        xs = sorted({p.position[0] for p in placements})
        assert xs[1] - xs[0] == pytest.approx(5.0)

    def test_bad_names(self):
        with pytest.raises(ValueError):
            generate_tile_positions(REGION, TILE, distribution='spiral')
        with pytest.raises(ValueError):
            generate_tile_positions(REGION, TILE, rotation='sideways')
        with pytest.raises(ValueError):
            generate_tile_positions(REGION, TILE, direction='diagonal')


class TestDistributions:

    @pytest.mark.parametrize('distribution', DISTRIBUTIONS)
    def test_inside_region(self, distribution):
        placements = generate_tile_positions(REGION, TILE, 2.0, distribution=distribution, seed=7)
        assert placements
        assert all(_in_box(p, TILE, REGION) for p in placements)

    @pytest.mark.parametrize('distribution', DISTRIBUTIONS)
    def test_deterministic(self, distribution):
        a = generate_tile_positions(REGION, TILE, 2.0, distribution=distribution, seed=3)
        b = generate_tile_positions(REGION, TILE, 2.0, distribution=distribution, seed=3)
        assert a == b

    def test_offset_rows(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='offset')
        # shifted rows lose one column to the region edge
        assert len(placements) == 95
        xs = {round(p.position[0], 6) for p in placements}
        assert -45.0 in xs
        assert -40.0 in xs

    def test_hex_row_pitch(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='hex')
        ys = sorted({round(p.position[1], 6) for p in placements})
        pitch = 10.0 * math.sqrt(3.0) / 2.0
        for a, b in zip(ys, ys[1:]):
            assert b - a == pytest.approx(pitch, abs=1e-5)

    def test_radial(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='radial')
        assert placements[0].position == (0.0, 0.0)
        for p in placements:
            r = math.hypot(*p.position)
            assert r / 10.0 == pytest.approx(round(r / 10.0), abs=1e-9)
        assert len(placements) > 1

    def test_wave_stays_near_lattice(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='wave',
                                             wave_amplitude=3.0, wave_length=40.0, margin=0.0)
        devs = []
        for p in placements:
            y = p.position[1]
            devs.append(y - (round((y - 5.0) / 10.0) * 10.0 + 5.0))
        assert all(abs(d) <= 3.0 + 1e-9 for d in devs)
        assert any(abs(d) > 0.5 for d in devs)

    def test_vertical_zigzag(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='zigzag',
                                             direction='vertical', wave_amplitude=2.0)
        devs = [p.position[0] - (round((p.position[0] - 5.0) / 10.0) * 10.0 + 5.0)
                for p in placements]
        assert all(abs(d) <= 2.0 + 1e-9 for d in devs)
        assert any(abs(d) > 0.5 for d in devs)

    def test_warp_is_bounded(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='warped-grid',
                                             warp_strength=0.2)
        for p in placements:
            x, y = p.position
            assert abs(x - (round((x - 5.0) / 10.0) * 10.0 + 5.0)) <= 2.0 + 1e-9
            assert abs(y - (round((y - 5.0) / 10.0) * 10.0 + 5.0)) <= 2.0 + 1e-9

    def test_random_separation(self):
        placements = generate_tile_positions(REGION, TILE, 1.0, distribution='random', seed=11)
        assert len(placements) > 10
        for a, b in itertools.combinations(placements, 2):
            assert math.hypot(a.position[0] - b.position[0],
                              a.position[1] - b.position[1]) >= 11.0

    def test_random_seed_matters(self):
        a = generate_tile_positions(REGION, TILE, 1.0, distribution='random', seed=1)
        b = generate_tile_positions(REGION, TILE, 1.0, distribution='random', seed=2)
        assert a != b


class TestOutline:
    """footprints tested against a non-rectangular outline"""

    def test_contained(self):
        region = Region.from_outline(_circle(40.0))
        placements = generate_tile_positions(region, TILE, 0.0, clip=False)
        assert placements
        for p in placements:
            assert all(region.outline.contains_point(c) for c in _corners(p, TILE))

    def test_clip_keeps_more(self):
        region = Region.from_outline(_circle(40.0))
        contained = generate_tile_positions(region, TILE, 0.0, clip=False)
        clipped = generate_tile_positions(region, TILE, 0.0, clip=True)
        assert len(clipped) > len(contained)
        assert all(_in_box(p, TILE, region) for p in clipped)

    def test_tile_over_hole_rejected(self):
        outline = Polygon.build([(-50.5, -50.5), (50.5, -50.5), (50.5, 50.5), (-50.5, 50.5)],
                                [[(-2, -2), (2, -2), (2, 2), (-2, 2)]])
        region = Region.from_outline(outline)
        placements = generate_tile_positions(region, TILE, 0.0, clip=False)
        for p in placements:
            x, y = p.position
            assert not (abs(x) < 7.0 and abs(y) < 7.0)
        assert len(placements) == 96

    def test_thin_slot_rejects_crossed_tiles(self):
        # 0.5 mm slot cuts through the lower row; every tile corner stays outside it
        outline = Polygon.build([(-20.5, -20.5), (20.5, -20.5), (20.5, 20.5), (-20.5, 20.5),
                                 (-20.5, -4.0), (15.0, -4.0), (15.0, -4.5), (-20.5, -4.5)])
        region = Region.from_outline(outline)
        placements = generate_tile_positions(region, TILE, 0.0, clip=False)
        positions = {(round(p.position[0], 6), round(p.position[1], 6)) for p in placements}
        assert len(placements) == 12
        for x in (-15.0, -5.0, 5.0, 15.0):
            assert (x, -5.0) not in positions
        assert (-15.0, -15.0) in positions

    def test_thin_slot_clipped_keeps_row(self):
        outline = Polygon.build([(-20.5, -20.5), (20.5, -20.5), (20.5, 20.5), (-20.5, 20.5),
                                 (-20.5, -4.0), (15.0, -4.0), (15.0, -4.5), (-20.5, -4.5)])
        region = Region.from_outline(outline)
        assert len(generate_tile_positions(region, TILE, 0.0, clip=True)) == 16

    def test_margin_shrinks_outline(self):
        region = Region.from_outline(_circle(40.0))
        wide = generate_tile_positions(region, TILE, 0.0, clip=False)
        narrow = generate_tile_positions(region, TILE, 0.0, clip=False, margin=5.0)
        assert len(narrow) < len(wide)
        inner = _circle(35.0)
        for p in narrow:
            assert all(inner.contains_point(c) for c in _corners(p, TILE))


class TestSegmentEntersBox:
    """edge against footprint interior"""

    LO, HI = (0.0, 0.0), (10.0, 10.0)

    def test_crossing(self):
        assert segment_enters_box((-5.0, 5.0), (15.0, 5.0), self.LO, self.HI)

    def test_endpoint_inside(self):
        assert segment_enters_box((5.0, 5.0), (20.0, 5.0), self.LO, self.HI)

    def test_along_edge(self):
        assert not segment_enters_box((-5.0, 0.0), (15.0, 0.0), self.LO, self.HI)

    def test_touching_corner(self):
        assert not segment_enters_box((-5.0, 5.0), (5.0, -5.0), self.LO, self.HI)

    def test_outside(self):
        assert not segment_enters_box((20.0, 20.0), (30.0, 30.0), self.LO, self.HI)
        assert not segment_enters_box((-5.0, 12.0), (15.0, 12.0), self.LO, self.HI)


class TestRotation:

    def test_base_rotation(self):
        placements = generate_tile_positions(REGION, TILE, base_rotation=90.0)
        assert all(p.rotation == pytest.approx(math.pi / 2.0) for p in placements)

    def test_alternate(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, rotation='alternate')
        by_pos = {(round(p.position[0]), round(p.position[1])): p.rotation for p in placements}
        assert set(by_pos.values()) == {0.0, math.pi / 2.0}
        assert by_pos[(-45, -45)] != by_pos[(-35, -45)]
        assert by_pos[(-45, -45)] != by_pos[(-45, -35)]
        assert by_pos[(-45, -45)] == by_pos[(-35, -35)]

    def test_aligned(self):
        placements = generate_tile_positions(REGION, TILE, 0.0, distribution='radial',
                                             rotation='aligned')
        assert placements[0].rotation == 0.0
        for p in placements[1:]:
            x, y = p.position
            expected = math.atan2(y, x) + math.pi / 2.0
            assert p.rotation == pytest.approx(expected)

    def test_random(self):
        a = generate_tile_positions(REGION, TILE, rotation='random', seed=5)
        b = generate_tile_positions(REGION, TILE, rotation='random', seed=5)
        assert a == b
        assert all(0.0 <= p.rotation < 2 * math.pi for p in a)
        assert len({p.rotation for p in a}) > 1


def test_generate_placements_uses_settings():
    settings = LayoutSettings(tile_spacing=2.0, margin=4.0, distribution='hex',
                              rotation='alternate', seed=9)
    expected = generate_tile_positions(REGION, TILE, 2.0, margin=4.0, distribution='hex',
                                       rotation='alternate', seed=9)
    assert generate_placements(REGION, TILE, settings) == expected


def test_single_placement():
    (only,) = single_placement()
    assert only.position == (0.0, 0.0)
    assert only.rotation == 0.0

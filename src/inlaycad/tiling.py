"""Tile placement generator.

Computes where repeated pattern instances go inside a region.  Nothing
is drawn here: the result is an ordered list of :class:`Placement`
values (position plus rotation) that the extrusion layer instances a
single reference geometry with.

Candidate positions come from a distribution strategy:

=============== ==========================================================
``grid``        regular lattice, pitch = footprint + spacing
``offset``      brick layout, odd rows shifted by half a column pitch
``hex``         odd rows shifted by half, rows packed at sqrt(3)/2 pitch
``radial``      concentric rings around the region center
``wave``        grid displaced along a sine wave
``zigzag``      grid displaced along a triangle wave
``warped-grid`` grid displaced by a smooth bounded deterministic field
``random``      dart throwing with a minimum separation
=============== ==========================================================

Lattices are anchored on the center of the usable region so layouts are
symmetric.  A candidate whose (unrotated) footprint leaves the region's
box is rejected.  With an outline, ``clip=False`` keeps only instances
fully inside it, while ``clip=True`` keeps anything that overlaps it and
leaves the trimming to the boolean step downstream.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from inlaycad.geom import Footprint, Placement, Polygon, Region, epsilon, pi2
from inlaycad.offset import offset_polygon
from inlaycad.settings import DIRECTIONS, DISTRIBUTIONS, ROTATIONS, LayoutSettings

logger = logging.getLogger(__name__)

## footprints smaller than this (mm) in either direction are not tiled
MIN_FOOTPRINT = 0.1

## extra lattice rows/columns generated beyond the ones that fit, per side
PADDING = 2

## random distribution: attempts per cell of usable area, and a hard cap
RANDOM_ATTEMPTS_PER_CELL = 30
RANDOM_MAX_ATTEMPTS = 200000

ALTERNATE_ANGLES = (0.0, math.pi / 2.0)

Candidate = Tuple[float, float, int, int]


class _Layout:
    """Derived quantities shared by the distribution strategies."""

    def __init__(self, usable: Region, w: float, h: float, spacing: float,
                 direction: str, amplitude: Optional[float],
                 wavelength: Optional[float], warp: float):
        self.usable = usable
        self.w = w
        self.h = h
        self.spacing = spacing
        self.cell_w = w + spacing
        self.cell_h = h + spacing
        self.cx, self.cy = usable.center
        self.direction = direction
        horizontal = direction == 'horizontal'
        if amplitude is None:
            amplitude = (self.cell_h if horizontal else self.cell_w) / 2.0
        if wavelength is None:
            wavelength = 4.0 * (self.cell_w if horizontal else self.cell_h)
        self.amplitude = amplitude
        self.wavelength = wavelength
        self.warp = warp


def _axis(center: float, length: float, size: float, pitch: float) -> List[Tuple[int, float]]:
    """Centered lattice coordinates along one axis, padded on both sides."""
    if length >= size:
        fit = int(math.floor((length - size) / pitch + 1e-9)) + 1
    else:
        fit = 0
    first = -(fit - 1) / 2.0 - PADDING
    return [(k, center + (first + k) * pitch) for k in range(fit + 2 * PADDING)]


def _lattice(lay: _Layout, row_pitch: float, shift_odd: bool) -> Iterator[Candidate]:
    u = lay.usable
    for r, y in _axis(lay.cy, u.height, lay.h, row_pitch):
        dx = lay.cell_w / 2.0 if shift_odd and r % 2 == 1 else 0.0
        for c, x in _axis(lay.cx, u.width, lay.w, lay.cell_w):
            yield x + dx, y, r, c


def _grid(lay: _Layout) -> Iterator[Candidate]:
    return _lattice(lay, lay.cell_h, False)


def _offset(lay: _Layout) -> Iterator[Candidate]:
    return _lattice(lay, lay.cell_h, True)


def _hex(lay: _Layout) -> Iterator[Candidate]:
    return _lattice(lay, lay.cell_h * math.sqrt(3.0) / 2.0, True)


def _radial(lay: _Layout) -> Iterator[Candidate]:
    pitch = max(lay.cell_w, lay.cell_h)
    max_r = math.hypot(lay.usable.width, lay.usable.height) / 2.0
    yield lay.cx, lay.cy, 0, 0
    ring = 1
    while ring * pitch <= max_r:
        r = ring * pitch
        count = max(int(math.floor(pi2 * r / pitch)), 1)
        for j in range(count):
            a = pi2 * j / count
            yield lay.cx + r * math.cos(a), lay.cy + r * math.sin(a), ring, j
        ring += 1


def _triangle(t: float) -> float:
    """Triangle wave with period 1 and range [-1, 1], in phase with sin."""
    f = (t + 0.25) % 1.0
    return 1.0 - 4.0 * abs(f - 0.5)


def _displaced(lay: _Layout, wave: Callable[[float], float]) -> Iterator[Candidate]:
    for x, y, r, c in _grid(lay):
        if lay.direction == 'horizontal':
            y += lay.amplitude * wave((x - lay.cx) / lay.wavelength)
        else:
            x += lay.amplitude * wave((y - lay.cy) / lay.wavelength)
        yield x, y, r, c


def _wave(lay: _Layout) -> Iterator[Candidate]:
    return _displaced(lay, lambda t: math.sin(pi2 * t))


def _zigzag(lay: _Layout) -> Iterator[Candidate]:
    return _displaced(lay, _triangle)


def _warped(lay: _Layout) -> Iterator[Candidate]:
    ax = lay.warp * lay.cell_w
    ay = lay.warp * lay.cell_h
    for x, y, r, c in _grid(lay):
        u = (x - lay.cx) / lay.cell_w
        v = (y - lay.cy) / lay.cell_h
        dx = ax * math.sin(pi2 * v / 4.0) * math.cos(pi2 * u / 5.0)
        dy = ay * math.sin(pi2 * u / 4.0) * math.cos(pi2 * v / 5.0)
        yield x + dx, y + dy, r, c


_STRATEGIES: Dict[str, Callable[[_Layout], Iterator[Candidate]]] = {
    'grid': _grid,
    'offset': _offset,
    'hex': _hex,
    'radial': _radial,
    'wave': _wave,
    'zigzag': _zigzag,
    'warped-grid': _warped,
}


def segment_enters_box(a, b, lo, hi, tol: float = epsilon) -> bool:
    """True if segment ``a``-``b`` passes through the interior of a box.

    The segment is clipped to the closed box (Liang-Barsky); it enters
    the interior when the midpoint of the clipped piece is strictly
    inside.  Segments that only run along or touch the box edges do not
    count.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, a[0] - lo[0]), (dx, hi[0] - a[0]),
                 (-dy, a[1] - lo[1]), (dy, hi[1] - a[1])):
        if p == 0.0:
            if q < 0.0:
                return False
            continue
        t = q / p
        if p < 0.0:
            if t > t1:
                return False
            t0 = max(t0, t)
        else:
            if t < t0:
                return False
            t1 = min(t1, t)
    if t1 <= t0:
        return False
    tm = (t0 + t1) / 2.0
    mx = a[0] + tm * dx
    my = a[1] + tm * dy
    return lo[0] + tol < mx < hi[0] - tol and lo[1] + tol < my < hi[1] - tol


class _Fit:
    """Footprint acceptance test against the usable box and outline."""

    def __init__(self, usable: Region, boundary: Optional[Sequence[Polygon]],
                 w: float, h: float, clip: bool):
        self.usable = usable
        self.boundary = boundary
        self.hw = w / 2.0
        self.hh = h / 2.0
        self.clip = clip

    def _inside(self, p) -> bool:
        return any(poly.contains_point(p) for poly in self.boundary)

    def _edge_crosses(self, lo, hi) -> bool:
        """True if any outline or hole edge passes through the open footprint."""
        for poly in self.boundary:
            for loop in poly.loops:
                for i in range(len(loop)):
                    if segment_enters_box(loop[i - 1], loop[i], lo, hi):
                        return True
        return False

    def __call__(self, x: float, y: float) -> bool:
        lo = (x - self.hw, y - self.hh)
        hi = (x + self.hw, y + self.hh)
        if not self.usable.contains_box(lo, hi):
            return False
        if self.boundary is None:
            return True
        corners = [lo, (hi[0], lo[1]), hi, (lo[0], hi[1])]
        if not self.clip:
            return all(self._inside(p) for p in corners) and not self._edge_crosses(lo, hi)
        samples = corners + [(x, y), (x, lo[1]), (hi[0], y), (x, hi[1]), (lo[0], y)]
        if any(self._inside(p) for p in samples):
            return True
        return self._edge_crosses(lo, hi)


def _random(lay: _Layout, fits: _Fit, seed: int) -> List[Candidate]:
    rng = random.Random(seed)
    u = lay.usable
    xlo, xhi = u.min[0] + lay.w / 2.0, u.max[0] - lay.w / 2.0
    ylo, yhi = u.min[1] + lay.h / 2.0, u.max[1] - lay.h / 2.0
    if xlo > xhi or ylo > yhi:
        return []
    min_sep = max(lay.w, lay.h) + lay.spacing
    cells = (u.width * u.height) / (lay.cell_w * lay.cell_h)
    attempts = min(int(RANDOM_ATTEMPTS_PER_CELL * cells) + RANDOM_ATTEMPTS_PER_CELL,
                   RANDOM_MAX_ATTEMPTS)

    buckets: Dict[Tuple[int, int], List[Tuple[float, float]]] = {}
    out: List[Candidate] = []
    for _ in range(attempts):
        x = rng.uniform(xlo, xhi)
        y = rng.uniform(ylo, yhi)
        bx = int(math.floor(x / min_sep))
        by = int(math.floor(y / min_sep))
        crowded = False
        for i in (bx - 1, bx, bx + 1):
            for j in (by - 1, by, by + 1):
                for px, py in buckets.get((i, j), ()):
                    if math.hypot(px - x, py - y) < min_sep:
                        crowded = True
                        break
                if crowded:
                    break
            if crowded:
                break
        if crowded or not fits(x, y):
            continue
        buckets.setdefault((bx, by), []).append((x, y))
        out.append((x, y, len(out), 0))
    return out


def _rotations(candidates: Sequence[Candidate], policy: str, center, seed: int,
               base: float) -> List[Placement]:
    rng = random.Random(seed + 1)
    out = []
    for x, y, r, c in candidates:
        if policy == 'alternate':
            ang = ALTERNATE_ANGLES[(r + c) % 2]
        elif policy == 'random':
            ang = rng.uniform(0.0, pi2)
        elif policy == 'aligned':
            dx = x - center[0]
            dy = y - center[1]
            ang = math.atan2(dy, dx) + math.pi / 2.0 if (dx or dy) else 0.0
        else:
            ang = 0.0
        out.append(Placement((x, y), ang + base))
    return out


def generate_tile_positions(region: Region, footprint: Footprint, spacing: float = 0.0, *,
                            margin: float = 0.0, clip: bool = True,
                            distribution: str = 'grid', rotation: str = 'none',
                            direction: str = 'horizontal', seed: int = 0,
                            base_rotation: float = 0.0,
                            wave_amplitude: Optional[float] = None,
                            wave_length: Optional[float] = None,
                            warp_strength: float = 0.25) -> List[Placement]:
    """Placements for pattern instances of ``footprint`` inside ``region``.

    ``footprint`` is the scaled instance size; ``base_rotation`` is in
    degrees.  The output order is deterministic for a given input and
    ``seed``.
    """
    if distribution not in DISTRIBUTIONS:
        raise ValueError(f'unknown distribution {distribution!r}')
    if rotation not in ROTATIONS:
        raise ValueError(f'unknown rotation policy {rotation!r}')
    if direction not in DIRECTIONS:
        raise ValueError(f'unknown direction {direction!r}')

    w, h = footprint.width, footprint.height
    if w < MIN_FOOTPRINT or h < MIN_FOOTPRINT:
        logger.debug('footprint %.3f x %.3f too small to tile', w, h)
        return []
    if w + spacing < MIN_FOOTPRINT or h + spacing < MIN_FOOTPRINT:
        logger.debug('spacing %.3f leaves no positive pitch', spacing)
        return []
    usable = region.inset(margin)
    if usable.width <= 0.0 or usable.height <= 0.0:
        return []

    boundary = None
    if region.outline is not None:
        if margin > 0.0:
            boundary = offset_polygon(region.outline, -margin)
            if not boundary:
                return []
        else:
            boundary = [region.outline]

    lay = _Layout(usable, w, h, spacing, direction, wave_amplitude, wave_length, warp_strength)
    fits = _Fit(usable, boundary, w, h, clip)
    if distribution == 'random':
        candidates = _random(lay, fits, seed)
    else:
        candidates = [cand for cand in _STRATEGIES[distribution](lay) if fits(cand[0], cand[1])]

    placements = _rotations(candidates, rotation, region.center, seed, math.radians(base_rotation))
    logger.debug('%s layout: %d placements', distribution, len(placements))
    return placements


def generate_placements(region: Region, footprint: Footprint,
                        settings: LayoutSettings) -> List[Placement]:
    """``generate_tile_positions`` driven by a :class:`LayoutSettings`."""
    return generate_tile_positions(
        region, footprint, settings.tile_spacing,
        margin=settings.margin,
        clip=settings.clip_to_outline,
        distribution=settings.distribution,
        rotation=settings.rotation,
        direction=settings.direction,
        seed=settings.seed,
        base_rotation=settings.base_rotation,
        wave_amplitude=settings.wave_amplitude,
        wave_length=settings.wave_length,
        warp_strength=settings.warp_strength,
    )


def single_placement() -> List[Placement]:
    """The placement list of an untiled pattern: one instance at the origin."""
    return [Placement((0.0, 0.0), 0.0)]


__all__ = [
    'MIN_FOOTPRINT',
    'generate_placements',
    'generate_tile_positions',
    'segment_enters_box',
    'single_placement',
]

"""Stitch an unordered bag of segments into closed loops.

Segments from an exchange drawing only share end points; nothing says
which belong together or in which direction.  ``stitch_segments`` picks
an unused seed, then repeatedly appends whichever unused segment starts
(or, reversed, ends) within ``tolerance`` of the running end point,
until the loop returns to its seed or nothing else fits.  Loops that
never return are closed with a straight edge anyway, so downstream code
always receives something drawable; they are reported with
``closed=False``.

The output is centered: the center of the bounding box of every segment
end point is subtracted from every coordinate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from inlaycad.errors import UnstitchableError
from inlaycad.geom import Loop, Point2, dist, loop_bbox
from inlaycad.segments import DEFAULT_RESOLUTION, PathBuilder, Segment

logger = logging.getLogger(__name__)

## end points closer than this (mm) are considered coincident
STITCH_TOLERANCE = 0.15


@dataclass(frozen=True)
class StitchedLoop:
    """One reconstructed loop.

    ``closed`` is ``False`` when the loop had to be force-closed;
    ``gap`` is then the distance that the implicit closing edge spans.
    """

    points: Loop
    closed: bool
    segment_count: int
    gap: float = 0.0

    @property
    def forced(self) -> bool:
        return not self.closed


def segments_center(segments: Sequence[Segment]) -> Point2:
    """Center of the bounding box of all segment end points."""
    if not segments:
        return (0.0, 0.0)
    lo, hi = loop_bbox([p for s in segments for p in (s.start, s.end)])
    return ((lo[0] + hi[0]) / 2.0, (lo[1] + hi[1]) / 2.0)


def _next_segment(segments: Sequence[Segment], visited: Set[int], end: Point2,
                  tolerance: float):
    """Return ``(index, reversed)`` of the first unused segment touching ``end``."""
    for j, seg in enumerate(segments):
        if j in visited:
            continue
        if dist(end, seg.start) <= tolerance:
            return j, False
        if dist(end, seg.end) <= tolerance:
            return j, True
    return None, False


def _trace_loop(segments: Sequence[Segment], seed: int, visited: Set[int],
                offset: Point2, tolerance: float, resolution: float) -> StitchedLoop:
    first = segments[seed]
    visited.add(seed)
    path = PathBuilder(resolution)
    path.move_to(first.start[0] - offset[0], first.start[1] - offset[1])
    first.emit(path, offset)

    end = first.end
    count = 1
    closed = False
    max_iterations = len(segments) * 2
    iterations = 0
    while iterations < max_iterations:
        iterations += 1
        if dist(end, first.start) <= tolerance:
            closed = True
            break
        j, rev = _next_segment(segments, visited, end, tolerance)
        if j is None:
            break
        visited.add(j)
        seg = segments[j]
        if rev:
            seg.emit_reverse(path, offset)
            end = seg.start
        else:
            seg.emit(path, offset)
            end = seg.end
        count += 1

    gap = 0.0 if closed else dist(end, first.start)
    return StitchedLoop(path.close(), closed, count, gap)


def stitch_segments(segments: Sequence[Segment], *, tolerance: float = STITCH_TOLERANCE,
                    center: bool = True, strict: bool = False,
                    resolution: float = DEFAULT_RESOLUTION,
                    offset: Optional[Point2] = None) -> List[StitchedLoop]:
    """Join ``segments`` into loops.

    Each call uses its own visited set, so the function is safe to call
    concurrently on independent inputs.  ``offset`` overrides the
    automatic centering offset.  With ``strict=True`` a loop that does
    not close raises :class:`~inlaycad.errors.UnstitchableError` instead
    of being force-closed.
    """
    if offset is None:
        offset = segments_center(segments) if center else (0.0, 0.0)
    logger.debug('centering offset (%.4f, %.4f)', offset[0], offset[1])

    visited: Set[int] = set()
    loops: List[StitchedLoop] = []
    for i in range(len(segments)):
        if i in visited:
            continue
        loop = _trace_loop(segments, i, visited, offset, tolerance, resolution)
        if not loop.closed:
            if strict:
                raise UnstitchableError(len(loops), loop.gap)
            logger.warning('loop %d force-closed across a %.4f mm gap (%d segments)',
                           len(loops), loop.gap, loop.segment_count)
        logger.debug('loop %d: segments=%d, closed=%s', len(loops),
                     loop.segment_count, loop.closed)
        loops.append(loop)

    logger.info('stitched %d segments into %d loops', len(segments), len(loops))
    return loops


__all__ = ['STITCH_TOLERANCE', 'StitchedLoop', 'segments_center', 'stitch_segments']

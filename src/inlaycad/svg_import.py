"""Read filled SVG paths as styled polygons.

Each ``<path>`` (and each basic shape svgpathtools converts to a path)
is split into continuous subpaths, flattened, and classified into
polygons with holes on its own, so every polygon keeps the fill color
of the path it came from.  SVG's y-down axis is flipped to inlayCAD's
y-up plane and the whole set is centered on the origin.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional
from xml.parsers.expat import ExpatError

from svgpathtools import Line, svgstr2paths

from inlaycad.classify import classify_loops
from inlaycad.geom import Loop, Polygon, Styled, clean_loop
from inlaycad.pattern import polygons_bounds

logger = logging.getLogger(__name__)

DEFAULT_FILL = '#000000'

_STYLE_FILL = re.compile(r'(?:^|;)\s*fill\s*:\s*([^;]+)')


def path_fill(attributes: Dict[str, str]) -> str:
    """Fill color of a path from its ``style`` or ``fill`` attribute."""
    fill: Optional[str] = None
    style = attributes.get('style')
    if style:
        m = _STYLE_FILL.search(style)
        if m:
            fill = m.group(1).strip()
    if fill is None:
        fill = attributes.get('fill')
    if not fill or fill == 'none':
        return DEFAULT_FILL
    return fill


def _flatten(subpath, samples: int) -> Loop:
    pts = []
    for seg in subpath:
        if not pts:
            pts.append(seg.start)
        if isinstance(seg, Line):
            pts.append(seg.end)
            continue
        for i in range(1, samples + 1):
            pts.append(seg.point(i / samples))
    return clean_loop((z.real, -z.imag) for z in pts)


def parse_svg(text: str, *, samples_per_curve: int = 16) -> List[Styled[Polygon]]:
    """Polygons of every filled path in an SVG document, with their colors.

    Unreadable markup gives an empty list and an error log line.
    """
    if not isinstance(text, str):
        raise TypeError('SVG content must be text')
    try:
        paths, attributes = svgstr2paths(text)
    except (ExpatError, ValueError) as err:
        logger.error('error parsing SVG: %s', err)
        return []

    styled: List[Styled[Polygon]] = []
    for path, attrs in zip(paths, attributes):
        if len(path) == 0:
            continue
        color = path_fill(attrs)
        loops = [_flatten(sub, samples_per_curve) for sub in path.continuous_subpaths()]
        for poly in classify_loops(loops):
            styled.append(Styled(poly, color))

    c = polygons_bounds(s.value for s in styled).center
    logger.debug('parsed %d SVG polygons', len(styled))
    return [Styled(s.value.translated((-c[0], -c[1])), s.color) for s in styled]


__all__ = ['DEFAULT_FILL', 'parse_svg', 'path_fill']

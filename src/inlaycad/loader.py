"""Shape file boundary: sniff a format and load its shapes.

``parse_shape_file`` is the one place where the import layer hands
content to the geometry core.  Every loaded shape comes back wrapped in
:class:`~inlaycad.geom.Styled`; ``color`` is filled in only when colors
were asked for.  Triangle meshes (STL) are not 2D geometry and are
passed through as raw bytes for the mesh layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from ezdxf.lldxf.const import DXFError

from inlaycad.dxf_import import reconstruct_polygons
from inlaycad.errors import UnsupportedFormatError
from inlaycad.geom import Styled
from inlaycad.svg_import import DEFAULT_FILL, parse_svg

logger = logging.getLogger(__name__)

FORMATS = ('dxf', 'svg', 'stl')


@dataclass
class LoadedShapes:
    shapes: List[Styled[Any]] = field(default_factory=list)
    success: bool = True
    error: Optional[str] = None


def sniff_format(content: Union[str, bytes], declared: str) -> str:
    """Correct a declared format from the look of text content."""
    if isinstance(content, str):
        head = content.strip()
        if head.startswith('<svg') or head.startswith('<?xml') or '<svg' in head:
            return 'svg'
        if head.startswith('SECTION') or content.startswith('  0') or head.startswith('0\n'):
            return 'dxf'
    return declared


def load_shapes(content: Union[str, bytes], fmt: str,
                extract_colors: bool = False) -> List[Styled[Any]]:
    """Load shapes or raise :class:`UnsupportedFormatError`."""
    if fmt not in FORMATS:
        raise UnsupportedFormatError(f'unsupported shape format {fmt!r}')
    fmt = sniff_format(content, fmt)

    if fmt == 'stl':
        if not isinstance(content, (bytes, bytearray)):
            raise UnsupportedFormatError('STL content must be bytes')
        return [Styled(bytes(content))]

    if not isinstance(content, str):
        raise UnsupportedFormatError(f'{fmt.upper()} content must be text')

    if fmt == 'svg':
        shapes = parse_svg(content)
        if extract_colors:
            return shapes
        return [Styled(s.value) for s in shapes]

    polys = reconstruct_polygons(content)
    color = DEFAULT_FILL if extract_colors else None
    return [Styled(p, color) for p in polys]


def parse_shape_file(content: Union[str, bytes], fmt: str,
                     extract_colors: bool = False) -> LoadedShapes:
    """Load shapes, reporting failures in the result instead of raising."""
    try:
        shapes = load_shapes(content, fmt, extract_colors)
    except (DXFError, ValueError) as err:
        logger.error('error loading shape: %s', err)
        return LoadedShapes([], False, str(err))
    return LoadedShapes(shapes)


__all__ = ['FORMATS', 'LoadedShapes', 'load_shapes', 'parse_shape_file', 'sniff_format']

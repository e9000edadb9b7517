"""Reconstruct polygons from DXF drawings.

``reconstruct_polygons`` runs the whole import pipeline: the drawing is
read with ezdxf, its entities are converted into the typed records of
:mod:`inlaycad.entities`, normalized to world millimeters, segmented,
stitched into loops and classified into polygons with holes.

A drawing that cannot be read yields an empty list and an error log
line; it is up to the caller to tell the user no shapes were found.

Usage:
    from inlaycad.dxf_import import reconstruct_polygons

    with open('logo.dxf') as fh:
        polygons = reconstruct_polygons(fh.read())
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import ezdxf
from ezdxf.lldxf.const import DXFError

from inlaycad.classify import classify_loops
from inlaycad.entities import (
    Z_UP, ArcEntity, CircleEntity, EllipseEntity, Entity, LineEntity,
    PolylineEntity, SplineEntity, vec3,
)
from inlaycad.frame import unit_scale
from inlaycad.geom import Polygon
from inlaycad.segments import DEFAULT_RESOLUTION, segment_entities
from inlaycad.stitch import STITCH_TOLERANCE, stitch_segments

logger = logging.getLogger(__name__)

## block references are expanded at most this deep
MAX_INSERT_DEPTH = 8


def _extrusion(e) -> Tuple[float, float, float]:
    return vec3(e.dxf.get('extrusion'), Z_UP)


def _lwpolyline(e) -> PolylineEntity:
    elevation = float(e.dxf.get('elevation', 0.0))
    vertices = []
    bulges = []
    for x, y, b in e.get_points('xyb'):
        vertices.append((float(x), float(y), elevation))
        bulges.append(float(b))
    return PolylineEntity(tuple(vertices), tuple(bulges), bool(e.closed), _extrusion(e))


def _polyline(e) -> Optional[PolylineEntity]:
    if not (e.is_2d_polyline or e.is_3d_polyline):
        logger.debug('skipping %s polyline mesh', e.dxf.handle)
        return None
    vertices = []
    bulges = []
    for v in e.vertices:
        vertices.append(vec3(v.dxf.location))
        bulges.append(float(v.dxf.get('bulge', 0.0)) if e.is_2d_polyline else 0.0)
    extrusion = _extrusion(e) if e.is_2d_polyline else Z_UP
    return PolylineEntity(tuple(vertices), tuple(bulges), bool(e.is_closed), extrusion)


def _spline(e) -> SplineEntity:
    return SplineEntity(
        control_points=tuple(vec3(p) for p in e.control_points),
        degree=int(e.dxf.get('degree', 3)),
        knots=tuple(float(k) for k in e.knots),
        weights=tuple(float(w) for w in e.weights),
        fit_points=tuple(vec3(p) for p in e.fit_points),
    )


def entity_from_dxf(e) -> Optional[Entity]:
    """Convert one ezdxf entity; ``None`` for unsupported types."""

    kind = e.dxftype()
    if kind == 'LINE':
        return LineEntity(vec3(e.dxf.start), vec3(e.dxf.end))
    if kind == 'ARC':
        return ArcEntity(vec3(e.dxf.center), float(e.dxf.radius),
                         float(e.dxf.start_angle), float(e.dxf.end_angle), _extrusion(e))
    if kind == 'CIRCLE':
        return CircleEntity(vec3(e.dxf.center), float(e.dxf.radius), _extrusion(e))
    if kind == 'ELLIPSE':
        return EllipseEntity(vec3(e.dxf.center), vec3(e.dxf.major_axis), float(e.dxf.ratio),
                             float(e.dxf.get('start_param', 0.0)),
                             float(e.dxf.get('end_param', 6.283185307179586)),
                             _extrusion(e))
    if kind == 'LWPOLYLINE':
        return _lwpolyline(e)
    if kind == 'POLYLINE':
        return _polyline(e)
    if kind == 'SPLINE':
        return _spline(e)
    return None


def _collect(entities: Iterable, out: List[Entity], depth: int = 0) -> None:
    for e in entities:
        kind = e.dxftype()
        if kind == 'INSERT':
            if depth >= MAX_INSERT_DEPTH:
                logger.warning('block reference nesting deeper than %d ignored', MAX_INSERT_DEPTH)
                continue
            _collect(e.virtual_entities(), out, depth + 1)
            continue
        converted = entity_from_dxf(e)
        if converted is None:
            logger.debug('skipping unsupported entity %s', kind)
            continue
        out.append(converted)


def read_document(text: str):
    """Parse DXF text with ezdxf; ``None`` if it is not a readable drawing."""

    if not isinstance(text, str):
        raise TypeError('DXF content must be text')
    try:
        return ezdxf.read(io.StringIO(text))
    except (DXFError, ValueError, EOFError) as err:
        logger.error('error parsing DXF: %s', err)
        return None


def document_entities(doc) -> Tuple[List[Entity], float]:
    """Typed entities of a drawing's model space and its mm scale factor."""

    scale = unit_scale(doc.header.get('$INSUNITS', 0))
    entities: List[Entity] = []
    _collect(doc.modelspace(), entities)
    return entities, scale


def read_entities(text: str) -> Tuple[List[Entity], float]:
    """Typed entities of DXF text and its mm scale factor.

    Unreadable text gives ``([], 1.0)``.
    """
    doc = read_document(text)
    if doc is None:
        return [], 1.0
    return document_entities(doc)


def entities_to_polygons(entities: Iterable[Entity], scale: float = 1.0, *,
                         tolerance: float = STITCH_TOLERANCE, center: bool = True,
                         strict: bool = False,
                         resolution: float = DEFAULT_RESOLUTION) -> List[Polygon]:
    """Segment, stitch and classify already-typed entities."""

    segments = segment_entities(entities, scale)
    if not segments:
        logger.warning('no usable entities found')
        return []
    loops = stitch_segments(segments, tolerance=tolerance, center=center,
                            strict=strict, resolution=resolution)
    return classify_loops(loop.points for loop in loops)


def reconstruct_polygons(text: str, **kwargs) -> List[Polygon]:
    """Full import pipeline from DXF text to polygons with holes.

    Keyword arguments are passed to :func:`entities_to_polygons`.
    """
    doc = read_document(text)
    if doc is None:
        return []
    entities, scale = document_entities(doc)
    polygons = entities_to_polygons(entities, scale, **kwargs)
    logger.info('reconstructed %d polygons from %d entities', len(polygons), len(entities))
    return polygons


def load_dxf(path: Union[str, Path], **kwargs) -> List[Polygon]:
    """Read a DXF file from disk and reconstruct its polygons."""

    try:
        doc = ezdxf.readfile(str(path))
    except (DXFError, ValueError, EOFError) as err:
        logger.error('error reading %s: %s', path, err)
        return []
    entities, scale = document_entities(doc)
    return entities_to_polygons(entities, scale, **kwargs)


__all__ = [
    'document_entities',
    'entities_to_polygons',
    'entity_from_dxf',
    'load_dxf',
    'read_document',
    'read_entities',
    'reconstruct_polygons',
]

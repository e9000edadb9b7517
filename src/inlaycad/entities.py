"""Typed records for the drawing primitives inlayCAD understands.

Each record carries exactly the fields its primitive needs, in the
units and frame the drawing stored them in.  ``Entity`` is the union of
all of them; :func:`inlaycad.segments.segment_entity` handles every
member.

Planar primitives (arc, circle, polyline) are stored in their object
coordinate system and carry the ``extrusion`` vector that defines it.
Lines, splines and ellipses are stored in world coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

Vec3 = Tuple[float, float, float]

Z_UP: Vec3 = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class LineEntity:
    start: Vec3
    end: Vec3


@dataclass(frozen=True)
class ArcEntity:
    """Counter-clockwise (in its own frame) arc; angles in degrees."""

    center: Vec3
    radius: float
    start_angle: float
    end_angle: float
    extrusion: Vec3 = Z_UP


@dataclass(frozen=True)
class CircleEntity:
    center: Vec3
    radius: float
    extrusion: Vec3 = Z_UP


@dataclass(frozen=True)
class PolylineEntity:
    """Vertices in the entity frame with one bulge per vertex.

    The bulge of vertex ``i`` describes the edge from vertex ``i`` to
    vertex ``i + 1``: ``tan(sweep / 4)``, positive for counter-clockwise.
    """

    vertices: Tuple[Vec3, ...]
    bulges: Tuple[float, ...] = ()
    closed: bool = False
    extrusion: Vec3 = Z_UP

    def bulge(self, i: int) -> float:
        if i < len(self.bulges):
            return self.bulges[i]
        return 0.0


@dataclass(frozen=True)
class SplineEntity:
    control_points: Tuple[Vec3, ...]
    degree: int = 3
    knots: Tuple[float, ...] = ()
    weights: Tuple[float, ...] = ()
    fit_points: Tuple[Vec3, ...] = ()


@dataclass(frozen=True)
class EllipseEntity:
    """Ellipse with parameters in radians; a full ellipse when they meet."""

    center: Vec3
    major_axis: Vec3
    ratio: float
    start_param: float = 0.0
    end_param: float = 6.283185307179586
    extrusion: Vec3 = Z_UP


Entity = Union[LineEntity, ArcEntity, CircleEntity, PolylineEntity,
               SplineEntity, EllipseEntity]


def vec3(v, default: Optional[Vec3] = None) -> Vec3:
    """Coerce a 2- or 3-component vector-like value to a float triple."""
    if v is None:
        if default is None:
            raise ValueError('missing vector value')
        return default
    z = float(v[2]) if len(v) > 2 else 0.0
    return (float(v[0]), float(v[1]), z)


__all__ = [
    'ArcEntity',
    'CircleEntity',
    'EllipseEntity',
    'Entity',
    'LineEntity',
    'PolylineEntity',
    'SplineEntity',
    'vec3',
]

"""Unit and entity-frame normalization.

Entities in an exchange drawing are stored in the document's length
unit, and planar entities (arcs, circles, light-weight polylines) are
stored in an object coordinate system (OCS) derived from their
extrusion vector.  This module maps both into the shared working frame:
world XY, in millimeters.

The OCS basis follows the exchange format's arbitrary axis algorithm:
if the normal is (nearly) parallel to world Z, the OCS x axis is
``Wy x N``, otherwise it is ``Wz x N``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from inlaycad.geom import Point2

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]

## $INSUNITS code -> millimeters per drawing unit
UNIT_SCALES = {
    1: 25.4,     # inches
    2: 304.8,    # feet
    4: 1.0,      # millimeters
    5: 10.0,     # centimeters
    6: 1000.0,   # meters
}

UNIT_NAMES = {
    1: 'inches',
    2: 'feet',
    4: 'millimeters',
    5: 'centimeters',
    6: 'meters',
}

ARBITRARY_AXIS_LIMIT = 1.0 / 64.0

WORLD_Y: Vec3 = (0.0, 1.0, 0.0)
WORLD_Z: Vec3 = (0.0, 0.0, 1.0)


def unit_scale(code) -> float:
    """Return the millimeter scale factor for a drawing unit code.

    Unknown or absent codes fall back to 1.0 (drawing units are taken to
    be millimeters) and are logged.
    """
    try:
        key = int(code)
    except (TypeError, ValueError):
        key = None
    scale = UNIT_SCALES.get(key)
    if scale is None:
        logger.warning('unrecognized drawing unit code %r, assuming millimeters', code)
        return 1.0
    logger.debug('drawing units are %s, scale %g', UNIT_NAMES[key], scale)
    return scale


def cross3(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def _normalize(a: Sequence[float]) -> Vec3:
    length = math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])
    if length == 0.0:
        raise ValueError('cannot normalize a zero-length vector')
    return (a[0] / length, a[1] / length, a[2] / length)


@dataclass(frozen=True)
class Frame:
    """Orthonormal entity frame; ``to_world`` maps local points to world XY."""

    x_axis: Vec3
    y_axis: Vec3
    z_axis: Vec3

    @classmethod
    def from_normal(cls, normal: Sequence[float] = WORLD_Z) -> 'Frame':
        """Build the OCS basis for an extrusion vector.

        A zero-length normal is treated as world Z.
        """
        try:
            n = _normalize(normal)
        except ValueError:
            n = WORLD_Z
        if abs(n[0]) < ARBITRARY_AXIS_LIMIT and abs(n[1]) < ARBITRARY_AXIS_LIMIT:
            ax = _normalize(cross3(WORLD_Y, n))
        else:
            ax = _normalize(cross3(WORLD_Z, n))
        ay = _normalize(cross3(n, ax))
        return cls(ax, ay, n)

    @property
    def flipped(self) -> bool:
        """True when the frame looks at the XY plane from below."""
        return self.z_axis[2] < 0.0

    def to_world3(self, p: Sequence[float]) -> Vec3:
        x = float(p[0])
        y = float(p[1])
        z = float(p[2]) if len(p) > 2 else 0.0
        ax, ay, az = self.x_axis, self.y_axis, self.z_axis
        return (x * ax[0] + y * ay[0] + z * az[0],
                x * ax[1] + y * ay[1] + z * az[1],
                x * ax[2] + y * ay[2] + z * az[2])

    def to_world(self, p: Sequence[float], scale: float = 1.0) -> Point2:
        """Map a local point to world XY, dropping z, scaled to mm."""
        w = self.to_world3(p)
        return (w[0] * scale, w[1] * scale)

    def world_angle(self, ang: float) -> float:
        """World XY direction angle of the local direction at ``ang`` radians."""
        d = self.to_world3((math.cos(ang), math.sin(ang), 0.0))
        return math.atan2(d[1], d[0])


## frame of entities already stored in world coordinates
WORLD = Frame((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), WORLD_Z)


__all__ = [
    'ARBITRARY_AXIS_LIMIT',
    'Frame',
    'UNIT_SCALES',
    'WORLD',
    'cross3',
    'unit_scale',
]

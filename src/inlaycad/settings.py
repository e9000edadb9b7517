"""Layout settings with YAML loading.

``LayoutSettings`` holds every parameter the tile placement generator
understands, with the defaults used by the application.  Settings can
be read from a YAML mapping whose keys are either snake_case field
names or the camelCase names used in saved project files.

Environment Variables:
    INLAYCAD_SETTINGS: path of a YAML file whose values replace the
                       built-in defaults in :func:`default_settings`.

Example YAML::

    tileSpacing: 4
    tilingDistribution: hex
    tilingOrientation: alternate
    seed: 7
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

INLAYCAD_SETTINGS = 'INLAYCAD_SETTINGS'

DISTRIBUTIONS = ('grid', 'offset', 'hex', 'radial', 'random', 'wave', 'zigzag', 'warped-grid')
ROTATIONS = ('none', 'alternate', 'random', 'aligned')
DIRECTIONS = ('horizontal', 'vertical')

## project-file names for the layout fields
ALIASES = {
    'tileSpacing': 'tile_spacing',
    'patternMargin': 'margin',
    'clipToOutline': 'clip_to_outline',
    'tilingDistribution': 'distribution',
    'tilingDirection': 'direction',
    'tilingOrientation': 'rotation',
    'baseRotation': 'base_rotation',
    'patternScale': 'scale',
    'waveAmplitude': 'wave_amplitude',
    'waveLength': 'wave_length',
    'warpStrength': 'warp_strength',
}


@dataclass(frozen=True)
class LayoutSettings:
    """Tile layout parameters.

    Attributes:
        tile_spacing: gap between neighbouring instances (mm)
        margin: inset applied to the region on all sides (mm)
        clip_to_outline: keep instances that straddle the outline
        distribution: one of ``DISTRIBUTIONS``
        direction: wave/zigzag direction, one of ``DIRECTIONS``
        rotation: rotation policy, one of ``ROTATIONS``
        base_rotation: added to every instance's rotation (degrees)
        scale: pattern scale applied to the footprint
        seed: seed for the random distribution and rotation policy
        wave_amplitude: wave/zigzag amplitude (mm), default half a row pitch
        wave_length: wave/zigzag period (mm), default four column pitches
        warp_strength: warped-grid displacement as a fraction of the pitch
    """

    tile_spacing: float = 10.0
    margin: float = 3.0
    clip_to_outline: bool = True
    distribution: str = 'offset'
    direction: str = 'horizontal'
    rotation: str = 'none'
    base_rotation: float = 0.0
    scale: float = 1.0
    seed: int = 0
    wave_amplitude: Optional[float] = None
    wave_length: Optional[float] = None
    warp_strength: float = 0.25

    def __post_init__(self):
        if self.distribution not in DISTRIBUTIONS:
            raise ValueError(f'unknown distribution {self.distribution!r}')
        if self.rotation not in ROTATIONS:
            raise ValueError(f'unknown rotation policy {self.rotation!r}')
        if self.direction not in DIRECTIONS:
            raise ValueError(f'unknown direction {self.direction!r}')
        if self.scale <= 0:
            raise ValueError('scale must be positive')
        if self.wave_length is not None and self.wave_length <= 0:
            raise ValueError('wave_length must be positive')

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any],
                     base: Optional['LayoutSettings'] = None) -> 'LayoutSettings':
        """Build settings from a mapping, starting from ``base`` (or defaults)."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = ALIASES.get(key, key)
            if name not in known:
                logger.warning('ignoring unknown layout setting %r', key)
                continue
            values[name] = value
        return replace(base or cls(), **values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(path: Union[str, Path], base: Optional[LayoutSettings] = None) -> LayoutSettings:
    """Read layout settings from a YAML file.

    An empty file gives the defaults; a document that is not a mapping
    raises ``ValueError``.
    """
    with Path(path).open('r', encoding='utf-8') as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return base or LayoutSettings()
    if not isinstance(data, dict):
        raise ValueError(f'{path}: layout settings must be a mapping')
    return LayoutSettings.from_mapping(data, base)


def default_settings() -> LayoutSettings:
    """Built-in defaults, overridden by ``$INLAYCAD_SETTINGS`` when set."""
    env_path = os.environ.get(INLAYCAD_SETTINGS)
    if env_path:
        path = Path(env_path).expanduser()
        if path.is_file():
            return load_settings(path)
        logger.warning('%s points at missing file %s', INLAYCAD_SETTINGS, path)
    return LayoutSettings()


__all__ = [
    'DIRECTIONS',
    'DISTRIBUTIONS',
    'INLAYCAD_SETTINGS',
    'LayoutSettings',
    'ROTATIONS',
    'default_settings',
    'load_settings',
]

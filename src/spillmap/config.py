"""Render settings for the spill map, with environment overrides."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

ENV_PREFIX = 'SPILLMAP_'

STREET_TILES = 'OpenStreetMap'
SATELLITE_TILES = (
    'https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}'
)
SATELLITE_ATTRIBUTION = (
    'Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, Getmapping, '
    'Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community'
)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class SpillMapConfig:
    zoom: int = 8
    size_range: Tuple[float, float] = (15.0, 35.0)
    opacity: float = 0.85
    heat_radius: float = 25.0
    heat_blur: float = 15.0
    heat_min_opacity: float = 0.3

    @property
    def mid_size(self) -> float:
        return (self.size_range[0] + self.size_range[1]) / 2

    def validate(self) -> 'SpillMapConfig':
        if not 0 <= self.zoom <= 22:
            raise ConfigError(f"zoom must be between 0 and 22, got {self.zoom}")
        size_min, size_max = self.size_range
        if size_min <= 0 or size_min >= size_max:
            raise ConfigError(f"size range must satisfy 0 < min < max, got {self.size_range}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ConfigError(f"opacity must be within [0, 1], got {self.opacity}")
        if self.heat_radius <= 0:
            raise ConfigError(f"heat radius must be positive, got {self.heat_radius}")
        if self.heat_blur < 0:
            raise ConfigError(f"heat blur must not be negative, got {self.heat_blur}")
        if not 0.0 <= self.heat_min_opacity <= 1.0:
            raise ConfigError(f"heat min opacity must be within [0, 1], got {self.heat_min_opacity}")
        return self


def _env_value(environ: Mapping[str, str], name: str, cast: Callable[[str], object]) -> Optional[object]:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name}={raw!r} is not a valid {cast.__name__}") from exc


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> SpillMapConfig:
    """Build a config from ``SPILLMAP_*`` variables, falling back to the defaults."""
    if environ is None:
        environ = os.environ
    defaults = SpillMapConfig()
    overrides: Dict[str, object] = {}
    zoom = _env_value(environ, 'ZOOM', int)
    if zoom is not None:
        overrides['zoom'] = zoom
    size_min = _env_value(environ, 'SIZE_MIN', float)
    size_max = _env_value(environ, 'SIZE_MAX', float)
    if size_min is not None or size_max is not None:
        overrides['size_range'] = (
            size_min if size_min is not None else defaults.size_range[0],
            size_max if size_max is not None else defaults.size_range[1],
        )
    for key, name in (
        ('opacity', 'OPACITY'),
        ('heat_radius', 'HEAT_RADIUS'),
        ('heat_blur', 'HEAT_BLUR'),
        ('heat_min_opacity', 'HEAT_MIN_OPACITY'),
    ):
        value = _env_value(environ, name, float)
        if value is not None:
            overrides[key] = value
    return SpillMapConfig(**overrides).validate()

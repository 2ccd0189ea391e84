"""Colour and shape classification for spill markers."""
from __future__ import annotations

from typing import Optional, Tuple

COLOR_GREEN = '#04A40B'
COLOR_ORANGE = '#FF5F1F'
COLOR_RED = '#FF0000'

SHAPE_CIRCLE = 'circle'
SHAPE_UP = 'up'
SHAPE_DOWN = 'down'
SHAPE_SQUARE = 'square'
SHAPES = (SHAPE_CIRCLE, SHAPE_UP, SHAPE_DOWN, SHAPE_SQUARE)

# Checked in order, first prefix wins.
ASSET_SHAPE_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ('Inlet SO', SHAPE_CIRCLE),
    ('SO on sewer network', SHAPE_DOWN),
    ('Storm discharge', SHAPE_SQUARE),
    ('Storm tank', SHAPE_UP),
)
DEFAULT_SHAPE = SHAPE_CIRCLE

MONITORING_TIERS = [
    ('EDM operational 90% or more (or exactly 50%)', COLOR_GREEN),
    ('EDM operational between 50% and 90%', COLOR_ORANGE),
    ('EDM operational below 50%', COLOR_RED),
]


def classify_color(monitoring: float) -> str:
    # NaN fails both comparisons and lands on green with 50 and >= 90.
    if monitoring > 50 and monitoring < 90:
        return COLOR_ORANGE
    if monitoring < 50:
        return COLOR_RED
    return COLOR_GREEN


def match_asset_prefix(asset_type: str) -> Optional[str]:
    for prefix, _ in ASSET_SHAPE_PREFIXES:
        if asset_type.startswith(prefix):
            return prefix
    return None


def classify_shape(asset_type: str) -> str:
    for prefix, shape in ASSET_SHAPE_PREFIXES:
        if asset_type.startswith(prefix):
            return shape
    return DEFAULT_SHAPE

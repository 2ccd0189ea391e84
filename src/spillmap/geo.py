"""Dataset-wide geographic aggregates: initial view and heat calibration."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from spillmap.models import Dataset, SpillDataError

DEFAULT_ZOOM = 8


@dataclass(frozen=True)
class ViewFrame:
    center: Tuple[float, float]
    zoom: int = DEFAULT_ZOOM


def view_frame(dataset: Dataset, zoom: int = DEFAULT_ZOOM) -> ViewFrame:
    """Centre on the mean latitude and mean longitude, each taken independently."""
    df = dataset.to_frame()
    lat = df['lat'].dropna()
    lng = df['lng'].dropna()
    if lat.empty or lng.empty:
        raise SpillDataError('No records with coordinates to frame the map on')
    return ViewFrame(center=(float(lat.mean()), float(lng.mean())), zoom=zoom)


def max_duration(dataset: Dataset) -> float:
    durations = dataset.to_frame()['spills_duration'].dropna()
    if durations.empty:
        return math.nan
    return float(durations.max())

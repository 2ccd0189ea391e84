"""Marker sizing from spill durations.

Durations are standardised first and the z-scores are then clamped and mapped
onto the pixel range, so one extreme site does not flatten everything else.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import pandas as pd

from spillmap.models import Dataset

logger = logging.getLogger(__name__)

DEFAULT_SIZE_RANGE = (15.0, 35.0)


@dataclass(frozen=True)
class NormalizationStats:
    mean: float
    std_dev: float
    normalized_min: float
    normalized_max: float
    degenerate: bool = False

    def standardize(self, value: float) -> float:
        return (value - self.mean) / self.std_dev


def scale(value: float, input_range: Tuple[float, float], output_range: Tuple[float, float]) -> float:
    """Clamp ``value`` into ``input_range`` and map it linearly onto ``output_range``."""
    input_min, input_max = input_range
    output_min, output_max = output_range
    if input_max == input_min:
        return (output_min + output_max) / 2
    clamped = max(min(value, input_max), input_min)
    return (clamped - input_min) / (input_max - input_min) * (output_max - output_min) + output_min


def compute_stats(durations: Iterable[float]) -> NormalizationStats:
    """Population mean/std (ddof=0) and z-score extent over the finite durations."""
    series = pd.Series(list(durations), dtype=float).dropna()
    if series.empty:
        return NormalizationStats(math.nan, math.nan, math.nan, math.nan, degenerate=True)
    mean = float(series.mean())
    std_dev = float(series.std(ddof=0))
    if std_dev <= 1e-12 * max(abs(mean), 1.0):
        return NormalizationStats(mean, std_dev, math.nan, math.nan, degenerate=True)
    standardized = (series - mean) / std_dev
    normalized_min = float(standardized.min())
    normalized_max = float(standardized.max())
    return NormalizationStats(
        mean=mean,
        std_dev=std_dev,
        normalized_min=normalized_min,
        normalized_max=normalized_max,
        degenerate=normalized_min == normalized_max,
    )


def spill_sizes(
    dataset: Dataset,
    size_range: Tuple[float, float] = DEFAULT_SIZE_RANGE,
) -> Tuple[List[float], NormalizationStats]:
    durations = dataset.to_frame()['spills_duration']
    stats = compute_stats(durations)
    size_min, size_max = size_range
    if stats.degenerate:
        mid = (size_min + size_max) / 2
        logger.warning(
            'Spill durations have no spread (n=%d); drawing every marker at %.1f px',
            int(durations.notna().sum()),
            mid,
        )
        return [mid] * len(dataset), stats
    sizes = []
    for duration in durations:
        if pd.isna(duration):
            sizes.append(size_min)
            continue
        sizes.append(scale(stats.standardize(duration), (stats.normalized_min, stats.normalized_max), size_range))
    return sizes, stats

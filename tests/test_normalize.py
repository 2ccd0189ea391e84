import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'src'))

from spill_rows import make_dataset, make_record  # noqa: E402
from spillmap import normalize  # noqa: E402


def test_compute_stats_uses_population_standard_deviation():
    stats = normalize.compute_stats([2, 4, 4, 4, 5, 5, 7, 9])

    assert stats.mean == pytest.approx(5.0)
    assert stats.std_dev == pytest.approx(2.0)
    assert stats.normalized_min == pytest.approx(-1.5)
    assert stats.normalized_max == pytest.approx(2.0)
    assert not stats.degenerate


def test_compute_stats_ignores_nan_durations():
    stats = normalize.compute_stats([1.0, math.nan, 3.0])

    assert stats.mean == pytest.approx(2.0)
    assert stats.std_dev == pytest.approx(1.0)


@pytest.mark.parametrize(
    'value, expected',
    [
        (-5.0, 15.0),
        (0.0, 15.0),
        (5.0, 25.0),
        (10.0, 35.0),
        (50.0, 35.0),
    ],
)
def test_scale_clamps_then_maps_linearly(value, expected):
    assert normalize.scale(value, (0.0, 10.0), (15.0, 35.0)) == pytest.approx(expected)


def test_sizes_span_the_full_range():
    dataset = make_dataset(*(make_record(spills_duration=value) for value in [0.0, 10.0, 20.0, 400.0]))

    sizes, stats = normalize.spill_sizes(dataset)

    assert sizes[0] == pytest.approx(15.0)
    assert sizes[-1] == pytest.approx(35.0)
    assert sizes == sorted(sizes)
    assert stats.normalized_min < 0 < stats.normalized_max


def test_sizes_are_monotonic_in_standardized_duration():
    durations = [3.0, 120.0, 0.5, 48.0, 48.0, 7.25, 900.0]
    dataset = make_dataset(*(make_record(spills_duration=value) for value in durations))

    sizes, stats = normalize.spill_sizes(dataset)

    z_scores = [stats.standardize(value) for value in durations]
    for i in range(len(durations)):
        for j in range(len(durations)):
            if z_scores[i] < z_scores[j]:
                assert sizes[i] <= sizes[j]
    assert min(sizes) == pytest.approx(15.0)
    assert max(sizes) == pytest.approx(35.0)


def test_uniform_durations_fall_back_to_mid_size():
    dataset = make_dataset(*(make_record(spills_duration=12.0) for _ in range(4)))

    sizes, stats = normalize.spill_sizes(dataset)

    assert stats.degenerate
    assert sizes == [25.0, 25.0, 25.0, 25.0]


def test_single_record_is_degenerate():
    sizes, stats = normalize.spill_sizes(make_dataset(make_record(spills_duration=3.0)), (10.0, 20.0))

    assert stats.degenerate
    assert sizes == [15.0]


def test_nan_duration_gets_minimum_size():
    dataset = make_dataset(
        make_record(spills_duration=1.0),
        make_record(spills_duration=math.nan),
        make_record(spills_duration=9.0),
    )

    sizes, _ = normalize.spill_sizes(dataset)

    assert sizes == [pytest.approx(15.0), 15.0, pytest.approx(35.0)]

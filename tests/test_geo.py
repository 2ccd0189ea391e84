import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'src'))

from spill_rows import make_dataset, make_record  # noqa: E402
from spillmap import geo  # noqa: E402
from spillmap.models import Dataset, SpillDataError  # noqa: E402


def test_centroid_is_mean_of_each_axis():
    dataset = make_dataset(
        make_record(lat=10.0, lng=-1.0),
        make_record(lat=20.0, lng=0.0),
        make_record(lat=30.0, lng=4.0),
    )

    frame = geo.view_frame(dataset)

    assert frame.center[0] == pytest.approx(20.0)
    assert frame.center[1] == pytest.approx(1.0)
    assert frame.zoom == 8


def test_centroid_skips_unparsed_coordinates():
    dataset = make_dataset(
        make_record(lat=50.0, lng=-2.0),
        make_record(lat=math.nan, lng=math.nan),
        make_record(lat=52.0, lng=-4.0),
    )

    frame = geo.view_frame(dataset, zoom=6)

    assert frame.center == (pytest.approx(51.0), pytest.approx(-3.0))
    assert frame.zoom == 6


def test_view_frame_needs_coordinates():
    with pytest.raises(SpillDataError):
        geo.view_frame(Dataset(records=()))


def test_max_duration_over_whole_dataset():
    dataset = make_dataset(
        make_record(spills_duration=4.5),
        make_record(spills_duration=math.nan),
        make_record(spills_duration=812.25),
        make_record(spills_duration=0.0),
    )

    assert geo.max_duration(dataset) == pytest.approx(812.25)


def test_max_duration_without_values_is_nan():
    assert math.isnan(geo.max_duration(make_dataset(make_record(spills_duration=math.nan))))

import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'src'))

from spillmap import classify  # noqa: E402


@pytest.mark.parametrize(
    'monitoring, expected',
    [
        (0.0, classify.COLOR_RED),
        (49.99, classify.COLOR_RED),
        (50.0, classify.COLOR_GREEN),
        (50.01, classify.COLOR_ORANGE),
        (75.0, classify.COLOR_ORANGE),
        (89.99, classify.COLOR_ORANGE),
        (90.0, classify.COLOR_GREEN),
        (100.0, classify.COLOR_GREEN),
        (104.2, classify.COLOR_GREEN),
        (math.nan, classify.COLOR_GREEN),
    ],
)
def test_monitoring_tiers(monitoring, expected):
    assert classify.classify_color(monitoring) == expected


@pytest.mark.parametrize(
    'asset_type, expected',
    [
        ('Inlet SO at WwTW', 'circle'),
        ('SO on sewer network (CSO)', 'down'),
        ('Storm discharge outlet A', 'square'),
        ('Storm tank / CSO at WwTW', 'up'),
        ('Pumping station emergency overflow', 'circle'),
        ('', 'circle'),
    ],
)
def test_asset_shapes(asset_type, expected):
    assert classify.classify_shape(asset_type) == expected


def test_prefix_match_is_case_sensitive():
    assert classify.match_asset_prefix('storm tank') is None
    assert classify.classify_shape('storm tank') == classify.DEFAULT_SHAPE


def test_unmatched_asset_type_has_no_prefix():
    assert classify.match_asset_prefix('Emergency overflow') is None
    assert classify.match_asset_prefix('Storm discharge outlet A') == 'Storm discharge'


def test_first_declared_prefix_wins(monkeypatch):
    monkeypatch.setattr(
        classify,
        'ASSET_SHAPE_PREFIXES',
        (('Storm', 'up'), ('Storm discharge', 'square')),
    )

    assert classify.classify_shape('Storm discharge outlet A') == 'up'
    assert classify.match_asset_prefix('Storm discharge outlet A') == 'Storm'


def test_every_shape_has_svg_markup():
    from spillmap.compose import SHAPE_PATHS

    assert set(SHAPE_PATHS) == set(classify.SHAPES)
    assert {shape for _, shape in classify.ASSET_SHAPE_PREFIXES} <= set(classify.SHAPES)
    assert classify.DEFAULT_SHAPE in classify.SHAPES

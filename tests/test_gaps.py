from __future__ import annotations

from sniffly.gaps import fill_gaps, traffic_series
from sniffly.models import NumericBucket
from sniffly.settings import ChartLimits


def test_regular_samples_are_unchanged():
    points = [(0, 5), (60, 7), (120, 0), (180, 3)]
    assert fill_gaps(points) == points


def test_interior_gaps_filled_with_zero_using_known_step():
    assert fill_gaps([(0, 5), (180, 7)], step=60) == [(0, 5), (60, 0), (120, 0), (180, 7)]


def test_interior_gaps_filled_with_inferred_step():
    out = fill_gaps([(300, 4), (0, 1), (60, 2), (120, 3)])
    assert out == [(0, 1), (60, 2), (120, 3), (180, 0), (240, 0), (300, 4)]


def test_short_inputs_returned_as_is():
    assert fill_gaps([]) == []
    assert fill_gaps([(60, 9)]) == [(60, 9)]


def test_two_points_without_hint_use_their_own_gap():
    assert fill_gaps([(0, 1), (180, 2)]) == [(0, 1), (180, 2)]


def test_downsampling_keeps_total_and_last_sample():
    points = [(i * 60, 1) for i in range(100) if i % 7 != 3]
    out = fill_gaps(points, limits=ChartLimits(max_timeline_points=10))
    assert len(out) <= 10
    assert sum(v for _, v in out) == len(points)
    assert out[0][0] == 0
    assert out[-1][0] == 99 * 60


def test_last_sample_appended_when_off_grid():
    out = fill_gaps([(0, 1), (60, 1), (120, 1), (150, 5)])
    assert out == [(0, 1), (60, 1), (120, 1), (150, 5)]
    out = fill_gaps([(0, 1), (60, 1), (120, 1), (130, 5), (190, 2)])
    assert out[-1] == (190, 2)
    assert sum(v for _, v in out) == 10


def test_traffic_series_names_and_units():
    buckets = [NumericBucket(0, up=1, down=10), NumericBucket(180, up=2, down=20)]
    up, down = traffic_series(buckets, step=60)
    assert up.name == "Up" and down.name == "Down"
    assert up.points == [(0, 1), (60_000, 0), (120_000, 0), (180_000, 2)]
    assert down.total == 30
